import asyncio

import pytest

from bananas.session.grace_timer import GraceTimer


class TestGraceTimer:
    async def test_fires_after_delay(self):
        fired = asyncio.Event()

        async def on_expire():
            fired.set()

        timer = GraceTimer(0.01)
        timer.start(on_expire)
        assert timer.is_pending

        await asyncio.wait_for(fired.wait(), timeout=1)

    async def test_cancel_prevents_firing(self):
        calls = []

        async def on_expire():
            calls.append(1)

        timer = GraceTimer(0.02)
        timer.start(on_expire)
        timer.cancel()
        await asyncio.sleep(0.05)

        assert calls == []
        assert not timer.is_pending

    async def test_restart_replaces_pending_run(self):
        calls = []

        async def on_expire():
            calls.append(1)

        timer = GraceTimer(0.02)
        timer.start(on_expire)
        timer.start(on_expire)
        await asyncio.sleep(0.06)

        assert calls == [1]

    async def test_cancel_from_callback_is_noop(self):
        done = asyncio.Event()
        timer = GraceTimer(0.0)

        async def on_expire():
            timer.cancel()
            done.set()

        timer.start(on_expire)
        await asyncio.wait_for(done.wait(), timeout=1)

    async def test_callback_error_is_logged(self, caplog):
        async def on_expire():
            raise RuntimeError("send failed")

        timer = GraceTimer(0.0)
        timer.start(on_expire)
        await asyncio.sleep(0.01)

        assert "grace timer callback failed" in caplog.text

    async def test_unexpected_callback_error_is_logged(self, caplog):
        async def on_expire():
            raise KeyError("player")

        timer = GraceTimer(0.0)
        timer.start(on_expire)
        await asyncio.sleep(0.01)

        assert "grace timer callback failed" in caplog.text
        assert not timer.is_pending

    def test_negative_duration_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            GraceTimer(-1)
