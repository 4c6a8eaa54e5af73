"""Rejoin grace period timer for disconnected players."""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger()

DEFAULT_GRACE_SECONDS = 120.0


class GraceTimer:
    """
    One-shot timer that fires once a disconnected player's grace period ends.

    The session layer keeps exactly one timer per player session. Starting a
    timer replaces any previous one; cancelling is safe from inside the
    expiry callback itself, where it is a no-op.
    """

    def __init__(self, seconds: float = DEFAULT_GRACE_SECONDS) -> None:
        if seconds < 0:
            raise ValueError(f"grace period must be non-negative, got {seconds}")
        self._seconds = seconds
        self._active_task: asyncio.Task[None] | None = None

    @property
    def seconds(self) -> float:
        return self._seconds

    @property
    def is_pending(self) -> bool:
        return self._active_task is not None and not self._active_task.done()

    def start(self, on_expire: Callable[[], Awaitable[None]]) -> None:
        """Schedule ``on_expire`` after the grace period, replacing any pending run."""
        self.cancel()
        self._active_task = asyncio.create_task(self._run_timer(on_expire))

    def cancel(self) -> None:
        """Cancel the pending expiry. Does nothing when called from the expiry callback."""
        task = self._active_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        self._active_task = None

    async def _run_timer(self, on_expire: Callable[[], Awaitable[None]]) -> None:
        try:
            await asyncio.sleep(self._seconds)
            await on_expire()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("grace timer callback failed")
