"""Token bucket rate limiter for WebSocket message throttling."""

import time


class TokenBucket:
    """Rate limiter using the token bucket algorithm.

    Tokens are added at a constant rate up to a maximum burst capacity.
    Each consume() call removes ``cost`` tokens; returns False when the bucket
    cannot cover it (caller should drop the message).
    """

    def __init__(self, rate: float, burst: int) -> None:
        if rate <= 0 or burst < 1:
            raise ValueError(f"rate must be positive and burst at least 1, got rate={rate} burst={burst}")
        self._rate = rate
        self._burst = burst
        self._tokens = float(burst)
        self._last_refill = time.monotonic()

    @property
    def available(self) -> float:
        return self._tokens

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(self._burst, self._tokens + (now - self._last_refill) * self._rate)
        self._last_refill = now

    def consume(self, cost: float = 1.0) -> bool:
        """Try to take ``cost`` tokens. Returns True if allowed, False if rate-limited."""
        self._refill()
        if self._tokens >= cost:
            self._tokens -= cost
            return True
        return False
