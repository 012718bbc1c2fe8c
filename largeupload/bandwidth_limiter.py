"""Token bucket bandwidth limiter for slice uploads."""

import asyncio
import time


class BandwidthLimiter:
    """Limits the rate at which slice bytes are handed to the transport.

    The bucket holds at most one second of tokens. A slice larger than that
    borrows against the bucket and the caller sleeps until the debt is repaid.
    """

    def __init__(self, bytes_per_second: int) -> None:
        """Initialise the limiter.

        Args:
            bytes_per_second: Maximum upload rate in bytes/second.
        """
        if bytes_per_second <= 0:
            raise ValueError(
                f"bytes_per_second must be a positive integer, got {bytes_per_second}"
            )
        self._rate = bytes_per_second
        self._tokens = float(bytes_per_second)
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self, n_bytes: int) -> None:
        """Wait until ``n_bytes`` may be sent.

        Args:
            n_bytes: Number of bytes about to be uploaded.
        """
        async with self._lock:
            now = time.monotonic()
            self._tokens = min(
                float(self._rate),
                self._tokens + (now - self._last_refill) * self._rate,
            )
            self._last_refill = now
            self._tokens -= n_bytes
            wait = -self._tokens / self._rate if self._tokens < 0 else 0.0
            if wait > 0:
                await asyncio.sleep(wait)
