"""Token bucket rate limiter for API request throttling."""

import asyncio
import time
from typing import Optional

from mangrove_system.config.logging import get_logger

logger = get_logger("llm.rate_limiter")


class TokenBucket:
    """
    Token bucket algorithm implementation for rate limiting.

    Tokens refill continuously at a fixed rate. Requests consume tokens.
    All access happens on the event loop, so no lock is needed between
    refill and acquire.

    Attributes:
        capacity: Maximum number of tokens the bucket can hold
        refill_rate: Tokens added per second
        tokens: Current number of tokens available
        last_refill: Monotonic timestamp of last token refill
    """

    def __init__(self, capacity: int, refill_rate: float):
        """
        Initialize token bucket with capacity and refill rate.

        Args:
            capacity: Maximum tokens (e.g., 15 for 15 RPM)
            refill_rate: Tokens per second (e.g., 0.25 = 15 per minute)
        """
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self.last_refill = time.monotonic()

        logger.debug(
            f"TokenBucket initialized: capacity={capacity}, "
            f"refill_rate={refill_rate}/s"
        )

    def refill(self) -> None:
        """Refill tokens based on time elapsed since last refill."""
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def seconds_until(self, tokens: float) -> float:
        """Seconds until `tokens` are available (0 if available now)."""
        self.refill()
        missing = tokens - self.tokens
        if missing <= 0:
            return 0.0
        return missing / self.refill_rate


class RateLimiter:
    """
    Multi-dimensional rate limiter using token buckets.

    Enforces both requests-per-minute (RPM) and tokens-per-minute (TPM)
    limits simultaneously to comply with API tier restrictions.

    Attributes:
        rpm_bucket: Token bucket for request rate limiting
        tpm_bucket: Token bucket for token rate limiting
    """

    def __init__(
        self,
        max_rpm: Optional[int] = None,
        max_tpm: Optional[int] = None
    ):
        """
        Initialize rate limiter with RPM and TPM constraints.

        Args:
            max_rpm: Maximum requests per minute (defaults to settings)
            max_tpm: Maximum tokens per minute (defaults to settings)
        """
        from mangrove_system.config.settings import settings

        rpm = max_rpm or settings.max_rpm
        tpm = max_tpm or settings.max_tpm

        self.rpm_bucket = TokenBucket(capacity=rpm, refill_rate=rpm / 60.0)
        self.tpm_bucket = TokenBucket(capacity=tpm, refill_rate=tpm / 60.0)

        logger.info(f"RateLimiter initialized: {rpm} RPM, {tpm:,} TPM")

    def can_proceed(self, token_count: int) -> bool:
        """
        Check if request can proceed given current rate limits.

        Consumes 1 request token (RPM) and token_count tokens (TPM) only if
        BOTH buckets have sufficient capacity.

        Args:
            token_count: Number of tokens the request will consume

        Returns:
            True if request can proceed, False if rate limited
        """
        token_count = min(token_count, self.tpm_bucket.capacity)
        if self.rpm_bucket.seconds_until(1) > 0:
            logger.warning("RPM limit reached, request throttled")
            return False
        if self.tpm_bucket.seconds_until(token_count) > 0:
            logger.warning(
                f"TPM limit reached, request throttled "
                f"(need {token_count}, have {self.tpm_bucket.tokens:.0f})"
            )
            return False

        self.rpm_bucket.tokens -= 1
        self.tpm_bucket.tokens -= token_count
        return True

    async def acquire(self, token_count: int) -> None:
        """
        Wait until the request fits both limits, then consume capacity.

        Args:
            token_count: Estimated tokens the request will consume
        """
        token_count = min(token_count, self.tpm_bucket.capacity)
        while not self.can_proceed(token_count):
            delay = max(
                self.rpm_bucket.seconds_until(1),
                self.tpm_bucket.seconds_until(token_count),
                0.05,
            )
            await asyncio.sleep(delay)
