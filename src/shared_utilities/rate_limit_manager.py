"""
Rate limit awareness for GitLab API requests.

GitLab reports quota through the RateLimit-* response headers. The manager
records the last status it saw and pauses before the next request when the
remaining quota drops to the safety buffer. It never retries.
"""

import time
from dataclasses import dataclass

import requests
from loguru import logger


@dataclass
class RateLimitStatus:
    """Current rate limit status from the GitLab API."""

    limit: int  # Requests allowed in the current window
    remaining: int  # Requests remaining in the current window
    reset_time: int  # Unix timestamp when the window resets

    @property
    def usage_percentage(self) -> float:
        """Percentage of rate limit used (0.0 to 1.0)."""
        if self.limit == 0:
            return 0.0
        return (self.limit - self.remaining) / self.limit

    @property
    def seconds_until_reset(self) -> float:
        """Seconds until the rate limit window resets."""
        return max(0.0, self.reset_time - time.time())


class RateLimitManager:
    """Tracks GitLab rate limit headers and throttles when nearly exhausted."""

    def __init__(self, safety_buffer: int = 10, max_wait: float = 60.0):
        """
        Initialize rate limit manager.

        Args:
            safety_buffer: Number of requests to keep in reserve
            max_wait: Upper bound for a single pause, in seconds
        """
        self.safety_buffer = safety_buffer
        self.max_wait = max_wait
        self.last_status: RateLimitStatus | None = None

    def extract_rate_limit_status(
        self, response: requests.Response
    ) -> RateLimitStatus | None:
        """
        Extract rate limit information from GitLab response headers.

        Args:
            response: requests.Response object from the GitLab API

        Returns:
            RateLimitStatus object or None if headers not present
        """
        headers = response.headers
        if "RateLimit-Remaining" not in headers:
            return None

        try:
            status = RateLimitStatus(
                limit=int(headers.get("RateLimit-Limit", 0)),
                remaining=int(headers.get("RateLimit-Remaining", 0)),
                reset_time=int(headers.get("RateLimit-Reset", 0)),
            )
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to parse rate limit headers: {e}")
            return None

        self.last_status = status
        return status

    def calculate_delay(self, status: RateLimitStatus | None = None) -> float:
        """
        Calculate the pause needed before the next request.

        Args:
            status: Current rate limit status, uses last known if None

        Returns:
            Delay in seconds, zero when there is quota left
        """
        if status is None:
            status = self.last_status

        if status is None or status.limit == 0:
            return 0.0

        if status.remaining > self.safety_buffer:
            return 0.0

        return min(status.seconds_until_reset, self.max_wait)

    def wait_if_needed(self) -> None:
        """Sleep until the window resets when the quota is nearly exhausted."""
        delay = self.calculate_delay()
        if delay > 0:
            logger.warning(
                f"GitLab rate limit nearly exhausted, waiting {delay:.1f}s "
                f"({self.format_status_summary()})"
            )
            time.sleep(delay)

    def format_status_summary(self) -> str:
        """Get a formatted summary of current rate limit status."""
        if self.last_status is None:
            return "Rate limit status: Unknown"

        status = self.last_status
        return (
            f"Rate limit: {status.remaining}/{status.limit} remaining "
            f"({status.usage_percentage:.1%} used), "
            f"resets in {status.seconds_until_reset:.0f} seconds"
        )
