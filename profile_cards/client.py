"""Bounded retry around remote calls, plus an advisory rate-limit probe."""

from __future__ import annotations
import datetime
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from .config import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_BASE_DELAY
from .errors import TERMINAL_ERRORS, RateLimitedError
from .github import GitHubTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RateLimitStatus:
    limit: int
    remaining: int
    reset_at: datetime.datetime


class ResilientClient:
    """Runs zero-argument operations with linear backoff.

    NotFound, Forbidden and RateLimited failures are raised immediately;
    anything else is retried until ``max_attempts`` is exhausted and the
    last error is re-raised.
    """

    def __init__(
        self,
        transport: GitHubTransport,
        max_attempts: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.sleep = sleep

    def execute(self, operation: Callable[[], T], tag: str = "request") -> T:
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return operation()
            except TERMINAL_ERRORS:
                raise
            except Exception as e:
                last_exc = e
                if attempt < self.max_attempts:
                    delay = self.base_delay * attempt
                    logger.warning(
                        "%s: %s. Retrying in %.1fs (attempt %d/%d)",
                        tag, e, delay, attempt, self.max_attempts,
                    )
                    self.sleep(delay)
        logger.error("%s: giving up after %d attempts", tag, self.max_attempts)
        raise last_exc

    def probe_rate_limit(self) -> Optional[RateLimitStatus]:
        """Returns the current quota, or None when it cannot be determined."""
        try:
            rate = self.transport.get_json("/rate_limit")["rate"]
            status = RateLimitStatus(
                limit=int(rate["limit"]),
                remaining=int(rate["remaining"]),
                reset_at=datetime.datetime.fromtimestamp(int(rate["reset"]), tz=datetime.timezone.utc),
            )
        except Exception as e:
            logger.debug("Rate limit probe failed: %s", e)
            return None
        logger.debug("Rate limit: %d/%d, resets %s", status.remaining, status.limit, status.reset_at)
        if status.remaining == 0:
            raise RateLimitedError(
                f"Rate limit exceeded. Resets at {status.reset_at.isoformat()}",
                status.reset_at,
            )
        return status
