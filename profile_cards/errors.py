"""Typed failures raised by the transport, client and aggregator."""

from __future__ import annotations
import datetime
from typing import Optional


class GitHubAPIError(Exception):
    """Base error carrying the remote (or synthesized) HTTP status code."""

    status_code: Optional[int] = None

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(GitHubAPIError):
    status_code = 404


class ForbiddenError(GitHubAPIError):
    status_code = 403


class RateLimitedError(GitHubAPIError):
    status_code = 429

    def __init__(self, message: str, reset_at: Optional[datetime.datetime] = None):
        super().__init__(message)
        self.reset_at = reset_at


class TransientError(GitHubAPIError):
    """Any other remote failure. Retried by the client."""


class FetchFailedError(GitHubAPIError):
    status_code = 502

    def __init__(self, username: str, message: Optional[str] = None):
        super().__init__(message or f'Failed to fetch stats for "{username}"')
        self.username = username


# Caller-fault or quota errors that must not be retried.
TERMINAL_ERRORS = (NotFoundError, ForbiddenError, RateLimitedError)
