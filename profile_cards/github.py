"""Thin GitHub transport: one REST GET helper and one GraphQL POST helper.

Only classifies failures into the typed errors of ``profile_cards.errors``;
retrying is the job of ``ResilientClient``.
"""

from __future__ import annotations
import datetime
import logging
from typing import Any, Dict, Optional

import requests

from .config import DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT
from .errors import (
    ForbiddenError,
    GitHubAPIError,
    NotFoundError,
    RateLimitedError,
    TransientError,
)

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/vnd.github+json"
USER_AGENT = "profile-cards"


def _reset_from_header(value: Optional[str]) -> Optional[datetime.datetime]:
    if not value:
        return None
    try:
        return datetime.datetime.fromtimestamp(int(value), tz=datetime.timezone.utc)
    except (TypeError, ValueError):
        return None


def classify_response(response: requests.Response, tag: str) -> GitHubAPIError:
    status = response.status_code
    body = response.text[:300]
    if status == 404:
        return NotFoundError(f"{tag}: not found")
    if status == 403:
        if response.headers.get("X-RateLimit-Remaining") == "0":
            reset_at = _reset_from_header(response.headers.get("X-RateLimit-Reset"))
            return RateLimitedError(f"{tag}: rate limit exceeded", reset_at)
        return ForbiddenError(f"{tag}: forbidden {body}")
    if status == 429:
        reset_at = _reset_from_header(response.headers.get("X-RateLimit-Reset"))
        return RateLimitedError(f"{tag}: too many requests", reset_at)
    return TransientError(f"{tag} failed: {status} {body}", status)


def classify_graphql_errors(errors, tag: str) -> GitHubAPIError:
    messages = " | ".join(e.get("message", "") for e in errors)
    types = {e.get("type") for e in errors}
    if "NOT_FOUND" in types:
        return NotFoundError(f"{tag}: {messages}")
    if "FORBIDDEN" in types:
        return ForbiddenError(f"{tag}: {messages}")
    if "RATE_LIMITED" in types or "rate limit" in messages.lower():
        return RateLimitedError(f"{tag}: {messages}")
    return TransientError(f"{tag} GraphQL errors: {messages}")


class GitHubTransport:

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": ACCEPT_HEADER, "User-Agent": USER_AGENT})
        if token:
            self.session.headers["Authorization"] = f"token {token}"

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.api_url}{path}"
        logger.debug("GET %s params=%s", path, params)
        r = self.session.get(url, params=params, timeout=self.timeout)
        if r.status_code != 200:
            raise classify_response(r, f"GET {path}")
        return r.json()

    def graphql(self, query: str, variables: Dict[str, Any], tag: str = "graphql") -> Dict[str, Any]:
        logger.debug("%s: GraphQL variables=%s", tag, variables)
        r = self.session.post(
            f"{self.api_url}/graphql",
            json={"query": query, "variables": variables},
            timeout=self.timeout,
        )
        if r.status_code != 200:
            raise classify_response(r, tag)
        data = r.json()
        if data.get("errors"):
            raise classify_graphql_errors(data["errors"], tag)
        return data["data"]
