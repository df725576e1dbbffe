"""
Runtime configuration.

Environment Variables:
  ACCESS_TOKEN (optional) : Personal token. Falls back to GITHUB_TOKEN.
                            Without a token the aggregator runs degraded
                            (no streaks, no contribution totals, size-based
                            language proxy).
  GITHUB_API_URL          : REST/GraphQL base URL. Default https://api.github.com
  GQL_MAX_RETRIES         : Attempts per remote call. Default 3.
  RETRY_BASE_DELAY        : Seconds; linear backoff base. Default 1.0.
  STATS_CACHE_TTL         : Seconds raw statistics stay fresh. Default 3600.
  DOCUMENT_CACHE_TTL      : Seconds rendered documents stay fresh. Default 900.
  CACHE_MAX_ENTRIES       : LRU bound per cache tier. 0 => unbounded.
  LOOKUP_WORKERS          : Concurrent per-repository lookups. Default 6.
  REQUEST_TIMEOUT         : HTTP timeout in seconds. Default 30.
  LOG_LEVEL               : DEBUG, INFO, WARNING, ERROR. Default INFO.
  DEBUG                   : '1' => force DEBUG logging.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0
DEFAULT_STATS_TTL = 3600.0
DEFAULT_DOCUMENT_TTL = 900.0
DEFAULT_LOOKUP_WORKERS = 6
DEFAULT_REQUEST_TIMEOUT = 30.0

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _number(environ: Mapping[str, str], name: str, default, cast=float):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r. Using default %s.", name, raw, default)
        return default
    if value < 0:
        logger.warning("Negative %s=%r. Using default %s.", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class Settings:
    token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY
    stats_ttl: float = DEFAULT_STATS_TTL
    document_ttl: float = DEFAULT_DOCUMENT_TTL
    cache_max_entries: Optional[int] = None
    lookup_workers: int = DEFAULT_LOOKUP_WORKERS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        token = env.get("ACCESS_TOKEN") or env.get("GITHUB_TOKEN") or None
        max_entries = _number(env, "CACHE_MAX_ENTRIES", 0, int)
        level = env.get("LOG_LEVEL", "INFO").upper()
        if env.get("DEBUG", "0") == "1":
            level = "DEBUG"
        return cls(
            token=token,
            api_url=env.get("GITHUB_API_URL", DEFAULT_API_URL).rstrip("/"),
            max_retries=max(1, _number(env, "GQL_MAX_RETRIES", DEFAULT_MAX_RETRIES, int)),
            retry_base_delay=_number(env, "RETRY_BASE_DELAY", DEFAULT_RETRY_BASE_DELAY),
            stats_ttl=_number(env, "STATS_CACHE_TTL", DEFAULT_STATS_TTL),
            document_ttl=_number(env, "DOCUMENT_CACHE_TTL", DEFAULT_DOCUMENT_TTL),
            cache_max_entries=max_entries or None,
            lookup_workers=max(1, _number(env, "LOOKUP_WORKERS", DEFAULT_LOOKUP_WORKERS, int)),
            request_timeout=_number(env, "REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            log_level=level,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
