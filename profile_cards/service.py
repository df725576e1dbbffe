"""
Inbound query operation.

``StatsService.render(config)`` returns a ``RenderResult``. On failure the
document is a well-formed error SVG, so image consumers never get a broken
payload. Error documents are not cached.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .aggregator import ContributionAggregator
from .cache import DOCUMENTS_TIER, STATS_TIER, TieredCache
from .cards import render_card
from .client import ResilientClient
from .config import Settings
from .errors import GitHubAPIError
from .github import GitHubTransport
from .layout import LayoutSpec, compose
from .models import RenderConfig, StatsSnapshot
from .svg import element, svg_root, to_string
from .themes import resolve_theme

logger = logging.getLogger(__name__)

ERROR_WIDTH = 400
ERROR_HEIGHT = 100


@dataclass(frozen=True)
class RenderResult:
    document: str
    status: int = 200
    error: Optional[GitHubAPIError] = None

    @property
    def ok(self) -> bool:
        return self.status == 200


def render_error_document(message: str, status: Optional[int] = None) -> str:
    root = svg_root(ERROR_WIDTH, ERROR_HEIGHT, "GitHub Stats Error")
    element(root, "rect", width=ERROR_WIDTH, height=ERROR_HEIGHT, fill="#0f172a", rx=8)
    label = f"Error {status}: {message}" if status else f"Error: {message}"
    element(
        root, "text", label,
        x=ERROR_WIDTH / 2, y=ERROR_HEIGHT / 2 + 5,
        font_family="Arial", font_size=14, fill="#ef4444", text_anchor="middle",
    )
    return to_string(root)


def render_document(stats: StatsSnapshot, config: RenderConfig) -> str:
    """Pure: the same snapshot and config always give the same document."""
    theme = resolve_theme(config)
    width, height = config.card_dimensions
    fragments = [render_card(card, stats, theme, width, height) for card in config.cards]
    spec = LayoutSpec(config.layout, width, height)
    title = f"{stats.user.login}'s GitHub Stats"
    return compose(fragments, spec, theme, title, config.background_pattern)


class StatsService:

    def __init__(self, aggregator: ContributionAggregator, cache: Optional[TieredCache] = None):
        self.aggregator = aggregator
        self.cache = cache or TieredCache()

    @classmethod
    def from_settings(cls, settings: Settings) -> "StatsService":
        transport = GitHubTransport(settings.token, settings.api_url, settings.request_timeout)
        if not transport.authenticated:
            logger.warning("GitHub token not found. Streaks and contribution history will be unavailable.")
        client = ResilientClient(transport, settings.max_retries, settings.retry_base_delay)
        aggregator = ContributionAggregator(client, settings.lookup_workers)
        cache = TieredCache(settings.stats_ttl, settings.document_ttl, settings.cache_max_entries)
        return cls(aggregator, cache)

    def stats_for(self, username: str, bypass_cache: bool = False) -> StatsSnapshot:
        return self.cache.get_or_compute(
            STATS_TIER,
            username.lower(),
            lambda: self.aggregator.aggregate(username),
            bypass_cache,
        )

    def render(self, config: RenderConfig, bypass_cache: bool = False) -> RenderResult:
        if not config.username:
            return RenderResult(render_error_document("Username is required", 400), 400)
        t0 = time.time()
        try:
            document = self.cache.get_or_compute(
                DOCUMENTS_TIER,
                config.cache_key(),
                lambda: render_document(self.stats_for(config.username, bypass_cache), config),
                bypass_cache,
            )
        except GitHubAPIError as e:
            logger.warning("[%s] %s (%s)", config.username, e.message, e.status_code)
            status = e.status_code or 500
            return RenderResult(render_error_document(e.message, status), status, e)
        except Exception:
            logger.exception("[%s] Error generating SVG", config.username)
            return RenderResult(render_error_document("Failed to generate stats", 500), 500)
        logger.info("[%s] document ready in %.2fms", config.username, (time.time() - t0) * 1000)
        return RenderResult(document)
