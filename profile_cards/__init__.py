"""GitHub contribution statistics rendered as composable SVG cards."""

from .config import Settings
from .errors import (
    FetchFailedError,
    ForbiddenError,
    GitHubAPIError,
    NotFoundError,
    RateLimitedError,
    TransientError,
)
from .models import CardType, LayoutMode, RenderConfig, StatsSnapshot
from .service import RenderResult, StatsService, render_document

__version__ = "0.1.0"

__all__ = [
    "CardType",
    "FetchFailedError",
    "ForbiddenError",
    "GitHubAPIError",
    "LayoutMode",
    "NotFoundError",
    "RateLimitedError",
    "RenderConfig",
    "RenderResult",
    "Settings",
    "StatsService",
    "StatsSnapshot",
    "TransientError",
    "render_document",
]
