"""Dataclasses shared by the aggregator, the cache and the renderers."""

from __future__ import annotations
import datetime
import enum
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


# ------------------ Statistics ------------------
@dataclass(frozen=True)
class AccountProfile:
    login: str
    name: Optional[str]
    bio: Optional[str]
    avatar_url: str
    followers: int
    following: int
    public_repos: int
    public_gists: int
    created_at: datetime.datetime


@dataclass(frozen=True)
class RepositorySummary:
    name: str
    stars: int
    forks: int
    language: Optional[str]
    size: int


@dataclass(frozen=True)
class ContributionDay:
    date: str  # YYYY-MM-DD
    count: int


@dataclass(frozen=True)
class StatsSnapshot:
    user: AccountProfile
    repositories: Tuple[RepositorySummary, ...]
    total_stars: int
    total_forks: int
    total_commits: int
    total_pull_requests: int
    total_issues: int
    created_repositories: int
    # Size of the deduplicated repository set; own + not-owner counts are
    # derived from the same set but are not guaranteed to sum to it.
    contributed_to: int
    commits_to_my_repositories: int
    commits_to_another_repositories: int
    pull_requests_to_another_repositories: int
    contributed_to_own_repositories: int
    contributed_to_not_owner_repositories: int
    direct_stars: int
    indirect_stars: int
    current_streak: int
    longest_streak: int
    total_contributions: int
    languages: Mapping[str, int]
    top_repositories: Tuple[RepositorySummary, ...]
    last_fetch: datetime.datetime
    privileged: bool = True


# ------------------ Rendering ------------------
class CardType(enum.Enum):
    PROFILE = "profile"
    REPOSITORIES = "repositories"
    COMMITS = "commits"
    STREAK = "streak"
    LANGUAGES = "languages"
    SKILLS = "skills"
    TROPHIES = "trophies"
    UNIFIED = "unified"


class LayoutMode(enum.Enum):
    GRID = "grid"
    ROW = "row"
    COLUMN = "column"


class CardSize(enum.Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class BackgroundPattern(enum.Enum):
    NONE = "none"
    DOTS = "dots"
    GRADIENT = "gradient"
    NOISE = "noise"


CARD_DIMENSIONS: Dict[CardSize, Tuple[int, int]] = {
    CardSize.SMALL: (350, 160),
    CardSize.MEDIUM: (450, 200),
    CardSize.LARGE: (550, 240),
}


def _enum_or_default(enum_cls, raw: Optional[str], default):
    if not raw:
        return default
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        logger.warning("Unknown %s %r, using %s", enum_cls.__name__, raw, default.value)
        return default


def _int_or_none(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer value %r", raw)
        return None


def parse_cards(raw: Optional[str]) -> Tuple[CardType, ...]:
    """Parses a comma-separated card list, dropping unknown names."""
    cards = []
    for name in (raw or "").split(","):
        name = name.strip().lower()
        if not name:
            continue
        try:
            cards.append(CardType(name))
        except ValueError:
            logger.warning("Skipping unknown card type %r", name)
    return tuple(cards) or (CardType.UNIFIED,)


@dataclass(frozen=True)
class RenderConfig:
    username: str
    theme: str = "dark"
    cards: Tuple[CardType, ...] = (CardType.UNIFIED,)
    layout: LayoutMode = LayoutMode.GRID
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    background_color: Optional[str] = None
    font_family: Optional[str] = None
    border_radius: Optional[int] = None
    shadow: Optional[int] = None
    card_size: CardSize = CardSize.MEDIUM
    background_pattern: BackgroundPattern = BackgroundPattern.NONE

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "RenderConfig":
        """Builds a config from string query parameters (``user``, ``cards`` ...)."""
        def opt(name):
            value = params.get(name)
            return value if value else None

        return cls(
            username=(params.get("user") or params.get("username") or "").strip(),
            theme=(params.get("theme") or "dark").strip().lower(),
            cards=parse_cards(params.get("cards")),
            layout=_enum_or_default(LayoutMode, params.get("layout"), LayoutMode.GRID),
            primary_color=opt("primaryColor"),
            secondary_color=opt("secondaryColor"),
            background_color=opt("backgroundColor"),
            font_family=opt("fontFamily"),
            border_radius=_int_or_none(params.get("borderRadius")),
            shadow=_int_or_none(params.get("shadow")),
            card_size=_enum_or_default(CardSize, params.get("cardSize"), CardSize.MEDIUM),
            background_pattern=_enum_or_default(
                BackgroundPattern, params.get("backgroundPattern"), BackgroundPattern.NONE
            ),
        )

    @property
    def card_dimensions(self) -> Tuple[int, int]:
        return CARD_DIMENSIONS[self.card_size]

    def cache_key(self) -> str:
        parts = []
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "username":
                value = value.lower()
            elif f.name == "cards":
                value = ",".join(card.value for card in value)
            elif isinstance(value, enum.Enum):
                value = value.value
            parts.append(f"{f.name}={'' if value is None else value}")
        return "|".join(parts)


# ------------------ Cache ------------------
@dataclass(frozen=True)
class CacheEntry:
    payload: Any
    stored_at: float = field(compare=False)
