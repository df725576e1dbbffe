"""
Card renderers.

Every renderer is a pure function ``(stats, theme, width, height) -> <g>``.
Vertical positions are laid out for a 200px tall card and scaled to the
requested height, so all card sizes share one design.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from dateutil import relativedelta
from lxml import etree

from .models import CardType, StatsSnapshot
from .svg import PADDING, calculate_rank, card_frame, element, format_number, text, truncate_text
from .themes import Theme

DESIGN_HEIGHT = 200
CHAR_WIDTH_PX = 7  # approximate width of a 12px sans glyph

LANGUAGE_COLORS: Dict[str, str] = {
    "JavaScript": "#f1e05a",
    "TypeScript": "#3178c6",
    "Python": "#3572A5",
    "Java": "#b07219",
    "Go": "#00ADD8",
    "Rust": "#dea584",
    "Ruby": "#701516",
    "PHP": "#4F5D95",
    "C": "#555555",
    "C++": "#f34b7d",
    "C#": "#178600",
    "Swift": "#ffac45",
    "Kotlin": "#A97BFF",
    "Dart": "#00B4AB",
    "HTML": "#e34c26",
    "CSS": "#563d7c",
    "Shell": "#89e051",
    "Vue": "#41b883",
}

TECH_ICONS: Dict[str, str] = {
    "JavaScript": "JS",
    "TypeScript": "TS",
    "Python": "🐍",
    "Java": "☕",
    "Go": "🐹",
    "Rust": "🦀",
    "Ruby": "💎",
    "PHP": "🐘",
    "Swift": "🍎",
    "Kotlin": "K",
    "Vue": "V",
    "Dockerfile": "🐳",
}


def _y(value: float, height: int) -> float:
    return round(value * height / DESIGN_HEIGHT, 1)


def ranked_languages(languages: Dict[str, int], limit: int) -> List[Tuple[str, int]]:
    # Ties broken by name so output does not depend on dict order.
    return sorted(languages.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]


# ------------------ Profile ------------------
def render_profile(stats: StatsSnapshot, theme: Theme, width: int, height: int) -> etree._Element:
    user = stats.user
    card = card_frame(theme, width, height, "Profile Stats", "card profile")
    display = f"{user.name} (@{user.login})" if user.name else f"@{user.login}"
    max_chars = int((width - 2 * PADDING) / CHAR_WIDTH_PX)
    text(card, PADDING, _y(58, height), truncate_text(display, max_chars), theme,
         fill=theme.colors.text_secondary)

    items = [
        ("Followers", user.followers),
        ("Following", user.following),
        ("Repos", user.public_repos),
        ("Gists", user.public_gists),
    ]
    for index, (label, value) in enumerate(items):
        x = PADDING + (index % 2) * 100
        y = _y(84 + (index // 2) * 56, height)
        group = element(card, "g")
        text(group, x, y, label, theme, fill=theme.colors.text_secondary)
        text(group, x, y + 24, format_number(value), theme, size=24, weight=700,
             fill=theme.colors.primary)

    if user.bio:
        bio_x = PADDING + 220
        bio_chars = max(0, int((width - bio_x - PADDING) / CHAR_WIDTH_PX))
        if bio_chars > 3:
            text(card, bio_x, _y(84, height), truncate_text(user.bio.strip(), bio_chars), theme,
                 size=11, fill=theme.colors.text_secondary)
    return card


# ------------------ Repositories ------------------
def render_repositories(stats: StatsSnapshot, theme: Theme, width: int, height: int) -> etree._Element:
    card = card_frame(theme, width, height, "Repository Stats", "card repositories")
    rows = [
        ("Total Repositories", stats.user.public_repos),
        ("Total Stars", stats.total_stars),
        ("Total Forks", stats.total_forks),
    ]
    for index, (label, value) in enumerate(rows):
        y = _y(80 + index * 40, height)
        group = element(card, "g")
        text(group, PADDING, y, label, theme, fill=theme.colors.text_secondary)
        text(group, width - PADDING, y, format_number(value), theme, size=20, weight=700,
             fill=theme.colors.primary, anchor="end")
    return card


# ------------------ Commits ------------------
def render_commits(stats: StatsSnapshot, theme: Theme, width: int, height: int) -> etree._Element:
    card = card_frame(theme, width, height, "Commit Activity", "card commits")
    text(card, PADDING, _y(60, height), "All time", theme, fill=theme.colors.text_secondary)
    cx, cy = width / 2, height / 2 + _y(10, height)
    element(card, "circle", cx=cx, cy=cy, r=_y(70, height), fill="none",
            stroke=theme.colors.border, stroke_width=1, opacity=0.3)
    text(card, cx, cy, format_number(stats.total_commits), theme, size=48, weight=700,
         fill=theme.colors.primary, anchor="middle")
    text(card, cx, cy + _y(28, height), "Total Commits", theme, size=14,
         fill=theme.colors.text_secondary, anchor="middle")
    return card


# ------------------ Streak ------------------
def render_streak(stats: StatsSnapshot, theme: Theme, width: int, height: int) -> etree._Element:
    card = card_frame(theme, width, height, "🔥 Contribution Streak", "card streak")
    columns = [
        ("Current Streak", f"{stats.current_streak} days", PADDING, None, theme.colors.primary),
        ("Longest Streak", f"{stats.longest_streak} days", width / 2, "middle", theme.colors.secondary),
    ]
    for label, value, x, anchor, fill in columns:
        group = element(card, "g")
        text(group, x, _y(80, height), label, theme, fill=theme.colors.text_secondary, anchor=anchor)
        text(group, x, _y(108, height), value, theme, size=28, weight=700, fill=fill, anchor=anchor)
    group = element(card, "g")
    text(group, PADDING, _y(148, height), "Total Contributions", theme, fill=theme.colors.text_secondary)
    text(group, PADDING, _y(175, height), format_number(stats.total_contributions), theme, size=24,
         weight=700, fill=theme.colors.accent)
    return card


# ------------------ Languages ------------------
def _no_language_data(card: etree._Element, theme: Theme, width: int, height: int) -> etree._Element:
    text(card, width / 2, height / 2 + 10, "No language data", theme, size=14,
         fill=theme.colors.text_secondary, anchor="middle")
    return card


def render_languages(stats: StatsSnapshot, theme: Theme, width: int, height: int) -> etree._Element:
    card = card_frame(theme, width, height, "Top Languages", "card languages")
    total = sum(stats.languages.values())
    top = ranked_languages(stats.languages, 5)
    if total <= 0 or not top:
        return _no_language_data(card, theme, width, height)

    spacing = min(30.0, (height - 70) / len(top))
    bar_width = width - PADDING * 2
    for index, (name, size) in enumerate(top):
        pct = size / total * 100
        y = round(58 + index * spacing, 1)
        group = element(card, "g")
        text(group, PADDING, y, name, theme)
        text(group, width - PADDING, y, f"{pct:.1f}%", theme, size=11,
             fill=theme.colors.text_secondary, anchor="end", mono=True)
        element(group, "rect", x=PADDING, y=y + 6, width=bar_width, height=8,
                fill=theme.colors.border, rx=4)
        element(group, "rect", x=PADDING, y=y + 6, width=round(bar_width * pct / 100, 2), height=8,
                fill=LANGUAGE_COLORS.get(name, theme.colors.accent), rx=4)
    return card


# ------------------ Skills ------------------
def render_skills(stats: StatsSnapshot, theme: Theme, width: int, height: int) -> etree._Element:
    card = card_frame(theme, width, height, "Skills & Technologies", "card skills")
    skills = ranked_languages(stats.languages, 10)
    if not skills:
        return _no_language_data(card, theme, width, height)

    per_row = 5
    cell = min(70, (height - 60) // 2, (width - 2 * PADDING) // per_row)
    icon = max(cell - 20, 10)
    for index, (name, _) in enumerate(skills):
        x = PADDING + (index % per_row) * cell
        y = 58 + (index // per_row) * cell
        group = element(card, "g")
        element(group, "title", name)
        element(group, "rect", x=x, y=y, width=icon, height=icon, fill=theme.colors.border,
                rx=8, opacity=0.3)
        glyph = TECH_ICONS.get(name, name[:2].upper())
        text(group, x + icon / 2, y + icon / 2 + 6, glyph, theme, size=max(10, int(icon * 0.36)),
             weight=600, fill=theme.colors.primary, anchor="middle")
    return card


# ------------------ Trophies ------------------
@dataclass(frozen=True)
class Trophy:
    name: str
    icon: str
    description: str
    condition: Callable[[StatsSnapshot], bool]


def _account_years(stats: StatsSnapshot) -> int:
    return relativedelta.relativedelta(stats.last_fetch, stats.user.created_at).years


TROPHIES: Tuple[Trophy, ...] = (
    Trophy("Star Collector", "⭐", "100+ Stars", lambda s: s.total_stars >= 100),
    Trophy("Mega Star", "🌟", "1000+ Stars", lambda s: s.total_stars >= 1000),
    Trophy("Commit Master", "💪", "1000+ Commits", lambda s: s.total_commits >= 1000),
    Trophy("Polyglot", "🗣️", "5+ Languages", lambda s: len(s.languages) >= 5),
    Trophy("Early Adopter", "🚀", "5+ Years", lambda s: _account_years(s) >= 5),
    Trophy("Popular", "👥", "100+ Followers", lambda s: s.user.followers >= 100),
    Trophy("Prolific", "📦", "50+ Repos", lambda s: s.user.public_repos >= 50),
    Trophy("Streak Master", "🔥", "30+ Day Streak", lambda s: s.current_streak >= 30),
)


def earned_trophies(stats: StatsSnapshot) -> List[Trophy]:
    return [t for t in TROPHIES if t.condition(stats)]


def render_trophies(stats: StatsSnapshot, theme: Theme, width: int, height: int) -> etree._Element:
    earned = earned_trophies(stats)
    card = card_frame(theme, width, height, f"🏆 Achievements ({len(earned)}/{len(TROPHIES)})",
                      "card trophies")
    if not earned:
        text(card, width / 2, height / 2 + 10, "No achievements yet", theme, size=14,
             fill=theme.colors.text_secondary, anchor="middle")
        return card

    per_row = 4
    cell = min(80, (height - 50) // 2, (width - 2 * PADDING) // per_row)
    for index, trophy in enumerate(earned):
        x = PADDING + (index % per_row) * cell + cell / 2
        y = 55 + (index // per_row) * cell
        group = element(card, "g")
        element(group, "title", trophy.name)
        element(group, "text", trophy.icon, x=x, y=y + round(cell * 0.45), font_size=int(cell * 0.4),
                text_anchor="middle")
        text(group, x, y + round(cell * 0.85), trophy.description, theme, size=9,
             fill=theme.colors.text_secondary, anchor="middle")
    return card


# ------------------ Unified ------------------
def render_unified(stats: StatsSnapshot, theme: Theme, width: int, height: int) -> etree._Element:
    user = stats.user
    title = f"{user.name or user.login}'s GitHub Stats"
    card = card_frame(theme, width, height, truncate_text(title, 36), "card unified")

    rows = [
        ("Total Stars", stats.total_stars),
        ("Total Commits", stats.total_commits),
        ("Total PRs", stats.total_pull_requests),
        ("Total Issues", stats.total_issues),
        ("Contributed to", stats.contributed_to),
    ]
    value_x = min(PADDING + 190, width - 130)
    for index, (label, value) in enumerate(rows):
        y = _y(70 + index * 25, height)
        group = element(card, "g")
        text(group, PADDING, y, label, theme, size=13, fill=theme.colors.text_secondary)
        text(group, value_x, y, format_number(value), theme, size=13, weight=700,
             fill=theme.colors.text, anchor="end")

    rank = calculate_rank(
        stats.total_commits,
        stats.total_stars,
        stats.total_pull_requests,
        stats.total_issues,
        user.followers,
        stats.contributed_to,
    )
    cx, cy, r = width - 70, height / 2 + 10, min(40, height / 4)
    ring = element(card, "g", class_="rank")
    element(ring, "circle", cx=cx, cy=cy, r=r, fill="none", stroke=theme.colors.border, stroke_width=6)
    element(ring, "circle", cx=cx, cy=cy, r=r, fill="none", stroke=theme.colors.primary,
            stroke_width=6, opacity=0.8)
    text(ring, cx, cy + 8, rank, theme, size=24, weight=800, fill=theme.colors.text, anchor="middle")
    return card


# ------------------ Dispatch ------------------
def render_card(card: CardType, stats: StatsSnapshot, theme: Theme, width: int, height: int) -> etree._Element:
    if card is CardType.PROFILE:
        return render_profile(stats, theme, width, height)
    if card is CardType.REPOSITORIES:
        return render_repositories(stats, theme, width, height)
    if card is CardType.COMMITS:
        return render_commits(stats, theme, width, height)
    if card is CardType.STREAK:
        return render_streak(stats, theme, width, height)
    if card is CardType.LANGUAGES:
        return render_languages(stats, theme, width, height)
    if card is CardType.SKILLS:
        return render_skills(stats, theme, width, height)
    if card is CardType.TROPHIES:
        return render_trophies(stats, theme, width, height)
    if card is CardType.UNIFIED:
        return render_unified(stats, theme, width, height)
    raise ValueError(f"Unhandled card type: {card!r}")
