"""SVG building helpers over lxml, number formatting and the rank heuristic."""

from __future__ import annotations
import re
from typing import Any, Dict, Optional

from lxml import etree

from .themes import Theme

SVG_NS = "http://www.w3.org/2000/svg"
PADDING = 20

# Characters XML 1.0 cannot carry at all, escaped or not.
_XML_INVALID = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def qname(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def xml_safe(value: str) -> str:
    return _XML_INVALID.sub("", value)


def _attrs(attrs: Dict[str, Any]) -> Dict[str, str]:
    out = {}
    for key, value in attrs.items():
        if value is None:
            continue
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        elif isinstance(value, float):
            value = round(value, 2)
        out[key.rstrip("_").replace("_", "-")] = xml_safe(str(value))
    return out


def element(parent: Optional[etree._Element], tag: str, text: Optional[str] = None, **attrs) -> etree._Element:
    """Creates ``tag`` under ``parent`` (or standalone). ``font_size`` -> ``font-size``, ``class_`` -> ``class``."""
    if parent is None:
        el = etree.Element(qname(tag), _attrs(attrs), nsmap={None: SVG_NS})
    else:
        el = etree.SubElement(parent, qname(tag), _attrs(attrs))
    if text is not None:
        el.text = xml_safe(text)
    return el


def text(parent: etree._Element, x, y, content: str, theme: Theme, size: int = 12,
         fill: Optional[str] = None, weight: Optional[int] = None, anchor: Optional[str] = None,
         mono: bool = False) -> etree._Element:
    # lxml escapes &, < and > in text nodes; untrusted names and bios go through here.
    return element(
        parent, "text", content,
        x=x, y=y,
        font_family=theme.mono_font if mono else theme.font,
        font_size=size,
        font_weight=weight,
        fill=fill or theme.colors.text,
        text_anchor=anchor,
    )


def card_frame(theme: Theme, width: int, height: int, title: Optional[str] = None,
               card_class: str = "card") -> etree._Element:
    """Returns a ``<g>`` with the card background and an optional title."""
    group = element(None, "g", class_=card_class)
    element(
        group, "rect",
        x=0, y=0, width=width, height=height,
        fill=theme.colors.background,
        rx=theme.border_radius,
        stroke=theme.colors.border,
        stroke_width=1,
        style=f"filter: drop-shadow({theme.shadow})",
    )
    if title:
        text(group, PADDING, PADDING + 20, title, theme, size=18, weight=600)
    return group


def svg_root(width: int, height: int, title: str) -> etree._Element:
    root = etree.Element(
        qname("svg"),
        {
            "width": str(width),
            "height": str(height),
            "viewBox": f"0 0 {width} {height}",
            "role": "img",
            "aria-label": xml_safe(title),
        },
        nsmap={None: SVG_NS},
    )
    element(root, "title", title)
    return root


def to_string(root: etree._Element) -> str:
    return etree.tostring(root, encoding="unicode")


# ------------------ Formatting ------------------
def format_number(num) -> str:
    if num is None:
        return "0"
    try:
        n = float(num)
    except (TypeError, ValueError):
        return "0"
    if n != n:  # NaN
        return "0"
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1000:
        return f"{n / 1000:.1f}K"
    return str(int(n))


def truncate_text(value: str, max_chars: int) -> str:
    if len(value) <= max_chars:
        return value
    if max_chars <= 3:
        return value[:max_chars]
    return value[:max_chars - 3] + "..."


# ------------------ Rank ------------------
COMMITS_WEIGHT = 2
STARS_WEIGHT = 10
PRS_WEIGHT = 15
ISSUES_WEIGHT = 5
FOLLOWERS_WEIGHT = 1
CONTRIB_WEIGHT = 5

# Approximate calibration, not a reproduction of any external ranking.
RANK_TIERS = (
    (2500, "S"),
    (1500, "A+"),
    (1000, "A"),
    (600, "B+"),
    (300, "B"),
    (100, "C"),
)


def rank_score(commits: int, stars: int, pull_requests: int, issues: int,
               followers: int, contributed_to: int) -> int:
    return (
        commits * COMMITS_WEIGHT
        + stars * STARS_WEIGHT
        + pull_requests * PRS_WEIGHT
        + issues * ISSUES_WEIGHT
        + followers * FOLLOWERS_WEIGHT
        + contributed_to * CONTRIB_WEIGHT
    )


def rank_for_score(score: int) -> str:
    for threshold, grade in RANK_TIERS:
        if score >= threshold:
            return grade
    return "D"


def calculate_rank(commits: int, stars: int, pull_requests: int, issues: int,
                   followers: int, contributed_to: int) -> str:
    return rank_for_score(rank_score(commits, stars, pull_requests, issues, followers, contributed_to))
