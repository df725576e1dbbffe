"""Packs rendered card fragments into one SVG document."""

from __future__ import annotations
import copy
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from lxml import etree

from .models import BackgroundPattern, LayoutMode
from .svg import element, svg_root, to_string
from .themes import Theme

DEFAULT_SPACING = 20
DEFAULT_MAX_COLUMNS = 2


@dataclass(frozen=True)
class LayoutSpec:
    mode: LayoutMode
    card_width: int
    card_height: int
    spacing: int = DEFAULT_SPACING
    max_columns: int = DEFAULT_MAX_COLUMNS


def calculate_bounds(count: int, spec: LayoutSpec) -> Tuple[int, int]:
    """Overall (width, height) for ``count`` equally sized cards."""
    if count <= 0:
        return 0, 0
    w, h, gap = spec.card_width, spec.card_height, spec.spacing
    if spec.mode is LayoutMode.GRID:
        columns = min(count, spec.max_columns)
        rows = math.ceil(count / columns)
        return columns * w + (columns - 1) * gap, rows * h + (rows - 1) * gap
    if spec.mode is LayoutMode.ROW:
        return count * w + (count - 1) * gap, h
    if spec.mode is LayoutMode.COLUMN:
        return w, count * h + (count - 1) * gap
    raise ValueError(f"Unhandled layout mode: {spec.mode!r}")


def slot_origin(index: int, spec: LayoutSpec) -> Tuple[int, int]:
    w, h, gap = spec.card_width, spec.card_height, spec.spacing
    if spec.mode is LayoutMode.GRID:
        col, row = index % spec.max_columns, index // spec.max_columns
        return col * (w + gap), row * (h + gap)
    if spec.mode is LayoutMode.ROW:
        return index * (w + gap), 0
    if spec.mode is LayoutMode.COLUMN:
        return 0, index * (h + gap)
    raise ValueError(f"Unhandled layout mode: {spec.mode!r}")


def _add_pattern(root: etree._Element, pattern: BackgroundPattern, theme: Theme,
                 width: int, height: int) -> None:
    if pattern is BackgroundPattern.NONE:
        return
    defs = element(root, "defs")
    if pattern is BackgroundPattern.DOTS:
        dots = element(defs, "pattern", id="bg-dots", width=16, height=16, patternUnits="userSpaceOnUse")
        element(dots, "circle", cx=2, cy=2, r=1, fill=theme.colors.border)
        fill = "url(#bg-dots)"
    elif pattern is BackgroundPattern.GRADIENT:
        gradient = element(defs, "linearGradient", id="bg-gradient", x1=0, y1=0, x2=1, y2=1)
        element(gradient, "stop", offset="0%", stop_color=theme.colors.primary, stop_opacity=0.15)
        element(gradient, "stop", offset="100%", stop_color=theme.colors.secondary, stop_opacity=0.15)
        fill = "url(#bg-gradient)"
    else:
        noise = element(defs, "filter", id="bg-noise")
        element(noise, "feTurbulence", type="fractalNoise", baseFrequency=0.8, numOctaves=2)
        element(root, "rect", width=width, height=height, filter="url(#bg-noise)", opacity=0.05)
        return
    element(root, "rect", width=width, height=height, fill=fill)


def compose(
    fragments: Sequence[etree._Element],
    spec: LayoutSpec,
    theme: Theme,
    title: str = "GitHub Stats",
    pattern: BackgroundPattern = BackgroundPattern.NONE,
) -> str:
    """Places each fragment at its slot origin and returns the serialized document."""
    width, height = calculate_bounds(len(fragments), spec)
    root = svg_root(width, height, title)
    _add_pattern(root, pattern, theme, width, height)
    for index, fragment in enumerate(fragments):
        x, y = slot_origin(index, spec)
        slot = element(root, "g", transform=f"translate({x}, {y})")
        slot.append(copy.deepcopy(fragment))
    return to_string(root)
