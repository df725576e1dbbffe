"""Static theme table. Unknown theme names fall back to ``dark``."""

from __future__ import annotations
import dataclasses
from dataclasses import dataclass
from typing import Dict

from .models import RenderConfig

SANS = "'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif"
MONO = "'JetBrains Mono', 'Fira Code', monospace"


@dataclass(frozen=True)
class ThemeColors:
    primary: str
    secondary: str
    background: str
    text: str
    text_secondary: str
    border: str
    accent: str


@dataclass(frozen=True)
class Theme:
    name: str
    colors: ThemeColors
    font: str = SANS
    mono_font: str = MONO
    border_radius: int = 12
    shadow: str = "0 4px 6px -1px rgba(0, 0, 0, 0.3)"


THEMES: Dict[str, Theme] = {
    "dark": Theme(
        "Dark",
        ThemeColors("#3b82f6", "#8b5cf6", "#0f172a", "#f1f5f9", "#94a3b8", "#334155", "#06b6d4"),
    ),
    "light": Theme(
        "Light",
        ThemeColors("#2563eb", "#7c3aed", "#ffffff", "#0f172a", "#64748b", "#e2e8f0", "#0891b2"),
        shadow="0 4px 6px -1px rgba(0, 0, 0, 0.1)",
    ),
    "glass": Theme(
        "Glass",
        ThemeColors("#60a5fa", "#a78bfa", "rgba(15, 23, 42, 0.7)", "#f1f5f9", "#cbd5e1",
                    "rgba(255, 255, 255, 0.1)", "#22d3ee"),
        border_radius=16,
        shadow="0 8px 32px 0 rgba(31, 38, 135, 0.37)",
    ),
    "neon": Theme(
        "Neon",
        ThemeColors("#ff00ff", "#00ffff", "#0a0a0a", "#ffffff", "#b4b4b4", "#ff00ff", "#00ff00"),
        font="'Orbitron', 'Rajdhani', sans-serif",
        mono_font="'Share Tech Mono', monospace",
        border_radius=8,
        shadow="0 0 20px rgba(255, 0, 255, 0.5)",
    ),
    "github": Theme(
        "GitHub",
        ThemeColors("#238636", "#1f6feb", "#0d1117", "#c9d1d9", "#8b949e", "#30363d", "#58a6ff"),
        font="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Noto Sans', sans-serif",
        mono_font="'SF Mono', 'Consolas', monospace",
        border_radius=6,
        shadow="0 0 0 1px rgba(240, 246, 252, 0.1)",
    ),
    "cyberpunk": Theme(
        "Cyberpunk",
        ThemeColors("#fcee09", "#ff2a6d", "#05080d", "#d9e7f1", "#7ea8be", "#1a3a52", "#01cdfe"),
        font="'Rajdhani', 'Exo 2', sans-serif",
        mono_font="'Share Tech Mono', monospace",
        border_radius=4,
        shadow="0 0 10px rgba(252, 238, 9, 0.3)",
    ),
}

DEFAULT_THEME = "dark"


def get_theme(name: str) -> Theme:
    return THEMES.get((name or "").lower(), THEMES[DEFAULT_THEME])


def apply_overrides(theme: Theme, config: RenderConfig) -> Theme:
    """Returns ``theme`` with the color/font/geometry overrides of ``config``."""
    color_overrides = {
        key: value
        for key, value in (
            ("primary", config.primary_color),
            ("secondary", config.secondary_color),
            ("background", config.background_color),
        )
        if value
    }
    changes = {}
    if color_overrides:
        changes["colors"] = dataclasses.replace(theme.colors, **color_overrides)
    if config.font_family:
        changes["font"] = config.font_family
    if config.border_radius is not None:
        changes["border_radius"] = max(0, config.border_radius)
    if config.shadow is not None:
        blur = max(0, config.shadow)
        changes["shadow"] = f"0 {blur}px {blur * 2}px rgba(0, 0, 0, 0.3)"
    return dataclasses.replace(theme, **changes) if changes else theme


def resolve_theme(config: RenderConfig) -> Theme:
    return apply_overrides(get_theme(config.theme), config)
