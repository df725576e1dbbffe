"""Command-line entry point: render one account's cards to an SVG file."""

from __future__ import annotations
import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional

from .config import Settings, configure_logging
from .models import RenderConfig
from .service import StatsService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="profile-cards", description=__doc__)
    parser.add_argument("user", help="GitHub login")
    parser.add_argument("--theme", default="dark")
    parser.add_argument("--cards", default="unified", help="Comma-separated card types")
    parser.add_argument("--layout", default="grid", choices=["grid", "row", "column"])
    parser.add_argument("--card-size", default="medium", choices=["small", "medium", "large"])
    parser.add_argument("--pattern", default="none", choices=["none", "dots", "gradient", "noise"])
    parser.add_argument("--primary-color")
    parser.add_argument("--secondary-color")
    parser.add_argument("--background-color")
    parser.add_argument("--font-family")
    parser.add_argument("--border-radius")
    parser.add_argument("--shadow")
    parser.add_argument("--output", "-o", default="stats.svg", help="Output SVG path")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    config = RenderConfig.from_query({
        "user": args.user,
        "theme": args.theme,
        "cards": args.cards,
        "layout": args.layout,
        "cardSize": args.card_size,
        "backgroundPattern": args.pattern,
        "primaryColor": args.primary_color,
        "secondaryColor": args.secondary_color,
        "backgroundColor": args.background_color,
        "fontFamily": args.font_family,
        "borderRadius": args.border_radius,
        "shadow": args.shadow,
    })

    logger.info("Collecting stats for %s...", config.username)
    t0 = time.time()
    result = StatsService.from_settings(settings).render(config)

    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(result.document, encoding="utf-8")
    logger.info("Wrote %s (status %d) in %.2fs", out, result.status, time.time() - t0)
    return 0 if result.ok else 1
