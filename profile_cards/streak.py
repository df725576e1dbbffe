"""Current/longest contribution streak from a daily contribution calendar."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from .models import ContributionDay


@dataclass(frozen=True)
class StreakStats:
    current_streak: int = 0
    longest_streak: int = 0
    total_contributions: int = 0


def compute_streak(days: Sequence[ContributionDay], total_contributions: int, today: str) -> StreakStats:
    """
    Walks the calendar most-recent-first.

    ``current`` only follows the running streak while the walk is still within
    the first two entries or has not reached ``today`` yet, so a day whose
    contributions have not posted does not break the streak. Once ``today``
    has been seen, the first empty day ends the current streak.
    """
    current = longest = temp = 0
    found_today = False
    for i, day in enumerate(reversed(days)):
        if day.date == today:
            found_today = True
        if day.count > 0:
            temp += 1
            longest = max(longest, temp)
            if not found_today or i <= 1:
                current = temp
        else:
            if found_today and current > 0:
                current = 0
            temp = 0
    return StreakStats(current, longest, total_contributions)
