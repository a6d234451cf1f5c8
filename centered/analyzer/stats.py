"""Entry statistics displayed next to an analysis."""

from collections import Counter
from collections.abc import Iterable
from datetime import date, timedelta

from centered.models.analysis import PeriodStats
from centered.models.entry import JournalEntry
from .eligibility import local_day, to_local
from .period import ReportingWindow

# (label, first hour, last hour); anything else is Night
_PARTS_OF_DAY = (
    ("Morning", 5, 11),
    ("Afternoon", 12, 16),
    ("Evening", 17, 20),
)
_NIGHT = "Night"
_PART_ORDER = [label for label, _, _ in _PARTS_OF_DAY] + [_NIGHT]


def part_of_day(hour: int) -> str:
    for label, first, last in _PARTS_OF_DAY:
        if first <= hour <= last:
            return label
    return _NIGHT


def longest_streak(days: Iterable[date]) -> int:
    """Longest run of consecutive calendar days."""
    best = current = 0
    previous = None
    for day in sorted(set(days)):
        if previous is not None and day - previous == timedelta(days=1):
            current += 1
        else:
            current = 1
        best = max(best, current)
        previous = day
    return best


def compute_period_stats(entries: Iterable[JournalEntry], window: ReportingWindow) -> PeriodStats:
    """Logs count, longest daily streak and favourite part of day inside ``window``."""
    in_window = [e for e in entries if window.contains(local_day(e.created_at))]
    if not in_window:
        return PeriodStats()

    parts = Counter(part_of_day(to_local(e.created_at).hour) for e in in_window)
    top = max(parts.values())
    # Ties go to the earliest part of the day
    favorite = next(label for label in _PART_ORDER if parts.get(label) == top)

    return PeriodStats(
        logs_count=len(in_window),
        streak_days=longest_streak(local_day(e.created_at) for e in in_window),
        favorite_log_time=favorite,
    )
