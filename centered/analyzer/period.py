"""Reporting-period calendar logic: weekly / monthly windows and labels."""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from centered.models.analysis import AnalysisMode


@dataclass(frozen=True)
class ReportingWindow:
    """Calendar range covered by one analysis (both ends inclusive)."""
    start: date
    end: date
    mode: AnalysisMode

    def contains(self, day: date | datetime) -> bool:
        return self.start <= _as_day(day) <= self.end

    @property
    def label(self) -> str:
        return window_label(self)


def _as_day(value: date | datetime) -> date:
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.date()
    return value


# ─── Calendar helpers ─────────────────────────────────────────────────────────

def _days_since_sunday(day: date) -> int:
    # Python weekday: Monday=0 … Sunday=6
    return (day.weekday() + 1) % 7


def last_sunday_of_month(year: int, month: int) -> date:
    """Return the last Sunday of the given calendar month."""
    last_day = date(year, month, calendar.monthrange(year, month)[1])
    return last_day - timedelta(days=_days_since_sunday(last_day))


def _previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def determine_mode(day: date | datetime) -> AnalysisMode:
    """Monthly on the last Sunday of a month, weekly every other day."""
    day = _as_day(day)
    if day == last_sunday_of_month(day.year, day.month):
        return AnalysisMode.MONTHLY
    return AnalysisMode.WEEKLY


# ─── Windows ──────────────────────────────────────────────────────────────────

def weekly_window(day: date | datetime) -> ReportingWindow:
    """Sunday → Saturday week containing ``day``."""
    day = _as_day(day)
    start = day - timedelta(days=_days_since_sunday(day))
    return ReportingWindow(start=start, end=start + timedelta(days=6), mode=AnalysisMode.WEEKLY)


def monthly_window(day: date | datetime) -> ReportingWindow:
    """
    Period closed by the last Sunday of ``day``'s month.

    Runs from the previous month's last Sunday up to the Saturday before this
    month's last Sunday. Falls back to the weekly window when no distinct
    start/end pair can be derived.
    """
    day = _as_day(day)
    trigger = last_sunday_of_month(day.year, day.month)
    start = last_sunday_of_month(*_previous_month(day.year, day.month))
    end = trigger - timedelta(days=1)
    if start >= end:
        return weekly_window(day)
    return ReportingWindow(start=start, end=end, mode=AnalysisMode.MONTHLY)


def window_for(day: date | datetime, mode: AnalysisMode | None = None) -> ReportingWindow:
    """Resolve the reporting window for ``day`` (mode decided from the calendar if omitted)."""
    effective = mode if mode is not None else determine_mode(day)
    if effective == AnalysisMode.MONTHLY:
        return monthly_window(day)
    return weekly_window(day)


# ─── Labels ───────────────────────────────────────────────────────────────────

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def ordinal_suffix(day_of_month: int) -> str:
    if day_of_month % 100 in (11, 12, 13):
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day_of_month % 10, "th")


def _month_abbr(day: date) -> str:
    # strftime('%b') follows the process locale
    return _MONTHS[day.month - 1]


def window_label(window: ReportingWindow) -> str:
    """Human label, e.g. 'Oct 18 to Oct 24th' or 'Oct Month'."""
    if window.mode == AnalysisMode.MONTHLY:
        start_month, end_month = _month_abbr(window.start), _month_abbr(window.end)
        if start_month == end_month:
            return f"{start_month} Month"
        return f"{start_month} - {end_month}"

    end = window.end
    return (
        f"{_month_abbr(window.start)} {window.start.day} to "
        f"{_month_abbr(end)} {end.day}{ordinal_suffix(end.day)}"
    )
