"""
Period keys - canonical string identity of the calendar bucket a pattern is checked against.

Formats:
- weekly, n_per_period: ISO week "2025-W42"
- monthly, nth_weekday_of_month: year-month "2025-10"
- yearly: "2025"
- every_n_days: no period key (satisfaction is based on the last completion)
"""
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from app.domain.errors import (
    InvalidRangeError,
    PeriodKeyParseError,
    UnknownFrequencyError,
    UnsupportedFrequencyError,
)
from app.domain.recurrence import (
    EVERY_N_DAYS,
    MONTHLY,
    N_PER_PERIOD,
    NTH_WEEKDAY_OF_MONTH,
    VALID_FREQ,
    WEEKLY,
    YEARLY,
    add_months,
    last_day_of_month,
)


WEEK_FREQ = frozenset({WEEKLY, N_PER_PERIOD})
MONTH_FREQ = frozenset({MONTHLY, NTH_WEEKDAY_OF_MONTH})

END_OF_DAY = time(23, 59, 59)

_WEEK_KEY_RE = re.compile(r"^(\d{4})-W(\d{2})$")
_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")
_YEAR_KEY_RE = re.compile(r"^(\d{4})$")


@dataclass(frozen=True)
class Period:
    key: str
    start: date
    end: date  # last day, inclusive


def as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _check_period_frequency(frequency: str) -> None:
    if frequency == EVERY_N_DAYS:
        raise UnsupportedFrequencyError("every_n_days frequency does not use period keys")
    if frequency not in VALID_FREQ:
        raise UnknownFrequencyError(f"unknown frequency: {frequency}")


def period_key(d: date | datetime, frequency: str) -> str:
    _check_period_frequency(frequency)
    d = as_date(d)
    if frequency in WEEK_FREQ:
        iso_year, iso_week, _ = d.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if frequency in MONTH_FREQ:
        return f"{d.year}-{d.month:02d}"
    return f"{d.year}"


def _parse(key: str, frequency: str) -> tuple[date, date]:
    """First and last day of the period identified by key."""
    _check_period_frequency(frequency)

    if frequency in WEEK_FREQ:
        m = _WEEK_KEY_RE.match(key)
        if not m:
            raise PeriodKeyParseError(f"invalid weekly period key: {key!r} (expected YYYY-Www)")
        year, week = int(m.group(1)), int(m.group(2))
        try:
            monday = date.fromisocalendar(year, week, 1)
        except ValueError as e:
            raise PeriodKeyParseError(f"invalid weekly period key: {key!r}: {e}") from e
        return monday, monday + timedelta(days=6)

    if frequency in MONTH_FREQ:
        m = _MONTH_KEY_RE.match(key)
        if not m:
            raise PeriodKeyParseError(f"invalid monthly period key: {key!r} (expected YYYY-MM)")
        year, month = int(m.group(1)), int(m.group(2))
        if not 1 <= month <= 12 or year < 1:
            raise PeriodKeyParseError(f"invalid monthly period key: {key!r}")
        return date(year, month, 1), date(year, month, last_day_of_month(year, month))

    m = _YEAR_KEY_RE.match(key)
    if not m or int(m.group(1)) < 1:
        raise PeriodKeyParseError(f"invalid yearly period key: {key!r} (expected YYYY)")
    year = int(m.group(1))
    return date(year, 1, 1), date(year, 12, 31)


def period_start(key: str, frequency: str) -> datetime:
    first, _ = _parse(key, frequency)
    return datetime.combine(first, time.min)


def period_end(key: str, frequency: str) -> datetime:
    """End instant of a period: Sunday / last day of month / Dec 31, at 23:59:59."""
    _, last = _parse(key, frequency)
    return datetime.combine(last, END_OF_DAY)


def periods_in_range(start: date | datetime, end: date | datetime, frequency: str) -> list[Period]:
    """All periods overlapping [start, end] (inclusive), ascending."""
    _check_period_frequency(frequency)
    start, end = as_date(start), as_date(end)
    if start > end:
        raise InvalidRangeError("range start must be <= range end")

    out: list[Period] = []
    if frequency in WEEK_FREQ:
        current = start - timedelta(days=start.weekday())
        while current <= end:
            out.append(Period(period_key(current, frequency), current, current + timedelta(days=6)))
            current += timedelta(days=7)
    elif frequency in MONTH_FREQ:
        current = start.replace(day=1)
        while current <= end:
            last = current.replace(day=last_day_of_month(current.year, current.month))
            out.append(Period(period_key(current, frequency), current, last))
            current = add_months(current, 1)
    elif frequency == YEARLY:
        current = date(start.year, 1, 1)
        while current <= end:
            out.append(Period(period_key(current, frequency), current, date(current.year, 12, 31)))
            current = date(current.year + 1, 1, 1)
    return out
