"""
Recurrence patterns: frequencies, schedule variants and calendar arithmetic.

Uses date only (no timezone) for calendar math.

Frequencies:
- weekly: once per ISO week
- monthly: once per calendar month
- yearly: once per calendar year, on month+day or on the nth weekday of a month
- every_n_days: N days after the last completion (not period-based)
- n_per_period: N times per ISO week
- nth_weekday_of_month: once per month, on the nth (or last) weekday

Weekdays follow the wire convention 0=Sunday..6=Saturday.
"""
import calendar
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Union

from app.domain.errors import (
    ConfigurationError,
    NoMatchError,
    OutOfRangeError,
    UnknownFrequencyError,
)


WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"
EVERY_N_DAYS = "every_n_days"
N_PER_PERIOD = "n_per_period"
NTH_WEEKDAY_OF_MONTH = "nth_weekday_of_month"

VALID_FREQ = frozenset({WEEKLY, MONTHLY, YEARLY, EVERY_N_DAYS, N_PER_PERIOD, NTH_WEEKDAY_OF_MONTH})
PERIOD_FREQ = frozenset(VALID_FREQ - {EVERY_N_DAYS})

SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)
LAST = -1


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(d: date, n: int) -> date:
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    last = last_day_of_month(year, month)
    day = min(d.day, last)
    return date(year, month, day)


def to_python_weekday(weekday: int) -> int:
    """0=Sunday..6=Saturday -> date.weekday() (0=Monday..6=Sunday)"""
    return (weekday - 1) % 7


def nth_weekday(year: int, month: int, weekday: int, occurrence: int) -> date:
    """Nth occurrence of a weekday (0=Sunday) within a month.

    occurrence=-1 selects the last one. Raises NoMatchError when nothing in the
    month falls on the weekday, OutOfRangeError when the month has fewer
    occurrences than requested.
    """
    if weekday not in range(7):
        matches: list[date] = []
    else:
        target = to_python_weekday(weekday)
        matches = [
            date(year, month, day)
            for day in range(1, last_day_of_month(year, month) + 1)
            if date(year, month, day).weekday() == target
        ]

    if not matches:
        raise NoMatchError(f"weekday {weekday} not found in {year}-{month:02d}")

    if occurrence == LAST:
        return matches[-1]
    if 1 <= occurrence <= len(matches):
        return matches[occurrence - 1]
    raise OutOfRangeError(
        f"occurrence {occurrence} of weekday {weekday} in {year}-{month:02d}: "
        f"only {len(matches)} exist"
    )


# --- Schedule variants ---

@dataclass(frozen=True)
class Weekly:
    frequency: str = field(default=WEEKLY, init=False)

    @property
    def frequency_value(self) -> int:
        return 1


@dataclass(frozen=True)
class Monthly:
    frequency: str = field(default=MONTHLY, init=False)

    @property
    def frequency_value(self) -> int:
        return 1


@dataclass(frozen=True)
class Yearly:
    month: int
    day: int
    frequency: str = field(default=YEARLY, init=False)

    @property
    def frequency_value(self) -> int:
        return 1


@dataclass(frozen=True)
class YearlyNthWeekday:
    month: int
    weekday: int
    occurrence: int
    frequency: str = field(default=YEARLY, init=False)

    @property
    def frequency_value(self) -> int:
        return 1


@dataclass(frozen=True)
class EveryNDays:
    days: int
    frequency: str = field(default=EVERY_N_DAYS, init=False)

    @property
    def frequency_value(self) -> int:
        return self.days


@dataclass(frozen=True)
class NPerPeriod:
    count: int
    frequency: str = field(default=N_PER_PERIOD, init=False)

    @property
    def frequency_value(self) -> int:
        return self.count


@dataclass(frozen=True)
class NthWeekdayOfMonth:
    weekday: int
    occurrence: int
    frequency: str = field(default=NTH_WEEKDAY_OF_MONTH, init=False)

    @property
    def frequency_value(self) -> int:
        return 1


Schedule = Union[Weekly, Monthly, Yearly, YearlyNthWeekday, EveryNDays, NPerPeriod, NthWeekdayOfMonth]


@dataclass(frozen=True)
class RecurrencePattern:
    id: str
    title: str
    schedule: Schedule
    duration_minutes: int
    flexible_scheduling: bool = True
    start_time: datetime | None = None  # only when not flexible
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def frequency(self) -> str:
        return self.schedule.frequency

    @property
    def frequency_value(self) -> int:
        return self.schedule.frequency_value


# --- Building schedules from loose fields (DB rows, API payloads) ---

def _config_int(config: Mapping[str, Any], key: str, name: str) -> int:
    value = config.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name}.{key} must be an integer")
    return value


def _check_weekday_occurrence(weekday: int, occurrence: int, name: str) -> None:
    if weekday < 0 or weekday > 6:
        raise ConfigurationError(f"{name}.weekday must be between 0 (Sunday) and 6 (Saturday)")
    if occurrence != LAST and not 1 <= occurrence <= 4:
        raise ConfigurationError(f"{name}.occurrence must be 1-4 or -1 (last)")


def _check_month(month: int, name: str) -> None:
    if month < 1 or month > 12:
        raise ConfigurationError(f"{name}.month must be between 1 and 12")


def schedule_from_fields(
    frequency: str,
    frequency_value: int = 1,
    yearly_config: Mapping[str, Any] | None = None,
    nth_weekday_config: Mapping[str, Any] | None = None,
    yearly_nth_weekday: Mapping[str, Any] | None = None,
) -> Schedule:
    """Build the schedule variant for a frequency, validating that exactly the
    config it needs is present."""
    if frequency not in VALID_FREQ:
        raise UnknownFrequencyError(f"unknown frequency: {frequency}")

    if frequency != YEARLY and (yearly_config is not None or yearly_nth_weekday is not None):
        raise ConfigurationError(f"{frequency} patterns do not take a yearly config")
    if frequency != NTH_WEEKDAY_OF_MONTH and nth_weekday_config is not None:
        raise ConfigurationError(f"{frequency} patterns do not take nth_weekday_config")

    if frequency in (WEEKLY, MONTHLY):
        if frequency_value != 1:
            raise ConfigurationError(f"{frequency} patterns must have frequency_value = 1")
        return Weekly() if frequency == WEEKLY else Monthly()

    if frequency in (EVERY_N_DAYS, N_PER_PERIOD):
        if isinstance(frequency_value, bool) or not isinstance(frequency_value, int) or frequency_value < 1:
            raise ConfigurationError(f"{frequency} patterns must have frequency_value >= 1")
        return EveryNDays(frequency_value) if frequency == EVERY_N_DAYS else NPerPeriod(frequency_value)

    if frequency == YEARLY:
        if yearly_config is not None and yearly_nth_weekday is not None:
            raise ConfigurationError("yearly patterns take either yearly_config or yearly_nth_weekday, not both")
        if yearly_nth_weekday is not None:
            month = _config_int(yearly_nth_weekday, "month", "yearly_nth_weekday")
            weekday = _config_int(yearly_nth_weekday, "weekday", "yearly_nth_weekday")
            occurrence = _config_int(yearly_nth_weekday, "occurrence", "yearly_nth_weekday")
            _check_month(month, "yearly_nth_weekday")
            _check_weekday_occurrence(weekday, occurrence, "yearly_nth_weekday")
            return YearlyNthWeekday(month=month, weekday=weekday, occurrence=occurrence)
        if yearly_config is None:
            raise ConfigurationError("yearly patterns require yearly_config (month and day)")
        month = _config_int(yearly_config, "month", "yearly_config")
        day = _config_int(yearly_config, "day", "yearly_config")
        _check_month(month, "yearly_config")
        if day < 1 or day > 31:
            raise ConfigurationError("yearly_config.day must be between 1 and 31")
        return Yearly(month=month, day=day)

    # NTH_WEEKDAY_OF_MONTH
    if nth_weekday_config is None:
        raise ConfigurationError("nth_weekday_of_month patterns require nth_weekday_config")
    weekday = _config_int(nth_weekday_config, "weekday", "nth_weekday_config")
    occurrence = _config_int(nth_weekday_config, "occurrence", "nth_weekday_config")
    _check_weekday_occurrence(weekday, occurrence, "nth_weekday_config")
    return NthWeekdayOfMonth(weekday=weekday, occurrence=occurrence)


def schedule_to_fields(schedule: Schedule) -> dict[str, Any]:
    """Inverse of schedule_from_fields: flat column values for storage/wire."""
    fields: dict[str, Any] = {
        "frequency": schedule.frequency,
        "frequency_value": schedule.frequency_value,
        "yearly_config": None,
        "nth_weekday_config": None,
        "yearly_nth_weekday": None,
    }
    if isinstance(schedule, Yearly):
        fields["yearly_config"] = {"month": schedule.month, "day": schedule.day}
    elif isinstance(schedule, YearlyNthWeekday):
        fields["yearly_nth_weekday"] = {
            "month": schedule.month,
            "weekday": schedule.weekday,
            "occurrence": schedule.occurrence,
        }
    elif isinstance(schedule, NthWeekdayOfMonth):
        fields["nth_weekday_config"] = {"weekday": schedule.weekday, "occurrence": schedule.occurrence}
    return fields


def pattern_from_db(row) -> RecurrencePattern:
    """Build RecurrencePattern from a RecurrencePatternModel row (any object with matching attributes)."""
    schedule = schedule_from_fields(
        frequency=row.frequency,
        frequency_value=row.frequency_value,
        yearly_config=row.yearly_config,
        nth_weekday_config=row.nth_weekday_config,
        yearly_nth_weekday=row.yearly_nth_weekday,
    )
    return RecurrencePattern(
        id=row.id,
        title=row.title,
        schedule=schedule,
        duration_minutes=row.duration_minutes,
        flexible_scheduling=bool(row.flexible_scheduling),
        start_time=row.start_time,
        active=bool(row.active),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
