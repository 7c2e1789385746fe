"""Operating hours resolution for the studio calendar."""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pydantic

logger = logging.getLogger(__name__)


class OperatingHours(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    start: int
    end: int

    @pydantic.field_validator('start', 'end')
    @classmethod
    def validate_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError('hours must be between 0 and 23')
        return v

    @pydantic.model_validator(mode='after')
    def validate_hour_order(self) -> 'OperatingHours':
        if self.end <= self.start:
            raise ValueError('end must be after start')
        return self


# Weekday keys follow 0=Sunday .. 6=Saturday. A missing key means closed.
WeeklyPattern = dict[int, Optional[OperatingHours]]


class WeekTypeRange(pydantic.BaseModel):
    type: str
    start: date
    end: date

    @pydantic.model_validator(mode='after')
    def validate_date_order(self) -> 'WeekTypeRange':
        if self.end < self.start:
            raise ValueError('end must not be before start')
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class DayOverride(pydantic.BaseModel):
    date: date
    hours: Optional[OperatingHours] = None


class ScheduleCalendar(pydantic.BaseModel):
    week_types: dict[str, WeeklyPattern]
    ranges: list[WeekTypeRange] = []
    overrides: list[DayOverride] = []
    default_week_type: str = 'Default'

    def resolve_hours(self, day: date) -> Optional[OperatingHours]:
        """
        Resolve the operating hours for a calendar date.

        Lookup order:
        1. An exact single-day override (its hours may be None, i.e. closed)
        2. The first range, in declared order, whose inclusive dates contain the day
        3. The default week type

        Overlapping ranges are not an error: the first declared one wins.

        Args:
            day: The date to resolve. A datetime is reduced to its date.

        Returns:
            The operating hours, or None when the studio is closed
        """
        day = to_date_key(day)

        for override in self.overrides:
            if override.date == day:
                logger.debug("Override applies to %s: %s", day, override.hours)
                return override.hours

        week_type = self.default_week_type
        for week_range in self.ranges:
            if week_range.contains(day):
                week_type = week_range.type
                break

        pattern = self.week_types.get(week_type)
        if pattern is None:
            logger.warning("Unknown week type %r for %s, treating as closed", week_type, day)
            return None

        return pattern.get(sunday_first_weekday(day))


def to_date_key(value: date) -> date:
    """Drop the time-of-day so dates compare as plain calendar keys."""
    if isinstance(value, datetime):
        return value.date()
    return value


def sunday_first_weekday(day: date) -> int:
    # date.weekday() is Monday=0; schedule tables are Sunday=0
    return (day.weekday() + 1) % 7


def _weekdays(hours: OperatingHours, days: range) -> WeeklyPattern:
    return {d: hours for d in days}


_STANDARD = OperatingHours(start=8, end=18)
_EXTENDED = OperatingHours(start=8, end=21)

DEFAULT_WEEK_TYPES: dict[str, WeeklyPattern] = {
    # Break weeks
    'Default': {0: None, **_weekdays(_STANDARD, range(1, 6)), 6: None},
    'Trimester': {
        0: None,
        1: _STANDARD,
        **_weekdays(_EXTENDED, range(2, 5)),
        5: _STANDARD,
        6: _STANDARD,
    },
    'Closed': {d: None for d in range(7)},
}

DEFAULT_RANGES = [
    WeekTypeRange(type='Trimester', start=date(2025, 5, 26), end=date(2025, 8, 24)),
    WeekTypeRange(type='Trimester', start=date(2025, 9, 15), end=date(2025, 12, 14)),
    WeekTypeRange(type='Closed', start=date(2025, 12, 25), end=date(2026, 1, 11)),
    WeekTypeRange(type='Trimester', start=date(2026, 2, 2), end=date(2026, 5, 3)),
]

DEFAULT_OVERRIDES = [
    DayOverride(date=date(2025, 8, 21), hours=OperatingHours(start=8, end=12)),  # showcase, early close
    DayOverride(date=date(2026, 1, 26), hours=None),  # public holiday
]

DEFAULT_CALENDAR = ScheduleCalendar(
    week_types=DEFAULT_WEEK_TYPES,
    ranges=DEFAULT_RANGES,
    overrides=DEFAULT_OVERRIDES,
)


def resolve_hours(day: date, calendar: ScheduleCalendar = DEFAULT_CALENDAR) -> Optional[OperatingHours]:
    """Resolve operating hours for a date against a calendar (built-in by default)."""
    return calendar.resolve_hours(day)


def load_calendar(path: Optional[Path] = None) -> ScheduleCalendar:
    """
    Load a schedule calendar from a JSON file.

    The file mirrors the ScheduleCalendar fields: ``week_types`` mapping a
    name to a weekday -> hours table, ``ranges``, ``overrides`` and an
    optional ``default_week_type``.

    Args:
        path: JSON file to read, or None for the built-in calendar

    Returns:
        The validated calendar

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the document is malformed
    """
    if path is None:
        return DEFAULT_CALENDAR

    calendar = ScheduleCalendar.model_validate_json(Path(path).read_text(encoding='utf-8'))
    logger.info(
        "Loaded schedule from %s (%d week types, %d ranges, %d overrides)",
        path, len(calendar.week_types), len(calendar.ranges), len(calendar.overrides),
    )
    return calendar
