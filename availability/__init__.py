"""Studio availability timeline engine."""

from .calendar_utils import (
    DEFAULT_CALENDAR,
    DayOverride,
    OperatingHours,
    ScheduleCalendar,
    WeekTypeRange,
    load_calendar,
    resolve_hours
)
from .event_utils import (
    InvalidTimestampError,
    NormalizedEvent,
    RawEvent,
    RawTimestamp,
    ResourceFeed,
    SegmentKind,
    classify_label,
    normalize
)
from .timeline_utils import (
    Segment,
    bookable_window,
    build_resource_timeline,
    build_timeline,
    resolve_breakpoints
)
from .grid_utils import (
    CellFlags,
    DayGrid,
    RenderCell,
    merge_rows,
    render_day
)

__all__ = [
    'DEFAULT_CALENDAR',
    'DayOverride',
    'OperatingHours',
    'ScheduleCalendar',
    'WeekTypeRange',
    'load_calendar',
    'resolve_hours',
    'InvalidTimestampError',
    'NormalizedEvent',
    'RawEvent',
    'RawTimestamp',
    'ResourceFeed',
    'SegmentKind',
    'classify_label',
    'normalize',
    'Segment',
    'bookable_window',
    'build_resource_timeline',
    'build_timeline',
    'resolve_breakpoints',
    'CellFlags',
    'DayGrid',
    'RenderCell',
    'merge_rows',
    'render_day'
]
