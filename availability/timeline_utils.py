"""Per-resource availability timelines and the shared breakpoints between them."""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

import pydantic

from .calendar_utils import OperatingHours
from .event_utils import (
    DEFAULT_UTC_OFFSET_HOURS,
    InvalidTimestampError,
    NormalizedEvent,
    ResourceFeed,
    SegmentKind,
    local_zone,
    normalize,
)

logger = logging.getLogger(__name__)

# First bookable slot is ten minutes after opening
OPENING_GRACE = timedelta(minutes=10)
# No new bookings in the final hour before close
CLOSING_BUFFER = timedelta(hours=1)


class Segment(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    kind: SegmentKind
    start: datetime
    end: datetime
    label: str = ''
    # Unclipped start of the source event; None for Available and Error
    event_start: Optional[datetime] = None

    def covers(self, start: datetime, end: datetime) -> bool:
        return self.start <= start and end <= self.end


def bookable_window(
    day: date,
    hours: Optional[OperatingHours],
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> Optional[tuple[datetime, datetime]]:
    """
    Compute the bookable window for a day.

    Returns:
        (window_start, window_end), or None when closed or the window is empty
    """
    if hours is None:
        return None

    tz = local_zone(utc_offset_hours)
    opening = datetime.combine(day, time(hours.start), tzinfo=tz)
    closing = datetime.combine(day, time(hours.end), tzinfo=tz)
    window_start = opening + OPENING_GRACE
    window_end = closing - CLOSING_BUFFER

    if window_end <= window_start:
        return None
    return window_start, window_end


def build_timeline(
    events: list[NormalizedEvent],
    hours: Optional[OperatingHours],
    day: date,
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> list[Segment]:
    """
    Build the gap-free segment sequence for one resource.

    Algorithm:
    1. Drop events that do not overlap the bookable window
    2. Clip the rest to the window and sort by start
    3. Sweep a cursor from the window start, filling gaps with Available
    4. Close the window with a trailing Available segment

    Overlapping events are resolved by sweep order only: an event that starts
    before the cursor is emitted from the cursor onward, and one that ends
    before the cursor is dropped. The cursor always moves to the furthest end
    seen so far.

    Args:
        events: Normalized events for a single resource
        hours: Operating hours for the day, None when closed
        day: The calendar date being rendered
        utc_offset_hours: The studio's fixed offset from UTC

    Returns:
        Contiguous segments covering exactly the bookable window, or an empty
        list when closed
    """
    window = bookable_window(day, hours, utc_offset_hours)
    if window is None:
        return []
    window_start, window_end = window

    clipped = sorted(
        (
            (max(e.start, window_start), min(e.end, window_end), e)
            for e in events
            if e.start < window_end and e.end > window_start and e.end > e.start
        ),
        key=lambda item: item[0],
    )

    segments = []
    cursor = window_start

    for start, end, event in clipped:
        if start > cursor:
            segments.append(Segment(kind=SegmentKind.AVAILABLE, start=cursor, end=start))

        segment_start = max(start, cursor)
        if end > segment_start:
            segments.append(Segment(
                kind=event.category,
                start=segment_start,
                end=end,
                label=event.label,
                event_start=event.start,
            ))
        else:
            logger.debug("Event %r hidden by an earlier overlapping event", event.label)

        cursor = max(cursor, end)

    if cursor < window_end:
        segments.append(Segment(kind=SegmentKind.AVAILABLE, start=cursor, end=window_end))

    return segments


def error_timeline(
    hours: Optional[OperatingHours],
    day: date,
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> list[Segment]:
    """A single Error segment spanning the whole window (empty when closed)."""
    window = bookable_window(day, hours, utc_offset_hours)
    if window is None:
        return []
    return [Segment(kind=SegmentKind.ERROR, start=window[0], end=window[1])]


def build_resource_timeline(
    feed: ResourceFeed,
    hours: Optional[OperatingHours],
    day: date,
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> list[Segment]:
    """
    Build a timeline for one resource, folding failures into an Error segment.

    A failed feed never affects the other resources being rendered.
    """
    if not feed.ok:
        logger.warning("Feed for %s failed: %s", feed.name, feed.error)
        return error_timeline(hours, day, utc_offset_hours)

    try:
        events = [normalize(raw, utc_offset_hours) for raw in feed.events]
    except InvalidTimestampError as exc:
        logger.warning("Unusable event in feed for %s: %s", feed.name, exc)
        return error_timeline(hours, day, utc_offset_hours)

    return build_timeline(events, hours, day, utc_offset_hours)


def resolve_breakpoints(
    timelines: list[list[Segment]],
    hours: Optional[OperatingHours],
    day: date,
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> list[datetime]:
    """
    Compute the sorted row boundaries shared by every resource.

    Every segment boundary is a breakpoint, plus one anchor per whole hour
    strictly inside the window so a single all-day segment still yields
    hourly rows.

    Returns:
        Sorted distinct instants; empty when closed or there is nothing to show
    """
    window = bookable_window(day, hours, utc_offset_hours)
    if window is None or not any(timelines):
        return []
    window_start, window_end = window

    breakpoints = {window_start, window_end}
    for timeline in timelines:
        for segment in timeline:
            breakpoints.add(segment.start)
            breakpoints.add(segment.end)

    anchor = window_start.replace(minute=0) + timedelta(hours=1)
    while anchor < window_end:
        breakpoints.add(anchor)
        anchor += timedelta(hours=1)

    return sorted(breakpoints)


def row_intervals(breakpoints: list[datetime]) -> list[tuple[datetime, datetime]]:
    return list(zip(breakpoints, breakpoints[1:]))
