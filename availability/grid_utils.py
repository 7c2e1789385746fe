"""Merge per-resource timelines into a render-ready day grid."""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

import pydantic

from .calendar_utils import DEFAULT_CALENDAR, ScheduleCalendar
from .event_utils import DEFAULT_UTC_OFFSET_HOURS, ResourceFeed, SegmentKind, local_zone
from .timeline_utils import Segment, bookable_window, build_resource_timeline, resolve_breakpoints, row_intervals

logger = logging.getLogger(__name__)

NO_SHOW_GRACE = timedelta(minutes=30)


class CellFlags(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    late: bool = False
    no_show: bool = False
    current: bool = False
    past: bool = False
    upcoming: bool = False


class RenderCell(pydantic.BaseModel):
    """
    One (row, resource) cell of the grid.

    ``span_rows`` is 0 for rows absorbed into a span that started above, and
    ``kind`` is None for placeholder cells with no covering segment.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    kind: Optional[SegmentKind] = None
    span_rows: int = 1
    label: str = ''
    detail: str = ''
    flags: CellFlags = CellFlags()
    segment: Optional[Segment] = None

    @property
    def absorbed(self) -> bool:
        return self.span_rows == 0


class DayGrid(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    day: date
    title: str
    closed: bool
    resources: list[str]
    breakpoints: list[datetime] = []
    rows: list[list[RenderCell]] = []


def format_time(value: datetime) -> str:
    """Format as ``9:00 AM``."""
    hour = value.hour % 12 or 12
    suffix = 'AM' if value.hour < 12 else 'PM'
    return f"{hour}:{value.minute:02d} {suffix}"


def format_range(start: datetime, end: datetime) -> str:
    return f"{format_time(start)} - {format_time(end)}"


def day_title(day: date) -> str:
    return f"Studio Availability – {day:%A} {day.day} {day:%B %Y}"


def is_superseded(reservation: Segment, timeline: list[Segment], now: datetime) -> bool:
    """
    A reservation is superseded once someone has checked in during it.

    A check-in shows up as a checkout whose booking began inside the
    reservation and no later than ``now``. A checkout booked to start when the
    reservation ends belongs to the next customer and does not count.
    """
    for s in timeline:
        if s.kind != SegmentKind.CHECKOUT:
            continue
        checked_in_at = s.event_start or s.start
        if reservation.start <= checked_in_at < reservation.end and checked_in_at <= now:
            return True
    return False


def classify_segment(segment: Segment, timeline: list[Segment], now: datetime) -> CellFlags:
    """
    Work out the flags for a segment at the instant ``now``.

    Args:
        segment: The segment being rendered
        timeline: The resource's full timeline, for reservation supersession
        now: The render instant

    Returns:
        The flags for the segment's cell
    """
    if segment.kind == SegmentKind.ERROR:
        return CellFlags()

    # Past from the end instant itself, otherwise now == end would read as upcoming
    past = segment.end <= now
    current = segment.start <= now < segment.end
    flags = {'past': past, 'current': current, 'upcoming': not past and not current}

    if segment.kind == SegmentKind.RESERVATION:
        flags['no_show'] = (
            now > segment.start + NO_SHOW_GRACE and not is_superseded(segment, timeline, now)
        )
    elif segment.kind == SegmentKind.CHECKOUT:
        flags['late'] = now > segment.end

    return CellFlags(**flags)


def cell_text(segment: Segment, flags: CellFlags) -> tuple[str, str]:
    """Return the (label, detail) shown for a segment."""
    if segment.kind == SegmentKind.ERROR:
        return 'Error', ''

    if segment.kind == SegmentKind.AVAILABLE:
        if flags.past:
            return '', ''
        if flags.current:
            return f"Available until {format_time(segment.end)}", ''
        return 'Available', format_range(segment.start, segment.end)

    if segment.kind == SegmentKind.RESERVATION:
        label = 'Late Reservation' if flags.no_show else 'Reservation'
    elif segment.kind == SegmentKind.CHECKOUT:
        label = 'Late Checkout' if flags.late else 'Checkout'
    else:
        label = 'Booked'
    return label, format_range(segment.start, segment.end)


def covering_segment(timeline: list[Segment], start: datetime, end: datetime) -> Optional[Segment]:
    for segment in timeline:
        if segment.covers(start, end):
            return segment
    return None


def merge_rows(
    timelines: list[list[Segment]],
    breakpoints: list[datetime],
    now: datetime,
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> list[list[RenderCell]]:
    """
    Coalesce breakpoint rows into spanning cells, one column per resource.

    For every resource, consecutive rows covered by the same segment (same
    kind, start and end) become one cell whose ``span_rows`` counts them; the
    rows it absorbs get a zero-span cell. Spans never cross resources.

    Args:
        timelines: One timeline per resource, in column order
        breakpoints: Sorted row boundaries from resolve_breakpoints
        now: The render instant; a naive value is taken as local time
        utc_offset_hours: The studio's fixed offset from UTC

    Returns:
        A rows x resources grid of RenderCells
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=local_zone(utc_offset_hours))

    rows = row_intervals(breakpoints)
    grid = [[RenderCell() for _ in timelines] for _ in rows]

    for column, timeline in enumerate(timelines):
        covering = [covering_segment(timeline, start, end) for start, end in rows]

        r = 0
        while r < len(rows):
            segment = covering[r]
            if segment is None:
                logger.debug("No segment covers row %d of resource %d", r, column)
                r += 1
                continue

            span = 1
            while r + span < len(rows) and covering[r + span] == segment:
                grid[r + span][column] = RenderCell(kind=segment.kind, span_rows=0, segment=segment)
                span += 1

            flags = classify_segment(segment, timeline, now)
            label, detail = cell_text(segment, flags)
            grid[r][column] = RenderCell(
                kind=segment.kind,
                span_rows=span,
                label=label,
                detail=detail,
                flags=flags,
                segment=segment,
            )
            r += span

    return grid


def render_day(
    feeds: list[ResourceFeed],
    day: date,
    now: datetime,
    calendar: ScheduleCalendar = DEFAULT_CALENDAR,
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> DayGrid:
    """
    Render one day's availability grid.

    Algorithm:
    1. Resolve the day's operating hours; a closed day stops here
    2. Build a timeline per resource (failed feeds become Error segments)
    3. Resolve the breakpoints shared by all resources
    4. Merge rows into spanning cells classified against ``now``

    Everything is passed in explicitly, so identical inputs always produce an
    identical grid.

    Args:
        feeds: One feed result per resource, in column order
        day: The date to render
        now: The render instant; a naive value is taken as local time
        calendar: Schedule used to resolve operating hours
        utc_offset_hours: The studio's fixed offset from UTC

    Returns:
        The day grid, with closed=True and no rows when the studio is closed
        or the hours leave nothing bookable
    """
    resources = [feed.name for feed in feeds]
    title = day_title(day)

    hours = calendar.resolve_hours(day)
    if bookable_window(day, hours, utc_offset_hours) is None:
        logger.info("Closed on %s", day)
        return DayGrid(day=day, title=title, closed=True, resources=resources)

    timelines = [build_resource_timeline(feed, hours, day, utc_offset_hours) for feed in feeds]
    breakpoints = resolve_breakpoints(timelines, hours, day, utc_offset_hours)
    rows = merge_rows(timelines, breakpoints, now, utc_offset_hours)

    return DayGrid(
        day=day,
        title=title,
        closed=False,
        resources=resources,
        breakpoints=breakpoints,
        rows=rows,
    )
