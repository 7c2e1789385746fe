"""Calendar event models and conversion to the studio's local time."""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

import pydantic

logger = logging.getLogger(__name__)

DEFAULT_UTC_OFFSET_HOURS = 8


class SegmentKind(str, Enum):
    AVAILABLE = 'available'
    BOOKED = 'booked'
    RESERVATION = 'reservation'
    CHECKOUT = 'checkout'
    ERROR = 'error'


class InvalidTimestampError(ValueError):
    """Raised when a raw event cannot be placed on the local timeline."""


class RawTimestamp(pydantic.BaseModel):
    """
    A wall-clock time as emitted by the feed, plus the offset it was tagged with.

    ``offset_minutes`` uses the browser convention: the number of minutes to
    ADD to the wall time to get UTC (so UTC+10 is -600). Aware datetimes and
    ISO strings with an offset are accepted and split into this shape.
    """

    wall: datetime
    offset_minutes: int = 0

    @pydantic.model_validator(mode='before')
    @classmethod
    def split_aware_datetime(cls, data: Any) -> Any:
        if isinstance(data, str):
            try:
                data = datetime.fromisoformat(data)
            except ValueError as exc:
                raise ValueError(f'invalid timestamp {data!r}') from exc
        if isinstance(data, datetime):
            offset = data.utcoffset()
            minutes = 0 if offset is None else -int(offset.total_seconds() // 60)
            return {'wall': data.replace(tzinfo=None), 'offset_minutes': minutes}
        return data

    @pydantic.field_validator('wall')
    @classmethod
    def validate_naive(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            raise ValueError('wall time must be naive; carry the offset in offset_minutes')
        return v


class RawEvent(pydantic.BaseModel):
    label: str
    start: RawTimestamp
    end: RawTimestamp


class NormalizedEvent(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    label: str
    start: datetime
    end: datetime
    kind: Optional[SegmentKind] = None

    @property
    def category(self) -> SegmentKind:
        """The explicit kind when the feed supplied one, otherwise the label's."""
        return self.kind or classify_label(self.label)


class ResourceFeed(pydantic.BaseModel):
    """Everything the feed layer produced for one resource: events or an error."""

    name: str
    events: list[RawEvent] = []
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def local_zone(utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS) -> timezone:
    return timezone(timedelta(hours=utc_offset_hours))


def classify_label(label: str) -> SegmentKind:
    """
    Map an event label to a segment kind.

    This is the only place label text decides the category, so a feed that
    starts tagging events explicitly only needs to set NormalizedEvent.kind.
    """
    if 'Reservation' in label:
        return SegmentKind.RESERVATION
    if 'Checkout' in label:
        return SegmentKind.CHECKOUT
    return SegmentKind.BOOKED


def to_local(timestamp: RawTimestamp, utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS) -> datetime:
    """
    Convert a raw feed timestamp to the fixed local offset.

    The feed's own offset is added back to get true UTC, then the fixed
    offset is added. The offset embedded by the source is the viewer's, not
    the feed's, so no other timezone information is trusted.
    """
    try:
        utc_wall = timestamp.wall + timedelta(minutes=timestamp.offset_minutes)
        local_wall = utc_wall + timedelta(hours=utc_offset_hours)
    except OverflowError as exc:
        raise InvalidTimestampError(f'timestamp out of range: {timestamp.wall!r}') from exc
    return local_wall.replace(tzinfo=local_zone(utc_offset_hours))


def normalize(raw_event: RawEvent, utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS) -> NormalizedEvent:
    """
    Normalize a raw event to the fixed local offset.

    Args:
        raw_event: Event as read from the feed
        utc_offset_hours: The studio's fixed offset from UTC

    Returns:
        A new NormalizedEvent; the raw event is left untouched

    Raises:
        InvalidTimestampError: If the timestamps are unusable or end before start
    """
    start = to_local(raw_event.start, utc_offset_hours)
    end = to_local(raw_event.end, utc_offset_hours)
    if end < start:
        raise InvalidTimestampError(f'event {raw_event.label!r} ends before it starts')

    return NormalizedEvent(label=raw_event.label, start=start, end=end)
