"""
Tests for timeline building and breakpoints.

- Empty and closed days
- Gap filling, clipping and classification
- Overlapping events
- Per-resource failures
- Breakpoint rows
"""

from datetime import date, datetime, timedelta, timezone
import sys
import os

# Add parent directory to path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from availability import (
    NormalizedEvent,
    OperatingHours,
    RawEvent,
    ResourceFeed,
    SegmentKind,
    bookable_window,
    build_resource_timeline,
    build_timeline,
    resolve_breakpoints
)


LOCAL = timezone(timedelta(hours=8))
DAY = date(2025, 9, 1)
HOURS = OperatingHours(start=8, end=18)


def at(hour, minute=0, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=LOCAL)


def event(label, start, end):
    return NormalizedEvent(label=label, start=start, end=end)


def spans(segments):
    return [(s.kind, s.start, s.end) for s in segments]


def assert_tiles_window(segments, hours=HOURS, day=DAY):
    window_start, window_end = bookable_window(day, hours)
    assert segments[0].start == window_start
    assert segments[-1].end == window_end
    for previous, current in zip(segments, segments[1:]):
        assert previous.end == current.start
    assert all(s.end > s.start for s in segments)


class TestBookableWindow:
    """Test the bookable window bounds."""

    def test_grace_and_closing_buffer(self):
        assert bookable_window(DAY, HOURS) == (at(8, 10), at(17))

    def test_closed(self):
        assert bookable_window(DAY, None) is None

    def test_too_short_to_book(self):
        """Opening for one hour leaves nothing bookable."""
        assert bookable_window(DAY, OperatingHours(start=8, end=9)) is None


class TestBuildTimeline:
    """Test the gap-filling sweep."""

    def test_no_events_single_available(self):
        """An open Monday with no events is available 08:10-17:00."""
        segments = build_timeline([], HOURS, DAY)

        assert spans(segments) == [(SegmentKind.AVAILABLE, at(8, 10), at(17))]

    def test_reservation_splits_day(self):
        """A 9-10 reservation leaves availability either side."""
        segments = build_timeline([event("Reservation - X", at(9), at(10))], HOURS, DAY)

        assert spans(segments) == [
            (SegmentKind.AVAILABLE, at(8, 10), at(9)),
            (SegmentKind.RESERVATION, at(9), at(10)),
            (SegmentKind.AVAILABLE, at(10), at(17)),
        ]
        assert segments[1].label == "Reservation - X"
        assert segments[1].event_start == at(9)
        assert segments[0].event_start is None

    def test_closed_day_is_empty(self):
        assert build_timeline([event("Booked", at(9), at(10))], None, DAY) == []

    def test_events_sorted_and_classified(self):
        segments = build_timeline([
            event("Checkout - Sam", at(13), at(14)),
            event("Lesson", at(11), at(12)),
        ], HOURS, DAY)

        assert spans(segments) == [
            (SegmentKind.AVAILABLE, at(8, 10), at(11)),
            (SegmentKind.BOOKED, at(11), at(12)),
            (SegmentKind.AVAILABLE, at(12), at(13)),
            (SegmentKind.CHECKOUT, at(13), at(14)),
            (SegmentKind.AVAILABLE, at(14), at(17)),
        ]

    def test_back_to_back_events_leave_no_gap(self):
        segments = build_timeline([
            event("Booked", at(9), at(10)),
            event("Booked", at(10), at(11)),
        ], HOURS, DAY)

        assert len(segments) == 4
        assert segments[1].end == segments[2].start == at(10)

    def test_clipped_to_window(self):
        """Events crossing the window edges are clipped."""
        segments = build_timeline([
            event("Booked", at(7), at(9)),
            event("Booked", at(16), at(19)),
        ], HOURS, DAY)

        assert spans(segments) == [
            (SegmentKind.BOOKED, at(8, 10), at(9)),
            (SegmentKind.AVAILABLE, at(9), at(16)),
            (SegmentKind.BOOKED, at(16), at(17)),
        ]
        assert segments[0].event_start == at(7)

    def test_events_outside_window_dropped(self):
        segments = build_timeline([
            event("Booked", at(7), at(8, 10)),
            event("Booked", at(17), at(18)),
            event("Booked", at(9, day=date(2025, 9, 2)), at(10, day=date(2025, 9, 2))),
        ], HOURS, DAY)

        assert spans(segments) == [(SegmentKind.AVAILABLE, at(8, 10), at(17))]

    def test_event_covering_whole_window(self):
        segments = build_timeline([event("Booked", at(6), at(20))], HOURS, DAY)

        assert spans(segments) == [(SegmentKind.BOOKED, at(8, 10), at(17))]

    def test_zero_length_event_skipped(self):
        segments = build_timeline([event("Booked", at(12), at(12))], HOURS, DAY)

        assert spans(segments) == [(SegmentKind.AVAILABLE, at(8, 10), at(17))]

    def test_tiles_window_with_many_events(self):
        hours = OperatingHours(start=8, end=21)
        segments = build_timeline([
            event("Reservation - A", at(8), at(9)),
            event("Booked", at(9, 30), at(11)),
            event("Checkout - B", at(11), at(11, 45)),
            event("Booked", at(15, 15), at(16)),
            event("Reservation - C", at(19), at(22)),
        ], hours, DAY)

        assert_tiles_window(segments, hours=hours)
        assert segments[-1].end == at(20)


class TestOverlappingEvents:
    """Test the sweep-order handling of overlapping events."""

    def test_later_event_starts_at_cursor(self):
        """A partially overlapping later event is emitted from the cursor."""
        segments = build_timeline([
            event("Booked", at(9), at(11)),
            event("Reservation - X", at(10), at(12)),
        ], HOURS, DAY)

        assert spans(segments) == [
            (SegmentKind.AVAILABLE, at(8, 10), at(9)),
            (SegmentKind.BOOKED, at(9), at(11)),
            (SegmentKind.RESERVATION, at(11), at(12)),
            (SegmentKind.AVAILABLE, at(12), at(17)),
        ]

    def test_contained_event_hidden(self):
        """An event wholly inside an earlier one adds no segment."""
        segments = build_timeline([
            event("Booked", at(9), at(12)),
            event("Checkout - Y", at(10), at(11)),
        ], HOURS, DAY)

        assert spans(segments) == [
            (SegmentKind.AVAILABLE, at(8, 10), at(9)),
            (SegmentKind.BOOKED, at(9), at(12)),
            (SegmentKind.AVAILABLE, at(12), at(17)),
        ]

    def test_overlaps_still_tile_window(self):
        segments = build_timeline([
            event("Booked", at(9), at(11)),
            event("Booked", at(9), at(10)),
            event("Booked", at(10, 30), at(13)),
        ], HOURS, DAY)

        assert_tiles_window(segments)


class TestBuildResourceTimeline:
    """Test per-resource failure isolation."""

    def test_failed_feed_becomes_error(self):
        segments = build_resource_timeline(ResourceFeed(name="Studio C", error="timeout"), HOURS, DAY)

        assert spans(segments) == [(SegmentKind.ERROR, at(8, 10), at(17))]

    def test_invalid_event_becomes_error(self):
        feed = ResourceFeed(name="Studio C", events=[
            RawEvent(
                label="Booked",
                start={'wall': datetime(2025, 9, 1, 10, 0), 'offset_minutes': -480},
                end={'wall': datetime(2025, 9, 1, 9, 0), 'offset_minutes': -480},
            )
        ])

        segments = build_resource_timeline(feed, HOURS, DAY)

        assert [s.kind for s in segments] == [SegmentKind.ERROR]

    def test_good_feed_is_normalised(self):
        feed = ResourceFeed(name="Studio A", events=[
            RawEvent(
                label="Booked",
                start={'wall': datetime(2025, 9, 1, 1, 0), 'offset_minutes': 0},
                end={'wall': datetime(2025, 9, 1, 2, 0), 'offset_minutes': 0},
            )
        ])

        segments = build_resource_timeline(feed, HOURS, DAY)

        assert spans(segments)[1] == (SegmentKind.BOOKED, at(9), at(10))

    def test_failed_feed_on_closed_day(self):
        assert build_resource_timeline(ResourceFeed(name="Studio C", error="timeout"), None, DAY) == []


class TestResolveBreakpoints:
    """Test shared row boundaries."""

    def test_hourly_anchors_for_empty_day(self):
        timelines = [build_timeline([], HOURS, DAY)]

        breakpoints = resolve_breakpoints(timelines, HOURS, DAY)

        assert breakpoints == [at(8, 10)] + [at(h) for h in range(9, 18)]

    def test_union_across_resources(self):
        timelines = [
            build_timeline([event("Booked", at(9, 30), at(10, 15))], HOURS, DAY),
            build_timeline([event("Booked", at(12, 45), at(13))], HOURS, DAY),
        ]

        breakpoints = resolve_breakpoints(timelines, HOURS, DAY)

        assert at(9, 30) in breakpoints
        assert at(10, 15) in breakpoints
        assert at(12, 45) in breakpoints
        assert breakpoints == sorted(set(breakpoints))

    def test_rows_cover_window(self):
        timelines = [build_timeline([event("Booked", at(9, 30), at(10, 15))], HOURS, DAY)]

        breakpoints = resolve_breakpoints(timelines, HOURS, DAY)

        assert (breakpoints[0], breakpoints[-1]) == bookable_window(DAY, HOURS)

    def test_closed_day_has_no_rows(self):
        assert resolve_breakpoints([[]], None, DAY) == []

    def test_no_resources_has_no_rows(self):
        assert resolve_breakpoints([], HOURS, DAY) == []
