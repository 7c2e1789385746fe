#!/usr/bin/env python3
"""
Simple example rendering one day of studio availability.
Three studios: one with a reservation and a checkout, one empty, one whose feed failed.
"""

from datetime import date, datetime
import logging
import sys
import os

# Add parent directory to path so we can import availability
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from availability import RawEvent, ResourceFeed, load_calendar, render_day
from availability.config import Settings
import json


def main():
    settings = Settings()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    calendar = load_calendar(settings.schedule_file)

    # Feed times are wall clock tagged with the viewer's offset (UTC+8 -> -480)
    feeds = [
        ResourceFeed(name="Studio A", events=[
            RawEvent(
                label="Reservation - Jordan",
                start={'wall': datetime(2025, 10, 20, 9, 0), 'offset_minutes': -480},
                end={'wall': datetime(2025, 10, 20, 10, 0), 'offset_minutes': -480},
            ),
            RawEvent(
                label="Checkout - Sam",
                start={'wall': datetime(2025, 10, 20, 13, 30), 'offset_minutes': -480},
                end={'wall': datetime(2025, 10, 20, 15, 0), 'offset_minutes': -480},
            ),
        ]),
        ResourceFeed(name="Studio B"),
        ResourceFeed(name="Studio C", error="HTTP 503 fetching feed"),
    ]

    # Monday 20th October 2025, viewed at 9:45am
    day = date(2025, 10, 20)
    now = datetime(2025, 10, 20, 9, 45)

    grid = render_day(feeds, day, now, calendar=calendar, utc_offset_hours=settings.utc_offset_hours)

    print(grid.title)
    if grid.closed:
        print("Closed")
        return

    output = []
    for (start, end), row in zip(zip(grid.breakpoints, grid.breakpoints[1:]), grid.rows):
        output.append({
            'start': start.strftime('%H:%M'),
            'end': end.strftime('%H:%M'),
            'cells': [
                {'kind': cell.kind.value if cell.kind else None, 'span': cell.span_rows, 'label': cell.label}
                for cell in row
            ]
        })

    print(json.dumps(output, indent=2))

    print(f"{'Time':8} | " + " | ".join(f"{name:28}" for name in grid.resources))
    for start, row in zip(grid.breakpoints, grid.rows):
        texts = []
        for cell in row:
            if cell.absorbed:
                texts.append("  ⋮")
            else:
                texts.append(f"{cell.label} {cell.detail}".strip())
        print(f"{start:%H:%M}    | " + " | ".join(f"{text:28}" for text in texts))


if __name__ == '__main__':
    main()
