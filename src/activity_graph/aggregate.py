from __future__ import annotations

import datetime as dt
from collections.abc import Iterable

from .window import Window


def local_date(when: dt.datetime, tz: dt.tzinfo | None = None) -> dt.date:
    if when.tzinfo is None:
        when = when.replace(tzinfo=dt.timezone.utc)
    # astimezone(None) resolves the system zone for this instant, DST included.
    return when.astimezone(tz).date()


def bucket_by_day(
    timestamps: Iterable[dt.datetime],
    window: Window,
    tz: dt.tzinfo | None = None,
    until: dt.date | None = None,
) -> dict[dt.date, int]:
    """
    Commit counts for every date of `window`, in date order, zero days included.
    Commits dated after `until` (usually today) are not counted.
    """
    buckets: dict[dt.date, int] = {day: 0 for day in window.dates()}
    for when in timestamps:
        day = local_date(when, tz)
        if until is not None and day > until:
            continue
        if day in buckets:
            buckets[day] += 1
    return buckets


def total_commits(buckets: dict[dt.date, int]) -> int:
    return sum(buckets.values())
