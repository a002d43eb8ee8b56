from __future__ import annotations

import dataclasses
import datetime as dt

DEFAULT_WEEKS = 53

WEEK_STARTS = {"monday": 0, "sunday": 6}


@dataclasses.dataclass(frozen=True)
class Window:
    start: dt.date  # inclusive
    weeks: int
    week_start: int = 0  # date.weekday() of the first row

    @property
    def days(self) -> int:
        return self.weeks * 7

    @property
    def end(self) -> dt.date:
        # exclusive
        return self.start + dt.timedelta(days=self.days)

    @property
    def last(self) -> dt.date:
        return self.end - dt.timedelta(days=1)

    def contains(self, day: dt.date) -> bool:
        return self.start <= day < self.end

    def dates(self) -> list[dt.date]:
        return [self.start + dt.timedelta(days=i) for i in range(self.days)]


def parse_week_start(name: str) -> int:
    key = (name or "").strip().lower()
    if key not in WEEK_STARTS:
        raise ValueError(f"Invalid week start: {name!r} (expected one of: {', '.join(WEEK_STARTS)})")
    return WEEK_STARTS[key]


def week_start_of(day: dt.date, week_start: int = 0) -> dt.date:
    return day - dt.timedelta(days=(day.weekday() - week_start) % 7)


def trailing_window(today: dt.date | None = None, weeks: int = DEFAULT_WEEKS, week_start: int = 0) -> Window:
    if weeks < 1:
        raise ValueError(f"Invalid window size: {weeks} weeks (must be at least 1)")
    if today is None:
        today = dt.date.today()
    current = week_start_of(today, week_start)
    return Window(start=current - dt.timedelta(weeks=weeks - 1), weeks=weeks, week_start=week_start)
