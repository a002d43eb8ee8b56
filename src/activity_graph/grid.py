from __future__ import annotations

import dataclasses
import datetime as dt
import logging

from .models import GraphCell
from .window import Window

logger = logging.getLogger(__name__)

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
WEEKDAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclasses.dataclass(frozen=True)
class Graph:
    window: Window
    columns: list[list[GraphCell | None]]  # week -> 7 weekday slots, None = padding
    levels: int
    today: dt.date

    @property
    def week_count(self) -> int:
        return len(self.columns)

    def cells(self) -> list[GraphCell]:
        return [cell for column in self.columns for cell in column if cell is not None]

    def counts(self) -> dict[dt.date, int]:
        return {cell.date: cell.count for cell in self.cells()}

    @property
    def total(self) -> int:
        return sum(cell.count for cell in self.cells())

    def row(self, weekday: int) -> list[GraphCell | None]:
        return [column[weekday] for column in self.columns]

    def weekday_labels(self) -> list[str]:
        return [WEEKDAY_ABBR[(self.window.week_start + i) % 7] for i in range(7)]

    def month_labels(self) -> dict[int, str]:
        """Column index -> month abbreviation, for columns where a month starts."""
        labels: dict[int, str] = {}
        for week, column in enumerate(self.columns):
            for cell in column:
                if cell is not None and cell.date.day == 1:
                    labels[week] = MONTH_ABBR[cell.date.month - 1]
                    break
        first = next((cell for cell in self.columns[0] if cell is not None), None) if self.columns else None
        # Label the partial first month only if it doesn't crowd the next label.
        if first is not None and 0 not in labels and all(week >= 4 for week in labels):
            labels[0] = MONTH_ABBR[first.date.month - 1]
        return dict(sorted(labels.items()))


def build_graph(
    buckets: dict[dt.date, int],
    levels: dict[dt.date, int],
    window: Window,
    *,
    level_count: int,
    today: dt.date | None = None,
) -> Graph:
    if today is None:
        today = dt.date.today()

    padding = (window.start.weekday() - window.week_start) % 7
    slots = padding + window.days
    week_count = (slots + 6) // 7
    columns: list[list[GraphCell | None]] = [[None] * 7 for _ in range(week_count)]

    for offset, day in enumerate(window.dates(), start=padding):
        week, weekday = divmod(offset, 7)
        columns[week][weekday] = GraphCell(
            date=day,
            count=int(buckets.get(day, 0)),
            level=int(levels.get(day, 0)),
            week=week,
            weekday=weekday,
            future=day > today,
        )

    logger.debug("prepared %d weeks for rendering (%d leading blank days)", week_count, padding)
    return Graph(window=window, columns=columns, levels=level_count, today=today)
