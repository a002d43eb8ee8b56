from __future__ import annotations

import datetime as dt

import pytest

from activity_graph.window import Window, parse_week_start, trailing_window, week_start_of


def test_trailing_window_is_aligned_to_monday() -> None:
    w = trailing_window(dt.date(2024, 1, 10), weeks=53)
    assert w.start == dt.date(2023, 1, 9)
    assert w.start.weekday() == 0
    assert w.end == dt.date(2024, 1, 15)
    assert w.days == 53 * 7
    assert w.contains(dt.date(2024, 1, 10))
    assert not w.contains(dt.date(2024, 1, 15))


def test_trailing_window_sunday_start() -> None:
    w = trailing_window(dt.date(2024, 1, 10), weeks=2, week_start=parse_week_start("Sunday"))
    assert w.start == dt.date(2023, 12, 31)
    assert w.last == dt.date(2024, 1, 13)


def test_window_dates_have_no_gaps() -> None:
    w = Window(start=dt.date(2024, 2, 26), weeks=3)
    dates = w.dates()
    assert len(dates) == 21
    assert len(set(dates)) == 21
    assert all((b - a).days == 1 for a, b in zip(dates, dates[1:]))


def test_week_start_of() -> None:
    assert week_start_of(dt.date(2024, 1, 7)) == dt.date(2024, 1, 1)
    assert week_start_of(dt.date(2024, 1, 7), week_start=6) == dt.date(2024, 1, 7)


def test_invalid_window_inputs() -> None:
    with pytest.raises(ValueError):
        trailing_window(dt.date(2024, 1, 10), weeks=0)
    with pytest.raises(ValueError):
        parse_week_start("friday")
