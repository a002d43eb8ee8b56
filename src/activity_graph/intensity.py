from __future__ import annotations

import datetime as dt

DEFAULT_LEVELS = 5

STRATEGIES = ("quantile", "fixed", "relative")


def fixed_thresholds(levels: int) -> list[float]:
    # 1, 3, 7, 15, ...: each level covers twice the commits of the previous one.
    return [float(2**i - 1) for i in range(1, levels - 1)]


def quantile_thresholds(counts: list[int], levels: int) -> list[float]:
    positive = sorted(c for c in counts if c > 0)
    if not positive:
        return [0.0] * (levels - 2)
    n = len(positive)
    return [float(positive[(i * n) // (levels - 1)]) for i in range(1, levels - 1)]


def relative_thresholds(counts: list[int], levels: int) -> list[float]:
    top = max(counts, default=0)
    if top <= 0:
        return [0.0] * (levels - 2)
    return [top * i / (levels - 1) for i in range(1, levels - 1)]


def compute_thresholds(
    counts: list[int],
    levels: int = DEFAULT_LEVELS,
    strategy: str = "quantile",
    fixed: list[float] | None = None,
) -> list[float]:
    """
    The `levels - 2` cut points separating levels 1..levels-1. A positive count
    gets level 1 plus the number of cut points it exceeds.
    """
    if levels < 2:
        raise ValueError(f"Invalid number of intensity levels: {levels} (must be at least 2)")
    if strategy == "quantile":
        return quantile_thresholds(counts, levels)
    if strategy == "relative":
        return relative_thresholds(counts, levels)
    if strategy == "fixed":
        if fixed is None:
            return fixed_thresholds(levels)
        cuts = sorted(float(t) for t in fixed)
        if len(cuts) != levels - 2:
            raise ValueError(f"Expected {levels - 2} fixed thresholds for {levels} levels, got {len(cuts)}")
        return cuts
    raise ValueError(f"Unknown intensity strategy: {strategy!r} (expected one of: {', '.join(STRATEGIES)})")


def level_for(count: int, thresholds: list[float], levels: int = DEFAULT_LEVELS) -> int:
    if count <= 0:
        return 0
    level = 1 + sum(1 for t in thresholds if count > t)
    return min(level, levels - 1)


def assign_levels(
    buckets: dict[dt.date, int],
    levels: int = DEFAULT_LEVELS,
    strategy: str = "quantile",
    fixed: list[float] | None = None,
) -> dict[dt.date, int]:
    thresholds = compute_thresholds(list(buckets.values()), levels, strategy, fixed)
    return {day: level_for(count, thresholds, levels) for day, count in buckets.items()}
