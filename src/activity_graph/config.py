from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path

from .identity import AuthorMatcher
from .intensity import DEFAULT_LEVELS, STRATEGIES
from .window import DEFAULT_WEEKS, parse_week_start

DEFAULT_CONFIG_PATH = Path("activity-graph.json")


class ConfigError(ValueError):
    """The requested run cannot produce meaningful output."""


def default_jobs() -> int:
    return max(1, min(8, (os.cpu_count() or 4)))


@dataclasses.dataclass(frozen=True)
class GenerationConfig:
    roots: tuple[Path, ...]
    depth: int | None = None
    author: AuthorMatcher | None = None
    weeks: int = DEFAULT_WEEKS
    week_start: int = 0
    levels: int = DEFAULT_LEVELS
    strategy: str = "quantile"
    jobs: int = 4
    pull: bool = False
    exclude_dirnames: frozenset[str] = frozenset()


def build_generation_config(
    *,
    roots: list[Path],
    depth: int | None = None,
    author: str | None = None,
    weeks: int = DEFAULT_WEEKS,
    week_start: str = "monday",
    levels: int = DEFAULT_LEVELS,
    strategy: str = "quantile",
    jobs: int | None = None,
    pull: bool = False,
    exclude_dirnames: list[str] | None = None,
) -> GenerationConfig:
    if not roots:
        raise ConfigError("no input directories given (use --input)")
    if depth is not None and depth < 0:
        raise ConfigError(f"invalid depth: {depth} (must be 0 or more)")
    matcher: AuthorMatcher | None = None
    if author:
        try:
            matcher = AuthorMatcher.from_string(author)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    if weeks < 1:
        raise ConfigError(f"invalid window size: {weeks} weeks (must be at least 1)")
    try:
        week_start_idx = parse_week_start(week_start)
    except ValueError as e:
        raise ConfigError(str(e)) from e
    if levels < 2:
        raise ConfigError(f"invalid number of intensity levels: {levels} (must be at least 2)")
    if strategy not in STRATEGIES:
        raise ConfigError(f"unknown intensity strategy: {strategy!r} (expected one of: {', '.join(STRATEGIES)})")
    if jobs is None:
        jobs = default_jobs()
    if jobs < 1:
        raise ConfigError(f"invalid job count: {jobs} (must be at least 1)")

    return GenerationConfig(
        roots=tuple(Path(r) for r in roots),
        depth=depth,
        author=matcher,
        weeks=int(weeks),
        week_start=week_start_idx,
        levels=int(levels),
        strategy=strategy,
        jobs=int(jobs),
        pull=bool(pull),
        exclude_dirnames=frozenset(str(d) for d in (exclude_dirnames or []) if str(d).strip()),
    )


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"could not read config file {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file {config_path} must contain a JSON object")
    return data
