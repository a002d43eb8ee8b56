from __future__ import annotations

import dataclasses
import datetime as dt
from pathlib import Path


@dataclasses.dataclass(frozen=True)
class RepoLocation:
    name: str
    path: Path  # canonical


@dataclasses.dataclass(frozen=True)
class CommitRecord:
    when: dt.datetime  # authored time, with the author's offset
    author_name: str
    author_email: str


@dataclasses.dataclass
class CommitCollection:
    timestamps: list[dt.datetime]
    repos_read: int = 0
    errors: list[str] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True)
class GraphCell:
    date: dt.date
    count: int
    level: int
    week: int
    weekday: int  # row, 0 is the window's week start
    future: bool = False


@dataclasses.dataclass(frozen=True)
class CachedPayload:
    html: bytes
    css: bytes
    generated_at: float
