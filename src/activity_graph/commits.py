from __future__ import annotations

import datetime as dt
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable

from .git import pull_repo, read_commit_log
from .identity import AuthorMatcher
from .models import CommitCollection, CommitRecord, RepoLocation

logger = logging.getLogger(__name__)

CommitReader = Callable[[Path], list[CommitRecord]]


def read_commit_times(
    repo: Path,
    author: AuthorMatcher | None = None,
    reader: CommitReader = read_commit_log,
) -> list[dt.datetime]:
    records = reader(repo)
    if author is None:
        return [r.when for r in records]
    return [r.when for r in records if author.matches(r.author_name, r.author_email)]


def _extract(repo: RepoLocation, author: AuthorMatcher | None, pull: bool, reader: CommitReader) -> list[dt.datetime]:
    if pull:
        pull_repo(repo.path)
    return read_commit_times(repo.path, author, reader)


def collect_commit_times(
    repos: list[RepoLocation],
    author: AuthorMatcher | None = None,
    *,
    jobs: int = 4,
    pull: bool = False,
    reader: CommitReader = read_commit_log,
) -> CommitCollection:
    """
    Read every repository's commit timestamps on a bounded thread pool and
    wait for all of them. A repository that fails is logged and left out.
    """
    out = CommitCollection(timestamps=[])
    if not repos:
        return out

    with ThreadPoolExecutor(max_workers=max(1, jobs)) as ex:
        futs = {ex.submit(_extract, repo, author, pull, reader): repo for repo in repos}
        for i, fut in enumerate(as_completed(futs), start=1):
            repo = futs[fut]
            try:
                times = fut.result()
            except Exception as e:
                out.errors.append(f"{repo.path}: {e}")
                logger.warning("warning: skipping repository %s: %s", repo.path, e)
                continue
            out.timestamps.extend(times)
            out.repos_read += 1
            logger.debug("read %d commits from %s (%d/%d)", len(times), repo.name, i, len(futs))

    # Completion order is arbitrary; make the output independent of it.
    out.timestamps.sort()
    logger.info("counted up %d commits in %d repositories", len(out.timestamps), out.repos_read)
    return out
