from __future__ import annotations

import logging
import os
from pathlib import Path

from .git import has_git_marker
from .models import RepoLocation

logger = logging.getLogger(__name__)


def _subdirectories(directory: Path, exclude_dirnames: set[str]) -> list[Path]:
    out: list[Path] = []
    with os.scandir(directory) as it:
        for entry in it:
            if entry.name == ".git" or entry.name in exclude_dirnames:
                continue
            try:
                # follows symlinks
                if entry.is_dir():
                    out.append(Path(entry.path))
            except OSError:
                continue
    out.sort(key=lambda p: p.name)
    return out


def find_repositories(
    roots: list[Path],
    depth: int | None = None,
    exclude_dirnames: set[str] | None = None,
) -> tuple[list[RepoLocation], list[str]]:
    """
    Walk each root up to `depth` levels below it (None = unbounded) and return
    the git repositories found, deduplicated by canonical path, plus a list of
    per-root/per-directory error messages. Errors never abort the walk.
    """
    excluded = set(exclude_dirnames or ())
    # canonical path -> largest depth budget it was scanned with (None = unbounded)
    visited: dict[str, int | None] = {}
    found: dict[str, RepoLocation] = {}
    errors: list[str] = []

    def covered(real: str, remaining: int | None) -> bool:
        if real not in visited:
            return False
        seen = visited[real]
        if seen is None:
            return True
        return remaining is not None and remaining <= seen

    def visit(directory: Path, remaining: int | None) -> None:
        real = os.path.realpath(directory)
        if covered(real, remaining):
            return
        visited[real] = remaining
        logger.debug("scanning: %s", real)

        if has_git_marker(directory) and real not in found:
            found[real] = RepoLocation(name=Path(real).name, path=Path(real))

        if remaining is not None and remaining <= 0:
            return
        try:
            children = _subdirectories(directory, excluded)
        except OSError as e:
            errors.append(f"cannot read directory {directory}: {e.strerror or e}")
            logger.warning("warning: cannot read directory %s (%s)", directory, e.strerror or e)
            return
        for child in children:
            visit(child, None if remaining is None else remaining - 1)

    for root in roots:
        root = Path(root).expanduser()
        if not root.exists():
            msg = f"input directory does not exist: {root}"
            errors.append(msg)
            logger.error("error: %s", msg)
            continue
        if not root.is_dir():
            msg = f"input path is not a directory: {root}"
            errors.append(msg)
            logger.error("error: %s", msg)
            continue
        visit(root, depth)

    repos = sorted(found.values(), key=lambda r: r.path.as_posix())
    logger.info("finished scanning for git repositories, found %d", len(repos))
    return repos, errors
