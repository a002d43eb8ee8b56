from __future__ import annotations

import datetime as dt
import logging
import subprocess
from pathlib import Path

from .models import CommitRecord

logger = logging.getLogger(__name__)

LOG_FORMAT = "%aI%x09%an%x09%ae"


class CommitReadError(RuntimeError):
    """A repository did not yield a readable commit log."""


def run_git(args: list[str], cwd: Path, timeout_s: int | None = 300) -> tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def has_git_marker(directory: Path) -> bool:
    # Worktrees and submodules use a `.git` file instead of a directory.
    return (directory / ".git").exists()


def parse_commit_time(value: str) -> dt.datetime | None:
    s = (value or "").strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        d = dt.datetime.fromisoformat(s)
    except ValueError:
        return None
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d


def parse_log_line(line: str) -> CommitRecord | None:
    parts = line.rstrip("\r\n").split("\t", 2)
    when = parse_commit_time(parts[0])
    if when is None:
        return None
    name = parts[1] if len(parts) > 1 else ""
    email = parts[2] if len(parts) > 2 else ""
    return CommitRecord(when=when, author_name=name, author_email=email)


def read_commit_log(repo: Path) -> list[CommitRecord]:
    """Authored commits reachable from any ref of `repo`."""
    try:
        code, out, err = run_git(["log", "--all", f"--format={LOG_FORMAT}"], cwd=repo)
    except (OSError, subprocess.SubprocessError) as e:
        raise CommitReadError(f"{repo}: could not run git log: {e}") from e
    if code != 0:
        # An empty repository has no refs yet; git log exits 128 with this message.
        if "does not have any commits" in err:
            return []
        raise CommitReadError(f"{repo}: git log exited {code}: {err.strip()[:500]}")

    records: list[CommitRecord] = []
    for line in out.splitlines():
        if not line.strip():
            continue
        rec = parse_log_line(line)
        if rec is not None:
            records.append(rec)
    return records


def pull_repo(repo: Path) -> bool:
    try:
        code, _, err = run_git(["pull", "--ff-only", "--quiet"], cwd=repo)
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("warning: could not pull %s: %s", repo, e)
        return False
    if code != 0:
        logger.warning("warning: git pull failed in %s: %s", repo, err.strip()[:500])
        return False
    return True
