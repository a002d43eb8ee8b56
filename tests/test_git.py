from __future__ import annotations

import datetime as dt
import os
import subprocess
from pathlib import Path

import pytest

from activity_graph.git import CommitReadError, parse_commit_time, parse_log_line, read_commit_log


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def _commit(repo: Path, *, author: str, email: str, date: str) -> None:
    env = os.environ.copy()
    env.update(
        {
            "GIT_AUTHOR_NAME": author,
            "GIT_AUTHOR_EMAIL": email,
            "GIT_COMMITTER_NAME": author,
            "GIT_COMMITTER_EMAIL": email,
            "GIT_AUTHOR_DATE": date,
            "GIT_COMMITTER_DATE": date,
        }
    )
    _run(["git", "-c", "commit.gpgsign=false", "commit", "--allow-empty", "-q", "-m", f"work on {date}"], cwd=repo, env=env)


def test_parse_commit_time_keeps_the_authored_offset() -> None:
    t = parse_commit_time("2024-01-05T23:30:00-08:00")
    assert t is not None
    assert t.utcoffset() == dt.timedelta(hours=-8)
    assert parse_commit_time("2024-01-05T10:00:00Z") == dt.datetime(2024, 1, 5, 10, tzinfo=dt.timezone.utc)
    assert parse_commit_time("yesterday") is None
    assert parse_commit_time("") is None


def test_parse_log_line() -> None:
    rec = parse_log_line("2024-01-05T10:00:00+02:00\tAlice Example\talice@example.com\n")
    assert rec is not None
    assert rec.author_name == "Alice Example"
    assert rec.author_email == "alice@example.com"
    assert rec.when.isoformat() == "2024-01-05T10:00:00+02:00"
    assert parse_log_line("garbage") is None


def test_read_commit_log_covers_all_branches(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    _run(["git", "init", "-q"], cwd=repo)
    _commit(repo, author="Alice", email="alice@example.com", date="2024-01-05T10:00:00+02:00")
    _run(["git", "checkout", "-q", "-b", "feature"], cwd=repo)
    _commit(repo, author="Bob", email="bob@example.com", date="2024-01-06T11:00:00+00:00")
    _run(["git", "checkout", "-q", "-"], cwd=repo)

    records = read_commit_log(repo)

    assert sorted(r.author_email for r in records) == ["alice@example.com", "bob@example.com"]
    alice = next(r for r in records if r.author_name == "Alice")
    assert alice.when == dt.datetime(2024, 1, 5, 8, tzinfo=dt.timezone.utc)


def test_read_commit_log_failure_raises(tmp_path: Path) -> None:
    with pytest.raises(CommitReadError):
        read_commit_log(tmp_path / "does-not-exist")
