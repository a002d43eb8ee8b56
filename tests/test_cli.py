from __future__ import annotations

import datetime as dt
import os
import subprocess
import sys
from pathlib import Path

import pytest

from activity_graph.cli import css_href_for, main


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def _repo_with_commit_today(repo: Path) -> None:
    repo.mkdir(parents=True)
    _run(["git", "init", "-q"], cwd=repo)
    now = dt.datetime.now().astimezone().replace(microsecond=0).isoformat()
    env = os.environ.copy()
    env.update(
        {
            "GIT_AUTHOR_NAME": "Alice",
            "GIT_AUTHOR_EMAIL": "alice@example.com",
            "GIT_COMMITTER_NAME": "Alice",
            "GIT_COMMITTER_EMAIL": "alice@example.com",
            "GIT_AUTHOR_DATE": now,
            "GIT_COMMITTER_DATE": now,
        }
    )
    _run(["git", "-c", "commit.gpgsign=false", "commit", "--allow-empty", "-q", "-m", "today"], cwd=repo, env=env)


def test_root_help_lists_commands(tmp_path: Path) -> None:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(Path(__file__).resolve().parents[1] / "src")
    proc = subprocess.run([sys.executable, "-m", "activity_graph", "--help"], cwd=str(tmp_path), env=env, text=True, capture_output=True)
    assert proc.returncode == 0, proc.stderr
    for command in ("generate", "stdout", "server"):
        assert command in proc.stdout
    assert "activity graph" in proc.stdout


def test_stdout_prints_graph(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _repo_with_commit_today(tmp_path / "src" / "repo")

    code = main(["stdout", "-q", "-i", str(tmp_path / "src"), "--weeks", "2", "--no-color", "--config", str(tmp_path / "none.json")])

    out = capsys.readouterr().out
    assert code == 0
    assert "Mon " in out
    assert "1 commit between" in out


def test_generate_writes_html_and_css(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _repo_with_commit_today(tmp_path / "src" / "repo")
    html_path = tmp_path / "site" / "index.html"
    css_path = tmp_path / "site" / "static" / "graph.css"

    code = main(["generate", "-q", "-i", str(tmp_path / "src"), "-o", str(html_path), "-c", str(css_path), "--config", str(tmp_path / "none.json")])

    assert code == 0
    html = html_path.read_text(encoding="utf-8")
    assert '<link href="static/graph.css" rel="stylesheet">' in html
    assert "1 commit on " in html
    assert ".lvl0" in css_path.read_text(encoding="utf-8")
    assert "Wrote html" in capsys.readouterr().out


def test_config_file_supplies_defaults(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _repo_with_commit_today(tmp_path / "src" / "repo")
    cfg = tmp_path / "activity-graph.json"
    cfg.write_text('{"inputs": ["%s"], "weeks": 1, "author": "^bob@"}' % (tmp_path / "src").as_posix(), encoding="utf-8")

    code = main(["stdout", "-q", "--no-color", "--config", str(cfg)])

    assert code == 0
    assert "0 commits between" in capsys.readouterr().out


def test_configuration_errors_exit_before_work(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["stdout", "-q", "-i", str(tmp_path), "--author", "(unclosed", "--config", str(tmp_path / "none.json")])
    assert code == 2
    assert "Invalid author regex" in capsys.readouterr().err

    code = main(["stdout", "-q", "--config", str(tmp_path / "none.json")])
    assert code == 2
    assert "no input directories" in capsys.readouterr().err


def test_css_href_is_relative_to_the_html_file(tmp_path: Path) -> None:
    assert css_href_for(tmp_path / "a" / "index.html", tmp_path / "a" / "style.css") == "style.css"
    assert css_href_for(tmp_path / "a" / "index.html", tmp_path / "b" / "style.css") == "../b/style.css"
