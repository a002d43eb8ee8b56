from __future__ import annotations

import socket
import threading
import urllib.error
import urllib.request
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pytest

from activity_graph.cache import RegenerationCache
from activity_graph.config import ConfigError, build_generation_config
from activity_graph.models import CommitRecord
from activity_graph.server import IPv6HTTPServer, build_cache, create_server, parse_address


@contextmanager
def _running(cache: RegenerationCache) -> Iterator[str]:
    server = create_server(cache, "127.0.0.1", 0)
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    try:
        host, port = server.server_address[:2]
        yield f"http://{host}:{port}"
    finally:
        server.shutdown()
        server.server_close()
        t.join(timeout=5)


def _get(url: str) -> tuple[int, str, bytes]:
    try:
        with urllib.request.urlopen(url, timeout=10) as resp:
            return resp.status, resp.headers.get("Content-Type", ""), resp.read()
    except urllib.error.HTTPError as e:
        return e.code, e.headers.get("Content-Type", ""), e.read()


def test_serves_html_and_css_from_cache() -> None:
    calls: list[int] = []

    def generate() -> tuple[bytes, bytes]:
        calls.append(1)
        return b"<html>graph</html>", b".lvl0 {}"

    cache = RegenerationCache(generate, 60, background=False)
    with _running(cache) as base:
        status, ctype, body = _get(base + "/")
        assert status == 200
        assert ctype.startswith("text/html")
        assert body == b"<html>graph</html>"

        assert _get(base + "/index.html")[2] == b"<html>graph</html>"
        status, ctype, body = _get(base + "/activity-graph.css")
        assert (status, body) == (200, b".lvl0 {}")
        assert ctype.startswith("text/css")

        assert _get(base + "/nope")[0] == 404
    assert len(calls) == 1


def test_unavailable_until_first_successful_generation() -> None:
    def generate() -> tuple[bytes, bytes]:
        raise RuntimeError("no git")

    cache = RegenerationCache(generate, 60, background=False)
    with _running(cache) as base:
        status, _, body = _get(base + "/")
        assert status == 503
        assert b"Service Unavailable" in body
        assert b"no git" not in body


def test_build_cache_generates_links_css_and_writes_cache_file(tmp_path: Path) -> None:
    (tmp_path / "repos" / "r" / ".git").mkdir(parents=True)
    config = build_generation_config(roots=[tmp_path / "repos"], weeks=2, jobs=1)
    cache_file = tmp_path / "graph.cache"

    def reader(_repo: Path) -> list[CommitRecord]:
        return []

    cache = build_cache(config, None, 60, cache_file=cache_file, reader=reader)
    payload = cache.get()

    assert b'<link href="/activity-graph.css" rel="stylesheet">' in payload.html
    assert b".lvl4" in payload.css
    assert cache_file.exists()

    restarted = build_cache(config, None, 60, cache_file=cache_file, reader=reader)
    assert restarted.payload is not None
    assert restarted.payload.html == payload.html


def test_parse_address() -> None:
    assert parse_address("127.0.0.1:80") == ("127.0.0.1", 80)
    assert parse_address("[::1]:8080") == ("::1", 8080)
    for bad in ("localhost", ":80", "host:", "host:99999", "host:http"):
        with pytest.raises(ConfigError):
            parse_address(bad)


def _ipv6_loopback_available() -> bool:
    if not socket.has_ipv6:
        return False
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as s:
            s.bind(("::1", 0))
    except OSError:
        return False
    return True


@pytest.mark.skipif(not _ipv6_loopback_available(), reason="IPv6 loopback unavailable")
def test_ipv6_address_binds_an_ipv6_server() -> None:
    cache = RegenerationCache(lambda: (b"<html>v6</html>", b""), 60, background=False)
    host, port = parse_address("[::1]:0")
    server = create_server(cache, host, port)
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    try:
        assert isinstance(server, IPv6HTTPServer)
        assert server.socket.family == socket.AF_INET6
        bound_port = server.server_address[1]
        assert _get(f"http://[::1]:{bound_port}/") == (200, "text/html; charset=utf-8", b"<html>v6</html>")
    finally:
        server.shutdown()
        server.server_close()
        t.join(timeout=5)


def test_ipv4_address_keeps_the_default_family() -> None:
    cache = RegenerationCache(lambda: (b"", b""), 60, background=False)
    server = create_server(cache, "127.0.0.1", 0)
    try:
        assert server.socket.family == socket.AF_INET
    finally:
        server.server_close()
