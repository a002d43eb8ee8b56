from __future__ import annotations

import logging
import socket
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import urlsplit

from .cache import CacheUnavailableError, RegenerationCache, load_cache_file, write_cache_file
from .commits import CommitReader
from .config import ConfigError, GenerationConfig
from .models import CachedPayload
from .pipeline import SERVER_CSS_PATH, generate_payload
from .render import ExternalResources

logger = logging.getLogger(__name__)

INDEX_PATHS = ("", "/", "/index.html", "/index.htm")


def parse_address(value: str) -> tuple[str, int]:
    s = (value or "").strip()
    host, sep, port_s = s.rpartition(":")
    if not sep or not host or not port_s.isdigit():
        raise ConfigError(f"invalid address: {value!r} (expected host:port)")
    port = int(port_s)
    if port > 65535:
        raise ConfigError(f"invalid port in address: {value!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, port


def build_cache(
    config: GenerationConfig,
    resources: ExternalResources | None,
    lifetime_s: float,
    *,
    cache_file: Path | None = None,
    reader: CommitReader | None = None,
) -> RegenerationCache:
    def generate() -> tuple[bytes, bytes]:
        html, css = generate_payload(config, resources, css_href=SERVER_CSS_PATH, reader=reader)
        if cache_file is not None:
            try:
                write_cache_file(cache_file, CachedPayload(html=html, css=css, generated_at=0.0))
            except OSError as e:
                logger.error("error: ran into an IO error while writing cache file: %s", e)
        return html, css

    cache = RegenerationCache(generate, lifetime_s)
    if cache_file is not None:
        previous = load_cache_file(cache_file)
        if previous is not None:
            cache.seed(previous)
            logger.info("initialized cache from cache file %s", cache_file)
    return cache


def make_handler(cache: RegenerationCache) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        server_version = "activity-graph"

        def do_GET(self) -> None:  # noqa: N802
            self._serve(send_body=True)

        def do_HEAD(self) -> None:  # noqa: N802
            self._serve(send_body=False)

        def _serve(self, *, send_body: bool) -> None:
            path = urlsplit(self.path).path
            if path in INDEX_PATHS:
                content_type = "text/html; charset=utf-8"
            elif path == SERVER_CSS_PATH:
                content_type = "text/css; charset=utf-8"
            else:
                self._send(404, b"404 Not Found\n", "text/plain; charset=utf-8", send_body)
                return

            try:
                payload = cache.get()
            except CacheUnavailableError:
                body = b"503 Service Unavailable\nThe activity graph could not be generated yet.\n"
                self._send(503, body, "text/plain; charset=utf-8", send_body)
                return

            body = payload.css if path == SERVER_CSS_PATH else payload.html
            self._send(200, body, content_type, send_body)

        def _send(self, status: int, body: bytes, content_type: str, send_body: bool) -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            if send_body:
                self.wfile.write(body)

        def log_message(self, format: str, *args: object) -> None:  # noqa: A002
            logger.debug("%s - %s", self.address_string(), format % args)

    return Handler


class IPv6HTTPServer(ThreadingHTTPServer):
    address_family = socket.AF_INET6


def create_server(cache: RegenerationCache, host: str, port: int) -> ThreadingHTTPServer:
    server_cls = IPv6HTTPServer if ":" in host else ThreadingHTTPServer
    server = server_cls((host, port), make_handler(cache))
    server.daemon_threads = True
    return server


def serve(cache: RegenerationCache, host: str, port: int) -> None:
    logger.debug("starting server on %s:%d...", host, port)
    server = create_server(cache, host, port)
    bound_host, bound_port = server.server_address[:2]
    logger.info("server started on %s:%d", bound_host, bound_port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("shutting down")
    finally:
        server.server_close()
