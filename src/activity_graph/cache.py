from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Callable

from .models import CachedPayload

logger = logging.getLogger(__name__)

CACHE_FILE_FORMAT = "activity-graph-cache/1"

Generator = Callable[[], tuple[bytes, bytes]]


class CacheUnavailableError(RuntimeError):
    """No payload has been generated successfully yet."""


class RegenerationCache:
    """
    Serves the last generated (html, css) pair and regenerates it at most once
    per `lifetime_s` seconds.

    Only the decision to start a regeneration is locked; readers just take the
    current payload reference, which is replaced whole. While a regeneration
    runs, other requests get the previous payload. The very first generation
    is the exception: requests wait for it, since there is nothing to serve.
    """

    def __init__(
        self,
        generate: Generator,
        lifetime_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        background: bool = True,
    ) -> None:
        self._generate = generate
        self._lifetime_s = float(lifetime_s)
        self._clock = clock
        self._background = background
        self._payload: CachedPayload | None = None
        self._last_attempt: float | None = None
        self._regen_lock = threading.Lock()
        self._done = threading.Condition()
        self.failures = 0

    @property
    def payload(self) -> CachedPayload | None:
        return self._payload

    @property
    def regenerating(self) -> bool:
        return self._regen_lock.locked()

    def seed(self, payload: CachedPayload) -> None:
        # Served until the first regeneration finishes; does not count as fresh.
        if self._payload is None:
            self._payload = payload

    def is_stale(self, now: float | None = None) -> bool:
        if self._last_attempt is None:
            return True
        if now is None:
            now = self._clock()
        return now - self._last_attempt >= self._lifetime_s

    def get(self) -> CachedPayload:
        if self.is_stale() and self._regen_lock.acquire(blocking=False):
            if not self.is_stale():
                # Another thread finished a regeneration between the check and the acquire.
                self._release()
            elif self._payload is None or not self._background:
                self._regenerate()
            else:
                threading.Thread(target=self._regenerate, name="activity-graph-regenerate", daemon=True).start()

        payload = self._payload
        if payload is not None:
            return payload
        return self._wait_for_first()

    def _wait_for_first(self) -> CachedPayload:
        with self._done:
            while self._payload is None and self._regen_lock.locked():
                self._done.wait()
        payload = self._payload
        if payload is None:
            raise CacheUnavailableError("the activity graph has not been generated yet")
        return payload

    def _release(self) -> None:
        with self._done:
            self._regen_lock.release()
            self._done.notify_all()

    def _regenerate(self) -> None:
        # Runs with _regen_lock held; releases it.
        start = self._clock()
        logger.debug("refreshing cache...")
        try:
            html, css = self._generate()
        except Exception:
            self.failures += 1
            logger.exception("error: regenerating the activity graph failed, keeping the previous version")
        else:
            self._payload = CachedPayload(html=html, css=css, generated_at=self._clock())
            logger.info("updated cache, took %.2fs", self._clock() - start)
        finally:
            self._last_attempt = self._clock()
            self._release()


def write_cache_file(path: Path, payload: CachedPayload) -> None:
    data = {
        "format": CACHE_FILE_FORMAT,
        "html": payload.html.decode("utf-8"),
        "css": payload.css.decode("utf-8"),
    }
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(data), encoding="utf-8")
    tmp.replace(path)


def load_cache_file(path: Path) -> CachedPayload | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning("warning: could not read cache file %s: %s", path, e)
        return None
    if not isinstance(data, dict) or data.get("format") != CACHE_FILE_FORMAT:
        logger.warning("warning: %s is not an activity-graph cache file, ignoring it", path)
        return None
    html = data.get("html")
    css = data.get("css")
    if not isinstance(html, str) or not isinstance(css, str):
        logger.warning("warning: cache file %s is incomplete, ignoring it", path)
        return None
    return CachedPayload(html=html.encode("utf-8"), css=css.encode("utf-8"), generated_at=float("-inf"))
