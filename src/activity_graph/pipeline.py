from __future__ import annotations

import datetime as dt
import logging
import time

from .aggregate import bucket_by_day
from .commits import CommitReader, collect_commit_times
from .config import GenerationConfig
from .discovery import find_repositories
from .git import read_commit_log
from .grid import Graph, build_graph
from .intensity import assign_levels
from .render import ExternalResources, render_css, render_html
from .window import trailing_window

logger = logging.getLogger(__name__)

SERVER_CSS_PATH = "/activity-graph.css"


def generate_graph(
    config: GenerationConfig,
    *,
    today: dt.date | None = None,
    tz: dt.tzinfo | None = None,
    reader: CommitReader | None = None,
) -> Graph:
    """Locate repositories, read their commits and lay the counts out as a graph."""
    started = time.monotonic()
    if today is None:
        today = dt.datetime.now(tz).date()
    window = trailing_window(today, config.weeks, config.week_start)

    repos, discovery_errors = find_repositories(list(config.roots), config.depth, set(config.exclude_dirnames))
    if discovery_errors:
        logger.info("%d input path(s) could not be scanned", len(discovery_errors))

    collection = collect_commit_times(
        repos,
        config.author,
        jobs=config.jobs,
        pull=config.pull,
        reader=reader or read_commit_log,
    )
    buckets = bucket_by_day(collection.timestamps, window, tz, until=today)
    levels = assign_levels(buckets, config.levels, config.strategy)
    graph = build_graph(buckets, levels, window, level_count=config.levels, today=today)

    logger.info(
        "prepared %s..%s for rendering, %d commits in window, took %.2fs",
        window.start.isoformat(),
        window.last.isoformat(),
        graph.total,
        time.monotonic() - started,
    )
    return graph


def generate_payload(
    config: GenerationConfig,
    resources: ExternalResources | None = None,
    *,
    css_href: str = SERVER_CSS_PATH,
    reader: CommitReader | None = None,
) -> tuple[bytes, bytes]:
    graph = generate_graph(config, reader=reader)
    html = render_html(graph, resources, css_href=css_href)
    css = render_css(resources)
    return html.encode("utf-8"), css.encode("utf-8")
