from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path

from . import __version__
from .config import DEFAULT_CONFIG_PATH, ConfigError, GenerationConfig, build_generation_config, load_config
from .intensity import DEFAULT_LEVELS, STRATEGIES
from .pipeline import generate_graph
from .render import ExternalResources, render_css, render_html, render_text
from .server import build_cache, parse_address, serve
from .window import DEFAULT_WEEKS, WEEK_STARTS

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1:8080"
DEFAULT_CACHE_LIFETIME_S = 1.0


def setup_logging(*, verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.CRITICAL
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        stream=sys.stderr,
        force=True,
    )


def _shared_options() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(add_help=False)
    g = p.add_argument_group("generation")
    g.add_argument(
        "-i",
        "--input",
        type=Path,
        action="append",
        default=None,
        help="Directory containing the repositories to include (repeatable).",
    )
    g.add_argument("-d", "--depth", type=int, default=None, help="How many subdirectories deep to search (default: no limit).")
    g.add_argument(
        "-a",
        "--author",
        type=str,
        default=None,
        help="Regex matched against author name or email; only matching commits are counted.",
    )
    g.add_argument("--weeks", type=int, default=None, help=f"Trailing window size in weeks (default: {DEFAULT_WEEKS}).")
    g.add_argument("--week-start", choices=list(WEEK_STARTS), default=None, help="First weekday of each column (default: monday).")
    g.add_argument("--levels", type=int, default=None, help=f"Number of intensity levels (default: {DEFAULT_LEVELS}).")
    g.add_argument("--strategy", choices=list(STRATEGIES), default=None, help="How counts map to intensity levels (default: quantile).")
    g.add_argument("--jobs", type=int, default=None, help="Parallel git jobs.")
    g.add_argument("--pull", action="store_true", default=None, help="Run `git pull --ff-only` in each repository first (slow).")
    g.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Optional JSON file with defaults for these options.")
    v = p.add_argument_group("output")
    v.add_argument("-v", "--verbose", action="store_true", help="Print progress information.")
    v.add_argument("-q", "--quiet", action="store_true", help="Disable all log output.")
    return p


def _external_options() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(add_help=False)
    g = p.add_argument_group("external resources")
    g.add_argument("--external-head", type=Path, default=None, help="HTML file pasted into the <head> element.")
    g.add_argument("--external-header", type=Path, default=None, help="HTML file pasted at the beginning of <body>.")
    g.add_argument("--external-footer", type=Path, default=None, help="HTML file pasted at the end of <body>.")
    g.add_argument("--external-css", type=Path, default=None, help="CSS file appended to the stylesheet.")
    return p


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="activity-graph",
        description="Generates a calendar-style activity graph from the commits in a set of git repositories.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", metavar="command")
    shared = _shared_options()
    external = _external_options()

    gen = sub.add_parser("generate", parents=[shared, external], help="Write the graph as an HTML file (and optional CSS file).")
    gen.add_argument("-o", "--html", type=Path, default=Path("activity-graph.html"), help="Output HTML file.")
    gen.add_argument(
        "-c",
        "--css",
        type=Path,
        default=None,
        help="Output CSS file (if not set, the stylesheet is inlined into the HTML).",
    )

    out = sub.add_parser("stdout", parents=[shared], help="Print the graph to the terminal.")
    out.add_argument("--color", action=argparse.BooleanOptionalAction, default=None, help="Use ANSI colours (default: when stdout is a terminal).")

    srv = sub.add_parser("server", parents=[shared, external], help="Serve the graph over HTTP, regenerating it periodically.")
    srv.add_argument("--host", type=str, default=None, help=f"Address to listen on (default: {DEFAULT_HOST}).")
    srv.add_argument(
        "--cache-lifetime",
        type=float,
        default=None,
        help="Minimum seconds between regenerations (default: 1).",
    )
    srv.add_argument(
        "--cache-file",
        type=Path,
        default=None,
        help="File backing up the cached output, served after a restart while the graph regenerates.",
    )
    return parser


def _pick(value: object, file_cfg: dict, key: str, default: object) -> object:
    if value is not None:
        return value
    if key in file_cfg and file_cfg[key] is not None:
        return file_cfg[key]
    return default


def _generation_config(args: argparse.Namespace, file_cfg: dict) -> GenerationConfig:
    inputs = args.input if args.input else [Path(p) for p in (file_cfg.get("inputs") or [])]
    depth = _pick(args.depth, file_cfg, "depth", None)
    jobs = _pick(args.jobs, file_cfg, "jobs", None)
    try:
        return build_generation_config(
            roots=list(inputs),
            depth=None if depth is None else int(depth),
            author=_pick(args.author, file_cfg, "author", None),
            weeks=int(_pick(args.weeks, file_cfg, "weeks", DEFAULT_WEEKS)),
            week_start=str(_pick(args.week_start, file_cfg, "week_start", "monday")),
            levels=int(_pick(args.levels, file_cfg, "levels", DEFAULT_LEVELS)),
            strategy=str(_pick(args.strategy, file_cfg, "strategy", "quantile")),
            jobs=None if jobs is None else int(jobs),
            pull=bool(_pick(args.pull, file_cfg, "pull", False)),
            exclude_dirnames=list(file_cfg.get("exclude_dirnames") or []),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid configuration value: {e}") from e


def _external_resources(args: argparse.Namespace) -> ExternalResources:
    return ExternalResources(
        head=args.external_head,
        header=args.external_header,
        footer=args.external_footer,
        css=args.external_css,
    )


def _write_output(path: Path, text: str, what: str) -> bool:
    try:
        if path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        logger.error("error: encountered while writing out the %s: %s", what, e)
        return False
    print(f"Wrote {what}: {path}")
    return True


def css_href_for(html_path: Path, css_path: Path) -> str:
    base = html_path.resolve().parent
    rel = os.path.relpath(css_path.resolve(), base)
    return Path(rel).as_posix()


def run_generate(args: argparse.Namespace, config: GenerationConfig) -> int:
    resources = _external_resources(args)
    graph = generate_graph(config)
    css_href = css_href_for(args.html, args.css) if args.css else None
    ok = _write_output(args.html, render_html(graph, resources, css_href=css_href), "html")
    if args.css:
        ok = _write_output(args.css, render_css(resources), "css") and ok
    return 0 if ok else 1


def run_stdout(args: argparse.Namespace, config: GenerationConfig) -> int:
    color = args.color if args.color is not None else sys.stdout.isatty()
    graph = generate_graph(config)
    sys.stdout.write(render_text(graph, color=bool(color)))
    return 0


def run_server(args: argparse.Namespace, config: GenerationConfig, file_cfg: dict) -> int:
    host, port = parse_address(str(_pick(args.host, file_cfg, "host", DEFAULT_HOST)))
    try:
        lifetime = float(_pick(args.cache_lifetime, file_cfg, "cache_lifetime", DEFAULT_CACHE_LIFETIME_S))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid cache lifetime: {e}") from e
    if lifetime < 0:
        raise ConfigError(f"invalid cache lifetime: {lifetime} (must be 0 or more)")
    cache = build_cache(config, _external_resources(args), lifetime, cache_file=args.cache_file)
    try:
        serve(cache, host, port)
    except OSError as e:
        print(f"error: could not start the server on {host}:{port}: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    setup_logging(verbose=bool(args.verbose), quiet=bool(args.quiet))
    started = time.monotonic()
    try:
        file_cfg = load_config(args.config)
        config = _generation_config(args, file_cfg)
        if args.command == "generate":
            code = run_generate(args, config)
        elif args.command == "stdout":
            code = run_stdout(args, config)
        else:
            code = run_server(args, config, file_cfg)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    logger.debug("finished all tasks, this run of the program took %.2fs", time.monotonic() - started)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
