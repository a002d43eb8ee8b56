"""Output adapters turning a `Graph` into terminal text or an HTML/CSS pair."""

from __future__ import annotations

import dataclasses
import html
import logging
from pathlib import Path

from .grid import Graph
from .models import GraphCell

logger = logging.getLogger(__name__)

SHADES = "░▒▓█"
ANSI_COLORS = (237, 22, 28, 34, 40)  # 256-colour palette, empty to busiest
ANSI_BLOCK = "■"
CSS_LEVELS = 5

TEXT_WEEKDAY_LABELS = {0: "Mon", 2: "Wed", 4: "Fri"}

CSS = """\
body {
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
  color: #24292f;
  background-color: #ffffff;
}
.activity-table {
  border-spacing: 3px;
  margin: 1em auto;
  font-size: 10px;
}
.activity-month {
  height: 12px;
  overflow: visible;
  white-space: nowrap;
  color: #57606a;
}
.activity-weekday {
  padding-right: 4px;
  color: #57606a;
  text-align: right;
}
.blob {
  width: 10px;
  height: 10px;
  padding: 0;
  border-radius: 2px;
}
.filler-day { background-color: transparent; }
.lvl0 { background-color: #ebedf0; }
.lvl1 { background-color: #9be9a8; }
.lvl2 { background-color: #40c463; }
.lvl3 { background-color: #30a14e; }
.lvl4 { background-color: #216e39; }
.activity-summary {
  text-align: center;
  color: #57606a;
  font-size: 12px;
}
"""


@dataclasses.dataclass(frozen=True)
class ExternalResources:
    head: Path | None = None  # pasted into <head>
    header: Path | None = None  # pasted at the start of <body>
    footer: Path | None = None  # pasted at the end of <body>
    css: Path | None = None  # appended to the stylesheet


def read_optional_file(path: Path | None) -> str:
    if path is None:
        return ""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("warning: could not read %s: %s", path, e)
        return ""


def scale_level(level: int, levels: int, size: int) -> int:
    """Map `level` of `levels` onto `size` slots. Only level 0 lands on slot 0."""
    if level <= 0 or levels <= 1 or size <= 1:
        return 0
    if levels == 2:
        return size - 1
    return max(1, min(size - 1, 1 + round((level - 1) * (size - 2) / (levels - 2))))


def _blank(cell: GraphCell | None) -> bool:
    return cell is None or cell.future


def summary_line(graph: Graph) -> str:
    last = min(graph.window.last, graph.today)
    noun = "commit" if graph.total == 1 else "commits"
    return f"{graph.total} {noun} between {graph.window.start.isoformat()} and {last.isoformat()}"


def render_text(graph: Graph, color: bool = False) -> str:
    lines: list[str] = []
    gutter = " " * 4

    header = [" "] * graph.week_count
    for week, label in graph.month_labels().items():
        for i, ch in enumerate(label):
            if week + i < len(header):
                header[week + i] = ch
    lines.append((gutter + "".join(header)).rstrip())

    for weekday in range(7):
        label = TEXT_WEEKDAY_LABELS.get((graph.window.week_start + weekday) % 7, "")
        row: list[str] = [f"{label:<3} "]
        for cell in graph.row(weekday):
            if _blank(cell):
                row.append(" ")
            elif color:
                code = ANSI_COLORS[scale_level(cell.level, graph.levels, len(ANSI_COLORS))]
                row.append(f"\x1b[38;5;{code}m{ANSI_BLOCK}\x1b[0m")
            else:
                row.append(SHADES[scale_level(cell.level, graph.levels, len(SHADES))])
        lines.append("".join(row).rstrip())

    lines.append("")
    lines.append(summary_line(graph))
    logger.debug("rendered text visualization")
    return "\n".join(lines) + "\n"


def _tooltip(cell: GraphCell) -> str:
    if cell.count == 0:
        return f"No commits on {cell.date.isoformat()}"
    noun = "commit" if cell.count == 1 else "commits"
    return f"{cell.count} {noun} on {cell.date.isoformat()}"


def _render_table(graph: Graph) -> str:
    months = graph.month_labels()
    parts: list[str] = ['<table class="activity-table">', "<thead><tr><td></td>"]
    for week in range(graph.week_count):
        parts.append(f'<td class="activity-month">{html.escape(months.get(week, ""))}</td>')
    parts.append("</tr></thead>\n<tbody>\n")

    weekday_names = graph.weekday_labels()
    for weekday in range(7):
        label = weekday_names[weekday] if weekday % 2 == 0 else ""
        parts.append(f'<tr><td class="activity-weekday">{label}</td>')
        for cell in graph.row(weekday):
            if _blank(cell):
                parts.append('<td class="blob filler-day"></td>')
                continue
            lvl = scale_level(cell.level, graph.levels, CSS_LEVELS)
            parts.append(f'<td class="blob lvl{lvl}" title="{html.escape(_tooltip(cell), quote=True)}"></td>')
        parts.append("</tr>\n")
    parts.append("</tbody></table>\n")
    return "".join(parts)


def render_html(graph: Graph, resources: ExternalResources | None = None, css_href: str | None = None) -> str:
    """
    A complete HTML document for `graph`. The stylesheet is inlined unless
    `css_href` points at a separately served/written copy of `render_css`.
    """
    res = resources or ExternalResources()
    logger.debug("rendering html...")
    if css_href:
        style = f'<link href="{html.escape(css_href, quote=True)}" rel="stylesheet">'
    else:
        style = f"<style>\n{render_css(res)}</style>"

    out = [
        "<!DOCTYPE html>\n<html>\n<head>\n",
        '<meta charset="utf-8">\n',
        '<meta name="viewport" content="width=device-width, initial-scale=1">\n',
        "<title>Activity Graph</title>\n",
        style,
        "\n",
        read_optional_file(res.head),
        "\n</head>\n<body>\n",
        read_optional_file(res.header),
        "\n",
        _render_table(graph),
        f'<p class="activity-summary">{html.escape(summary_line(graph))}</p>\n',
        read_optional_file(res.footer),
        "</body></html>\n",
    ]
    logger.debug("rendered html")
    return "".join(out)


def render_css(resources: ExternalResources | None = None) -> str:
    res = resources or ExternalResources()
    return f"{CSS}\n{read_optional_file(res.css)}"
