"""Results of checking a topic against its config, and their table rendering."""

from __future__ import annotations

import re
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

LEFT = "left"
CENTER = "center"
RIGHT = "right"
_ALIGNMENTS = (LEFT, CENTER, RIGHT)

_ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")
_RED = "\x1b[31m"
_RESET = "\x1b[0m"

OK_MARK = "✓"
FAIL_MARK = "✗"


class CheckName(str, Enum):
    """The name of a single topic check."""

    CONFIGS_CONSISTENT = "configs consistent"
    CONFIG_CORRECT = "config correct"
    CONFIG_SETTINGS_CORRECT = "config settings correct"
    LEADERS_CORRECT = "leaders correct"
    PARTITION_COUNT_CORRECT = "partition count correct"
    REPLICAS_IN_SYNC = "replicas in-sync"
    REPLICATION_FACTOR_CORRECT = "replication factor correct"
    THROTTLES_CLEAR = "throttles clear"
    TOPIC_EXISTS = "topic exists"

    def __str__(self) -> str:
        return self.value


@dataclass
class TopicCheckResult:
    """The name and status of a single check."""

    name: CheckName
    ok: bool = False
    description: str = ""


@dataclass
class TopicCheckResults:
    """The results of checking a single topic, in the order they were run."""

    results: list[TopicCheckResult] = field(default_factory=list)

    def all_ok(self) -> bool:
        """Return whether every check passed."""
        return all(result.ok for result in self.results)

    def append_result(self, result: TopicCheckResult) -> None:
        """Add a new check result."""
        self.results.append(result)

    def update_last_result(self, ok: bool, description: str) -> None:
        """Set the status and details of the most recently added result."""
        if not self.results:
            raise IndexError("There is no result to update")
        last = self.results[-1]
        last.ok = ok
        last.description = description


def _visible_len(text: str) -> int:
    return len(_ANSI_PATTERN.sub("", text))


def _pad(text: str, width: int, alignment: str) -> str:
    gap = width - _visible_len(text)
    if alignment == RIGHT:
        return " " * gap + text
    if alignment == CENTER:
        left = gap // 2
        return " " * left + text + " " * (gap - left)
    return text + " " * gap


def _format_row(cells: Sequence[str], widths: Sequence[int], aligns: Sequence[str]) -> str:
    return "|".join(
        f" {_pad(cell, width, align)} " for cell, width, align in zip(cells, widths, aligns)
    )


def render_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    alignments: Sequence[str] | None = None,
) -> str:
    """Render a table with top and bottom borders but no side borders.

    Headers are upper-cased and centred; cells are aligned per column with
    "left", "center" or "right". Colour codes do not count towards widths.
    """
    count = len(headers)
    aligns = list(alignments) if alignments is not None else [LEFT] * count
    if len(aligns) != count:
        raise ValueError(f"Expected {count} alignments, got {len(aligns)}")
    for align in aligns:
        if align not in _ALIGNMENTS:
            raise ValueError(f"Unknown alignment: {align}")
    for row in rows:
        if len(row) != count:
            raise ValueError(f"Expected {count} cells in row, got {len(row)}: {list(row)}")

    header_cells = [header.upper() for header in headers]
    widths = [
        max(_visible_len(cell) for cell in column)
        for column in zip(header_cells, *rows)
    ]
    separator = "+".join("-" * (width + 2) for width in widths)

    lines = [separator, _format_row(header_cells, widths, [CENTER] * count), separator]
    lines.extend(_format_row(row, widths, aligns) for row in rows)
    lines.append(separator)
    return "\n".join(lines)


def format_results(results: TopicCheckResults, colorize: bool | None = None) -> str:
    """Render check results as a table; failed checks are red when colorizing.

    When colorize is None, colour is used only if stdout is a terminal.
    """
    if colorize is None:
        colorize = sys.stdout.isatty()

    rows = []
    for result in results.results:
        cells = [str(result.name), OK_MARK if result.ok else FAIL_MARK, result.description]
        if colorize and not result.ok:
            cells = [f"{_RED}{cell}{_RESET}" for cell in cells]
        rows.append(cells)

    return render_table(["Name", "OK", "Details"], rows, [LEFT, CENTER, LEFT])