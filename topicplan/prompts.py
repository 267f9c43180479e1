"""Asking the user for confirmation, and tables that show config differences."""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Mapping, Sequence
from typing import Any, TextIO

from topicplan.checks import LEFT, render_table

logger = logging.getLogger(__name__)

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_MS_PER_MINUTE = 60000


def confirm(
    prompt: str,
    skip: bool,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> bool:
    """Show the prompt and return whether the user answered "yes".

    Raises EOFError if no answer can be read.
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    stdout.write(f"{prompt} (yes/no) ")
    stdout.flush()

    if skip:
        logger.info("Automatically answering yes because skip is set to true")
        return True

    line = stdin.readline()
    if not line:
        logger.warning("Got error reading response, not continuing")
        raise EOFError("No response to confirmation prompt")

    if line.strip().lower() != "yes":
        logger.info("Not continuing")
        return False
    return True


def time_suffix(ms_str: str) -> str:
    """Return a " (N min)" suffix for a whole, non-zero number of minutes in ms."""
    if not _INT_PATTERN.fullmatch(ms_str):
        return ""
    ms = int(ms_str)
    if ms < _MS_PER_MINUTE or ms % _MS_PER_MINUTE != 0:
        return ""
    return f" ({ms // _MS_PER_MINUTE} min)"


def _with_time_suffix(key: str, value: str) -> str:
    if key.endswith(".ms"):
        return f"{value}{time_suffix(value)}"
    return value


def _setting_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_setting_str(item) for item in value)
    return str(value)


def format_settings_diff(
    settings: Mapping[str, Any],
    config_map: Mapping[str, str],
    diff_keys: Sequence[str],
) -> str:
    """Render a table of keys whose cluster and configured values differ."""
    rows = []
    for key in diff_keys:
        cluster_value = config_map.get(key, "")
        config_value = _setting_str(settings[key]) if key in settings else ""
        rows.append(
            [
                key,
                _with_time_suffix(key, cluster_value),
                _with_time_suffix(key, config_value),
            ]
        )
    return render_table(
        ["Key", "Cluster Value (Curr)", "Config Value (New)"],
        rows,
        [LEFT, LEFT, LEFT],
    )


def format_missing_keys(config_map: Mapping[str, str], missing_keys: Sequence[str]) -> str:
    """Render a table of keys set in the cluster but missing from the topic config."""
    rows = [
        [key, _with_time_suffix(key, config_map.get(key, ""))] for key in missing_keys
    ]
    return render_table(["Key", "Cluster Value"], rows, [LEFT, LEFT])