"""
Human and JSON rendering for command results.

Backend payloads come in two shapes: a single object (policy, decision,
token) and a list of objects (subjects, expressions per action). Objects
render as a field/value table, lists as one row per item.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Any

from rich.console import Console, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .results import CommandResult, ErrorInfo

_ERROR_TITLES = {
    "usage_error": "Usage error",
    "io_error": "File error",
    "network_error": "Network error",
    "http_error": "HTTP error",
    "api_error": "API error",
    "invalid_response": "Invalid response",
    "iam_error": "IAM error",
    "internal_error": "Internal error",
}


@dataclass(frozen=True, slots=True)
class RenderSettings:
    output: str
    quiet: bool
    verbosity: int


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (dict, list)):
        # Nested structures (resource instances, expression trees) stay compact.
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def _pretty_json(value: Any) -> Panel:
    return Panel.fit(Text(json.dumps(value, ensure_ascii=False, indent=2)))


def _object_table(obj: dict[str, Any]) -> Table:
    table = Table("field", "value", header_style="bold")
    for key, value in obj.items():
        table.add_row(str(key), _cell(value))
    return table


def _rows_table(rows: list[dict[str, Any]]) -> Table:
    columns = list(dict.fromkeys(str(key) for row in rows for key in row))
    table = Table(*(columns or ["result"]), header_style="bold")
    if not rows:
        table.add_row("No results")
    for row in rows:
        table.add_row(*(_cell(row.get(column)) for column in columns))
    return table


def _renderable(data: Any, *, verbosity: int) -> RenderableType | None:
    if data is None:
        return None
    if isinstance(data, str):
        return Text(data)
    if isinstance(data, dict):
        return _pretty_json(data) if verbosity >= 1 else _object_table(data)
    if isinstance(data, list) and all(isinstance(row, dict) for row in data):
        return _rows_table(data)
    return Text(json.dumps(data, ensure_ascii=False))


def _render_error(
    console: Console, error: ErrorInfo, *, command: str, settings: RenderSettings
) -> None:
    console.print(f"{_ERROR_TITLES.get(error.type, 'Error')}: {error.message}", markup=False)
    if settings.quiet:
        return
    if error.hint:
        console.print(f"Hint: {error.hint}", markup=False)
    elif error.type == "usage_error" and not error.message.startswith("Missing"):
        console.print(f"Hint: run `bkiam {command} --help`", markup=False)
    if error.details and settings.verbosity >= 1:
        console.print(_pretty_json(error.details))


def render_result(result: CommandResult, *, settings: RenderSettings) -> None:
    if settings.output == "json":
        payload = result.model_dump(by_alias=True, mode="json")
        sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
        return

    if not result.ok:
        stderr = Console(file=sys.stderr, force_terminal=False)
        if result.error is None:
            stderr.print("Error")
        else:
            _render_error(stderr, result.error, command=result.command, settings=settings)
        return

    renderable = _renderable(result.data, verbosity=settings.verbosity)
    if renderable is not None:
        Console(file=sys.stdout, force_terminal=False).print(renderable)
