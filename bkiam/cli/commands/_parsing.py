from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from ..errors import CLIError


def parse_json_value(value: str, *, label: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise CLIError(
            f"Invalid JSON for {label}.",
            hint='Provide a JSON object, e.g. {"system": "bk_sops", "action": {"id": "view"}}.',
        ) from exc


def read_json_body(value: str, *, label: str = "BODY") -> Any:
    """
    Read a request body given inline, as `@path`, or as `-` (stdin).

    The body must decode to a JSON object.
    """
    if value == "-":
        raw = sys.stdin.read()
    elif value.startswith("@"):
        path = Path(value[1:])
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CLIError(f"Cannot read {label} file: {path}", error_type="io_error") from exc
    else:
        raw = value

    body = parse_json_value(raw, label=label)
    if not isinstance(body, dict):
        raise CLIError(f"{label} must be a JSON object.")
    return body


def parse_params(values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated `key=value` options into a mapping."""
    params: dict[str, str] = {}
    for item in values:
        key, sep, val = item.partition("=")
        if not sep or not key.strip():
            raise CLIError(f"Invalid --param: {item}", hint="Use key=value, e.g. --param page=1.")
        params[key.strip()] = val
    return params
