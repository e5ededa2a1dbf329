"""
CLI logging setup.

Log records go to stderr through rich. Any occurrence of the app secret in a
formatted record is replaced before it is emitted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.logging import RichHandler

_REDACTED = "[REDACTED]"
_secrets: set[str] = set()


def set_redaction_secret(secret: str | None) -> None:
    if secret:
        _secrets.add(secret)


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not _secrets:
            return True
        message = record.getMessage()
        redacted = message
        for secret in _secrets:
            redacted = redacted.replace(secret, _REDACTED)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


@dataclass(frozen=True, slots=True)
class PreviousLogging:
    level: int
    handlers: list[logging.Handler]


def _level_for(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(
    *, verbosity: int, secret_for_redaction: str | None = None
) -> PreviousLogging:
    """Install a stderr handler on the `bkiam` logger; returns what to restore."""
    set_redaction_secret(secret_for_redaction)
    root = logging.getLogger("bkiam")
    previous = PreviousLogging(level=root.level, handlers=list(root.handlers))

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=False,
    )
    handler.addFilter(RedactingFilter())
    root.handlers = [handler]
    root.setLevel(_level_for(verbosity))
    return previous


def restore_logging(previous: PreviousLogging) -> None:
    root = logging.getLogger("bkiam")
    root.handlers = previous.handlers
    root.setLevel(previous.level)
    _secrets.clear()
