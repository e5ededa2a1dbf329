"""
Configuration constants and environment-derived settings.

Process environment is read here, once, when a client is built. Request
construction only ever looks at the resulting configuration.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

BK_IAM_VERSION = "1"
IAM_VERSION_HEADER = "X-Bk-IAM-Version"

# Used when a call passes timeout=0 and for /ping.
DEFAULT_TIMEOUT = 5.0
# Default client timeout; endpoint calls use it unless they pass their own.
DEFAULT_CALL_TIMEOUT = 10.0

ENV_HOST = "BKIAM_HOST"
ENV_SYSTEM = "BKIAM_SYSTEM"
ENV_APP_CODE = "BKIAM_APP_CODE"
ENV_APP_SECRET = "BKIAM_APP_SECRET"
ENV_API_GATEWAY = "BKIAM_API_GATEWAY"

_DEBUG_VARS = ("IAM_API_DEBUG", "BKAPP_IAM_API_DEBUG")
_FORCE_VARS = ("IAM_API_FORCE", "BKAPP_IAM_API_FORCE")


def _any_true(environ: Mapping[str, str], names: tuple[str, ...]) -> bool:
    return any(environ.get(name) == "true" for name in names)


@dataclass(frozen=True, slots=True)
class ApiFlags:
    """
    Passthrough flags appended to every request as query parameters.

    Attributes:
        debug: add `debug=true` (the backend returns evaluation details)
        force: add `force=true` (the backend bypasses its caches)
    """

    debug: bool = False
    force: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ApiFlags:
        env = os.environ if environ is None else environ
        return cls(debug=_any_true(env, _DEBUG_VARS), force=_any_true(env, _FORCE_VARS))


def env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _maybe_load_dotenv(
    *,
    load_dotenv: bool,
    dotenv_path: str | os.PathLike[str] | None = None,
    override: bool = False,
) -> None:
    """Load a `.env` file when asked; python-dotenv is an optional dependency."""
    if not load_dotenv:
        return
    try:
        import dotenv  # pyright: ignore[reportMissingImports]
    except ImportError as e:
        raise ImportError(
            "Optional .env support requires python-dotenv; install `bkiam-sdk[cli]`."
        ) from e
    path = Path(dotenv_path) if dotenv_path is not None else None
    dotenv.load_dotenv(dotenv_path=path, override=override)
