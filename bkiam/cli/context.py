from __future__ import annotations

import os
import sys
import time
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal
from urllib.parse import urlsplit, urlunsplit

from bkiam import IAMBackendClient
from bkiam.config import (
    ENV_APP_CODE,
    ENV_APP_SECRET,
    ENV_HOST,
    ENV_SYSTEM,
    _maybe_load_dotenv,
)
from bkiam.exceptions import (
    DecodeError,
    FieldError,
    HTTPStatusError,
    IAMError,
    PingError,
    ResponseError,
    TransportError,
)
from bkiam.hooks import ErrorInfo as HookErrorInfo
from bkiam.hooks import RequestInfo, ResponseInfo

from .errors import CLIError
from .logging import set_redaction_secret
from .results import CommandMeta, CommandResult, ErrorInfo

OutputFormat = Literal["table", "json"]


def _strip_url_query_and_fragment(url: str) -> str:
    """Keep scheme/host/path; drop query/fragment."""
    try:
        parts = urlsplit(url)
        return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    except ValueError:
        return url


def _write_trace(line: str) -> None:
    sys.stderr.write(line + "\n")
    with suppress(OSError):
        sys.stderr.flush()


def _trace_request(req: RequestInfo) -> None:
    _write_trace(f"trace -> {req.method} {_strip_url_query_and_fragment(req.url)}")


def _trace_response(res: ResponseInfo) -> None:
    url = _strip_url_query_and_fragment(res.request.url)
    _write_trace(f"trace <- {res.status_code} {url} elapsedMs={int(res.elapsed_ms)}")


def _trace_error(err: HookErrorInfo) -> None:
    url = _strip_url_query_and_fragment(err.request.url)
    _write_trace(f"trace !! {type(err.error).__name__} {url}")


@dataclass
class CLIContext:
    output: OutputFormat
    quiet: bool
    verbosity: int
    host: str | None
    system: str | None
    app_code: str | None
    app_secret: str | None
    is_api_gateway: bool
    timeout: float
    api_debug: bool | None
    api_force: bool | None
    trace: bool
    dotenv: bool = False
    env_file: Path = field(default_factory=lambda: Path(".env"))

    _client: IAMBackendClient | None = None

    def load_dotenv_if_requested(self) -> None:
        try:
            _maybe_load_dotenv(load_dotenv=self.dotenv, dotenv_path=self.env_file, override=False)
        except ImportError as exc:
            raise CLIError(
                "Optional .env support requires python-dotenv; install `bkiam-sdk[cli]`.",
            ) from exc

    def _require(self, value: str | None, *, option: str, env: str) -> str:
        if value is None or not value.strip():
            value = os.getenv(env)
        if value is None or not value.strip():
            raise CLIError(f"Missing {option}. Pass {option} or set {env}.")
        return value.strip()

    def get_client(self) -> IAMBackendClient:
        if self._client is not None:
            return self._client

        # Options already include their env vars; a .env file can still fill gaps.
        self.load_dotenv_if_requested()
        host = self._require(self.host, option="--host", env=ENV_HOST)
        system = self._require(self.system, option="--system", env=ENV_SYSTEM)
        app_code = self._require(self.app_code, option="--app-code", env=ENV_APP_CODE)
        app_secret = self._require(self.app_secret, option="--app-secret", env=ENV_APP_SECRET)
        if self.timeout <= 0:
            raise CLIError("--timeout must be > 0.")
        set_redaction_secret(app_secret)

        self._client = IAMBackendClient(
            host,
            system,
            app_code,
            app_secret,
            is_api_gateway=self.is_api_gateway,
            api_debug=self.api_debug,
            api_force=self.api_force,
            timeout=self.timeout,
            on_request=_trace_request if self.trace else None,
            on_response=_trace_response if self.trace else None,
            on_error=_trace_error if self.trace else None,
        )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


def exit_code_for_exception(exc: Exception) -> int:
    if isinstance(exc, CLIError):
        return exc.exit_code
    if isinstance(exc, (TransportError, PingError)):
        return 3
    if isinstance(exc, HTTPStatusError):
        return 4
    if isinstance(exc, ResponseError):
        return 5
    return 1


def _error_type(exc: Exception) -> str:
    if isinstance(exc, (TransportError, PingError)):
        return "network_error"
    if isinstance(exc, HTTPStatusError):
        return "http_error"
    if isinstance(exc, ResponseError):
        return "api_error"
    if isinstance(exc, (DecodeError, FieldError)):
        return "invalid_response"
    if isinstance(exc, IAMError):
        return "iam_error"
    return "internal_error"


def error_info_for_exception(exc: Exception) -> ErrorInfo:
    if isinstance(exc, CLIError):
        return ErrorInfo(
            type=exc.error_type, message=exc.message, hint=exc.hint, details=exc.details
        )
    details: dict[str, Any] | None = None
    if isinstance(exc, HTTPStatusError):
        details = {"statusCode": exc.status_code}
        if exc.response_message or exc.code:
            details.update({"code": exc.code, "message": exc.response_message})
    elif isinstance(exc, ResponseError):
        details = {"code": exc.code, "message": exc.response_message}
    return ErrorInfo(type=_error_type(exc), message=str(exc), details=details)


def build_result(
    *,
    ok: bool,
    command: str,
    started_at: float,
    data: Any | None,
    warnings: list[str],
    ctx: CLIContext,
    error: ErrorInfo | None = None,
) -> CommandResult:
    duration_ms = int(max(0.0, (time.time() - started_at) * 1000))
    meta = CommandMeta(duration_ms=duration_ms, host=ctx.host, system=ctx.system)
    return CommandResult(
        ok=ok,
        command=command,
        data=data,
        warnings=warnings,
        meta=meta,
        error=error,
    )
