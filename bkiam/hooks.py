"""
Request observation hooks.

Hooks receive lightweight, already-sanitized views of each request. They are the
place to record latency metrics or trace traffic; they cannot modify requests.
Credential headers are redacted before a hook ever sees them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

SERVICE_NAME = "IAMBackend"


@dataclass(frozen=True, slots=True)
class RequestInfo:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    service: str = SERVICE_NAME


@dataclass(frozen=True, slots=True)
class ResponseInfo:
    status_code: int
    elapsed_ms: float
    request: RequestInfo


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    error: BaseException
    elapsed_ms: float
    request: RequestInfo


RequestHook = Callable[[RequestInfo], None]
ResponseHook = Callable[[ResponseInfo], None]
ErrorHook = Callable[[ErrorInfo], None]


__all__ = [
    "SERVICE_NAME",
    "ErrorHook",
    "ErrorInfo",
    "RequestHook",
    "RequestInfo",
    "ResponseHook",
    "ResponseInfo",
]
