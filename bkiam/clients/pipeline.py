"""
Request pipeline used by the IAM HTTP clients.

A request passes through each middleware in order and ends at the transport
terminal. Middlewares observe or wrap the call; they return the terminal's
response or raise.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from functools import partial, reduce
from typing import Any, Literal, Protocol, TypeAlias

Header: TypeAlias = tuple[str, str]
QueryParam: TypeAlias = tuple[str, str]
Method: TypeAlias = Literal["GET", "POST"]


@dataclass(slots=True)
class SDKRequest:
    """One backend call, before it is handed to httpx."""

    method: Method
    url: str
    headers: list[Header] = field(default_factory=list)
    params: list[QueryParam] = field(default_factory=list)
    json: Any | None = None
    timeout: float | None = None


@dataclass(slots=True)
class SDKResponse:
    status_code: int
    headers: list[Header]
    content: bytes
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        # The backend signals success with exactly 200; other 2xx codes are failures.
        return self.status_code == 200


Pipeline: TypeAlias = Callable[[SDKRequest], SDKResponse]
AsyncPipeline: TypeAlias = Callable[[SDKRequest], Awaitable[SDKResponse]]


class Middleware(Protocol):
    def __call__(self, req: SDKRequest, next: Pipeline) -> SDKResponse: ...


class AsyncMiddleware(Protocol):
    async def __call__(self, req: SDKRequest, next: AsyncPipeline) -> SDKResponse: ...


def compose(middlewares: Sequence[Middleware], terminal: Pipeline) -> Pipeline:
    """Wrap `terminal` so that `middlewares[0]` runs outermost."""
    return reduce(lambda inner, mw: partial(mw, next=inner), reversed(middlewares), terminal)


def compose_async(middlewares: Sequence[AsyncMiddleware], terminal: AsyncPipeline) -> AsyncPipeline:
    return reduce(lambda inner, mw: partial(mw, next=inner), reversed(middlewares), terminal)
