"""
HTTP clients for the IAM backend.

`HTTPClient` and `AsyncHTTPClient` share request construction and envelope
handling; they differ only in the `httpx` client that terminates the pipeline.

A call is a single linear pass:

    build request -> attach headers -> transport -> check status
    -> validate envelope -> decode `data` into the requested shape

Nothing is retried. Every failure is raised as an `IAMError` subclass.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from ..auth import CredentialAttacher, credentials_for, redact_headers
from ..config import BK_IAM_VERSION, DEFAULT_CALL_TIMEOUT, DEFAULT_TIMEOUT, IAM_VERSION_HEADER
from ..envelope import Shape, decode_data, parse_envelope, try_parse_envelope
from ..exceptions import HTTPStatusError, IAMError, PingError, RequestDataError, TransportError
from ..hooks import ErrorHook, ErrorInfo, RequestHook, RequestInfo, ResponseHook, ResponseInfo
from .pipeline import (
    AsyncMiddleware,
    AsyncPipeline,
    Method,
    Middleware,
    Pipeline,
    SDKRequest,
    SDKResponse,
    compose,
    compose_async,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_BODY_LOG_LIMIT = 2048


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """
    Immutable client configuration.

    `api_debug` / `api_force` are plain values here; `IAMBackendClient` fills
    them from the environment when the caller does not pass them.
    """

    host: str
    system: str
    app_code: str
    app_secret: str
    is_api_gateway: bool = False
    api_debug: bool = False
    api_force: bool = False
    timeout: float = DEFAULT_CALL_TIMEOUT
    transport: httpx.BaseTransport | None = None
    async_transport: httpx.AsyncBaseTransport | None = None
    on_request: RequestHook | None = None
    on_response: ResponseHook | None = None
    on_error: ErrorHook | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "host", self.host.rstrip("/"))

    def __repr__(self) -> str:
        return (
            f"ClientConfig(host={self.host!r}, system={self.system!r}, "
            f"app_code={self.app_code!r}, is_api_gateway={self.is_api_gateway!r}, "
            f"api_debug={self.api_debug!r}, api_force={self.api_force!r})"
        )


# =============================================================================
# Request helpers
# =============================================================================


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def query_params(data: Any) -> list[tuple[str, str]]:
    """
    Flatten a mapping into query parameters.

    `None` values are dropped and sequences become repeated keys.
    """
    if data is None:
        return []
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, exclude_none=True)
    if not isinstance(data, Mapping):
        raise RequestDataError(f"query data must be a mapping, got {type(data).__name__}")

    params: list[tuple[str, str]] = []
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            params.extend((str(key), _query_value(item)) for item in value)
        else:
            params.append((str(key), _query_value(value)))
    return params


def json_body(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json", exclude_none=True)
    return data


def _truncate(content: bytes) -> str:
    text = content.decode("utf-8", errors="replace")
    if len(text) > _BODY_LOG_LIMIT:
        return text[:_BODY_LOG_LIMIT] + "...(truncated)"
    return text


def _elapsed_ms(started: float) -> float:
    return (time.monotonic() - started) * 1000


# =============================================================================
# Observation middleware (debug logging + hooks)
# =============================================================================


class _Observer:
    def __init__(self, config: ClientConfig):
        self._on_request = config.on_request
        self._on_response = config.on_response
        self._on_error = config.on_error

    def start(self, req: SDKRequest) -> tuple[RequestInfo, float]:
        url = str(httpx.URL(req.url, params=req.params)) if req.params else req.url
        info = RequestInfo(method=req.method, url=url, headers=redact_headers(req.headers))
        logger.debug(
            "do http request: method=`%s`, url=`%s`, data=`%s`", req.method, url, req.json
        )
        if self._on_request is not None:
            self._on_request(info)
        return info, time.monotonic()

    def finish(self, info: RequestInfo, started: float, resp: SDKResponse) -> None:
        elapsed = _elapsed_ms(started)
        resp.elapsed_ms = elapsed
        logger.debug("http request took %.1f ms", elapsed)
        logger.debug(
            "http response: status_code=%s, body=%s", resp.status_code, _truncate(resp.content)
        )
        if self._on_response is not None:
            self._on_response(
                ResponseInfo(status_code=resp.status_code, elapsed_ms=elapsed, request=info)
            )

    def fail(self, info: RequestInfo, started: float, error: BaseException) -> None:
        elapsed = _elapsed_ms(started)
        logger.warning(
            "http request fail: method=`%s`, url=`%s`, took=%.1fms, error=`%s`",
            info.method,
            info.url,
            elapsed,
            error,
        )
        if self._on_error is not None:
            self._on_error(ErrorInfo(error=error, elapsed_ms=elapsed, request=info))


def _observing(observer: _Observer) -> Middleware:
    def middleware(req: SDKRequest, next: Pipeline) -> SDKResponse:
        info, started = observer.start(req)
        try:
            resp = next(req)
        except IAMError as e:
            observer.fail(info, started, e)
            raise
        observer.finish(info, started, resp)
        return resp

    return middleware


def _observing_async(observer: _Observer) -> AsyncMiddleware:
    async def middleware(req: SDKRequest, next: AsyncPipeline) -> SDKResponse:
        info, started = observer.start(req)
        try:
            resp = await next(req)
        except IAMError as e:
            observer.fail(info, started, e)
            raise
        observer.finish(info, started, resp)
        return resp

    return middleware


# =============================================================================
# Shared request construction / response handling
# =============================================================================


class _BaseHTTPClient:
    def __init__(self, config: ClientConfig):
        self._config = config
        self._credentials: CredentialAttacher = credentials_for(
            config.is_api_gateway, config.app_code, config.app_secret
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def credentials(self) -> CredentialAttacher:
        return self._credentials

    def build_request(
        self, method: Method, path: str, data: Any, timeout: float | None
    ) -> SDKRequest:
        """
        Build an authenticated request.

        GET data becomes the query string; POST data becomes the JSON body.
        `None` uses the configured client timeout; 0 falls back to `DEFAULT_TIMEOUT`.
        """
        headers = [(IAM_VERSION_HEADER, BK_IAM_VERSION), *self._credentials.headers()]
        if method == "GET":
            params = query_params(data)
            body = None
        else:
            params = []
            body = json_body(data)

        if self._config.api_debug:
            params.append(("debug", "true"))
        if self._config.api_force:
            params.append(("force", "true"))

        return SDKRequest(
            method=method,
            url=f"{self._config.host}{path}",
            headers=headers,
            params=params,
            json=body,
            timeout=self._resolve_timeout(timeout),
        )

    def _resolve_timeout(self, timeout: float | None) -> float:
        if timeout is None:
            timeout = self._config.timeout
        return float(timeout) if timeout else DEFAULT_TIMEOUT

    def ping_request(self) -> SDKRequest:
        return SDKRequest(method="GET", url=f"{self._config.host}/ping", timeout=DEFAULT_TIMEOUT)

    def handle_response(self, req: SDKRequest, resp: SDKResponse, shape: Shape[T]) -> T:
        if not resp.ok:
            envelope = try_parse_envelope(resp.content)
            self._log_failure(req, resp)
            if envelope is not None and (envelope.message or envelope.code != 0):
                raise HTTPStatusError(
                    resp.status_code, code=envelope.code, response_message=envelope.message
                )
            raise HTTPStatusError(resp.status_code)

        try:
            envelope = parse_envelope(resp.content)
        except IAMError:
            self._log_failure(req, resp)
            raise
        logger.debug("http request result: %s", envelope)

        error = envelope.error()
        if error is not None:
            self._log_failure(req, resp)
            raise error
        return decode_data(envelope.data, shape)

    @staticmethod
    def check_ping(resp: SDKResponse) -> None:
        if not resp.ok:
            raise PingError(
                f"ping fail! status_code={resp.status_code}", status_code=resp.status_code
            )

    @staticmethod
    def _log_failure(req: SDKRequest, resp: SDKResponse) -> None:
        logger.warning(
            "http request fail: method=`%s`, url=`%s`, status_code=%s, body=`%s`",
            req.method,
            req.url,
            resp.status_code,
            _truncate(resp.content),
        )


def _transport_error(req: SDKRequest, exc: Exception) -> TransportError:
    return TransportError(
        f"http request errors=`{exc!r}`",
        method=req.method,
        url=req.url,
    )


# =============================================================================
# Sync client
# =============================================================================


class HTTPClient(_BaseHTTPClient):
    """Synchronous dispatcher built on `httpx.Client`."""

    def __init__(self, config: ClientConfig):
        super().__init__(config)
        self._http = httpx.Client(timeout=config.timeout, transport=config.transport)
        self._pipeline: Pipeline = compose([_observing(_Observer(config))], self._send)

    def _send(self, req: SDKRequest) -> SDKResponse:
        try:
            response = self._http.request(
                req.method,
                req.url,
                headers=req.headers,
                params=req.params or None,
                json=req.json,
                timeout=req.timeout if req.timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as e:
            raise _transport_error(req, e) from e
        return SDKResponse(
            status_code=response.status_code,
            headers=list(response.headers.items()),
            content=response.content,
        )

    def call(
        self,
        method: Method,
        path: str,
        data: Any,
        timeout: float | None,
        shape: Shape[T],
    ) -> T:
        """
        Send one request and decode its envelope payload into `shape`.

        Raises:
            TransportError: The request did not complete.
            HTTPStatusError: The status was not 200.
            ResponseError: The envelope code was not 0.
            DecodeError: The body or payload had an unexpected shape.
        """
        req = self.build_request(method, path, data, timeout)
        resp = self._pipeline(req)
        return self.handle_response(req, resp, shape)

    def ping(self) -> None:
        try:
            resp = self._pipeline(self.ping_request())
        except TransportError as e:
            raise PingError(f"ping fail! errs={e}") from e
        self.check_ping(resp)

    def close(self) -> None:
        self._http.close()


# =============================================================================
# Async client
# =============================================================================


class AsyncHTTPClient(_BaseHTTPClient):
    """Asynchronous dispatcher built on `httpx.AsyncClient`."""

    def __init__(self, config: ClientConfig):
        super().__init__(config)
        self._http = httpx.AsyncClient(timeout=config.timeout, transport=config.async_transport)
        self._pipeline: AsyncPipeline = compose_async(
            [_observing_async(_Observer(config))], self._send
        )

    async def _send(self, req: SDKRequest) -> SDKResponse:
        try:
            response = await self._http.request(
                req.method,
                req.url,
                headers=req.headers,
                params=req.params or None,
                json=req.json,
                timeout=req.timeout if req.timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as e:
            raise _transport_error(req, e) from e
        return SDKResponse(
            status_code=response.status_code,
            headers=list(response.headers.items()),
            content=response.content,
        )

    async def call(
        self,
        method: Method,
        path: str,
        data: Any,
        timeout: float | None,
        shape: Shape[T],
    ) -> T:
        req = self.build_request(method, path, data, timeout)
        resp = await self._pipeline(req)
        return self.handle_response(req, resp, shape)

    async def ping(self) -> None:
        try:
            resp = await self._pipeline(self.ping_request())
        except TransportError as e:
            raise PingError(f"ping fail! errs={e}") from e
        self.check_ping(resp)

    async def close(self) -> None:
        await self._http.aclose()
