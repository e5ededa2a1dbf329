from __future__ import annotations

import json
import logging

import httpx
import pytest

from bkiam import (
    DecodeError,
    ErrorInfo,
    HTTPStatusError,
    IAMBackendClient,
    IAMError,
    PingError,
    RequestDataError,
    RequestInfo,
    ResponseError,
    ResponseInfo,
    TransportError,
)
from bkiam.clients.http import ClientConfig, HTTPClient, query_params
from bkiam.envelope import LIST_MAP_SHAPE, MAP_SHAPE


def _client(handler, **kwargs) -> IAMBackendClient:
    kwargs.setdefault("api_debug", False)
    kwargs.setdefault("api_force", False)
    return IAMBackendClient(
        "https://iam.example/",
        "demo",
        "bk_sops",
        "s3cr3t",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _ok(data: object) -> httpx.Response:
    return httpx.Response(200, json={"code": 0, "message": "ok", "data": data})


def test_success_decodes_data_into_mapping() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok({"allowed": True, "nested": {"ids": [1, 2]}})

    client = _client(handler)
    try:
        assert client.policy_auth({"system": "demo"}) == {
            "allowed": True,
            "nested": {"ids": [1, 2]},
        }
    finally:
        client.close()


def test_nonzero_code_raises_response_error_with_code_and_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"code": 1901404, "message": "system demo not exists", "data": None}
        )

    client = _client(handler)
    try:
        with pytest.raises(ResponseError) as exc_info:
            client.policy_query({"system": "demo"})
    finally:
        client.close()

    assert exc_info.value.code == 1901404
    assert exc_info.value.response_message == "system demo not exists"
    assert "1901404" in str(exc_info.value)
    assert "system demo not exists" in str(exc_info.value)


def test_non_200_includes_envelope_message_when_present() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            401, json={"code": 1901401, "message": "app code or secret wrong", "data": {}}
        )

    client = _client(handler)
    try:
        with pytest.raises(HTTPStatusError) as exc_info:
            client.policy_query({})
    finally:
        client.close()

    err = exc_info.value
    assert err.status_code == 401
    assert err.code == 1901401
    assert err.response_message == "app code or secret wrong"
    assert "401" in str(err)
    assert "app code or secret wrong" in str(err)


def test_non_200_without_envelope_still_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    client = _client(handler)
    try:
        with pytest.raises(HTTPStatusError) as exc_info:
            client.policy_get(1)
    finally:
        client.close()

    assert exc_info.value.status_code == 502
    assert exc_info.value.code is None
    assert exc_info.value.response_message is None


def test_non_200_with_success_code_is_still_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"code": 0, "message": "", "data": {"allowed": True}})

    client = _client(handler)
    try:
        with pytest.raises(HTTPStatusError):
            client.policy_auth({})
    finally:
        client.close()


def test_transport_failure_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    try:
        with pytest.raises(TransportError) as exc_info:
            client.policy_auth({})
    finally:
        client.close()

    assert exc_info.value.method == "POST"
    assert exc_info.value.url == "https://iam.example/api/v1/policy/auth"
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_wrong_data_shape_raises_decode_error_with_raw_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok([{"id": 1}])

    client = _client(handler)
    try:
        with pytest.raises(DecodeError) as exc_info:
            client.policy_get(1)
    finally:
        client.close()

    assert exc_info.value.data == [{"id": 1}]


def test_body_that_is_not_an_envelope_raises_decode_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    client = _client(handler)
    try:
        with pytest.raises(DecodeError):
            client.policy_auth({})
    finally:
        client.close()


def test_null_data_decodes_to_empty_containers() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok(None)

    client = _client(handler)
    try:
        assert client.policy_auth({}) == {}
        assert client.policy_query_by_actions({}) == []
    finally:
        client.close()


def test_get_sends_mapping_as_query_and_post_sends_json_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _ok({})

    client = _client(handler)
    try:
        client.policy_list({"action_id": "view", "page": 2, "timestamp": None})
        client.policy_auth({"system": "demo", "action": {"id": "view"}})
    finally:
        client.close()

    get_req, post_req = seen
    assert get_req.method == "GET"
    assert dict(get_req.url.params) == {"action_id": "view", "page": "2"}
    assert get_req.content == b""
    assert post_req.method == "POST"
    assert post_req.headers["content-type"] == "application/json"
    assert json.loads(post_req.content) == {
        "system": "demo",
        "action": {"id": "view"},
    }


@pytest.mark.parametrize(
    ("api_debug", "api_force", "expected"),
    [
        (False, False, {}),
        (True, False, {"debug": "true"}),
        (False, True, {"force": "true"}),
        (True, True, {"debug": "true", "force": "true"}),
    ],
)
def test_debug_and_force_flags_control_query_string(
    api_debug: bool, api_force: bool, expected: dict[str, str]
) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _ok({})

    client = _client(handler, api_debug=api_debug, api_force=api_force)
    try:
        client.policy_auth({})
        client.policy_get(1)
    finally:
        client.close()

    for request in seen:
        assert dict(request.url.params) == expected


def test_per_call_timeout_and_zero_fallback() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _ok({})

    client = _client(handler)
    try:
        client.policy_auth({})
        client.policy_auth({}, timeout=3)
        client.policy_auth({}, timeout=0)
    finally:
        client.close()

    reads = [request.extensions["timeout"]["read"] for request in seen]
    assert reads == [10.0, 3.0, 5.0]


def test_client_timeout_is_the_default_for_every_call() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _ok({})

    client = _client(handler, timeout=30)
    try:
        client.policy_auth({})
        client.policies.get(1)
        client.policy_auth({}, timeout=3)
    finally:
        client.close()

    reads = [request.extensions["timeout"]["read"] for request in seen]
    assert reads == [30.0, 30.0, 3.0]


def test_host_trailing_slash_is_trimmed() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return _ok({})

    client = _client(handler)
    try:
        assert client.config.host == "https://iam.example"
        client.policy_auth({})
    finally:
        client.close()

    assert seen == ["https://iam.example/api/v1/policy/auth"]


def test_ping_ignores_payload_and_sends_no_credentials() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="pong")

    client = _client(handler)
    try:
        client.ping()
    finally:
        client.close()

    assert seen[0].url.path == "/ping"
    assert "X-BK-APP-SECRET" not in seen[0].headers


@pytest.mark.parametrize("status", [404, 500, 503])
def test_ping_non_200_raises(status: int) -> None:
    client = _client(lambda request: httpx.Response(status, json={"code": 0}))
    try:
        with pytest.raises(PingError) as exc_info:
            client.ping()
    finally:
        client.close()
    assert exc_info.value.status_code == status


def test_ping_transport_failure_raises_ping_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = _client(handler)
    try:
        with pytest.raises(PingError, match="ping fail"):
            client.ping()
    finally:
        client.close()


def test_hooks_observe_requests_responses_and_errors() -> None:
    events: list[object] = []
    responses = iter(
        [
            _ok({}),
            httpx.Response(403, json={"code": 1, "message": "denied"}),
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/ping":
            raise httpx.ReadError("reset", request=request)
        return next(responses)

    client = _client(
        handler,
        is_api_gateway=True,
        on_request=events.append,
        on_response=events.append,
        on_error=events.append,
    )
    try:
        client.policy_auth({})
        with pytest.raises(HTTPStatusError):
            client.policy_auth({})
        with pytest.raises(PingError):
            client.ping()
    finally:
        client.close()

    kinds = [type(e).__name__ for e in events]
    assert kinds == [
        "RequestInfo",
        "ResponseInfo",
        "RequestInfo",
        "ResponseInfo",
        "RequestInfo",
        "ErrorInfo",
    ]
    first = events[0]
    assert isinstance(first, RequestInfo)
    assert first.service == "IAMBackend"
    assert first.headers["X-Bkapi-Authorization"] == "[REDACTED]"
    second = events[3]
    assert isinstance(second, ResponseInfo)
    assert second.status_code == 403
    assert second.elapsed_ms >= 0
    last = events[5]
    assert isinstance(last, ErrorInfo)
    assert isinstance(last.error, TransportError)


def test_debug_logging_never_contains_the_secret(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"code": 1, "message": "bad request"})

    client = _client(handler, is_api_gateway=True)
    try:
        with caplog.at_level(logging.DEBUG, logger="bkiam"), pytest.raises(HTTPStatusError):
            client.policy_auth({"system": "demo"})
    finally:
        client.close()

    assert "do http request" in caplog.text
    assert "http request fail" in caplog.text
    assert "s3cr3t" not in caplog.text


def test_http_client_call_accepts_shapes_directly() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/list":
            return _ok([{"id": 1}, {"id": 2}])
        return _ok({"id": 1})

    http = HTTPClient(
        ClientConfig(
            host="https://iam.example",
            system="demo",
            app_code="c",
            app_secret="s",
            transport=httpx.MockTransport(handler),
        )
    )
    try:
        assert http.call("GET", "/list", None, 1, LIST_MAP_SHAPE) == [{"id": 1}, {"id": 2}]
        assert http.call("GET", "/one", None, 1, MAP_SHAPE) == {"id": 1}
    finally:
        http.close()


def test_query_params_flattening() -> None:
    assert query_params(None) == []
    assert query_params({"a": True, "b": False, "c": None, "d": [1, 2], "e": 3}) == [
        ("a", "true"),
        ("b", "false"),
        ("d", "1"),
        ("d", "2"),
        ("e", "3"),
    ]
    with pytest.raises(RequestDataError):
        query_params(["not", "a", "mapping"])


def test_non_mapping_query_data_raises_sdk_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = _client(handler)
    try:
        with pytest.raises(IAMError) as exc_info:
            client.policy_list(["action_id", "view"])  # type: ignore[arg-type]
    finally:
        client.close()

    assert isinstance(exc_info.value, RequestDataError)
    assert "must be a mapping" in str(exc_info.value)


def test_non_200_keeps_nonzero_code_without_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"code": 1902500, "message": "", "data": None})

    client = _client(handler)
    try:
        with pytest.raises(HTTPStatusError) as exc_info:
            client.policy_auth({})
    finally:
        client.close()

    err = exc_info.value
    assert err.status_code == 500
    assert err.code == 1902500
    assert "1902500" in str(err)
