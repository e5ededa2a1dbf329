from __future__ import annotations

import httpx
import pytest

from bkiam import ApiFlags, IAMBackendClient

_FLAG_VARS = ("IAM_API_DEBUG", "BKAPP_IAM_API_DEBUG", "IAM_API_FORCE", "BKAPP_IAM_API_FORCE")


@pytest.fixture(autouse=True)
def _clean_flag_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _FLAG_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize(
    ("environ", "expected"),
    [
        ({}, ApiFlags(debug=False, force=False)),
        ({"IAM_API_DEBUG": "true"}, ApiFlags(debug=True, force=False)),
        ({"BKAPP_IAM_API_DEBUG": "true"}, ApiFlags(debug=True, force=False)),
        ({"IAM_API_FORCE": "true"}, ApiFlags(debug=False, force=True)),
        ({"BKAPP_IAM_API_FORCE": "true"}, ApiFlags(debug=False, force=True)),
        ({"IAM_API_DEBUG": "True", "IAM_API_FORCE": "1"}, ApiFlags(debug=False, force=False)),
    ],
)
def test_api_flags_from_env_mapping(environ: dict[str, str], expected: ApiFlags) -> None:
    assert ApiFlags.from_env(environ) == expected


def test_client_reads_flags_from_env_once_at_construction(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"code": 0, "message": "ok", "data": {}})

    monkeypatch.setenv("IAM_API_DEBUG", "true")
    monkeypatch.setenv("BKAPP_IAM_API_FORCE", "true")
    client = IAMBackendClient(
        "https://iam.example", "demo", "c", "s", transport=httpx.MockTransport(handler)
    )
    # Later environment changes do not affect an existing client.
    monkeypatch.delenv("IAM_API_DEBUG")
    monkeypatch.delenv("BKAPP_IAM_API_FORCE")
    try:
        assert client.config.api_debug is True
        assert client.config.api_force is True
        client.policy_auth({})
    finally:
        client.close()

    assert seen[0].url.params["debug"] == "true"
    assert seen[0].url.params["force"] == "true"


def test_explicit_flags_override_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IAM_API_DEBUG", "true")
    client = IAMBackendClient("https://iam.example", "demo", "c", "s", api_debug=False)
    try:
        assert client.config.api_debug is False
        assert client.config.api_force is False
    finally:
        client.close()


def test_from_env_builds_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BKIAM_HOST", "https://iam.example/")
    monkeypatch.setenv("BKIAM_SYSTEM", "demo")
    monkeypatch.setenv("BKIAM_APP_CODE", "code")
    monkeypatch.setenv("BKIAM_APP_SECRET", "secret")
    monkeypatch.setenv("BKIAM_API_GATEWAY", "true")

    client = IAMBackendClient.from_env()
    try:
        assert client.config.host == "https://iam.example"
        assert client.config.system == "demo"
        assert client.config.is_api_gateway is True
        assert "secret" not in repr(client.config)
    finally:
        client.close()


def test_from_env_reports_missing_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("BKIAM_HOST", "BKIAM_SYSTEM", "BKIAM_APP_CODE", "BKIAM_APP_SECRET"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BKIAM_HOST", "https://iam.example")

    with pytest.raises(ValueError, match="BKIAM_SYSTEM"):
        IAMBackendClient.from_env()
