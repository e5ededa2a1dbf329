"""
Main IAM backend client.

Provides a unified interface to the policy, token and application endpoints.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from .clients.http import AsyncHTTPClient, ClientConfig, HTTPClient
from .config import (
    DEFAULT_CALL_TIMEOUT,
    ENV_API_GATEWAY,
    ENV_APP_CODE,
    ENV_APP_SECRET,
    ENV_HOST,
    ENV_SYSTEM,
    ApiFlags,
    _maybe_load_dotenv,
    env_flag,
)
from .envelope import ListMapData, MapData
from .hooks import ErrorHook, RequestHook, ResponseHook
from .services.applications import ApplicationService, AsyncApplicationService
from .services.policies import AsyncPolicyService, PolicyService
from .services.systems import AsyncSystemService, SystemService


def _build_config(
    *,
    host: str,
    system: str,
    app_code: str,
    app_secret: str,
    is_api_gateway: bool,
    api_debug: bool | None,
    api_force: bool | None,
    timeout: float,
    transport: httpx.BaseTransport | None = None,
    async_transport: httpx.AsyncBaseTransport | None = None,
    on_request: RequestHook | None,
    on_response: ResponseHook | None,
    on_error: ErrorHook | None,
) -> ClientConfig:
    flags = ApiFlags.from_env() if api_debug is None or api_force is None else ApiFlags()
    return ClientConfig(
        host=host,
        system=system,
        app_code=app_code,
        app_secret=app_secret,
        is_api_gateway=is_api_gateway,
        api_debug=flags.debug if api_debug is None else api_debug,
        api_force=flags.force if api_force is None else api_force,
        timeout=timeout,
        transport=transport,
        async_transport=async_transport,
        on_request=on_request,
        on_response=on_response,
        on_error=on_error,
    )


def _settings_from_env(
    *,
    load_dotenv: bool,
    dotenv_path: str | os.PathLike[str] | None,
) -> dict[str, Any]:
    _maybe_load_dotenv(load_dotenv=load_dotenv, dotenv_path=dotenv_path, override=False)
    settings: dict[str, Any] = {}
    missing: list[str] = []
    for key, name in (
        ("host", ENV_HOST),
        ("system", ENV_SYSTEM),
        ("app_code", ENV_APP_CODE),
        ("app_secret", ENV_APP_SECRET),
    ):
        value = os.getenv(name, "").strip()
        if not value:
            missing.append(name)
        settings[key] = value
    if missing:
        raise ValueError(f"Missing environment variable(s): {', '.join(missing)}")
    settings["is_api_gateway"] = env_flag(os.getenv(ENV_API_GATEWAY))
    return settings


class IAMBackendClient:
    """
    Synchronous IAM backend client.

    Example:
        ```python
        from bkiam import IAMBackendClient

        with IAMBackendClient(
            "http://bkiam.example.com",
            system="bk_sops",
            app_code="bk_sops",
            app_secret="secret",
        ) as client:
            client.ping()
            decision = client.policy_auth({"system": "bk_sops", ...})
            token = client.get_token()
        ```

    Attributes:
        policies: Policy query / authorization / lookup operations
        systems: System model operations (token)
        applications: Permission application operations (apply URL)
    """

    def __init__(
        self,
        host: str,
        system: str,
        app_code: str,
        app_secret: str,
        *,
        is_api_gateway: bool = False,
        api_debug: bool | None = None,
        api_force: bool | None = None,
        timeout: float = DEFAULT_CALL_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        on_request: RequestHook | None = None,
        on_response: ResponseHook | None = None,
        on_error: ErrorHook | None = None,
    ):
        """
        Initialize the client.

        Args:
            host: IAM backend (or API gateway) base URL
            system: System identifier used by system-scoped endpoints
            app_code: Application code
            app_secret: Application secret
            is_api_gateway: Send credentials in the gateway header format
            api_debug: Append `debug=true` to every request; read from
                `IAM_API_DEBUG` / `BKAPP_IAM_API_DEBUG` when None
            api_force: Append `force=true` to every request; read from
                `IAM_API_FORCE` / `BKAPP_IAM_API_FORCE` when None
            timeout: Default timeout in seconds for every endpoint call; a call
                may pass its own `timeout=` instead
            transport: Custom httpx transport (mainly for tests)
            on_request / on_response / on_error: Observation hooks
        """
        config = _build_config(
            host=host,
            system=system,
            app_code=app_code,
            app_secret=app_secret,
            is_api_gateway=is_api_gateway,
            api_debug=api_debug,
            api_force=api_force,
            timeout=timeout,
            transport=transport,
            on_request=on_request,
            on_response=on_response,
            on_error=on_error,
        )
        self._http = HTTPClient(config)

        self._policies: PolicyService | None = None
        self._systems: SystemService | None = None
        self._applications: ApplicationService | None = None

    @classmethod
    def from_env(
        cls,
        *,
        load_dotenv: bool = False,
        dotenv_path: str | os.PathLike[str] | None = None,
        **kwargs: Any,
    ) -> IAMBackendClient:
        """
        Build a client from `BKIAM_HOST`, `BKIAM_SYSTEM`, `BKIAM_APP_CODE`,
        `BKIAM_APP_SECRET` and (optionally) `BKIAM_API_GATEWAY`.
        """
        settings = _settings_from_env(load_dotenv=load_dotenv, dotenv_path=dotenv_path)
        settings.update(kwargs)
        return cls(**settings)

    def __enter__(self) -> IAMBackendClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._http.close()

    @property
    def config(self) -> ClientConfig:
        return self._http.config

    # =========================================================================
    # Service Properties (lazy initialization)
    # =========================================================================

    @property
    def policies(self) -> PolicyService:
        """Policy query, authorization and lookup operations."""
        if self._policies is None:
            self._policies = PolicyService(self._http)
        return self._policies

    @property
    def systems(self) -> SystemService:
        if self._systems is None:
            self._systems = SystemService(self._http)
        return self._systems

    @property
    def applications(self) -> ApplicationService:
        if self._applications is None:
            self._applications = ApplicationService(self._http)
        return self._applications

    # =========================================================================
    # Backend operations
    # =========================================================================

    def ping(self) -> None:
        """
        Check the backend answers `/ping` with HTTP 200.

        No credentials are sent and the body is ignored.

        Raises:
            PingError: On transport failure or a non-200 status.
        """
        self._http.ping()

    def get_token(self, *, timeout: float | None = None) -> str:
        return self.systems.token(timeout=timeout)

    def policy_query(self, body: Any, *, timeout: float | None = None) -> MapData:
        return self.policies.query(body, timeout=timeout)

    def policy_query_by_actions(
        self, body: Any, *, timeout: float | None = None
    ) -> ListMapData:
        return self.policies.query_by_actions(body, timeout=timeout)

    def v2_policy_query(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return self.policies.v2_query(system, body, timeout=timeout)

    def v2_policy_query_by_actions(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> ListMapData:
        return self.policies.v2_query_by_actions(system, body, timeout=timeout)

    def v2_policy_auth(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return self.policies.v2_auth(system, body, timeout=timeout)

    def policy_auth(self, body: Any, *, timeout: float | None = None) -> MapData:
        return self.policies.auth(body, timeout=timeout)

    def policy_auth_by_resources(
        self, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return self.policies.auth_by_resources(body, timeout=timeout)

    def policy_auth_by_actions(
        self, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return self.policies.auth_by_actions(body, timeout=timeout)

    def policy_get(self, policy_id: int, *, timeout: float | None = None) -> MapData:
        return self.policies.get(policy_id, timeout=timeout)

    def policy_list(
        self, params: Mapping[str, Any] | None = None, *, timeout: float | None = None
    ) -> MapData:
        return self.policies.list(params, timeout=timeout)

    def policy_subjects(
        self, policy_ids: Iterable[int], *, timeout: float | None = None
    ) -> ListMapData:
        return self.policies.subjects(policy_ids, timeout=timeout)

    def get_apply_url(self, body: Any, *, timeout: float | None = None) -> str:
        return self.applications.apply_url(body, timeout=timeout)


# =============================================================================
# Async Client (same interface, async methods)
# =============================================================================


class AsyncIAMBackendClient:
    """
    Asynchronous IAM backend client.

    Same interface as IAMBackendClient but with async/await support.

    Example:
        ```python
        async with AsyncIAMBackendClient(host, "bk_sops", code, secret) as client:
            result = await client.policy_auth(body)
        ```
    """

    def __init__(
        self,
        host: str,
        system: str,
        app_code: str,
        app_secret: str,
        *,
        is_api_gateway: bool = False,
        api_debug: bool | None = None,
        api_force: bool | None = None,
        timeout: float = DEFAULT_CALL_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        on_request: RequestHook | None = None,
        on_response: ResponseHook | None = None,
        on_error: ErrorHook | None = None,
    ):
        config = _build_config(
            host=host,
            system=system,
            app_code=app_code,
            app_secret=app_secret,
            is_api_gateway=is_api_gateway,
            api_debug=api_debug,
            api_force=api_force,
            timeout=timeout,
            async_transport=transport,
            on_request=on_request,
            on_response=on_response,
            on_error=on_error,
        )
        self._http = AsyncHTTPClient(config)
        self._policies: AsyncPolicyService | None = None
        self._systems: AsyncSystemService | None = None
        self._applications: AsyncApplicationService | None = None

    @classmethod
    def from_env(
        cls,
        *,
        load_dotenv: bool = False,
        dotenv_path: str | os.PathLike[str] | None = None,
        **kwargs: Any,
    ) -> AsyncIAMBackendClient:
        settings = _settings_from_env(load_dotenv=load_dotenv, dotenv_path=dotenv_path)
        settings.update(kwargs)
        return cls(**settings)

    async def __aenter__(self) -> AsyncIAMBackendClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.close()

    @property
    def config(self) -> ClientConfig:
        return self._http.config

    @property
    def policies(self) -> AsyncPolicyService:
        if self._policies is None:
            self._policies = AsyncPolicyService(self._http)
        return self._policies

    @property
    def systems(self) -> AsyncSystemService:
        if self._systems is None:
            self._systems = AsyncSystemService(self._http)
        return self._systems

    @property
    def applications(self) -> AsyncApplicationService:
        if self._applications is None:
            self._applications = AsyncApplicationService(self._http)
        return self._applications

    async def ping(self) -> None:
        await self._http.ping()

    async def get_token(self, *, timeout: float | None = None) -> str:
        return await self.systems.token(timeout=timeout)

    async def policy_query(self, body: Any, *, timeout: float | None = None) -> MapData:
        return await self.policies.query(body, timeout=timeout)

    async def policy_query_by_actions(
        self, body: Any, *, timeout: float | None = None
    ) -> ListMapData:
        return await self.policies.query_by_actions(body, timeout=timeout)

    async def v2_policy_query(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return await self.policies.v2_query(system, body, timeout=timeout)

    async def v2_policy_query_by_actions(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> ListMapData:
        return await self.policies.v2_query_by_actions(system, body, timeout=timeout)

    async def v2_policy_auth(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return await self.policies.v2_auth(system, body, timeout=timeout)

    async def policy_auth(self, body: Any, *, timeout: float | None = None) -> MapData:
        return await self.policies.auth(body, timeout=timeout)

    async def policy_auth_by_resources(
        self, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return await self.policies.auth_by_resources(body, timeout=timeout)

    async def policy_auth_by_actions(
        self, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return await self.policies.auth_by_actions(body, timeout=timeout)

    async def policy_get(
        self, policy_id: int, *, timeout: float | None = None
    ) -> MapData:
        return await self.policies.get(policy_id, timeout=timeout)

    async def policy_list(
        self, params: Mapping[str, Any] | None = None, *, timeout: float | None = None
    ) -> MapData:
        return await self.policies.list(params, timeout=timeout)

    async def policy_subjects(
        self, policy_ids: Iterable[int], *, timeout: float | None = None
    ) -> ListMapData:
        return await self.policies.subjects(policy_ids, timeout=timeout)

    async def get_apply_url(self, body: Any, *, timeout: float | None = None) -> str:
        return await self.applications.apply_url(body, timeout=timeout)
