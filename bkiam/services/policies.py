"""
Policy service.

Policy query and authorization endpoints exist in two API versions:

- v1 endpoints take the system inside the request body
- v2 endpoints are scoped by a system identifier in the path

Policy management reads (`get`, `list`, `subjects`) always use the configured system.
Evaluation happens in the backend; these methods only transmit and decode.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from ..envelope import LIST_MAP_SHAPE, MAP_SHAPE, ListMapData, MapData

if TYPE_CHECKING:
    from ..clients.http import AsyncHTTPClient, HTTPClient

POLICY_QUERY_PATH = "/api/v1/policy/query"
POLICY_QUERY_BY_ACTIONS_PATH = "/api/v1/policy/query_by_actions"
POLICY_AUTH_PATH = "/api/v1/policy/auth"
POLICY_AUTH_BY_RESOURCES_PATH = "/api/v1/policy/auth_by_resources"
POLICY_AUTH_BY_ACTIONS_PATH = "/api/v1/policy/auth_by_actions"


def v2_policy_path(system: str, action: str) -> str:
    return f"/api/v2/policy/systems/{system}/{action}/"


def policies_path(system: str) -> str:
    return f"/api/v1/systems/{system}/policies"


def policy_path(system: str, policy_id: int) -> str:
    return f"{policies_path(system)}/{int(policy_id)}"


def policy_subjects_path(system: str) -> str:
    return f"{policies_path(system)}/-/subjects"


def join_ids(policy_ids: Iterable[int], sep: str = ",") -> str:
    """Render policy IDs as a separator-joined string (`[1, 2, 3]` -> `"1,2,3"`)."""
    return sep.join(str(int(policy_id)) for policy_id in policy_ids)


class PolicyService:
    """Policy query, authorization and lookup endpoints."""

    def __init__(self, client: HTTPClient):
        self._client = client

    @property
    def _system(self) -> str:
        return self._client.config.system

    # =========================================================================
    # Query (returns expressions for the caller to evaluate)
    # =========================================================================

    def query(self, body: Any, *, timeout: float | None = None) -> MapData:
        """Query the policy expression of one action for a subject."""
        return self._client.call("POST", POLICY_QUERY_PATH, body, timeout, MAP_SHAPE)

    def query_by_actions(self, body: Any, *, timeout: float | None = None) -> ListMapData:
        """Query policy expressions for several actions at once."""
        return self._client.call(
            "POST", POLICY_QUERY_BY_ACTIONS_PATH, body, timeout, LIST_MAP_SHAPE
        )

    def v2_query(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return self._client.call(
            "POST", v2_policy_path(system, "query"), body, timeout, MAP_SHAPE
        )

    def v2_query_by_actions(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> ListMapData:
        return self._client.call(
            "POST", v2_policy_path(system, "query_by_actions"), body, timeout, LIST_MAP_SHAPE
        )

    # =========================================================================
    # Authorization (backend returns the decision)
    # =========================================================================

    def auth(self, body: Any, *, timeout: float | None = None) -> MapData:
        return self._client.call("POST", POLICY_AUTH_PATH, body, timeout, MAP_SHAPE)

    def v2_auth(self, system: str, body: Any, *, timeout: float | None = None) -> MapData:
        return self._client.call("POST", v2_policy_path(system, "auth"), body, timeout, MAP_SHAPE)

    def auth_by_resources(self, body: Any, *, timeout: float | None = None) -> MapData:
        """Authorize one action against a batch of resources."""
        return self._client.call("POST", POLICY_AUTH_BY_RESOURCES_PATH, body, timeout, MAP_SHAPE)

    def auth_by_actions(self, body: Any, *, timeout: float | None = None) -> MapData:
        """Authorize several actions against one resource."""
        return self._client.call("POST", POLICY_AUTH_BY_ACTIONS_PATH, body, timeout, MAP_SHAPE)

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, policy_id: int, *, timeout: float | None = None) -> MapData:
        """Get the policy detail by ID."""
        return self._client.call(
            "GET", policy_path(self._system, policy_id), {}, timeout, MAP_SHAPE
        )

    def list(
        self, params: Mapping[str, Any] | None = None, *, timeout: float | None = None
    ) -> MapData:
        """
        List the system's policies.

        Args:
            params: Query parameters passed through verbatim (e.g. `action_id`,
                `page`, `page_size`, `timestamp`).

        Raises:
            RequestDataError: `params` is not a mapping.
        """
        return self._client.call(
            "GET", policies_path(self._system), params or {}, timeout, MAP_SHAPE
        )

    def subjects(
        self, policy_ids: Iterable[int], *, timeout: float | None = None
    ) -> ListMapData:
        """Query the subject each policy belongs to."""
        return self._client.call(
            "GET",
            policy_subjects_path(self._system),
            {"ids": join_ids(policy_ids)},
            timeout,
            LIST_MAP_SHAPE,
        )


class AsyncPolicyService:
    """Async version of PolicyService."""

    def __init__(self, client: AsyncHTTPClient):
        self._client = client

    @property
    def _system(self) -> str:
        return self._client.config.system

    async def query(self, body: Any, *, timeout: float | None = None) -> MapData:
        return await self._client.call("POST", POLICY_QUERY_PATH, body, timeout, MAP_SHAPE)

    async def query_by_actions(
        self, body: Any, *, timeout: float | None = None
    ) -> ListMapData:
        return await self._client.call(
            "POST", POLICY_QUERY_BY_ACTIONS_PATH, body, timeout, LIST_MAP_SHAPE
        )

    async def v2_query(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return await self._client.call(
            "POST", v2_policy_path(system, "query"), body, timeout, MAP_SHAPE
        )

    async def v2_query_by_actions(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> ListMapData:
        return await self._client.call(
            "POST", v2_policy_path(system, "query_by_actions"), body, timeout, LIST_MAP_SHAPE
        )

    async def auth(self, body: Any, *, timeout: float | None = None) -> MapData:
        return await self._client.call("POST", POLICY_AUTH_PATH, body, timeout, MAP_SHAPE)

    async def v2_auth(
        self, system: str, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return await self._client.call(
            "POST", v2_policy_path(system, "auth"), body, timeout, MAP_SHAPE
        )

    async def auth_by_resources(
        self, body: Any, *, timeout: float | None = None
    ) -> MapData:
        return await self._client.call(
            "POST", POLICY_AUTH_BY_RESOURCES_PATH, body, timeout, MAP_SHAPE
        )

    async def auth_by_actions(self, body: Any, *, timeout: float | None = None) -> MapData:
        return await self._client.call(
            "POST", POLICY_AUTH_BY_ACTIONS_PATH, body, timeout, MAP_SHAPE
        )

    async def get(self, policy_id: int, *, timeout: float | None = None) -> MapData:
        return await self._client.call(
            "GET", policy_path(self._system, policy_id), {}, timeout, MAP_SHAPE
        )

    async def list(
        self, params: Mapping[str, Any] | None = None, *, timeout: float | None = None
    ) -> MapData:
        return await self._client.call(
            "GET", policies_path(self._system), params or {}, timeout, MAP_SHAPE
        )

    async def subjects(
        self, policy_ids: Iterable[int], *, timeout: float | None = None
    ) -> ListMapData:
        return await self._client.call(
            "GET",
            policy_subjects_path(self._system),
            {"ids": join_ids(policy_ids)},
            timeout,
            LIST_MAP_SHAPE,
        )
