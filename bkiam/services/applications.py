"""
Permission application endpoints.

When a subject lacks a permission, the caller can generate a URL on the IAM
SaaS where the user applies for exactly the missing actions and resources.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..envelope import MAP_SHAPE, require_str

if TYPE_CHECKING:
    from ..clients.http import AsyncHTTPClient, HTTPClient

APPLICATION_PATH = "/api/v1/open/application/"


class ApplicationService:
    def __init__(self, client: HTTPClient):
        self._client = client

    def apply_url(self, body: Any, *, timeout: float | None = None) -> str:
        """
        Generate the apply URL for the permissions described by `body`.

        Raises:
            MissingFieldError: The response has no `url`.
            FieldTypeError: `url` is not a string.
        """
        data = self._client.call("POST", APPLICATION_PATH, body, timeout, MAP_SHAPE)
        return require_str(data, "url")


class AsyncApplicationService:
    def __init__(self, client: AsyncHTTPClient):
        self._client = client

    async def apply_url(self, body: Any, *, timeout: float | None = None) -> str:
        data = await self._client.call("POST", APPLICATION_PATH, body, timeout, MAP_SHAPE)
        return require_str(data, "url")
