"""System model endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..envelope import MAP_SHAPE, require_str

if TYPE_CHECKING:
    from ..clients.http import AsyncHTTPClient, HTTPClient


def token_path(system: str) -> str:
    return f"/api/v1/model/systems/{system}/token"


class SystemService:
    def __init__(self, client: HTTPClient):
        self._client = client

    def token(self, *, timeout: float | None = None) -> str:
        """
        Get the system token.

        The backend uses this token as the basic-auth password when it calls
        back into the system's resource provider.

        Raises:
            MissingFieldError: The response has no `token`.
            FieldTypeError: `token` is not a string.
        """
        data = self._client.call(
            "GET", token_path(self._client.config.system), {}, timeout, MAP_SHAPE
        )
        return require_str(data, "token")


class AsyncSystemService:
    def __init__(self, client: AsyncHTTPClient):
        self._client = client

    async def token(self, *, timeout: float | None = None) -> str:
        data = await self._client.call(
            "GET", token_path(self._client.config.system), {}, timeout, MAP_SHAPE
        )
        return require_str(data, "token")
