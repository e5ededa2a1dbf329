"""
Credential attachers.

The backend accepts application credentials in one of two forms, chosen once
when the client is built:

- gateway mode: a single `X-Bkapi-Authorization` header holding a JSON object
- direct mode: separate `X-BK-APP-CODE` / `X-BK-APP-SECRET` headers
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Protocol

from .clients.pipeline import Header

GATEWAY_AUTH_HEADER = "X-Bkapi-Authorization"
APP_CODE_HEADER = "X-BK-APP-CODE"
APP_SECRET_HEADER = "X-BK-APP-SECRET"

# Header names whose values must never reach logs or hooks.
SENSITIVE_HEADERS = frozenset(
    name.lower() for name in (GATEWAY_AUTH_HEADER, APP_SECRET_HEADER)
)


class CredentialAttacher(Protocol):
    def headers(self) -> list[Header]: ...


@dataclass(frozen=True, slots=True)
class GatewayCredentials:
    """Credentials combined into one header for the API gateway."""

    app_code: str
    app_secret: str

    def headers(self) -> list[Header]:
        value = json.dumps(
            {"bk_app_code": self.app_code, "bk_app_secret": self.app_secret},
            separators=(",", ":"),
        )
        return [(GATEWAY_AUTH_HEADER, value)]


@dataclass(frozen=True, slots=True)
class DirectCredentials:
    """Credentials sent straight to the IAM backend."""

    app_code: str
    app_secret: str

    def headers(self) -> list[Header]:
        return [(APP_CODE_HEADER, self.app_code), (APP_SECRET_HEADER, self.app_secret)]


def credentials_for(is_api_gateway: bool, app_code: str, app_secret: str) -> CredentialAttacher:
    if is_api_gateway:
        return GatewayCredentials(app_code=app_code, app_secret=app_secret)
    return DirectCredentials(app_code=app_code, app_secret=app_secret)


def redact_headers(headers: list[Header]) -> dict[str, str]:
    return {
        name: ("[REDACTED]" if name.lower() in SENSITIVE_HEADERS else value)
        for name, value in headers
    }
