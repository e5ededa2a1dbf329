"""
Python SDK for the BlueKing IAM backend.

Example:
    ```python
    from bkiam import IAMBackendClient

    client = IAMBackendClient("http://bkiam.example.com", "bk_sops", "bk_sops", "secret")
    client.policy_auth(body)
    ```
"""

from __future__ import annotations

from .auth import CredentialAttacher, DirectCredentials, GatewayCredentials, credentials_for
from .client import AsyncIAMBackendClient, IAMBackendClient
from .clients.http import ClientConfig
from .config import ApiFlags
from .envelope import BackendResponse
from .exceptions import (
    DecodeError,
    FieldError,
    FieldTypeError,
    HTTPStatusError,
    IAMError,
    MissingFieldError,
    PingError,
    RequestDataError,
    ResponseError,
    TransportError,
)
from .hooks import ErrorInfo, RequestInfo, ResponseInfo

__version__ = "0.1.0"

__all__ = [
    "ApiFlags",
    "AsyncIAMBackendClient",
    "BackendResponse",
    "ClientConfig",
    "CredentialAttacher",
    "DecodeError",
    "DirectCredentials",
    "ErrorInfo",
    "FieldError",
    "FieldTypeError",
    "GatewayCredentials",
    "HTTPStatusError",
    "IAMBackendClient",
    "IAMError",
    "MissingFieldError",
    "PingError",
    "RequestDataError",
    "RequestInfo",
    "ResponseError",
    "ResponseInfo",
    "TransportError",
    "credentials_for",
    "__version__",
]
