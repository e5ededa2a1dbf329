"""
Exceptions raised by the IAM backend SDK.

Every failure is raised to the caller immediately; the SDK never retries.
"""

from __future__ import annotations

from typing import Any


class IAMError(Exception):
    """Base class for all SDK errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class RequestDataError(IAMError, TypeError):
    """Call data cannot be encoded for the request (e.g. a GET payload that is not a mapping)."""


class TransportError(IAMError):
    """The request never produced an HTTP response (DNS, connect, timeout, ...)."""

    def __init__(self, message: str, *, method: str | None = None, url: str | None = None):
        super().__init__(message)
        self.method = method
        self.url = url


class HTTPStatusError(IAMError):
    """
    The backend answered with a status other than 200.

    When the body could still be parsed as an envelope carrying a message or a
    non-zero code, the envelope `code` and `message` are attached and included
    in the text.
    """

    def __init__(
        self,
        status_code: int,
        *,
        code: int | None = None,
        response_message: str | None = None,
    ):
        text = f"http status code is {status_code} not 200"
        if response_message or code:
            text = f"{text}. response body.code: {code}, message:{response_message}"
        super().__init__(text)
        self.status_code = status_code
        self.code = code
        self.response_message = response_message


class ResponseError(IAMError):
    """The envelope declared an application-level failure (`code != 0`)."""

    def __init__(self, code: int, response_message: str):
        super().__init__(f"response body.code: {code}, message:{response_message}")
        self.code = code
        self.response_message = response_message


class DecodeError(IAMError):
    """The response body or its `data` payload does not have the expected shape."""

    def __init__(self, message: str, *, data: Any = None):
        super().__init__(message)
        self.data = data


class FieldError(IAMError):
    """An expected field of a decoded mapping is unusable."""

    def __init__(self, message: str, *, field: str):
        super().__init__(message)
        self.field = field


class MissingFieldError(FieldError):
    """The field is absent from the decoded mapping."""


class FieldTypeError(FieldError):
    """The field is present but does not hold a string."""


class PingError(IAMError):
    """The backend did not answer `/ping` with HTTP 200."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "DecodeError",
    "FieldError",
    "FieldTypeError",
    "HTTPStatusError",
    "IAMError",
    "MissingFieldError",
    "PingError",
    "RequestDataError",
    "ResponseError",
    "TransportError",
]
