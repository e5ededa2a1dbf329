"""
The uniform `{code, message, data}` response envelope.

`data` is opaque at the envelope layer; it is decoded into the caller's shape
only after the envelope itself has been validated.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from .exceptions import DecodeError, FieldTypeError, MissingFieldError, ResponseError

T = TypeVar("T")

MapData = dict[str, Any]
ListMapData = list[dict[str, Any]]


@dataclass(frozen=True)
class Shape(Generic[T]):
    """Destination shape for an envelope payload."""

    name: str
    adapter: TypeAdapter[T]
    empty: Callable[[], T]


MAP_SHAPE: Shape[MapData] = Shape("map", TypeAdapter(MapData), dict)
LIST_MAP_SHAPE: Shape[ListMapData] = Shape("list", TypeAdapter(ListMapData), list)


class BackendResponse(BaseModel):
    """Parsed response envelope."""

    model_config = ConfigDict(extra="ignore")

    code: int = 0
    message: str = ""
    data: Any = None

    @field_validator("message", mode="before")
    @classmethod
    def _null_message(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def ok(self) -> bool:
        return self.code == 0

    def error(self) -> ResponseError | None:
        if self.code == 0:
            return None
        return ResponseError(self.code, self.message)

    def __str__(self) -> str:
        return (
            f"response[code=`{self.code}`, message=`{self.message}`, "
            f"data=`{json.dumps(self.data, ensure_ascii=False)}`]"
        )


def parse_envelope(content: bytes) -> BackendResponse:
    """
    Parse a raw response body as an envelope.

    Raises:
        DecodeError: If the body is not a JSON object with envelope fields.
    """
    try:
        return BackendResponse.model_validate_json(content)
    except ValidationError as e:
        raise DecodeError(
            f"http response body is not a valid envelope: {e}",
            data=content.decode("utf-8", errors="replace"),
        ) from e


def try_parse_envelope(content: bytes) -> BackendResponse | None:
    try:
        return parse_envelope(content)
    except DecodeError:
        return None


def decode_data(data: Any, shape: Shape[T]) -> T:
    """
    Validate the envelope payload against `shape`.

    A JSON `null` payload decodes to the empty value of the shape.

    Raises:
        DecodeError: Wrapping the validation error, with the raw payload attached.
    """
    if data is None:
        return shape.empty()
    try:
        return shape.adapter.validate_python(data)
    except ValidationError as e:
        raise DecodeError(
            f"http request response body data not valid: {e}, data=`{data!r}`",
            data=data,
        ) from e


def require_str(data: MapData, key: str) -> str:
    """Return `data[key]`, which must be present and hold a string."""
    if key not in data:
        raise MissingFieldError(f"no {key} in response body", field=key)
    value = data[key]
    if not isinstance(value, str):
        raise FieldTypeError(f"{key} is not a valid string", field=key)
    return value
