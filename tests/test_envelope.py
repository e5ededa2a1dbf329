from __future__ import annotations

import pytest

from bkiam import BackendResponse, DecodeError, ResponseError
from bkiam.envelope import LIST_MAP_SHAPE, MAP_SHAPE, decode_data, parse_envelope, require_str


def test_parse_envelope_success_and_error() -> None:
    ok = parse_envelope(b'{"code": 0, "message": "ok", "data": {"a": 1}}')
    assert ok.ok
    assert ok.error() is None
    assert ok.data == {"a": 1}

    failed = parse_envelope(b'{"code": 1901002, "message": "bad request", "data": null}')
    err = failed.error()
    assert isinstance(err, ResponseError)
    assert err.code == 1901002
    assert err.response_message == "bad request"


def test_parse_envelope_tolerates_missing_fields_and_null_message() -> None:
    envelope = parse_envelope(b'{"message": null, "result": true}')
    assert envelope == BackendResponse(code=0, message="", data=None)


@pytest.mark.parametrize("body", [b"", b"nope", b"[1, 2]", b'{"code": "abc"}'])
def test_parse_envelope_rejects_non_envelopes(body: bytes) -> None:
    with pytest.raises(DecodeError):
        parse_envelope(body)


def test_envelope_str_includes_code_message_and_data() -> None:
    text = str(BackendResponse(code=3, message="boom", data={"k": "v"}))
    assert text == 'response[code=`3`, message=`boom`, data=`{"k": "v"}`]'


def test_decode_data_shapes() -> None:
    assert decode_data({"a": [1]}, MAP_SHAPE) == {"a": [1]}
    assert decode_data([{"a": 1}], LIST_MAP_SHAPE) == [{"a": 1}]
    assert decode_data(None, MAP_SHAPE) == {}
    assert decode_data(None, LIST_MAP_SHAPE) == []

    with pytest.raises(DecodeError) as exc_info:
        decode_data([1, 2], LIST_MAP_SHAPE)
    assert exc_info.value.data == [1, 2]

    with pytest.raises(DecodeError):
        decode_data("text", MAP_SHAPE)


def test_require_str() -> None:
    assert require_str({"url": "https://x"}, "url") == "https://x"
    assert require_str({"url": ""}, "url") == ""
