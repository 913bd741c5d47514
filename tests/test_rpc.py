import logging

import pytest
from werkzeug.wrappers import Request

from qaboard.rpc import (
    ValidationFailed,
    bad_request,
    forbidden,
    json_response,
    not_found,
    parse_text_body,
    unauthorized,
    unexpected_error,
    validation_error,
)


def make_request(body: bytes) -> Request:
    return Request.from_values(
        method="POST", data=body, content_type="application/json"
    )


def test_parse_valid_body():
    assert parse_text_body(make_request(b'{"text":"hello answer"}')) == "hello answer"


def test_parse_field_name_is_case_insensitive():
    assert parse_text_body(make_request(b'{"TEXT":"hello"}')) == "hello"


def test_parse_ignores_trailing_data():
    assert parse_text_body(make_request(b' {"text":"hello"} tail')) == "hello"


@pytest.mark.parametrize("body", [b"{}", b'{"text":""}', b"null", b'{"text":null}'])
def test_parse_missing_text(body):
    with pytest.raises(ValidationFailed) as info:
        parse_text_body(make_request(body))
    assert info.value.fields == {"Text": "required"}


@pytest.mark.parametrize("body", [b"", b"{", b"[]", b'{"text":5}', b'"hello"'])
def test_parse_invalid_json(body):
    with pytest.raises(ValidationFailed) as info:
        parse_text_body(make_request(body))
    assert info.value.fields == {"body": "invalid_json"}


def test_validation_error_response():
    resp = validation_error({"Text": "required"})
    assert resp.status_code == 422
    assert resp.get_json() == {"message": "validation_failed", "fields": {"Text": "required"}}


def test_json_response_format():
    resp = json_response(201, {"id": 10, "text": "hello"})
    assert resp.status_code == 201
    assert resp.mimetype == "application/json"
    assert resp.get_data(as_text=True) == '{"id":10,"text":"hello"}\n'


def test_json_response_escapes_html():
    resp = json_response(200, {"text": "<b>"})
    assert "<" not in resp.get_data(as_text=True)
    assert resp.get_json() == {"text": "<b>"}


@pytest.mark.parametrize(
    "resp, status, message",
    [
        (bad_request("invalid question id"), 400, "invalid question id"),
        (unauthorized(), 401, "unauthorized"),
        (not_found("question_not_found"), 404, "question_not_found"),
        (forbidden(), 403, "access_denied"),
    ],
)
def test_error_helpers(resp, status, message):
    assert resp.status_code == status
    assert resp.get_json() == {"message": message}


def test_unexpected_error_logs(caplog):
    with caplog.at_level(logging.INFO, logger="qaboard.rpc"):
        resp = unexpected_error(RuntimeError("boom"))
    assert resp.status_code == 500
    assert resp.get_json() == {"message": "internal error"}
    messages = [r for r in caplog.records if r.getMessage() == "unhandled error:"]
    assert messages and messages[0].err == "boom"