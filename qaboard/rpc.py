"""JSON request binding and response helpers."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping

from werkzeug.wrappers import Request, Response

logger = logging.getLogger("qaboard.rpc")

_DECODER = json.JSONDecoder()
_JSON_WHITESPACE = " \t\n\r"


class ValidationFailed(Exception):
    """Raised when a request body fails decoding or validation."""

    def __init__(self, fields: Mapping[str, str]) -> None:
        super().__init__("validation_failed")
        self.fields = dict(fields)


def _field(payload: dict, name: str) -> object:
    if name in payload:
        return payload[name]
    for key, value in payload.items():
        if key.casefold() == name.casefold():
            return value
    return None


def parse_text_body(request: Request) -> str:
    """Read a JSON body holding a required, non-empty "text" string."""
    raw = request.get_data(cache=True).decode("utf-8", errors="replace")
    try:
        payload, _ = _DECODER.raw_decode(raw.lstrip(_JSON_WHITESPACE))
    except ValueError:
        raise ValidationFailed({"body": "invalid_json"}) from None

    if payload is None:
        text = None
    elif isinstance(payload, dict):
        text = _field(payload, "text")
    else:
        raise ValidationFailed({"body": "invalid_json"})

    if text is not None and not isinstance(text, str):
        raise ValidationFailed({"body": "invalid_json"})
    if not text:
        raise ValidationFailed({"Text": "required"})
    return text


def _encode(payload: object) -> str:
    body = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    for char, escaped in (
        ("&", "\\u0026"),
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        body = body.replace(char, escaped)
    return body + "\n"


def json_response(status: int, payload: object) -> Response:
    """Build a JSON response with the given status."""
    return Response(_encode(payload), status=status, content_type="application/json")


def validation_error(fields: Mapping[str, str]) -> Response:
    return json_response(422, {"message": "validation_failed", "fields": dict(fields)})


def bad_request(message: str) -> Response:
    return json_response(400, {"message": message})


def unauthorized() -> Response:
    return json_response(401, {"message": "unauthorized"})


def not_found(message: str) -> Response:
    return json_response(404, {"message": message})


def forbidden() -> Response:
    return json_response(403, {"message": "access_denied"})


def unexpected_error(err: BaseException) -> Response:
    """Log an unhandled error and answer with a generic 500."""
    logger.info("unhandled error:", extra={"err": str(err)})
    return json_response(500, {"message": "internal error"})