"""HTTP Basic authentication middleware and request user identity."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable, Iterable, MutableMapping
from typing import Any

from werkzeug.wrappers import Response

USER_ID_KEY = "qaboard.user_id"

Authorizer = Callable[[str, str], str]

_BASIC_PREFIX = "Basic "
_SEPARATOR = ":"


def parse_basic_auth(header: str) -> tuple[str, str] | None:
    """Split a Basic Authorization header into username and password."""
    if not header.startswith(_BASIC_PREFIX):
        return None
    try:
        raw = base64.b64decode(header[len(_BASIC_PREFIX):], validate=True)
    except (binascii.Error, ValueError):
        raw = b""
    decoded = raw.decode("utf-8", errors="replace")
    head, sep, tail = decoded.partition(_SEPARATOR)
    if not sep:
        return None
    return head, tail


def get_user_id(environ: MutableMapping[str, Any]) -> str:
    """Return the authenticated user id, or an empty string."""
    value = environ.get(USER_ID_KEY)
    return value if isinstance(value, str) else ""


def inject_user_id(environ: MutableMapping[str, Any], user_id: str) -> dict[str, Any]:
    """Return a copy of the environ that carries the given user id."""
    updated = dict(environ)
    updated[USER_ID_KEY] = user_id
    return updated


def _unauthorized() -> Response:
    resp = Response(
        "unauthorized\n", status=401, content_type="text/plain; charset=utf-8"
    )
    resp.headers["X-Content-Type-Options"] = "nosniff"
    return resp


class BasicAuthMiddleware:
    """WSGI middleware that admits only requests with valid Basic credentials.

    ``authorize(username, password)`` returns the user id, or raises to reject.
    """

    def __init__(self, app: Callable, authorize: Authorizer) -> None:
        self.app = app
        self.authorize = authorize

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        credentials = parse_basic_auth(environ.get("HTTP_AUTHORIZATION", ""))
        if credentials is None:
            return _unauthorized()(environ, start_response)
        try:
            user_id = self.authorize(*credentials)
        except Exception:
            return _unauthorized()(environ, start_response)
        if user_id is None:
            return _unauthorized()(environ, start_response)
        return self.app(inject_user_id(environ, user_id), start_response)