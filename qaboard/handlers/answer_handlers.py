"""HTTP handlers for creating, deleting and fetching answers."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Protocol

from werkzeug.wrappers import Request, Response

from qaboard import rpc
from qaboard.entities import (
    Answer,
    AnswerAccessDeniedError,
    AnswerNotFoundError,
    RequestedQuestionNotFoundError,
)
from qaboard.rpc_auth import get_user_id

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _parse_id(raw: str) -> int | None:
    """Parse a signed decimal 64-bit id; None when it is not one."""
    if not _INT_PATTERN.fullmatch(raw):
        return None
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _rfc3339(moment: datetime) -> str:
    """Format a time with second precision and a Z or ±hh:mm offset."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    base = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    offset = moment.utcoffset()
    total = int(offset.total_seconds()) if offset is not None else 0
    minutes = abs(total) // 60
    if minutes == 0:
        return base + "Z"
    sign = "+" if total > 0 else "-"
    return f"{base}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


class _AnswerCreator(Protocol):
    def create_answer(self, question_id: int, user_id: str, text: str) -> Answer: ...


class _AnswerDeleter(Protocol):
    def delete_answer(self, answer_id: int, user_id: str) -> None: ...


class _AnswerGetter(Protocol):
    def get_answer(self, answer_id: int) -> Answer: ...


class CreateAnswerHandler:
    """POST /questions/{id}/answers"""

    def __init__(self, use_case: _AnswerCreator) -> None:
        self._use_case = use_case

    def __call__(self, request: Request, raw_id: str) -> Response:
        try:
            text = rpc.parse_text_body(request)
        except rpc.ValidationFailed as exc:
            return rpc.validation_error(exc.fields)

        question_id = _parse_id(raw_id)
        if question_id is None:
            return rpc.bad_request("invalid question id")

        user_id = get_user_id(request.environ)
        if not user_id:
            return rpc.unauthorized()

        try:
            answer = self._use_case.create_answer(question_id, user_id, text)
        except RequestedQuestionNotFoundError:
            return rpc.not_found("question_not_found")
        except Exception as exc:
            return rpc.unexpected_error(exc)

        return rpc.json_response(
            201,
            {
                "id": answer.id,
                "text": answer.text,
                "user_id": answer.user_id,
                "question_id": answer.question_id,
            },
        )


class DeleteAnswerHandler:
    """DELETE /answers/{id}"""

    def __init__(self, use_case: _AnswerDeleter) -> None:
        self._use_case = use_case

    def __call__(self, request: Request, raw_id: str) -> Response:
        answer_id = _parse_id(raw_id)
        if answer_id is None:
            return rpc.bad_request("invalid answer id")

        user_id = get_user_id(request.environ)
        if not user_id:
            return rpc.unauthorized()

        try:
            self._use_case.delete_answer(answer_id, user_id)
        except AnswerNotFoundError:
            return rpc.not_found("answer_not_found")
        except AnswerAccessDeniedError:
            return rpc.forbidden()
        except Exception as exc:
            return rpc.unexpected_error(exc)

        return Response(status=204)


class GetAnswerHandler:
    """GET /answers/{id}"""

    def __init__(self, use_case: _AnswerGetter) -> None:
        self._use_case = use_case

    def __call__(self, request: Request, raw_id: str) -> Response:
        answer_id = _parse_id(raw_id)
        if answer_id is None:
            return rpc.bad_request("invalid answer id")

        try:
            answer = self._use_case.get_answer(answer_id)
        except AnswerNotFoundError:
            return rpc.not_found("answer_not_found")
        except Exception as exc:
            return rpc.unexpected_error(exc)

        return rpc.json_response(
            200,
            {
                "id": answer.id,
                "text": answer.text,
                "user_id": answer.user_id,
                "created_at": _rfc3339(answer.created_at),
            },
        )