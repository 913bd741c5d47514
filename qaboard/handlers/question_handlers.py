"""HTTP handlers for creating, deleting, fetching and listing questions."""

from __future__ import annotations

from typing import Protocol

from werkzeug.wrappers import Request, Response

from qaboard import rpc
from qaboard.entities import (
    Question,
    QuestionAccessDeniedError,
    QuestionNotFoundError,
)
from qaboard.handlers.answer_handlers import _parse_id, _rfc3339
from qaboard.rpc_auth import get_user_id
from qaboard.usecases.questions import QuestionWithAnswers


class _QuestionCreator(Protocol):
    def create_question(self, user_id: str, text: str) -> Question: ...


class _QuestionDeleter(Protocol):
    def delete_question(self, question_id: int, user_id: str) -> None: ...


class _QuestionGetter(Protocol):
    def get_question_with_answers(self, question_id: int) -> QuestionWithAnswers: ...


class _QuestionLister(Protocol):
    def list_questions(self) -> list[Question]: ...


def _method_not_allowed() -> Response:
    resp = Response(
        "method not allowed\n", status=405, content_type="text/plain; charset=utf-8"
    )
    resp.headers["X-Content-Type-Options"] = "nosniff"
    return resp


class CreateQuestionHandler:
    """POST /questions"""

    def __init__(self, use_case: _QuestionCreator) -> None:
        self._use_case = use_case

    def __call__(self, request: Request) -> Response:
        try:
            text = rpc.parse_text_body(request)
        except rpc.ValidationFailed as exc:
            return rpc.validation_error(exc.fields)

        user_id = get_user_id(request.environ)
        if not user_id:
            return rpc.unauthorized()

        try:
            question = self._use_case.create_question(user_id, text)
        except Exception as exc:
            return rpc.unexpected_error(exc)

        return rpc.json_response(201, {"id": question.id, "text": question.text})


class DeleteQuestionHandler:
    """DELETE /questions/{id}"""

    def __init__(self, use_case: _QuestionDeleter) -> None:
        self._use_case = use_case

    def __call__(self, request: Request, raw_id: str) -> Response:
        question_id = _parse_id(raw_id)
        if question_id is None:
            return rpc.bad_request("invalid_question_id")

        user_id = get_user_id(request.environ)
        if not user_id:
            return rpc.unauthorized()

        try:
            self._use_case.delete_question(question_id, user_id)
        except QuestionNotFoundError:
            return rpc.not_found("question_not_found")
        except QuestionAccessDeniedError:
            return rpc.forbidden()
        except Exception as exc:
            return rpc.unexpected_error(exc)

        return Response(status=204)


class GetQuestionHandler:
    """GET /questions/{id}"""

    def __init__(self, use_case: _QuestionGetter) -> None:
        self._use_case = use_case

    def __call__(self, request: Request, raw_id: str) -> Response:
        question_id = _parse_id(raw_id)
        if question_id is None:
            return rpc.bad_request("invalid question id")

        try:
            found = self._use_case.get_question_with_answers(question_id)
        except QuestionNotFoundError:
            return rpc.not_found("question_not_found")
        except Exception as exc:
            return rpc.unexpected_error(exc)

        question = found.question
        return rpc.json_response(
            200,
            {
                "id": question.id,
                "text": question.text,
                "created_at": _rfc3339(question.created_at),
                "user_id": question.user_id,
                "answers": [
                    {
                        "id": answer.id,
                        "text": answer.text,
                        "user_id": answer.user_id,
                        "created_at": _rfc3339(answer.created_at),
                    }
                    for answer in found.answers
                ],
            },
        )


class ListQuestionsHandler:
    """GET /questions"""

    def __init__(self, use_case: _QuestionLister) -> None:
        self._use_case = use_case

    def __call__(self, request: Request) -> Response:
        if request.method != "GET":
            return _method_not_allowed()

        try:
            questions = self._use_case.list_questions()
        except Exception as exc:
            return rpc.unexpected_error(exc)

        return rpc.json_response(
            200,
            [
                {
                    "id": question.id,
                    "text": question.text,
                    "user_id": question.user_id,
                    "created_at": _rfc3339(question.created_at),
                }
                for question in questions
            ],
        )