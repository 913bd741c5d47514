"""Use cases that create, delete and fetch answers."""

from __future__ import annotations

import logging
from typing import Protocol

from qaboard.entities import (
    Answer,
    AnswerAccessDeniedError,
    AnswerNotFoundError,
    Question,
    QuestionNotFoundError,
    RequestedQuestionNotFoundError,
)
from qaboard.timer import Timer

_DEFAULT_LOGGER = logging.getLogger("qaboard")


class _Clock(Protocol):
    def now(self): ...


class _AnswerCreator(Protocol):
    def create(self, answer: Answer) -> Answer: ...


class _QuestionReader(Protocol):
    def get_by_id(self, question_id: int) -> Question: ...


class _AnswerReader(Protocol):
    def get_by_id(self, answer_id: int) -> Answer: ...


class _AnswerDeleter(_AnswerReader, Protocol):
    def delete(self, answer_id: int) -> None: ...


class CreateAnswerUseCase:
    """Adds an answer to an existing question."""

    def __init__(
        self,
        answers: _AnswerCreator,
        questions: _QuestionReader,
        timer: _Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._answers = answers
        self._questions = questions
        self._timer = timer if timer is not None else Timer()
        self._logger = logger if logger is not None else _DEFAULT_LOGGER

    def create_answer(self, question_id: int, user_id: str, text: str) -> Answer:
        """Store a new answer; raises RequestedQuestionNotFoundError if the question is gone."""
        try:
            self._questions.get_by_id(question_id)
        except QuestionNotFoundError as exc:
            raise RequestedQuestionNotFoundError() from exc
        except Exception as exc:
            raise RuntimeError(f"check question exists: {exc}") from exc

        answer = Answer(
            question_id=question_id,
            user_id=user_id,
            text=text,
            created_at=self._timer.now(),
        )
        try:
            created = self._answers.create(answer)
        except Exception as exc:
            raise RuntimeError(f"create answer: {exc}") from exc

        self._logger.debug(
            "answer created",
            extra={
                "answer_id": created.id,
                "question_id": question_id,
                "user_id": user_id,
            },
        )
        return created


class DeleteAnswerUseCase:
    """Deletes an answer on behalf of its author."""

    def __init__(
        self, answers: _AnswerDeleter, logger: logging.Logger | None = None
    ) -> None:
        self._answers = answers
        self._logger = logger if logger is not None else _DEFAULT_LOGGER

    def delete_answer(self, answer_id: int, user_id: str) -> None:
        """Delete the answer; only its author may do so."""
        try:
            answer = self._answers.get_by_id(answer_id)
        except AnswerNotFoundError:
            raise
        except Exception as exc:
            raise RuntimeError(f"get answer: {exc}") from exc

        if answer.user_id != user_id:
            raise AnswerAccessDeniedError()

        try:
            self._answers.delete(answer_id)
        except Exception as exc:
            raise RuntimeError(f"delete answer: {exc}") from exc

        self._logger.debug(
            "answer deleted", extra={"answer_id": answer_id, "user_id": user_id}
        )


class GetAnswerUseCase:
    """Loads a single answer."""

    def __init__(
        self, answers: _AnswerReader, logger: logging.Logger | None = None
    ) -> None:
        self._answers = answers
        self._logger = logger if logger is not None else _DEFAULT_LOGGER

    def get_answer(self, answer_id: int) -> Answer:
        try:
            answer = self._answers.get_by_id(answer_id)
        except AnswerNotFoundError:
            raise AnswerNotFoundError() from None
        except Exception as exc:
            raise RuntimeError(f"get answer: {exc}") from exc

        self._logger.debug(
            "answer loaded", extra={"answer_id": answer_id, "user_id": answer.user_id}
        )
        return answer