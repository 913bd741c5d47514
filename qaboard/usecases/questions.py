"""Use cases that create, list, fetch and delete questions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from qaboard.entities import (
    Answer,
    Question,
    QuestionAccessDeniedError,
    QuestionNotFoundError,
)
from qaboard.timer import Timer

_DEFAULT_LOGGER = logging.getLogger("qaboard")

T = TypeVar("T")


class _Clock(Protocol):
    def now(self): ...


class _UnitOfWork(Protocol):
    def do(self, fn: Callable[[], T]) -> T: ...


@dataclass
class QuestionWithAnswers:
    """A question together with its answers, oldest first."""

    question: Question
    answers: list[Answer] = field(default_factory=list)


class CreateQuestionUseCase:
    """Posts a new question."""

    def __init__(
        self,
        questions,
        timer: _Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._questions = questions
        self._timer = timer if timer is not None else Timer()
        self._logger = logger if logger is not None else _DEFAULT_LOGGER

    def create_question(self, user_id: str, text: str) -> Question:
        question = Question(text=text, user_id=user_id, created_at=self._timer.now())
        try:
            created = self._questions.create(question)
        except Exception as exc:
            raise RuntimeError(f"create question: {exc}") from exc

        self._logger.debug("question created", extra={"question_id": created.id})
        return created


class DeleteQuestionUseCase:
    """Deletes a question and all its answers in one transaction."""

    def __init__(
        self,
        questions,
        answers,
        uow: _UnitOfWork,
        logger: logging.Logger | None = None,
    ) -> None:
        self._questions = questions
        self._answers = answers
        self._uow = uow
        self._logger = logger if logger is not None else _DEFAULT_LOGGER

    def delete_question(self, question_id: int, user_id: str) -> None:
        """Delete the question; only its author may do so."""
        try:
            question = self._questions.get_by_id(question_id)
        except QuestionNotFoundError:
            raise
        except Exception as exc:
            raise RuntimeError(f"get question: {exc}") from exc

        if question.user_id != user_id:
            raise QuestionAccessDeniedError()

        def remove() -> None:
            try:
                self._questions.delete(question_id)
            except Exception as exc:
                raise RuntimeError(f"delete question: {exc}") from exc
            try:
                self._answers.delete_by_question_id(question_id)
            except Exception as exc:
                raise RuntimeError(f"delete answers: {exc}") from exc
            self._logger.debug(
                "question deleted with all answers",
                extra={"question_id": question_id, "user_id": user_id},
            )

        self._uow.do(remove)


class GetQuestionWithAnswersUseCase:
    """Loads a question with its answers."""

    def __init__(self, questions, answers, logger: logging.Logger | None = None) -> None:
        self._questions = questions
        self._answers = answers
        self._logger = logger if logger is not None else _DEFAULT_LOGGER

    def get_question_with_answers(self, question_id: int) -> QuestionWithAnswers:
        try:
            question = self._questions.get_by_id(question_id)
        except QuestionNotFoundError:
            raise QuestionNotFoundError() from None
        except Exception as exc:
            raise RuntimeError(f"get question: {exc}") from exc

        try:
            answers = list(self._answers.list_by_question_id(question_id))
        except Exception as exc:
            raise RuntimeError(f"list answers: {exc}") from exc

        self._logger.debug(
            "loaded question with answers",
            extra={"question_id": question_id, "answers": len(answers)},
        )
        return QuestionWithAnswers(question=question, answers=answers)


class ListQuestionsUseCase:
    """Lists all questions."""

    def __init__(self, questions, logger: logging.Logger | None = None) -> None:
        self._questions = questions
        self._logger = logger if logger is not None else _DEFAULT_LOGGER

    def list_questions(self) -> list[Question]:
        try:
            questions = list(self._questions.list())
        except Exception as exc:
            raise RuntimeError(f"list questions: {exc}") from exc

        self._logger.debug("questions listed", extra={"count": len(questions)})
        return questions