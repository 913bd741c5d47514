"""Domain entities and the errors the domain reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


class DomainError(Exception):
    """Base class for errors that carry a domain meaning."""

    default_message = "domain error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class QuestionNotFoundError(DomainError):
    default_message = "question not found"


class QuestionAccessDeniedError(DomainError):
    default_message = "access denied"


class AnswerNotFoundError(DomainError):
    default_message = "answer not found"


class RequestedQuestionNotFoundError(DomainError):
    default_message = "requested question not found"


class AnswerAccessDeniedError(DomainError):
    default_message = "access denied"


@dataclass
class Question:
    """A question posted by a user."""

    id: int = 0
    text: str = ""
    user_id: str = ""
    created_at: datetime = ZERO_TIME


@dataclass
class Answer:
    """An answer given to a question."""

    id: int = 0
    question_id: int = 0
    user_id: str = ""
    text: str = ""
    created_at: datetime = ZERO_TIME