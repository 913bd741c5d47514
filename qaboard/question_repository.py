"""Storage of questions."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import BigInteger, Integer, String, Text, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column, sessionmaker

from qaboard.db import Base
from qaboard.entities import ZERO_TIME, Question, QuestionNotFoundError
from qaboard.uow import current_session

_ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


def _now() -> datetime:
    return datetime.now().astimezone()


class QuestionRow(Base):
    """Table row of a question; rows are soft-deleted via ``deleted_at``."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(_ID_TYPE, primary_key=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column()
    deleted_at: Mapped[datetime | None] = mapped_column(index=True)


def to_entity_question(row: QuestionRow | None) -> Question | None:
    if row is None:
        return None
    return Question(
        id=int(row.id),
        text=row.text,
        user_id=row.user_id,
        created_at=row.created_at,
    )


def from_entity_question(entity: Question | None) -> QuestionRow | None:
    if entity is None:
        return None
    return QuestionRow(
        id=entity.id,
        text=entity.text,
        user_id=entity.user_id,
        created_at=entity.created_at,
    )


class QuestionRepository:
    """Reads and writes questions; writes join an open unit of work."""

    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    @contextmanager
    def _writer(self) -> Iterator[Session]:
        active = current_session()
        if active is not None:
            yield active
            return
        with self._sessions.begin() as session:
            yield session

    def _live(self):
        return select(QuestionRow).where(QuestionRow.deleted_at.is_(None))

    def list(self) -> list[Question]:
        with self._sessions() as session:
            return [to_entity_question(row) for row in session.scalars(self._live()).all()]

    def create(self, question: Question) -> Question:
        row = from_entity_question(question)
        if not row.id:
            row.id = None
        if row.created_at is None or row.created_at == ZERO_TIME:
            row.created_at = _now()
        with self._writer() as session:
            session.add(row)
            session.flush()
            return to_entity_question(row)

    def delete(self, question_id: int) -> None:
        with self._writer() as session:
            session.execute(
                update(QuestionRow)
                .where(QuestionRow.id == question_id, QuestionRow.deleted_at.is_(None))
                .values(deleted_at=_now())
            )

    def get_by_id(self, question_id: int) -> Question:
        with self._sessions() as session:
            row = session.scalars(
                self._live()
                .where(QuestionRow.id == question_id)
                .order_by(QuestionRow.id)
                .limit(1)
            ).first()
            if row is None:
                raise QuestionNotFoundError()
            return to_entity_question(row)