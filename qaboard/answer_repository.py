"""Storage of answers."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import BigInteger, Integer, Text, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column, sessionmaker

from qaboard.db import Base
from qaboard.entities import ZERO_TIME, Answer, AnswerNotFoundError
from qaboard.uow import current_session

_ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


def _now() -> datetime:
    return datetime.now().astimezone()


class AnswerRow(Base):
    """Table row of an answer; rows are soft-deleted via ``deleted_at``."""

    __tablename__ = "answers"

    id: Mapped[int] = mapped_column(_ID_TYPE, primary_key=True)
    question_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column()
    deleted_at: Mapped[datetime | None] = mapped_column(index=True)


def to_entity_answer(row: AnswerRow | None) -> Answer | None:
    if row is None:
        return None
    return Answer(
        id=int(row.id),
        question_id=int(row.question_id),
        user_id=row.user_id,
        text=row.text,
        created_at=row.created_at,
    )


def from_entity_answer(entity: Answer | None) -> AnswerRow | None:
    if entity is None:
        return None
    return AnswerRow(
        id=entity.id,
        question_id=entity.question_id,
        user_id=entity.user_id,
        text=entity.text,
        created_at=entity.created_at,
    )


class AnswerRepository:
    """Reads and writes answers; writes join an open unit of work."""

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
        return select(AnswerRow).where(AnswerRow.deleted_at.is_(None))

    def create(self, answer: Answer) -> Answer:
        row = from_entity_answer(answer)
        if not row.id:
            row.id = None
        if row.created_at is None or row.created_at == ZERO_TIME:
            row.created_at = _now()
        with self._writer() as session:
            session.add(row)
            session.flush()
            return to_entity_answer(row)

    def get_by_id(self, answer_id: int) -> Answer:
        with self._sessions() as session:
            row = session.scalars(
                self._live()
                .where(AnswerRow.id == answer_id)
                .order_by(AnswerRow.id)
                .limit(1)
            ).first()
            if row is None:
                raise AnswerNotFoundError()
            return to_entity_answer(row)

    def delete(self, answer_id: int) -> None:
        with self._writer() as session:
            session.execute(
                update(AnswerRow)
                .where(AnswerRow.id == answer_id, AnswerRow.deleted_at.is_(None))
                .values(deleted_at=_now())
            )

    def delete_by_question_id(self, question_id: int) -> None:
        with self._writer() as session:
            session.execute(
                update(AnswerRow)
                .where(
                    AnswerRow.question_id == question_id,
                    AnswerRow.deleted_at.is_(None),
                )
                .values(deleted_at=_now())
            )

    def list_by_question_id(self, question_id: int) -> list[Answer]:
        with self._sessions() as session:
            rows = session.scalars(
                self._live()
                .where(AnswerRow.question_id == question_id)
                .order_by(AnswerRow.created_at.asc())
            ).all()
            return [to_entity_answer(row) for row in rows]