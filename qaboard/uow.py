"""Unit of work: run several repository writes in one transaction."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar

from sqlalchemy.orm import Session, sessionmaker

T = TypeVar("T")

_active_session: ContextVar[Session | None] = ContextVar(
    "qaboard_active_session", default=None
)


def current_session(default: Any = None) -> Any:
    """Return the session of the enclosing unit of work, or ``default``."""
    session = _active_session.get()
    return default if session is None else session


class UnitOfWork:
    """Opens transactions that repository writes join while they last."""

    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Commit on normal exit, roll back when an exception escapes."""
        with self._sessions.begin() as session:
            token = _active_session.set(session)
            try:
                yield session
            finally:
                _active_session.reset(token)

    def do(self, fn: Callable[[], T]) -> T:
        """Call ``fn`` inside one transaction and return what it returns."""
        with self.transaction():
            return fn()