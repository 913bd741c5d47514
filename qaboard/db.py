"""Database engine setup and the declarative base for table rows."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import IntEnum

from sqlalchemy import DateTime, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

ENGINE_LOGGER = "sqlalchemy.engine"


class _AwareDateTime(TypeDecorator):
    """Stores instants in UTC and hands them back as aware local times."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.astimezone()
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            value = value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone()


class Base(DeclarativeBase):
    """Declarative base shared by all table rows."""

    type_annotation_map = {datetime: _AwareDateTime()}


class DbLogLevel(IntEnum):
    """Verbosity of database statement logging."""

    SILENT = 1
    ERROR = 2
    WARN = 3
    INFO = 4

    @property
    def logging_level(self) -> int:
        return {
            DbLogLevel.SILENT: logging.CRITICAL + 10,
            DbLogLevel.ERROR: logging.ERROR,
            DbLogLevel.WARN: logging.WARNING,
            DbLogLevel.INFO: logging.INFO,
        }[self]


def parse_db_log_level(lvl: str) -> DbLogLevel:
    """Map a level name to a DbLogLevel; unknown names give ERROR."""
    return {
        "silent": DbLogLevel.SILENT,
        "error": DbLogLevel.ERROR,
        "warn": DbLogLevel.WARN,
        "warning": DbLogLevel.WARN,
        "info": DbLogLevel.INFO,
        "debug": DbLogLevel.INFO,
    }.get(lvl.lower(), DbLogLevel.ERROR)


def _normalise_dsn(dsn: str) -> str:
    if dsn.startswith("postgres://"):
        return "postgresql://" + dsn[len("postgres://"):]
    return dsn


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (
        ":memory:" in url or "mode=memory" in url or url.rstrip("/") == "sqlite:"
    )


def open_database(
    dsn: str, log_level: DbLogLevel = DbLogLevel.ERROR
) -> sessionmaker[Session]:
    """Connect to the database, create missing tables and return a session factory."""
    url = _normalise_dsn(dsn)
    options: dict = {}
    if _is_memory_sqlite(url):
        options = {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }

    logging.getLogger(ENGINE_LOGGER).setLevel(log_level.logging_level)
    engine = create_engine(url, **options)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)