import logging
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import ArgumentError

from qaboard.answer_repository import AnswerRow  # noqa: F401  registers the table
from qaboard.db import DbLogLevel, open_database, parse_db_log_level
from qaboard.question_repository import QuestionRow


@pytest.fixture
def restore_engine_logger():
    engine_logger = logging.getLogger("sqlalchemy.engine")
    level = engine_logger.level
    yield engine_logger
    engine_logger.setLevel(level)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("silent", DbLogLevel.SILENT),
        ("error", DbLogLevel.ERROR),
        ("warn", DbLogLevel.WARN),
        ("warning", DbLogLevel.WARN),
        ("info", DbLogLevel.INFO),
        ("debug", DbLogLevel.INFO),
        ("SILENT", DbLogLevel.SILENT),
        ("Info", DbLogLevel.INFO),
        ("nonsense", DbLogLevel.ERROR),
        ("", DbLogLevel.ERROR),
    ],
)
def test_parse_db_log_level(name, expected):
    assert parse_db_log_level(name) is expected


def test_logging_levels_follow_order():
    assert parse_db_log_level("info").logging_level == logging.INFO
    assert parse_db_log_level("warn").logging_level == logging.WARNING
    assert parse_db_log_level("error").logging_level == logging.ERROR
    assert parse_db_log_level("silent").logging_level > logging.CRITICAL


def test_open_database_sets_engine_log_level(restore_engine_logger):
    sessions = open_database("sqlite://", DbLogLevel.WARN)
    assert restore_engine_logger.level == logging.WARNING
    with sessions() as session:
        assert session.execute(text("SELECT 1")).scalar() == 1


def test_open_database_default_level_is_error(restore_engine_logger):
    sessions = open_database("sqlite://")
    assert restore_engine_logger.level == logging.ERROR
    with sessions() as session:
        assert session.query(QuestionRow).count() == 0


def test_open_database_creates_tables(restore_engine_logger):
    sessions = open_database("sqlite://")
    with sessions() as session:
        names = set(inspect(session.get_bind()).get_table_names())
        assert session.execute(text("SELECT 1")).scalar() == 1
    assert {"answers", "questions"} <= names


def test_open_database_rejects_bad_url(restore_engine_logger):
    with pytest.raises(ArgumentError):
        open_database("not a database url")


def test_memory_databases_are_separate(restore_engine_logger):
    first = open_database("sqlite://")
    second = open_database("sqlite://")
    with first.begin() as session:
        session.add(
            QuestionRow(text="only here", user_id="u", created_at=datetime.now(timezone.utc))
        )
    with second() as session:
        assert session.query(QuestionRow).count() == 0
    with first() as session:
        assert session.query(QuestionRow).count() == 1


def test_aware_timestamp_round_trip(restore_engine_logger):
    sessions = open_database("sqlite://")
    stamp = datetime(2024, 11, 21, 10, 0, 0, tzinfo=timezone(timedelta(hours=3)))
    with sessions.begin() as session:
        row = QuestionRow(text="t", user_id="u", created_at=stamp)
        session.add(row)
        session.flush()
        row_id = row.id
    with sessions() as session:
        stored = session.get(QuestionRow, row_id)
        assert stored.created_at == stamp
        assert stored.created_at.tzinfo is not None


def test_naive_timestamp_is_taken_as_local(restore_engine_logger):
    sessions = open_database("sqlite://")
    stamp = datetime(2024, 11, 20, 12, 0, 0)
    with sessions.begin() as session:
        row = QuestionRow(text="t", user_id="u", created_at=stamp)
        session.add(row)
        session.flush()
        row_id = row.id
    with sessions() as session:
        assert session.get(QuestionRow, row_id).created_at == stamp.astimezone()