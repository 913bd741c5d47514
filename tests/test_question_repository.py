from datetime import datetime, timedelta, timezone

import pytest

from qaboard.db import open_database
from qaboard.entities import Question, QuestionNotFoundError
from qaboard.question_repository import (
    QuestionRepository,
    QuestionRow,
    from_entity_question,
    to_entity_question,
)

USER_ID = "11111111-1111-1111-1111-111111111111"


def _row_values(row):
    return (row.id, row.text, row.user_id, row.created_at)


@pytest.fixture
def sessions():
    return open_database("sqlite://")


@pytest.fixture
def repo(sessions):
    return QuestionRepository(sessions)


def _insert(sessions, **values):
    with sessions.begin() as session:
        row = QuestionRow(**values)
        session.add(row)
        session.flush()
        return row.id


def test_to_entity_row_to_entity():
    now = datetime.now(timezone.utc)
    row = QuestionRow(id=1, text="hi", user_id="1", created_at=now)
    assert to_entity_question(row) == Question(id=1, text="hi", user_id="1", created_at=now)


def test_to_entity_nil_row():
    assert to_entity_question(None) is None


def test_from_entity_entity_to_row():
    now = datetime.now(timezone.utc)
    row = from_entity_question(Question(id=2, text="yo", user_id="1", created_at=now))
    assert _row_values(row) == (2, "yo", "1", now)
    assert row.deleted_at is None


def test_from_entity_nil_entity():
    assert from_entity_question(None) is None


def test_create(repo, sessions):
    out = repo.create(
        Question(text="hello world", user_id=USER_ID, created_at=datetime.now(timezone.utc))
    )
    assert out.id > 0

    with sessions() as session:
        row = session.get(QuestionRow, out.id)
        assert out.id == row.id
        assert out.text == row.text
        assert out.user_id == row.user_id
        assert abs(out.created_at - row.created_at) <= timedelta(seconds=1)


def test_create_assigns_distinct_ids(repo):
    first = repo.create(Question(text="a", user_id=USER_ID))
    second = repo.create(Question(text="b", user_id=USER_ID))
    assert first.id != second.id
    assert {q.text for q in repo.list()} == {"a", "b"}


def test_get_by_id(repo, sessions):
    now = datetime.now(timezone.utc)
    row_id = _insert(sessions, text="test fetch", user_id=USER_ID, created_at=now)

    out = repo.get_by_id(row_id)
    assert out.id == row_id
    assert out.text == "test fetch"
    assert out.user_id == USER_ID
    assert abs(out.created_at - now) <= timedelta(seconds=1)


def test_get_by_id_missing(repo):
    with pytest.raises(QuestionNotFoundError):
        repo.get_by_id(999)


def test_delete(repo, sessions):
    row_id = _insert(
        sessions, text="to delete", user_id=USER_ID, created_at=datetime.now(timezone.utc)
    )
    repo.delete(row_id)

    with pytest.raises(QuestionNotFoundError):
        repo.get_by_id(row_id)

    with sessions() as session:
        stored = session.get(QuestionRow, row_id)
        assert stored.text == "to delete"
        assert stored.deleted_at is not None


def test_delete_missing_is_quiet(repo):
    repo.delete(4242)
    assert repo.list() == []


def test_list_skips_deleted(repo):
    kept = repo.create(Question(text="kept", user_id=USER_ID))
    gone = repo.create(Question(text="gone", user_id=USER_ID))
    repo.delete(gone.id)

    listed = repo.list()
    assert [q.id for q in listed] == [kept.id]
    assert listed[0].text == "kept"