from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import psycopg2
import pytest

from app.services import question_store as question_store_module
from app.services.errors import StoreError
from app.services.question_store import QuestionStore, question_to_row, row_to_question
from tests.fakes import FakeConnection, make_question


class InMemoryTable:
    """Replaces the SQL helpers with a list of row dicts."""

    def __init__(self):
        self.rows = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def insert(self, conn, questions):
        existing = {row["id"] for row in self.rows}
        inserted = 0
        for q in questions:
            if q["id"] in existing:
                continue
            self._clock += timedelta(seconds=1)
            self.rows.append({**q, "options": list(q["options"]), "created_at": self._clock})
            inserted += 1
        return inserted

    def recent(self, conn, count, difficulty):
        matching = [row for row in self.rows if row["difficulty"] == difficulty]
        matching.sort(key=lambda row: row["created_at"], reverse=True)
        return [dict(row) for row in matching[:count]]

    def count(self, conn, difficulty):
        return sum(1 for row in self.rows if row["difficulty"] == difficulty)


@contextmanager
def fake_connection():
    yield object()


@pytest.fixture
def table(monkeypatch):
    table = InMemoryTable()
    monkeypatch.setattr(question_store_module, "insert_trivia_questions", table.insert)
    monkeypatch.setattr(question_store_module, "get_recent_trivia_questions", table.recent)
    monkeypatch.setattr(question_store_module, "count_trivia_questions", table.count)
    return table


def test_row_round_trip_preserves_fields():
    question = make_question(2, "hard")
    restored = row_to_question(question_to_row(question))
    assert restored == question


def test_insert_then_query_round_trip(table):
    store = QuestionStore(fake_connection)
    questions = [make_question(i, "medium") for i in range(3)]

    assert store.insert_batch(questions, "medium") == 3
    fetched = store.query(10, "medium")

    by_id = {q.id: q for q in fetched}
    for original in questions:
        restored = by_id[original.id]
        assert restored.question == original.question
        assert restored.options == original.options
        assert restored.correct_answer == original.correct_answer
        assert restored.category == original.category
        assert restored.year_indicator == original.year_indicator


def test_query_returns_most_recent_first_and_respects_limit(table):
    store = QuestionStore(fake_connection)
    older = [make_question(i, "easy") for i in range(3)]
    newer = [make_question(i + 10, "easy") for i in range(2)]
    store.insert_batch(older, "easy")
    store.insert_batch(newer, "easy")

    fetched = store.query(2, "easy")

    assert [q.id for q in fetched] == [newer[1].id, newer[0].id]


def test_insert_tags_rows_with_difficulty(table):
    store = QuestionStore(fake_connection)
    store.insert_batch([make_question(0, "easy")], "hard")

    assert store.count("hard") == 1
    assert store.count("easy") == 0


def test_insert_skips_existing_ids(table):
    store = QuestionStore(fake_connection)
    question = make_question(0, "medium")
    assert store.insert_batch([question], "medium") == 1
    assert store.insert_batch([question], "medium") == 0


def test_query_skips_corrupted_rows(table):
    store = QuestionStore(fake_connection)
    store.insert_batch([make_question(0, "medium")], "medium")
    table.rows.append({
        "id": "broken", "category": "development", "question": "Broken?",
        "options": ["a", "a", "b", "c"], "correct_answer": 0, "year_indicator": 2020,
        "difficulty": "medium", "created_at": datetime(2030, 1, 1, tzinfo=timezone.utc),
    })

    fetched = store.query(10, "medium")

    assert [q.id for q in fetched if q.id == "broken"] == []
    assert len(fetched) == 1


def test_database_errors_become_store_errors():
    @contextmanager
    def unreachable():
        raise psycopg2.OperationalError("could not connect to server")
        yield  # pragma: no cover

    store = QuestionStore(unreachable)

    with pytest.raises(StoreError):
        store.query(5, "easy")
    with pytest.raises(StoreError):
        store.insert_batch([make_question(0)], "easy")
    with pytest.raises(StoreError):
        store.count("easy")


def test_from_env_without_database_settings(monkeypatch):
    for var in ("DB_NAME", "DB_USER", "DB_PASSWORD"):
        monkeypatch.delenv(var, raising=False)
    assert QuestionStore.from_env() is None


def test_query_skips_rows_with_undecodable_options():
    def stored_row(question_id, options):
        return {
            "id": question_id, "category": "development", "question": "Which chain?",
            "options": options, "correct_answer": 0, "year_indicator": 2020,
            "difficulty": "easy", "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }

    conn = FakeConnection(rows=[
        stored_row("development-2020-bad00000", "not json"),
        stored_row("development-2020-good0000", json.dumps(["a", "b", "c", "d"])),
    ])

    @contextmanager
    def connect():
        yield conn

    fetched = QuestionStore(connect).query(5, "easy")

    assert [q.id for q in fetched] == ["development-2020-good0000"]
