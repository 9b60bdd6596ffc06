import json
import logging
from typing import Callable, ContextManager, List, Optional, Sequence

import psycopg2
from psycopg2.extensions import connection as PGConnection

from app.database.connection import PostgresConnection, build_dsn_from_env
from app.database.trivia_queries import (
    count_trivia_questions,
    get_recent_trivia_questions,
    insert_trivia_questions,
)
from app.schemas.trivia import TriviaQuestion
from app.services.errors import StoreError
from app.services.validator import validate_question

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], ContextManager[PGConnection]]


def question_to_row(question: TriviaQuestion, difficulty: Optional[str] = None) -> dict:
    return {
        "id": question.id,
        "category": question.category,
        "question": question.question,
        "options": list(question.options),
        "correct_answer": question.correct_answer,
        "year_indicator": question.year_indicator,
        "difficulty": difficulty or question.difficulty,
    }


def row_to_question(row: dict) -> TriviaQuestion:
    options = row["options"]
    # JSONB comes back decoded; TEXT columns hold the JSON string
    if isinstance(options, str):
        options = json.loads(options)
    return TriviaQuestion(
        id=str(row["id"]),
        category=row["category"],
        question=row["question"],
        options=list(options),
        correct_answer=row["correct_answer"],
        year_indicator=row["year_indicator"],
        difficulty=row["difficulty"],
    )


class QuestionStore:
    """
    Durable cache of previously accepted questions, keyed by difficulty.

    Rows are only ever added. Every failure surfaces as StoreError so callers
    can treat the whole tier as unavailable.
    """

    def __init__(self, connection_factory: ConnectionFactory):
        self._connect = connection_factory

    @classmethod
    def from_env(cls) -> Optional["QuestionStore"]:
        dsn = build_dsn_from_env()
        if not dsn:
            return None
        return cls(lambda: PostgresConnection(dsn))

    def query(self, count: int, difficulty: str) -> List[TriviaQuestion]:
        """ Up to `count` questions at `difficulty`, most recently created first. """
        try:
            with self._connect() as conn:
                rows = get_recent_trivia_questions(conn, count, difficulty)
        except (psycopg2.Error, RuntimeError) as e:
            raise StoreError(f"Failed to query cached questions: {e}") from e

        questions = []
        for row in rows:
            try:
                candidate = row_to_question(row)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable cached row {row.get('id')}: {e}")
                continue
            result = validate_question(candidate, difficulty)
            if not result.ok:
                logger.warning(f"Skipping invalid cached row {row.get('id')}: {result.error.reason}")
                continue
            questions.append(result.question)
        return questions

    def insert_batch(self, questions: Sequence[TriviaQuestion], difficulty: Optional[str] = None) -> int:
        """ Bulk insert; existing ids are left untouched. Returns the inserted row count. """
        rows = [question_to_row(q, difficulty) for q in questions]
        try:
            with self._connect() as conn:
                inserted = insert_trivia_questions(conn, rows)
        except (psycopg2.Error, RuntimeError) as e:
            raise StoreError(f"Failed to insert {len(rows)} questions: {e}") from e
        logger.info(f"Stored {inserted}/{len(rows)} questions in the question cache")
        return inserted

    def count(self, difficulty: str) -> int:
        try:
            with self._connect() as conn:
                return count_trivia_questions(conn, difficulty)
        except (psycopg2.Error, RuntimeError) as e:
            raise StoreError(f"Failed to count cached questions: {e}") from e
