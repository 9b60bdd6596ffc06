from psycopg2.extras import DictCursor, execute_values
from psycopg2.extensions import connection as PGConnection
import json
from datetime import datetime, timezone
from typing import List, Dict


def get_recent_trivia_questions(conn: PGConnection, count: int, difficulty: str) -> List[Dict]:
    """
    Retrieve the most recently created questions for a difficulty
    Returns: List of row dicts, newest first
    """
    query = """
    SELECT id, category, question, options, correct_answer, year_indicator, difficulty, created_at
    FROM trivia_questions
    WHERE difficulty = %s
    ORDER BY created_at DESC
    LIMIT %s;
    """

    with conn.cursor(cursor_factory=DictCursor) as cursor:
        cursor.execute(query, (difficulty, count))
        return [dict(result) for result in cursor.fetchall()]


def insert_trivia_questions(conn: PGConnection, questions: List[Dict]) -> int:
    """
    Bulk insert question rows, skipping ids that already exist
    Returns: Number of inserted rows
    """
    if not questions:
        return 0

    query = """
    INSERT INTO trivia_questions
        (id, category, question, options, correct_answer, year_indicator, difficulty, created_at)
    VALUES %s
    ON CONFLICT (id) DO NOTHING;
    """
    now = datetime.now(timezone.utc)
    values = [
        (
            q["id"],
            q["category"],
            q["question"],
            json.dumps(q["options"]),
            q["correct_answer"],
            q["year_indicator"],
            q["difficulty"],
            q.get("created_at") or now,
        )
        for q in questions
    ]

    with conn.cursor() as cursor:
        execute_values(cursor, query, values, page_size=len(values))
        inserted = cursor.rowcount
        conn.commit()
        return inserted


def count_trivia_questions(conn: PGConnection, difficulty: str) -> int:
    """
    Get total number of cached questions for a difficulty
    Returns: Count of questions
    """
    query = "SELECT COUNT(*) FROM trivia_questions WHERE difficulty = %s;"

    with conn.cursor() as cursor:
        cursor.execute(query, (difficulty,))
        return cursor.fetchone()[0]
