from __future__ import annotations

from pathlib import Path

from app.services.constants import DIFFICULTIES
from app.services.question_bank import get_static_questions
from scripts.init_db import DEFAULT_SCHEMA, build_seed_rows, split_sql


def test_split_sql_ignores_semicolons_inside_quotes():
    sql = "CREATE TABLE a (x TEXT DEFAULT 'a;b');\n\nCREATE INDEX i ON a (x);\n"
    assert split_sql(sql) == ["CREATE TABLE a (x TEXT DEFAULT 'a;b')", "CREATE INDEX i ON a (x)"]


def test_schema_file_defines_table_and_index():
    statements = split_sql(Path(DEFAULT_SCHEMA).read_text(encoding="utf-8"))
    joined = "\n".join(statements)
    assert "trivia_questions" in joined
    assert "created_at DESC" in joined


def test_seed_rows_cover_every_difficulty_with_unique_ids():
    rows = build_seed_rows()

    assert len(rows) == len(get_static_questions()) * len(DIFFICULTIES)
    assert len({row["id"] for row in rows}) == len(rows)
    assert {row["difficulty"] for row in rows} == set(DIFFICULTIES)
