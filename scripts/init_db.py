"""
Initialize the PostgreSQL schema for the trivia question cache.

- Executes scripts/schema.sql statement-by-statement.
- Continues on benign errors (e.g., already exists) and reports a summary.
- Optionally seeds the cache with the static question bank for every difficulty.

Env:
  DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD, DB_SSLMODE (optional)

Usage:
  python scripts/init_db.py --yes [--seed]
"""
import argparse
import os
import sys
import textwrap

import psycopg2

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app.database.connection import build_dsn_from_env  # noqa: E402
from app.database.trivia_queries import insert_trivia_questions  # noqa: E402
from app.services.constants import DIFFICULTIES  # noqa: E402
from app.services.question_bank import get_static_questions  # noqa: E402
from app.services.question_store import question_to_row  # noqa: E402
from app.services.validator import make_question_id  # noqa: E402

DEFAULT_SCHEMA = os.path.join(os.path.dirname(os.path.abspath(__file__)), "schema.sql")


def split_sql(statements: str):
    """
    Split SQL into individual statements, respecting single quotes.
    Lightweight splitter suitable for schema files.
    """
    stmts = []
    buf = []
    in_single = False
    for ch in statements:
        if ch == "'":
            in_single = not in_single
            buf.append(ch)
        elif ch == ";" and not in_single:
            stmt = "".join(buf).strip()
            if stmt:
                stmts.append(stmt)
            buf = []
        else:
            buf.append(ch)
    tail = "".join(buf).strip()
    if tail:
        stmts.append(tail)
    return stmts


def build_seed_rows():
    """ Static bank rows for every difficulty, each with its own globally unique id. """
    rows = []
    taken_ids = set()
    for difficulty in DIFFICULTIES:
        for question in get_static_questions(difficulty):
            row = question_to_row(question)
            row["id"] = make_question_id(question.category, question.year_indicator, taken_ids)
            taken_ids.add(row["id"])
            rows.append(row)
    return rows


def main():
    parser = argparse.ArgumentParser(description="Initialize the trivia question cache schema.")
    parser.add_argument("--sql", default=DEFAULT_SCHEMA,
                        help="Path to the SQL schema file.")
    parser.add_argument("--seed", action="store_true",
                        help="Insert the static question bank for every difficulty.")
    parser.add_argument("--yes", action="store_true",
                        help="Run without interactive confirmation.")
    args = parser.parse_args()

    if not os.path.exists(args.sql):
        print(f"Schema file not found: {args.sql}", file=sys.stderr)
        sys.exit(1)

    dsn = build_dsn_from_env()
    if not dsn:
        print("Missing DB_NAME, DB_USER or DB_PASSWORD env vars", file=sys.stderr)
        sys.exit(2)

    if not args.yes:
        print(textwrap.dedent(f"""
            This will connect to Postgres using env vars (DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD)
            and apply schema from:
              {os.path.abspath(args.sql)}
            {"and seed the static question bank for every difficulty." if args.seed else ""}
            Continue? [y/N]
        """).strip())
        ans = input("> ").strip().lower()
        if ans not in ("y", "yes"):
            print("Aborted.")
            sys.exit(0)

    conn = psycopg2.connect(dsn)
    conn.autocommit = True
    cur = conn.cursor()

    executed = 0
    failed = 0

    try:
        with open(args.sql, "r", encoding="utf-8") as f:
            sql_text = f.read()

        for stmt in split_sql(sql_text):
            try:
                cur.execute(stmt)
                executed += 1
            except psycopg2.Error as e:
                failed += 1
                head = stmt.splitlines()[0] if stmt.splitlines() else stmt[:200]
                print(f"[ERR] {e}\n  at: {head[:200]}...")

        print(f"\nDone. Executed: {executed}, Failed: {failed}")

        if args.seed:
            conn.autocommit = False
            inserted = insert_trivia_questions(conn, build_seed_rows())
            print(f"Seeded {inserted} static questions.")
    finally:
        cur.close()
        conn.close()


if __name__ == "__main__":
    main()
