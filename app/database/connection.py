import logging
import os

import psycopg2
from psycopg2.extensions import connection as PGConnection

logger = logging.getLogger(__name__)


def build_dsn_from_env() -> str | None:
    """Build a libpq DSN from DB_* env vars, or None when the database is not configured."""
    host = os.getenv("DB_HOST", "localhost")
    port = int(os.getenv("DB_PORT", "5432"))
    name = os.getenv("DB_NAME")
    user = os.getenv("DB_USER")
    password = os.getenv("DB_PASSWORD")
    sslmode = os.getenv("DB_SSLMODE")  # optional

    missing = [k for k, v in {
        "DB_NAME": name, "DB_USER": user, "DB_PASSWORD": password
    }.items() if not v]
    if missing:
        logger.warning(f"Database not configured, missing env vars: {', '.join(missing)}")
        return None

    dsn = f"host={host} port={port} dbname={name} user={user} password={password}"
    if sslmode:
        dsn += f" sslmode={sslmode}"
    return dsn


class PostgresConnection:
    """
    Context manager around a single psycopg2 connection.

    Rolls back on error and always closes the connection on exit.
    """

    def __init__(self, dsn: str | None = None, connect_timeout: int = 5):
        self.dsn = dsn or build_dsn_from_env()
        self.connect_timeout = connect_timeout
        self.conn: PGConnection | None = None

    def __enter__(self) -> PGConnection:
        if not self.dsn:
            raise RuntimeError("Database connection is not configured")
        self.conn = psycopg2.connect(self.dsn, connect_timeout=self.connect_timeout)
        return self.conn

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.conn is None:
            return False
        try:
            if exc_type is not None:
                self.conn.rollback()
        finally:
            self.conn.close()
            self.conn = None
        return False
