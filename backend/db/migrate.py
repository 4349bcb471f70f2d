"""
Database migration utility.
Creates the documents table on app startup.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import psycopg2

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).resolve().parent / "schema.sql"


def check_table_exists(conn, table_name: str) -> bool:
    """Check if a table exists in the database."""
    with conn.cursor() as cur:
        cur.execute("""
            SELECT EXISTS (
                SELECT FROM information_schema.tables
                WHERE table_schema = 'public'
                AND table_name = %s
            );
        """, (table_name,))
        return cur.fetchone()[0]


def run_migration(database_url: str) -> Tuple[bool, Optional[str]]:
    """
    Run the migration from backend/db/schema.sql.

    Returns:
        Tuple of (success, message). On failure message contains error details.
    """
    if not database_url:
        return False, "DATABASE_URL environment variable is not set"

    try:
        schema_sql = SCHEMA_FILE.read_text()
    except OSError as e:
        return False, f"Failed to read schema file {SCHEMA_FILE}: {e}"

    conn = None
    try:
        conn = psycopg2.connect(database_url, connect_timeout=10)
        conn.autocommit = True
        with conn.cursor() as cur:
            cur.execute(schema_sql)

        if not check_table_exists(conn, "documents"):
            return False, "Migration ran but documents table is missing"

        logger.info("Migration applied from %s", SCHEMA_FILE.name)
        return True, "documents table ready"
    except psycopg2.Error as e:
        return False, f"Migration failed: {e}"
    finally:
        if conn is not None:
            conn.close()
