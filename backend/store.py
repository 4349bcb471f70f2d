"""
Document store backed by a PostgreSQL JSONB table.
Each document lives at (collection, doc_id); writes are full replaces.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import psycopg2
from psycopg2.extras import Json

from backend.exceptions import StoreError

logger = logging.getLogger(__name__)


class DocumentStore(ABC):
    """Keyed document access used by the request handlers."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class PostgresDocumentStore(DocumentStore):
    def __init__(self, database_url: str, connect_timeout: int = 10):
        self.database_url = database_url
        self.connect_timeout = connect_timeout
        self._conn = None

    def _get_conn(self):
        if self._conn is None or self._conn.closed:
            if not self.database_url:
                raise StoreError("DATABASE_URL environment variable is not set")
            try:
                self._conn = psycopg2.connect(self.database_url, connect_timeout=self.connect_timeout)
                self._conn.autocommit = True
            except psycopg2.Error as e:
                raise StoreError(f"Database connection failed: {e}") from e
            logger.info("Database connection created")
        return self._conn

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        conn = self._get_conn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT data FROM documents
                    WHERE collection = %s AND doc_id = %s
                """, (collection, doc_id))
                row = cur.fetchone()
        except psycopg2.Error as e:
            raise StoreError(f"Error reading {collection}/{doc_id}: {e}") from e

        if not row:
            return None
        return row[0] if isinstance(row[0], dict) else {}

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        conn = self._get_conn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO documents (collection, doc_id, data, updated_at)
                    VALUES (%s, %s, %s::jsonb, NOW())
                    ON CONFLICT (collection, doc_id)
                    DO UPDATE SET
                        data = EXCLUDED.data,
                        updated_at = EXCLUDED.updated_at
                """, (collection, doc_id, Json(data)))
        except psycopg2.Error as e:
            raise StoreError(f"Error writing {collection}/{doc_id}: {e}") from e

    def close(self) -> None:
        if self._conn is not None and not self._conn.closed:
            self._conn.close()
        self._conn = None
