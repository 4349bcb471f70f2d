#!/usr/bin/env python3
"""
Re-key documents whose id is not the canonical E.164 form.

Every contact and pending contact must be stored under its canonical phone
key. This finds stray ids (e.g. "4155551212", "(415) 555-1212") in a
collection and moves each document to its canonical key. If a document
already exists at the canonical key it is kept and the stray is reported.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import psycopg2
from psycopg2.extras import Json

from backend.config import load_config
from backend.phone import to_e164

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s'
)
logger = logging.getLogger(__name__)


def plan_rekeys(doc_ids):
    """
    Split ids into (moves, unparseable).
    moves is a list of (old_id, canonical_id) for ids that are not canonical.
    """
    moves = []
    unparseable = []
    for doc_id in doc_ids:
        canonical = to_e164(doc_id)
        if not canonical:
            unparseable.append(doc_id)
        elif canonical != doc_id:
            moves.append((doc_id, canonical))
    return moves, unparseable


def normalize_contact_keys(database_url: str, collection: str, dry_run: bool = False) -> bool:
    if not database_url:
        logger.error("❌ DATABASE_URL environment variable is not set")
        return False

    conn = psycopg2.connect(database_url)
    conn.autocommit = False

    try:
        with conn.cursor() as cur:
            cur.execute("""
                SELECT doc_id, data FROM documents
                WHERE collection = %s
            """, (collection,))
            rows = {row[0]: row[1] for row in cur.fetchall()}
            logger.info(f"✅ Found {len(rows)} documents in {collection}")

            moves, unparseable = plan_rekeys(rows.keys())
            for doc_id in unparseable:
                logger.warning(f"  ⚠️  No canonical form for id {doc_id!r}, skipped")

            moved = 0
            conflicts = 0
            for old_id, canonical in moves:
                if canonical in rows:
                    logger.warning(f"  ⚠️  {old_id!r} duplicates existing {canonical}, kept existing")
                    conflicts += 1
                    continue

                logger.info(f"  {old_id!r} -> {canonical}")
                if not dry_run:
                    data = dict(rows[old_id] or {})
                    if "phone_e164" in data:
                        data["phone_e164"] = canonical
                    cur.execute("""
                        INSERT INTO documents (collection, doc_id, data, created_at, updated_at)
                        SELECT collection, %s, %s::jsonb, created_at, NOW()
                        FROM documents
                        WHERE collection = %s AND doc_id = %s
                    """, (canonical, Json(data), collection, old_id))
                    cur.execute("""
                        DELETE FROM documents
                        WHERE collection = %s AND doc_id = %s
                    """, (collection, old_id))
                rows[canonical] = rows.pop(old_id)
                moved += 1

        if dry_run:
            conn.rollback()
        else:
            conn.commit()

        logger.info(f"✅ Done{' (dry run)' if dry_run else ''}")
        logger.info(f"   Re-keyed:    {moved}")
        logger.info(f"   Conflicts:   {conflicts}")
        logger.info(f"   Unparseable: {len(unparseable)}")
        return True
    except psycopg2.Error as e:
        conn.rollback()
        logger.exception(f"❌ Error during re-key: {e}")
        return False
    finally:
        conn.close()


if __name__ == "__main__":
    config = load_config()
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--collection", default=config.contacts_collection)
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    success = normalize_contact_keys(config.database_url, args.collection, dry_run=args.dry_run)
    sys.exit(0 if success else 1)
