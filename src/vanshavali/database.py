"""SQLite row store for family tree persistence."""

from dataclasses import asdict, replace
import json
import logging
from pathlib import Path
import sqlite3

from vanshavali.models import ROW_FIELDS, Row, new_person_id

logger = logging.getLogger(__name__)


def create_database(db_path: Path | str) -> sqlite3.Connection:
    """Create the SQLite database with the people table."""
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA foreign_keys = ON")
    cursor = conn.cursor()

    # Deleting a person removes their descendants too
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS people (
            id TEXT PRIMARY KEY,
            parent_id TEXT REFERENCES people(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            generation INTEGER NOT NULL DEFAULT 1,
            gender TEXT,
            relation TEXT,
            dob TEXT,
            dod TEXT,
            occupation TEXT,
            phone TEXT,
            anniversary_date TEXT,
            photo_url TEXT,
            spouse_name TEXT,
            spouse_occupation TEXT,
            spouse_phone TEXT,
            spouse_dob TEXT,
            spouse_dod TEXT,
            spouse_photo_url TEXT,
            bio TEXT,
            gallery TEXT NOT NULL DEFAULT '[]',
            location_name TEXT,
            location_lat REAL,
            location_lng REAL
        )
    """)

    conn.commit()
    return conn


def _to_db(values: dict) -> dict:
    if "gallery" in values:
        values = {**values, "gallery": json.dumps(list(values["gallery"]))}
    return values


def _from_db(record: sqlite3.Row) -> Row:
    values = dict(record)
    values["gallery"] = tuple(json.loads(values["gallery"] or "[]"))
    return Row(**values)


class SQLiteRowStore:
    """
    Row store backed by a SQLite `people` table.

    The store assigns a key to rows inserted without an id and cascades
    deletes to descendant rows. Calls run synchronously on the caller's
    thread; they are exposed as coroutines to match the remote store contract.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    @classmethod
    def open(cls, db_path: Path | str) -> "SQLiteRowStore":
        return cls(create_database(db_path))

    def close(self):
        self.conn.close()

    async def list_rows(self) -> list[Row]:
        cursor = self.conn.execute(f"SELECT {', '.join(ROW_FIELDS)} FROM people ORDER BY rowid")
        return [_from_db(record) for record in cursor.fetchall()]

    async def count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM people").fetchone()[0]

    async def insert(self, row: Row) -> Row:
        """Insert a row and return it with the key it was stored under."""
        stored = replace(row, id=row.id or new_person_id())
        values = _to_db(asdict(stored))
        with self.conn:
            self.conn.execute(
                f"INSERT INTO people ({', '.join(ROW_FIELDS)}) "
                f"VALUES ({', '.join(':' + name for name in ROW_FIELDS)})",
                values,
            )
        logger.debug("Inserted row %s (parent %s)", stored.id, stored.parent_id)
        return stored

    async def update(self, row_id: str, patch: dict):
        unknown = set(patch) - set(ROW_FIELDS)
        if unknown or "id" in patch:
            raise ValueError(f"Cannot update columns: {sorted(unknown | ({'id'} & set(patch)))}")
        if not patch:
            return

        values = _to_db(patch)
        assignments = ", ".join(f"{name} = :{name}" for name in values)
        with self.conn:
            cursor = self.conn.execute(
                f"UPDATE people SET {assignments} WHERE id = :row_id",
                {**values, "row_id": row_id},
            )
        if cursor.rowcount == 0:
            raise KeyError(f"No row with id {row_id}")

    async def delete(self, row_id: str):
        with self.conn:
            cursor = self.conn.execute("DELETE FROM people WHERE id = ?", (row_id,))
        if cursor.rowcount == 0:
            raise KeyError(f"No row with id {row_id}")
