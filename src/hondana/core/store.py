"""SQLite-backed store for book records."""

from __future__ import annotations

import sqlite3
from dataclasses import fields
from datetime import date
from pathlib import Path

import structlog

from .errors import PersistenceConflict
from .models import BookRecord

log = structlog.get_logger()

_COLUMNS = [f.name for f in fields(BookRecord)]


class BookStore:
    """Persist BookRecords in a local SQLite database keyed by ISBN-13."""

    def __init__(self, db_path: Path) -> None:
        if str(db_path) != ":memory:":
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.execute(
            """CREATE TABLE IF NOT EXISTS books (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                isbn TEXT NOT NULL UNIQUE,
                isbn10 TEXT,
                title TEXT NOT NULL,
                subtitle TEXT,
                content TEXT,
                contributor TEXT,
                imprint TEXT,
                publisher TEXT,
                image_url TEXT,
                price INTEGER CHECK (price IS NULL OR price >= 0),
                published_date TEXT,
                audience_type INTEGER NOT NULL DEFAULT 99,
                audience_code INTEGER NOT NULL DEFAULT 99,
                c_code TEXT,
                subject_text TEXT,
                amazon_url TEXT,
                honto_url TEXT,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )"""
        )
        self._conn.execute("CREATE INDEX IF NOT EXISTS books_isbn10_idx ON books (isbn10)")
        self._conn.execute("CREATE INDEX IF NOT EXISTS books_publisher_idx ON books (publisher)")
        self._conn.commit()

    def exists_any(self, isbns: list[str]) -> set[str]:
        """Return the subset of *isbns* already stored."""
        if not isbns:
            return set()
        placeholders = ",".join("?" * len(isbns))
        rows = self._conn.execute(
            f"SELECT isbn FROM books WHERE isbn IN ({placeholders})", list(isbns)
        ).fetchall()
        return {row[0] for row in rows}

    def create(self, record: BookRecord) -> BookRecord:
        """Insert a new record.

        Raises PersistenceConflict on a duplicate ISBN or a row SQLite cannot bind.
        """
        values = [getattr(record, name) for name in _COLUMNS]
        values = [v.isoformat() if isinstance(v, date) else v for v in values]
        try:
            self._conn.execute(
                f"INSERT INTO books ({', '.join(_COLUMNS)}) "
                f"VALUES ({', '.join('?' * len(_COLUMNS))})",
                values,
            )
            self._conn.commit()
        except (
            sqlite3.IntegrityError,
            sqlite3.InterfaceError,
            sqlite3.ProgrammingError,
            OverflowError,
        ) as e:
            self._conn.rollback()
            log.debug("store_rejected", isbn=record.isbn, error=str(e))
            raise PersistenceConflict(f"{record.isbn}: {e}") from e
        log.debug("store_insert", isbn=record.isbn)
        return record

    def get(self, isbn: str) -> BookRecord | None:
        row = self._conn.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM books WHERE isbn = ?", (isbn,)
        ).fetchone()
        if row is None:
            return None
        data = dict(zip(_COLUMNS, row))
        if data["published_date"]:
            data["published_date"] = date.fromisoformat(data["published_date"])
        return BookRecord(**data)

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM books").fetchone()[0]

    def close(self) -> None:
        self._conn.close()
