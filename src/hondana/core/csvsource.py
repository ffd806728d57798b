"""Read ISBN lists from CSV files."""

from __future__ import annotations

import csv
from pathlib import Path

import structlog

from .isbn import normalize_digits

log = structlog.get_logger()


def read_isbns(path: Path) -> list[str]:
    """Return the digit-normalized first column of every row, skipping blanks."""
    isbns: list[str] = []
    with path.open(newline="", encoding="utf-8-sig") as f:
        for row in csv.reader(f):
            if not row:
                continue
            isbn = normalize_digits(row[0].strip())
            if isbn:
                isbns.append(isbn)
    log.info("csv_read", path=str(path), isbns=len(isbns))
    return isbns
