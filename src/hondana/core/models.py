"""Data models for book records and import results."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date

from .config import DEFAULTS


@dataclass
class BookRecord:
    isbn: str
    isbn10: str
    title: str
    image_url: str
    amazon_url: str
    honto_url: str
    content: str = ""
    subtitle: str | None = None
    contributor: str | None = None
    imprint: str | None = None
    publisher: str | None = None
    price: int | None = None
    published_date: date | None = None
    audience_type: int = DEFAULTS.audience_type
    audience_code: int = DEFAULTS.audience_code
    c_code: str = DEFAULTS.c_code
    subject_text: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.published_date:
            data["published_date"] = self.published_date.isoformat()
        return data


@dataclass
class ImportSummary:
    total: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0
    invalid: int = 0
