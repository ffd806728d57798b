"""Runtime settings and record defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

EXISTS_BATCH_SIZE = 1000
DEFAULT_CHUNK_SIZE = 100


@dataclass(frozen=True)
class Defaults:
    """Values written when the metadata document leaves a field empty."""

    title: str = "名無しの本"
    no_image: str = "no_image.png"
    audience_type: int = 99
    audience_code: int = 99
    c_code: str = "9999"


DEFAULTS = Defaults()


@dataclass
class Settings:
    openbd_url: str = "https://api.openbd.jp/v1"
    thumbnail_url: str = "https://ndlsearch.ndl.go.jp"
    amazon_url: str = "https://www.amazon.co.jp"
    honto_url: str = "http://honto.jp"
    db_path: Path = Path(".data/hondana.db")
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            openbd_url=os.environ.get("OPENBD_URL", cls.openbd_url).rstrip("/"),
            thumbnail_url=os.environ.get("THUMBNAIL_URL", cls.thumbnail_url).rstrip("/"),
            amazon_url=os.environ.get("AMAZON_URL", cls.amazon_url).rstrip("/"),
            honto_url=os.environ.get("HONTO_URL", cls.honto_url).rstrip("/"),
            db_path=Path(os.environ.get("HONDANA_DB", str(cls.db_path))),
            chunk_size=int(os.environ.get("CHUNK_SIZE", cls.chunk_size)),
        )
