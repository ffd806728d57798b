"""FastAPI web application for hondana."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import datetime, timezone

import httpx
import structlog
import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.config import Settings
from ..core.fetcher import OpenBDClient, ThumbnailProbe
from ..core.importer import BookImporter
from ..core.isbn import normalize_digits, parse_isbn
from ..core.store import BookStore

load_dotenv()

log = structlog.get_logger()

VERSION = "0.1.0"
MAX_ISBNS = 1000
MAX_BODY_BYTES = 50_000

settings = Settings.from_env()
_store: BookStore | None = None


def get_store() -> BookStore:
    global _store
    if _store is None:
        _store = BookStore(settings.db_path)
    return _store


async def get_importer(store: BookStore = Depends(get_store)) -> AsyncIterator[BookImporter]:
    async with httpx.AsyncClient() as http:
        yield BookImporter(
            OpenBDClient(http, settings), ThumbnailProbe(http, settings), store, settings
        )


app = FastAPI(title="hondana", docs_url=None, redoc_url=None)


@app.get("/health")
async def health(store: BookStore = Depends(get_store)):
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "environment": os.environ.get("ENV", "dev"),
        "books": store.count(),
    }


@app.post("/api/import")
async def import_isbns(request: Request, importer: BookImporter = Depends(get_importer)):
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_BODY_BYTES:
        return JSONResponse({"error": "Request too large."}, status_code=413)

    body = await request.json()
    raw_isbns = body.get("isbns", []) if isinstance(body, dict) else []
    if not isinstance(raw_isbns, list):
        return JSONResponse({"error": "isbns must be a list."}, status_code=400)

    isbns = []
    for raw in raw_isbns:
        cleaned = normalize_digits(str(raw))
        if cleaned:
            isbns.append(cleaned)

    if not isbns:
        return JSONResponse({"error": "No ISBNs provided."}, status_code=400)
    if len(isbns) > MAX_ISBNS:
        return JSONResponse(
            {"error": f"Maximum {MAX_ISBNS} ISBNs per request."}, status_code=400
        )

    summary = await importer.import_isbns(isbns)
    log.info("api_import", total=summary.total, success=summary.success, failed=summary.failed)
    return {
        "summary": {
            "total": summary.total,
            "success": summary.success,
            "failed": summary.failed,
            "skipped": summary.skipped,
            "invalid": summary.invalid,
        }
    }


@app.get("/api/books/{isbn}")
async def get_book(isbn: str, store: BookStore = Depends(get_store)):
    key = parse_isbn(isbn)
    if key is None:
        return JSONResponse({"error": "ISBN must have 13 digits."}, status_code=400)
    record = store.get(key)
    if record is None:
        return JSONResponse({"error": "Book not found."}, status_code=404)
    return record.to_dict()


def main():
    port = int(os.environ.get("PORT", "8000"))
    is_dev = os.environ.get("ENV", "dev") == "dev"
    uvicorn.run(
        "hondana.web.app:app",
        host="0.0.0.0",
        port=port,
        reload=is_dev,
    )
