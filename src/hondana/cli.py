"""Command line entry point: save one ISBN or import a CSV of ISBNs."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx
import structlog
from dotenv import load_dotenv

from .core.config import Settings
from .core.csvsource import read_isbns
from .core.errors import HondanaError
from .core.fetcher import OpenBDClient, ThumbnailProbe
from .core.importer import BookImporter
from .core.isbn import parse_isbn
from .core.store import BookStore

log = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hondana",
        description="Fetch book data from openBD by ISBN and save it.",
    )
    parser.add_argument("isbn", nargs="?", help="single ISBN-13 to save")
    parser.add_argument("--csv", type=Path, help="CSV file with one ISBN per row")
    parser.add_argument("--chunk", type=int, help="ISBNs per openBD request (default 100)")
    parser.add_argument("--db", type=Path, help="SQLite database path")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


async def run(args: argparse.Namespace, settings: Settings) -> int:
    store = BookStore(settings.db_path)
    try:
        async with httpx.AsyncClient() as http:
            importer = BookImporter(
                OpenBDClient(http, settings), ThumbnailProbe(http, settings), store, settings
            )

            if args.csv:
                summary = await importer.import_isbns(read_isbns(args.csv))
                log.info(
                    "summary",
                    success=summary.success,
                    failed=summary.failed,
                    skipped=summary.skipped,
                    invalid=summary.invalid,
                    total=summary.total,
                )
                return 0

            isbn = parse_isbn(args.isbn)
            if isbn is None:
                log.error("invalid_isbn", value=args.isbn)
                return 1
            try:
                await importer.save_one(isbn)
            except HondanaError as e:
                log.error("save_failed", isbn=isbn, error_type=type(e).__name__, error=str(e))
                return 1
            return 0
    finally:
        store.close()


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.chunk is not None and args.chunk < 1:
        parser.error("--chunk must be at least 1")
    configure_logging(args.verbose)

    if not args.csv and not args.isbn:
        log.error("missing_input", hint="give an ISBN or --csv PATH")
        return 1
    if args.csv and not args.csv.exists():
        log.error("csv_not_found", path=str(args.csv))
        return 1

    settings = Settings.from_env()
    if args.chunk is not None:
        settings.chunk_size = args.chunk
    if args.db:
        settings.db_path = args.db

    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
