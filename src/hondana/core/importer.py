"""Import ISBNs: skip stored ones, fetch in chunks, extract and persist."""

from __future__ import annotations

from typing import Callable, Protocol

import structlog

from .config import DEFAULTS, EXISTS_BATCH_SIZE, Settings
from .errors import MissingMetadata, PersistenceConflict, RequestFailed
from .isbn import parse_isbn, thumbnail_url
from .models import BookRecord, ImportSummary
from .onix import dig, extract_record

log = structlog.get_logger()

ProgressCallback = Callable[[int, int, str, bool], None]


class MetadataSource(Protocol):
    async def fetch_one(self, isbn: str) -> dict:
        ...

    async def fetch_batch(self, isbns: list[str]) -> list[dict | None]:
        ...


class ImageProbe(Protocol):
    async def check_one(self, isbn: str) -> bool:
        ...

    async def check_all(self, isbns: list[str]) -> dict[str, bool]:
        ...


class RecordStore(Protocol):
    def exists_any(self, isbns: list[str]) -> set[str]:
        ...

    def create(self, record: BookRecord) -> BookRecord:
        ...


def filter_new(
    isbns: list[str], store: RecordStore, batch_size: int = EXISTS_BATCH_SIZE
) -> tuple[list[str], int]:
    """Split *isbns* into those not yet stored (in input order) and a skip count.

    Existence is queried ``batch_size`` ISBNs at a time. Repeated ISBNs are
    kept as they are.
    """
    existing: set[str] = set()
    for start in range(0, len(isbns), batch_size):
        existing |= store.exists_any(isbns[start:start + batch_size])

    new = [isbn for isbn in isbns if isbn not in existing]
    return new, len(isbns) - len(new)


def chunked(items: list[str], size: int) -> list[list[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class BookImporter:
    """Drive metadata fetches, thumbnail probes and inserts.

    Chunks run one after another. Inside a chunk there is one metadata
    request and one thumbnail probe per ISBN, all probes in flight together.
    """

    def __init__(
        self,
        metadata: MetadataSource,
        probe: ImageProbe,
        store: RecordStore,
        settings: Settings,
    ) -> None:
        self.metadata = metadata
        self.probe = probe
        self.store = store
        self.settings = settings

    def _image_url(self, isbn: str, found: bool | None) -> str:
        return thumbnail_url(isbn, self.settings) if found else DEFAULTS.no_image

    async def import_isbns(
        self,
        isbns: list[str],
        on_progress: ProgressCallback | None = None,
    ) -> ImportSummary:
        """Import every ISBN in *isbns* and return the tallies.

        Values that are not 13 digits are counted as invalid and never sent
        out. Already stored ISBNs are skipped without any request.
        """
        summary = ImportSummary(total=len(isbns))

        valid: list[str] = []
        for raw in isbns:
            isbn = parse_isbn(raw)
            if isbn is None:
                log.error("invalid_isbn", value=raw)
                summary.invalid += 1
            else:
                valid.append(isbn)

        new, summary.skipped = filter_new(valid, self.store)
        if summary.skipped:
            log.info("already_stored", skipped=summary.skipped)

        processed = summary.invalid + summary.skipped
        for chunk in chunked(new, self.settings.chunk_size):
            success, failed = await self.process_chunk(
                chunk, processed, summary.total, on_progress
            )
            summary.success += success
            summary.failed += failed
            processed += len(chunk)

        log.info(
            "import_complete",
            success=summary.success,
            failed=summary.failed,
            skipped=summary.skipped,
            invalid=summary.invalid,
            total=summary.total,
        )
        return summary

    async def process_chunk(
        self,
        isbns: list[str],
        processed_so_far: int = 0,
        total: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> tuple[int, int]:
        """Fetch, extract and store one chunk. Returns (success, failed).

        Metadata items are matched to ISBNs by position in the request.
        """
        total = total if total is not None else len(isbns)

        def report(index: int, isbn: str, ok: bool) -> None:
            if on_progress:
                on_progress(processed_so_far + index + 1, total, isbn, ok)

        try:
            items = await self.metadata.fetch_batch(isbns)
        except RequestFailed as e:
            log.error("openbd_request_failed", count=len(isbns), error=str(e))
            for index, isbn in enumerate(isbns):
                report(index, isbn, False)
            return 0, len(isbns)

        thumbnails = await self.probe.check_all(isbns)

        success = 0
        failed = 0
        for index, isbn in enumerate(isbns):
            progress = f"[{processed_so_far + index + 1}/{total}]"
            item = items[index] if index < len(items) else None
            if item is None:
                log.error("metadata_not_found", isbn=isbn, progress=progress)
                failed += 1
                report(index, isbn, False)
                continue

            try:
                record = extract_record(
                    item, isbn, self._image_url(isbn, thumbnails.get(isbn)), self.settings
                )
                self.store.create(record)
            except MissingMetadata:
                log.error("onix_missing", isbn=isbn, progress=progress)
                failed += 1
                report(index, isbn, False)
                continue
            except PersistenceConflict as e:
                log.error("save_failed", isbn=isbn, progress=progress, error=str(e))
                failed += 1
                report(index, isbn, False)
                continue

            log.info("book_saved", isbn=isbn, title=record.title, progress=progress)
            success += 1
            report(index, isbn, True)

        return success, failed

    async def save_one(self, isbn: str) -> BookRecord:
        """Fetch, extract and store a single ISBN.

        Raises RequestFailed, MissingMetadata or PersistenceConflict.
        """
        item = await self.metadata.fetch_one(isbn)
        if not isinstance(dig(item, "onix"), dict):
            raise MissingMetadata(isbn)

        found = await self.probe.check_one(isbn)
        record = extract_record(item, isbn, self._image_url(isbn, found), self.settings)
        self.store.create(record)
        log.info("book_saved", isbn=isbn, title=record.title)
        return record
