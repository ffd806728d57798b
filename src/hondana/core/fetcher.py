"""Fetch openBD metadata and probe NDL Search thumbnails."""

from __future__ import annotations

import asyncio

import httpx
import structlog

from .config import Settings
from .errors import RequestFailed
from .isbn import thumbnail_url

log = structlog.get_logger()


class OpenBDClient:
    """Client for the openBD ``/get`` endpoint.

    The endpoint answers a comma-separated ISBN list with a JSON array in the
    same order, holding ``null`` for every ISBN it does not know.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self.client = client
        self.base_url = settings.openbd_url

    async def fetch_batch(self, isbns: list[str]) -> list[dict | None]:
        """Fetch metadata for *isbns* in one request.

        Raises RequestFailed on transport errors, non-2xx responses and
        payloads that are not a JSON array.
        """
        url = f"{self.base_url}/get?isbn={','.join(isbns)}"
        try:
            resp = await self.client.get(url)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.debug("openbd_error", count=len(isbns), error=str(e))
            raise RequestFailed(f"openBD request failed for {len(isbns)} ISBNs: {e}") from e

        if not isinstance(data, list):
            raise RequestFailed(f"openBD returned {type(data).__name__}, expected a list")

        log.debug("openbd_hit", count=len(isbns), found=sum(1 for item in data if item))
        return data

    async def fetch_one(self, isbn: str) -> dict:
        """Fetch a single item. An empty or null answer counts as a failed request."""
        data = await self.fetch_batch([isbn])
        if not data or data[0] is None:
            raise RequestFailed(f"openBD has no record for {isbn}")
        return data[0]


class ThumbnailProbe:
    """Check whether NDL Search serves a cover thumbnail for an ISBN."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    def url_for(self, isbn: str) -> str:
        return thumbnail_url(isbn, self.settings)

    async def check_one(self, isbn: str) -> bool:
        """True only for an HTTP 200. Transport errors degrade to False."""
        url = self.url_for(isbn)
        try:
            resp = await self.client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            log.debug("thumbnail_error", isbn=isbn, error=str(e))
            return False
        found = resp.status_code == 200
        log.debug("thumbnail_checked", isbn=isbn, status=resp.status_code, found=found)
        return found

    async def check_all(self, isbns: list[str]) -> dict[str, bool]:
        """Probe every ISBN concurrently and wait for all of them."""
        results = await asyncio.gather(*(self.check_one(isbn) for isbn in isbns))
        return dict(zip(isbns, results))
