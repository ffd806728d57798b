"""Flatten an openBD ONIX document into a BookRecord."""

from __future__ import annotations

from typing import Any

import structlog
from bs4 import BeautifulSoup

from .config import DEFAULTS, Settings
from .errors import MissingMetadata
from .isbn import (
    amazon_url,
    honto_url,
    isbn13_to_isbn10,
    normalize_digits,
    parse_publishing_date,
)
from .models import BookRecord

log = structlog.get_logger()

SCHEME_C_CODE = 78
SCHEME_SUBJECT_HEADING = 20

_BR = "<br>"
_BR_MARKER = "\ue000"


def dig(tree: Any, *path: str | int) -> Any:
    """Walk *path* through nested dicts and lists, returning None at the first gap."""
    node = tree
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, list) or not 0 <= key < len(node):
                return None
            node = node[key]
        else:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        if node is None:
            return None
    return node


def strip_markup(text: str) -> str:
    """Remove every tag except line breaks, which come back as ``<br>``."""
    soup = BeautifulSoup(text, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with(_BR_MARKER)
    return soup.get_text().replace(_BR_MARKER, _BR)


def build_content(onix: dict) -> str:
    """Assemble the description from TextContent entries 4, 3, 2, 1, 0."""
    entries = dig(onix, "CollateralDetail", "TextContent")
    if not entries or not isinstance(entries, list):
        return ""

    def text_at(index: int) -> str | None:
        return _text(dig(entries, index, "Text"))

    content = ""
    lead = text_at(4)
    if lead is not None:
        content = lead + _BR + _BR
    for index in range(3, -1, -1):
        text = text_at(index)
        if text is not None:
            content += text + _BR

    return strip_markup(content)


def _scheme(subject: Any) -> int | None:
    scheme = normalize_digits(dig(subject, "SubjectSchemeIdentifier"))
    return int(scheme) if scheme else None


def extract_subject_info(onix: dict) -> tuple[str | None, str | None]:
    """Return (c_code, subject_text) from the first three Subject entries.

    Entries are visited from index min(2, n-1) down to 0 and each match
    overwrites the previous one, so the lowest matching index wins.
    """
    subjects = dig(onix, "DescriptiveDetail", "Subject")
    if not subjects or not isinstance(subjects, list):
        return None, None

    c_code = None
    subject_text = None
    for index in range(min(2, len(subjects) - 1), -1, -1):
        subject = subjects[index]
        scheme = _scheme(subject)
        if scheme == SCHEME_C_CODE:
            c_code = normalize_digits(dig(subject, "SubjectCode"))
        if scheme == SCHEME_SUBJECT_HEADING:
            subject_text = _text(dig(subject, "SubjectHeadingText"))
    return c_code, subject_text


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _optional_int(value: Any) -> int | None:
    digits = normalize_digits(value)
    return int(digits) if digits else None


def _audience(onix: dict, field: str, default: int) -> int:
    # Zero is treated as unset.
    return _optional_int(dig(onix, "DescriptiveDetail", "Audience", 0, field)) or default


def extract_record(
    item: dict | None, isbn: str, image_url: str, settings: Settings
) -> BookRecord:
    """Build a BookRecord from one openBD item.

    Raises MissingMetadata when the item has no ``onix`` section.
    """
    onix = dig(item, "onix")
    if not isinstance(onix, dict):
        raise MissingMetadata(isbn)

    title_element = dig(onix, "DescriptiveDetail", "TitleDetail", "TitleElement")
    title = _text(dig(title_element, "TitleText", "content")) or DEFAULTS.title
    c_code, subject_text = extract_subject_info(onix)
    raw_date = normalize_digits(dig(onix, "PublishingDetail", "PublishingDate", 0, "Date"))
    isbn10 = isbn13_to_isbn10(isbn)

    record = BookRecord(
        isbn=isbn,
        isbn10=isbn10,
        title=title,
        subtitle=_text(dig(title_element, "Subtitle", "content")),
        contributor=_text(dig(onix, "DescriptiveDetail", "Contributor", 0, "PersonName", "content")),
        content=build_content(onix),
        imprint=_text(dig(onix, "PublishingDetail", "Imprint", "ImprintName")),
        publisher=_text(dig(onix, "PublishingDetail", "Publisher", "PublisherName")),
        image_url=image_url,
        price=_optional_int(dig(onix, "ProductSupply", "SupplyDetail", "Price", 0, "PriceAmount")),
        published_date=parse_publishing_date(raw_date),
        audience_type=_audience(onix, "AudienceCodeType", DEFAULTS.audience_type),
        audience_code=_audience(onix, "AudienceCodeValue", DEFAULTS.audience_code),
        c_code=c_code or DEFAULTS.c_code,
        subject_text=subject_text,
        amazon_url=amazon_url(isbn10, settings),
        honto_url=honto_url(isbn, settings),
    )
    log.debug("record_extracted", isbn=isbn, title=record.title)
    return record
