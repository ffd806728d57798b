"""ISBN helpers, digit normalization and publishing-date parsing."""

from __future__ import annotations

import re
from datetime import date

from .config import Settings

_FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")
_NON_DIGIT = re.compile(r"[^0-9]")


def normalize_digits(value: str | int | None) -> str | None:
    """Convert full-width digits to ASCII and drop everything else.

    ``None`` stays ``None``. A value without digits becomes ``""``.
    """
    if value is None:
        return None
    return _NON_DIGIT.sub("", str(value).translate(_FULLWIDTH_DIGITS))


def parse_isbn(raw: str | None) -> str | None:
    """Return a 13-digit identifier, or None if *raw* does not hold exactly 13 digits."""
    digits = normalize_digits(raw)
    if not digits or len(digits) != 13:
        return None
    return digits


def isbn13_to_isbn10(isbn13: str) -> str:
    """Convert a 13-digit ISBN to its 10-character form.

    >>> isbn13_to_isbn10("9784798142470")
    '4798142476'
    """
    body = isbn13[3:12]
    total = sum(weight * int(digit) for weight, digit in zip(range(10, 1, -1), body))
    check = 11 - total % 11
    if check == 10:
        check_char = "X"
    elif check == 11:
        check_char = "0"
    else:
        check_char = str(check)
    return body + check_char


def parse_publishing_date(value: str | None) -> date | None:
    """Parse ``YYYYMMDD`` or ``YYYYMM`` (first of month); anything else is None."""
    if not value or not value.isdigit():
        return None
    try:
        if len(value) == 8:
            return date(int(value[:4]), int(value[4:6]), int(value[6:]))
        if len(value) == 6:
            return date(int(value[:4]), int(value[4:]), 1)
    except ValueError:
        return None
    return None


def thumbnail_url(isbn13: str, settings: Settings) -> str:
    return f"{settings.thumbnail_url}/thumbnail/{isbn13}.jpg"


def amazon_url(isbn10: str, settings: Settings) -> str:
    return f"{settings.amazon_url}/dp/{isbn10}"


def honto_url(isbn13: str, settings: Settings) -> str:
    return f"{settings.honto_url}/redirect.html?bookno={isbn13[:-1]}"
