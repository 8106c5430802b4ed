"""Check-digit validation for retail barcodes (EAN-13, EAN-8, UPC-A)."""

from __future__ import annotations

from typing import Optional

FORMATS_BY_LENGTH = {
    13: "EAN-13",
    12: "UPC-A",
    8: "EAN-8",
}

_ASCII_DIGITS = frozenset("0123456789")


def _is_ascii_digits(code: str) -> bool:
    # str.isdigit() also accepts superscripts and other Unicode digits.
    return bool(code) and all(char in _ASCII_DIGITS for char in code)


def expected_check_digit(payload: str) -> int:
    """Return the check digit for ``payload`` (the barcode without its last digit).

    Weights alternate 1, 3, 1, 3, ... starting with weight 1 at index 0.
    """

    total = sum(int(digit) * (1 if index % 2 == 0 else 3) for index, digit in enumerate(payload))
    return (10 - (total % 10)) % 10


def is_valid_barcode(code: str) -> bool:
    """Return True when ``code`` is a well-formed EAN-13, EAN-8 or UPC-A barcode."""

    if not isinstance(code, str) or not _is_ascii_digits(code):
        return False
    if len(code) not in FORMATS_BY_LENGTH:
        return False
    return int(code[-1]) == expected_check_digit(code[:-1])


def barcode_format(code: str) -> Optional[str]:
    """Return the symbology name for a valid barcode, or None when invalid."""

    if not is_valid_barcode(code):
        return None
    return FORMATS_BY_LENGTH[len(code)]


__all__ = ["FORMATS_BY_LENGTH", "barcode_format", "expected_check_digit", "is_valid_barcode"]
