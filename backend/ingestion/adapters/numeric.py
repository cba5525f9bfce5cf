"""
Tolerant numeric conversion for scale export tokens.

Scale exports mix '.' and ',' decimal separators within one record and some
numeric fields carry stray quotes or unit suffixes. These helpers never raise:
None means "field absent" and callers skip the field.
"""

import re

_LEADING_DECIMAL = re.compile(r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')
_LEADING_INTEGER = re.compile(r'-?\d+')
_NON_INTEGER_CHARS = re.compile(r'[^0-9-]')


def _clean(raw) -> str | None:
    if not isinstance(raw, str):
        return None
    return raw.replace('"', '').strip()


def parse_decimal(raw: str) -> float | None:
    """
    Parse a decimal that may use a comma separator ("72,3" == "72.3").

    Only the leading numeric part is read, so "72.3kg" gives 72.3.
    """
    cleaned = _clean(raw)
    if not cleaned:
        return None

    match = _LEADING_DECIMAL.match(cleaned.replace(',', '.', 1))
    if match is None:
        return None
    return float(match.group())


def parse_integer(raw: str) -> int | None:
    """Parse an integer after dropping everything but digits and '-'."""
    cleaned = _clean(raw)
    if not cleaned:
        return None

    match = _LEADING_INTEGER.match(_NON_INTEGER_CHARS.sub('', cleaned))
    if match is None:
        return None
    return int(match.group())


def strip_quotes(raw: str) -> str:
    return raw.replace('"', '').strip()
