"""
Named value transforms.

Rules select a transform by name; the set is closed and every transform is a
pure str -> str function. "custom" is reserved and passes the value through.
A transform that cannot handle its input returns the input unchanged.
"""

import re
from datetime import datetime
from typing import Callable

from shipcomply.observability.logger import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s")
_TWO_LETTER = re.compile(r"^[A-Za-z]{2}$")
_THREE_LETTER = re.compile(r"^[A-Za-z]{3}$")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})$")
_WEIGHT = re.compile(r"(\d+(?:\.\d+)?)\s*(kg|g|lbs|lb|oz)", re.IGNORECASE)
_DIMENSIONS = re.compile(
    r"(\d+(?:\.\d+)?)\s*[x×*]\s*(\d+(?:\.\d+)?)\s*[x×*]\s*(\d+(?:\.\d+)?)\s*(cm|mm|m|in|ft)?",
    re.IGNORECASE,
)
_NON_DECIMAL = re.compile(r"[^\d.]")

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d %B %Y", "%d %b %Y", "%B %d, %Y", "%b %d, %Y", "%B %d %Y")

CURRENCY_CODES = {
    "$": "USD",
    "£": "GBP",
    "€": "EUR",
    "¥": "JPY",
    "₹": "INR",
    "₩": "KRW",
    "₽": "RUB",
    "usd": "USD",
    "eur": "EUR",
    "gbp": "GBP",
    "jpy": "JPY",
    "cny": "CNY",
    "yen": "JPY",
    "dollar": "USD",
    "dollars": "USD",
    "euro": "EUR",
    "euros": "EUR",
    "pound": "GBP",
    "pounds": "GBP",
}


def trim(value: str) -> str:
    return value.strip()


def uppercase(value: str) -> str:
    return value.upper()


def uppercase_no_spaces(value: str) -> str:
    return _WHITESPACE.sub("", value.upper())


def lowercase(value: str) -> str:
    return value.lower().strip()


def remove_spaces(value: str) -> str:
    return _WHITESPACE.sub("", value)


def country_code(value: str) -> str:
    """Uppercase a 2-letter code; trim anything else."""
    stripped = value.strip()
    if _TWO_LETTER.match(stripped):
        return stripped.upper()
    return stripped


def normalize_date_iso(value: str) -> str:
    """
    Convert a date to YYYY-MM-DD.

    Day-first numeric dates (15/04/23, 15-4-2023) are handled explicitly, with
    two-digit years read as 20yy. Other formats go through a fixed list of
    strptime patterns.

    Raises:
        ValueError: If the value is not a recognizable date
    """
    stripped = value.strip()
    match = _DAY_MONTH_YEAR.match(stripped)
    if match:
        day, month, year = match.groups()
        if len(year) == 2:
            year = f"20{year}"
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(stripped, fmt).date().isoformat()
        except ValueError:
            continue
    return datetime.fromisoformat(stripped).date().isoformat()


def normalize_weight(value: str) -> str:
    """'2.5KG' -> '2.5 kg'; values without a recognizable unit are unchanged."""
    match = _WEIGHT.search(value)
    if not match:
        return value
    number, unit = match.groups()
    return f"{number} {unit.lower()}"


def normalize_dimensions(value: str) -> str:
    """'20x15*10CM' -> '20 x 15 x 10 cm'."""
    match = _DIMENSIONS.search(value)
    if not match:
        return value
    length, width, height, unit = match.groups()
    suffix = f" {unit.lower()}" if unit else ""
    return f"{length} x {width} x {height}{suffix}"


def normalize_decimal(value: str) -> str:
    """
    Strip everything but digits and dots, then print the number.

    Raises:
        ValueError: If nothing numeric remains
    """
    number = float(_NON_DECIMAL.sub("", value))
    if number.is_integer():
        return str(int(number))
    return str(number)


def currency_code(value: str) -> str:
    """Map a currency symbol or name to its ISO code; uppercase 3-letter codes."""
    mapped = CURRENCY_CODES.get(value.lower().strip())
    if mapped:
        return mapped
    if _THREE_LETTER.match(value):
        return value.upper()
    return value


def _passthrough(value: str) -> str:
    return value


TRANSFORMS: dict[str, Callable[[str], str]] = {
    "trim": trim,
    "uppercase": uppercase,
    "uppercase_no_spaces": uppercase_no_spaces,
    "lowercase": lowercase,
    "remove_spaces": remove_spaces,
    "country_code": country_code,
    "normalize_date_iso": normalize_date_iso,
    "normalize_weight": normalize_weight,
    "normalize_dimensions": normalize_dimensions,
    "normalize_decimal": normalize_decimal,
    "currency_code": currency_code,
    "custom": _passthrough,
}


def apply_transform(name: str | None, value: str) -> str:
    """
    Apply a named transform, falling back to the original value on failure.

    Args:
        name: Transform name, or None for no transform
        value: Value to normalize

    Returns:
        The normalized value, or value itself if the transform is unknown or fails
    """
    if not name:
        return value

    transform = TRANSFORMS.get(name)
    if transform is None:
        logger.warning(f"Unknown transform '{name}', value left unchanged", extra={"transform": name})
        return value

    try:
        return transform(value)
    except ValueError as e:
        logger.debug(f"Transform '{name}' failed, keeping original value: {e}", extra={"transform": name})
        return value
