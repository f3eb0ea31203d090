"""
Country name and code normalization.

Maps free text to a two-letter code: two-letter input is uppercased, known
names are looked up exactly and then as substrings, anything else is
returned uppercased. The result is best-effort and may be non-canonical
("UK" rather than "GB"), but normalization is deterministic and idempotent.
"""

COUNTRY_CODES: dict[str, str] = {
    "united states": "US",
    "usa": "US",
    "u.s.a.": "US",
    "u.s.": "US",
    "america": "US",
    "canada": "CA",
    "united kingdom": "UK",
    "great britain": "UK",
    "england": "UK",
    "britain": "UK",
    "australia": "AU",
    "china": "CN",
    "japan": "JP",
    "european union": "EU",
    "europe": "EU",
    "germany": "DE",
    "france": "FR",
    "italy": "IT",
    "spain": "ES",
    "mexico": "MX",
    "brazil": "BR",
    "india": "IN",
}


def normalize_country_code(text: str | None) -> str:
    """
    Normalize a country name or code.

    Args:
        text: Free-text country ("usa", "Germany", "ships to Japan", "de")

    Returns:
        Uppercase code, or "" for empty input
    """
    if not text:
        return ""

    stripped = text.strip()
    if len(stripped) == 2:
        return stripped.upper()

    # upper().lower() so that a second pass over our own output sees the same key
    key = stripped.upper().lower()
    code = COUNTRY_CODES.get(key)
    if code:
        return code

    for name, code in COUNTRY_CODES.items():
        if name in key:
            return code

    return stripped.upper()
