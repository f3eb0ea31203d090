"""
Shared helpers for entity models: identifiers, timestamps and display names.
"""

import re
import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Return a fresh entity identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


def display_name_for(field_key: str) -> str:
    """Turn a camelCase field key into a title: "recipientName" -> "Recipient Name"."""
    spaced = _CAMEL_BOUNDARY.sub(r" \1", field_key)
    return (spaced[:1].upper() + spaced[1:]).strip()
