"""Identifier helpers for UUID-keyed records."""

import uuid
from typing import Optional


def new_uuid() -> str:
    """Generate a new UUID4 string identifier for a database row."""
    return str(uuid.uuid4())


def normalize_id(id_value: Optional[str]) -> Optional[str]:
    """
    Normalise an optional identifier coming from a request body.

    Blank strings are treated as absent so they never reach a lookup or an
    equality filter.
    """
    if id_value is None:
        return None
    stripped = id_value.strip()
    return stripped or None
