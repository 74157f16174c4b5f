"""
Slug and listing-code helpers.
"""

import re
import uuid

MAX_SLUG_LENGTH = 200


def slugify(text: str, separator: str = "-") -> str:
    """
    Lowercase ``text`` and collapse every run of non-alphanumerics into ``separator``.

    >>> slugify("  2BHK Flat, Near Metro! ")
    '2bhk-flat-near-metro'
    """
    s = (text or "").strip().lower()
    s = re.sub(r"[^a-z0-9]+", separator, s)
    s = s.strip(separator)
    return s[:MAX_SLUG_LENGTH].rstrip(separator)


def generate_slug(title: str) -> str:
    """Slug for a listing title with a short random suffix so titles may repeat."""
    base = slugify(title) or "property"
    return f"{base}-{uuid.uuid4().hex[:6]}"


def generate_unique_id(prefix: str = "PROP") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10].upper()}"
