"""
Slug helpers for variant URLs.

Slugs are lowercase ASCII with hyphens:
- "Tas Kulit Coklat" → "tas-kulit-coklat"
- "Café  Crème_Large" → "cafe-creme-large"
"""

import re
import unicodedata
from typing import Callable, Optional


def strip_accents(text: str) -> str:
    """Drop combining marks after NFD decomposition."""
    normalized = unicodedata.normalize('NFD', text)
    return ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )


def slugify(text: Optional[str]) -> str:
    """
    Convert text to a URL-friendly slug.

    Args:
        text: Any display text (may be None)

    Returns:
        Slug, or "" if nothing usable remains
    """
    if not text:
        return ""

    slug = strip_accents(text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)  # Remove special characters
    slug = re.sub(r"[\s_-]+", "-", slug)  # Spaces, underscores, hyphen runs → one hyphen
    return slug.strip("-")


def slug_from_variant(
    variant_name: str,
    color: Optional[str] = None,
    size: Optional[str] = None
) -> str:
    """Slug from the variant name followed by color and size when present."""
    parts = [p for p in (variant_name, color, size) if p]
    return slugify(" ".join(parts))


def unique_slug(base_slug: str, exists: Callable[[str], bool]) -> str:
    """
    Append -1, -2, ... until the slug is free.

    Args:
        base_slug: Preferred slug
        exists: Returns True when a slug is already taken

    Returns:
        First free slug
    """
    slug = base_slug
    counter = 1

    while exists(slug):
        slug = f"{base_slug}-{counter}"
        counter += 1

    return slug
