"""
Helpers for Supabase Storage URLs.
"""

from typing import Any, Optional
from urllib.parse import unquote


def extract_object_path(url: Optional[str], bucket: str) -> Optional[str]:
    """
    Object path inside a bucket from a storage URL.

    Handles public, authenticated and signed URL shapes:
        .../storage/v1/object/public/<bucket>/<path>
        .../storage/v1/object/<bucket>/<path>
        .../storage/v1/object/sign/<bucket>/<path>?token=...

    Returns:
        The path without query string, or None if the URL is not in the bucket
    """
    if not url:
        return None

    for marker in (
        f"/storage/v1/object/public/{bucket}/",
        f"/storage/v1/object/sign/{bucket}/",
        f"/storage/v1/object/{bucket}/",
    ):
        if marker in url:
            path = url.split(marker, 1)[1].split("?", 1)[0]
            return unquote(path) or None

    return None


def read_signed_url(result: Any) -> str:
    """Signed URL from create_signed_url(); key casing differs between client versions."""
    if isinstance(result, dict):
        return result.get("signedURL") or result.get("signedUrl") or ""
    return getattr(result, "signed_url", "") or ""
