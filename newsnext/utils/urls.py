"""
NewsNext Backend — Media URL Helpers
=====================================

Media rows store site-relative paths (``/uploads/abc.jpg``). Responses that
leave the API for other origins (emails, the mobile app) need absolute
URLs built from ``settings.backend_url``.

Older rows were sometimes saved with the host prepended twice
(``https://host/https://host/uploads/x.jpg``); ``normalize_url`` repairs
those on the way out.
"""

import re
from typing import Any, Optional

from newsnext.config import settings

URL_FIELDS = (
    "url",
    "main_image",
    "mainImage",
    "image_url",
    "imageUrl",
    "avatar",
    "thumbnail",
    "thumbnail_url",
    "image",
)

_DUPLICATE_HOST = re.compile(r"^(https?://[^/]+)/(https?://[^/]+)(/.*)$")


def _is_absolute(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


def normalize_url(url: str) -> str:
    """Collapse a duplicated ``scheme://host`` prefix; other URLs are returned unchanged."""
    match = _DUPLICATE_HOST.match(url)
    if match and match.group(1) == match.group(2):
        return f"{match.group(1)}{match.group(3)}"
    return url


def get_absolute_url(relative_url: Optional[str]) -> Optional[str]:
    """
    Turn a stored media path into an absolute URL.

        None / ""                      → None
        "https://cdn/x.jpg"            → unchanged
        "uploads/x.jpg" or "/uploads/x.jpg"
                                       → "<backend_url>/uploads/x.jpg"
    """
    if not relative_url:
        return None

    normalized = normalize_url(relative_url)
    if _is_absolute(normalized):
        return normalized

    path = normalized if normalized.startswith("/") else f"/{normalized}"
    return f"{settings.backend_url.rstrip('/')}{path}"


def convert_urls_to_absolute(value: Any) -> Any:
    """
    Recursively rewrite known URL fields in dicts (and dicts inside lists).

    Returns new containers; the input is never mutated.
    """
    if isinstance(value, list):
        return [convert_urls_to_absolute(item) for item in value]
    if not isinstance(value, dict):
        return value

    converted = {}
    for key, item in value.items():
        if key in URL_FIELDS and isinstance(item, str) and item:
            converted[key] = get_absolute_url(item)
        elif isinstance(item, (dict, list)):
            converted[key] = convert_urls_to_absolute(item)
        else:
            converted[key] = item
    return converted
