"""
Utility helpers shared across routers/services.
"""

import re
from typing import Optional

from .config import get_settings

_SCHEME_RE = re.compile(r"^https?://", re.I)


def ensure_absolute_url(url: str) -> str:
    """Prefix a default scheme when the configured origin lacks one."""
    if not _SCHEME_RE.match(url or ""):
        return "http://" + (url or "")
    return url


def absolute_url(path: str, base: Optional[str] = None) -> str:
    """
    Turn a relative path into an absolute URL rooted at PUBLIC_BASE_URL.
    """
    settings = get_settings()
    base_url = ensure_absolute_url((base or settings.public_base_url).rstrip("/"))
    if not path:
        return base_url + "/"
    if _SCHEME_RE.match(path):
        return path
    if not path.startswith("/"):
        path = "/" + path
    return base_url + path


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()
