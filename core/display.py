# core/display.py — text helpers for list rows and cards (Qt-free)

import re
from typing import Optional
from urllib.parse import urlsplit

_ALLOWED_SCHEMES = ("http", "https", "mailto", "ftp", "file")
_BARE_HOST = re.compile(r"^[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+(:\d+)?([/?#].*)?$")


def display_title(title: Optional[str], placeholder: str = "Untitled") -> str:
    t = (title or "").strip()
    return t if t else placeholder


def parse_link(link_string: Optional[str]) -> Optional[str]:
    """
    Best-effort URL check for a card link. Returns the URL to open, or None
    when the text is absent or not a usable URL. Never raises.
      - http/https/ftp need a host
      - mailto needs an address
      - file needs a path
      - a bare host such as www.example.org gets https:// in front
    """
    s = (link_string or "").strip()
    if not s or any(ch.isspace() for ch in s):
        return None
    try:
        parts = urlsplit(s)
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if not scheme and _BARE_HOST.match(s):
        return "https://" + s
    if scheme not in _ALLOWED_SCHEMES:
        return None
    if scheme in ("http", "https", "ftp"):
        return s if parts.netloc else None
    return s if parts.path else None


def preview_lines(text: Optional[str], max_lines: int) -> str:
    """First max_lines lines of text; an ellipsis marks anything cut off."""
    lines = (text or "").splitlines()
    if max_lines <= 0:
        return ""
    if len(lines) <= max_lines:
        return "\n".join(lines)
    kept = lines[:max_lines]
    kept[-1] = kept[-1].rstrip() + " …"
    return "\n".join(kept)
