"""
Core Utilities.

Timestamps and note markup helpers shared by the API and the drawer.
"""

import re
from datetime import datetime, timezone

_TAG_RE = re.compile(r"<[^>]*>")


def utc_now() -> datetime:
    """Current UTC time, timezone-naive. Stored timestamps are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def strip_markup(html: str) -> str:
    """
    Remove HTML tags from a string and trim surrounding whitespace.

    Args:
        html: Markup as produced by the note editor

    Returns:
        Visible text content
    """
    return _TAG_RE.sub("", html or "").strip()


def has_visible_content(html: str) -> bool:
    """
    Check whether editor markup carries anything the user can see.

    Text remaining after markup is stripped counts, and so does an
    embedded image even when there is no text around it.
    """
    return bool(strip_markup(html)) or "<img" in (html or "")
