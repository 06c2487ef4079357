"""
Core Utilities.

Shared utility functions used across the package.
All modules should import utilities from this module.
"""

import html
import re
from datetime import datetime, timezone

_TAG_RE = re.compile(r"<[^>]+>")


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application should be timezone-naive
    and assumed to be UTC. This keeps client timestamps comparable with
    the server timestamps written by the document stores.

    Returns:
        Current UTC time with tzinfo stripped
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def strip_html(content: str | None) -> str:
    """Return the visible text of a rich-text HTML fragment."""
    if not content:
        return ""
    return html.unescape(_TAG_RE.sub(" ", content))
