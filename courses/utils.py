from __future__ import annotations

import math
import re

_WHITESPACE = re.compile(r"\s+")
_NOT_SLUG = re.compile(r"[^a-z0-9-]")


def slug_from_title(title: str) -> str:
    """Derive a URL slug: lowercase, whitespace runs to hyphens, drop the rest.

    "Test Course!!" -> "test-course". Uniqueness is not checked here.
    """
    return _NOT_SLUG.sub("", _WHITESPACE.sub("-", title.lower()))


def percentage(done: int, total: int) -> int:
    """Integer percentage rounded half up (12.5 -> 13); 0 when total is 0."""
    if total <= 0:
        return 0
    return math.floor(done * 100 / total + 0.5)
