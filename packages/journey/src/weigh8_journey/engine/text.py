from __future__ import annotations

import re

_ws = re.compile(r"\s+", flags=re.UNICODE)


def normalize_name(s: str | None) -> str:
    """
    Case and spacing insensitive key for free-text names: strip, lower-case,
    collapse whitespace runs to one space. Idempotent.
    """
    if s is None:
        return ""
    return _ws.sub(" ", s.strip()).lower()


def normalize_plate(s: str | None) -> str:
    """Plates compare with all whitespace removed, lower-cased."""
    if s is None:
        return ""
    return _ws.sub("", s).lower()
