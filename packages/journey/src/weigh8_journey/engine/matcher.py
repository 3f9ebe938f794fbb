from __future__ import annotations

from typing import Iterable, Optional, Sequence

from weigh8_journey.models import CanonicalEntity

from .text import normalize_name


def matches_name(a: str | None, b: str | None) -> bool:
    key = normalize_name(a)
    return bool(key) and key == normalize_name(b)


def name_contains(value: str | None, query: str | None) -> bool:
    """Board filter: normalized substring match. An empty query matches anything."""
    q = normalize_name(query)
    return not q or q in normalize_name(value)


def find_entity(
    raw: str | None, candidates: Sequence[CanonicalEntity]
) -> Optional[CanonicalEntity]:
    """
    First candidate whose normalized name equals the normalized input.

    Only casing and spacing differences are absorbed; "ACME Transport" does
    not match "ACME Transportation".
    """
    key = normalize_name(raw)
    if not key:
        return None
    for entity in candidates:
        if matches_name(entity.name, key):
            return entity
    return None


def distinct_names(names: Iterable[str | None]) -> list[str]:
    """
    De-duplicate free-text names by normalized key, keeping the first trimmed
    spelling seen. Sorted for filter lists.
    """
    seen: dict[str, str] = {}
    for name in names:
        key = normalize_name(name)
        if key and key not in seen:
            seen[key] = (name or "").strip()
    return sorted(seen.values())
