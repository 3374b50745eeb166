from __future__ import annotations

from typing import Iterable, Optional

from menuvision.app.domain.models import MenuItem


def normalize_name(name: str) -> str:
    return name.strip().lower()


def names_match(candidate: str, catalog_name: str) -> bool:
    """Case-insensitive equality, or containment in either direction."""
    answer = normalize_name(candidate)
    known = normalize_name(catalog_name)
    if not answer or not known:
        return False
    return answer == known or answer in known or known in answer


def find_matching_item(name: Optional[str], catalog: Iterable[MenuItem]) -> Optional[MenuItem]:
    """First catalog entry, in encounter order, whose name matches `name`."""
    if not name or not name.strip():
        return None
    for item in catalog:
        if names_match(name, item.name):
            return item
    return None
