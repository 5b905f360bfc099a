from __future__ import annotations

from typing import Iterable, List, Optional

from models.capsule import CapsuleMetadata


def normalize_query(raw: Optional[str]) -> Optional[str]:
    """Lowercased, stripped query, or None when there is nothing to search for."""
    if raw is None:
        return None
    cleaned = raw.strip().lower()
    return cleaned or None


def matches_query(entry: CapsuleMetadata, raw: Optional[str]) -> bool:
    """Case-insensitive substring match on title, description or any tag."""
    query = normalize_query(raw)
    if query is None:
        return True
    if query in entry.title.lower() or query in entry.description.lower():
        return True
    return any(query in tag.lower() for tag in entry.tags)


def filter_capsules(entries: Iterable[CapsuleMetadata], raw: Optional[str]) -> List[CapsuleMetadata]:
    return [entry for entry in entries if matches_query(entry, raw)]
