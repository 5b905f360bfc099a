from __future__ import annotations

import re
from typing import Iterable, List


_TAG_SPLIT_RE = re.compile(r"[,\n]+")


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Strip tags, drop empties and exact duplicates; first occurrence wins the display slot."""
    seen = set()
    result: List[str] = []
    for tag in tags:
        name = tag.strip()
        if not name:
            continue
        if name in seen:
            continue
        seen.add(name)
        result.append(name)
    return result


def parse_tag_names(raw: str) -> List[str]:
    if not raw:
        return []
    return normalize_tags(_TAG_SPLIT_RE.split(raw))


def add_tag(tags: List[str], raw: str) -> List[str]:
    """Append a tag if it is non-blank and not already present."""
    return normalize_tags([*tags, raw])


def remove_tag(tags: List[str], name: str) -> List[str]:
    return [tag for tag in tags if tag != name]
