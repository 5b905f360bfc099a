"""Capsule record store and the listing index derived from it.

Every capsule lives under its own key; the index key holds one metadata entry
per capsule in insertion order. ``CapsuleStore.put`` and ``CapsuleStore.delete``
are the only code paths that write the index, and each runs inside a single
storage transaction so a record and its index entry never disagree.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from models.capsule import Capsule, CapsuleMetadata
from utils.clock import now_iso
from utils.ids import new_id
from .kvstore import KeyValueStore
from .progress import ProgressStore
from .schema import CAPSULE_PREFIX, INDEX_KEY, SCHEMA_VERSION, capsule_key

logger = logging.getLogger(__name__)

_index_adapter = TypeAdapter(List[CapsuleMetadata])


def new_capsule() -> Capsule:
    """An empty, unsaved capsule stamped with a fresh id and the current schema tag."""
    now = now_iso()
    return Capsule(
        id=new_id(),
        version=SCHEMA_VERSION,
        title="Untitled Capsule",
        description="",
        author="",
        tags=[],
        created_at=now,
        updated_at=now,
        notes=[],
        flashcards=[],
        quiz=[],
        attachments=[],
    )


class CapsuleStore:
    def __init__(self, kv: KeyValueStore, progress: Optional[ProgressStore] = None):
        self.kv = kv
        self.progress = progress or ProgressStore(kv)

    def get(self, capsule_id: str) -> Optional[Capsule]:
        """Return the stored capsule, or None if it is missing or unreadable."""
        raw = self.kv.get(capsule_key(capsule_id))
        if raw is None:
            return None
        try:
            return Capsule.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring unreadable capsule %s: %s", capsule_id, exc)
            return None

    def put(self, capsule: Capsule) -> Capsule:
        """Upsert the capsule document and its index entry as one unit."""
        metadata = CapsuleMetadata.from_capsule(capsule)
        with self.kv.transaction():
            self.kv.set(capsule_key(capsule.id), capsule.model_dump_json(by_alias=True))
            entries = self._read_index()
            for position, entry in enumerate(entries):
                if entry.id == capsule.id:
                    entries[position] = metadata
                    break
            else:
                entries.append(metadata)
            self._write_index(entries)
        return capsule

    def delete(self, capsule_id: str) -> None:
        """Remove the capsule, its index entry and its study progress."""
        with self.kv.transaction():
            self.kv.remove(capsule_key(capsule_id))
            self.progress.delete(capsule_id)
            entries = [entry for entry in self._read_index() if entry.id != capsule_id]
            self._write_index(entries)
        logger.info("Deleted capsule %s", capsule_id)

    def list_all(self) -> List[CapsuleMetadata]:
        """Metadata for every stored capsule, oldest insertion first."""
        return self._read_index()

    def exists(self, capsule_id: str) -> bool:
        return self.kv.exists(capsule_key(capsule_id))

    def has_index(self) -> bool:
        return self.kv.exists(INDEX_KEY)

    def create_index(self) -> None:
        self._write_index([])

    def _read_index(self) -> List[CapsuleMetadata]:
        raw = self.kv.get(INDEX_KEY)
        if raw is None:
            return []
        try:
            return _index_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Capsule index is unreadable, rebuilding from records: %s", exc)
            return self._rebuild_index()

    def _rebuild_index(self) -> List[CapsuleMetadata]:
        capsules = []
        for key in self.kv.keys(CAPSULE_PREFIX):
            capsule = self.get(key[len(CAPSULE_PREFIX):])
            if capsule is not None:
                capsules.append(capsule)
        capsules.sort(key=lambda capsule: capsule.created_at)
        return [CapsuleMetadata.from_capsule(capsule) for capsule in capsules]

    def _write_index(self, entries: List[CapsuleMetadata]) -> None:
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in entries]
        self.kv.set(INDEX_KEY, json.dumps(payload))
