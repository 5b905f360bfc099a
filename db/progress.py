from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from models.progress import Progress
from utils.clock import now_iso
from .kvstore import KeyValueStore
from .schema import progress_key

logger = logging.getLogger(__name__)


def default_progress(capsule_id: str) -> Progress:
    return Progress(capsule_id=capsule_id)


class ProgressStore:
    """Per-capsule study state, stored apart from capsule documents."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def _load(self, capsule_id: str) -> Optional[Progress]:
        raw = self.kv.get(progress_key(capsule_id))
        if raw is None:
            return None
        try:
            return Progress.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring unreadable progress for capsule %s: %s", capsule_id, exc)
            return None

    def get(self, capsule_id: str) -> Progress:
        """Stored progress, or a fresh default that is not persisted until saved."""
        return self._load(capsule_id) or default_progress(capsule_id)

    def save(self, progress: Progress) -> Progress:
        """Upsert ``progress``; a stored best quiz score is never lowered."""
        stored = self._load(progress.capsule_id)
        if stored is not None and stored.best_quiz_score > progress.best_quiz_score:
            progress = progress.model_copy(update={"best_quiz_score": stored.best_quiz_score})
        self.kv.set(progress_key(progress.capsule_id), progress.model_dump_json(by_alias=True))
        return progress

    def delete(self, capsule_id: str) -> None:
        self.kv.remove(progress_key(capsule_id))

    def record_known(self, capsule_id: str, card_id: str) -> Progress:
        current = self.get(capsule_id)
        updated = current.model_copy(update={
            "known_flashcards": [cid for cid in current.known_flashcards if cid != card_id] + [card_id],
            "unknown_flashcards": [cid for cid in current.unknown_flashcards if cid != card_id],
            "last_studied": now_iso(),
        })
        return self.save(updated)

    def record_unknown(self, capsule_id: str, card_id: str) -> Progress:
        current = self.get(capsule_id)
        updated = current.model_copy(update={
            "unknown_flashcards": [cid for cid in current.unknown_flashcards if cid != card_id] + [card_id],
            "known_flashcards": [cid for cid in current.known_flashcards if cid != card_id],
            "last_studied": now_iso(),
        })
        return self.save(updated)

    def record_quiz_score(self, capsule_id: str, score: int) -> Progress:
        """Keep the best score seen so far; the study timestamp always moves."""
        if score < 0:
            raise ValueError("Quiz score cannot be negative")
        current = self.get(capsule_id)
        updated = current.model_copy(update={
            "best_quiz_score": max(current.best_quiz_score, score),
            "last_studied": now_iso(),
        })
        return self.save(updated)
