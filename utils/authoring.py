"""Draft editing with manual save and periodic autosave.

Manual save and autosave both go through ``AuthoringSession.save``, which
stamps ``updatedAt`` and hands the draft to ``CapsuleStore.put``. The last
call wins; there is no merge, and one editor per capsule is assumed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from config import DEFAULT_AUTOSAVE_SECONDS, get_config_value
from db.capsules import new_capsule
from models.capsule import Capsule, Flashcard, Note, QuizQuestion
from utils.clock import now_iso
from utils.ids import new_id
from utils.tags import add_tag, remove_tag

logger = logging.getLogger(__name__)

_CHILD_COLLECTIONS = ("notes", "flashcards", "quiz", "attachments")


class Autosaver:
    """Calls ``save`` every ``interval`` seconds until stopped.

    Each tick runs to completion before the next sleep starts, so ticks never
    overlap.
    """

    def __init__(self, save: Callable[[], object], interval: float):
        if interval <= 0:
            raise ValueError("Autosave interval must be positive")
        self._save = save
        self.interval = interval
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._save()
            except Exception:
                logger.exception("Autosave failed")
            self.ticks += 1


class AuthoringSession:
    """Holds the capsule being edited.

    Use ``async with session:`` to autosave while the editor is open.
    """

    def __init__(self, capsules, capsule: Capsule, interval: Optional[float] = None):
        self.capsules = capsules
        self.draft = capsule
        if interval is None:
            interval = float(get_config_value("autosave", "interval_seconds", DEFAULT_AUTOSAVE_SECONDS))
        self.autosaver = Autosaver(self.save, interval)

    @classmethod
    def open(cls, capsules, capsule_id: Optional[str] = None, interval: Optional[float] = None) -> "AuthoringSession":
        """Edit a stored capsule, or start a new one when the id is unknown or omitted."""
        capsule = capsules.get(capsule_id) if capsule_id else None
        if capsule is None:
            capsule = new_capsule()
        return cls(capsules, capsule, interval)

    async def __aenter__(self) -> "AuthoringSession":
        self.autosaver.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.autosaver.stop()

    def save(self) -> Capsule:
        self.draft = self.draft.model_copy(update={"updated_at": now_iso()})
        return self.capsules.put(self.draft)

    def update(self, **fields) -> Capsule:
        """Replace top-level draft fields; the id cannot change."""
        if "id" in fields and fields["id"] != self.draft.id:
            raise ValueError("Capsule id is immutable")
        data = self.draft.model_dump()
        data.update(fields)
        self.draft = Capsule.model_validate(data)
        return self.draft

    def add_tag(self, raw: str) -> List[str]:
        return self.update(tags=add_tag(self.draft.tags, raw)).tags

    def remove_tag(self, name: str) -> List[str]:
        return self.update(tags=remove_tag(self.draft.tags, name)).tags

    def add_note(self, content: str = "") -> Note:
        note = Note(id=new_id(), content=content)
        self.draft = self.draft.model_copy(update={"notes": [*self.draft.notes, note]})
        return note

    def add_flashcard(self, front: str = "", back: str = "") -> Flashcard:
        card = Flashcard(id=new_id(), front=front, back=back)
        self.draft = self.draft.model_copy(update={"flashcards": [*self.draft.flashcards, card]})
        return card

    def add_quiz_question(
        self,
        question: str = "",
        choices: Optional[List[str]] = None,
        correct_index: int = 0,
        explanation: Optional[str] = None,
    ) -> QuizQuestion:
        item = QuizQuestion(
            id=new_id(),
            question=question,
            choices=choices if choices is not None else ["", "", "", ""],
            correct_index=correct_index,
            explanation=explanation,
        )
        self.draft = self.draft.model_copy(update={"quiz": [*self.draft.quiz, item]})
        return item

    def remove_item(self, collection: str, item_id: str) -> None:
        if collection not in _CHILD_COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        remaining = [item for item in getattr(self.draft, collection) if item.id != item_id]
        self.draft = self.draft.model_copy(update={collection: remaining})
