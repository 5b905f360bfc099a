from __future__ import annotations

from models.capsule import Capsule
from models.progress import Progress, StudySummary


def quiz_percent(score: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(score / total * 100)


def summarize_progress(capsule: Capsule, progress: Progress) -> StudySummary:
    """Study counters for a capsule, ignoring flashcards that were deleted since they were graded."""
    card_ids = {card.id for card in capsule.flashcards}
    known = [cid for cid in progress.known_flashcards if cid in card_ids]
    unknown = [cid for cid in progress.unknown_flashcards if cid in card_ids]
    return StudySummary(
        capsule_id=capsule.id,
        known_count=len(known),
        unknown_count=len(unknown),
        flashcard_count=len(capsule.flashcards),
        best_quiz_score=progress.best_quiz_score,
        quiz_count=len(capsule.quiz),
        quiz_percent=quiz_percent(progress.best_quiz_score, len(capsule.quiz)),
        last_studied=progress.last_studied,
    )
