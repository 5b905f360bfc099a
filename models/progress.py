from pydantic import Field, field_validator, model_validator
from typing import List

from utils.clock import now_iso
from .capsule import CamelModel


class Progress(CamelModel):
    capsule_id: str
    known_flashcards: List[str] = Field(default_factory=list)
    unknown_flashcards: List[str] = Field(default_factory=list)
    best_quiz_score: int = Field(0, ge=0)
    last_studied: str = Field(default_factory=now_iso)

    @field_validator("known_flashcards", "unknown_flashcards")
    @classmethod
    def dedupe_ids(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def validate_disjoint(self):
        overlap = set(self.known_flashcards) & set(self.unknown_flashcards)
        if overlap:
            raise ValueError(
                f"Flashcards cannot be both known and unknown: {', '.join(sorted(overlap))}"
            )
        return self


class StudySummary(CamelModel):
    capsule_id: str
    known_count: int
    unknown_count: int
    flashcard_count: int
    best_quiz_score: int
    quiz_count: int
    quiz_percent: int
    last_studied: str
