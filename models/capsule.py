from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional

from db.schema import SCHEMA_VERSION
from utils.clock import now_iso
from utils.tags import normalize_tags


class CamelModel(BaseModel):
    """Documents are stored and exported with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Note(CamelModel):
    id: str
    content: str = ""


class Flashcard(CamelModel):
    id: str
    front: str = ""
    back: str = ""


class QuizQuestion(CamelModel):
    id: str
    question: str = ""
    choices: List[str] = Field(default_factory=list)
    correct_index: int = 0
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def validate_correct_index(self):
        if not 0 <= self.correct_index < len(self.choices):
            raise ValueError(
                f"correctIndex {self.correct_index} is out of range for {len(self.choices)} choices"
            )
        return self


class Attachment(CamelModel):
    id: str
    name: str
    type: str
    size: int  # bytes, checked at ingestion only
    data_url: str
    uploaded_at: str = Field(default_factory=now_iso)


class Capsule(CamelModel):
    id: str
    version: str = SCHEMA_VERSION
    title: str
    description: str = ""
    author: str = ""
    tags: List[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)
    notes: List[Note]
    flashcards: List[Flashcard]
    quiz: List[QuizQuestion]
    attachments: List[Attachment] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: List[str]) -> List[str]:
        return normalize_tags(v)


class CapsuleMetadata(CamelModel):
    id: str
    title: str
    description: str = ""
    author: str = ""
    tags: List[str] = Field(default_factory=list)
    created_at: str
    updated_at: str
    note_count: int = 0
    flashcard_count: int = 0
    quiz_count: int = 0
    attachment_count: int = 0

    @classmethod
    def from_capsule(cls, capsule: Capsule) -> "CapsuleMetadata":
        return cls(
            id=capsule.id,
            title=capsule.title,
            description=capsule.description,
            author=capsule.author,
            tags=list(capsule.tags),
            created_at=capsule.created_at,
            updated_at=capsule.updated_at,
            note_count=len(capsule.notes),
            flashcard_count=len(capsule.flashcards),
            quiz_count=len(capsule.quiz),
            attachment_count=len(capsule.attachments),
        )
