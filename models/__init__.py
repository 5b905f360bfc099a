from .capsule import Note, Flashcard, QuizQuestion, Attachment, Capsule, CapsuleMetadata
from .progress import Progress, StudySummary

__all__ = ['Note', 'Flashcard', 'QuizQuestion', 'Attachment', 'Capsule', 'CapsuleMetadata', 'Progress', 'StudySummary']
