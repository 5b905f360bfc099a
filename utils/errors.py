from __future__ import annotations

from typing import Iterable, Optional


class CapsuleError(ValueError):
    """Base class for capsule import and ingestion failures."""


class FormatError(CapsuleError):
    """Text could not be parsed as a structured capsule document."""


class VersionMismatchError(CapsuleError):
    def __init__(self, found: Optional[object], expected: str):
        self.found = found
        self.expected = expected
        super().__init__(
            f"Unsupported capsule version {found!r} (expected {expected!r})"
        )


class SchemaError(CapsuleError):
    def __init__(self, message: str, missing: Iterable[str] = ()):
        self.missing = list(missing)
        super().__init__(message)


class SizeLimitError(CapsuleError):
    def __init__(self, filename: str, size: int, limit: int):
        self.filename = filename
        self.size = size
        self.limit = limit
        super().__init__(
            f"File {filename} is too large ({size} bytes). Maximum size is {limit} bytes."
        )
