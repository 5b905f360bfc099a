"""Portable capsule documents.

Capsules travel as pretty-printed JSON with camelCase keys plus a ``version``
tag. Importing is strict: the text must parse, carry the exact schema tag this
build understands, and validate as a full capsule before anything is written.
"""

from __future__ import annotations

import json
import logging
import os
import re
import unicodedata
from typing import List, Tuple
from urllib.parse import quote

from pydantic import ValidationError

from db.schema import SCHEMA_VERSION
from models.capsule import Capsule
from utils.errors import FormatError, SchemaError, VersionMismatchError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "title", "notes", "flashcards", "quiz")

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_FILENAME_RE = re.compile(r'[\\/"]+')
_UNSAFE_HEADER_RE = re.compile(r'[\\/"\x00-\x1f\x7f]+')


def export_capsule(capsule: Capsule) -> str:
    data = capsule.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def export_filename(capsule: Capsule) -> str:
    """Download name for an exported capsule, e.g. 'Intro to JS' -> 'intro-to-js.json'."""
    stem = _WHITESPACE_RE.sub("-", capsule.title.strip()).lower()
    stem = _UNSAFE_FILENAME_RE.sub("", stem)
    return f"{stem or 'capsule'}.json"


def content_disposition(filename: str) -> str:
    """Attachment header value carrying ``filename`` safely.

    Header values must be latin-1, so ``filename=`` gets an ASCII fallback
    and the exact name travels percent-encoded in ``filename*`` (RFC 6266).
    """
    fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = _UNSAFE_HEADER_RE.sub("", fallback)
    stem, ext = os.path.splitext(fallback)
    stem = stem.strip(" -_.")
    fallback = f"{stem or 'download'}{ext}"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _describe_errors(exc: ValidationError) -> str:
    parts: List[str] = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "capsule"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def import_capsule(text: str) -> Capsule:
    """Decode a foreign capsule document.

    Raises:
        FormatError: text is not a JSON object
        VersionMismatchError: version tag differs from SCHEMA_VERSION
        SchemaError: a required field is missing or any field is malformed

    Ids are kept as given, so persisting the result overwrites any stored
    capsule with the same id.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"Capsule is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise FormatError("Capsule document must be a JSON object")

    version = data.get("version")
    if version != SCHEMA_VERSION:
        raise VersionMismatchError(version, SCHEMA_VERSION)

    missing = [field for field in REQUIRED_FIELDS if data.get(field) is None]
    if missing:
        raise SchemaError(
            f"Capsule is missing required fields: {', '.join(missing)}",
            missing=missing,
        )

    try:
        return Capsule.model_validate(data)
    except ValidationError as exc:
        raise SchemaError(f"Invalid capsule: {_describe_errors(exc)}") from exc


def import_and_store(capsules, text: str) -> Tuple[Capsule, bool]:
    """Decode ``text`` and persist it through ``capsules.put``.

    Returns the capsule and whether it replaced a stored one. Nothing is
    written when decoding fails.
    """
    capsule = import_capsule(text)
    replaced = capsules.exists(capsule.id)
    if replaced:
        logger.warning("Import replaces existing capsule %s (%s)", capsule.id, capsule.title)
    return capsules.put(capsule), replaced
