from __future__ import annotations

import base64
import binascii
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

from config import DEFAULT_MAX_ATTACHMENT_BYTES
from models.capsule import Attachment, Capsule
from utils.clock import now_iso
from utils.errors import FormatError, SizeLimitError
from utils.ids import new_id

logger = logging.getLogger(__name__)

MAX_ATTACHMENT_BYTES = DEFAULT_MAX_ATTACHMENT_BYTES
DEFAULT_MIME_TYPE = "application/octet-stream"
_SIZE_UNITS = ("Bytes", "KB", "MB")


class Upload(Protocol):
    """Shape of fastapi.UploadFile that ingestion relies on."""

    filename: Optional[str]
    content_type: Optional[str]

    async def read(self) -> bytes: ...


@dataclass
class IngestResult:
    capsule: Capsule
    added: List[Attachment] = field(default_factory=list)
    errors: List[SizeLimitError] = field(default_factory=list)


def encode_data_url(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split an inline payload back into (mime type, raw bytes)."""
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise FormatError("Attachment payload is not a base64 data URL")
    mime_type = header[len("data:"):-len(";base64")] or DEFAULT_MIME_TYPE
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise FormatError(f"Attachment payload is not valid base64: {exc}") from exc


async def add_attachments(
    capsule: Capsule,
    files: Sequence[Upload],
    max_bytes: int = MAX_ATTACHMENT_BYTES,
) -> IngestResult:
    """Ingest a batch of uploads into a copy of ``capsule``.

    Files are read one at a time. Oversize files are reported in
    ``result.errors`` and skipped; the rest are appended together once the
    whole batch has been scanned. Nothing is persisted here.
    """
    added: List[Attachment] = []
    errors: List[SizeLimitError] = []
    for upload in files:
        name = upload.filename or "untitled"
        declared_size = getattr(upload, "size", None)
        if declared_size is not None and declared_size > max_bytes:
            errors.append(SizeLimitError(name, declared_size, max_bytes))
            logger.info("Skipping attachment %s: %d bytes exceeds %d", name, declared_size, max_bytes)
            continue
        data = await upload.read()
        if len(data) > max_bytes:
            errors.append(SizeLimitError(name, len(data), max_bytes))
            logger.info("Skipping attachment %s: %d bytes exceeds %d", name, len(data), max_bytes)
            continue
        mime_type = upload.content_type or DEFAULT_MIME_TYPE
        added.append(
            Attachment(
                id=new_id(),
                name=name,
                type=mime_type,
                size=len(data),
                data_url=encode_data_url(mime_type, data),
                uploaded_at=now_iso(),
            )
        )
    updated = capsule.model_copy(update={"attachments": [*capsule.attachments, *added]})
    return IngestResult(capsule=updated, added=added, errors=errors)


def remove_attachment(capsule: Capsule, attachment_id: str) -> Capsule:
    remaining = [att for att in capsule.attachments if att.id != attachment_id]
    return capsule.model_copy(update={"attachments": remaining})


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while exponent < len(_SIZE_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = math.floor(size / 1024 ** exponent * 100 + 0.5) / 100
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"
