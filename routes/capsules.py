from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from typing import List, Optional

from config import DEFAULT_MAX_ATTACHMENT_BYTES, get_config_value
from db.database import get_db
from models.capsule import Capsule, CapsuleMetadata
from utils.attachments import add_attachments, decode_data_url, remove_attachment
from utils.errors import FormatError
from utils.search import filter_capsules
from utils.transfer import content_disposition

router = APIRouter()


def get_capsule_or_404(storage, capsule_id: str) -> Capsule:
    capsule = storage.get(capsule_id)
    if capsule is None:
        raise HTTPException(status_code=404, detail="Capsule not found")
    return capsule


@router.get("/", response_model=List[CapsuleMetadata])
async def list_capsules(q: Optional[str] = Query(default=None), storage = Depends(get_db)):
    """Library listing, optionally narrowed by a title/description/tag search."""
    return filter_capsules(storage.list_all(), q)


@router.get("/new", response_model=Capsule)
async def new_capsule(storage = Depends(get_db)):
    """Blank capsule for the editor; not saved until PUT."""
    return storage.new_capsule()


@router.get("/{capsule_id}", response_model=Capsule)
async def get_capsule(capsule_id: str, storage = Depends(get_db)):
    return get_capsule_or_404(storage, capsule_id)


@router.put("/{capsule_id}", response_model=CapsuleMetadata)
async def save_capsule(capsule_id: str, capsule: Capsule, storage = Depends(get_db)):
    if capsule.id != capsule_id:
        raise HTTPException(status_code=400, detail="Capsule id does not match URL")
    storage.put(capsule)
    return CapsuleMetadata.from_capsule(capsule)


@router.delete("/{capsule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_capsule(capsule_id: str, storage = Depends(get_db)):
    if not storage.capsules.exists(capsule_id):
        raise HTTPException(status_code=404, detail="Capsule not found")
    storage.delete(capsule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{capsule_id}/attachments")
async def upload_attachments(
    capsule_id: str,
    files: List[UploadFile] = File(...),
    storage = Depends(get_db),
):
    """Ingest a batch of files; oversize files are reported, not fatal."""
    capsule = get_capsule_or_404(storage, capsule_id)
    max_bytes = int(get_config_value("attachments", "max_bytes", DEFAULT_MAX_ATTACHMENT_BYTES))
    result = await add_attachments(capsule, files, max_bytes=max_bytes)
    if result.added:
        storage.put(result.capsule)
    return {
        "added": [att.model_dump(by_alias=True, exclude={"data_url"}) for att in result.added],
        "rejected": [
            {"filename": err.filename, "size": err.size, "limit": err.limit, "detail": str(err)}
            for err in result.errors
        ],
        "attachmentCount": len(result.capsule.attachments),
    }


@router.get("/{capsule_id}/attachments/{attachment_id}")
async def download_attachment(capsule_id: str, attachment_id: str, storage = Depends(get_db)):
    capsule = get_capsule_or_404(storage, capsule_id)
    attachment = next((att for att in capsule.attachments if att.id == attachment_id), None)
    if attachment is None:
        raise HTTPException(status_code=404, detail="Attachment not found")
    try:
        mime_type, data = decode_data_url(attachment.data_url)
    except FormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    headers = {"Content-Disposition": content_disposition(attachment.name)}
    return Response(content=data, media_type=mime_type, headers=headers)


@router.delete("/{capsule_id}/attachments/{attachment_id}", response_model=CapsuleMetadata)
async def delete_attachment(capsule_id: str, attachment_id: str, storage = Depends(get_db)):
    capsule = get_capsule_or_404(storage, capsule_id)
    if not any(att.id == attachment_id for att in capsule.attachments):
        raise HTTPException(status_code=404, detail="Attachment not found")
    updated = storage.put(remove_attachment(capsule, attachment_id))
    return CapsuleMetadata.from_capsule(updated)
