from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from typing import Optional

from db.database import get_db
from models.capsule import CapsuleMetadata
from routes.capsules import get_capsule_or_404
from utils.errors import CapsuleError
from utils.transfer import content_disposition, export_capsule, export_filename, import_and_store

router = APIRouter()


@router.get("/{capsule_id}/export")
async def download_capsule(capsule_id: str, storage = Depends(get_db)):
    capsule = get_capsule_or_404(storage, capsule_id)
    headers = {"Content-Disposition": content_disposition(export_filename(capsule))}
    return Response(content=export_capsule(capsule), media_type="application/json", headers=headers)


@router.post("/import")
async def import_capsule(
    file: Optional[UploadFile] = File(None),
    text: Optional[str] = Form(None),
    storage = Depends(get_db),
):
    """Admit a capsule from an uploaded file or pasted JSON text."""
    if file is not None and file.filename:
        data = await file.read()
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise HTTPException(status_code=400, detail="Import file must be UTF-8 text") from exc
    if not text or not text.strip():
        raise HTTPException(status_code=400, detail="Capsule JSON is required")
    try:
        capsule, replaced = import_and_store(storage.capsules, text)
    except CapsuleError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "capsule": CapsuleMetadata.from_capsule(capsule).model_dump(by_alias=True),
        "replaced": replaced,
    }
