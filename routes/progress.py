from fastapi import APIRouter, Depends, Form, HTTPException

from db.database import get_db
from models.progress import Progress
from routes.capsules import get_capsule_or_404
from utils.progress import summarize_progress

router = APIRouter()


@router.get("/{capsule_id}")
async def get_progress(capsule_id: str, storage = Depends(get_db)):
    """Stored progress (or the unsaved default) plus a summary when the capsule exists."""
    progress = storage.get_progress(capsule_id)
    capsule = storage.get(capsule_id)
    summary = summarize_progress(capsule, progress) if capsule else None
    return {
        "progress": progress.model_dump(by_alias=True),
        "summary": summary.model_dump(by_alias=True) if summary else None,
    }


@router.put("/{capsule_id}", response_model=Progress)
async def save_progress(capsule_id: str, progress: Progress, storage = Depends(get_db)):
    if progress.capsule_id != capsule_id:
        raise HTTPException(status_code=400, detail="Progress capsuleId does not match URL")
    get_capsule_or_404(storage, capsule_id)
    return storage.save_progress(progress)


@router.post("/{capsule_id}/known", response_model=Progress)
async def mark_known(capsule_id: str, card_id: str = Form(...), storage = Depends(get_db)):
    get_capsule_or_404(storage, capsule_id)
    return storage.record_known(capsule_id, card_id)


@router.post("/{capsule_id}/unknown", response_model=Progress)
async def mark_unknown(capsule_id: str, card_id: str = Form(...), storage = Depends(get_db)):
    get_capsule_or_404(storage, capsule_id)
    return storage.record_unknown(capsule_id, card_id)


@router.post("/{capsule_id}/quiz", response_model=Progress)
async def record_quiz(capsule_id: str, score: int = Form(...), storage = Depends(get_db)):
    get_capsule_or_404(storage, capsule_id)
    if score < 0:
        raise HTTPException(status_code=400, detail="Score cannot be negative")
    return storage.record_quiz_score(capsule_id, score)
