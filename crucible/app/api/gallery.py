from fastapi import APIRouter, Depends
from typing import Optional

from crucible.app.core.store import DocumentStore, get_store
from crucible.app.schemas.submission_schema import SubmissionCreate
from crucible.app.services.submission_service import parse_limit, submission_service

router = APIRouter()

@router.post("/submit")
async def submit_piece(payload: SubmissionCreate, store: DocumentStore = Depends(get_store)):
    submission = await submission_service.submit(store, payload)
    return {
        "success": True,
        "message": "Submission received! Pending approval.",
        "submission_id": submission.id,
        "status": submission.status,
    }

@router.get("/submissions/{submission_id}")
async def get_submission(submission_id: str, store: DocumentStore = Depends(get_store)):
    """Status check for a submission, whether still pending or already reviewed."""
    submission = await submission_service.get_by_id(store, submission_id)
    return {"success": True, "submission": submission.model_dump(mode="json")}

@router.get("/gallery")
async def get_gallery(
    discipline: Optional[str] = None,
    limit: Optional[str] = None,
    store: DocumentStore = Depends(get_store)
):
    """Approved pieces, newest approval first."""
    pieces = await submission_service.public_gallery(store, discipline, parse_limit(limit))
    return {
        "success": True,
        "count": len(pieces),
        "gallery": [p.model_dump(mode="json") for p in pieces],
    }

@router.get("/gallery/{piece_id}")
async def get_gallery_piece(piece_id: str, store: DocumentStore = Depends(get_store)):
    piece = await submission_service.get_gallery_piece(store, piece_id)
    return {"success": True, "piece": piece.model_dump(mode="json")}

@router.get("/stats")
async def get_stats(store: DocumentStore = Depends(get_store)):
    stats = await submission_service.stats(store)
    return {"success": True, "stats": stats.model_dump()}
