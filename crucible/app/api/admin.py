from fastapi import APIRouter, Depends
from typing import Optional

from crucible.app.core.security import require_admin
from crucible.app.core.store import DocumentStore, get_store
from crucible.app.schemas.submission_schema import RejectRequest
from crucible.app.services.submission_service import submission_service

router = APIRouter(dependencies=[Depends(require_admin)])

@router.get("/pending")
async def list_pending(store: DocumentStore = Depends(get_store)):
    pending = await submission_service.list_pending(store)
    return {
        "success": True,
        "count": len(pending),
        "submissions": [s.model_dump(mode="json") for s in pending],
    }

@router.post("/approve/{submission_id}")
async def approve_submission(submission_id: str, store: DocumentStore = Depends(get_store)):
    await submission_service.approve(store, submission_id)
    return {"success": True, "message": "Submission approved and added to gallery!"}

@router.post("/reject/{submission_id}")
async def reject_submission(
    submission_id: str,
    payload: Optional[RejectRequest] = None,
    store: DocumentStore = Depends(get_store)
):
    reason = payload.reason if payload else None
    await submission_service.reject(store, submission_id, reason)
    return {"success": True, "message": "Submission rejected."}

@router.get("/artists")
async def list_reward_eligible_artists(store: DocumentStore = Depends(get_store)):
    """Approved artists with a wallet on file, grouped by wallet."""
    artists = await submission_service.reward_eligible_artists(store)
    return {
        "success": True,
        "count": len(artists),
        "artists": [a.model_dump() for a in artists],
    }
