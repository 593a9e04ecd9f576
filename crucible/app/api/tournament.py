from fastapi import APIRouter, Depends
from typing import Optional

from crucible.app.core.security import require_admin
from crucible.app.core.store import DocumentStore, get_store
from crucible.app.schemas.tournament_schema import EndRequest, EntryCreate, RateRequest, TournamentCreate
from crucible.app.services.tournament_service import tournament_service

router = APIRouter()

@router.post("/tournament/create", dependencies=[Depends(require_admin)])
async def create_tournament(payload: TournamentCreate, store: DocumentStore = Depends(get_store)):
    t = await tournament_service.create_tournament(store, payload)
    return {
        "success": True,
        "message": "Tournament created!",
        "tournament": t.model_dump(
            mode="json",
            include={"id", "title", "theme", "discipline", "prize", "duration_hours", "status", "ends_at"},
        ),
    }

@router.get("/tournament/current")
async def get_current_tournament(store: DocumentStore = Depends(get_store)):
    current = await tournament_service.get_current(store)
    if current is None:
        return {"success": True, "tournament": None, "message": "No active tournament"}
    return {"success": True, "tournament": current.model_dump(mode="json")}

@router.post("/tournament/enter")
async def enter_tournament(payload: EntryCreate, store: DocumentStore = Depends(get_store)):
    receipt = await tournament_service.enter(store, payload)
    return {"success": True, "message": "Entry received!", **receipt.model_dump()}

@router.get("/tournament/entries")
async def list_entries(tournament_id: Optional[str] = None, store: DocumentStore = Depends(get_store)):
    listing = await tournament_service.list_entries(store, tournament_id)
    if listing is None:
        return {"success": True, "count": 0, "entries": [], "message": "No active tournament"}
    return {"success": True, "count": len(listing.entries), **listing.model_dump(mode="json")}

@router.post("/tournament/rate")
async def rate_entries(payload: RateRequest, store: DocumentStore = Depends(get_store)):
    """Participants score other entries 1-5. A new sheet replaces the rater's previous one."""
    receipt = await tournament_service.rate(store, payload)
    return {"success": True, "message": "Ratings recorded!", **receipt.model_dump()}

@router.get("/tournament/results")
async def get_results(tournament_id: Optional[str] = None, store: DocumentStore = Depends(get_store)):
    results = await tournament_service.results(store, tournament_id)
    return {"success": True, "results": results.model_dump(mode="json")}

@router.post("/tournament/end", dependencies=[Depends(require_admin)])
async def end_tournament(payload: Optional[EndRequest] = None, store: DocumentStore = Depends(get_store)):
    tournament_id = payload.tournament_id if payload else None
    outcome = await tournament_service.end_tournament(store, tournament_id)
    return {"success": True, "message": "Tournament ended!", **outcome.model_dump(mode="json")}

@router.get("/tournaments")
async def list_tournaments(store: DocumentStore = Depends(get_store)):
    listing = await tournament_service.list_all(store)
    return {"success": True, "count": len(listing.tournaments), **listing.model_dump(mode="json")}
