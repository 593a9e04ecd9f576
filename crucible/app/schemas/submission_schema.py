from pydantic import BaseModel, ConfigDict
from typing import Dict, List, Optional
from datetime import datetime

from crucible.app.models.submission_model import Author

# --- Requests ---
# Every field is optional here so the services can answer a missing field
# with their own message instead of a generic body validation error.

class AuthorIn(BaseModel):
    model_config = ConfigDict(extra='ignore')

    name: Optional[str] = None
    url: Optional[str] = None
    wallet: Optional[str] = None

class SubmissionCreate(BaseModel):
    model_config = ConfigDict(extra='ignore')

    title: Optional[str] = None
    discipline: Optional[str] = None
    technique: Optional[str] = None
    content: Optional[str] = None
    explanation: Optional[str] = None
    author: Optional[AuthorIn] = None

class RejectRequest(BaseModel):
    reason: Optional[str] = None

# --- Responses ---

class GalleryPiece(BaseModel):
    id: str
    title: str
    discipline: str
    technique: str
    content: str
    explanation: str
    author: Author
    approved_at: Optional[datetime] = None

class GalleryStats(BaseModel):
    total_approved: int
    pending: int
    by_discipline: Dict[str, int]
    unique_artists: int
    with_wallet: int
    unique_wallets: int

class ArtistReward(BaseModel):
    wallet: str
    names: List[str]
    piece_count: int
    disciplines: List[str]
