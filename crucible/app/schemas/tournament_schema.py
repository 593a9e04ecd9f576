from pydantic import BaseModel, ConfigDict
from typing import Any, List, Optional
from datetime import datetime

from crucible.app.models.tournament_model import Winner
from crucible.app.schemas.submission_schema import SubmissionCreate

# --- Requests ---

class TournamentCreate(BaseModel):
    model_config = ConfigDict(extra='ignore')

    title: Optional[str] = None
    theme: Optional[str] = None
    discipline: Optional[str] = None
    prize: Optional[int] = None
    duration_hours: Optional[int] = None

class EntryCreate(SubmissionCreate):
    """Same fields as a gallery submission; author.wallet becomes mandatory."""

class RatingIn(BaseModel):
    model_config = ConfigDict(extra='ignore')

    entry_id: Optional[str] = None
    score: Any = None  # type checked by the service

class RateRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    rater_name: Optional[str] = None
    rater_wallet: Optional[str] = None
    ratings: Optional[List[RatingIn]] = None

class EndRequest(BaseModel):
    tournament_id: Optional[str] = None

# --- Responses ---

class TournamentStatusView(BaseModel):
    id: str
    title: str
    theme: str
    discipline: Optional[str] = None
    prize: int
    duration_hours: int
    status: str
    created_at: datetime
    ends_at: datetime
    time_remaining_ms: int
    entry_count: int
    rater_count: int

class TournamentSummary(BaseModel):
    id: str
    title: str
    theme: str
    discipline: Optional[str] = None
    prize: int
    status: str
    created_at: datetime
    ends_at: datetime
    ended_at: Optional[datetime] = None
    entry_count: int
    winner: Optional[Winner] = None

class TournamentListing(BaseModel):
    current: Optional[str] = None
    tournaments: List[TournamentSummary]

class EntryAuthorView(BaseModel):
    name: str
    url: Optional[str] = None

class EntryView(BaseModel):
    id: str
    title: str
    discipline: str
    technique: str
    content: str
    explanation: str
    author: EntryAuthorView
    submitted_at: datetime

class EntryListing(BaseModel):
    tournament_id: str
    title: str
    status: str
    entries: List[EntryView]

class EntryReceipt(BaseModel):
    entry_id: str
    tournament_id: str
    entry_count: int

class RatingReceipt(BaseModel):
    tournament_id: str
    rater: str
    rated_count: int

class RankingRow(BaseModel):
    rank: int
    entry_id: str
    title: str
    author: str
    average_score: float
    rating_count: int

class TournamentResults(BaseModel):
    tournament_id: str
    title: str
    status: str
    prize: int
    entry_count: int
    rater_count: int
    voting_complete: bool
    rankings: List[RankingRow]
    winner: Optional[Winner] = None

class TournamentOutcome(BaseModel):
    tournament_id: str
    winner: Optional[Winner] = None
    prize: int
