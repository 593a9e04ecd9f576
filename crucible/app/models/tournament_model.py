from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from crucible.app.models.enums import TournamentStatus

OPEN_THEME = "open"


class EntryAuthor(BaseModel):
    model_config = ConfigDict(extra='ignore')

    name: str
    url: Optional[str] = None
    wallet: str  # mandatory for tournament entries


class Entry(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: str
    title: str
    discipline: str
    technique: str = "unspecified"
    content: str
    explanation: str = ""
    author: EntryAuthor
    submitted_at: datetime


class RatingRecord(BaseModel):
    """One rater's full score sheet. Replaced wholesale on resubmission."""
    rater_wallet: str
    rated_at: datetime
    scores: Dict[str, Union[int, float]] = Field(default_factory=dict)


class Winner(BaseModel):
    id: str
    title: str
    author: str
    wallet: str
    average_score: float


class Tournament(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: str
    title: str
    theme: str = OPEN_THEME
    discipline: Optional[str] = None  # None = any discipline
    prize: int
    duration_hours: int
    status: TournamentStatus = TournamentStatus.ACTIVE
    created_at: datetime
    ends_at: datetime
    ended_at: Optional[datetime] = None

    entries: List[Entry] = Field(default_factory=list)
    # Keyed by rater name exactly as submitted
    ratings: Dict[str, RatingRecord] = Field(default_factory=dict)
    winner: Optional[Winner] = None

    def find_entry(self, entry_id: str) -> Optional[Entry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None


class TournamentCollection(BaseModel):
    """The tournaments.json document. `current` is the only "current tournament" pointer."""
    tournaments: List[Tournament] = Field(default_factory=list)
    current: Optional[str] = None

    def get(self, tournament_id: Optional[str]) -> Optional[Tournament]:
        if tournament_id is None:
            return None
        for t in self.tournaments:
            if t.id == tournament_id:
                return t
        return None

    def current_tournament(self) -> Optional[Tournament]:
        return self.get(self.current)
