"""
Tournament lifecycle

    active --(now > ends_at, noticed lazily)--> voting --(admin end)--> completed
    active | voting --(newer tournament created)--> ended

No timer drives these transitions. Each operation that touches a tournament
calls `derive_status` with the current wall-clock time and persists the
result itself when it differs from what is stored.
"""

from datetime import datetime

from crucible.app.models.enums import TournamentStatus
from crucible.app.models.tournament_model import Tournament


def derive_status(tournament: Tournament, now: datetime) -> TournamentStatus:
    if tournament.status == TournamentStatus.ACTIVE and now > tournament.ends_at:
        return TournamentStatus.VOTING
    return tournament.status


def apply_derived_status(tournament: Tournament, now: datetime) -> bool:
    """Move the tournament to its derived status. Returns True if it changed."""
    status = derive_status(tournament, now)
    if status == tournament.status:
        return False
    tournament.status = status
    return True


def time_remaining_ms(tournament: Tournament, now: datetime) -> int:
    remaining = (tournament.ends_at - now).total_seconds() * 1000
    return max(0, int(remaining))
