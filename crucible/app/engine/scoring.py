from dataclasses import dataclass, field
from typing import List, Optional, Union

from crucible.app.models.tournament_model import Entry, Tournament, Winner

Score = Union[int, float]


@dataclass
class EntryStanding:
    entry: Entry
    scores: List[Score] = field(default_factory=list)

    @property
    def average(self) -> float:
        if not self.scores:
            return 0
        return sum(self.scores) / len(self.scores)


def rank_entries(tournament: Tournament) -> List[EntryStanding]:
    """
    Peer-rating aggregation.

    Every (entry_id, score) pair from every rater's sheet is attributed to
    its entry if the entry still exists. Entries are ranked by mean score,
    highest first; unrated entries average 0. The sort is stable, so ties
    keep submission order.
    """
    standings = {entry.id: EntryStanding(entry=entry) for entry in tournament.entries}

    for record in tournament.ratings.values():
        for entry_id, score in record.scores.items():
            standing = standings.get(entry_id)
            if standing is not None:
                standing.scores.append(score)

    return sorted(standings.values(), key=lambda s: s.average, reverse=True)


def voting_complete(tournament: Tournament) -> bool:
    # Compares counts only; does not check each rater covered every entry.
    return len(tournament.ratings) == len(tournament.entries)


def pick_winner(standings: List[EntryStanding]) -> Optional[Winner]:
    if not standings:
        return None
    top = standings[0]
    return Winner(
        id=top.entry.id,
        title=top.entry.title,
        author=top.entry.author.name,
        wallet=top.entry.author.wallet,
        average_score=top.average,
    )
