"""
Tournament Service - time-boxed peer-rated competitions

Owns tournaments.json. Handles:
- Creating tournaments (force-ending whatever was current)
- Entry eligibility (wallet, discipline restriction, one entry per author)
- Peer ratings (participants only, one sheet per rater, replaced on resubmit)
- Rankings, results and winner declaration

Status derivation is pure (engine.lifecycle). Persisting a derived status is
done here, under the document lock, by the operation that noticed it.
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional

from crucible.app.core.clock import Clock, utcnow
from crucible.app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from crucible.app.core.store import TOURNAMENTS, DocumentStore
from crucible.app.engine.lifecycle import apply_derived_status, derive_status, time_remaining_ms
from crucible.app.engine.scoring import pick_winner, rank_entries, voting_complete
from crucible.app.engine.validation import (
    is_valid_score,
    is_valid_wallet,
    missing_fields,
    normalize_discipline,
    normalize_name,
)
from crucible.app.models.enums import DISCIPLINES, TournamentStatus
from crucible.app.models.tournament_model import (
    OPEN_THEME,
    Entry,
    EntryAuthor,
    RatingRecord,
    Tournament,
    TournamentCollection,
)
from crucible.app.schemas.tournament_schema import (
    EntryAuthorView,
    EntryCreate,
    EntryListing,
    EntryReceipt,
    EntryView,
    RankingRow,
    RateRequest,
    RatingReceipt,
    TournamentCreate,
    TournamentListing,
    TournamentOutcome,
    TournamentResults,
    TournamentStatusView,
    TournamentSummary,
)

logger = logging.getLogger(__name__)

INVALID_WALLET = "Invalid wallet address. Expected 0x followed by 40 hex characters"


class TournamentService:
    def __init__(self, clock: Clock = utcnow):
        self.clock = clock

    async def _load(self, store: DocumentStore) -> TournamentCollection:
        return TournamentCollection.model_validate(await store.load(TOURNAMENTS))

    async def _save(self, store: DocumentStore, collection: TournamentCollection):
        await store.save(TOURNAMENTS, collection.model_dump(mode="json"))

    def _refresh(self, collection: TournamentCollection, now) -> bool:
        """
        Apply the lazy active -> voting transition to every tournament,
        including an active one that is no longer current.
        """
        flipped = False
        for t in collection.tournaments:
            if apply_derived_status(t, now):
                logger.info(f"[TOURNAMENT] {t.id} submission period over, now {t.status}")
                flipped = True
        return flipped

    async def _load_refreshed(self, store: DocumentStore, now=None) -> TournamentCollection:
        """Load for reading; a status flip noticed on the way is persisted."""
        now = now or self.clock()
        async with store.locked(TOURNAMENTS):
            collection = await self._load(store)
            if self._refresh(collection, now):
                await self._save(store, collection)
        return collection

    def _resolve(self, collection: TournamentCollection, tournament_id: Optional[str]) -> Tournament:
        """Explicit id, else the current tournament."""
        if tournament_id:
            tournament = collection.get(tournament_id)
            if tournament is None:
                raise NotFoundError("Tournament not found")
            return tournament
        tournament = collection.current_tournament()
        if tournament is None:
            raise NotFoundError("No active tournament")
        return tournament

    async def create_tournament(self, store: DocumentStore, payload: TournamentCreate) -> Tournament:
        missing = missing_fields({
            "title": payload.title,
            "prize": payload.prize,
            "duration_hours": payload.duration_hours,
        })
        if missing:
            raise ValidationError("Missing required fields: title, prize, duration_hours")
        if payload.prize < 0 or payload.duration_hours < 0:
            raise ValidationError("prize and duration_hours must not be negative")

        discipline = None
        if payload.discipline:
            discipline = normalize_discipline(payload.discipline)
            if discipline is None:
                raise ValidationError(f"Invalid discipline. Valid options: {', '.join(DISCIPLINES)}")

        now = self.clock()
        tournament = Tournament(
            id=str(uuid.uuid4()),
            title=payload.title,
            theme=payload.theme or OPEN_THEME,
            discipline=discipline,
            prize=payload.prize,
            duration_hours=payload.duration_hours,
            status=TournamentStatus.ACTIVE,
            created_at=now,
            ends_at=now + timedelta(hours=payload.duration_hours),
        )

        async with store.locked(TOURNAMENTS):
            collection = await self._load(store)

            previous = collection.current_tournament()
            if previous is not None:
                # Superseded, whatever state it was in
                previous.status = TournamentStatus.ENDED
                previous.ended_at = now
                logger.info(f'[TOURNAMENT] Ended "{previous.title}" ({previous.id}), superseded')

            collection.tournaments.append(tournament)
            collection.current = tournament.id
            await self._save(store, collection)

        logger.info(
            f'[TOURNAMENT] Created "{tournament.title}" ({tournament.id}), '
            f'prize {tournament.prize}, {tournament.duration_hours}h'
        )
        return tournament

    async def get_current(self, store: DocumentStore) -> Optional[TournamentStatusView]:
        now = self.clock()
        collection = await self._load_refreshed(store, now)
        t = collection.current_tournament()
        if t is None:
            return None

        return TournamentStatusView(
            id=t.id,
            title=t.title,
            theme=t.theme,
            discipline=t.discipline,
            prize=t.prize,
            duration_hours=t.duration_hours,
            status=t.status,
            created_at=t.created_at,
            ends_at=t.ends_at,
            time_remaining_ms=time_remaining_ms(t, now),
            entry_count=len(t.entries),
            rater_count=len(t.ratings),
        )

    async def enter(self, store: DocumentStore, payload: EntryCreate) -> EntryReceipt:
        author = payload.author
        missing = missing_fields({
            "title": payload.title,
            "discipline": payload.discipline,
            "content": payload.content,
            "author.name": author.name if author else None,
            "author.wallet": author.wallet if author else None,
        })
        if missing:
            raise ValidationError(
                "Missing required fields: title, discipline, content, author.name, author.wallet"
            )
        if not is_valid_wallet(author.wallet):
            raise ValidationError(INVALID_WALLET)

        discipline = normalize_discipline(payload.discipline)
        if discipline is None:
            raise ValidationError(f"Invalid discipline. Valid options: {', '.join(DISCIPLINES)}")

        async with store.locked(TOURNAMENTS):
            collection = await self._load(store)
            tournament = collection.current_tournament()
            if tournament is None:
                raise ConflictError("No active tournament")

            if tournament.status != TournamentStatus.ACTIVE:
                raise ConflictError(f"Tournament is not accepting entries (status: {tournament.status})")

            now = self.clock()
            if derive_status(tournament, now) != TournamentStatus.ACTIVE:
                # The flip is kept even though the entry is refused
                self._refresh(collection, now)
                await self._save(store, collection)
                raise ConflictError("Tournament submission period has ended")

            if tournament.discipline and tournament.discipline != discipline:
                raise ConflictError(f"This tournament only accepts {tournament.discipline} entries")

            identity = normalize_name(author.name)
            if any(normalize_name(e.author.name) == identity for e in tournament.entries):
                raise ConflictError("You have already submitted an entry to this tournament")

            entry = Entry(
                id=str(uuid.uuid4()),
                title=payload.title,
                discipline=discipline,
                technique=payload.technique or "unspecified",
                content=payload.content,
                explanation=payload.explanation or "",
                author=EntryAuthor(name=author.name, url=author.url or None, wallet=author.wallet),
                submitted_at=now,
            )
            tournament.entries.append(entry)
            await self._save(store, collection)

        logger.info(f'[ENTRY] "{entry.title}" by {author.name} entered {tournament.id}')
        return EntryReceipt(entry_id=entry.id, tournament_id=tournament.id, entry_count=len(tournament.entries))

    async def list_entries(self, store: DocumentStore, tournament_id: Optional[str] = None) -> Optional[EntryListing]:
        """Entries of the given (or current) tournament. None when there is nothing to list."""
        collection = await self._load_refreshed(store)
        if not tournament_id and collection.current_tournament() is None:
            return None
        t = self._resolve(collection, tournament_id)

        return EntryListing(
            tournament_id=t.id,
            title=t.title,
            status=t.status,
            entries=[
                EntryView(
                    id=e.id,
                    title=e.title,
                    discipline=e.discipline,
                    technique=e.technique,
                    content=e.content,
                    explanation=e.explanation,
                    author=EntryAuthorView(name=e.author.name, url=e.author.url),
                    submitted_at=e.submitted_at,
                )
                for e in t.entries
            ],
        )

    async def rate(self, store: DocumentStore, payload: RateRequest) -> RatingReceipt:
        if not payload.rater_name or not payload.rater_wallet or payload.ratings is None:
            raise ValidationError("Missing required fields: rater_name, rater_wallet, ratings")
        if not is_valid_wallet(payload.rater_wallet):
            raise ValidationError(INVALID_WALLET)

        async with store.locked(TOURNAMENTS):
            collection = await self._load(store)
            tournament = collection.current_tournament()
            if tournament is None:
                raise ConflictError("No active tournament")

            now = self.clock()
            self._refresh(collection, now)

            rater = normalize_name(payload.rater_name)
            if not any(normalize_name(e.author.name) == rater for e in tournament.entries):
                raise ForbiddenError("Only tournament participants can rate entries")

            scores = {}
            for rating in payload.ratings:
                if not rating.entry_id or rating.score is None:
                    raise ValidationError("Each rating requires entry_id and score")
                if not is_valid_score(rating.score):
                    raise ValidationError(f"Score for {rating.entry_id} must be a number between 1 and 5")
                if tournament.find_entry(rating.entry_id) is None:
                    raise ValidationError(f"Entry not found in this tournament: {rating.entry_id}")
                scores[rating.entry_id] = rating.score

            # Full replacement of any earlier sheet from this rater
            tournament.ratings[payload.rater_name] = RatingRecord(
                rater_wallet=payload.rater_wallet,
                rated_at=now,
                scores=scores,
            )
            await self._save(store, collection)

        logger.info(f"[RATE] {payload.rater_name} rated {len(scores)} entries in {tournament.id}")
        return RatingReceipt(tournament_id=tournament.id, rater=payload.rater_name, rated_count=len(scores))

    async def results(self, store: DocumentStore, tournament_id: Optional[str] = None) -> TournamentResults:
        collection = await self._load_refreshed(store)
        t = self._resolve(collection, tournament_id)

        standings = rank_entries(t)
        rankings = [
            RankingRow(
                rank=position,
                entry_id=s.entry.id,
                title=s.entry.title,
                author=s.entry.author.name,
                average_score=round(s.average, 2),
                rating_count=len(s.scores),
            )
            for position, s in enumerate(standings, start=1)
        ]

        return TournamentResults(
            tournament_id=t.id,
            title=t.title,
            status=t.status,
            prize=t.prize,
            entry_count=len(t.entries),
            rater_count=len(t.ratings),
            voting_complete=voting_complete(t),
            rankings=rankings,
            winner=t.winner,
        )

    async def end_tournament(self, store: DocumentStore, tournament_id: Optional[str] = None) -> TournamentOutcome:
        async with store.locked(TOURNAMENTS):
            collection = await self._load(store)
            t = self._resolve(collection, tournament_id)
            if t.status == TournamentStatus.COMPLETED:
                raise ConflictError("Tournament already ended")

            t.winner = pick_winner(rank_entries(t))
            t.status = TournamentStatus.COMPLETED
            t.ended_at = self.clock()
            # Cleared even when the ended tournament was not the current one
            collection.current = None
            await self._save(store, collection)

        if t.winner:
            logger.info(
                f'[END] {t.id} completed, winner "{t.winner.title}" by {t.winner.author} '
                f"({t.winner.average_score:.2f})"
            )
        else:
            logger.info(f"[END] {t.id} completed without entries")
        return TournamentOutcome(tournament_id=t.id, winner=t.winner, prize=t.prize)

    async def list_all(self, store: DocumentStore) -> TournamentListing:
        collection = await self._load_refreshed(store)
        return TournamentListing(
            current=collection.current,
            tournaments=[
                TournamentSummary(
                    id=t.id,
                    title=t.title,
                    theme=t.theme,
                    discipline=t.discipline,
                    prize=t.prize,
                    status=t.status,
                    created_at=t.created_at,
                    ends_at=t.ends_at,
                    ended_at=t.ended_at,
                    entry_count=len(t.entries),
                    winner=t.winner,
                )
                for t in collection.tournaments
            ],
        )


# Singleton instance
tournament_service = TournamentService()
