"""
Submission Service - moderation queue and public gallery

Owns submissions.json and gallery.json:
- Validation and storage of new submissions (status "pending")
- Approval (moved into the gallery) and rejection (kept, with a reason)
- Public gallery queries and aggregate stats
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from crucible.app.core.clock import Clock, utcnow
from crucible.app.core.exceptions import NotFoundError, ValidationError
from crucible.app.core.store import GALLERY, SUBMISSIONS, DocumentStore
from crucible.app.engine.validation import is_valid_wallet, missing_fields, normalize_discipline
from crucible.app.models.enums import DISCIPLINES, SubmissionStatus
from crucible.app.models.submission_model import Author, Submission, SubmissionList
from crucible.app.schemas.submission_schema import (
    ArtistReward,
    GalleryPiece,
    GalleryStats,
    SubmissionCreate,
)

logger = logging.getLogger(__name__)

DEFAULT_GALLERY_LIMIT = 50
DEFAULT_REJECTION_REASON = "No reason provided"

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def parse_limit(raw: Optional[str]) -> int:
    """
    Gallery page size. Anything unparseable or non-positive falls back to 50.
    A negative limit is not treated as "all but the last n" pieces.
    """
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_GALLERY_LIMIT
    return limit if limit > 0 else DEFAULT_GALLERY_LIMIT


def to_gallery_piece(item: Submission) -> GalleryPiece:
    return GalleryPiece(
        id=item.id,
        title=item.title,
        discipline=item.discipline,
        technique=item.technique,
        content=item.content,
        explanation=item.explanation,
        author=item.author,
        approved_at=item.reviewed_at,
    )


class SubmissionService:
    """Centralized service for submission and gallery operations"""

    def __init__(self, clock: Clock = utcnow):
        self.clock = clock

    async def _load(self, store: DocumentStore, name: str) -> List[Submission]:
        return SubmissionList.validate_python(await store.load(name))

    async def _save(self, store: DocumentStore, name: str, items: List[Submission]):
        await store.save(name, SubmissionList.dump_python(items, mode="json"))

    async def submit(self, store: DocumentStore, payload: SubmissionCreate) -> Submission:
        author = payload.author
        missing = missing_fields({
            "title": payload.title,
            "discipline": payload.discipline,
            "content": payload.content,
            "author.name": author.name if author else None,
        })
        if missing:
            raise ValidationError(
                "Missing required fields: title, discipline, content, author.name"
            )

        discipline = normalize_discipline(payload.discipline)
        if discipline is None:
            raise ValidationError(f"Invalid discipline. Valid options: {', '.join(DISCIPLINES)}")

        if author.wallet and not is_valid_wallet(author.wallet):
            raise ValidationError("Invalid wallet address. Expected 0x followed by 40 hex characters")

        submission = Submission(
            id=str(uuid.uuid4()),
            title=payload.title,
            discipline=discipline,
            technique=payload.technique or "unspecified",
            content=payload.content,
            explanation=payload.explanation or "",
            author=Author(name=author.name, url=author.url or None, wallet=author.wallet or None),
            status=SubmissionStatus.PENDING,
            submitted_at=self.clock(),
            reviewed_at=None,
        )

        async with store.locked(SUBMISSIONS):
            submissions = await self._load(store, SUBMISSIONS)
            submissions.append(submission)
            await self._save(store, SUBMISSIONS, submissions)

        logger.info(f'[SUBMIT] New submission: "{submission.title}" by {author.name} ({submission.id})')
        return submission

    async def get_by_id(self, store: DocumentStore, submission_id: str) -> Submission:
        """Pending/rejected queue first, then the gallery."""
        for name in (SUBMISSIONS, GALLERY):
            for item in await self._load(store, name):
                if item.id == submission_id:
                    return item
        raise NotFoundError("Submission not found")

    async def list_pending(self, store: DocumentStore) -> List[Submission]:
        submissions = await self._load(store, SUBMISSIONS)
        return [s for s in submissions if s.status == SubmissionStatus.PENDING]

    async def approve(self, store: DocumentStore, submission_id: str) -> Submission:
        async with store.locked(SUBMISSIONS, GALLERY):
            submissions = await self._load(store, SUBMISSIONS)
            gallery = await self._load(store, GALLERY)

            idx = self._find_pending(submissions, submission_id)
            submission = submissions.pop(idx)
            submission.status = SubmissionStatus.APPROVED
            submission.reviewed_at = self.clock()
            gallery.append(submission)

            # Two separate writes: a failure on the second leaves the
            # submission in neither document. Not compensated.
            await self._save(store, SUBMISSIONS, submissions)
            await self._save(store, GALLERY, gallery)

        logger.info(f'[APPROVE] Approved: "{submission.title}" by {submission.author.name}')
        return submission

    async def reject(self, store: DocumentStore, submission_id: str, reason: Optional[str] = None) -> Submission:
        async with store.locked(SUBMISSIONS):
            submissions = await self._load(store, SUBMISSIONS)

            submission = submissions[self._find_pending(submissions, submission_id)]
            submission.status = SubmissionStatus.REJECTED
            submission.reviewed_at = self.clock()
            submission.rejection_reason = reason or DEFAULT_REJECTION_REASON

            await self._save(store, SUBMISSIONS, submissions)

        logger.info(f'[REJECT] Rejected: "{submission.title}" by {submission.author.name}')
        return submission

    def _find_pending(self, submissions: List[Submission], submission_id: str) -> int:
        for idx, item in enumerate(submissions):
            if item.id == submission_id and item.status == SubmissionStatus.PENDING:
                return idx
        raise NotFoundError("Submission not found")

    async def _approved(self, store: DocumentStore) -> List[Submission]:
        gallery = await self._load(store, GALLERY)
        return [g for g in gallery if g.status == SubmissionStatus.APPROVED]

    async def public_gallery(
        self,
        store: DocumentStore,
        discipline: Optional[str] = None,
        limit: int = DEFAULT_GALLERY_LIMIT,
    ) -> List[GalleryPiece]:
        items = await self._approved(store)

        if discipline:
            wanted = discipline.lower()
            items = [g for g in items if g.discipline == wanted]

        # Newest approvals first
        items.sort(key=lambda g: g.reviewed_at or _OLDEST, reverse=True)

        return [to_gallery_piece(g) for g in items[:limit]]

    async def get_gallery_piece(self, store: DocumentStore, piece_id: str) -> Submission:
        for item in await self._approved(store):
            if item.id == piece_id:
                return item
        raise NotFoundError("Piece not found")

    async def stats(self, store: DocumentStore) -> GalleryStats:
        approved = await self._approved(store)
        submissions = await self._load(store, SUBMISSIONS)

        by_discipline: Dict[str, int] = {}
        for g in approved:
            by_discipline[g.discipline] = by_discipline.get(g.discipline, 0) + 1

        wallets = [g.author.wallet for g in approved if g.author.wallet]

        return GalleryStats(
            total_approved=len(approved),
            pending=len([s for s in submissions if s.status == SubmissionStatus.PENDING]),
            by_discipline=by_discipline,
            unique_artists=len({g.author.name for g in approved}),
            with_wallet=len(wallets),
            unique_wallets=len({w.lower() for w in wallets}),
        )

    async def reward_eligible_artists(self, store: DocumentStore) -> List[ArtistReward]:
        """Approved artists that can be paid: grouped by wallet, most pieces first."""
        artists: Dict[str, ArtistReward] = {}
        for g in await self._approved(store):
            if not g.author.wallet:
                continue
            key = g.author.wallet.lower()
            artist = artists.get(key)
            if artist is None:
                artist = artists[key] = ArtistReward(wallet=key, names=[], piece_count=0, disciplines=[])
            artist.piece_count += 1
            if g.author.name not in artist.names:
                artist.names.append(g.author.name)
            if g.discipline not in artist.disciplines:
                artist.disciplines.append(g.discipline)

        return sorted(artists.values(), key=lambda a: a.piece_count, reverse=True)


# Singleton instance
submission_service = SubmissionService()
