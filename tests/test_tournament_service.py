import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from unittest import mock

from crucible.app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from crucible.app.core.store import TOURNAMENTS, DocumentStore
from crucible.app.models.tournament_model import TournamentCollection
from crucible.app.schemas.submission_schema import AuthorIn
from crucible.app.schemas.tournament_schema import EntryCreate, RateRequest, RatingIn, TournamentCreate
from crucible.app.services.tournament_service import TournamentService

WALLETS = {name: "0x" + str(i) * 40 for i, name in enumerate(["Ada", "Grace", "Linus", "Outsider"], start=1)}


class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def entry(name, title=None, discipline="chorus", wallet=None):
    return EntryCreate(
        title=title or f"{name}'s piece",
        discipline=discipline,
        content="many voices",
        author=AuthorIn(name=name, wallet=wallet or WALLETS.get(name, WALLETS["Outsider"])),
    )


def rating_request(rater, wallet=None, **scores):
    return RateRequest(
        rater_name=rater,
        rater_wallet=wallet or WALLETS.get(rater, WALLETS["Outsider"]),
        ratings=[RatingIn(entry_id=entry_id, score=score) for entry_id, score in scores.items()],
    )


class TournamentServiceTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.store = DocumentStore(self.tmp)
        self.clock = FakeClock(datetime(2026, 2, 1, 18, 0, tzinfo=timezone.utc))
        self.service = TournamentService(clock=self.clock)

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    async def create(self, title="Weekly Crucible", hours=24, **kwargs):
        payload = TournamentCreate(title=title, prize=kwargs.pop("prize", 500), duration_hours=hours, **kwargs)
        return await self.service.create_tournament(self.store, payload)

    async def collection(self) -> TournamentCollection:
        return TournamentCollection.model_validate(await self.store.load(TOURNAMENTS))


class TestCreate(TournamentServiceTestCase):
    async def test_create_installs_current(self):
        t = await self.create(hours=48)

        self.assertEqual(t.status, "active")
        self.assertEqual(t.theme, "open")
        self.assertIsNone(t.discipline)
        self.assertEqual(t.ends_at - t.created_at, timedelta(hours=48))

        current = await self.service.get_current(self.store)
        self.assertEqual(current.id, t.id)
        self.assertEqual(current.time_remaining_ms, 48 * 3600 * 1000)

    async def test_required_fields(self):
        for payload in (
            TournamentCreate(prize=10, duration_hours=1),
            TournamentCreate(title="x", duration_hours=1),
            TournamentCreate(title="x", prize=10),
        ):
            with self.assertRaises(ValidationError):
                await self.service.create_tournament(self.store, payload)
        self.assertIsNone(await self.service.get_current(self.store))

    async def test_zero_prize_is_allowed(self):
        t = await self.create(prize=0)
        self.assertEqual(t.prize, 0)

    async def test_discipline_restriction_normalized(self):
        t = await self.create(discipline="Call-Echo")
        self.assertEqual(t.discipline, "call-echo")
        with self.assertRaises(ValidationError):
            await self.create(discipline="sculpture")

    async def test_new_tournament_supersedes_current(self):
        """Creating B while A is active ends A with a timestamp; B becomes current."""
        a = await self.create(title="A")
        self.clock.advance(hours=1)
        b = await self.create(title="B")

        collection = await self.collection()
        stored_a = collection.get(a.id)
        self.assertEqual(stored_a.status, "ended")
        self.assertEqual(stored_a.ended_at, self.clock.now)
        self.assertEqual(collection.current, b.id)
        self.assertEqual((await self.service.get_current(self.store)).id, b.id)

    async def test_supersede_applies_to_voting_tournament_too(self):
        a = await self.create(title="A", hours=1)
        self.clock.advance(hours=2)
        self.assertEqual((await self.service.get_current(self.store)).status, "voting")

        await self.create(title="B")
        self.assertEqual((await self.collection()).get(a.id).status, "ended")


class TestLazyTransition(TournamentServiceTestCase):
    async def test_get_current_flips_and_persists(self):
        t = await self.create(hours=1)
        self.clock.advance(hours=1, seconds=1)

        current = await self.service.get_current(self.store)

        self.assertEqual(current.status, "voting")
        self.assertEqual(current.time_remaining_ms, 0)
        self.assertEqual((await self.collection()).get(t.id).status, "voting")

    async def test_expired_entry_is_refused_and_flips_status(self):
        """
        Scenario: duration_hours=0, then an entry attempt.
        The entry fails with "submission period has ended" and that same call
        leaves the tournament in voting.
        """
        t = await self.create(hours=0)
        self.clock.advance(seconds=1)

        with self.assertRaises(ConflictError) as ctx:
            await self.service.enter(self.store, entry("Ada"))

        self.assertIn("submission period has ended", ctx.exception.message)
        stored = (await self.collection()).get(t.id)
        self.assertEqual(stored.status, "voting")
        self.assertEqual(stored.entries, [])

    async def test_entry_after_flip_reports_not_accepting(self):
        await self.create(hours=1)
        self.clock.advance(hours=2)
        await self.service.get_current(self.store)

        with self.assertRaises(ConflictError) as ctx:
            await self.service.enter(self.store, entry("Ada"))
        self.assertIn("not accepting entries", ctx.exception.message)

    async def test_get_current_without_tournament(self):
        self.assertIsNone(await self.service.get_current(self.store))

    async def test_get_current_reads_the_clock_once(self):
        t = await self.create(hours=1)
        self.service.clock = mock.Mock(side_effect=[
            t.ends_at - timedelta(seconds=5),
            t.ends_at + timedelta(seconds=5),
        ])

        current = await self.service.get_current(self.store)

        self.assertEqual(current.status, "active")
        self.assertEqual(current.time_remaining_ms, 5000)
        self.assertEqual(self.service.clock.call_count, 1)

    async def test_tournament_without_current_pointer_still_flips(self):
        """
        Scenario: A is superseded by B, then A is ended by id, which clears
        the current pointer while B is still active. Once B's deadline has
        passed, reading B by id moves it to voting and stores that.
        """
        a = await self.create(title="A", hours=4)
        b = await self.create(title="B", hours=4)
        await self.service.end_tournament(self.store, a.id)
        self.clock.advance(hours=5)

        results = await self.service.results(self.store, b.id)

        self.assertEqual(results.status, "voting")
        collection = await self.collection()
        self.assertIsNone(collection.current)
        self.assertEqual(collection.get(b.id).status, "voting")

    async def test_listings_flip_tournaments_without_current_pointer(self):
        a = await self.create(title="A", hours=4)
        b = await self.create(title="B", hours=4)
        await self.service.end_tournament(self.store, a.id)
        self.clock.advance(hours=5)

        listing = await self.service.list_all(self.store)
        self.assertEqual([t.status for t in listing.tournaments], ["completed", "voting"])

        entries = await self.service.list_entries(self.store, b.id)
        self.assertEqual(entries.status, "voting")
        self.assertEqual((await self.collection()).get(b.id).status, "voting")


class TestEnter(TournamentServiceTestCase):
    async def test_enter_appends_in_order(self):
        t = await self.create()
        first = await self.service.enter(self.store, entry("Ada"))
        second = await self.service.enter(self.store, entry("Grace", discipline="GLYPHSPIN"))

        self.assertEqual(first.entry_count, 1)
        self.assertEqual(second.entry_count, 2)
        self.assertEqual(second.tournament_id, t.id)

        stored = (await self.collection()).get(t.id)
        self.assertEqual([e.id for e in stored.entries], [first.entry_id, second.entry_id])
        self.assertEqual(stored.entries[1].discipline, "glyphspin")
        self.assertEqual(stored.entries[0].author.wallet, WALLETS["Ada"])

    async def test_wallet_is_mandatory(self):
        await self.create()
        payload = EntryCreate(title="t", discipline="chorus", content="c", author=AuthorIn(name="Ada"))
        with self.assertRaises(ValidationError) as ctx:
            await self.service.enter(self.store, payload)
        self.assertIn("author.wallet", ctx.exception.message)

        with self.assertRaises(ValidationError):
            await self.service.enter(self.store, entry("Ada", wallet="0xnothex"))

    async def test_invalid_discipline(self):
        await self.create()
        with self.assertRaises(ValidationError):
            await self.service.enter(self.store, entry("Ada", discipline="oil-painting"))

    async def test_no_current_tournament(self):
        with self.assertRaises(ConflictError):
            await self.service.enter(self.store, entry("Ada"))

    async def test_discipline_restriction(self):
        await self.create(discipline="chorus")
        with self.assertRaises(ConflictError):
            await self.service.enter(self.store, entry("Ada", discipline="tokencraft"))
        receipt = await self.service.enter(self.store, entry("Ada", discipline="Chorus"))
        self.assertEqual(receipt.entry_count, 1)

    async def test_one_entry_per_author_case_insensitive(self):
        """"Ada" enters; "ada" and "ADA" are both duplicates of the same identity."""
        await self.create()
        await self.service.enter(self.store, entry("Ada"))

        for name in ("ada", "ADA", " Ada"):
            with self.assertRaises(ConflictError) as ctx:
                await self.service.enter(self.store, entry(name, wallet=WALLETS["Grace"]))
            self.assertIn("already submitted", ctx.exception.message)

        current = await self.service.get_current(self.store)
        self.assertEqual(current.entry_count, 1)


class TestEntriesListing(TournamentServiceTestCase):
    async def test_defaults_to_current(self):
        t = await self.create()
        await self.service.enter(self.store, entry("Ada"))

        listing = await self.service.list_entries(self.store)

        self.assertEqual(listing.tournament_id, t.id)
        self.assertEqual(len(listing.entries), 1)
        self.assertNotIn("wallet", listing.entries[0].author.model_dump())

    async def test_nothing_to_list(self):
        self.assertIsNone(await self.service.list_entries(self.store))

    async def test_explicit_unknown_id(self):
        await self.create()
        with self.assertRaises(NotFoundError):
            await self.service.list_entries(self.store, "unknown")

    async def test_explicit_id_of_past_tournament(self):
        a = await self.create(title="A")
        await self.service.enter(self.store, entry("Ada"))
        await self.create(title="B")

        listing = await self.service.list_entries(self.store, a.id)
        self.assertEqual(listing.status, "ended")
        self.assertEqual(len(listing.entries), 1)


class TestRating(TournamentServiceTestCase):
    async def asyncSetUp(self):
        await self.create()
        self.e1 = (await self.service.enter(self.store, entry("Ada"))).entry_id
        self.e2 = (await self.service.enter(self.store, entry("Grace"))).entry_id

    async def test_non_participant_is_forbidden(self):
        request = rating_request("Outsider", **{self.e1: 5, self.e2: 4})
        with self.assertRaises(ForbiddenError):
            await self.service.rate(self.store, request)
        self.assertEqual((await self.collection()).current_tournament().ratings, {})

    async def test_participant_name_matched_case_insensitively(self):
        receipt = await self.service.rate(self.store, rating_request("ADA", wallet=WALLETS["Ada"], **{self.e2: 4}))
        self.assertEqual(receipt.rated_count, 1)

        ratings = (await self.collection()).current_tournament().ratings
        # Stored under the name as submitted
        self.assertEqual(list(ratings), ["ADA"])

    async def test_required_fields_and_wallet(self):
        with self.assertRaises(ValidationError):
            await self.service.rate(self.store, RateRequest(rater_name="Ada", rater_wallet=WALLETS["Ada"]))
        with self.assertRaises(ValidationError):
            await self.service.rate(self.store, RateRequest(rater_wallet=WALLETS["Ada"], ratings=[]))
        with self.assertRaises(ValidationError):
            await self.service.rate(self.store, rating_request("Ada", wallet="0x12", **{self.e2: 4}))

    async def test_score_validation(self):
        for score in (0, 6, "5", True, 5.5):
            with self.assertRaises(ValidationError):
                await self.service.rate(self.store, rating_request("Ada", **{self.e2: score}))

        request = RateRequest(rater_name="Ada", rater_wallet=WALLETS["Ada"], ratings=[RatingIn(entry_id=self.e2)])
        with self.assertRaises(ValidationError):
            await self.service.rate(self.store, request)

    async def test_unknown_entry_is_named(self):
        with self.assertRaises(ValidationError) as ctx:
            await self.service.rate(self.store, rating_request("Ada", **{self.e2: 4, "ghost-entry": 3}))
        self.assertIn("ghost-entry", ctx.exception.message)
        self.assertEqual((await self.collection()).current_tournament().ratings, {})

    async def test_resubmission_replaces_sheet(self):
        await self.service.rate(self.store, rating_request("Ada", **{self.e1: 2, self.e2: 5}))
        self.clock.advance(minutes=10)
        await self.service.rate(self.store, rating_request("Ada", **{self.e2: 3}))

        record = (await self.collection()).current_tournament().ratings["Ada"]
        self.assertEqual(record.scores, {self.e2: 3})
        self.assertEqual(record.rated_at, self.clock.now)

    async def test_rating_allowed_during_voting(self):
        self.clock.advance(days=2)
        receipt = await self.service.rate(self.store, rating_request("Grace", **{self.e1: 4}))
        self.assertEqual(receipt.rated_count, 1)
        self.assertEqual((await self.collection()).current_tournament().status, "voting")

    async def test_no_current_tournament(self):
        await self.service.end_tournament(self.store)
        with self.assertRaises(ConflictError):
            await self.service.rate(self.store, rating_request("Ada", **{self.e1: 4}))


class TestResultsAndEnd(TournamentServiceTestCase):
    async def test_results_tie_broken_by_entry_order(self):
        await self.create()
        e1 = (await self.service.enter(self.store, entry("Ada"))).entry_id
        e2 = (await self.service.enter(self.store, entry("Grace"))).entry_id
        await self.service.rate(self.store, rating_request("Ada", **{e1: 5, e2: 3}))
        await self.service.rate(self.store, rating_request("Grace", **{e1: 3, e2: 5}))

        results = await self.service.results(self.store)

        self.assertEqual([r.entry_id for r in results.rankings], [e1, e2])
        self.assertEqual([r.rank for r in results.rankings], [1, 2])
        self.assertEqual(results.rankings[0].average_score, 4.0)
        self.assertEqual(results.rankings[1].average_score, 4.0)
        self.assertTrue(results.voting_complete)
        self.assertIsNone(results.winner)

    async def test_results_round_to_two_places(self):
        await self.create()
        ids = [(await self.service.enter(self.store, entry(n))).entry_id for n in ("Ada", "Grace", "Linus")]
        await self.service.rate(self.store, rating_request("Ada", **{ids[2]: 5}))
        await self.service.rate(self.store, rating_request("Grace", **{ids[2]: 4}))
        await self.service.rate(self.store, rating_request("Linus", **{ids[2]: 4}))

        results = await self.service.results(self.store)
        self.assertEqual(results.rankings[0].average_score, 4.33)
        self.assertEqual(results.rankings[0].rating_count, 3)

    async def test_results_without_tournament(self):
        with self.assertRaises(NotFoundError):
            await self.service.results(self.store)

    async def test_end_declares_winner(self):
        t = await self.create(prize=750)
        e1 = (await self.service.enter(self.store, entry("Ada"))).entry_id
        e2 = (await self.service.enter(self.store, entry("Grace"))).entry_id
        await self.service.rate(self.store, rating_request("Ada", **{e2: 5}))
        await self.service.rate(self.store, rating_request("Grace", **{e1: 3}))

        outcome = await self.service.end_tournament(self.store)

        self.assertEqual(outcome.prize, 750)
        self.assertEqual(outcome.winner.id, e2)
        self.assertEqual(outcome.winner.author, "Grace")
        self.assertEqual(outcome.winner.wallet, WALLETS["Grace"])
        self.assertEqual(outcome.winner.average_score, 5.0)

        collection = await self.collection()
        stored = collection.get(t.id)
        self.assertEqual(stored.status, "completed")
        self.assertEqual(stored.ended_at, self.clock.now)
        self.assertEqual(stored.winner, outcome.winner)
        self.assertIsNone(collection.current)

    async def test_end_with_zero_entries(self):
        t = await self.create()

        outcome = await self.service.end_tournament(self.store)

        self.assertIsNone(outcome.winner)
        collection = await self.collection()
        self.assertEqual(collection.get(t.id).status, "completed")
        self.assertIsNone(collection.current)
        self.assertIsNone(await self.service.get_current(self.store))

    async def test_end_twice_is_a_conflict(self):
        t = await self.create()
        await self.service.end_tournament(self.store)
        with self.assertRaises(ConflictError):
            await self.service.end_tournament(self.store, t.id)
        with self.assertRaises(NotFoundError):
            await self.service.end_tournament(self.store)

    async def test_ending_a_past_tournament_clears_current(self):
        """Ending any tournament by id clears the current pointer, even a superseded one."""
        a = await self.create(title="A")
        b = await self.create(title="B")

        await self.service.end_tournament(self.store, a.id)

        collection = await self.collection()
        self.assertEqual(collection.get(a.id).status, "completed")
        self.assertEqual(collection.get(b.id).status, "active")
        self.assertIsNone(collection.current)

    async def test_list_all(self):
        a = await self.create(title="A")
        await self.service.enter(self.store, entry("Ada"))
        b = await self.create(title="B")

        listing = await self.service.list_all(self.store)

        self.assertEqual(listing.current, b.id)
        self.assertEqual([t.id for t in listing.tournaments], [a.id, b.id])
        self.assertEqual([t.status for t in listing.tournaments], ["ended", "active"])
        self.assertEqual(listing.tournaments[0].entry_count, 1)


if __name__ == '__main__':
    unittest.main()
