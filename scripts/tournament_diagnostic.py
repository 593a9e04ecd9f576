#!/usr/bin/env python3
"""
Tournament Diagnostic Script
Prints the current tournament straight from tournaments.json: stored vs derived
status, entries, rating coverage and the live ranking. Read only.
"""

import asyncio
import os
import sys

# Add project root to path so we can import from crucible.app
sys.path.append(os.path.join(os.path.dirname(__file__), '../'))

from crucible.app.core.clock import utcnow
from crucible.app.core.store import TOURNAMENTS, document_store
from crucible.app.engine.lifecycle import derive_status, time_remaining_ms
from crucible.app.engine.scoring import rank_entries, voting_complete
from crucible.app.models.tournament_model import TournamentCollection

async def diagnose():
    collection = TournamentCollection.model_validate(await document_store.load(TOURNAMENTS))
    print(f"Tournaments on file: {len(collection.tournaments)}")

    t = collection.current_tournament()
    if t is None:
        if collection.current:
            print(f"⚠️  Current pointer {collection.current} references a missing tournament!")
        else:
            print("No current tournament.")
        return

    now = utcnow()
    derived = derive_status(t, now)

    print(f"--- Diagnostic: Tournament {t.id} ({t.status}) ---")
    print(f"Title: {t.title} | Theme: {t.theme} | Discipline: {t.discipline or 'any'}")
    print(f"Prize: {t.prize}")
    print(f"Created: {t.created_at}")
    print(f"Ends: {t.ends_at} ({time_remaining_ms(t, now) / 1000:.0f}s remaining)")
    if derived != t.status:
        print(f"⚠️  Stored status is {t.status} but the deadline has passed (derived: {derived}).")
        print("  It will flip on the next request that touches the tournament.")

    print(f"\nEntries: {len(t.entries)}")
    for e in t.entries:
        print(f"  {e.id}: \"{e.title}\" by {e.author.name} ({e.discipline})")

    print(f"\nRaters: {len(t.ratings)} (voting complete: {voting_complete(t)})")
    for rater, record in t.ratings.items():
        unknown = [entry_id for entry_id in record.scores if t.find_entry(entry_id) is None]
        note = f" ({len(unknown)} scores for unknown entries)" if unknown else ""
        print(f"  {rater}: {len(record.scores)} scores, rated {record.rated_at}{note}")

    print("\nLive Ranking:")
    for position, standing in enumerate(rank_entries(t), start=1):
        print(f"  {position}. {standing.entry.title} - {standing.average:.2f} ({len(standing.scores)} ratings)")

if __name__ == "__main__":
    asyncio.run(diagnose())
