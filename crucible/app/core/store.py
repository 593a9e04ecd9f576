"""
Document Store - whole-file JSON persistence

Three named documents live under DATA_DIR:
- submissions.json: pending and rejected submissions (list)
- gallery.json: approved pieces (list)
- tournaments.json: {"tournaments": [...], "current": <id or null>}

Every read is a full load and every write a full overwrite. Writers wrap their
read-modify-write cycle in `locked()` so two requests in this process cannot
overwrite each other's changes.
"""

import asyncio
import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Dict

import aiofiles
import aiofiles.os

from crucible.app.core import config
from crucible.app.core.exceptions import StorageError

logger = logging.getLogger(__name__)

SUBMISSIONS = "submissions"
GALLERY = "gallery"
TOURNAMENTS = "tournaments"

DEFAULT_DOCUMENTS: Dict[str, Callable[[], Any]] = {
    SUBMISSIONS: list,
    GALLERY: list,
    TOURNAMENTS: lambda: {"tournaments": [], "current": None},
}


class DocumentStore:
    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self._locks: Dict[str, asyncio.Lock] = {}

    def path_for(self, name: str) -> Path:
        if name not in DEFAULT_DOCUMENTS:
            raise KeyError(f"Unknown document: {name}")
        return self.data_dir / f"{name}.json"

    async def initialize(self):
        """Create the data directory and any missing document."""
        for name in DEFAULT_DOCUMENTS:
            await self.load(name)
        logger.info(f"Document store ready at {self.data_dir}")

    async def load(self, name: str) -> Any:
        path = self.path_for(name)
        if not path.exists():
            document = DEFAULT_DOCUMENTS[name]()
            await self.save(name, document)
            return document
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return json.loads(await f.read())
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageError(f"Failed to read document '{name}'") from e

    async def save(self, name: str, document: Any):
        await self._write(name, document)

    @asynccontextmanager
    async def locked(self, *names: str):
        """
        Hold the per-document locks for a read-modify-write cycle.
        Locks are taken in sorted order so two writers never deadlock.
        """
        async with AsyncExitStack() as stack:
            for name in sorted(set(names)):
                self.path_for(name)
                if name not in self._locks:
                    self._locks[name] = asyncio.Lock()
                await stack.enter_async_context(self._locks[name])
            yield self

    async def update(self, name: str, mutator: Callable[[Any], Any]) -> Any:
        """Load, mutate in place, save. Returns whatever the mutator returns."""
        async with self.locked(name):
            document = await self.load(name)
            result = mutator(document)
            await self.save(name, document)
            return result

    async def _write(self, name: str, document: Any):
        path = self.path_for(name)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            payload = json.dumps(document, indent=2)
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Failed to write document '{name}'") from e


document_store = DocumentStore(config.DATA_DIR)


# Dependency for API routes
def get_store() -> DocumentStore:
    return document_store
