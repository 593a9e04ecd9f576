import asyncio
import os
import sys

# Add project root to path so we can import from crucible.app
sys.path.append(os.path.join(os.path.dirname(__file__), '../'))

from crucible.app.core.store import document_store

async def init_documents():
    # Only creates documents that are missing; existing data is left alone
    await document_store.initialize()
    for name in ("submissions", "gallery", "tournaments"):
        print(f"  {document_store.path_for(name)}")
    print("Data documents ready.")

if __name__ == "__main__":
    asyncio.run(init_documents())
