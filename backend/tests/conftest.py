"""Test fixtures for the blob store."""
import os

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("BLOBVAULT_HASH_ROUNDS", "1000")

from blobvault.main import create_app  # noqa: E402
from blobvault.store import BlobStore  # noqa: E402


def sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest_asyncio.fixture
async def store(tmp_path) -> BlobStore:
    """A fresh store on a throwaway SQLite file, with cheap hashing."""

    store = BlobStore.from_url(sqlite_url(tmp_path / "blobs.db"), hash_rounds=1000)
    await store.init()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def client(store: BlobStore) -> AsyncClient:
    """Provide an HTTP client bound to the test store."""

    transport = ASGITransport(app=create_app(store), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
