"""Reusable FastAPI dependencies."""
from fastapi import Request

from .store import BlobStore


def get_store(request: Request) -> BlobStore:
    """Return the store owned by the running application."""
    return request.app.state.store
