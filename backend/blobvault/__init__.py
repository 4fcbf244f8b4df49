"""Per-user password-gated blob store."""

from .errors import Outcome
from .store import BlobStore, ReadResult

__all__ = ["BlobStore", "Outcome", "ReadResult"]
