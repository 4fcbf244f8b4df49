"""SQLAlchemy models exposed by the blob store."""
from .account import Account
from .base import Base

__all__ = ["Account", "Base"]
