"""Account model: one row per user, holding a single opaque payload."""
from datetime import datetime

from sqlalchemy import DateTime, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Account(Base):
    """A username, its credential hash and the blob it owns."""

    __tablename__ = "accounts"

    username: Mapped[str] = mapped_column(String, primary_key=True)
    credential_hash: Mapped[str] = mapped_column(String, nullable=False)
    payload: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    # Reserved; nothing writes these yet.
    last_login_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_login_ip: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"Account(username={self.username!r})"
