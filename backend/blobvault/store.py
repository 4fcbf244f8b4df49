"""Credentialed blob store.

Each account owns one opaque payload. Reads and writes require the account's
password; registration, removal, listing and credential resets are
administrative and skip the check.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from anyio import to_thread
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from .config import Settings
from .database import create_engine, create_sessionmaker
from .errors import DuplicateAccountError, Outcome, StorageError, ValidationError
from .models import Account, Base
from .security import PasswordHasher, build_password_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadResult:
    """Outcome of a verified read; ``payload`` is set only on success."""

    outcome: Outcome
    payload: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


class BlobStore:
    """Owns the database engine and gates payload access on password checks."""

    def __init__(self, engine: AsyncEngine, hasher: Optional[PasswordHasher] = None) -> None:
        self.engine = engine
        self.hasher = hasher or PasswordHasher()
        self._sessions = create_sessionmaker(engine)

    @classmethod
    def from_url(
        cls,
        database_url: str,
        hash_scheme: str = "pbkdf2_sha256",
        hash_rounds: Optional[int] = None,
    ) -> "BlobStore":
        hasher = PasswordHasher(build_password_context(hash_scheme, hash_rounds))
        return cls(create_engine(database_url), hasher)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlobStore":
        return cls.from_url(settings.database_url, settings.hash_scheme, settings.hash_rounds)

    async def init(self) -> None:
        """Create the accounts table if it does not exist yet."""

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StorageError("could not initialise the accounts table") from exc

    async def close(self) -> None:
        await self.engine.dispose()

    async def register(self, username: str, password: str) -> None:
        """Create an account. Raises DuplicateAccountError if the name is taken."""

        _require(username, "username")
        _require(password, "password")
        credential_hash = await to_thread.run_sync(self.hasher.hash, password)
        try:
            async with self._sessions() as session, session.begin():
                session.add(Account(username=username, credential_hash=credential_hash))
        except IntegrityError as exc:
            raise DuplicateAccountError(username) from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"could not register {username!r}") from exc
        logger.info("registered account %s", username)

    async def remove(self, username: str) -> None:
        """Delete an account; a missing account is not an error."""

        _check_text(username, "username")
        try:
            async with self._sessions() as session, session.begin():
                await session.execute(delete(Account).where(Account.username == username))
        except SQLAlchemyError as exc:
            raise StorageError(f"could not remove {username!r}") from exc
        logger.info("removed account %s", username)

    async def list_usernames(self) -> list[str]:
        """Return every username in store order."""

        try:
            async with self._sessions() as session:
                result = await session.execute(select(Account.username))
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError("could not list accounts") from exc

    async def reset_credential(self, username: str, new_password: str) -> None:
        """Overwrite the credential hash without checking the old password."""

        _check_text(username, "username")
        _require(new_password, "password")
        credential_hash = await to_thread.run_sync(self.hasher.hash, new_password)
        try:
            async with self._sessions() as session, session.begin():
                result = await session.execute(
                    update(Account)
                    .where(Account.username == username)
                    .values(credential_hash=credential_hash)
                )
                updated = result.rowcount
        except SQLAlchemyError as exc:
            raise StorageError(f"could not reset credential for {username!r}") from exc
        if not updated:
            raise StorageError(f"no account named {username!r}")
        logger.info("reset credential for %s", username)

    async def verified_read(self, username: str, password: str) -> ReadResult:
        """Return the payload if ``password`` matches; ``b""`` if never written."""

        _check_text(username, "username")
        _check_text(password, "password")
        try:
            async with self._sessions() as session:
                row = (
                    await session.execute(
                        select(Account.credential_hash, Account.payload).where(
                            Account.username == username
                        )
                    )
                ).one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(f"could not read payload for {username!r}") from exc

        if row is None:
            return ReadResult(Outcome.NOT_FOUND)
        if not await self._verify(password, row.credential_hash):
            logger.warning("bad credential on read for %s", username)
            return ReadResult(Outcome.BAD_CREDENTIAL)
        return ReadResult(Outcome.SUCCESS, row.payload if row.payload is not None else b"")

    async def verified_write(self, username: str, password: str, payload: bytes) -> Outcome:
        """Replace the payload if ``password`` matches.

        The update is conditional on the hash that was verified, inside the
        same transaction, so a concurrent credential reset makes the write
        fail instead of landing under the new credential.
        """
        if payload is None:
            raise ValidationError("payload is required")
        _check_text(username, "username")
        _check_text(password, "password")
        try:
            async with self._sessions() as session, session.begin():
                credential_hash = await self._current_hash(session, username)
                if credential_hash is None:
                    return Outcome.NOT_FOUND
                if not await self._verify(password, credential_hash):
                    logger.warning("bad credential on write for %s", username)
                    return Outcome.BAD_CREDENTIAL

                result = await session.execute(
                    update(Account)
                    .where(
                        Account.username == username,
                        Account.credential_hash == credential_hash,
                    )
                    .values(payload=bytes(payload))
                )
                if result.rowcount:
                    return Outcome.SUCCESS

                logger.warning("credential for %s changed during write", username)
                if await self._current_hash(session, username) is None:
                    return Outcome.NOT_FOUND
                return Outcome.BAD_CREDENTIAL
        except SQLAlchemyError as exc:
            raise StorageError(f"could not write payload for {username!r}") from exc

    async def _current_hash(self, session: AsyncSession, username: str) -> Optional[str]:
        result = await session.execute(
            select(Account.credential_hash).where(Account.username == username)
        )
        return result.scalar_one_or_none()

    async def _verify(self, password: str, credential_hash: str) -> bool:
        return await to_thread.run_sync(self.hasher.verify, password, credential_hash)


def _require(value: str, name: str) -> None:
    if not value:
        raise ValidationError(f"{name} must not be empty")
    _check_text(value, name)


def _check_text(value: str, name: str) -> None:
    """Reject strings the hasher and the database driver cannot encode."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValidationError(f"{name} is not valid UTF-8 text") from None
