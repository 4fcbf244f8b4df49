"""Password hashing helpers."""
from __future__ import annotations

from typing import Optional

from passlib.context import CryptContext
from passlib.exc import PasswordValueError

from .errors import HashingError


def build_password_context(
    scheme: str = "pbkdf2_sha256", rounds: Optional[int] = None
) -> CryptContext:
    """Return a CryptContext for ``scheme``; ``rounds`` overrides its default cost."""

    options = {}
    if rounds is not None:
        options[f"{scheme}__default_rounds"] = rounds
    # PBKDF2-SHA256 by default to avoid bcrypt backend issues
    return CryptContext(schemes=[scheme], deprecated="auto", **options)


class PasswordHasher:
    """Hashes passwords for storage and checks them against stored hashes."""

    def __init__(self, context: Optional[CryptContext] = None) -> None:
        self.context = context or build_password_context()

    def hash(self, password: str) -> str:
        try:
            return self.context.hash(password)
        except (PasswordValueError, ValueError, TypeError) as exc:
            raise HashingError("could not hash password") from exc

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a plain password against the stored hash.

        A hash the context cannot parse is a hashing failure, not a
        wrong password.
        """
        try:
            return self.context.verify(password, password_hash)
        except PasswordValueError:
            return False
        except (ValueError, TypeError) as exc:
            raise HashingError("could not verify password") from exc
