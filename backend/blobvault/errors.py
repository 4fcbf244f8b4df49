"""Outcomes and exceptions raised by the blob store."""
from __future__ import annotations

import enum


class Outcome(str, enum.Enum):
    """Result of a store operation."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    BAD_CREDENTIAL = "bad_credential"
    DUPLICATE_ACCOUNT = "duplicate_account"
    VALIDATION_FAILURE = "validation_failure"
    STORAGE_FAILURE = "storage_failure"


class BlobVaultError(Exception):
    """Base class for store errors; ``outcome`` names the failure tier."""

    outcome: Outcome = Outcome.STORAGE_FAILURE


class DuplicateAccountError(BlobVaultError):
    """The username is already registered."""

    outcome = Outcome.DUPLICATE_ACCOUNT

    def __init__(self, username: str) -> None:
        super().__init__(f"account {username!r} already exists")
        self.username = username


class ValidationError(BlobVaultError):
    """Input was rejected before touching the store."""

    outcome = Outcome.VALIDATION_FAILURE


class StorageError(BlobVaultError):
    """The backing database failed or the target row is missing."""

    outcome = Outcome.STORAGE_FAILURE


class HashingError(BlobVaultError):
    """The password hashing backend failed."""

    outcome = Outcome.STORAGE_FAILURE
