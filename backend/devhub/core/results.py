"""Typed outcomes for service operations.

Service methods never raise for business-rule failures. They return a
``ServiceResult`` whose ``error`` names the rule that was violated, and the
caller (an API route, a test, a script) decides how to surface it.
"""

import enum
import functools
import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    DUPLICATE_EMAIL = "duplicate_email"
    NAME_TAKEN = "name_taken"
    USER_NOT_FOUND = "user_not_found"
    TEAM_NOT_FOUND = "team_not_found"
    INVITATION_NOT_FOUND = "invitation_not_found"
    NOT_A_MEMBER = "not_a_member"
    NOT_OWNER = "not_owner"
    ALREADY_MEMBER = "already_member"
    DUPLICATE_PENDING = "duplicate_pending"
    NOT_RECIPIENT = "not_recipient"
    ALREADY_RESOLVED = "already_resolved"
    CANNOT_REMOVE_OWNER = "cannot_remove_owner"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_INPUT = "invalid_input"
    STORAGE_ERROR = "storage_error"


@dataclass
class ServiceResult(Generic[T]):
    ok: bool
    value: T | None = None
    error: ErrorKind | None = None
    message: str = ""

    @classmethod
    def success(cls, value: T | None = None, message: str = "") -> "ServiceResult[T]":
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "ServiceResult[T]":
        return cls(ok=False, error=error, message=message)


class SnapshotError(Exception):
    """The durable snapshot could not be read or written."""


class SnapshotCorruptedError(SnapshotError):
    def __init__(self, key: str, reason: str):
        super().__init__(f"Snapshot blob '{key}' is unreadable: {reason}")
        self.key = key


def guard_storage(func):
    """Report storage failures of an async service method as STORAGE_ERROR results."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except SnapshotError as e:
            logger.error(f"{func.__qualname__} failed on snapshot storage: {e}", exc_info=True)
            return ServiceResult.failure(ErrorKind.STORAGE_ERROR, "Storage is unavailable")

    return wrapper
