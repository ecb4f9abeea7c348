"""
linktrue.errors — registry exceptions.

Every rejected operation surfaces as a *typed exception* carrying the exact,
human-readable message callers depend on, a stable taxonomy `code`, and a finer
`reason` string. An operation that raises has no side effects: the store
journal is reverted before the exception leaves the registry.

Hierarchy
---------
ProfileError (base)
 ├─ ValidationError : malformed username or input shape
 ├─ ConflictError   : uniqueness violation (taken username, duplicate key, already registered)
 ├─ NotFoundError   : missing key, username or address
 ├─ LimitError      : item cap exceeded
 └─ StateError      : invalid transfer target/state, broken invariants

`str(err)` is the verbatim message, so callers can match on it directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# -------- verbatim messages --------------------------------------------------

MSG_USERNAME_EMPTY = "Username cannot be empty"
MSG_USERNAME_TOO_LONG = "Username max length is {limit} characters!"
MSG_USERNAME_CHARSET = (
    "Username must only contain lowercase letters a-z, numbers 0-9, and underscores (_)"
)
MSG_USERNAME_RESERVED = "Username is reserved or contains a reserved prefix"
MSG_LENGTH_MISMATCH = "Invalid input! Keys and values must match in length."
MSG_EMPTY_KEY = "Key cannot be empty!"
MSG_EMPTY_VALUE = "Value cannot be empty!"
MSG_EMPTY_NEW_VALUE = "New value cannot be empty!"
MSG_ALREADY_REGISTERED = "Wallet already registered!"
MSG_USERNAME_TAKEN = "Username already taken"
MSG_DUPLICATE_KEY = "Duplicate key found!"
MSG_TOO_MANY_ITEMS = "Max allowed items are {limit}!"
MSG_KEY_NOT_FOUND = "Key not found"
MSG_USERNAME_NOT_FOUND = "Username does not exist"
MSG_ADDRESS_NOT_FOUND = "Address does not exist"
MSG_INVALID_NEW_ADDRESS = "Invalid new address!"
MSG_TARGET_HAS_USERNAME = "New address already has a username"
MSG_NOTHING_TO_TRANSFER = "No username to transfer"
MSG_INVALID_CALLER = "Invalid caller address"


@dataclass
class ProfileError(Exception):
    """
    Base registry error.

    Attributes:
        message: Verbatim, human-readable explanation.
        code:    Taxonomy code ('VALIDATION', 'CONFLICT', ...).
        reason:  Stable machine reason ('USERNAME_TAKEN', 'KEY_NOT_FOUND', ...).
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "profile error"
    code: str = "PROFILE_ERROR"
    reason: str = "UNKNOWN"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs and CLI output."""
        out: Dict[str, Any] = {
            "code": self.code,
            "reason": self.reason,
            "message": self.message,
        }
        if self.data is not None:
            out["data"] = self.data
        return out


class ValidationError(ProfileError):
    """
    Malformed input.

    Typical triggers:
      - username empty, too long, bad characters, reserved
      - keys/values length mismatch, empty key or value
      - unparseable caller address
    """
    def __init__(self, message: str, *, reason: str = "INVALID_INPUT", data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="VALIDATION", reason=reason, data=data)


class ConflictError(ProfileError):
    """Uniqueness violation: taken username, duplicate key, already registered."""
    def __init__(self, message: str, *, reason: str = "CONFLICT", data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="CONFLICT", reason=reason, data=data)


class NotFoundError(ProfileError):
    """Missing key, username or address."""
    def __init__(self, message: str, *, reason: str = "NOT_FOUND", data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="NOT_FOUND", reason=reason, data=data)


class LimitError(ProfileError):
    """A profile would exceed its item cap."""
    def __init__(
        self,
        message: str,
        *,
        reason: str = "TOO_MANY_ITEMS",
        limit: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        d: Dict[str, Any] = {}
        if data:
            d.update(data)
        if limit is not None:
            d.setdefault("limit", limit)
        super().__init__(message=message, code="LIMIT", reason=reason, data=d or None)


class StateError(ProfileError):
    """
    Operation not allowed in the current state.

    Examples:
      - transfer to the zero address or to an address that already has a username
      - transfer from an address without a username
      - a loaded snapshot that breaks the index invariants
    """
    def __init__(self, message: str, *, reason: str = "BAD_STATE", data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="STATE", reason=reason, data=data)


# -------- helpers -----------------------------------------------------------


def error_to_result(err: ProfileError) -> Dict[str, Any]:
    """
    Map a ProfileError to a receipt-like result payload.

    Returns:
        {"status": "REVERT", "error": {code, reason, message, data?}}
    """
    return {"status": "REVERT", "error": err.to_dict()}


__all__ = [
    "ProfileError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "LimitError",
    "StateError",
    "error_to_result",
    "MSG_USERNAME_EMPTY",
    "MSG_USERNAME_TOO_LONG",
    "MSG_USERNAME_CHARSET",
    "MSG_USERNAME_RESERVED",
    "MSG_LENGTH_MISMATCH",
    "MSG_EMPTY_KEY",
    "MSG_EMPTY_VALUE",
    "MSG_EMPTY_NEW_VALUE",
    "MSG_ALREADY_REGISTERED",
    "MSG_USERNAME_TAKEN",
    "MSG_DUPLICATE_KEY",
    "MSG_TOO_MANY_ITEMS",
    "MSG_KEY_NOT_FOUND",
    "MSG_USERNAME_NOT_FOUND",
    "MSG_ADDRESS_NOT_FOUND",
    "MSG_INVALID_NEW_ADDRESS",
    "MSG_TARGET_HAS_USERNAME",
    "MSG_NOTHING_TO_TRANSFER",
    "MSG_INVALID_CALLER",
]
