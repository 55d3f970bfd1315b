"""
Error taxonomy for laneboard.

Every error raised by the core extends LaneboardError so the request layer can
render it uniformly. Each error knows whether re-running the whole request is
safe (`retryable`) and which HTTP-equivalent status it maps to.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LaneboardError(Exception):
    """Base class for all laneboard errors."""

    default_message: str = "Internal error."
    status_code: int = 500
    retryable: bool = False

    def __init__(
        self,
        message: Optional[str] = None,
        long_message: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message or self.default_message
        self.long_message = long_message or self.message
        self.context = context
        super().__init__(self.long_message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "long_message": self.long_message}


class InvalidInputError(LaneboardError):
    """Malformed id, lane or rank. Raised before the store is touched."""

    default_message = "Invalid input provided."
    status_code = 400


class InvalidIdError(InvalidInputError):
    default_message = "Invalid id provided."


class InvalidLaneError(InvalidInputError):
    default_message = "Invalid status provided."


class InvalidRankError(InvalidInputError):
    default_message = "Invalid priority provided."


class NotFoundError(LaneboardError):
    default_message = "Invalid id provided."
    status_code = 404


class StorageError(LaneboardError):
    """The durable store failed; the transaction was rolled back."""

    default_message = "Database error"
    status_code = 500
    retryable = True


class ConflictError(StorageError):
    """A concurrent writer got there first; re-run the request."""

    default_message = "Conflicting update"
    status_code = 409


__all__ = [
    "ConflictError",
    "InvalidIdError",
    "InvalidInputError",
    "InvalidLaneError",
    "InvalidRankError",
    "LaneboardError",
    "NotFoundError",
    "StorageError",
]
