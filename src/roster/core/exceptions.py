"""Domain errors raised by the roster core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime


class RosterError(Exception):
    """Base class for roster errors."""


class UserNotFoundError(RosterError):
    """No record matches the requested id."""

    def __init__(self, user_id: str):
        super().__init__("User not found")
        self.user_id = user_id


@dataclass(frozen=True)
class PersistenceWarning:
    """A failed read or write of the roster file.

    These never abort an operation; the in-memory collection stays
    authoritative and the warning is logged and kept on the store.
    """

    operation: str
    path: str
    error: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, str]:
        return {
            "operation": self.operation,
            "path": self.path,
            "error": self.error,
            "occurred_at": self.occurred_at.isoformat(),
        }
