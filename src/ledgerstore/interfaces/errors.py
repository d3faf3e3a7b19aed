"""Persistence error taxonomy.

Every public storage operation fails with exactly one of the four concrete
kinds below. Adapters never leak raw driver exceptions; they are chained as
``__cause__`` of the translated error instead.

| Kind                       | Meaning                                   | Retryable |
|----------------------------|-------------------------------------------|-----------|
| `OptimisticLockError`      | lost a race on a sequence or version      | yes       |
| `DatabaseConnectionError`  | backend unreachable / transport failure   | no        |
| `DeserializationError`     | stored payload could not be decoded       | no        |
| `UnknownPersistenceError`  | anything not matched above                | no        |

"Retryable" means the *caller* may reload, recompute and resubmit. This
package never retries on its own.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of persistence failure kinds."""

    OPTIMISTIC_LOCK = "optimistic_lock"
    CONNECTION = "connection"
    DESERIALIZATION = "deserialization"
    UNKNOWN = "unknown"


class PersistenceError(Exception):
    """Base class for ledgerstore persistence errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    @property
    def retryable(self) -> bool:
        """Whether the caller may reload state and resubmit the write."""
        return self.kind is ErrorKind.OPTIMISTIC_LOCK


class OptimisticLockError(PersistenceError):
    """Another writer claimed the sequence or version first.

    Attributes:
        resource (str | None): Human-readable key of the contended row,
            e.g. ``"Order/order-1"`` or ``"order_summary/v-1"``.
        expected (int | None): The sequence/version the caller expected.
    """

    kind = ErrorKind.OPTIMISTIC_LOCK

    def __init__(
        self,
        message: str = "optimistic lock error",
        *,
        resource: str | None = None,
        expected: int | None = None,
    ):
        super().__init__(message)
        self.resource = resource
        self.expected = expected


class DatabaseConnectionError(PersistenceError):
    """Transport, pool or operational failure while reaching the backend."""

    kind = ErrorKind.CONNECTION


class DeserializationError(PersistenceError):
    """A stored payload could not be turned back into its structured form."""

    kind = ErrorKind.DESERIALIZATION


class UnknownPersistenceError(PersistenceError):
    """A backend failure that matches no recognized pattern."""

    kind = ErrorKind.UNKNOWN
