"""Event store interfaces for LEDGERSTORE.

This module defines:
- The DTOs exchanged with the aggregate runtime (`AggregateIdentity`,
  `PendingEvent`, `EventRecord`, `Snapshot`, `LoadedAggregate`).
- Three persistence strategy ports sharing one vocabulary:
  * `EventStore`: plain append-only event log.
  * `SnapshotEventStore`: event log plus a periodically overwritten snapshot.
  * `AggregateStateStore`: current folded state only, no history.
- `PersistenceStrategy`, the closed set of strategies selectable at wiring time.

Layering & dependency rules:
- Lives under `ledgerstore.interfaces`. Do NOT import from adapters or bootstrap.

Contract overview
-----------------
Append:
- Writes a contiguous block starting at ``expected_current_sequence + 1`` in a
  single transaction (all-or-nothing).
- The unique key ``(aggregate_type, aggregate_id, sequence)`` is the conflict
  detector: if any computed sequence exists, the batch is rejected with
  `OptimisticLockError` and nothing is written.
- If ``expected_current_sequence`` is ahead of the stream, the batch is also
  rejected with `OptimisticLockError` (no gaps are ever written).
- Returns the new current sequence.

Reads:
- `load` returns events ascending by sequence; empty list if never written.
- `load_after` returns events strictly after the given sequence.
- `iter_events` streams every event of an aggregate type.

Errors:
- Every operation raises only `ledgerstore.interfaces.errors` kinds on storage
  failure, and `ValueError` for caller contract violations detected up front.
"""

import abc
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, NamedTuple, TypeVar

S = TypeVar("S")

# --- DTOs ---


def _require_text(**values: str) -> None:
    for name, value in values.items():
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{name} must be a non-empty string.")


@dataclass(frozen=True, slots=True)
class AggregateIdentity:
    """Type name plus instance id of one aggregate."""

    aggregate_type: str
    aggregate_id: str

    def __post_init__(self) -> None:
        _require_text(
            aggregate_type=self.aggregate_type, aggregate_id=self.aggregate_id
        )

    def __str__(self) -> str:
        return f"{self.aggregate_type}/{self.aggregate_id}"


@dataclass(frozen=True, slots=True)
class PendingEvent:
    """A newly produced domain event, not yet assigned a sequence."""

    event_type: str
    event_version: str
    payload: Any
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _require_text(event_type=self.event_type, event_version=self.event_version)


@dataclass(frozen=True, slots=True)
class EventRecord:
    """A persisted domain event (one row of the events table).

    Notes:
      - `sequence` is gap-free per aggregate and starts at 1.
      - `payload` and `metadata` are opaque to the store.
    """

    # pylint: disable=too-many-instance-attributes

    aggregate_type: str
    aggregate_id: str
    sequence: int
    event_type: str
    event_version: str
    payload: Any
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.sequence < 1:
            raise ValueError("sequence must be >= 1")

    @property
    def identity(self) -> AggregateIdentity:
        """The aggregate this event belongs to."""
        return AggregateIdentity(self.aggregate_type, self.aggregate_id)

    @classmethod
    def from_pending(
        cls, identity: AggregateIdentity, sequence: int, event: PendingEvent
    ) -> "EventRecord":
        """Bind a pending event to its aggregate and sequence."""
        return cls(
            aggregate_type=identity.aggregate_type,
            aggregate_id=identity.aggregate_id,
            sequence=sequence,
            event_type=event.event_type,
            event_version=event.event_version,
            payload=event.payload,
            metadata=dict(event.metadata),
        )

    def as_insertable_row(self) -> dict[str, Any]:
        """Column values for inserting this record."""
        return {
            "aggregate_type": self.aggregate_type,
            "aggregate_id": self.aggregate_id,
            "sequence": self.sequence,
            "event_type": self.event_type,
            "event_version": self.event_version,
            "payload": self.payload,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True, slots=True)
class Snapshot(Generic[S]):
    """Cached fold of an aggregate's events up to `last_sequence`."""

    aggregate_type: str
    aggregate_id: str
    last_sequence: int
    state: S


class SnapshotReplay(NamedTuple, Generic[S]):
    """Result of `SnapshotEventStore.load_since_snapshot`."""

    snapshot: Snapshot[S] | None
    events: list[EventRecord]

    @property
    def current_sequence(self) -> int:
        """Sequence of the last event covered by snapshot + events."""
        if self.events:
            return self.events[-1].sequence
        return self.snapshot.last_sequence if self.snapshot else 0


class LoadedAggregate(NamedTuple, Generic[S]):
    """Current state and version of a state-only aggregate."""

    state: S
    version: int


class PersistenceStrategy(str, Enum):
    """How aggregates are persisted.

    Attributes:
        EVENT_LOG: every event is stored; state is rebuilt by full replay.
        SNAPSHOT: every event is stored plus a periodic snapshot.
        AGGREGATE_STATE: only the current state is stored.
    """

    EVENT_LOG = "event_log"
    SNAPSHOT = "snapshot"
    AGGREGATE_STATE = "aggregate_state"


def validate_expected(expected: int, name: str = "expected_current_sequence") -> None:
    """Reject negative expected sequences/versions before any I/O."""
    if isinstance(expected, bool) or not isinstance(expected, int):
        raise ValueError(f"{name} must be an int")
    if expected < 0:
        raise ValueError(f"{name} must be >= 0")


# --- Ports ---


class EventStore(abc.ABC):
    """An abstract base class for an append-only event store."""

    @abc.abstractmethod
    def append(
        self,
        identity: AggregateIdentity,
        expected_current_sequence: int,
        events: Sequence[PendingEvent],
    ) -> int:
        """Persist events atomically after ``expected_current_sequence``.

        Args:
            identity: The aggregate the events belong to.
            expected_current_sequence: The sequence the caller last observed
                (0 for a new aggregate).
            events: The new events, in order.

        Raises:
            OptimisticLockError: when another writer already claimed one of the
                computed sequences, or the stream is behind the expectation.
            DatabaseConnectionError: when the backend is unreachable.
            UnknownPersistenceError: for any other storage failure.
            ValueError: if ``expected_current_sequence`` is negative.

        Returns:
            The new current sequence (``expected_current_sequence + len(events)``).
        """

    @abc.abstractmethod
    def load(self, identity: AggregateIdentity) -> list[EventRecord]:
        """Return all events of an aggregate, ascending by sequence."""

    @abc.abstractmethod
    def load_after(
        self, identity: AggregateIdentity, last_sequence: int
    ) -> list[EventRecord]:
        """Return events with ``sequence > last_sequence``, ascending.

        Raises:
            ValueError: if ``last_sequence`` is negative.
        """

    @abc.abstractmethod
    def iter_events(self, aggregate_type: str) -> Iterator[EventRecord]:
        """Yield every event of one aggregate type.

        Ordered by aggregate id, then sequence. Backends may hold resources
        (a pooled connection) until the iterator is exhausted or closed;
        consumers that stop early should wrap it in `contextlib.closing`.
        """

    @abc.abstractmethod
    def current_sequence(self, identity: AggregateIdentity) -> int:
        """Return the highest stored sequence, or 0 if the stream is empty."""


class SnapshotEventStore(EventStore, Generic[S]):
    """Event store that additionally keeps one snapshot per aggregate.

    Snapshots are a derived cache: saving one never conflicts, it simply
    overwrites the previous snapshot.
    """

    snapshot_size: int

    def is_snapshot_due(self, previous_sequence: int, new_sequence: int) -> bool:
        """Whether an append from ``previous_sequence`` crossed a snapshot boundary."""
        return new_sequence // self.snapshot_size > previous_sequence // self.snapshot_size

    def load_since_snapshot(self, identity: AggregateIdentity) -> SnapshotReplay[S]:
        """Return the snapshot (if any) plus the events recorded after it."""
        snapshot = self.load_snapshot(identity)
        last_sequence = snapshot.last_sequence if snapshot else 0
        return SnapshotReplay(snapshot, self.load_after(identity, last_sequence))

    @abc.abstractmethod
    def load_snapshot(self, identity: AggregateIdentity) -> Snapshot[S] | None:
        """Return the stored snapshot, or None if none has been saved."""

    @abc.abstractmethod
    def save_snapshot(
        self, identity: AggregateIdentity, state: S, last_sequence: int
    ) -> None:
        """Overwrite the aggregate's snapshot unconditionally.

        Raises:
            ValueError: if ``last_sequence`` < 1.
        """


class AggregateStateStore(abc.ABC, Generic[S]):
    """Stores only the current state of each aggregate, with a version counter."""

    @abc.abstractmethod
    def load_aggregate(self, identity: AggregateIdentity) -> LoadedAggregate[S] | None:
        """Return the current state and version, or None if never written."""

    @abc.abstractmethod
    def update_aggregate(
        self, identity: AggregateIdentity, state: S, expected_version: int
    ) -> int:
        """Compare-and-swap the aggregate state.

        ``expected_version == 0`` inserts; otherwise the row is updated only if
        its stored version still equals ``expected_version``.

        Raises:
            OptimisticLockError: if the stored version no longer matches.
            ValueError: if ``expected_version`` is negative.

        Returns:
            The new version (``expected_version + 1``).
        """
