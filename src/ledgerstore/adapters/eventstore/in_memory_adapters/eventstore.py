"""In memory event store implementations.

All data is stored in memory and lost when the instance is discarded.
Use for unit tests, prototyping, or scenarios where durability is not required.

These implementations pass the same contract tests as the SQLAlchemy adapters.
A lock stands in for the database's atomic constraint check.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator, Sequence
from typing import TypeVar

from ledgerstore.interfaces.codec import (
    Codec,
    JsonCodec,
    decode_payload,
    encode_payload,
)
from ledgerstore.interfaces.errors import OptimisticLockError
from ledgerstore.interfaces.eventstore import (
    AggregateIdentity,
    EventRecord,
    EventStore,
    PendingEvent,
    Snapshot,
    SnapshotEventStore,
    validate_expected,
)

S = TypeVar("S")

DEFAULT_SNAPSHOT_SIZE = 10

StreamKey = tuple[str, str]


def _key(identity: AggregateIdentity) -> StreamKey:
    return (identity.aggregate_type, identity.aggregate_id)


class InMemoryEventStore(EventStore):
    """In-memory EventStore for testing and non-durable use cases.

    - Non-durable: all data is lost when the instance is discarded.
    - Payloads are deep-copied on the way in and out, like a real round trip.
    """

    def __init__(self) -> None:
        self._streams: dict[StreamKey, list[EventRecord]] = {}
        self._lock = threading.Lock()

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def append(
        self,
        identity: AggregateIdentity,
        expected_current_sequence: int,
        events: Sequence[PendingEvent],
    ) -> int:
        validate_expected(expected_current_sequence)
        if not events:
            return expected_current_sequence

        records = [
            EventRecord.from_pending(identity, sequence, copy.deepcopy(event))
            for sequence, event in enumerate(events, start=expected_current_sequence + 1)
        ]

        with self._lock:
            stream = self._streams.setdefault(_key(identity), [])
            # behind: a computed sequence is taken; ahead: a gap would appear
            if len(stream) != expected_current_sequence:
                raise OptimisticLockError(
                    f"{identity}: current sequence is {len(stream)}, "
                    f"expected {expected_current_sequence}",
                    resource=str(identity),
                    expected=expected_current_sequence,
                )
            stream.extend(records)

        return records[-1].sequence

    def load(self, identity: AggregateIdentity) -> list[EventRecord]:
        return self.load_after(identity, 0)

    def load_after(
        self, identity: AggregateIdentity, last_sequence: int
    ) -> list[EventRecord]:
        validate_expected(last_sequence, "last_sequence")
        with self._lock:
            stream = list(self._streams.get(_key(identity), ()))
        return [copy.deepcopy(e) for e in stream if e.sequence > last_sequence]

    def iter_events(self, aggregate_type: str) -> Iterator[EventRecord]:
        with self._lock:
            keys = sorted(k for k in self._streams if k[0] == aggregate_type)
            records = [e for k in keys for e in self._streams[k]]
        for record in records:
            yield copy.deepcopy(record)

    def current_sequence(self, identity: AggregateIdentity) -> int:
        with self._lock:
            return len(self._streams.get(_key(identity), ()))


class InMemorySnapshotEventStore(InMemoryEventStore, SnapshotEventStore[S]):
    """In-memory event store with an overwritable snapshot per aggregate."""

    def __init__(
        self,
        *,
        snapshot_size: int = DEFAULT_SNAPSHOT_SIZE,
        codec: Codec[S] | None = None,
    ) -> None:
        if snapshot_size < 1:
            raise ValueError("snapshot_size must be >= 1")
        super().__init__()
        self.snapshot_size = snapshot_size
        self.codec: Codec[S] = codec if codec is not None else JsonCodec()
        self._snapshots: dict[StreamKey, tuple[int, object]] = {}

    def load_snapshot(self, identity: AggregateIdentity) -> Snapshot[S] | None:
        with self._lock:
            stored = self._snapshots.get(_key(identity))
        if stored is None:
            return None
        last_sequence, payload = stored
        state = decode_payload(
            self.codec, copy.deepcopy(payload), what=f"snapshot of {identity}"
        )
        return Snapshot(
            aggregate_type=identity.aggregate_type,
            aggregate_id=identity.aggregate_id,
            last_sequence=last_sequence,
            state=state,
        )

    def save_snapshot(
        self, identity: AggregateIdentity, state: S, last_sequence: int
    ) -> None:
        if last_sequence < 1:
            raise ValueError("last_sequence must be >= 1")
        payload = encode_payload(self.codec, state, what=f"snapshot of {identity}")
        with self._lock:
            self._snapshots[_key(identity)] = (last_sequence, copy.deepcopy(payload))
