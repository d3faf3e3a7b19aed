"""In-memory aggregate-state store."""

from __future__ import annotations

import copy
import threading
from typing import Any, TypeVar

from ledgerstore.interfaces.codec import (
    Codec,
    JsonCodec,
    decode_payload,
    encode_payload,
)
from ledgerstore.interfaces.errors import OptimisticLockError
from ledgerstore.interfaces.eventstore import (
    AggregateIdentity,
    AggregateStateStore,
    LoadedAggregate,
    validate_expected,
)

S = TypeVar("S")


class InMemoryAggregateStateStore(AggregateStateStore[S]):
    """Non-durable AggregateStateStore with the same compare-and-swap rules."""

    def __init__(self, *, codec: Codec[S] | None = None) -> None:
        self.codec: Codec[S] = codec if codec is not None else JsonCodec()
        self._rows: dict[tuple[str, str], tuple[int, Any]] = {}
        self._lock = threading.Lock()

    def load_aggregate(self, identity: AggregateIdentity) -> LoadedAggregate[S] | None:
        with self._lock:
            stored = self._rows.get((identity.aggregate_type, identity.aggregate_id))
        if stored is None:
            return None
        version, payload = stored
        state = decode_payload(
            self.codec, copy.deepcopy(payload), what=f"state of {identity}"
        )
        return LoadedAggregate(state, version)

    def update_aggregate(
        self, identity: AggregateIdentity, state: S, expected_version: int
    ) -> int:
        validate_expected(expected_version, "expected_version")
        payload = encode_payload(self.codec, state, what=f"state of {identity}")
        key = (identity.aggregate_type, identity.aggregate_id)
        with self._lock:
            stored = self._rows.get(key)
            stored_version = stored[0] if stored else 0
            if stored_version != expected_version:
                raise OptimisticLockError(
                    f"{identity}: stored version is not {expected_version}",
                    resource=str(identity),
                    expected=expected_version,
                )
            self._rows[key] = (expected_version + 1, copy.deepcopy(payload))
        return expected_version + 1
