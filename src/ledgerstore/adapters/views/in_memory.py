"""In-memory view repository for tests and prototyping."""

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
from ledgerstore.interfaces.eventstore import validate_expected
from ledgerstore.interfaces.view_repository import (
    LoadedView,
    ViewContext,
    ViewRepository,
)

V = TypeVar("V")


class InMemoryViewRepository(ViewRepository[V]):
    """Non-durable ViewRepository with the same compare-and-swap rules."""

    def __init__(self, view_name: str, *, codec: Codec[V] | None = None) -> None:
        self.view_name = view_name
        self.codec: Codec[V] = codec if codec is not None else JsonCodec()
        self._rows: dict[str, tuple[int, Any]] = {}
        self._lock = threading.Lock()

    def load(self, view_instance_id: str) -> LoadedView[V] | None:
        with self._lock:
            stored = self._rows.get(view_instance_id)
        if stored is None:
            return None
        version, payload = stored
        view = decode_payload(
            self.codec,
            copy.deepcopy(payload),
            what=f"view {self.view_name}/{view_instance_id}",
        )
        return LoadedView(view, ViewContext(view_instance_id, version))

    def update(self, view_instance_id: str, view: V, expected_version: int) -> int:
        validate_expected(expected_version, "expected_version")
        resource = f"{self.view_name}/{view_instance_id}"
        payload = encode_payload(self.codec, view, what=f"view {resource}")
        with self._lock:
            stored = self._rows.get(view_instance_id)
            stored_version = stored[0] if stored else 0
            if stored_version != expected_version:
                raise OptimisticLockError(
                    f"{resource}: stored version is not {expected_version}",
                    resource=resource,
                    expected=expected_version,
                )
            self._rows[view_instance_id] = (
                expected_version + 1,
                copy.deepcopy(payload),
            )
        return expected_version + 1
