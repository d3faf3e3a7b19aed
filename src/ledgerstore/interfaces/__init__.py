"""Interfaces (application boundary) for LEDGERSTORE.

Defines framework-free storage contracts: ABCs, protocols and small DTOs
shared by the aggregate runtime, the query runtime and the adapters.

Dependency rule: this package is independent. Do not import from
`ledgerstore.adapters` or `ledgerstore.bootstrap`.
"""

from .codec import (
    Codec,
    DataclassCodec,
    EventMapper,
    JsonCodec,
    decode_payload,
    encode_payload,
)
from .errors import (
    DatabaseConnectionError,
    DeserializationError,
    ErrorKind,
    OptimisticLockError,
    PersistenceError,
    UnknownPersistenceError,
)
from .eventstore import (
    AggregateIdentity,
    AggregateStateStore,
    EventRecord,
    EventStore,
    LoadedAggregate,
    PendingEvent,
    PersistenceStrategy,
    Snapshot,
    SnapshotEventStore,
    SnapshotReplay,
)
from .view_repository import LoadedView, ViewContext, ViewRepository

__all__ = [
    "AggregateIdentity",
    "AggregateStateStore",
    "Codec",
    "DataclassCodec",
    "DatabaseConnectionError",
    "DeserializationError",
    "ErrorKind",
    "EventMapper",
    "EventRecord",
    "EventStore",
    "JsonCodec",
    "LoadedAggregate",
    "LoadedView",
    "OptimisticLockError",
    "PendingEvent",
    "PersistenceError",
    "PersistenceStrategy",
    "Snapshot",
    "SnapshotEventStore",
    "SnapshotReplay",
    "UnknownPersistenceError",
    "ViewContext",
    "ViewRepository",
    "decode_payload",
    "encode_payload",
]
