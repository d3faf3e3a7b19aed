"""Serialization capabilities injected into the repositories.

Stores never decide how a view, snapshot or aggregate state is encoded: they
receive a `Codec` that turns the caller's object into a JSON-compatible value
and back. Payload columns are JSON typed, so the codec's job ends at
"JSON-compatible Python value"; the driver handles the text form.

Domain events are mapped by `EventMapper`, which uses a registry of
``event_type -> class`` to reconstruct dataclass events from `EventRecord`s.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from typing import Any, Generic, Protocol, TypeVar

from .errors import DeserializationError, UnknownPersistenceError
from .eventstore import EventRecord, PendingEvent

T = TypeVar("T")

DEFAULT_EVENT_VERSION = "1.0"


class Codec(Protocol[T]):
    """Encode/decode between a domain object and a JSON-compatible value."""

    def encode(self, value: T) -> Any:
        """Return a JSON-compatible representation of ``value``."""

    def decode(self, data: Any) -> T:
        """Rebuild the domain object from its stored representation."""


class JsonCodec:
    """Identity codec for values that are already JSON-compatible."""

    def encode(self, value: Any) -> Any:
        return value

    def decode(self, data: Any) -> Any:
        return data


class DataclassCodec(Generic[T]):
    """Codec for flat dataclasses: ``asdict`` on the way in, ``cls(**data)`` out."""

    def __init__(self, cls: type[T]):
        if not is_dataclass(cls):
            raise TypeError(f"{cls!r} is not a dataclass")
        self.cls = cls

    def encode(self, value: T) -> dict[str, Any]:
        return asdict(value)  # type: ignore[call-overload]

    def decode(self, data: Any) -> T:
        if not isinstance(data, Mapping):
            raise TypeError(
                f"expected a mapping for {self.cls.__name__}, got {type(data).__name__}"
            )
        return self.cls(**data)


def decode_payload(codec: Codec[T], data: Any, *, what: str) -> T:
    """Decode ``data`` with ``codec``, normalizing failures.

    Args:
        codec: The codec to decode with.
        data: The stored, JSON-compatible payload.
        what: Description of the record, used in the error message.

    Raises:
        DeserializationError: If the codec rejects the data.
    """
    try:
        return codec.decode(data)
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        raise DeserializationError(f"cannot decode {what}: {e}") from e


def encode_payload(codec: Codec[T], value: T, *, what: str) -> Any:
    """Encode ``value`` with ``codec``, normalizing failures.

    Raises:
        UnknownPersistenceError: If the codec cannot encode the value.
    """
    try:
        return codec.encode(value)
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        raise UnknownPersistenceError(f"cannot encode {what}: {e}") from e


class EventMapper:
    """Maps between dataclass domain events and event store records.

    The event type name defaults to the class name; the schema version is taken
    from an ``EVENT_VERSION`` class attribute when present.
    """

    def __init__(self, event_registry: Mapping[str, type] | None = None) -> None:
        self.event_registry: dict[str, type] = dict(event_registry or {})

    def register(self, event_cls: type) -> type:
        """Add an event class to the registry. Usable as a decorator."""
        self.event_registry[event_cls.__name__] = event_cls
        return event_cls

    @staticmethod
    def to_pending(
        event: Any, metadata: Mapping[str, Any] | None = None
    ) -> PendingEvent:
        """Convert a dataclass domain event to a `PendingEvent`."""
        if not is_dataclass(event) or isinstance(event, type):
            raise TypeError(f"{event!r} is not a dataclass instance")
        return PendingEvent(
            event_type=type(event).__name__,
            event_version=getattr(event, "EVENT_VERSION", DEFAULT_EVENT_VERSION),
            payload=asdict(event),
            metadata=dict(metadata or {}),
        )

    def to_domain_event(self, record: EventRecord) -> Any:
        """Convert a persisted `EventRecord` back to its domain event.

        Raises:
            DeserializationError: If the event type is not registered or the
                payload does not fit the registered class.
        """
        if not (cls := self.event_registry.get(record.event_type)):
            raise DeserializationError(f"Unknown event type: {record.event_type}")
        return decode_payload(
            DataclassCodec(cls),
            record.payload,
            what=f"{record.event_type} at sequence {record.sequence}",
        )
