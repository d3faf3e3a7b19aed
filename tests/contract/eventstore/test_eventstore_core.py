"""Contract tests for the EventStore port.

This module verifies backend-agnostic behavior:
- append contract (contiguous, atomic, conflict on stale or ahead expectation)
- read semantics (load, load_after, iter_events, current_sequence)
- error metadata (retryable, resource, expected)
"""

from __future__ import annotations

import pytest

from ledgerstore.interfaces.errors import ErrorKind, OptimisticLockError
from ledgerstore.interfaces.eventstore import AggregateIdentity, EventStore, PendingEvent

# pylint: disable=redefined-outer-name


def sequences(records) -> list[int]:
    """Sequence numbers of a list of records."""
    return [r.sequence for r in records]


# ===========================================================================
#                         Append: happy path & shapes
# ===========================================================================


def test_append_to_new_aggregate_assigns_sequences_from_one(
    eventstore: EventStore, order_identity, make_pending
):
    """Appending to a new aggregate returns the new sequence; load sees 1..n."""
    first = make_pending("OrderPlaced", customer="c-1")
    second = make_pending("ItemAdded", sku="A-1", qty=2)

    new_sequence = eventstore.append(order_identity, 0, [first, second])

    assert new_sequence == 2
    loaded = eventstore.load(order_identity)
    assert sequences(loaded) == [1, 2]
    assert [r.event_type for r in loaded] == ["OrderPlaced", "ItemAdded"]
    assert loaded[0].payload == {"customer": "c-1"}
    assert loaded[1].payload == {"sku": "A-1", "qty": 2}
    assert all(r.identity == order_identity for r in loaded)


def test_worked_example_stale_append_then_retry(
    eventstore: EventStore, order_identity, make_batch
):
    """Two events at 0, stale append at 0 conflicts, retry at 2 gives 3 and 4."""
    assert eventstore.append(order_identity, 0, make_batch(2)) == 2

    with pytest.raises(OptimisticLockError):
        eventstore.append(order_identity, 0, make_batch(2))

    # the caller reloads, recomputes and resubmits
    current = eventstore.current_sequence(order_identity)
    assert current == 2
    assert eventstore.append(order_identity, current, make_batch(2)) == 4
    assert sequences(eventstore.load(order_identity)) == [1, 2, 3, 4]


def test_event_version_and_metadata_round_trip(
    eventstore: EventStore, order_identity, make_pending
):
    """Event version and metadata are stored alongside the payload."""
    event = make_pending(
        "ItemAdded",
        event_version="2.1",
        metadata={"correlation_id": "abc", "actor": "u-7"},
        sku="B-2",
    )
    eventstore.append(order_identity, 0, [event])

    (record,) = eventstore.load(order_identity)
    assert record.event_version == "2.1"
    assert dict(record.metadata) == {"correlation_id": "abc", "actor": "u-7"}


def test_nested_payload_round_trips(eventstore: EventStore, order_identity, make_pending):
    """Payloads are opaque JSON documents and come back unchanged."""
    payload = {"lines": [{"sku": "A", "qty": 1}, {"sku": "B", "qty": 3}], "note": None}
    eventstore.append(order_identity, 0, [make_pending("OrderPlaced", **payload)])

    (record,) = eventstore.load(order_identity)
    assert record.payload == payload


def test_null_payload_round_trips(eventstore: EventStore, order_identity):
    """A JSON null payload is ordinary data, stored and loaded as None."""
    ping = PendingEvent("Pinged", "1", None)
    assert eventstore.append(order_identity, 0, [ping]) == 1

    (record,) = eventstore.load(order_identity)
    assert record.payload is None
    assert record.event_type == "Pinged"


def test_empty_batch_is_a_no_op(eventstore: EventStore, order_identity, make_batch):
    """An empty append writes nothing and returns the expected sequence."""
    assert eventstore.append(order_identity, 0, []) == 0
    assert eventstore.load(order_identity) == []

    eventstore.append(order_identity, 0, make_batch(3))
    assert eventstore.append(order_identity, 3, []) == 3
    assert eventstore.current_sequence(order_identity) == 3


# ===========================================================================
#                            Append: errors
# ===========================================================================


def test_conflicting_append_is_atomic(
    eventstore: EventStore, order_identity, make_batch
):
    """A batch overlapping existing sequences is rejected as a whole."""
    eventstore.append(order_identity, 0, make_batch(2))
    before = eventstore.load(order_identity)

    # sequences 2..4 overlap at 2; none of them may be written
    with pytest.raises(OptimisticLockError) as exc:
        eventstore.append(order_identity, 1, make_batch(3))

    assert eventstore.load(order_identity) == before
    assert exc.value.retryable
    assert exc.value.kind is ErrorKind.OPTIMISTIC_LOCK
    assert exc.value.resource == str(order_identity)
    assert exc.value.expected == 1


def test_append_ahead_of_stream_is_rejected(
    eventstore: EventStore, order_identity, make_batch
):
    """Expecting a sequence the stream has not reached would leave a gap."""
    eventstore.append(order_identity, 0, make_batch(1))

    with pytest.raises(OptimisticLockError):
        eventstore.append(order_identity, 5, make_batch(1))

    assert sequences(eventstore.load(order_identity)) == [1]


def test_append_ahead_on_empty_stream_is_rejected(
    eventstore: EventStore, order_identity, make_batch
):
    """A new aggregate must start at expected sequence 0."""
    with pytest.raises(OptimisticLockError):
        eventstore.append(order_identity, 1, make_batch(1))

    assert eventstore.load(order_identity) == []


@pytest.mark.parametrize("expected", [-1, -10])
def test_negative_expected_sequence_raises_value_error(
    eventstore: EventStore, order_identity, make_batch, expected
):
    """Contract violations are rejected before any I/O."""
    with pytest.raises(ValueError):
        eventstore.append(order_identity, expected, make_batch(1))


# ===========================================================================
#                                 Reads
# ===========================================================================


def test_load_of_unknown_aggregate_is_empty(eventstore: EventStore):
    """A never-written aggregate has no events and sequence 0."""
    identity = AggregateIdentity("Order", "nope")
    assert eventstore.load(identity) == []
    assert eventstore.current_sequence(identity) == 0


def test_load_after_returns_strictly_later_events(
    eventstore: EventStore, order_identity, make_batch
):
    """`load_after(n)` returns the events with sequence > n."""
    eventstore.append(order_identity, 0, make_batch(5))

    assert sequences(eventstore.load_after(order_identity, 3)) == [4, 5]
    assert eventstore.load_after(order_identity, 5) == []
    assert sequences(eventstore.load_after(order_identity, 0)) == [1, 2, 3, 4, 5]

    with pytest.raises(ValueError):
        eventstore.load_after(order_identity, -1)


def test_streams_are_isolated_by_type_and_id(eventstore: EventStore, make_batch):
    """Same id under another type, or another id, is a different stream."""
    order = AggregateIdentity("Order", "x-1")
    invoice = AggregateIdentity("Invoice", "x-1")
    other_order = AggregateIdentity("Order", "x-2")

    eventstore.append(order, 0, make_batch(2))
    eventstore.append(invoice, 0, make_batch(1))
    eventstore.append(other_order, 0, make_batch(3))

    assert eventstore.current_sequence(order) == 2
    assert eventstore.current_sequence(invoice) == 1
    assert eventstore.current_sequence(other_order) == 3


def test_iter_events_orders_by_aggregate_then_sequence(
    eventstore: EventStore, make_batch
):
    """`iter_events` yields one aggregate type, grouped by id, ascending."""
    eventstore.append(AggregateIdentity("Order", "b"), 0, make_batch(2))
    eventstore.append(AggregateIdentity("Order", "a"), 0, make_batch(1))
    eventstore.append(AggregateIdentity("Invoice", "a"), 0, make_batch(4))
    eventstore.append(AggregateIdentity("Order", "a"), 1, make_batch(1))

    keys = [(r.aggregate_id, r.sequence) for r in eventstore.iter_events("Order")]

    assert keys == [("a", 1), ("a", 2), ("b", 1), ("b", 2)]
    assert list(eventstore.iter_events("Shipment")) == []


def test_returned_records_are_independent_copies(
    eventstore: EventStore, order_identity, make_pending
):
    """Mutating a loaded payload does not change what is stored."""
    eventstore.append(order_identity, 0, [make_pending("ItemAdded", qty=1)])

    (record,) = eventstore.load(order_identity)
    record.payload["qty"] = 99

    (reloaded,) = eventstore.load(order_identity)
    assert reloaded.payload == {"qty": 1}
