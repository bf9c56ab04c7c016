from histograph.domain.models import Event, EventType
from histograph.services.event_index import EventIndex


def test_lookup_and_missing_id():
    idx = EventIndex([Event("a", EventType.COMMIT), Event("b", EventType.COMMIT)])
    assert idx.get("a").id == "a"
    assert idx.get("nope") is None
    assert "b" in idx
    assert "nope" not in idx
    assert len(idx) == 2


def test_duplicate_ids_last_write_wins():
    first = Event("a", EventType.COMMIT, title="first")
    second = Event("a", EventType.COMMIT, title="second")
    idx = EventIndex([first, Event("b", EventType.COMMIT), second])

    assert len(idx) == 2
    assert idx.get("a").title == "second"
    # position of the id is where it was first seen
    assert [e.id for e in idx] == ["a", "b"]


def test_resolve_skips_unknown_ids_and_keeps_order():
    idx = EventIndex([Event("a", EventType.COMMIT), Event("b", EventType.COMMIT)])
    assert [e.id for e in idx.resolve(["b", "x", "a"])] == ["b", "a"]
