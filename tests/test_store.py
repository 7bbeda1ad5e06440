import json
from datetime import datetime, timedelta, timezone

from cvsfastimport.marks import Mark
from cvsfastimport.store import (
    NoFileRevisionError,
    NoPatchSetError,
    PatchSetStore,
    StateError,
    StoredPatchSet,
    TagStore,
    UnknownVersionError,
)

T0 = datetime(2021, 8, 11, 19, 8, 27, tzinfo=timezone.utc)


def populated():
    store = PatchSetStore()
    store.add(Mark(5), b"main", T0, [2, 1])
    store.add(Mark(6), b"main", T0 + timedelta(minutes=5), [1, 3])
    return store


def test_get_by_mark():
    store = populated()
    assert store.get_by_mark(Mark(5)) == StoredPatchSet(T0, frozenset({1, 2}))
    assert store.get_by_mark(Mark(99)) is None


def test_mark_for_content_ignores_order():
    store = populated()
    assert store.mark_for_content(T0, [1, 2]) == Mark(5)
    assert store.mark_for_content(T0, [2, 1]) == Mark(5)
    assert store.mark_for_content(T0 + timedelta(seconds=1), [1, 2]) is None
    assert store.mark_for_content(T0, [1]) is None


def test_marks_for_file_revision():
    store = populated()
    assert store.marks_for_file_revision(1) == [Mark(5), Mark(6)]
    assert store.marks_for_file_revision(3) == [Mark(6)]
    assert store.marks_for_file_revision(42) is None


def test_last_mark_on_branch_and_add_branch():
    store = populated()
    assert store.last_mark_on_branch(b"main") == Mark(6)
    assert store.last_mark_on_branch(b"other") is None
    store.add_branch(Mark(5), b"other")
    assert store.last_mark_on_branch(b"other") == Mark(5)
    assert store.last_mark_on_branch(b"main") == Mark(6)


def test_patchset_store_round_trip_through_json():
    store = populated()
    store.add_branch(Mark(5), b"\xffbranch")
    restored = PatchSetStore.from_dict(json.loads(json.dumps(store.to_dict())))
    assert restored.to_dict() == store.to_dict()
    assert restored.get_by_mark(Mark(6)) == store.get_by_mark(Mark(6))
    assert restored.mark_for_content(T0, [1, 2]) == Mark(5)
    assert restored.last_mark_on_branch(b"\xffbranch") == Mark(5)
    assert restored.marks_for_file_revision(1) == [Mark(5), Mark(6)]


def test_tag_store_collects_revisions():
    store = TagStore()
    store.add_tag(b"v1", 3)
    store.add_tag(b"v1", 1)
    store.add_tag(b"v1", 3)
    store.add_tag(b"v2", 2)
    assert store.file_revisions(b"v1") == frozenset({1, 3})
    assert store.file_revisions(b"v3") is None
    assert sorted(store.tags()) == [b"v1", b"v2"]


def test_tag_store_marks():
    store = TagStore()
    assert store.mark(b"v1") is None
    store.add_mark(b"v1", Mark(4))
    store.add_mark(b"v1", Mark(8))
    assert store.mark(b"v1") == Mark(8)
    assert store.tags() == []


def test_tag_store_round_trip_through_json():
    store = TagStore()
    store.add_tag(b"v1", 3)
    store.add_tag(b"v1", 1)
    store.add_mark(b"v1", Mark(4))
    restored = TagStore.from_dict(json.loads(json.dumps(store.to_dict())))
    assert restored.file_revisions(b"v1") == frozenset({1, 3})
    assert restored.mark(b"v1") == Mark(4)
    assert restored.to_dict() == store.to_dict()


def test_error_messages():
    assert str(NoPatchSetError(Mark(3))) == "no patchset exists for mark :3"
    assert str(UnknownVersionError(7)) == "unknown serialised data version: 7"
    error = NoFileRevisionError("ID", 12)
    assert isinstance(error, StateError)
    assert str(error) == "no file revision exists for ID 12"