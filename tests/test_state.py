import gzip
import io
import json
from datetime import datetime, timedelta, timezone

import pytest

from cvsfastimport.marks import Mark
from cvsfastimport.state import Manager
from cvsfastimport.store import (
    NoFileRevisionError,
    NoPatchSetError,
    StateError,
    UnknownVersionError,
)

T0 = datetime(2021, 8, 11, 19, 8, 27, tzinfo=timezone.utc)


def _populated() -> Manager:
    state = Manager()
    first = state.add_file_revision(
        "foo/bar", "1.1", Mark(1), [b"main"], "adam", "initial", T0
    )
    second = state.add_file_revision(
        "foo/baz", "1.2", None, [b"main", b"dev"], "adam", "remove", T0
    )
    state.add_patchset(Mark(3), b"main", T0, [first, second])
    state.add_branch_to_patchset_mark(Mark(3), b"dev")
    state.add_tag(b"v1", first)
    state.add_tag_mark(b"v1", Mark(4))
    state.set_raw_marks(b":1 abc\n:3 def\n")
    return state


def test_add_file_revision_returns_existing_id_for_same_key():
    state = Manager()
    first = state.add_file_revision("a", "1.1", Mark(1), [], "x", "m", T0)
    second = state.add_file_revision("b", "1.1", Mark(2), [], "x", "m", T0)
    again = state.add_file_revision("a", "1.1", Mark(9), [], "y", "n", T0)
    assert first != second
    assert again == first
    assert state.get_file_revision("a", "1.1").mark == Mark(1)


def test_get_file_revision_by_key_and_id_agree():
    state = _populated()
    revision = state.get_file_revision("foo/baz", "1.2")
    assert revision.mark is None
    assert revision.branches == (b"main", b"dev")
    assert state.get_file_revision_by_id(1) == revision


def test_missing_file_revision_errors():
    state = Manager()
    with pytest.raises(NoFileRevisionError):
        state.get_file_revision("nope", "1.1")
    with pytest.raises(NoFileRevisionError):
        state.get_file_revision_by_id(0)


def test_patchset_content_lookup_ignores_order():
    state = _populated()
    assert state.get_mark_from_patchset_content(T0, [1, 0]) == Mark(3)
    assert state.get_mark_from_patchset_content(T0, [0]) is None
    later = T0 + timedelta(seconds=1)
    assert state.get_mark_from_patchset_content(later, [0, 1]) is None


def test_patchset_from_mark():
    state = _populated()
    patchset = state.get_patchset_from_mark(Mark(3))
    assert patchset.time == T0
    assert patchset.file_revisions == frozenset({0, 1})
    with pytest.raises(NoPatchSetError):
        state.get_patchset_from_mark(Mark(99))


def test_last_patchset_mark_on_branch():
    state = _populated()
    assert state.get_last_patchset_mark_on_branch(b"main") == Mark(3)
    assert state.get_last_patchset_mark_on_branch(b"dev") == Mark(3)
    assert state.get_last_patchset_mark_on_branch(b"other") is None
    state.add_patchset(Mark(7), b"main", T0, [0])
    assert state.get_last_patchset_mark_on_branch(b"main") == Mark(7)


def test_last_patchset_for_file_revision_picks_latest_time():
    state = Manager()
    state.add_patchset(Mark(1), b"main", T0, [5])
    state.add_patchset(Mark(2), b"main", T0 + timedelta(hours=1), [5, 6])
    state.add_patchset(Mark(3), b"main", T0 - timedelta(hours=1), [5, 7])
    mark, patchset = state.get_last_patchset_for_file_revision(5)
    assert mark == Mark(2)
    assert patchset.time == T0 + timedelta(hours=1)
    assert state.get_last_patchset_for_file_revision(42) is None


def test_last_patchset_for_file_revision_keeps_first_on_tie():
    state = Manager()
    state.add_patchset(Mark(1), b"main", T0, [5])
    state.add_patchset(Mark(2), b"dev", T0, [5, 6])
    mark, _ = state.get_last_patchset_for_file_revision(5)
    assert mark == Mark(1)
    assert state.get_patchset_marks_for_file_revision(5) == [Mark(1), Mark(2)]


def test_tags():
    state = _populated()
    assert state.get_tags() == [b"v1"]
    assert state.get_file_revisions_for_tag(b"v1") == frozenset({0})
    assert state.get_file_revisions_for_tag(b"v2") is None
    assert state.get_mark_for_tag(b"v1") == Mark(4)
    assert state.get_mark_for_tag(b"v2") is None


def test_raw_marks_from_stream():
    state = Manager()
    assert state.get_raw_marks() == b""
    state.set_raw_marks(io.BytesIO(b":5 xyz\n"))
    assert state.get_raw_marks() == b":5 xyz\n"


def test_save_load_round_trip():
    state = _populated()
    buffer = io.BytesIO()
    state.save(buffer)
    buffer.seek(0)
    loaded = Manager.load(buffer)

    assert loaded.get_file_revision("foo/bar", "1.1") == state.get_file_revision(
        "foo/bar", "1.1"
    )
    assert loaded.get_file_revision_by_id(1) == state.get_file_revision_by_id(1)
    assert loaded.get_mark_from_patchset_content(T0, [0, 1]) == Mark(3)
    assert loaded.get_last_patchset_mark_on_branch(b"dev") == Mark(3)
    assert loaded.get_file_revisions_for_tag(b"v1") == frozenset({0})
    assert loaded.get_mark_for_tag(b"v1") == Mark(4)
    assert loaded.get_raw_marks() == state.get_raw_marks()
    assert loaded.add_file_revision("new", "1.1", None, [], "a", "b", T0) == 2


def test_load_rejects_unknown_version():
    data = gzip.compress(json.dumps({"version": 3}).encode("utf-8"))
    with pytest.raises(UnknownVersionError) as info:
        Manager.load(io.BytesIO(data))
    assert info.value.version == 3


def test_load_rejects_garbage():
    with pytest.raises(StateError):
        Manager.load(b"not a state file")