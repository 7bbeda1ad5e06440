import io

import pytest

from cvsfastimport.marks import (
    Mark,
    MarkParsingError,
    MissingCommitMessageError,
    MissingCommitterError,
    get_last_mark,
)


@pytest.mark.parametrize(
    "data, want",
    [
        (b"", None),
        (b"\n", None),
        (b":25 0123456789012345678901234567890123456789", Mark(25)),
        (b":25 0123456789012345678901234567890123456789\n\n", Mark(25)),
        (b":1 aaaa\n:2 bbbb\n:30 cccc\n", Mark(30)),
    ],
)
def test_get_last_mark_ok(data, want):
    assert get_last_mark(io.BytesIO(data)) == want


@pytest.mark.parametrize(
    "data",
    [b"not a mark", b":xx xx", b":25", b":25 \n", b"25 xx"],
)
def test_get_last_mark_error(data):
    with pytest.raises(MarkParsingError):
        get_last_mark(io.BytesIO(data))


def test_get_last_mark_from_bytes():
    assert get_last_mark(b":7 deadbeef\n") == Mark(7)


def test_mark_display_and_order():
    assert str(Mark(25)) == ":25"
    assert int(Mark(3)) == 3
    assert sorted([Mark(3), Mark(1), Mark(2)]) == [Mark(1), Mark(2), Mark(3)]


def test_error_messages():
    assert str(MissingCommitterError()) == "a committer must be provided"
    assert str(MissingCommitMessageError()) == "a commit message must be provided"