"""Marks referring to fast-import objects, mark files, and fast-import errors."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import BinaryIO, Optional, Union

_USIZE_LIMIT = 1 << 64
_DIGITS = re.compile(rb"[0-9]+")
_SPACE = re.compile(rb"[ \t\r\n]+")
_ALNUM = re.compile(rb"[A-Za-z0-9]+")


class FastImportError(Exception):
    """Base class for errors raised while producing fast-import data."""


class MarkParsingError(FastImportError):
    """Raised when a mark file line cannot be parsed."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"mark parsing error: {kind}")


class MissingCommitterError(FastImportError):
    """Raised when a commit is built without a committer."""

    def __init__(self) -> None:
        super().__init__("a committer must be provided")


class MissingCommitMessageError(FastImportError):
    """Raised when a commit is built without a message."""

    def __init__(self) -> None:
        super().__init__("a commit message must be provided")


@dataclass(frozen=True, order=True)
class Mark:
    """A mark naming a blob or commit sent to fast-import."""

    value: int

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f":{self.value}"


def _parse_mark_line(line: bytes) -> Mark:
    if not line.startswith(b":"):
        raise MarkParsingError("Tag")
    digits = _DIGITS.match(line, 1)
    if digits is None:
        raise MarkParsingError("Digit")
    space = _SPACE.match(line, digits.end())
    if space is None:
        raise MarkParsingError("MultiSpace")
    if _ALNUM.match(line, space.end()) is None:
        raise MarkParsingError("AlphaNumeric")
    value = int(digits.group())
    if value >= _USIZE_LIMIT:
        raise MarkParsingError("MapRes")
    return Mark(value)


def get_last_mark(stream: Union[bytes, BinaryIO]) -> Optional[Mark]:
    """Return the mark on the last non-empty line of a mark file, if any."""
    data = bytes(stream) if isinstance(stream, (bytes, bytearray)) else stream.read()
    for line in reversed(data.split(b"\n")):
        if line:
            return _parse_mark_line(line)
    return None