"""Parsing of RCS ,v files into their admin, delta and delta text sections."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from .num import CommaVError, Num, RcsParseError

_I32_MAX = (1 << 31) - 1
_U32_MAX = (1 << 32) - 1

_WS = re.compile(rb"[ \t\r\n]*")
_NUMLIKE = re.compile(rb"[0-9.]+")
_DIGITS = re.compile(rb"[0-9]+")
_ID = re.compile(rb"[^\x00-\x1f\x7f-\xff$,:;@]*")
_SYM = re.compile(rb"[^\x00-\x1f\x7f-\xff$,.:;@]*")
_INTSTRING = re.compile(rb"[\x0c\x20-\x3f\x41-\x7e]*")


@dataclass
class Admin:
    """The admin section at the top of a ,v file."""

    head: Optional[Num] = None
    branch: Optional[Num] = None
    access: list[bytes] = field(default_factory=list)
    symbols: dict[bytes, Num] = field(default_factory=dict)
    locks: dict[bytes, Num] = field(default_factory=dict)
    strict: bool = False
    integrity: Optional[bytes] = None
    comment: Optional[bytes] = None
    expand: Optional[bytes] = None


@dataclass
class Delta:
    """The metadata of a single revision."""

    date: datetime
    author: bytes
    state: Optional[bytes] = None
    branches: list[Num] = field(default_factory=list)
    next: Optional[Num] = None
    commit_id: Optional[bytes] = None


@dataclass
class DeltaText:
    """The log message and text (content or ed script) of a revision."""

    log: bytes = b""
    text: bytes = b""


@dataclass
class RcsFile:
    """A whole parsed ,v file."""

    admin: Admin
    delta: dict[Num, Delta] = field(default_factory=dict)
    desc: bytes = b""
    delta_text: dict[Num, DeltaText] = field(default_factory=dict)

    def head(self) -> Optional[Num]:
        """Return the head revision number, if any."""
        return self.admin.head

    def head_delta(self) -> Optional[tuple[Num, Delta]]:
        """Return the head revision number with its delta, if both exist."""
        head = self.admin.head
        if head is None or head not in self.delta:
            return None
        return head, self.delta[head]

    def head_delta_text(self) -> Optional[tuple[Num, DeltaText]]:
        """Return the head revision number with its delta text, if both exist."""
        head = self.admin.head
        if head is None or head not in self.delta_text:
            return None
        return head, self.delta_text[head]

    def revision(self, num: Num) -> Optional[tuple[Delta, DeltaText]]:
        """Return the delta and delta text of a revision, if both exist."""
        delta = self.delta.get(num)
        text = self.delta_text.get(num)
        if delta is None or text is None:
            return None
        return delta, text


class _Fail(Exception):
    """Internal, recoverable parse failure at a position."""

    def __init__(self, pos: int, kind: str) -> None:
        super().__init__(kind)
        self.pos = pos
        self.kind = kind


_Parser = Callable[[bytes, int], "tuple[Any, int]"]


def _ws0(data: bytes, pos: int) -> int:
    return _WS.match(data, pos).end()


def _ws1(data: bytes, pos: int) -> int:
    end = _ws0(data, pos)
    if end == pos:
        raise _Fail(pos, "MultiSpace")
    return end


def _tag(data: bytes, pos: int, literal: bytes) -> int:
    if not data.startswith(literal, pos):
        raise _Fail(pos, "Tag")
    return pos + len(literal)


def _semi(data: bytes, pos: int) -> int:
    pos = _tag(data, _ws0(data, pos), b";")
    return _ws0(data, pos)


def _num(data: bytes, pos: int) -> tuple[Num, int]:
    match = _NUMLIKE.match(data, pos)
    if match is None:
        raise _Fail(pos, "TakeWhile1")
    try:
        value = Num.from_bytes(match.group())
    except CommaVError:
        raise _Fail(pos, "MapRes") from None
    return value, match.end()


def _id(data: bytes, pos: int) -> tuple[bytes, int]:
    match = _ID.match(data, pos)
    return match.group(), match.end()


def _sym(data: bytes, pos: int) -> tuple[bytes, int]:
    match = _SYM.match(data, pos)
    return match.group(), match.end()


def _string(data: bytes, pos: int) -> tuple[bytes, int]:
    pos = _tag(data, pos, b"@")
    out = bytearray()
    while True:
        at = data.find(b"@", pos)
        if at == -1:
            raise _Fail(len(data), "Tag")
        out += data[pos:at]
        if data.startswith(b"@@", at):
            out += b"@"
            pos = at + 2
        else:
            return bytes(out), at + 1


def _integrity_string(data: bytes, pos: int) -> tuple[bytes, int]:
    pos = _tag(data, pos, b"@")
    match = _INTSTRING.match(data, pos)
    end = _tag(data, match.end(), b"@")
    return match.group(), end


def _digits(data: bytes, pos: int, limit: int) -> tuple[int, int]:
    match = _DIGITS.match(data, pos)
    if match is None:
        raise _Fail(pos, "Digit")
    value = int(match.group())
    if value > limit:
        raise _Fail(pos, "MapRes")
    return value, match.end()


def _date(data: bytes, pos: int) -> tuple[datetime, int]:
    start = pos
    year, pos = _digits(data, pos, _I32_MAX)
    rest = []
    for _ in range(5):
        pos = _tag(data, pos, b".")
        value, pos = _digits(data, pos, _U32_MAX)
        rest.append(value)
    month, day, hour, minute, second = rest

    if year < 100:
        year += 1900
    if hour >= 24 or minute >= 60 or second > 60:
        raise _Fail(start, "MapRes")
    try:
        when = datetime(
            year, month, day, hour, minute, min(second, 59), tzinfo=timezone.utc
        )
        if second == 60:
            when += timedelta(seconds=1)
    except (ValueError, OverflowError):
        raise _Fail(start, "MapRes") from None
    return when, pos


def _opt(parser: _Parser) -> _Parser:
    def parse(data: bytes, pos: int) -> tuple[Any, int]:
        try:
            return parser(data, pos)
        except _Fail:
            return None, pos

    return parse


def _keyword(word: bytes, value: _Parser) -> _Parser:
    def parse(data: bytes, pos: int) -> tuple[Any, int]:
        pos = _ws1(data, _tag(data, pos, word))
        result, pos = value(data, pos)
        return result, _semi(data, pos)

    return parse


def _keyword_list(word: bytes, item: _Parser) -> _Parser:
    def parse(data: bytes, pos: int) -> tuple[list, int]:
        pos = _tag(data, pos, word)
        items = []
        while True:
            try:
                value, end = item(data, _ws1(data, pos))
            except _Fail:
                break
            items.append(value)
            pos = end
        return items, _semi(data, pos)

    return parse


def _keyword_pairs(word: bytes, key: _Parser) -> _Parser:
    def parse(data: bytes, pos: int) -> tuple[dict, int]:
        pos = _tag(data, pos, word)
        pairs = {}
        while True:
            try:
                name, end = key(data, _ws0(data, pos))
                end = _ws0(data, _tag(data, _ws0(data, end), b":"))
                value, end = _num(data, end)
                end = _ws0(data, end)
            except _Fail:
                break
            pairs[name] = value
            pos = end
        return pairs, _semi(data, pos)

    return parse


_UNSET = object()


def _permutation(data: bytes, pos: int, parsers: list[_Parser]) -> tuple[list, int]:
    """Apply each parser once, in whatever order the input presents them."""
    results: list[Any] = [_UNSET] * len(parsers)
    while True:
        failed = False
        for index, parser in enumerate(parsers):
            if results[index] is not _UNSET:
                continue
            try:
                results[index], pos = parser(data, pos)
            except _Fail:
                failed = True
                continue
            break
        else:
            if failed:
                raise _Fail(pos, "Permutation")
            return results, pos


_BRANCH_FIELD = _keyword(b"branch", _opt(_num))


def _branch(data: bytes, pos: int) -> tuple[Optional[Num], int]:
    try:
        result, end = _BRANCH_FIELD(data, pos)
    except _Fail:
        return None, pos
    if result is None:
        raise RcsParseError(data[pos:], "branch without revision")
    return result, end


def _strict(data: bytes, pos: int) -> tuple[bool, int]:
    try:
        end = _ws0(data, _tag(data, pos, b"strict"))
        end = _ws0(data, _tag(data, end, b";"))
    except _Fail:
        return False, pos
    return True, end


_ADMIN_FIELDS: list[_Parser] = [
    _keyword(b"head", _opt(_num)),
    _branch,
    _keyword_list(b"access", _id),
    _keyword_pairs(b"symbols", _sym),
    _keyword_pairs(b"locks", _id),
    _strict,
    _opt(_keyword(b"integrity", _integrity_string)),
    _opt(_keyword(b"comment", _string)),
    _opt(_keyword(b"expand", _string)),
]

_DELTA_FIELDS: list[_Parser] = [
    _keyword(b"date", _date),
    _keyword(b"author", _id),
    _keyword(b"state", _opt(_id)),
    _keyword_list(b"branches", _num),
    _keyword(b"next", _opt(_num)),
    _opt(_keyword(b"commitid", _sym)),
]


def _admin(data: bytes, pos: int) -> tuple[Admin, int]:
    values, pos = _permutation(data, pos, _ADMIN_FIELDS)
    return Admin(*values), pos


def _delta(data: bytes, pos: int) -> tuple[tuple[Num, Delta], int]:
    num, pos = _num(data, pos)
    pos = _ws1(data, pos)
    values, pos = _permutation(data, pos, _DELTA_FIELDS)
    return (num, Delta(*values)), pos


def _delta_text(data: bytes, pos: int) -> tuple[tuple[Num, DeltaText], int]:
    num, pos = _num(data, pos)
    pos = _tag(data, _ws1(data, pos), b"log")
    log, pos = _string(data, _ws1(data, pos))
    pos = _tag(data, _ws1(data, pos), b"text")
    text, pos = _string(data, _ws1(data, pos))
    return (num, DeltaText(log, text)), pos


def _desc(data: bytes, pos: int) -> tuple[bytes, int]:
    pos = _ws1(data, _tag(data, pos, b"desc"))
    return _string(data, pos)


def _many_terminated(data: bytes, pos: int, parser: _Parser) -> tuple[list, int]:
    items = []
    while True:
        try:
            value, end = parser(data, pos)
        except _Fail:
            return items, pos
        items.append(value)
        pos = _ws0(data, end)


def _file(data: bytes, pos: int) -> tuple[RcsFile, int]:
    admin, pos = _admin(data, _ws0(data, pos))
    pos = _ws0(data, pos)
    deltas, pos = _many_terminated(data, pos, _delta)
    desc, pos = _desc(data, pos)
    pos = _ws0(data, pos)
    texts, pos = _many_terminated(data, pos, _delta_text)
    return RcsFile(admin, dict(deltas), desc, dict(texts)), pos


def _run(parser: _Parser, data: bytes) -> Any:
    data = bytes(data)
    try:
        value, _ = parser(data, 0)
    except _Fail as exc:
        raise RcsParseError(data[exc.pos:], exc.kind) from None
    return value


def parse(data: bytes) -> RcsFile:
    """Parse a whole ,v file."""
    return _run(_file, data)


def parse_admin(data: bytes) -> Admin:
    """Parse the admin section at the start of ``data``."""
    return _run(_admin, data)


def parse_delta(data: bytes) -> tuple[Num, Delta]:
    """Parse one delta at the start of ``data``."""
    return _run(_delta, data)


def parse_delta_text(data: bytes) -> tuple[Num, DeltaText]:
    """Parse one delta text at the start of ``data``."""
    return _run(_delta_text, data)


def parse_desc(data: bytes) -> bytes:
    """Parse the description at the start of ``data``."""
    return _run(_desc, data)


def parse_string(data: bytes) -> bytes:
    """Parse an ``@``-delimited string, unescaping doubled ``@``."""
    return _run(_string, data)


def parse_integrity_string(data: bytes) -> bytes:
    """Parse an ``@``-delimited integrity string."""
    return _run(_integrity_string, data)


def parse_date(data: bytes) -> datetime:
    """Parse an RCS ``Y.m.d.H.M.S`` date as a UTC datetime."""
    return _run(_date, data)