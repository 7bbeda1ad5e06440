"""Revision numbers as found in RCS ,v files, and the errors raised on them."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

_U64_LIMIT = 1 << 64
_COMPONENT = re.compile(r"\+?[0-9]+", re.ASCII)


class CommaVError(Exception):
    """Base class for errors raised while handling ,v files."""


class InvalidTypesForContains(CommaVError):
    """Raised when ``contains`` is not called on a branch with a commit."""

    def __init__(self) -> None:
        super().__init__("contains can only be invoked on a branch, with a commit")


class RcsParseError(CommaVError):
    """Raised when a ,v file cannot be parsed."""

    def __init__(self, location: bytes, kind: str) -> None:
        self.location = bytes(location)
        self.kind = kind
        super().__init__(f"parse error of kind {kind} at location {self.location!r}")


def _parse_component(part: str) -> int:
    if not _COMPONENT.fullmatch(part):
        raise CommaVError(f"invalid revision number component: {part!r}")
    value = int(part)
    if value >= _U64_LIMIT:
        raise CommaVError(f"revision number component too large: {part!r}")
    return value


@total_ordering
@dataclass(frozen=True)
class Num:
    """A dotted revision number such as ``1.1`` or ``1.1.2.2.2.1``.

    Numbers with an even count of components are commits; odd ones are
    branches.  Zero components, which CVS uses for magic branch numbers, are
    dropped when parsing.
    """

    parts: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "parts", tuple(self.parts))

    @classmethod
    def parse(cls, text: str) -> Num:
        """Parse a revision number from its dotted text form."""
        values = (_parse_component(part) for part in text.split("."))
        return cls(tuple(value for value in values if value != 0))

    @classmethod
    def from_bytes(cls, data: bytes) -> Num:
        """Parse a revision number from UTF-8 bytes."""
        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CommaVError(str(exc)) from exc
        return cls.parse(text)

    @property
    def is_branch(self) -> bool:
        return len(self.parts) % 2 == 1

    @property
    def is_commit(self) -> bool:
        return not self.is_branch

    def contains(self, other: Num) -> bool:
        """Return whether the commit ``other`` lies on this branch or an ancestor of it."""
        if not (self.is_branch and other.is_commit):
            raise InvalidTypesForContains()

        branch = self.parts
        commit = other.parts
        if len(commit) > len(branch) + 1:
            return False

        for i in range(0, len(branch) - 1, 2):
            if i >= len(commit):
                return True
            if commit[i] != branch[i]:
                return False
            if i + 1 >= len(commit):
                raise InvalidTypesForContains()
            if commit[i + 1] > branch[i + 1]:
                return False

        leaf = len(branch) - 1
        if leaf < len(commit) and commit[leaf] != branch[leaf]:
            return False
        return True

    def to_branch(self) -> Num:
        """Return the branch this number is on; branches return themselves."""
        if self.is_branch:
            return self
        return Num(self.parts[:-1])

    def _sort_key(self) -> tuple[int, tuple[int, ...]]:
        return (0 if self.is_branch else 1, self.parts)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Num):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.parts)