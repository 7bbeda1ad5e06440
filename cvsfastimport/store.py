"""Persistent stores of patchsets and tags, and the errors of the state layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from .marks import Mark


class StateError(Exception):
    """Base class for errors raised by the state layer."""


class NoFileRevisionError(StateError):
    """Raised when a file revision cannot be found."""

    def __init__(self, kind: str, value: object) -> None:
        self.kind = kind
        self.value = value
        super().__init__(f"no file revision exists for {kind} {value}")


class NoPatchSetError(StateError):
    """Raised when no patchset exists for a mark."""

    def __init__(self, mark: Mark) -> None:
        self.mark = mark
        super().__init__(f"no patchset exists for mark {mark}")


class UnknownVersionError(StateError):
    """Raised when stored state has an unknown serialisation version."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"unknown serialised data version: {version}")


@dataclass(frozen=True)
class StoredPatchSet:
    """A patchset as committed: its time and the file revision IDs it holds."""

    time: datetime
    file_revisions: frozenset[int]

    def __post_init__(self) -> None:
        object.__setattr__(self, "file_revisions", frozenset(self.file_revisions))


def _encode_bytes(value: bytes) -> str:
    return bytes(value).hex()


def _decode_bytes(value: str) -> bytes:
    return bytes.fromhex(value)


def _patchset_to_dict(patchset: StoredPatchSet) -> dict[str, Any]:
    return {
        "time": patchset.time.isoformat(),
        "file_revisions": sorted(patchset.file_revisions),
    }


def _patchset_from_dict(data: dict[str, Any]) -> StoredPatchSet:
    return StoredPatchSet(
        datetime.fromisoformat(data["time"]), frozenset(data["file_revisions"])
    )


class PatchSetStore:
    """Patchsets keyed by the mark of their commit, with lookup indexes."""

    def __init__(self) -> None:
        self._patchsets: dict[Mark, StoredPatchSet] = {}
        self._by_file_revision: dict[int, list[Mark]] = {}
        self._by_branch: dict[bytes, list[Mark]] = {}
        self._by_content: dict[StoredPatchSet, Mark] = {}

    def add(
        self,
        mark: Mark,
        branch: bytes,
        time: datetime,
        file_revision_ids: Iterable[int],
    ) -> None:
        """Record a committed patchset on a branch."""
        self._by_branch.setdefault(bytes(branch), []).append(mark)

        patchset = StoredPatchSet(time, frozenset(file_revision_ids))
        for file_revision_id in sorted(patchset.file_revisions):
            self._by_file_revision.setdefault(file_revision_id, []).append(mark)

        self._by_content[patchset] = mark
        self._patchsets[mark] = patchset

    def add_branch(self, mark: Mark, branch: bytes) -> None:
        """Record that an existing patchset is also on ``branch``."""
        self._by_branch.setdefault(bytes(branch), []).append(mark)

    def mark_for_content(
        self, time: datetime, file_revision_ids: Iterable[int]
    ) -> Optional[Mark]:
        """Return the mark of a patchset with exactly this time and content."""
        return self._by_content.get(StoredPatchSet(time, frozenset(file_revision_ids)))

    def get_by_mark(self, mark: Mark) -> Optional[StoredPatchSet]:
        """Return the patchset committed under ``mark``, if any."""
        return self._patchsets.get(mark)

    def marks_for_file_revision(self, id: int) -> Optional[list[Mark]]:
        """Return the marks of every patchset holding a file revision, if any."""
        marks = self._by_file_revision.get(id)
        return list(marks) if marks is not None else None

    def last_mark_on_branch(self, branch: bytes) -> Optional[Mark]:
        """Return the most recently recorded mark on a branch, if any."""
        marks = self._by_branch.get(bytes(branch))
        return marks[-1] if marks else None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation of the store."""
        return {
            "patchsets": [
                {"mark": mark.value, **_patchset_to_dict(patchset)}
                for mark, patchset in sorted(self._patchsets.items())
            ],
            "by_file_revision": [
                [file_revision_id, [mark.value for mark in marks]]
                for file_revision_id, marks in sorted(self._by_file_revision.items())
            ],
            "by_branch": [
                [_encode_bytes(branch), [mark.value for mark in marks]]
                for branch, marks in self._by_branch.items()
            ],
            "by_content": [
                {"mark": mark.value, **_patchset_to_dict(patchset)}
                for patchset, mark in self._by_content.items()
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PatchSetStore:
        """Rebuild a store from :meth:`to_dict` output."""
        store = cls()
        for entry in data["patchsets"]:
            store._patchsets[Mark(entry["mark"])] = _patchset_from_dict(entry)
        for file_revision_id, marks in data["by_file_revision"]:
            store._by_file_revision[int(file_revision_id)] = [Mark(m) for m in marks]
        for branch, marks in data["by_branch"]:
            store._by_branch[_decode_bytes(branch)] = [Mark(m) for m in marks]
        for entry in data["by_content"]:
            store._by_content[_patchset_from_dict(entry)] = Mark(entry["mark"])
        return store


class TagStore:
    """The file revisions on each tag, and the marks of their tag commits."""

    def __init__(self) -> None:
        self._marks: dict[bytes, Mark] = {}
        self._tags: dict[bytes, set[int]] = {}

    def add_mark(self, tag: bytes, mark: Mark) -> None:
        """Record the mark of the commit created for a tag."""
        self._marks[bytes(tag)] = mark

    def add_tag(self, tag: bytes, file_revision_id: int) -> None:
        """Record that a file revision carries a tag."""
        self._tags.setdefault(bytes(tag), set()).add(file_revision_id)

    def file_revisions(self, tag: bytes) -> Optional[frozenset[int]]:
        """Return the file revision IDs on a tag, if the tag is known."""
        ids = self._tags.get(bytes(tag))
        return frozenset(ids) if ids is not None else None

    def mark(self, tag: bytes) -> Optional[Mark]:
        """Return the mark of a tag's commit, if one was recorded."""
        return self._marks.get(bytes(tag))

    def tags(self) -> list[bytes]:
        """Return the names of all tags with file revisions."""
        return list(self._tags)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation of the store."""
        return {
            "marks": [
                [_encode_bytes(tag), mark.value] for tag, mark in self._marks.items()
            ],
            "tags": [[_encode_bytes(tag), sorted(ids)] for tag, ids in self._tags.items()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TagStore:
        """Rebuild a store from :meth:`to_dict` output."""
        store = cls()
        for tag, mark in data["marks"]:
            store._marks[_decode_bytes(tag)] = Mark(mark)
        for tag, ids in data["tags"]:
            store._tags[_decode_bytes(tag)] = {int(i) for i in ids}
        return store