"""Storage of the file revisions seen while importing."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Union

from .marks import Mark

PathLike = Union[str, bytes, "os.PathLike[str]", "os.PathLike[bytes]"]


@dataclass(frozen=True, order=True)
class FileRevisionKey:
    """Identifies a file revision by its repository path and revision number."""

    path: str
    revision: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", os.fsdecode(self.path))
        object.__setattr__(self, "revision", str(self.revision))


@dataclass(frozen=True)
class FileRevision:
    """A single revision of a file.

    ``mark`` names the blob holding the content; it is ``None`` when the
    revision deletes the file.
    """

    key: FileRevisionKey
    mark: Optional[Mark]
    branches: tuple[bytes, ...]
    author: str
    message: str
    time: datetime

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "branches", tuple(bytes(branch) for branch in self.branches)
        )


def _revision_to_dict(revision: FileRevision) -> dict[str, Any]:
    return {
        "path": revision.key.path,
        "revision": revision.key.revision,
        "mark": revision.mark.value if revision.mark is not None else None,
        "branches": [branch.hex() for branch in revision.branches],
        "author": revision.author,
        "message": revision.message,
        "time": revision.time.isoformat(),
    }


def _revision_from_dict(data: dict[str, Any]) -> FileRevision:
    mark = data["mark"]
    return FileRevision(
        key=FileRevisionKey(data["path"], data["revision"]),
        mark=Mark(int(mark)) if mark is not None else None,
        branches=tuple(bytes.fromhex(branch) for branch in data["branches"]),
        author=data["author"],
        message=data["message"],
        time=datetime.fromisoformat(data["time"]),
    )


@dataclass
class FileRevisionStore:
    """File revisions indexed by ID, by key and by mark.

    IDs are handed out in insertion order, starting at zero.
    """

    _revisions: list[FileRevision] = field(default_factory=list)
    _by_key: dict[FileRevisionKey, int] = field(default_factory=dict)
    _by_mark: dict[Mark, int] = field(default_factory=dict)

    def add(
        self,
        key: FileRevisionKey,
        mark: Optional[Mark],
        branches: Iterable[bytes],
        author: str,
        message: str,
        time: datetime,
    ) -> int:
        """Store a file revision and return its ID.

        A key that is already stored keeps its original revision and ID.
        """
        existing = self._by_key.get(key)
        if existing is not None:
            return existing

        file_revision_id = len(self._revisions)
        self._revisions.append(
            FileRevision(
                key=key,
                mark=mark,
                branches=tuple(branches),
                author=author,
                message=message,
                time=time,
            )
        )
        self._by_key[key] = file_revision_id
        if mark is not None:
            self._by_mark[mark] = file_revision_id
        return file_revision_id

    def get_by_id(self, id: int) -> Optional[FileRevision]:
        """Return the revision with the given ID, if any."""
        if 0 <= id < len(self._revisions):
            return self._revisions[id]
        return None

    def get_by_key(self, path: PathLike, revision: str) -> Optional[FileRevision]:
        """Return the revision of ``path`` numbered ``revision``, if any."""
        file_revision_id = self._by_key.get(FileRevisionKey(path, revision))
        if file_revision_id is None:
            return None
        return self.get_by_id(file_revision_id)

    def __len__(self) -> int:
        return len(self._revisions)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation of the store."""
        return {"file_revisions": [_revision_to_dict(r) for r in self._revisions]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileRevisionStore:
        """Rebuild a store from :meth:`to_dict` output."""
        store = cls()
        for entry in data["file_revisions"]:
            revision = _revision_from_dict(entry)
            file_revision_id = len(store._revisions)
            store._revisions.append(revision)
            store._by_key[revision.key] = file_revision_id
            if revision.mark is not None:
                store._by_mark[revision.mark] = file_revision_id
        return store