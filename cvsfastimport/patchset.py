"""Detection of patchsets in a stream of per-file commits."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Generic, Hashable, Iterator, TypeVar, Union

ID = TypeVar("ID")

PathLike = Union[str, bytes, "os.PathLike[str]", "os.PathLike[bytes]"]


class PatchSetError(Exception):
    """Base class for errors raised by patchsets."""


class FileNotInPatchSetError(PatchSetError):
    """Raised when a file is not part of a patchset."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"file does not exist: {path}")


class MissingFileContentError(PatchSetError):
    """Raised when a file in a patchset has no content ID."""

    def __init__(self) -> None:
        super().__init__("unable to find content ID for file")


@dataclass
class PatchSet(Generic[ID]):
    """A detected patchset.

    ``files`` maps each path to every file ID squashed into the patchset for
    it, oldest first; the last one is the file's content.
    """

    time: datetime
    author: str = ""
    message: str = ""
    files: dict[str, list[ID]] = field(default_factory=dict)

    def file_content(self, path: PathLike) -> ID:
        """Return the content ID of a file in the patchset."""
        name = os.fsdecode(path)
        ids = self.files.get(name)
        if ids is None:
            raise FileNotInPatchSetError(name)
        if not ids:
            raise MissingFileContentError()
        return ids[-1]

    def file_content_items(self) -> Iterator[tuple[str, ID]]:
        """Yield each file with its content ID."""
        for path, ids in self.files.items():
            if ids:
                yield path, ids[-1]

    def file_revision_items(self) -> Iterator[tuple[str, list[ID]]]:
        """Yield each file with all the IDs squashed into the patchset."""
        yield from self.files.items()


@dataclass(frozen=True)
class _CommitKey:
    author: str
    message: str


@dataclass(frozen=True)
class _FileCommit(Generic[ID]):
    path: str
    id: ID
    time: datetime


class Detector(Generic[ID]):
    """Groups file commits into patchsets.

    File commits with the same author and message belong to one patchset as
    long as each follows the previous one by no more than ``delta``.
    """

    def __init__(self, delta: Union[timedelta, int, float]) -> None:
        self.delta = delta if isinstance(delta, timedelta) else timedelta(seconds=delta)
        self._commits: dict[_CommitKey, list[_FileCommit[ID]]] = {}

    def add_file_commit(
        self, path: PathLike, id: ID, author: str, message: str, time: datetime
    ) -> None:
        """Add one file commit; ``id`` is returned in the patchset it joins."""
        key = _CommitKey(author, message)
        self._commits.setdefault(key, []).append(
            _FileCommit(os.fsdecode(path), id, time)
        )

    def _key_patchsets(
        self, key: _CommitKey, commits: list[_FileCommit[ID]]
    ) -> Iterator[PatchSet[ID]]:
        last: Union[datetime, None] = None
        pending: dict[str, list[ID]] = {}
        for commit in sorted(commits, key=lambda c: c.time):
            if last is not None and commit.time - last > self.delta:
                yield PatchSet(last, key.author, key.message, pending)
                pending = {}
            last = commit.time
            pending.setdefault(commit.path, []).append(commit.id)
        if pending and last is not None:
            yield PatchSet(last, key.author, key.message, pending)

    def patchsets(self) -> list[PatchSet[ID]]:
        """Return the detected patchsets in ascending time order."""
        found = [
            patchset
            for key, commits in self._commits.items()
            for patchset in self._key_patchsets(key, commits)
        ]
        found.sort(key=lambda patchset: patchset.time)
        return found


__all_ids__: tuple[type, ...] = (Hashable,)