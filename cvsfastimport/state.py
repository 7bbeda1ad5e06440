"""The in-memory import state, and its persistence between runs."""

from __future__ import annotations

import gzip
import json
import threading
import zlib
from datetime import datetime
from typing import BinaryIO, Iterable, Optional, Union

from .marks import Mark
from .revisions import FileRevision, FileRevisionKey, FileRevisionStore, PathLike
from .store import (
    NoFileRevisionError,
    NoPatchSetError,
    PatchSetStore,
    StateError,
    StoredPatchSet,
    TagStore,
    UnknownVersionError,
)

_VERSION = 2

Readable = Union[bytes, bytearray, memoryview, BinaryIO]


def _read_all(source: Readable) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    return source.read()


class Manager:
    """Holds the file revisions, patchsets, tags and marks of an import.

    A single manager is shared by every part of the import; all methods are
    safe to call from several threads.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._file_revisions = FileRevisionStore()
        self._patchsets = PatchSetStore()
        self._tags = TagStore()
        self._raw_marks = b""

    @classmethod
    def load(cls, stream: Readable) -> Manager:
        """Read a state previously written by :meth:`save`."""
        raw = _read_all(stream)
        try:
            document = json.loads(gzip.decompress(raw).decode("utf-8"))
        except (OSError, EOFError, zlib.error, UnicodeDecodeError, ValueError) as exc:
            raise StateError(f"error loading from store: {exc}") from exc
        if not isinstance(document, dict):
            raise StateError("error loading from store: unexpected document shape")

        version = document.get("version")
        if version != _VERSION:
            raise UnknownVersionError(version if isinstance(version, int) else -1)

        manager = cls()
        try:
            manager._file_revisions = FileRevisionStore.from_dict(
                document["file_revisions"]
            )
            manager._patchsets = PatchSetStore.from_dict(document["patchsets"])
            manager._tags = TagStore.from_dict(document["tags"])
            manager._raw_marks = bytes.fromhex(document["raw_marks"])
        except (KeyError, TypeError, ValueError) as exc:
            raise StateError(f"error loading from store: {exc}") from exc
        return manager

    def save(self, stream: BinaryIO) -> None:
        """Write the whole state to a binary stream."""
        with self._lock:
            document = {
                "version": _VERSION,
                "file_revisions": self._file_revisions.to_dict(),
                "patchsets": self._patchsets.to_dict(),
                "tags": self._tags.to_dict(),
                "raw_marks": self._raw_marks.hex(),
            }
        stream.write(gzip.compress(json.dumps(document).encode("utf-8")))

    def add_file_revision(
        self,
        path: PathLike,
        revision: str,
        mark: Optional[Mark],
        branches: Iterable[bytes],
        author: str,
        message: str,
        time: datetime,
    ) -> int:
        """Store a file revision and return its ID; known keys keep their ID."""
        key = FileRevisionKey(path, revision)
        with self._lock:
            return self._file_revisions.add(
                key, mark, branches, author, message, time
            )

    def add_patchset(
        self,
        mark: Mark,
        branch: bytes,
        time: datetime,
        file_revision_ids: Iterable[int],
    ) -> None:
        """Record a patchset committed under ``mark`` on ``branch``."""
        with self._lock:
            self._patchsets.add(mark, branch, time, file_revision_ids)

    def add_branch_to_patchset_mark(self, mark: Mark, branch: bytes) -> None:
        """Record that the patchset under ``mark`` is also on ``branch``."""
        with self._lock:
            self._patchsets.add_branch(mark, branch)

    def add_tag(self, tag: bytes, file_revision_id: int) -> None:
        """Record that a file revision carries ``tag``."""
        with self._lock:
            self._tags.add_tag(tag, file_revision_id)

    def add_tag_mark(self, tag: bytes, mark: Mark) -> None:
        """Record the mark of the commit made for ``tag``."""
        with self._lock:
            self._tags.add_mark(tag, mark)

    def get_file_revision(self, path: PathLike, revision: str) -> FileRevision:
        """Return a file revision by path and revision number."""
        with self._lock:
            found = self._file_revisions.get_by_key(path, revision)
        if found is None:
            raise NoFileRevisionError("key", FileRevisionKey(path, revision))
        return found

    def get_file_revision_by_id(self, id: int) -> FileRevision:
        """Return a file revision by ID."""
        with self._lock:
            found = self._file_revisions.get_by_id(id)
        if found is None:
            raise NoFileRevisionError("ID", id)
        return found

    def get_last_patchset_mark_on_branch(self, branch: bytes) -> Optional[Mark]:
        """Return the most recent patchset mark on a branch, if any."""
        with self._lock:
            return self._patchsets.last_mark_on_branch(branch)

    def get_mark_for_tag(self, tag: bytes) -> Optional[Mark]:
        """Return the mark of a tag's commit, if one exists."""
        with self._lock:
            return self._tags.mark(tag)

    def get_mark_from_patchset_content(
        self, time: datetime, file_revision_ids: Iterable[int]
    ) -> Optional[Mark]:
        """Return the mark of an already committed patchset with this content."""
        with self._lock:
            return self._patchsets.mark_for_content(time, file_revision_ids)

    def get_patchset_from_mark(self, mark: Mark) -> StoredPatchSet:
        """Return the patchset committed under ``mark``."""
        with self._lock:
            found = self._patchsets.get_by_mark(mark)
        if found is None:
            raise NoPatchSetError(mark)
        return found

    def get_file_revisions_for_tag(self, tag: bytes) -> Optional[frozenset[int]]:
        """Return the file revision IDs on a tag, if the tag is known."""
        with self._lock:
            return self._tags.file_revisions(tag)

    def get_last_patchset_for_file_revision(
        self, file_revision_id: int
    ) -> Optional[tuple[Mark, StoredPatchSet]]:
        """Return the latest patchset holding a file revision, with its mark.

        Of patchsets with equal times, the first recorded wins.
        """
        with self._lock:
            marks = self._patchsets.marks_for_file_revision(file_revision_id)
            if marks is None:
                return None
            best: Optional[tuple[Mark, StoredPatchSet]] = None
            for mark in marks:
                patchset = self._patchsets.get_by_mark(mark)
                if patchset is None:
                    continue
                if best is None or best[1].time < patchset.time:
                    best = (mark, patchset)
            return best

    def get_patchset_marks_for_file_revision(
        self, file_revision_id: int
    ) -> Optional[list[Mark]]:
        """Return the marks of every patchset holding a file revision, if any."""
        with self._lock:
            return self._patchsets.marks_for_file_revision(file_revision_id)

    def get_tags(self) -> list[bytes]:
        """Return the names of all known tags."""
        with self._lock:
            return self._tags.tags()

    def get_raw_marks(self) -> bytes:
        """Return the stored contents of the fast-import mark file."""
        with self._lock:
            return self._raw_marks

    def set_raw_marks(self, data: Readable) -> None:
        """Replace the stored mark file contents with bytes or a stream's contents."""
        content = _read_all(data)
        with self._lock:
            self._raw_marks = content