"""Observation of file revisions: persisting them and detecting patchsets."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, Iterator, Optional, Union

from .marks import Mark
from .num import Num
from .patchset import Detector, PatchSet
from .rcs import Delta, DeltaText
from .revisions import PathLike
from .state import Manager


@dataclass
class ObservationResult:
    """The patchsets detected on each branch, in ascending time order."""

    branches: dict[bytes, list[PatchSet[int]]] = field(default_factory=dict)

    def branch_items(self) -> Iterator[tuple[bytes, list[PatchSet[int]]]]:
        """Yield each branch with its patchsets."""
        yield from self.branches.items()


class Observer:
    """Receives file revisions, stores them, and feeds per-branch detectors."""

    def __init__(self, delta: Union[timedelta, int, float], state: Manager) -> None:
        self._delta = delta if isinstance(delta, timedelta) else timedelta(seconds=delta)
        self._state = state
        self._lock = threading.Lock()
        self._detectors: dict[bytes, Detector[int]] = {}

    def file_revision(
        self,
        path: PathLike,
        revision: Num,
        branches: Iterable[bytes],
        mark: Optional[Mark],
        delta: Delta,
        text: DeltaText,
    ) -> int:
        """Observe one file revision and return its ID in the state."""
        branch_names = [bytes(branch) for branch in branches]
        author = bytes(delta.author).decode("utf-8", errors="replace")
        message = bytes(text.log).decode("utf-8", errors="replace")

        with self._lock:
            file_revision_id = self._state.add_file_revision(
                path,
                str(revision),
                mark,
                branch_names,
                author,
                message,
                delta.date,
            )
            for branch in branch_names:
                detector = self._detectors.get(branch)
                if detector is None:
                    detector = self._detectors[branch] = Detector(self._delta)
                detector.add_file_commit(
                    path, file_revision_id, author, message, delta.date
                )
        return file_revision_id

    def tag(self, tag: bytes, file_revision_id: int) -> None:
        """Observe that a file revision carries ``tag``."""
        self._state.add_tag(tag, file_revision_id)

    def result(self) -> ObservationResult:
        """Return the patchsets detected so far on each branch."""
        with self._lock:
            return ObservationResult(
                {
                    branch: detector.patchsets()
                    for branch, detector in self._detectors.items()
                }
            )