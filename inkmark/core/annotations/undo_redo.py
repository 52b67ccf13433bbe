"""
Undo/Redo functionality for annotations.
"""
import copy
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .models import AnnotationElement

logger = logging.getLogger(__name__)

Snapshot = Tuple[AnnotationElement, ...]


def _freeze(elements: Sequence[AnnotationElement]) -> Snapshot:
    return tuple(copy.deepcopy(element) for element in elements)


def _thaw(snapshot: Snapshot) -> List[AnnotationElement]:
    return [copy.deepcopy(element) for element in snapshot]


class UndoRedoStack:
    """
    Linear timeline of full-set snapshots with a cursor.

    Index 0 always holds the initial set. A checkpoint after an undo drops
    every snapshot beyond the cursor, so a discarded redo branch can never
    come back. There is no size limit.
    """

    def __init__(self, initial: Sequence[AnnotationElement] = ()):
        self._snapshots: List[Snapshot] = []
        self._cursor: int = -1
        self.clear(initial)

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._snapshots)

    def checkpoint(self, elements: Sequence[AnnotationElement]) -> None:
        """
        Record a new snapshot of the full element set.

        Args:
            elements: Current elements; they are deep-copied
        """
        del self._snapshots[self._cursor + 1:]
        self._snapshots.append(_freeze(elements))
        self._cursor = len(self._snapshots) - 1

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self._cursor > 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self._cursor < len(self._snapshots) - 1

    def undo(self) -> Optional[List[AnnotationElement]]:
        """
        Step the cursor back.

        Returns:
            A fresh copy of the snapshot now under the cursor, or None if
            already at the initial snapshot
        """
        if not self.can_undo():
            logger.debug("Nothing to undo")
            return None

        self._cursor -= 1
        return _thaw(self._snapshots[self._cursor])

    def redo(self) -> Optional[List[AnnotationElement]]:
        """
        Step the cursor forward.

        Returns:
            A fresh copy of the snapshot now under the cursor, or None if
            already at the newest snapshot
        """
        if not self.can_redo():
            logger.debug("Nothing to redo")
            return None

        self._cursor += 1
        return _thaw(self._snapshots[self._cursor])

    def transform(self, fn: Callable[[AnnotationElement], AnnotationElement]) -> None:
        """Rewrite every element of every snapshot, keeping the cursor."""
        self._snapshots = [tuple(fn(element) for element in snapshot)
                           for snapshot in self._snapshots]

    def current(self) -> List[AnnotationElement]:
        return _thaw(self._snapshots[self._cursor])

    def clear(self, initial: Sequence[AnnotationElement] = ()) -> None:
        """Drop all history and start over from `initial`."""
        self._snapshots = [_freeze(initial)]
        self._cursor = 0
