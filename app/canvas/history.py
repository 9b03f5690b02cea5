"""
Undo/redo container for the canvas document.

History is generic over the document value. Two kinds of writes exist:

- ``set`` commits a finished edit: the old present goes onto ``past`` and
  ``future`` is cleared.
- ``replace`` overwrites the present in place. Live previews inside a pointer
  gesture and non-undoable reloads use it.

Gestures (drag, resize) run as begin -> replace* -> commit | cancel. The
checkpoint taken by ``begin`` is what lands on ``past`` at commit time, so one
undo returns to the pre-gesture document rather than the last preview frame.
"""

import logging
from typing import Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NO_CHECKPOINT = object()


class History(Generic[T]):
    """Past/present/future stack. Unbounded unless ``limit`` is given."""

    def __init__(self, initial: T, limit: Optional[int] = None):
        if limit is not None and limit < 1:
            raise ValueError("limit must be at least 1")
        self._past: List[T] = []
        self._present: T = initial
        self._future: List[T] = []
        self._limit = limit
        self._checkpoint = _NO_CHECKPOINT

    @property
    def present(self) -> T:
        return self._present

    @property
    def past(self) -> List[T]:
        return list(self._past)

    @property
    def future(self) -> List[T]:
        return list(self._future)

    @property
    def can_undo(self) -> bool:
        return len(self._past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._future) > 0

    @property
    def in_gesture(self) -> bool:
        return self._checkpoint is not _NO_CHECKPOINT

    def _push_past(self, value: T) -> None:
        self._past.append(value)
        if self._limit is not None and len(self._past) > self._limit:
            del self._past[: len(self._past) - self._limit]

    def set(self, value: T) -> None:
        if self.in_gesture:
            self.commit()
        self._push_past(self._present)
        self._present = value
        self._future.clear()

    def replace(self, value: T) -> None:
        self._present = value

    def undo(self) -> None:
        if not self._past:
            return
        self._future.insert(0, self._present)
        self._present = self._past.pop()

    def redo(self) -> None:
        if not self._future:
            return
        self._push_past(self._present)
        self._present = self._future.pop(0)

    def reset(self, value: T) -> None:
        """Load a new document with an empty history (switching chats)."""
        self._past.clear()
        self._future.clear()
        self._present = value
        self._checkpoint = _NO_CHECKPOINT

    def begin(self) -> None:
        """Open a gesture. Has no effect on past/future."""
        if self.in_gesture:
            logger.debug("begin() called inside an open gesture, keeping the first checkpoint")
            return
        self._checkpoint = self._present

    def commit(self) -> bool:
        """
        Close the open gesture as a single history entry.

        Returns False when there was no gesture or the document did not change
        (a click on an element without moving it records nothing).
        """
        if not self.in_gesture:
            return False
        checkpoint, self._checkpoint = self._checkpoint, _NO_CHECKPOINT
        if checkpoint == self._present:
            return False
        self._push_past(checkpoint)
        self._future.clear()
        return True

    def cancel(self) -> None:
        """Drop the open gesture and restore the pre-gesture present."""
        if not self.in_gesture:
            return
        self._present, self._checkpoint = self._checkpoint, _NO_CHECKPOINT

    def __repr__(self) -> str:
        return (
            f"History(past={len(self._past)}, future={len(self._future)}, "
            f"in_gesture={self.in_gesture})"
        )
