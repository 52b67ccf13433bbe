"""
Main annotation manager that owns the element set and its history.
"""
import copy
import logging
from dataclasses import fields
from typing import Dict, List, Optional

from inkmark.errors import InvalidInputError

from .models import AnnotationElement, AnnotationKind, Point, TextFormat
from .undo_redo import UndoRedoStack

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {f.name for f in fields(AnnotationElement)} - {'id'}
# Entering or leaving edit mode re-bases the text anchor; only the edit
# session methods may do it.
_SESSION_FIELDS = {'is_editing'}


class AnnotationManager:
    """
    Manages the annotation set of the active page with undo/redo support.

    Every committed structural change (add, update of a committed element,
    delete, confirmed text edit) records exactly one checkpoint, synchronously
    and after the change has been applied. Drafts under text editing never
    reach the history.
    """

    def __init__(self):
        self._elements: List[AnnotationElement] = []
        self.undo_redo_stack = UndoRedoStack()

        # Committed versions of elements currently re-opened for editing,
        # None for brand-new drafts.
        self._edit_origins: Dict[str, Optional[AnnotationElement]] = {}

        self._saved_state: List[dict] = []

    @property
    def elements(self) -> List[AnnotationElement]:
        """All elements in insertion order, drafts included."""
        return list(self._elements)

    @property
    def has_unsaved_changes(self) -> bool:
        return self._state_key() != self._saved_state

    def get_element(self, element_id: str) -> Optional[AnnotationElement]:
        for element in self._elements:
            if element.id == element_id:
                return element
        return None

    def editing_element(self) -> Optional[AnnotationElement]:
        """The element under live text editing, if any."""
        for element in self._elements:
            if element.is_editing:
                return element
        return None

    def committed_elements(self) -> List[AnnotationElement]:
        """
        The set as the history sees it.

        Elements under editing are replaced by the committed version they
        were opened from; drafts that were never committed are left out.
        """
        result = []
        for element in self._elements:
            if not element.is_editing:
                result.append(element)
                continue
            origin = self._edit_origins.get(element.id)
            if origin is not None:
                result.append(origin)
        return result

    def add_element(self, element: AnnotationElement) -> None:
        """
        Add an element. Committed elements are checkpointed, drafts are not.

        Raises:
            InvalidInputError: duplicate id, or no points
        """
        if self.get_element(element.id) is not None:
            raise InvalidInputError(f"Duplicate element id: {element.id}")
        if not element.points:
            raise InvalidInputError("An element needs at least one point")
        if (element.kind == AnnotationKind.TEXT and not element.is_editing
                and not (element.text and element.text.strip())):
            raise InvalidInputError("A committed text element needs text")

        self._elements.append(element)
        if element.is_editing:
            self._edit_origins[element.id] = None
        else:
            self._checkpoint()

    def update_element(self, element_id: str, **changes) -> bool:
        """
        Replace fields of an element in one step.

        Edit mode is entered and left through `begin_edit` and `commit_text`
        only, and the anchor of an element under edit moves with
        `move_edit_anchor`.

        Args:
            element_id: Element to update
            **changes: Field values; `id` and `is_editing` cannot be changed

        Returns:
            True if the element was found and updated

        Raises:
            InvalidInputError: a field cannot be changed this way
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise InvalidInputError(f"Cannot update fields: {sorted(unknown)}")
        session = set(changes) & _SESSION_FIELDS
        if session:
            raise InvalidInputError(
                f"Use begin_edit/commit_text to change {sorted(session)}")

        element = self.get_element(element_id)
        if element is not None and element.is_editing and 'points' in changes:
            raise InvalidInputError("Cannot replace the anchor of an element under edit")
        return self._apply(element_id, changes)

    def _apply(self, element_id: str, changes: Dict) -> bool:
        index = self._index_of(element_id)
        if index is None:
            return False

        old = self._elements[index]
        new = old.copy(**changes)
        if not new.points:
            raise InvalidInputError("An element needs at least one point")
        if (new.kind == AnnotationKind.TEXT and not new.is_editing
                and not (new.text and new.text.strip())):
            raise InvalidInputError("A committed text element needs text")

        if new.is_editing and not old.is_editing:
            if self.editing_element() is not None:
                logger.debug("Edit session already open, not editing %s", element_id)
                return False
            self._edit_origins[element_id] = copy.deepcopy(old)

        self._elements[index] = new
        if not new.is_editing:
            self._edit_origins.pop(element_id, None)
            self._checkpoint()
        return True

    def delete_element(self, element_id: str) -> bool:
        """
        Remove an element.

        Returns:
            True if the element was found and removed
        """
        index = self._index_of(element_id)
        if index is None:
            return False

        element = self._elements.pop(index)
        was_committed = not element.is_editing
        if element.is_editing:
            was_committed = self._edit_origins.pop(element_id, None) is not None

        if was_committed:
            self._checkpoint()
        return True

    def begin_edit(self, element_id: str, viewport_anchor: Point) -> bool:
        """
        Re-open a committed text element for editing.

        Args:
            element_id: Text element to open
            viewport_anchor: Anchor re-based into viewport space

        Returns:
            True if the element entered editing
        """
        element = self.get_element(element_id)
        if element is None or element.kind != AnnotationKind.TEXT or element.is_editing:
            return False
        return self._apply(element_id, {'is_editing': True, 'points': [viewport_anchor]})

    def move_edit_anchor(self, element_id: str, dx: float, dy: float) -> bool:
        """Shift the viewport anchor of the element under edit; not checkpointed."""
        element = self.get_element(element_id)
        if element is None or not element.is_editing:
            return False
        return self._apply(element_id, {'points': [p.offset(dx, dy) for p in element.points]})

    def commit_text(self, element_id: str, text: str, text_format: Optional[TextFormat],
                    canvas_anchor: Point) -> bool:
        """
        Finish an edit session.

        The text is stored as typed. Text that is empty after trimming
        discards the element instead.

        Returns:
            True if the element was committed
        """
        element = self.get_element(element_id)
        if element is None or not element.is_editing:
            return False

        if not (text and text.strip()):
            self.delete_element(element_id)
            return False

        font_size = text_format.font_size if text_format is not None else element.font_size
        return self._apply(element_id, {
            'text': text,
            'text_format': text_format,
            'font_size': font_size,
            'points': [canvas_anchor],
            'is_editing': False,
        })

    def cancel_edit(self, element_id: str) -> bool:
        element = self.get_element(element_id)
        if element is None or not element.is_editing:
            return False
        return self.delete_element(element_id)

    def undo(self) -> bool:
        """
        Perform undo operation.

        Returns:
            True if undo was successful
        """
        if self.editing_element() is not None:
            logger.debug("Undo ignored while a text edit is open")
            return False

        previous_state = self.undo_redo_stack.undo()
        if previous_state is None:
            return False
        self._elements = previous_state
        return True

    def redo(self) -> bool:
        """
        Perform redo operation.

        Returns:
            True if redo was successful
        """
        if self.editing_element() is not None:
            logger.debug("Redo ignored while a text edit is open")
            return False

        next_state = self.undo_redo_stack.redo()
        if next_state is None:
            return False
        self._elements = next_state
        return True

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self.undo_redo_stack.can_undo()

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self.undo_redo_stack.can_redo()

    def rescale(self, factor: float) -> None:
        """
        Multiply all canvas-space geometry by `factor`, in the working set and
        in every history snapshot, after the canvas zoom changed. Must not be
        called with a text edit open.
        """
        if factor <= 0:
            raise InvalidInputError(f"Scale factor must be positive, got {factor!r}")
        if self.editing_element() is not None:
            raise InvalidInputError("Cannot rescale while a text edit is open")
        self._elements = [element.scaled(factor) for element in self._elements]
        self.undo_redo_stack.transform(lambda element: element.scaled(factor))
        self._saved_state = [
            AnnotationElement.from_dict(data).scaled(factor).to_dict()
            for data in self._saved_state
        ]

    def clear_all(self) -> None:
        """Clear all elements and reset history."""
        self._elements.clear()
        self._edit_origins.clear()
        self.undo_redo_stack.clear()
        self._saved_state = []

    def mark_saved(self) -> None:
        """Mark the current committed state as saved."""
        self._saved_state = self._state_key()

    def _checkpoint(self) -> None:
        self.undo_redo_stack.checkpoint(self.committed_elements())

    def _index_of(self, element_id: str) -> Optional[int]:
        for index, element in enumerate(self._elements):
            if element.id == element_id:
                return index
        return None

    def _state_key(self) -> List[dict]:
        return [element.to_dict() for element in self.committed_elements()]
