"""
Annotation system: element model, set manager and undo/redo history.
"""
from .models import (
    AnnotationElement,
    AnnotationKind,
    Point,
    TextFormat,
    ToolType,
    is_complete,
    is_exportable,
    new_element_id,
)
from .manager import AnnotationManager
from .undo_redo import UndoRedoStack

__all__ = [
    'AnnotationElement',
    'AnnotationKind',
    'Point',
    'TextFormat',
    'ToolType',
    'is_complete',
    'is_exportable',
    'new_element_id',
    'AnnotationManager',
    'UndoRedoStack',
]
