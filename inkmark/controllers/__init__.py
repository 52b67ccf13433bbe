"""
Application controllers for managing interactions between UI and core logic.
"""
from .input_handler import UserInputHandler
from .annotation_controller import AnnotationController

__all__ = [
    'UserInputHandler',
    'AnnotationController'
]
