"""
Core logic for the Inkmark annotation engine.
"""
from .annotations import AnnotationElement, AnnotationKind, AnnotationManager, Point

__all__ = ['AnnotationElement', 'AnnotationKind', 'AnnotationManager', 'Point']
