"""
PDF document handling: storage, rendering and annotation export.
"""
from .compositor import AnnotationCompositor, CompositionPlan, parse_color
from .pdf_exporter import ExportResult, PDFExporter
from .pdf_reader import PageRenderer
from .session import DocumentSession
from .store import (
    CircleDraw,
    FitzDocumentStore,
    FitzPage,
    FitzPageList,
    FontPair,
    PageSize,
    RectangleDraw,
    TextDraw,
)

__all__ = [
    'AnnotationCompositor',
    'CompositionPlan',
    'parse_color',
    'ExportResult',
    'PDFExporter',
    'PageRenderer',
    'DocumentSession',
    'CircleDraw',
    'FitzDocumentStore',
    'FitzPage',
    'FitzPageList',
    'FontPair',
    'PageSize',
    'RectangleDraw',
    'TextDraw',
]
