# core/export/export_worker.py

import logging
from typing import List

from PyQt5.QtCore import QThread, pyqtSignal

from inkmark.core.annotations.models import AnnotationElement
from inkmark.core.document.session import DocumentSession

logger = logging.getLogger(__name__)


class ExportWorker(QThread):
    """Worker thread for exporting annotations to PDF without freezing the UI."""

    # Signals
    finished = pyqtSignal(bool, str)  # success, message
    exported = pyqtSignal(bytes)  # annotated PDF
    progress = pyqtSignal(str)  # status message

    def __init__(self, session: DocumentSession, elements: List[AnnotationElement],
                 page_index: int, scale: float):
        super().__init__()
        self.session = session
        self.elements = elements
        self.page_index = page_index
        self.scale = scale
        self.result = None

    def run(self):
        """Execute the export in a background thread."""
        try:
            self.progress.emit("Exporting annotations...")
            self.result = self.session.export(self.elements, self.page_index, self.scale)
        except Exception as e:
            logger.exception("Export failed")
            self.finished.emit(False, f"Error during export: {e}")
            return

        self.exported.emit(self.result.data)
        message = "Annotations exported successfully!"
        if self.result.warnings:
            message += f" ({len(self.result.warnings)} warnings)"
        self.finished.emit(True, message)
