import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from PyQt5.QtCore import QObject, pyqtSignal

from inkmark.config import EngineSettings
from inkmark.core.annotations.models import AnnotationElement

from .compositor import AnnotationCompositor
from .store import FitzDocumentStore

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    data: bytes
    page_index: int
    drawn: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class PDFExporter(QObject):
    """Bakes annotation elements into one page of a PDF."""

    # Signal for progress updates
    progress_signal = pyqtSignal(int, int)  # commands drawn, total

    def __init__(self, store: Optional[FitzDocumentStore] = None,
                 settings: Optional[EngineSettings] = None):
        super().__init__()
        self.store = store or FitzDocumentStore()
        self.compositor = AnnotationCompositor(settings)

    def export(self, document_bytes: bytes, elements: Sequence[AnnotationElement],
               page_index: int, scale: float) -> bytes:
        """
        Merge annotations into a copy of the document.

        Args:
            document_bytes: The source PDF; never modified
            elements: Canvas-space elements recorded at `scale`
            page_index: 0-based page to draw on
            scale: Zoom factor of the canvas

        Returns:
            The serialized, annotated PDF

        Raises:
            PageNotFoundError: `page_index` is not in the document
            DocumentLoadError: `document_bytes` is not a PDF
        """
        return self.export_with_report(document_bytes, elements, page_index, scale).data

    def export_with_report(self, document_bytes: bytes, elements: Sequence[AnnotationElement],
                           page_index: int, scale: float) -> ExportResult:
        pages = self.store.load(document_bytes)
        try:
            page = pages.get(page_index)
            size = page.size()
            plan = self.compositor.compose(elements, scale, size.height, pages.fonts())

            total = len(plan.commands)
            for count, command in enumerate(plan.commands, 1):
                page.draw(command)
                self.progress_signal.emit(count, total)

            data = self.store.save(pages)
        finally:
            pages.close()

        logger.info("Exported %d elements onto page %d (%d skipped)",
                    len(plan.drawn), page_index, len(plan.skipped))
        return ExportResult(
            data=data,
            page_index=page_index,
            drawn=plan.drawn,
            skipped=plan.skipped,
            warnings=plan.warnings,
        )
