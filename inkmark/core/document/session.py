"""
The open source document: loading, rendering and guarded export.
"""
import logging
import threading
from typing import Optional, Sequence

from PyQt5.QtGui import QImage

from inkmark.config import EngineSettings
from inkmark.core.annotations.models import AnnotationElement
from inkmark.errors import DocumentLoadError, ExportInProgressError, NoDocumentError

from .pdf_exporter import ExportResult, PDFExporter
from .pdf_reader import PageRenderer
from .store import FitzDocumentStore, FitzPageList, PageSize

logger = logging.getLogger(__name__)


class DocumentSession:
    """
    Holds the source bytes of one document.

    Loading and exporting are each single in-flight operations: while a load
    is running nothing can be rendered, and a second export while one is
    running is rejected with ExportInProgressError.
    """

    def __init__(self, store: Optional[FitzDocumentStore] = None,
                 renderer: Optional[PageRenderer] = None,
                 exporter: Optional[PDFExporter] = None,
                 settings: Optional[EngineSettings] = None):
        self.store = store or FitzDocumentStore()
        self.renderer = renderer or PageRenderer()
        self.exporter = exporter or PDFExporter(self.store, settings)

        self.source_bytes: Optional[bytes] = None
        self.file_name: Optional[str] = None
        self.pages: Optional[FitzPageList] = None
        self.is_loading: bool = False
        self._export_lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self.pages is not None and not self.is_loading

    @property
    def is_exporting(self) -> bool:
        return self._export_lock.locked()

    @property
    def page_count(self) -> int:
        return len(self.pages) if self.pages is not None else 0

    def load(self, data: bytes, file_name: Optional[str] = None) -> int:
        """
        Open a document from bytes, replacing the current one.

        Returns:
            The number of pages

        Raises:
            DocumentLoadError: the bytes do not decode; the previously
                loaded document, if any, stays open
        """
        if self.is_loading:
            raise DocumentLoadError("A document is already loading")

        self.is_loading = True
        try:
            pages = self.store.load(data)
        finally:
            self.is_loading = False

        self.close()
        self.source_bytes = bytes(data)
        self.file_name = file_name
        self.pages = pages
        logger.info("Loaded %s (%d pages)", file_name or "document", len(pages))
        return len(pages)

    def close(self) -> None:
        if self.pages is not None:
            self.pages.close()
        self.pages = None
        self.source_bytes = None
        self.file_name = None

    def page_size(self, page_index: int) -> PageSize:
        """Native size of a page in page units."""
        return self._require_pages().get(page_index).size()

    def render_page(self, page_index: int, scale: float,
                    surface: Optional[QImage] = None) -> PageSize:
        return self.renderer.render_page(self._require_pages(), page_index, scale, surface)

    def export(self, elements: Sequence[AnnotationElement], page_index: int,
               scale: float) -> ExportResult:
        """
        Bake `elements` into a copy of the source document.

        Raises:
            ExportInProgressError: another export is running
            NoDocumentError: no document is loaded
        """
        if not self._export_lock.acquire(blocking=False):
            logger.debug("Export already running, rejecting request")
            raise ExportInProgressError("An export is already running")
        try:
            if self.source_bytes is None:
                raise NoDocumentError("No document loaded")
            return self.exporter.export_with_report(self.source_bytes, elements, page_index, scale)
        finally:
            self._export_lock.release()

    def _require_pages(self) -> FitzPageList:
        if self.pages is None or self.is_loading:
            raise NoDocumentError("No document loaded")
        return self.pages
