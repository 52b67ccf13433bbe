"""
Controller tying the annotation set, pointer interaction and the open
document together for the view layer.
"""
import logging
from typing import List, Optional

from PyQt5.QtCore import QObject, pyqtSignal
from PyQt5.QtGui import QImage

from inkmark.config import AppSettings
from inkmark.core.annotations import (
    AnnotationElement,
    AnnotationManager,
    Point,
    TextFormat,
    ToolType,
)
from inkmark.core.document import DocumentSession, PageSize
from inkmark.core.export import ExportWorker
from inkmark.core.interaction import InteractionEngine
from inkmark.core.render import CanvasRenderer
from inkmark.errors import DocumentLoadError

logger = logging.getLogger(__name__)


class AnnotationController(QObject):
    """Handles all annotation-related operations and user interactions."""

    # Signals
    elements_changed = pyqtSignal()  # Emitted when the element set changes
    history_changed = pyqtSignal(bool, bool)  # can_undo, can_redo
    document_loaded = pyqtSignal(int)  # page count
    page_changed = pyqtSignal(int)  # 0-based page index
    zoom_changed = pyqtSignal(float)
    error_occurred = pyqtSignal(str)
    export_finished = pyqtSignal(bool, str)  # success, message
    exported = pyqtSignal(bytes)

    def __init__(self, settings: Optional[AppSettings] = None,
                 session: Optional[DocumentSession] = None):
        super().__init__()
        self.settings = settings or AppSettings()
        self.annotation_manager = AnnotationManager()
        self.document = session or DocumentSession(settings=self.settings.engine)
        self.renderer = CanvasRenderer(self.settings.engine)
        self.engine = InteractionEngine(
            self.annotation_manager,
            tools=self.settings.tools,
            engine=self.settings.engine,
            eraser=self._erase_overlay,
        )

        self.current_page: int = 0
        self.scale: float = self.settings.engine.default_scale
        self.overlay: Optional[QImage] = None
        self._export_worker: Optional[ExportWorker] = None

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------

    def load_document(self, data: bytes, file_name: Optional[str] = None) -> bool:
        """
        Open a new source document and start an empty annotation session.

        Returns:
            True if the document was loaded
        """
        try:
            page_count = self.document.load(data, file_name)
        except DocumentLoadError as e:
            logger.error("Failed to load document: %s", e)
            self.error_occurred.emit(str(e))
            return False

        self.annotation_manager.clear_all()
        self.current_page = 0
        self.overlay = None
        self.document_loaded.emit(page_count)
        self.page_changed.emit(self.current_page)
        self._emit_changed()
        return True

    def render_current_page(self, surface: Optional[QImage] = None) -> PageSize:
        """
        Render the current page and size the annotation overlay to match.
        """
        size = self.document.render_page(self.current_page, self.scale, surface)
        self.overlay = self.renderer.create_surface(size)
        self.redraw_overlay()
        return size

    def redraw_overlay(self) -> None:
        if self.overlay is not None:
            self.renderer.redraw(self.overlay, self.annotation_manager.elements,
                                 self.engine.current_element)

    def _erase_overlay(self, point: Point, radius: float) -> None:
        if self.overlay is not None:
            self.renderer.erase(self.overlay, point, radius)

    # ------------------------------------------------------------------
    # Element set
    # ------------------------------------------------------------------

    @property
    def elements(self) -> List[AnnotationElement]:
        return self.annotation_manager.elements

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self.annotation_manager.can_undo()

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self.annotation_manager.can_redo()

    def add_element(self, element: AnnotationElement) -> bool:
        self.annotation_manager.add_element(element)
        self._emit_changed()
        return True

    def update_element(self, element_id: str, **changes) -> bool:
        if self.annotation_manager.update_element(element_id, **changes):
            self._emit_changed()
            return True
        return False

    def delete_element(self, element_id: str) -> bool:
        if self.annotation_manager.delete_element(element_id):
            self._emit_changed()
            return True
        return False

    def undo(self) -> bool:
        """
        Undo the last annotation action.

        Returns:
            True if undo was successful
        """
        if self.annotation_manager.undo():
            self._emit_changed()
            return True
        return False

    def redo(self) -> bool:
        """
        Redo the last undone annotation action.

        Returns:
            True if redo was successful
        """
        if self.annotation_manager.redo():
            self._emit_changed()
            return True
        return False

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def set_tool(self, tool: ToolType) -> None:
        self.engine.set_tool(tool)
        self._emit_changed()

    def set_canvas_origin(self, origin: Point) -> None:
        self.engine.canvas_origin = Point(*origin)

    def pointer_down(self, point: Point, timestamp_ms: Optional[float] = None) -> None:
        self.engine.pointer_down(point, timestamp_ms)
        # Eraser marks stay on the overlay until the next full redraw
        if self.engine.active_tool != ToolType.ERASER:
            self._emit_changed()

    def pointer_move(self, point: Point) -> None:
        self.engine.pointer_move(point)
        if self.engine.current_element is not None:
            self.redraw_overlay()

    def pointer_up(self, point: Optional[Point] = None) -> None:
        if self.engine.pointer_up(point) is not None:
            self._emit_changed()

    def editing_element(self) -> Optional[AnnotationElement]:
        return self.annotation_manager.editing_element()

    def change_text(self, element_id: str, text: str) -> bool:
        return self.engine.change_text(element_id, text)

    def move_text(self, element_id: str, dx: float, dy: float) -> bool:
        return self.engine.move_text(element_id, dx, dy)

    def confirm_text(self, element_id: str, text: str,
                     text_format: Optional[TextFormat] = None) -> bool:
        committed = self.engine.confirm_text(element_id, text, text_format)
        self._emit_changed()
        return committed

    def cancel_text(self, element_id: str) -> bool:
        cancelled = self.engine.cancel_text(element_id)
        self._emit_changed()
        return cancelled

    # ------------------------------------------------------------------
    # View state
    # ------------------------------------------------------------------

    def set_scale(self, scale: float) -> None:
        """
        Change the zoom, clamped to the configured range. Existing elements
        are rescaled so they stay aligned with the page.
        """
        cfg = self.settings.engine
        scale = max(cfg.zoom_min, min(cfg.zoom_max, scale))
        if scale == self.scale:
            return

        self.engine.commit_open_edit()
        self.annotation_manager.rescale(scale / self.scale)
        self.scale = scale
        self.zoom_changed.emit(scale)
        self._emit_changed()

    def zoom_in(self) -> None:
        self.set_scale(self.scale + self.settings.engine.zoom_step)

    def zoom_out(self) -> None:
        self.set_scale(self.scale - self.settings.engine.zoom_step)

    def go_to_page(self, page_index: int) -> bool:
        """
        Switch the active page. The annotation set is not page-scoped and
        stays as it is.
        """
        if not 0 <= page_index < self.document.page_count:
            return False
        if page_index != self.current_page:
            self.current_page = page_index
            self.page_changed.emit(page_index)
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self.current_page + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self.current_page - 1)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_annotated(self, page_index: Optional[int] = None,
                         scale: Optional[float] = None) -> bytes:
        """
        Bake the committed annotations into a copy of the source document.

        An open text edit is confirmed first (or discarded if empty).

        Args:
            page_index: Page to draw on; defaults to the current page
            scale: Zoom the elements were recorded at; defaults to the current one

        Returns:
            The annotated PDF bytes

        Raises:
            PageNotFoundError, NoDocumentError, ExportInProgressError
        """
        page_index = self.current_page if page_index is None else page_index
        scale = self.scale if scale is None else scale

        if self.engine.commit_open_edit():
            self._emit_changed()
        result = self.document.export(
            self.annotation_manager.committed_elements(), page_index, scale)
        self.annotation_manager.mark_saved()
        return result.data

    def start_export(self, page_index: Optional[int] = None,
                     scale: Optional[float] = None) -> bool:
        """
        Run an export on a worker thread.

        Returns:
            False if an export is already running
        """
        if self._export_worker is not None or self.document.is_exporting:
            logger.debug("Export already running, ignoring request")
            return False

        page_index = self.current_page if page_index is None else page_index
        scale = self.scale if scale is None else scale
        if self.engine.commit_open_edit():
            self._emit_changed()

        worker = ExportWorker(self.document,
                              self.annotation_manager.committed_elements(),
                              page_index, scale)
        worker.exported.connect(self.exported)
        worker.finished.connect(self._on_export_finished)
        self._export_worker = worker
        worker.start()
        return True

    def _on_export_finished(self, success: bool, message: str) -> None:
        worker, self._export_worker = self._export_worker, None
        if worker is not None:
            worker.wait()
        if success:
            self.annotation_manager.mark_saved()
        self.export_finished.emit(success, message)

    def _emit_changed(self) -> None:
        self.redraw_overlay()
        self.elements_changed.emit()
        self.history_changed.emit(self.can_undo(), self.can_redo())
