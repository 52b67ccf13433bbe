"""
Pointer-driven creation and editing of annotation elements.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from inkmark.config import EngineSettings, ToolSettings
from inkmark.core import geometry
from inkmark.core.annotations import (
    AnnotationElement,
    AnnotationKind,
    AnnotationManager,
    Point,
    TextFormat,
    ToolType,
)

logger = logging.getLogger(__name__)

# (text, font_size, bold) -> width in canvas pixels
TextMeasure = Callable[[str, float, bool], float]
# (canvas point, radius) -> None
RasterEraser = Callable[[Point, float], None]


class GestureState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    ERASING = "erasing"


@dataclass
class ClickRecord:
    element_id: Optional[str]
    timestamp_ms: float


def _now_ms() -> float:
    return time.monotonic() * 1000.0


class InteractionEngine:
    """
    Turns pointer events and the active tool into element changes.

    Pointer positions are canvas pixels. `canvas_origin` is the canvas's
    top-left corner in viewport pixels and must be kept current by the view;
    it is used to re-base text anchors into and out of viewport space.
    Timestamps are milliseconds on any monotonic clock.
    """

    def __init__(self, manager: AnnotationManager,
                 tools: Optional[ToolSettings] = None,
                 engine: Optional[EngineSettings] = None,
                 text_measure: Optional[TextMeasure] = None,
                 eraser: Optional[RasterEraser] = None):
        self.manager = manager
        self.tools = tools or ToolSettings()
        self.settings = engine or EngineSettings()
        self.text_measure = text_measure or geometry.measure_text
        self.eraser = eraser

        self.active_tool: ToolType = ToolType.SELECT
        self.canvas_origin: Point = Point(0.0, 0.0)

        self.state = GestureState.IDLE
        self.current_element: Optional[AnnotationElement] = None
        self._start_point: Optional[Point] = None
        self.last_click = ClickRecord(None, float('-inf'))

    def set_tool(self, tool: ToolType) -> None:
        if self.state == GestureState.DRAGGING:
            self.pointer_up()
        self.state = GestureState.IDLE
        self.active_tool = tool

    def font_size_of(self, element: AnnotationElement) -> float:
        return element.resolved_font_size(self.settings.default_font_size)

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_down(self, point: Point, timestamp_ms: Optional[float] = None) -> None:
        point = Point(*point)
        if timestamp_ms is None:
            timestamp_ms = _now_ms()
        tool = self.active_tool

        if tool == ToolType.SELECT:
            self._select_click(point, timestamp_ms)
            return

        self.last_click = ClickRecord(None, timestamp_ms)

        if tool == ToolType.ERASER:
            self.state = GestureState.ERASING
            self._erase(point)
        elif tool == ToolType.TEXT:
            self._text_click(point)
        else:
            self._begin_drag(tool.kind, point)

    def pointer_move(self, point: Point) -> None:
        point = Point(*point)
        if self.state == GestureState.ERASING:
            self._erase(point)
            return
        if self.state != GestureState.DRAGGING or self.current_element is None:
            return

        if self.current_element.kind == AnnotationKind.DRAW:
            self.current_element.points.append(point)
        else:
            self.current_element.points = [self._start_point, point]

    def pointer_up(self, point: Optional[Point] = None) -> Optional[AnnotationElement]:
        """
        Finish the current gesture.

        Returns:
            The element committed by this gesture, if any
        """
        if self.state == GestureState.ERASING:
            self.state = GestureState.IDLE
            return None
        if self.state != GestureState.DRAGGING or self.current_element is None:
            return None

        if point is not None:
            self.pointer_move(point)

        element = self.current_element
        self.current_element = None
        self._start_point = None
        self.state = GestureState.IDLE

        if element.kind.is_two_point and len(element.points) < 2:
            logger.warning("Discarding %s gesture without a drag", element.kind.value)
            return None

        self.manager.add_element(element)
        return element

    # ------------------------------------------------------------------
    # Text editing
    # ------------------------------------------------------------------

    def get_text_element_at_point(self, point: Point) -> Optional[AnnotationElement]:
        """
        Topmost committed text element whose rendered lines contain `point`.
        """
        point = Point(*point)
        pad = self.settings.hit_padding
        for element in reversed(self.manager.elements):
            if element.kind != AnnotationKind.TEXT or element.is_editing or not element.text:
                continue
            if not element.points:
                continue

            anchor = element.points[0]
            font_size = self.font_size_of(element)
            bold = bool(element.text_format and element.text_format.is_bold)
            for index, line in enumerate(geometry.text_lines(element.text)):
                width = self.text_measure(line, font_size, bold)
                baseline = geometry.line_baseline(
                    anchor, index, font_size, self.settings.line_height_factor)
                if (anchor.x - pad <= point.x <= anchor.x + width + pad and
                        baseline - font_size - pad <= point.y <= baseline + self.settings.hit_descent):
                    return element
        return None

    def begin_edit(self, element_id: str) -> bool:
        """Open a committed text element for in-place editing."""
        if self.manager.editing_element() is not None:
            logger.debug("Edit session already open, ignoring %s", element_id)
            return False
        element = self.manager.get_element(element_id)
        if element is None or element.kind != AnnotationKind.TEXT:
            return False

        viewport_anchor = geometry.canvas_to_viewport(
            element.points[0], self.canvas_origin, self.font_size_of(element))
        return self.manager.begin_edit(element_id, viewport_anchor)

    def change_text(self, element_id: str, text: str) -> bool:
        """Live typing; not checkpointed."""
        element = self.manager.get_element(element_id)
        if element is None or not element.is_editing:
            return False
        return self.manager.update_element(element_id, text=text)

    def move_text(self, element_id: str, dx: float, dy: float) -> bool:
        """Drag the edit box by a viewport delta; not checkpointed."""
        return self.manager.move_edit_anchor(element_id, dx, dy)

    def confirm_text(self, element_id: str, text: str,
                     text_format: Optional[TextFormat] = None) -> bool:
        """
        Commit an edit session, re-basing the anchor back to canvas space.

        Empty or whitespace-only text cancels instead.

        Returns:
            True if the element was committed
        """
        element = self.manager.get_element(element_id)
        if element is None or not element.is_editing:
            return False
        if not (text and text.strip()):
            self.manager.cancel_edit(element_id)
            return False

        if text_format is None:
            text_format = element.text_format
        font_size = (text_format.font_size if text_format is not None
                     else self.font_size_of(element))
        canvas_anchor = geometry.viewport_to_canvas(
            element.points[0], self.canvas_origin, font_size)
        return self.manager.commit_text(element_id, text, text_format, canvas_anchor)

    def cancel_text(self, element_id: str) -> bool:
        return self.manager.cancel_edit(element_id)

    def commit_open_edit(self) -> bool:
        """
        Confirm the open edit session with its live text, as when the editor
        loses focus. Returns True if an element was committed.
        """
        element = self.manager.editing_element()
        if element is None:
            return False
        return self.confirm_text(element.id, element.text or "", element.text_format)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _select_click(self, point: Point, timestamp_ms: float) -> None:
        hit = self.get_text_element_at_point(point)
        if hit is None:
            self.last_click = ClickRecord(None, timestamp_ms)
            return

        elapsed = timestamp_ms - self.last_click.timestamp_ms
        if self.last_click.element_id == hit.id and elapsed < self.settings.double_click_ms:
            self.begin_edit(hit.id)
            # A third click must start a fresh pair
            self.last_click = ClickRecord(None, float('-inf'))
            return

        self.last_click = ClickRecord(hit.id, timestamp_ms)

    def _text_click(self, point: Point) -> None:
        if self.manager.editing_element() is not None:
            logger.debug("Text edit already open, ignoring click")
            return

        hit = self.get_text_element_at_point(point)
        if hit is not None:
            self.begin_edit(hit.id)
            return

        font_size = self.tools.font_size
        draft = AnnotationElement(
            kind=AnnotationKind.TEXT,
            points=[Point(point.x + self.canvas_origin.x, point.y + self.canvas_origin.y)],
            color=self.tools.stroke_color,
            stroke_width=self.tools.stroke_width,
            text="",
            font_size=font_size,
            text_format=TextFormat(
                font_family=self.tools.font_family,
                font_size=font_size,
                color=self.tools.stroke_color,
            ),
            is_editing=True,
        )
        self.manager.add_element(draft)

    def _begin_drag(self, kind: AnnotationKind, point: Point) -> None:
        # Clicking away from an open editor confirms it
        self.commit_open_edit()

        self._start_point = point
        self.current_element = AnnotationElement(
            kind=kind,
            points=[point],
            color=self.tools.stroke_color,
            stroke_width=self.tools.stroke_width,
        )
        self.state = GestureState.DRAGGING

    def _erase(self, point: Point) -> None:
        if self.eraser is not None:
            self.eraser(point, self.tools.stroke_width)
