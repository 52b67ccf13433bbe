"""
Live rendering of annotation elements onto the overlay raster.
"""
from typing import Iterable, Optional

from PyQt5.QtCore import QPointF, QRectF, Qt
from PyQt5.QtGui import QBrush, QColor, QFont, QImage, QPainter, QPainterPath, QPen

from inkmark.config import EngineSettings
from inkmark.core import geometry
from inkmark.core.annotations.models import AnnotationElement, AnnotationKind, Point
from inkmark.core.document.compositor import UNDERLINE_OFFSET, parse_color
from inkmark.core.document.store import PageSize


def _qcolor(value: Optional[str], alpha: float = 1.0) -> QColor:
    r, g, b = parse_color(value)
    return QColor.fromRgbF(r, g, b, alpha)


def _qpoint(point: Point) -> QPointF:
    return QPointF(point.x, point.y)


class CanvasRenderer:
    """
    Paints elements in canvas space with the same geometry the exporter
    bakes into the page.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    @staticmethod
    def create_surface(size: PageSize) -> QImage:
        """Transparent overlay matching the rendered page size."""
        surface = QImage(int(size.width), int(size.height), QImage.Format_ARGB32_Premultiplied)
        surface.fill(Qt.transparent)
        return surface

    def redraw(self, surface: QImage, elements: Iterable[AnnotationElement],
               current: Optional[AnnotationElement] = None) -> None:
        """
        Clear the surface and draw every element.

        Text elements under editing are skipped; the in-place editor shows
        them instead. `current` is the gesture in progress, drawn last.
        """
        surface.fill(Qt.transparent)
        painter = QPainter(surface)
        try:
            painter.setRenderHint(QPainter.Antialiasing)
            for element in elements:
                if element.kind == AnnotationKind.TEXT and element.is_editing:
                    continue
                self.draw_element(painter, element)
            if current is not None:
                self.draw_element(painter, current)
        finally:
            painter.end()

    def erase(self, surface: QImage, point: Point, radius: float) -> None:
        """Clear a disc of the raster. The element set is not touched."""
        painter = QPainter(surface)
        try:
            painter.setRenderHint(QPainter.Antialiasing)
            painter.setCompositionMode(QPainter.CompositionMode_Clear)
            painter.setPen(Qt.NoPen)
            painter.setBrush(QBrush(Qt.black))
            painter.drawEllipse(_qpoint(point), radius, radius)
        finally:
            painter.end()

    def draw_element(self, painter: QPainter, element: AnnotationElement) -> None:
        if not element.points:
            return

        pen = QPen(_qcolor(element.color), element.stroke_width)
        pen.setCapStyle(Qt.RoundCap)
        pen.setJoinStyle(Qt.RoundJoin)
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)

        kind = element.kind
        start, end = element.points[0], element.points[-1]

        if kind == AnnotationKind.DRAW:
            if len(element.points) > 1:
                path = QPainterPath(_qpoint(start))
                for point in element.points[1:]:
                    path.lineTo(_qpoint(point))
                painter.drawPath(path)

        elif kind == AnnotationKind.RECTANGLE:
            if len(element.points) >= 2:
                box = geometry.normalize_box(start, end)
                painter.drawRect(QRectF(box.x, box.y, box.width, box.height))

        elif kind == AnnotationKind.CIRCLE:
            if len(element.points) >= 2:
                radius = geometry.circle_radius(start, end)
                painter.drawEllipse(_qpoint(start), radius, radius)

        elif kind == AnnotationKind.ARROW:
            if len(element.points) >= 2:
                painter.drawLine(_qpoint(start), _qpoint(end))
                for tip in geometry.arrow_head(start, end, self.settings.arrow_head_length):
                    painter.drawLine(_qpoint(end), _qpoint(tip))

        elif kind == AnnotationKind.HIGHLIGHT:
            if len(element.points) >= 2:
                box = geometry.highlight_box(start, end, self.settings.highlight_default_height)
                painter.fillRect(QRectF(box.x, box.y, box.width, box.height),
                                 _qcolor(element.color, self.settings.highlight_opacity))

        elif kind == AnnotationKind.TEXT:
            self._draw_text(painter, element)

    def _draw_text(self, painter: QPainter, element: AnnotationElement) -> None:
        if not element.text:
            return

        fmt = element.text_format
        font_size = element.resolved_font_size(self.settings.default_font_size)
        bold = bool(fmt and fmt.is_bold)
        color = _qcolor(element.text_color())

        font = QFont(fmt.font_family if fmt else "Arial")
        font.setPixelSize(max(1, int(round(font_size))))
        font.setBold(bold)
        font.setItalic(bool(fmt and fmt.is_italic))
        painter.setFont(font)

        anchor = element.points[0]
        pad = self.settings.hit_padding
        for index, line in enumerate(geometry.text_lines(element.text)):
            baseline = geometry.line_baseline(anchor, index, font_size,
                                              self.settings.line_height_factor)
            width = geometry.measure_text(line, font_size, bold)

            if fmt is not None and fmt.background_color:
                painter.fillRect(
                    QRectF(anchor.x - pad, baseline - font_size - pad,
                           width + 2 * pad, font_size + 2 * pad),
                    _qcolor(fmt.background_color))

            painter.setPen(QPen(color))
            painter.drawText(QPointF(anchor.x, baseline), line)

            if fmt is not None and fmt.is_underline:
                painter.setPen(QPen(color, 1))
                y = baseline + UNDERLINE_OFFSET
                painter.drawLine(QPointF(anchor.x, y), QPointF(anchor.x + width, y))
