"""
PyMuPDF-backed document store.

Draw commands are expressed in page space (origin bottom-left, y up) and
translated to PyMuPDF's top-left page coordinates when they are applied.
"""
import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple, Union

import fitz  # PyMuPDF

from inkmark.core import geometry
from inkmark.core.annotations.models import Point
from inkmark.errors import DocumentLoadError, PageNotFoundError

logger = logging.getLogger(__name__)

Color = Tuple[float, float, float]


class PageSize(NamedTuple):
    width: float
    height: float


class FontPair(NamedTuple):
    """Names of the regular and bold faces usable for one export."""
    regular: str
    bold: str


@dataclass(frozen=True)
class TextDraw:
    text: str
    x: float
    y: float  # baseline
    size: float
    font: str
    color: Color


@dataclass(frozen=True)
class RectangleDraw:
    """Rectangle anchored at its bottom-left corner, optionally rotated about it."""
    x: float
    y: float
    width: float
    height: float
    border_color: Optional[Color] = None
    border_width: float = 0.0
    color: Optional[Color] = None
    opacity: float = 1.0
    rotate: float = 0.0  # degrees, counter-clockwise


@dataclass(frozen=True)
class CircleDraw:
    x: float
    y: float
    radius: float
    border_color: Optional[Color] = None
    border_width: float = 0.0


DrawCommand = Union[TextDraw, RectangleDraw, CircleDraw]


class FitzPage:
    """One page of an open document, drawn in bottom-left page space."""

    def __init__(self, page: fitz.Page):
        self._page = page

    def size(self) -> PageSize:
        rect = self._page.rect
        return PageSize(rect.width, rect.height)

    def pixmap(self, scale: float) -> fitz.Pixmap:
        return self._page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)

    def _to_fitz(self, x: float, y: float) -> fitz.Point:
        return fitz.Point(x, self._page.rect.height - y)

    def draw_text(self, command: TextDraw) -> None:
        self._page.insert_text(
            self._to_fitz(command.x, command.y),
            command.text,
            fontsize=command.size,
            fontname=command.font,
            color=command.color,
        )

    def draw_rectangle(self, command: RectangleDraw) -> None:
        shape = self._page.new_shape()
        if command.rotate:
            corners = geometry.oriented_rect_corners(geometry.OrientedRect(
                Point(command.x, command.y), command.width, command.height, command.rotate))
            fitz_corners = [self._to_fitz(p.x, p.y) for p in corners]
            shape.draw_polyline(fitz_corners + [fitz_corners[0]])
        else:
            top = self._page.rect.height - (command.y + command.height)
            shape.draw_rect(fitz.Rect(command.x, top,
                                      command.x + command.width, top + command.height))
        shape.finish(
            color=command.border_color,
            fill=command.color,
            width=command.border_width,
            fill_opacity=command.opacity,
            stroke_opacity=command.opacity,
            closePath=True,
        )
        shape.commit()

    def draw_circle(self, command: CircleDraw) -> None:
        shape = self._page.new_shape()
        shape.draw_circle(self._to_fitz(command.x, command.y), command.radius)
        shape.finish(color=command.border_color, width=command.border_width)
        shape.commit()

    def draw(self, command: DrawCommand) -> None:
        if isinstance(command, TextDraw):
            self.draw_text(command)
        elif isinstance(command, RectangleDraw):
            self.draw_rectangle(command)
        elif isinstance(command, CircleDraw):
            self.draw_circle(command)
        else:
            raise TypeError(f"Unknown draw command: {command!r}")


class FitzPageList:
    """The mutable page list of one opened document."""

    def __init__(self, doc: fitz.Document):
        self.doc = doc

    def __len__(self) -> int:
        return self.doc.page_count

    def get(self, index: int) -> FitzPage:
        if not 0 <= index < self.doc.page_count:
            raise PageNotFoundError(index, self.doc.page_count)
        return FitzPage(self.doc.load_page(index))

    def fonts(self) -> FontPair:
        """
        Faces for text drawing. The base-14 Helvetica pair is embedded by
        reference on first use and goes away with the document.
        """
        return FontPair(geometry.REGULAR_FONT, geometry.BOLD_FONT)

    def close(self) -> None:
        self.doc.close()


class FitzDocumentStore:
    """Opens, mutates and serializes documents with PyMuPDF."""

    def load(self, data: bytes) -> FitzPageList:
        """
        Open a document from bytes.

        Raises:
            DocumentLoadError: the bytes are not a readable PDF
        """
        if not data:
            raise DocumentLoadError("Document is empty")
        try:
            doc = fitz.open(stream=bytes(data), filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise DocumentLoadError(f"Error loading PDF: {e}") from e
        if doc.page_count == 0:
            doc.close()
            raise DocumentLoadError("Document has no pages")
        logger.debug("Opened document with %d pages", doc.page_count)
        return FitzPageList(doc)

    def save(self, pages: FitzPageList) -> bytes:
        return pages.doc.tobytes(garbage=4, deflate=True)
