"""
Coordinate spaces and per-kind geometry.

Three spaces are involved:

* canvas space: overlay pixels at the current zoom, origin top-left
* viewport space: window pixels, origin top-left; only used for the anchor
  of a text element while it is being edited (top of the edit box)
* page space: document units, origin bottom-left, zoom independent

The live renderer and the exporter both build their shapes from the helpers
here so that what is drawn on screen and what is baked into the page agree.
"""
import math
from typing import List, NamedTuple, Tuple

import fitz  # PyMuPDF

from inkmark.core.annotations.models import Point

REGULAR_FONT = "helv"
BOLD_FONT = "hebo"


class Box(NamedTuple):
    """Axis-aligned box anchored at its minimum corner."""
    x: float
    y: float
    width: float
    height: float


class OrientedRect(NamedTuple):
    """A rectangle rotated counter-clockwise about its anchor corner (y-up space)."""
    anchor: Point
    width: float
    height: float
    angle: float  # degrees


def canvas_to_page(point: Point, scale: float, page_height: float) -> Point:
    return Point(point.x / scale, page_height - point.y / scale)


def page_to_canvas(point: Point, scale: float, page_height: float) -> Point:
    return Point(point.x * scale, (page_height - point.y) * scale)


def canvas_to_viewport(anchor: Point, canvas_origin: Point, font_size: float) -> Point:
    """Baseline anchor on the canvas -> top-left of the edit box in the window."""
    return Point(anchor.x + canvas_origin.x, anchor.y + canvas_origin.y - font_size)


def viewport_to_canvas(anchor: Point, canvas_origin: Point, font_size: float) -> Point:
    """Inverse of :func:`canvas_to_viewport`."""
    return Point(anchor.x - canvas_origin.x, anchor.y - canvas_origin.y + font_size)


def normalize_box(start: Point, end: Point) -> Box:
    return Box(
        min(start.x, end.x),
        min(start.y, end.y),
        abs(end.x - start.x),
        abs(end.y - start.y),
    )


def highlight_box(start: Point, end: Point, default_height: float) -> Box:
    """
    Canvas box of a highlight.

    A drag with no vertical extent gets `default_height`, growing downward
    from the drag line.
    """
    box = normalize_box(start, end)
    if box.height == 0:
        return box._replace(height=default_height)
    return box


def circle_radius(start: Point, end: Point) -> float:
    return math.hypot(end.x - start.x, end.y - start.y)


def arrow_head(start: Point, end: Point, head_length: float) -> Tuple[Point, Point]:
    """The two barb tips of an arrow pointing from `start` to `end`."""
    angle = math.atan2(end.y - start.y, end.x - start.x)
    left = Point(
        end.x - head_length * math.cos(angle - math.pi / 6),
        end.y - head_length * math.sin(angle - math.pi / 6),
    )
    right = Point(
        end.x - head_length * math.cos(angle + math.pi / 6),
        end.y - head_length * math.sin(angle + math.pi / 6),
    )
    return left, right


def segment_rect(start: Point, end: Point, thickness: float) -> OrientedRect:
    """
    Thick line from `start` to `end` as a rotated rectangle (y-up space).

    The anchor is moved half the thickness along the right-hand normal so the
    rectangle is centred on the segment.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    angle = math.atan2(dy, dx)
    half = thickness / 2
    anchor = Point(start.x + half * math.sin(angle), start.y - half * math.cos(angle))
    return OrientedRect(anchor, math.hypot(dx, dy), thickness, math.degrees(angle))


def oriented_rect_corners(rect: OrientedRect) -> List[Point]:
    """Corners of an oriented rectangle, counter-clockwise from the anchor."""
    theta = math.radians(rect.angle)
    ux, uy = math.cos(theta), math.sin(theta)
    vx, vy = -uy, ux
    a = rect.anchor
    return [
        a,
        Point(a.x + ux * rect.width, a.y + uy * rect.width),
        Point(a.x + ux * rect.width + vx * rect.height, a.y + uy * rect.width + vy * rect.height),
        Point(a.x + vx * rect.height, a.y + vy * rect.height),
    ]


def text_lines(text: str) -> List[str]:
    return text.split('\n')


def line_baseline(anchor: Point, line_index: int, font_size: float,
                  line_height_factor: float = 1.2) -> float:
    return anchor.y + line_index * font_size * line_height_factor


def measure_text(text: str, font_size: float, bold: bool = False) -> float:
    """Rendered width of one line in the same face the exporter embeds."""
    fontname = BOLD_FONT if bold else REGULAR_FONT
    return fitz.get_text_length(text, fontname=fontname, fontsize=font_size)
