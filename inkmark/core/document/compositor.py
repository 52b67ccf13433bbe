"""
Derivation of page-space draw commands from canvas-space elements.

Nothing here touches a document: the compositor is a pure function of the
element set, the zoom factor the elements were recorded at, and the target
page height.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from inkmark.config import EngineSettings
from inkmark.core import geometry
from inkmark.core.annotations.models import (
    AnnotationElement,
    AnnotationKind,
    Point,
    is_exportable,
)
from inkmark.errors import InvalidInputError

from .store import CircleDraw, Color, DrawCommand, FontPair, RectangleDraw, TextDraw

logger = logging.getLogger(__name__)

FALLBACK_COLOR: Color = (1.0, 0.0, 0.0)

_HEX_COLOR = re.compile(r'^#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$')

UNDERLINE_OFFSET = 2.0
UNDERLINE_THICKNESS = 1.0


def parse_color(value: Optional[str]) -> Color:
    """
    Parse a `#RRGGBB` string into channel fractions.

    Anything else yields full red, so a bad colour shows up in the output
    instead of failing the export.
    """
    match = _HEX_COLOR.match(value or "")
    if match is None:
        logger.warning("Invalid colour %r, using red", value)
        return FALLBACK_COLOR
    return tuple(int(channel, 16) / 255.0 for channel in match.groups())


@dataclass
class CompositionPlan:
    commands: List[DrawCommand] = field(default_factory=list)
    drawn: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class AnnotationCompositor:
    """Maps annotation elements onto one page in page space."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    def compose(self, elements: Sequence[AnnotationElement], scale: float,
                page_height: float, fonts: FontPair) -> CompositionPlan:
        """
        Build the draw commands for every exportable element.

        Args:
            elements: Elements in canvas space
            scale: Zoom factor the canvas was at
            page_height: Page height in page units
            fonts: Regular and bold face names

        Returns:
            The commands plus which elements were drawn or skipped
        """
        if not scale or scale <= 0:
            raise InvalidInputError(f"Scale must be positive, got {scale!r}")

        plan = CompositionPlan()
        for element in elements:
            if not is_exportable(element):
                reason = "still being edited" if element.is_editing else "incomplete"
                message = f"Skipped {element.kind.value} element {element.id}: {reason}"
                logger.warning(message)
                plan.skipped.append(element.id)
                plan.warnings.append(message)
                continue

            builder = self._builders[element.kind]
            plan.commands.extend(builder(self, element, scale, page_height, fonts, plan))
            plan.drawn.append(element.id)
        return plan

    def _text(self, element: AnnotationElement, scale: float, page_height: float,
              fonts: FontPair, plan: CompositionPlan) -> List[DrawCommand]:
        fmt = element.text_format
        font_size = element.resolved_font_size(self.settings.default_font_size)
        color = parse_color(element.text_color())
        bold = bool(fmt and fmt.is_bold)
        if fmt is not None and fmt.is_italic:
            message = f"Italic is not available for text element {element.id}; exported upright"
            logger.warning(message)
            plan.warnings.append(message)

        anchor = element.points[0]
        commands: List[DrawCommand] = []
        for index, line in enumerate(geometry.text_lines(element.text)):
            baseline = geometry.line_baseline(
                anchor, index, font_size, self.settings.line_height_factor)
            width = geometry.measure_text(line, font_size, bold)

            if fmt is not None and fmt.background_color:
                pad = self.settings.hit_padding
                background = geometry.Box(
                    anchor.x - pad, baseline - font_size - pad, width + 2 * pad, font_size + 2 * pad)
                commands.append(self._box(background, scale, page_height,
                                          color=parse_color(fmt.background_color)))

            if line:
                origin = geometry.canvas_to_page(Point(anchor.x, baseline), scale, page_height)
                commands.append(TextDraw(
                    text=line,
                    x=origin.x,
                    y=origin.y,
                    size=font_size / scale,
                    font=fonts.bold if bold else fonts.regular,
                    color=color,
                ))

            if fmt is not None and fmt.is_underline and width > 0:
                top = baseline + UNDERLINE_OFFSET - UNDERLINE_THICKNESS / 2
                underline = geometry.Box(anchor.x, top, width, UNDERLINE_THICKNESS)
                commands.append(self._box(underline, scale, page_height, color=color))
        return commands

    def _rectangle(self, element, scale, page_height, fonts, plan) -> List[DrawCommand]:
        box = geometry.normalize_box(element.points[0], element.points[-1])
        return [self._box(box, scale, page_height,
                          border_color=parse_color(element.color),
                          border_width=element.stroke_width / scale)]

    def _highlight(self, element, scale, page_height, fonts, plan) -> List[DrawCommand]:
        box = geometry.highlight_box(element.points[0], element.points[-1],
                                     self.settings.highlight_default_height)
        return [self._box(box, scale, page_height,
                          color=parse_color(element.color),
                          opacity=self.settings.highlight_opacity)]

    def _circle(self, element, scale, page_height, fonts, plan) -> List[DrawCommand]:
        start, end = element.points[0], element.points[-1]
        center = geometry.canvas_to_page(start, scale, page_height)
        return [CircleDraw(
            x=center.x,
            y=center.y,
            radius=geometry.circle_radius(start, end) / scale,
            border_color=parse_color(element.color),
            border_width=element.stroke_width / scale,
        )]

    def _draw(self, element, scale, page_height, fonts, plan) -> List[DrawCommand]:
        color = parse_color(element.color)
        thickness = element.stroke_width / scale
        points = [geometry.canvas_to_page(p, scale, page_height) for p in element.points]
        return [cmd for cmd in (self._segment(a, b, thickness, color)
                                for a, b in zip(points, points[1:])) if cmd is not None]

    def _arrow(self, element, scale, page_height, fonts, plan) -> List[DrawCommand]:
        color = parse_color(element.color)
        thickness = element.stroke_width / scale
        start_c, end_c = element.points[0], element.points[-1]
        start = geometry.canvas_to_page(start_c, scale, page_height)
        end = geometry.canvas_to_page(end_c, scale, page_height)

        shaft = self._segment(start, end, thickness, color)
        if shaft is None:
            return []

        commands: List[DrawCommand] = [shaft]
        for tip in geometry.arrow_head(start_c, end_c, self.settings.arrow_head_length):
            barb = self._segment(end, geometry.canvas_to_page(tip, scale, page_height),
                                 thickness, color)
            if barb is not None:
                commands.append(barb)
        return commands

    @staticmethod
    def _segment(start: Point, end: Point, thickness: float,
                 color: Color) -> Optional[RectangleDraw]:
        rect = geometry.segment_rect(start, end, thickness)
        if rect.width == 0:
            return None
        return RectangleDraw(
            x=rect.anchor.x,
            y=rect.anchor.y,
            width=rect.width,
            height=rect.height,
            color=color,
            rotate=rect.angle,
        )

    @staticmethod
    def _box(box: geometry.Box, scale: float, page_height: float, **style) -> RectangleDraw:
        """Canvas box (top-left anchored) -> page rectangle (bottom-left anchored)."""
        return RectangleDraw(
            x=box.x / scale,
            y=page_height - (box.y + box.height) / scale,
            width=box.width / scale,
            height=box.height / scale,
            **style,
        )

    _builders = {
        AnnotationKind.TEXT: _text,
        AnnotationKind.RECTANGLE: _rectangle,
        AnnotationKind.HIGHLIGHT: _highlight,
        AnnotationKind.CIRCLE: _circle,
        AnnotationKind.DRAW: _draw,
        AnnotationKind.ARROW: _arrow,
    }
