"""
Data models for annotation elements.
"""
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from inkmark.errors import InvalidInputError

DEFAULT_FONT_SIZE = 16.0
DEFAULT_FONT_FAMILY = "Arial"


class ToolType(Enum):
    SELECT = "select"
    TEXT = "text"
    DRAW = "draw"
    HIGHLIGHT = "highlight"
    ERASER = "eraser"
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    ARROW = "arrow"

    @property
    def kind(self) -> Optional['AnnotationKind']:
        """The element kind this tool produces, or None for interaction-only tools."""
        try:
            return AnnotationKind(self.value)
        except ValueError:
            return None


class AnnotationKind(Enum):
    DRAW = "draw"
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    ARROW = "arrow"
    TEXT = "text"
    HIGHLIGHT = "highlight"

    @property
    def is_two_point(self) -> bool:
        return self in TWO_POINT_KINDS


TWO_POINT_KINDS = frozenset({
    AnnotationKind.RECTANGLE,
    AnnotationKind.CIRCLE,
    AnnotationKind.ARROW,
    AnnotationKind.HIGHLIGHT,
})


class Point(NamedTuple):
    """A position in whatever space the owning element declares."""
    x: float
    y: float

    def offset(self, dx: float, dy: float) -> 'Point':
        return Point(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class TextFormat:
    """Character formatting of a text element."""
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: float = DEFAULT_FONT_SIZE
    is_bold: bool = False
    is_italic: bool = False
    is_underline: bool = False
    color: str = "#000000"
    background_color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'fontFamily': self.font_family,
            'fontSize': self.font_size,
            'isBold': self.is_bold,
            'isItalic': self.is_italic,
            'isUnderline': self.is_underline,
            'color': self.color,
        }
        if self.background_color is not None:
            data['backgroundColor'] = self.background_color
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'TextFormat':
        return TextFormat(
            font_family=data.get('fontFamily', DEFAULT_FONT_FAMILY),
            font_size=float(data.get('fontSize', DEFAULT_FONT_SIZE)),
            is_bold=bool(data.get('isBold', False)),
            is_italic=bool(data.get('isItalic', False)),
            is_underline=bool(data.get('isUnderline', False)),
            color=data.get('color', "#000000"),
            background_color=data.get('backgroundColor'),
        )


def new_element_id() -> str:
    return uuid.uuid4().hex


@dataclass
class AnnotationElement:
    """
    A single annotation on the active page.

    `points` are in interactive-canvas pixels, except for a text element
    while `is_editing` is True: its single anchor is then in viewport pixels
    (top-left of the editing box rather than the text baseline).
    """
    kind: AnnotationKind
    points: List[Point]
    color: str = "#ff0000"
    stroke_width: float = 2.0
    id: str = field(default_factory=new_element_id)

    # Text elements only
    text: Optional[str] = None
    font_size: Optional[float] = None
    text_format: Optional[TextFormat] = None

    is_editing: bool = False

    def resolved_font_size(self, default: float = DEFAULT_FONT_SIZE) -> float:
        if self.text_format is not None:
            return self.text_format.font_size
        if self.font_size:
            return self.font_size
        return default

    def text_color(self) -> str:
        if self.text_format is not None:
            return self.text_format.color
        return self.color

    def copy(self, **changes) -> 'AnnotationElement':
        """Return a copy with `changes` applied; the points list is never shared."""
        changes.setdefault('points', list(self.points))
        changes['points'] = [Point(*p) for p in changes['points']]
        return replace(self, **changes)

    def scaled(self, factor: float) -> 'AnnotationElement':
        """Copy with every linear size multiplied by `factor` (a zoom change)."""
        text_format = self.text_format
        if text_format is not None:
            text_format = replace(text_format, font_size=text_format.font_size * factor)
        return self.copy(
            points=[Point(p.x * factor, p.y * factor) for p in self.points],
            stroke_width=self.stroke_width * factor,
            font_size=self.font_size * factor if self.font_size is not None else None,
            text_format=text_format,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'type': self.kind.value,
            'points': [{'x': p.x, 'y': p.y} for p in self.points],
            'color': self.color,
            'strokeWidth': self.stroke_width,
        }
        if self.text is not None:
            data['text'] = self.text
        if self.font_size is not None:
            data['fontSize'] = self.font_size
        if self.text_format is not None:
            data['textFormat'] = self.text_format.to_dict()
        if self.is_editing:
            data['isEditing'] = True
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'AnnotationElement':
        """Create element from dictionary."""
        try:
            kind = AnnotationKind(data['type'])
            points = [_point_from_data(p) for p in data['points']]
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f"Malformed annotation element: {e}") from e

        text_format = data.get('textFormat')
        font_size = data.get('fontSize')
        return AnnotationElement(
            id=str(data.get('id') or new_element_id()),
            kind=kind,
            points=points,
            color=data.get('color', "#ff0000"),
            stroke_width=float(data.get('strokeWidth', 2.0)),
            text=data.get('text'),
            font_size=float(font_size) if font_size is not None else None,
            text_format=TextFormat.from_dict(text_format) if text_format else None,
            is_editing=bool(data.get('isEditing', False)),
        )


def _point_from_data(data) -> Point:
    if isinstance(data, dict):
        return Point(float(data['x']), float(data['y']))
    x, y = data
    return Point(float(x), float(y))


def is_complete(element: AnnotationElement) -> bool:
    """Points are present, and shape kinds have both corners."""
    if not element.points:
        return False
    if element.kind.is_two_point:
        return len(element.points) >= 2
    return True


def is_exportable(element: AnnotationElement) -> bool:
    """Complete, committed, and (for text) carrying visible content."""
    if not is_complete(element) or element.is_editing:
        return False
    if element.kind == AnnotationKind.TEXT:
        return bool(element.text and element.text.strip())
    return True
