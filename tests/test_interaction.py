import pytest

from inkmark.core.annotations import AnnotationKind, AnnotationManager, Point, ToolType
from inkmark.core.interaction import GestureState, InteractionEngine
from inkmark.errors import InvalidInputError

from conftest import text_element


def fake_measure(text, font_size, bold):
    return len(text) * font_size * 0.5


@pytest.fixture
def manager():
    return AnnotationManager()


@pytest.fixture
def erased():
    return []


@pytest.fixture
def engine(manager, erased):
    return InteractionEngine(manager, text_measure=fake_measure,
                             eraser=lambda point, radius: erased.append((point, radius)))


class TestDoubleClick:
    def test_enters_edit_with_viewport_anchor(self, engine, manager):
        element = text_element(x=5, y=20, font_size=16)
        manager.add_element(element)
        engine.canvas_origin = Point(100, 50)

        engine.pointer_down(Point(10, 15), timestamp_ms=1000)
        assert not manager.get_element(element.id).is_editing
        engine.pointer_down(Point(10, 15), timestamp_ms=1200)

        editing = manager.get_element(element.id)
        assert editing.is_editing
        assert editing.points == [Point(105, 54)]

    def test_confirm_rebases_back_to_canvas(self, engine, manager):
        element = text_element(x=5, y=20, font_size=16)
        manager.add_element(element)
        engine.canvas_origin = Point(100, 50)
        engine.begin_edit(element.id)

        assert engine.confirm_text(element.id, "Hi")
        committed = manager.get_element(element.id)
        assert committed.points == [Point(5, 20)]
        assert not committed.is_editing

    def test_window_is_exclusive_at_300ms(self, engine, manager):
        element = text_element(x=5, y=20)
        manager.add_element(element)

        engine.pointer_down(Point(10, 15), timestamp_ms=0)
        engine.pointer_down(Point(10, 15), timestamp_ms=300)
        assert manager.editing_element() is None

    def test_clicks_on_different_elements_do_not_pair(self, engine, manager):
        first = text_element(x=0, y=20)
        second = text_element(x=0, y=120)
        manager.add_element(first)
        manager.add_element(second)

        engine.pointer_down(Point(2, 15), timestamp_ms=0)
        engine.pointer_down(Point(2, 115), timestamp_ms=50)
        assert manager.editing_element() is None

    def test_miss_resets_click(self, engine, manager):
        manager.add_element(text_element(x=5, y=20))
        engine.pointer_down(Point(10, 15), timestamp_ms=0)
        engine.pointer_down(Point(500, 500), timestamp_ms=50)
        engine.pointer_down(Point(10, 15), timestamp_ms=100)
        assert manager.editing_element() is None


class TestHitTesting:
    def test_topmost_wins(self, engine, manager):
        below = text_element(x=0, y=20)
        above = text_element(x=0, y=20)
        manager.add_element(below)
        manager.add_element(above)
        assert engine.get_text_element_at_point(Point(4, 15)).id == above.id

    def test_box_bounds(self, engine, manager):
        element = text_element(text="Hi", x=10, y=30, font_size=10)
        manager.add_element(element)
        # width 10, box x in [8, 22], y in [18, 34]
        assert engine.get_text_element_at_point(Point(8, 18)) is not None
        assert engine.get_text_element_at_point(Point(22, 34)) is not None
        assert engine.get_text_element_at_point(Point(7.9, 25)) is None
        assert engine.get_text_element_at_point(Point(15, 34.1)) is None

    def test_second_line(self, engine, manager):
        element = text_element(text="a\nbbbb", x=0, y=20, font_size=10)
        manager.add_element(element)
        # second baseline at 32; "bbbb" is 20 wide
        assert engine.get_text_element_at_point(Point(18, 30)) is not None
        assert engine.get_text_element_at_point(Point(18, 15)) is None

    def test_ignores_non_text(self, engine, manager):
        engine.set_tool(ToolType.RECTANGLE)
        engine.pointer_down(Point(0, 0))
        engine.pointer_up(Point(50, 50))
        assert engine.get_text_element_at_point(Point(10, 10)) is None


class TestTextTool:
    def test_click_creates_draft_in_viewport_space(self, engine, manager):
        engine.canvas_origin = Point(100, 50)
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(10, 10))

        draft = manager.editing_element()
        assert draft is not None
        assert draft.points == [Point(110, 60)]
        assert draft.text_format.font_size == 16
        assert not manager.can_undo()

    def test_second_session_ignored(self, engine, manager):
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(10, 10))
        engine.pointer_down(Point(200, 200))
        assert len(manager.elements) == 1

    def test_click_on_existing_text_edits_it(self, engine, manager):
        element = text_element(x=5, y=20)
        manager.add_element(element)
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(10, 15))

        assert len(manager.elements) == 1
        assert manager.get_element(element.id).is_editing

    def test_confirm_commits_in_canvas_space(self, engine, manager):
        engine.canvas_origin = Point(100, 50)
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(10, 10))
        draft = manager.editing_element()

        assert engine.confirm_text(draft.id, "Hello")
        element = manager.get_element(draft.id)
        assert element.points == [Point(10, 26)]
        assert element.text == "Hello"
        assert manager.can_undo()

    def test_confirm_keeps_text_as_typed(self, engine, manager):
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(10, 10))
        draft = manager.editing_element()

        assert engine.confirm_text(draft.id, "  indented\nline\n")
        assert manager.get_element(draft.id).text == "  indented\nline\n"

    def test_draft_only_leaves_edit_through_confirm(self, engine, manager):
        engine.canvas_origin = Point(100, 50)
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(5, 20))
        draft = manager.editing_element()

        with pytest.raises(InvalidInputError):
            manager.update_element(draft.id, text="Hi", is_editing=False)
        assert engine.confirm_text(draft.id, "Hi")
        assert manager.get_element(draft.id).points == [Point(5, 36)]

    def test_empty_confirm_discards(self, engine, manager):
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(10, 10))
        draft = manager.editing_element()

        assert not engine.confirm_text(draft.id, "  \n ")
        assert manager.elements == []
        assert not manager.can_undo()

    def test_live_typing_and_move(self, engine, manager):
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(10, 10))
        draft = manager.editing_element()

        assert engine.change_text(draft.id, "abc")
        assert engine.move_text(draft.id, 5, -5)
        live = manager.get_element(draft.id)
        assert live.text == "abc"
        assert live.points == [Point(15, 5)]
        assert len(manager.undo_redo_stack) == 1

    def test_cancel(self, engine, manager):
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(10, 10))
        assert engine.cancel_text(manager.editing_element().id)
        assert manager.elements == []


class TestDragging:
    def test_shape_keeps_two_points(self, engine, manager):
        engine.set_tool(ToolType.RECTANGLE)
        engine.pointer_down(Point(10, 10))
        assert engine.state == GestureState.DRAGGING
        engine.pointer_move(Point(30, 30))
        engine.pointer_move(Point(50, 40))
        element = engine.pointer_up()

        assert element.kind == AnnotationKind.RECTANGLE
        assert element.points == [Point(10, 10), Point(50, 40)]
        assert engine.state == GestureState.IDLE
        assert len(manager.undo_redo_stack) == 2

    def test_freehand_captures_path(self, engine, manager):
        engine.set_tool(ToolType.DRAW)
        engine.pointer_down(Point(0, 0))
        for i in range(1, 4):
            engine.pointer_move(Point(i, i * 2))
        engine.pointer_up()

        assert manager.elements[0].points == [Point(0, 0), Point(1, 2), Point(2, 4), Point(3, 6)]
        assert len(manager.undo_redo_stack) == 2

    def test_click_without_drag_is_discarded(self, engine, manager):
        engine.set_tool(ToolType.CIRCLE)
        engine.pointer_down(Point(10, 10))
        assert engine.pointer_up() is None
        assert manager.elements == []

    def test_drag_seeds_tool_style(self, engine, manager):
        engine.tools.stroke_color = "#00ff00"
        engine.tools.stroke_width = 5
        engine.set_tool(ToolType.ARROW)
        engine.pointer_down(Point(0, 0))
        element = engine.pointer_up(Point(10, 0))
        assert element.color == "#00ff00"
        assert element.stroke_width == 5

    def test_drag_commits_open_edit(self, engine, manager):
        engine.set_tool(ToolType.TEXT)
        engine.pointer_down(Point(10, 10))
        draft = manager.editing_element()
        engine.change_text(draft.id, "note")

        engine.set_tool(ToolType.HIGHLIGHT)
        engine.pointer_down(Point(0, 100))
        engine.pointer_up(Point(40, 100))

        assert manager.editing_element() is None
        assert manager.get_element(draft.id).text == "note"
        assert len(manager.elements) == 2


class TestEraser:
    def test_erases_raster_only(self, engine, manager, erased):
        manager.add_element(text_element())
        engine.set_tool(ToolType.ERASER)
        engine.pointer_down(Point(5, 5))
        engine.pointer_move(Point(6, 6))
        engine.pointer_up()

        assert erased == [(Point(5, 5), 2.0), (Point(6, 6), 2.0)]
        assert len(manager.elements) == 1
        assert engine.state == GestureState.IDLE
