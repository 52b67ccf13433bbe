from PyQt5.QtCore import Qt
from PyQt5.QtGui import QKeySequence

from inkmark.core.annotations import Point


class UserInputHandler:
    """
    Routes keyboard and mouse input on the annotation canvas to the controller.
    """
    def __init__(self, controller, save_callback=None):
        """
        Initializes the handler.

        Args:
            controller (AnnotationController): Controller receiving the input.
            save_callback (callable): Invoked on the Save shortcut; defaults to
                starting a background export.
        """
        self.controller = controller
        self.save_callback = save_callback or controller.start_export

    def handle_key_press(self, event):
        """
        Handles key press events for the canvas.
        """
        editing = self.controller.editing_element()

        if editing is not None and event.key() in (Qt.Key_Return, Qt.Key_Enter) \
                and not (event.modifiers() & Qt.ShiftModifier):
            self.controller.confirm_text(editing.id, editing.text or "", editing.text_format)
            event.accept()
        elif editing is not None and event.key() == Qt.Key_Escape:
            self.controller.cancel_text(editing.id)
            event.accept()
        elif event.matches(QKeySequence.Undo):
            self.controller.undo()
            event.accept()
        elif event.matches(QKeySequence.Redo):
            self.controller.redo()
            event.accept()
        elif event.matches(QKeySequence.Save):
            self.save_callback()
            event.accept()
        elif event.matches(QKeySequence.ZoomIn):
            self.controller.zoom_in()
            event.accept()
        elif event.matches(QKeySequence.ZoomOut):
            self.controller.zoom_out()
            event.accept()
        elif event.key() == Qt.Key_PageDown:
            self.controller.next_page()
            event.accept()
        elif event.key() == Qt.Key_PageUp:
            self.controller.previous_page()
            event.accept()
        else:
            event.ignore()

    def handle_mouse_press(self, event):
        """
        Args:
            event (QMouseEvent): Press on the canvas, in canvas pixels.
        """
        if event.button() == Qt.LeftButton:
            self.controller.pointer_down(self._point(event), float(event.timestamp()))

    def handle_mouse_move(self, event):
        if event.buttons() & Qt.LeftButton:
            self.controller.pointer_move(self._point(event))

    def handle_mouse_release(self, event):
        if event.button() == Qt.LeftButton:
            self.controller.pointer_up(self._point(event))

    @staticmethod
    def _point(event):
        pos = event.localPos()
        return Point(pos.x(), pos.y())
