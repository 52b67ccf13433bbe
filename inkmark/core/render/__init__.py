from .canvas_renderer import CanvasRenderer

__all__ = ['CanvasRenderer']
