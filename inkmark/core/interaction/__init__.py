from .engine import ClickRecord, GestureState, InteractionEngine

__all__ = ['ClickRecord', 'GestureState', 'InteractionEngine']
