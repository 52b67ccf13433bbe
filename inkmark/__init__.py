"""
Inkmark: annotate PDF pages on an interactive canvas and bake the
annotations into the document.
"""
__version__ = "0.1.0"
