"""
Exception types raised by the annotation engine.
"""


class InkmarkError(Exception):
    """Base class for all errors raised by inkmark."""


class InvalidInputError(InkmarkError, ValueError):
    """A caller supplied a value the engine cannot work with."""


class PageNotFoundError(InkmarkError, LookupError):
    """The requested page index does not exist in the document."""

    def __init__(self, page_index: int, page_count: int):
        super().__init__(
            f"Page {page_index} not found (document has {page_count} pages)"
        )
        self.page_index = page_index
        self.page_count = page_count


class DocumentLoadError(InkmarkError):
    """The source bytes could not be opened as a document."""


class NoDocumentError(InkmarkError):
    """An operation needs a loaded document but none is open."""


class ExportInProgressError(InkmarkError):
    """An export was requested while another one is still running."""
