"""
Page rendering for the interactive view.
"""
import logging
from typing import Optional

from PyQt5.QtGui import QImage, QPainter

from .store import FitzPageList, PageSize

logger = logging.getLogger(__name__)


class PageRenderer:
    """Rasterizes pages at a zoom factor."""

    def render_page(self, pages: FitzPageList, page_index: int, scale: float,
                    surface: Optional[QImage] = None) -> PageSize:
        """
        Render a single page.

        Args:
            pages: Open page list
            page_index: 0-based index of the page to render
            scale: Zoom factor for rendering
            surface: Optional image to paint the page into, at (0, 0)

        Returns:
            The rendered size in pixels; the annotation canvas must use the
            same size so canvas and page pixels line up
        """
        pix = pages.get(page_index).pixmap(scale)

        if surface is not None:
            img = QImage(pix.samples, pix.width, pix.height, pix.stride,
                         QImage.Format_RGB888).copy()
            painter = QPainter(surface)
            try:
                painter.drawImage(0, 0, img)
            finally:
                painter.end()

        logger.debug("Rendered page %d at %.2fx: %dx%d", page_index, scale,
                     pix.width, pix.height)
        return PageSize(pix.width, pix.height)
