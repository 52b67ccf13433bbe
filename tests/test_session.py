import pytest
from PyQt5.QtGui import QImage

from inkmark.core.document import DocumentSession
from inkmark.errors import (
    DocumentLoadError,
    ExportInProgressError,
    NoDocumentError,
    PageNotFoundError,
)

from conftest import make_pdf, rectangle


@pytest.fixture
def session(pdf_bytes):
    session = DocumentSession()
    session.load(pdf_bytes, "doc.pdf")
    yield session
    session.close()


class TestLoading:
    def test_load(self, session):
        assert session.is_loaded
        assert session.page_count == 1
        assert session.file_name == "doc.pdf"
        assert session.page_size(0) == (200, 300)

    def test_failed_load_keeps_previous_document(self, session):
        with pytest.raises(DocumentLoadError):
            session.load(b"garbage")
        assert session.is_loaded
        assert session.file_name == "doc.pdf"

    def test_nothing_loaded(self):
        session = DocumentSession()
        assert not session.is_loaded
        assert session.page_count == 0
        with pytest.raises(NoDocumentError):
            session.export([rectangle()], 0, 1.0)
        with pytest.raises(NoDocumentError):
            session.render_page(0, 1.0)

    def test_replace_document(self, session):
        assert session.load(make_pdf(page_count=4)) == 4
        assert session.page_count == 4


class TestExport:
    def test_export(self, session):
        result = session.export([rectangle()], 0, 1.0)
        assert result.data.startswith(b"%PDF")
        assert not session.is_exporting

    def test_busy_gate_rejects_second_export(self, session):
        session._export_lock.acquire()
        try:
            assert session.is_exporting
            with pytest.raises(ExportInProgressError):
                session.export([rectangle()], 0, 1.0)
        finally:
            session._export_lock.release()
        session.export([rectangle()], 0, 1.0)

    def test_gate_released_after_failure(self, session):
        with pytest.raises(PageNotFoundError):
            session.export([rectangle()], 3, 1.0)
        assert not session.is_exporting


class TestRendering:
    def test_render_size_follows_scale(self, qapp, session):
        assert session.render_page(0, 1.0) == (200, 300)
        assert session.render_page(0, 2.0) == (400, 600)

    def test_render_paints_surface(self, qapp, session):
        surface = QImage(200, 300, QImage.Format_ARGB32)
        surface.fill(0)
        session.render_page(0, 1.0, surface)
        # blank page renders white
        assert surface.pixelColor(100, 150).name() == "#ffffff"

    def test_render_missing_page(self, qapp, session):
        with pytest.raises(PageNotFoundError):
            session.render_page(1, 1.0)
