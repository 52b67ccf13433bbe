import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import fitz  # PyMuPDF
import pytest

from inkmark.core.annotations import AnnotationElement, AnnotationKind, Point


def make_pdf(page_count=1, width=200, height=300) -> bytes:
    doc = fitz.open()
    for _ in range(page_count):
        doc.new_page(width=width, height=height)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_bytes():
    return make_pdf()


@pytest.fixture
def three_page_pdf():
    return make_pdf(page_count=3)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


def rectangle(x0=10, y0=10, x1=50, y1=40, **kwargs):
    return AnnotationElement(kind=AnnotationKind.RECTANGLE,
                             points=[Point(x0, y0), Point(x1, y1)], **kwargs)


def text_element(text="Hi", x=20, y=30, font_size=16.0, **kwargs):
    return AnnotationElement(kind=AnnotationKind.TEXT, points=[Point(x, y)],
                             text=text, font_size=font_size, **kwargs)
