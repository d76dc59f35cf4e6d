import os

import fitz
import pytest

from conftest import make_pdf
from models.overlay_models import OverlayItem, PixelTextItem
from services.errors import ExportFailure
from services.export_service import ExportService, FitzDocumentWriter


def item(text, x=0.5, y=0.5, font_size=16, color="#111827"):
    return OverlayItem.create(font_size=font_size, text=text, x=x, y=y, color=color)


def page_texts(data):
    with fitz.open(stream=data, filetype="pdf") as doc:
        return [page.get_text() for page in doc]


@pytest.fixture
def service():
    return ExportService()


def test_overlays_are_written_to_their_pages(service, three_page_pdf):
    overlays = {0: [item("Hello")], 2: [item("Third page", x=0.1, y=0.1)]}
    result = service.export(three_page_pdf, overlays)

    texts = page_texts(result.data)
    assert len(texts) == 3
    assert "Hello" in texts[0]
    assert texts[1].strip() == ""
    assert "Third page" in texts[2]


def test_draw_position_uses_font_size_baseline(service, pdf_bytes):
    result = service.export(pdf_bytes, {0: [item("Hello")]})
    draw = result.draws[0]
    assert (draw.x, draw.y) == (297.5, 405.0)
    assert draw.width > 0

    with fitz.open(stream=result.data, filetype="pdf") as doc:
        hits = doc[0].search_for("Hello")
    assert hits
    assert hits[0].x0 == pytest.approx(297.5, abs=1.0)
    # ベースライン (上端から 842 - 405 = 437) は文字の矩形の中にある
    assert hits[0].y0 < 437 <= hits[0].y1 + 1


def test_colors_are_normalized(service, pdf_bytes):
    overlays = {0: [item("a", color="#ff0000"), item("b", color="blue"), item("c", color="nonsense")]}
    result = service.export(pdf_bytes, overlays)
    assert [d.rgb for d in result.draws] == [(1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0)]


def test_export_is_deterministic(service, pdf_bytes):
    overlays = {0: [item("Same", x=0.2, y=0.3, font_size=20)]}
    first = service.export(pdf_bytes, overlays)
    second = service.export(pdf_bytes, overlays)
    assert first.draws == second.draws
    assert page_texts(first.data) == page_texts(second.data)


def test_empty_text_and_no_overlays(service, pdf_bytes):
    result = service.export(pdf_bytes, {0: [item("")]})
    assert result.draws[0].width == 0
    assert page_texts(result.data)[0].strip() == ""

    untouched = service.export(pdf_bytes, {})
    assert untouched.draws == []
    assert len(page_texts(untouched.data)) == 1


def test_overlays_beyond_page_count_are_ignored(service, pdf_bytes):
    result = service.export(pdf_bytes, {0: [item("kept")], 5: [item("lost")]})
    assert [d.text for d in result.draws] == ["kept"]


def test_source_bytes_are_not_modified(service, pdf_bytes):
    original = bytes(pdf_bytes)
    service.export(pdf_bytes, {0: [item("x")]})
    assert pdf_bytes == original


@pytest.mark.parametrize("data", [b"", b"garbage that is not a pdf"])
def test_unreadable_source_raises(service, data):
    with pytest.raises(ExportFailure):
        service.export(data, {0: [item("x")]})


class BrokenWriter(FitzDocumentWriter):
    def __init__(self):
        self.closed = 0

    def draw_text(self, *args, **kwargs):
        raise RuntimeError("disk on fire")

    def close(self, doc):
        self.closed += 1
        super().close(doc)


def test_draw_failure_aborts_and_closes_document(pdf_bytes):
    writer = BrokenWriter()
    with pytest.raises(ExportFailure):
        ExportService(writer=writer).export(pdf_bytes, {0: [item("x")]})
    assert writer.closed == 1


@pytest.mark.parametrize("path, expected", [
    ("", "annotated.pdf"),
    ("out", "out.pdf"),
    ("out.PDF", "out.PDF"),
    ("dir/report.pdf", "dir/report.pdf"),
])
def test_ensure_pdf_suffix(path, expected):
    assert ExportService.ensure_pdf_suffix(path) == expected


def test_write_file(tmp_path):
    target = ExportService.write_file(b"%PDF-data", str(tmp_path / "result"))
    assert target.endswith("result.pdf")
    with open(target, "rb") as f:
        assert f.read() == b"%PDF-data"
    assert not os.path.exists(target + ".part")


def test_write_file_failure_leaves_nothing(tmp_path):
    target = tmp_path / "missing-dir" / "result.pdf"
    with pytest.raises(ExportFailure):
        ExportService.write_file(b"data", str(target))
    assert not target.exists()


def test_first_page_pixel_export(service):
    data = make_pdf([(595, 842), (595, 842)])
    items = [PixelTextItem(id="1", text="Filled", x=100, y=100)]
    result = service.export_first_page_pixels(data, items)
    draw = result.draws[0]
    assert (draw.x, draw.y, draw.font_size, draw.rgb) == (100, 742, 16, (0.0, 0.0, 0.0))
    texts = page_texts(result.data)
    assert "Filled" in texts[0]
    assert "Filled" not in texts[1]


def test_first_page_pixel_export_scales_canvas(service, pdf_bytes):
    items = [PixelTextItem(id="1", text="Half", x=100, y=100, size=12)]
    result = service.export_first_page_pixels(pdf_bytes, items, canvas_size=(297.5, 421))
    draw = result.draws[0]
    assert draw.x == pytest.approx(200)
    assert draw.y == pytest.approx(642)
