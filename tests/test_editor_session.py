import fitz
import pytest

from conftest import FakeRenderer, make_pdf
from services.editor_session import EditorSession
from services.errors import ExportFailure
from services.export_service import ExportService
from services.render_service import RenderPipeline, RenderState
from services.upload_service import UploadService


@pytest.fixture
def notices():
    return []


@pytest.fixture
def session(qapp, scheduler, overlay_service, tmp_path, notices):
    return EditorSession(
        pipeline=RenderPipeline(scheduler=scheduler),
        overlay_service=overlay_service,
        export_service=ExportService(),
        upload_service=UploadService(endpoint="", blob_dir=str(tmp_path / "blobs")),
        notify=lambda title, message: notices.append((title, message)),
    )


def test_upload_render_edit_export(session, scheduler, three_page_pdf):
    ready = []
    session.document_ready_listeners.append(lambda doc, surfaces: ready.append(doc))
    url = session.upload_and_open(three_page_pdf, "application/pdf", "exam.pdf")
    assert url.startswith("file://")
    assert not session.can_export
    scheduler.drain()

    assert ready[0].page_count == 3
    assert session.current_url == url
    assert session.can_export
    item = session.controller.add_text_overlay(1)
    session.controller.on_edit_field(1, item.id, "text", "Answer")

    result = session.export()
    with fitz.open(stream=result.data, filetype="pdf") as doc:
        assert "Answer" in doc[1].get_text()
    assert session.is_exporting is False


def test_overlays_restored_when_document_reopened(session, scheduler, three_page_pdf):
    session.open_bytes("file:///exam.pdf", three_page_pdf)
    scheduler.drain()
    for page in range(3):
        session.controller.add_text_overlay(page)

    session.open_bytes("file:///other.pdf", make_pdf())
    scheduler.drain()
    assert session.store.pages() == []

    session.open_bytes("file:///exam.pdf", three_page_pdf)
    scheduler.drain()
    assert session.store.pages() == [0, 1, 2]


def test_invalid_upload_is_reported(session, notices):
    assert session.upload_and_open(b"PNG", "image/png", "a.png") is None
    assert notices and notices[0][0] == "アップロード"
    assert session.pipeline.state is RenderState.IDLE


def test_broken_pdf_is_reported_and_previous_document_kept(session, scheduler, pdf_bytes, notices):
    session.open_bytes("file:///good.pdf", pdf_bytes)
    scheduler.drain()
    item = session.controller.add_text_overlay(0)
    session.open_bytes("file:///bad.pdf", b"not a pdf")
    scheduler.drain()

    assert notices[-1][0] == "PDFエラー"
    assert session.current_url == "file:///good.pdf"
    assert session.controller.add_text_overlay(0) is None
    assert session.controller.on_drag_stop(0, item.id, (0, 0))
    assert session.store.get(0, item.id).x == 0.0


def test_superseded_load_does_not_rebind(scheduler, overlay_service, notices):
    renderer = FakeRenderer(documents={b"a": [(100, 100)], b"b": [(200, 200)]})
    session = EditorSession(RenderPipeline(renderer, scheduler), overlay_service,
                            notify=lambda t, m: notices.append(t))
    session.open_bytes("url-a", b"a")
    scheduler.step()
    session.open_bytes("url-b", b"b")
    scheduler.drain()
    assert session.current_url == "url-b"
    assert session.pipeline.document.url == "url-b"


def test_load_is_refused_while_exporting(session, scheduler, pdf_bytes, notices):
    session.open_bytes("file:///a.pdf", pdf_bytes)
    scheduler.drain()
    session._exporting = True
    assert session.open_bytes("file:///b.pdf", pdf_bytes) is False
    assert notices[-1][0] == "書き出し中"
    assert not scheduler.queue


def test_export_failure_is_reported(session, scheduler, pdf_bytes, notices, monkeypatch):
    session.open_bytes("file:///a.pdf", pdf_bytes)
    scheduler.drain()

    def fail(*args):
        raise ExportFailure("boom")

    monkeypatch.setattr(session.export_service, "export", fail)
    assert session.export() is None
    assert notices[-1][0] == "書き出しエラー"
    assert session.is_exporting is False


def test_export_to_file(session, scheduler, pdf_bytes, tmp_path):
    session.open_bytes("file:///a.pdf", pdf_bytes)
    scheduler.drain()
    session.controller.add_text_overlay(0)
    path = session.export_to_file(str(tmp_path / "out"))
    assert path.endswith("out.pdf")
    with fitz.open(path) as doc:
        assert "New Text" in doc[0].get_text()


def test_export_without_document(session):
    assert session.export() is None
    assert session.export_to_file("x.pdf") is None
