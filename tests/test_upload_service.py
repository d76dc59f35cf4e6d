from pathlib import Path

import pytest
import requests

from services.errors import LoadFailure, UploadError, ValidationError
from services.upload_service import UploadService


class FakeResponse:
    def __init__(self, status_code=200, body=None, content=b""):
        self.status_code = status_code
        self._body = body
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


@pytest.fixture
def local_service(tmp_path):
    return UploadService(endpoint="", blob_dir=str(tmp_path / "blobs"))


@pytest.mark.parametrize("data, mime, code", [
    (b"", "application/pdf", "no-file"),
    (b"%PDF", "image/png", "invalid-type"),
    (b"%PDF", "", "invalid-type"),
    (b"%PDF", "application/x-pdf", "invalid-type"),
])
def test_validation(local_service, data, mime, code):
    with pytest.raises(ValidationError) as excinfo:
        local_service.upload(data, mime, "a.pdf")
    assert excinfo.value.code == code
    assert not Path(local_service.blob_dir).exists()


def test_mime_parameters_are_ignored():
    UploadService.validate(b"%PDF", "Application/PDF; charset=binary")


def test_local_store_returns_fetchable_file_url(local_service, pdf_bytes):
    first = local_service.upload(pdf_bytes, "application/pdf", "report.pdf")
    second = local_service.upload(pdf_bytes, "application/pdf", "report.pdf")
    assert first.startswith("file://")
    assert first != second
    assert "report-" in first
    assert local_service.fetch(first) == pdf_bytes


def test_default_filename_when_missing(local_service, pdf_bytes):
    url = local_service.upload(pdf_bytes, "application/pdf")
    assert "/upload-" in url


def test_remote_upload_posts_multipart(monkeypatch, pdf_bytes):
    calls = []

    def fake_request(method, url, **kwargs):
        calls.append((method, url, kwargs))
        return FakeResponse(body={"url": "https://blob.example.com/report-abc.pdf"})

    monkeypatch.setattr(requests, "request", fake_request)
    service = UploadService(endpoint="https://api.example.com/upload", token="secret")
    url = service.upload(pdf_bytes, "application/pdf", "report.pdf")

    assert url == "https://blob.example.com/report-abc.pdf"
    method, endpoint, kwargs = calls[0]
    assert (method, endpoint) == ("POST", "https://api.example.com/upload")
    assert kwargs["files"]["file"] == ("report.pdf", pdf_bytes, "application/pdf")
    assert kwargs["headers"] == {"Authorization": "Bearer secret"}


def test_remote_error_body_is_reported(monkeypatch, pdf_bytes):
    monkeypatch.setattr(requests, "request",
                        lambda method, url, **kwargs: FakeResponse(500, body={"error": "quota exceeded"}))
    service = UploadService(endpoint="https://api.example.com/upload")
    with pytest.raises(UploadError) as excinfo:
        service.upload(pdf_bytes, "application/pdf", "report.pdf")
    assert excinfo.value.code == "upload-failed"
    assert excinfo.value.details == "quota exceeded"


def test_remote_response_without_url(monkeypatch, pdf_bytes):
    monkeypatch.setattr(requests, "request", lambda method, url, **kwargs: FakeResponse(body={}))
    with pytest.raises(UploadError):
        UploadService(endpoint="https://api.example.com/upload").upload(pdf_bytes, "application/pdf")


def test_remote_network_error(monkeypatch, pdf_bytes):
    def boom(method, url, **kwargs):
        raise requests.exceptions.ConnectionError("unreachable")

    monkeypatch.setattr(requests, "request", boom)
    with pytest.raises(UploadError) as excinfo:
        UploadService(endpoint="https://api.example.com/upload").upload(pdf_bytes, "application/pdf")
    assert "unreachable" in excinfo.value.details


def test_fetch_http(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(content=b"%PDF-remote"))
    assert UploadService().fetch("https://blob.example.com/a.pdf") == b"%PDF-remote"


def test_fetch_failures(monkeypatch, tmp_path):
    monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(404))
    service = UploadService()
    with pytest.raises(LoadFailure):
        service.fetch("https://blob.example.com/missing.pdf")
    with pytest.raises(LoadFailure):
        service.fetch(str(tmp_path / "missing.pdf"))
