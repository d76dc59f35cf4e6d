import os
from collections import deque
from typing import Callable, Deque, Iterable, List, Optional, Tuple

import fitz
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from models.overlay_models import PageSize
from services.overlay_service import OverlayService
from services.storage_service import StorageService


def make_pdf(page_sizes: Iterable[Tuple[float, float]] = ((595, 842),)) -> bytes:
    """指定サイズの空白ページからなるPDFを生成する。"""
    doc = fitz.open()
    for width, height in page_sizes:
        doc.new_page(width=width, height=height)
    data = doc.tobytes()
    doc.close()
    return data


class ManualScheduler:
    """スケジュールされた処理を溜めておき、テストから明示的に実行するスケジューラ。"""

    def __init__(self) -> None:
        self.queue: Deque[Callable[[], None]] = deque()

    def __call__(self, callback: Callable[[], None]) -> None:
        self.queue.append(callback)

    def step(self) -> bool:
        if not self.queue:
            return False
        self.queue.popleft()()
        return True

    def drain(self, limit: int = 10000) -> int:
        count = 0
        while self.step():
            count += 1
            if count >= limit:
                raise RuntimeError("scheduler did not settle")
        return count


class FakeDocument:
    def __init__(self, data: bytes, sizes: List[PageSize]) -> None:
        self.data = data
        self.sizes = sizes
        self.closed = False


class FakeRenderer:
    """PDFを使わずにパイプラインを動かすためのレンダラー。

    ``documents`` にはロードするバイト列ごとのページサイズを、``failing_pages`` には
    レンダリングに失敗させるページ番号を指定します。
    """

    def __init__(self, documents=None, failing_pages=()) -> None:
        self.documents = documents or {}
        self.failing_pages = set(failing_pages)
        self.loaded: List[FakeDocument] = []
        self.rendered: List[Tuple[bytes, int]] = []

    def load(self, data: bytes) -> FakeDocument:
        if data not in self.documents:
            raise ValueError("not a PDF")
        doc = FakeDocument(data, [PageSize(w, h) for w, h in self.documents[data]])
        self.loaded.append(doc)
        return doc

    def page_count(self, doc: FakeDocument) -> int:
        return len(doc.sizes)

    def get_native_size(self, doc: FakeDocument, page_index: int) -> PageSize:
        return doc.sizes[page_index]

    def render_into(self, doc: FakeDocument, page_index: int, surface) -> None:
        if page_index in self.failing_pages:
            raise RuntimeError("broken page")
        self.rendered.append((doc.data, page_index))
        surface.paint(object())

    def close(self, doc: FakeDocument) -> None:
        doc.closed = True


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def storage(tmp_path) -> StorageService:
    return StorageService(base_path=str(tmp_path / "data"))


@pytest.fixture
def overlay_service(storage) -> OverlayService:
    return OverlayService(storage)


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf([(595, 842)])


@pytest.fixture
def three_page_pdf() -> bytes:
    return make_pdf([(595, 842), (842, 595), (612, 792)])


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtWidgets import QApplication
    app: Optional[QApplication] = QApplication.instance() or QApplication([])
    yield app
