# services/render_service.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

import fitz  # PyMuPDF
from PyQt6.QtCore import QTimer
from PyQt6.QtGui import QImage

from models.overlay_models import DocumentInfo, PageSize
from utils.pdf_utils import PDFUtils
from .errors import LoadFailure, PageRenderFailure

logger = logging.getLogger(__name__)

Scheduler = Callable[[Callable[[], None]], None]


class RenderState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass
class PageSurface:
    """1ページ分の描画面。

    サイズはページのネイティブサイズ (スケール1、1ポイント=1ピクセル) と一致します。

    Attributes:
        index (int): ページ番号 (0始まり)。
        size (PageSize): 描画面のサイズ。
        image (Optional[QImage]): レンダリング結果。失敗した場合はNone。
        error (Optional[str]): レンダリングに失敗した場合のエラーメッセージ。
    """
    index: int
    size: PageSize
    image: Optional[QImage] = None
    error: Optional[str] = None

    @property
    def is_rendered(self) -> bool:
        return self.image is not None

    def paint(self, image: QImage) -> None:
        self.image = image
        self.error = None


class FitzPageRenderer:
    """PyMuPDFを使ったページレンダラー。"""

    def load(self, data: bytes) -> fitz.Document:
        return PDFUtils.open_from_bytes(data)

    def page_count(self, doc: fitz.Document) -> int:
        return doc.page_count

    def get_native_size(self, doc: fitz.Document, page_index: int) -> PageSize:
        return PDFUtils.page_size(doc.load_page(page_index))

    def render_into(self, doc: fitz.Document, page_index: int, surface: PageSurface) -> None:
        surface.paint(PDFUtils.render_page(doc.load_page(page_index), scale=1.0))

    def close(self, doc: fitz.Document) -> None:
        doc.close()


def qt_scheduler(callback: Callable[[], None]) -> None:
    """イベントループに処理を戻してから次のステップを実行する。"""
    QTimer.singleShot(0, callback)


@dataclass
class _RenderRun:
    token: int
    url: str
    data: bytes
    doc: Any = None
    sizes: List[PageSize] = field(default_factory=list)
    surfaces: List[PageSurface] = field(default_factory=list)
    failed_pages: List[int] = field(default_factory=list)


class RenderPipeline:
    """PDFを読み込み、全ページのサイズ取得とレンダリングを順番に行うパイプライン。

    状態は ``IDLE → LOADING → (READY | FAILED)`` と遷移します。各ステップは
    ``scheduler`` 経由で1つずつ実行され、ステップの開始時に毎回ロードトークンを
    確認します。新しい ``load`` が呼ばれると古い実行は破棄され、その結果は
    一切公開されません。

    一部のページのレンダリングに失敗しても残りのページの処理は続行し、
    失敗したページは ``failed_pages`` に記録されます。

    Callbacks:
        on_state_changed(state): 状態が変わったとき。
        on_progress(done, total): ページのレンダリングが1つ終わるたび (現在の実行のみ)。
        on_ready(document, surfaces): 全ページの処理が完了したとき。
        on_failed(error): 文書を開けなかったとき。表示中の内容はそのまま残る。
    """

    def __init__(self, renderer: Optional[FitzPageRenderer] = None,
                 scheduler: Optional[Scheduler] = None) -> None:
        self.renderer = renderer or FitzPageRenderer()
        self._schedule: Scheduler = scheduler or qt_scheduler
        self._token: int = 0
        self.state: RenderState = RenderState.IDLE
        self.document: Optional[DocumentInfo] = None
        self.surfaces: List[PageSurface] = []
        self.failed_pages: List[int] = []
        self.last_error: Optional[Exception] = None

        self.on_state_changed: Optional[Callable[[RenderState], None]] = None
        self.on_progress: Optional[Callable[[int, int], None]] = None
        self.on_ready: Optional[Callable[[DocumentInfo, List[PageSurface]], None]] = None
        self.on_failed: Optional[Callable[[Exception], None]] = None

    @property
    def current_token(self) -> int:
        return self._token

    def is_ready(self) -> bool:
        return self.state is RenderState.READY and self.document is not None

    def page_size(self, page_index: int) -> Optional[PageSize]:
        """READY状態でページ番号が範囲内の場合にページサイズを返す。"""
        if not self.is_ready() or not 0 <= page_index < self.document.page_count:
            return None
        return self.document.page_sizes[page_index]

    def displayed_page_size(self, page_index: int) -> Optional[PageSize]:
        """最後に公開した文書のページサイズを返す。

        ロード中やロード失敗後も、前の文書が表示されている間はそのサイズを返します。
        """
        if self.document is None or not 0 <= page_index < self.document.page_count:
            return None
        return self.document.page_sizes[page_index]

    def load(self, data: bytes, url: str = "") -> int:
        """文書のロードを開始し、そのロードトークンを返す。

        実行中のロードがあれば破棄されます。``data`` はパイプライン専用にコピーされます。
        """
        self._token += 1
        run = _RenderRun(token=self._token, url=url, data=bytes(data))
        self._set_state(RenderState.LOADING)
        self._schedule(lambda: self._open(run))
        return run.token

    def cancel(self) -> None:
        """実行中のロードを破棄する。状態は変わらない。"""
        self._token += 1

    # --- ステップ ---
    def _is_current(self, run: _RenderRun) -> bool:
        if run.token == self._token:
            return True
        logger.debug("Discarding superseded render run (token %d, current %d)", run.token, self._token)
        if run.doc is not None:
            self.renderer.close(run.doc)
            run.doc = None
        return False

    def _open(self, run: _RenderRun) -> None:
        if not self._is_current(run):
            return
        try:
            run.doc = self.renderer.load(run.data)
        except Exception as e:
            self._fail(run, LoadFailure(f"PDFを開けませんでした: {e}"))
            return
        self._schedule(lambda: self._measure(run))

    def _measure(self, run: _RenderRun) -> None:
        if not self._is_current(run):
            return
        try:
            count = self.renderer.page_count(run.doc)
            run.sizes = [self.renderer.get_native_size(run.doc, i) for i in range(count)]
        except Exception as e:
            self._fail(run, LoadFailure(f"ページ情報を取得できませんでした: {e}"))
            return
        run.surfaces = [PageSurface(index=i, size=size) for i, size in enumerate(run.sizes)]
        self._schedule(lambda: self._render_page(run, 0))

    def _render_page(self, run: _RenderRun, page_index: int) -> None:
        if not self._is_current(run):
            return
        if page_index >= len(run.surfaces):
            self._finish(run)
            return
        surface = run.surfaces[page_index]
        try:
            self.renderer.render_into(run.doc, page_index, surface)
        except Exception as e:
            failure = PageRenderFailure(page_index, str(e))
            surface.error = str(failure)
            run.failed_pages.append(page_index)
            logger.error("Page render failed: %s", failure)
        if self.on_progress:
            self.on_progress(page_index + 1, len(run.surfaces))
        self._schedule(lambda: self._render_page(run, page_index + 1))

    def _finish(self, run: _RenderRun) -> None:
        if run.doc is not None:
            self.renderer.close(run.doc)
            run.doc = None
        self.document = DocumentInfo(url=run.url, page_count=len(run.sizes), page_sizes=tuple(run.sizes))
        self.surfaces = run.surfaces
        self.failed_pages = run.failed_pages
        self.last_error = None
        self._set_state(RenderState.READY)
        logger.info("Rendered %d page(s) (%d failed)", self.document.page_count, len(self.failed_pages))
        if self.on_ready:
            self.on_ready(self.document, self.surfaces)

    def _fail(self, run: _RenderRun, error: Exception) -> None:
        if run.doc is not None:
            self.renderer.close(run.doc)
            run.doc = None
        self.last_error = error
        logger.error("Render pipeline failed: %s", error)
        self._set_state(RenderState.FAILED)
        if self.on_failed:
            self.on_failed(error)

    def _set_state(self, state: RenderState) -> None:
        if self.state is state:
            return
        self.state = state
        if self.on_state_changed:
            self.on_state_changed(state)
