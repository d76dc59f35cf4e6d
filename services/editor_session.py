# services/editor_session.py
import logging
from typing import Callable, List, Optional, Tuple

from models.overlay_models import DocumentInfo
from .errors import ExportFailure, LoadFailure, OverlayEditorError, UploadError, ValidationError
from .export_service import ExportResult, ExportService
from .interaction_controller import InteractionController
from .overlay_service import OverlayService
from .overlay_store import OverlayStore
from .render_service import PageSurface, RenderPipeline
from .upload_service import UploadService

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


def _log_notifier(title: str, message: str) -> None:
    logger.warning("%s: %s", title, message)


class EditorSession:
    """1つのPDF編集セッション全体 (アップロード → レンダリング → 注釈編集 → 書き出し) を調整するクラス。

    外部コンポーネントの失敗はここで捕捉し、``notify(title, message)`` で利用者に通知します。
    書き出し中は新しい文書のロードを受け付けません。
    """

    def __init__(
        self,
        pipeline: RenderPipeline,
        overlay_service: OverlayService,
        export_service: Optional[ExportService] = None,
        upload_service: Optional[UploadService] = None,
        store: Optional[OverlayStore] = None,
        notify: Optional[Notifier] = None
    ) -> None:
        self.pipeline = pipeline
        self.overlay_service = overlay_service
        self.export_service = export_service or ExportService()
        self.upload_service = upload_service or UploadService()
        self.store = store or OverlayStore()
        self.controller = InteractionController(self.store, self.pipeline)
        self.notify: Notifier = notify or _log_notifier

        self.current_url: Optional[str] = None
        self._export_bytes: Optional[bytes] = None
        self._pending: Optional[Tuple[str, bytes]] = None
        self._exporting: bool = False

        self.document_ready_listeners: List[Callable[[DocumentInfo, List[PageSurface]], None]] = []
        self.pipeline.on_ready = self._on_render_ready
        self.pipeline.on_failed = self._on_render_failed

    @property
    def is_exporting(self) -> bool:
        return self._exporting

    @property
    def can_export(self) -> bool:
        return self._export_bytes is not None and not self._exporting

    # --- 文書の読み込み ---
    def upload_and_open(self, file_bytes: bytes, declared_mime: str, filename: str = "") -> Optional[str]:
        """ファイルをアップロードし、返されたURLで文書を開く。

        Returns:
            Optional[str]: アップロード先のURL。失敗した場合はNone。
        """
        if self._refuse_while_exporting():
            return None
        try:
            url = self.upload_service.upload(file_bytes, declared_mime, filename)
        except ValidationError as e:
            self.notify("アップロード", str(e))
            return None
        except UploadError as e:
            logger.error("Upload failed: %s", e.details)
            self.notify("アップロードエラー", f"アップロードに失敗しました。\n{e.details or ''}".strip())
            return None
        if not self.open_bytes(url, file_bytes):
            return None
        return url

    def open_url(self, url: str) -> bool:
        """URLからPDFを取得して開く (再読み込み用)。"""
        if self._refuse_while_exporting():
            return False
        try:
            data = self.upload_service.fetch(url)
        except LoadFailure as e:
            logger.error("%s", e)
            self.notify("PDFエラー", "URLからPDFを読み込めませんでした。")
            return False
        return self.open_bytes(url, data)

    def open_bytes(self, url: str, data: bytes) -> bool:
        """PDFのバイト列のレンダリングを開始する。

        レンダリング用と書き出し用には別々のコピーを持ちます。
        """
        if self._refuse_while_exporting():
            return False
        # 破棄された実行は on_ready を呼ばないため、保留中のロードは常に最新の1件だけ
        self._pending = (url, bytes(bytearray(data)))
        self.pipeline.load(bytes(bytearray(data)), url)
        return True

    def _refuse_while_exporting(self) -> bool:
        if self._exporting:
            logger.warning("Document load requested during export; ignored")
            self.notify("書き出し中", "書き出しが完了するまで別の文書は開けません。")
        return self._exporting

    def _on_render_ready(self, document: DocumentInfo, surfaces: List[PageSurface]) -> None:
        pending, self._pending = self._pending, None
        if pending is None:
            return
        url, export_copy = pending
        self.current_url = url
        self._export_bytes = export_copy
        self.overlay_service.bind(self.store, url)
        if self.pipeline.failed_pages:
            pages = ", ".join(str(i + 1) for i in self.pipeline.failed_pages)
            self.notify("レンダリングエラー", f"一部のページを表示できませんでした: {pages}")
        for listener in self.document_ready_listeners:
            listener(document, surfaces)

    def _on_render_failed(self, error: Exception) -> None:
        self._pending = None
        self.notify("PDFエラー", f"PDFを表示できませんでした。\n{error}")

    # --- 書き出し ---
    def export(self) -> Optional[ExportResult]:
        """現在の文書と注釈からPDFを生成する。失敗した場合は通知してNoneを返す。"""
        if self._export_bytes is None or self._exporting:
            return None
        self._exporting = True
        try:
            return self.export_service.export(self._export_bytes, self.store.snapshot())
        except ExportFailure as e:
            self.notify("書き出しエラー", f"PDFの書き出しに失敗しました。\n{e}")
            return None
        finally:
            self._exporting = False

    def export_to_file(self, file_path: str) -> Optional[str]:
        """PDFを生成してファイルに保存する。保存したパスを返す。"""
        result = self.export()
        if result is None:
            return None
        try:
            return ExportService.write_file(result.data, file_path)
        except OverlayEditorError as e:
            self.notify("書き出しエラー", str(e))
            return None
