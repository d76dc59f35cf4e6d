# services/errors.py
"""注釈エディタで扱う例外の定義。"""
from typing import Optional


class OverlayEditorError(Exception):
    """注釈エディタの例外の基底クラス。"""


class ValidationError(OverlayEditorError):
    """入力ファイルが受け付けられない場合 (PDF以外など)。

    Attributes:
        code (str): エラー種別 ("invalid-type", "no-file")。
    """
    def __init__(self, code: str, message: Optional[str] = None) -> None:
        super().__init__(message or code)
        self.code = code


class UploadError(OverlayEditorError):
    """アップロード先への保存に失敗した場合。"""
    def __init__(self, message: str = "upload-failed", details: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = "upload-failed"
        self.details = details


class LoadFailure(OverlayEditorError):
    """PDFのバイト列を読み込めない場合。そのロード要求だけが中断される。"""


class PageRenderFailure(OverlayEditorError):
    """単一ページのレンダリング失敗。他のページの処理は継続する。"""
    def __init__(self, page_index: int, message: str) -> None:
        super().__init__(f"page {page_index}: {message}")
        self.page_index = page_index


class PersistenceReadFailure(OverlayEditorError):
    """保存済み注釈の読み込み・解析に失敗した場合。利用者には通知しない。"""


class ExportFailure(OverlayEditorError):
    """書き出し全体の失敗。部分的なファイルは作成されない。"""
