from __future__ import annotations
import mimetypes
import os
from typing import TYPE_CHECKING

from PyQt6.QtWidgets import QFileDialog, QInputDialog, QMessageBox

if TYPE_CHECKING:
    from ..main_window import MainWindow


class PDFHandler:
    """
    PDF文書の選択・アップロード・URLからの読み込みを担うハンドラクラス。
    実際の処理はEditorSessionに委譲し、ダイアログの表示だけを行います。
    """
    def __init__(self, main_window: MainWindow) -> None:
        """
        PDFHandlerのコンストラクタ。

        Args:
            main_window (MainWindow): 親となるメインウィンドウインスタンス。
        """
        self.main: MainWindow = main_window

    def _read_file(self, file_path: str):
        try:
            with open(file_path, 'rb') as f:
                return f.read()
        except OSError as e:
            QMessageBox.critical(self.main, "PDFエラー", f"ファイルを読み込めませんでした: {e}")
            return None

    def upload_pdf_file(self) -> None:
        """
        ファイルダイアログでPDFを選択させ、アップロードしてから表示する。
        """
        file_path, _ = QFileDialog.getOpenFileName(self.main, "アップロードするPDFを選択", "", "PDF Files (*.pdf)")
        if not file_path:
            return
        data = self._read_file(file_path)
        if data is None:
            return
        mime, _ = mimetypes.guess_type(file_path)
        url = self.main.session.upload_and_open(data, mime or "", os.path.basename(file_path))
        if url:
            self.main.set_status(f"読み込み中: {os.path.basename(file_path)}")

    def open_pdf_file(self) -> None:
        """
        アップロードせずにローカルのPDFを開く。ファイルのパスが文書の識別子になる。
        """
        file_path, _ = QFileDialog.getOpenFileName(self.main, "PDFファイルを開く", "", "PDF Files (*.pdf)")
        if not file_path:
            return
        self.open_path(file_path)

    def open_path(self, file_path: str) -> None:
        data = self._read_file(file_path)
        if data is None:
            return
        if self.main.session.open_bytes(os.path.abspath(file_path), data):
            self.main.set_status(f"読み込み中: {os.path.basename(file_path)}")

    def open_pdf_url(self) -> None:
        """
        URLを入力させ、そのPDFを取得して表示する。
        """
        url, ok = QInputDialog.getText(self.main, "URLから開く", "PDFのURL:")
        if not ok or not url.strip():
            return
        self.open_url(url.strip())

    def open_url(self, url: str) -> None:
        if self.main.session.open_url(url):
            self.main.set_status(f"読み込み中: {url}")

