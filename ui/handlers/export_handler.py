from __future__ import annotations
import os
from typing import TYPE_CHECKING

from PyQt6.QtWidgets import QFileDialog, QMessageBox

from utils.constants import EXPORT_FILE_NAME

if TYPE_CHECKING:
    from ..main_window import MainWindow


class ExportHandler:
    """
    テキスト注釈を焼き込んだPDFをファイルに書き出す機能を提供します。
    """
    def __init__(self, main_window: MainWindow) -> None:
        """
        ExportHandlerのコンストラクタ。

        Args:
            main_window (MainWindow): 親となるメインウィンドウインスタンス。
        """
        self.main: MainWindow = main_window

    def save_as_pdf(self) -> None:
        """
        保存先を選択させ、注釈付きのPDFを書き出す。
        ファイル名が .pdf で終わらない場合は付け足します。
        """
        if not self.main.session.can_export:
            return
        initial_path = os.path.join(os.path.expanduser("~"), EXPORT_FILE_NAME)
        file_path, _ = QFileDialog.getSaveFileName(
            self.main, "PDFを書き出す", initial_path, "PDF Files (*.pdf)"
        )
        if not file_path:
            return

        self.main.set_status("書き出し中...")
        saved_path = self.main.session.export_to_file(file_path)
        if saved_path:
            self.main.set_status(f"書き出しました: {saved_path}")
            QMessageBox.information(self.main, "保存完了", f"注釈付きのPDFを保存しました。\n{saved_path}")
        else:
            self.main.set_status("書き出しに失敗しました")
