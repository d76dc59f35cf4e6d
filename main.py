"""
アプリケーションのエントリーポイント。

ログの設定を行ってからPyQt6アプリケーションを初期化し、メインウィンドウである
MainWindowを生成・表示して、アプリケーションのイベントループを開始します。
コマンドライン引数にPDFのパスまたはURLを渡すと、起動時にその文書を開きます。
"""
import sys
import os
from pathlib import Path
from PyQt6.QtWidgets import QApplication

# このファイル(main.py)があるディレクトリをモジュールの検索パスに追加し、
# ui / services / utils などのプロジェクト内モジュールを見つけられるようにします。
current_dir: str = os.path.dirname(os.path.abspath(__file__))
if current_dir not in sys.path:
    sys.path.append(current_dir)

from ui.main_window import MainWindow
from utils.constants import LOG_DIR
from utils.logging_config import LoggingConfig


def run() -> None:
    LoggingConfig.setup_logging(Path(LOG_DIR))

    app: QApplication = QApplication(sys.argv)
    window: MainWindow = MainWindow()
    window.show()

    # 起動引数で文書が指定されていれば開く
    if len(sys.argv) > 1:
        target = sys.argv[1]
        if target.startswith(("http://", "https://", "file://")):
            window.pdf_handler.open_url(target)
        else:
            window.pdf_handler.open_path(target)

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
