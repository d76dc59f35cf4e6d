# utils/logging_config.py
"""ロギングの初期設定をまとめたモジュール。"""
import logging
import sys
from pathlib import Path
from typing import Optional


class LoggingConfig:
    """アプリケーション全体のロギング設定を一元管理するクラス。"""

    LOG_FILE_NAME = "pdf_overlay_editor.log"

    _initialized: bool = False
    _log_file_path: Optional[Path] = None

    @classmethod
    def setup_logging(cls, log_dir: Path, console_level: int = logging.INFO) -> None:
        """ルートロガーにファイル出力とコンソール出力のハンドラを設定する。

        2回目以降の呼び出しは何もしません。

        Args:
            log_dir (Path): ログファイルを書き出すディレクトリ。存在しない場合は作成されます。
            console_level (int): コンソールに出力する最低ログレベル。
        """
        if cls._initialized:
            return

        log_dir.mkdir(parents=True, exist_ok=True)
        cls._log_file_path = log_dir / cls.LOG_FILE_NAME

        logger = logging.getLogger()
        logger.setLevel(logging.DEBUG)

        file_handler = logging.FileHandler(cls._log_file_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
        logger.addHandler(console_handler)

        cls._initialized = True
        logger.info("Logging system initialized")

    @classmethod
    def get_log_file_path(cls) -> Optional[Path]:
        """現在のログファイルのパスを返す。未初期化の場合はNone。"""
        return cls._log_file_path


__all__ = ['LoggingConfig']
