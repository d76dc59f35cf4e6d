# utils/constants.py
"""アプリケーション全体で使用する定数と設定値。

環境変数が設定されている項目は、その値で既定値を上書きします。
"""
import os

# --- 永続化・保存先 ---
DATA_DIR: str = os.environ.get("PDF_OVERLAY_DATA_DIR", "data")
STORAGE_FILE_NAME: str = "local_storage.json"
BLOB_DIR_NAME: str = "blobs"
LOG_DIR: str = os.environ.get("PDF_OVERLAY_LOG_DIR", os.path.join(DATA_DIR, "logs"))
OVERLAY_KEY_PREFIX: str = "overlays:"

# --- アップロード ---
# 空の場合はローカルのblobディレクトリにコピーする
UPLOAD_ENDPOINT: str = os.environ.get("PDF_OVERLAY_UPLOAD_URL", "")
BLOB_READ_WRITE_TOKEN: str = os.environ.get("BLOB_READ_WRITE_TOKEN", "")
REQUEST_TIMEOUT: int = int(os.environ.get("PDF_OVERLAY_REQUEST_TIMEOUT", "15"))
PDF_MIME_TYPE: str = "application/pdf"

# --- テキスト注釈 ---
DEFAULT_TEXT: str = "New Text"
DEFAULT_COLOR: str = "#111827"
DEFAULT_POSITION: float = 0.5
FONT_SIZE_MIN: int = 8
FONT_SIZE_MAX: int = 72
DEFAULT_FONT_SIZE_MIN: int = 12
DEFAULT_FONT_SIZE_MAX: int = 24
DEFAULT_FONT_SIZE_RATIO: float = 0.02

# --- 書き出し ---
STANDARD_FONT: str = "Helvetica"
EXPORT_FILE_NAME: str = "annotated.pdf"
