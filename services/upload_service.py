# services/upload_service.py
import logging
import os
import secrets
from datetime import datetime
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests

from utils.api_utils import APIUtils
from utils.constants import (BLOB_DIR_NAME, BLOB_READ_WRITE_TOKEN, DATA_DIR, PDF_MIME_TYPE,
                             REQUEST_TIMEOUT, UPLOAD_ENDPOINT)
from .errors import LoadFailure, UploadError, ValidationError

logger = logging.getLogger(__name__)


class UploadService:
    """PDFファイルのアップロードと、URLからの取得を管理するサービスクラス。

    アップロード先のエンドポイントが設定されている場合は multipart/form-data で送信し、
    レスポンスの ``url`` を返します。設定されていない場合はローカルのblobディレクトリに
    ランダムな接尾辞付きで保存し、``file://`` URLを返します。
    """

    def __init__(self, endpoint: str = UPLOAD_ENDPOINT, token: str = BLOB_READ_WRITE_TOKEN,
                 blob_dir: Optional[str] = None, timeout: int = REQUEST_TIMEOUT) -> None:
        """UploadServiceのコンストラクタ。

        Args:
            endpoint (str): アップロードAPIのURL。空の場合はローカル保存。
            token (str): アップロードAPIの認証トークン (Bearer)。
            blob_dir (Optional[str]): ローカル保存先ディレクトリ。
            timeout (int): HTTPリクエストのタイムアウト秒数。
        """
        self.endpoint = endpoint
        self.token = token
        self.blob_dir = blob_dir or os.path.join(DATA_DIR, BLOB_DIR_NAME)
        self.timeout = timeout

    @staticmethod
    def validate(file_bytes: bytes, declared_mime: str) -> None:
        """アップロード前の入力チェック。

        Raises:
            ValidationError: ファイルが空、またはPDF以外のMIMEタイプが宣言されている場合。
        """
        if not file_bytes:
            raise ValidationError("no-file", "ファイルが指定されていません")
        if (declared_mime or "").split(";")[0].strip().lower() != PDF_MIME_TYPE:
            raise ValidationError("invalid-type", "PDFファイルのみアップロードできます")

    @staticmethod
    def default_filename() -> str:
        return f"upload-{datetime.now().strftime('%Y%m%d%H%M%S')}.pdf"

    def upload(self, file_bytes: bytes, declared_mime: str, filename: str = "") -> str:
        """PDFファイルをアップロードし、公開URLを返す。

        Args:
            file_bytes (bytes): ファイルの内容。
            declared_mime (str): 宣言されたMIMEタイプ。
            filename (str): 元のファイル名。

        Returns:
            str: アップロードされたファイルのURL。

        Raises:
            ValidationError: 入力チェックに失敗した場合 (I/Oは行われない)。
            UploadError: 保存先への書き込みに失敗した場合。
        """
        self.validate(file_bytes, declared_mime)
        filename = os.path.basename(filename) or self.default_filename()
        if self.endpoint:
            return self._upload_remote(file_bytes, filename)
        return self._store_local(file_bytes, filename)

    def _upload_remote(self, file_bytes: bytes, filename: str) -> str:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        try:
            body = APIUtils.make_api_request(
                self.endpoint,
                method="POST",
                files={"file": (filename, file_bytes, PDF_MIME_TYPE)},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise UploadError(details=APIUtils.error_message(e) or str(e)) from e
        except ValueError as e:
            raise UploadError(details=f"invalid response: {e}") from e
        if not isinstance(body, dict) or not body.get("url"):
            error = body.get("error") if isinstance(body, dict) else None
            raise UploadError(details=str(error or "no url in response"))
        url = body["url"]
        logger.info("Uploaded %s -> %s", filename, url)
        return url

    def _store_local(self, file_bytes: bytes, filename: str) -> str:
        stem = Path(filename).stem or "upload"
        target = Path(self.blob_dir) / f"{stem}-{secrets.token_hex(8)}.pdf"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(file_bytes)
        except OSError as e:
            raise UploadError(details=str(e)) from e
        url = target.resolve().as_uri()
        logger.info("Stored %s locally -> %s", filename, url)
        return url

    def fetch(self, url: str) -> bytes:
        """URL (http(s)://, file:// またはローカルパス) からPDFのバイト列を取得する。

        Raises:
            LoadFailure: 取得に失敗した場合。
        """
        parsed = urlparse(url)
        try:
            if parsed.scheme in ("http", "https"):
                return APIUtils.fetch_bytes(url, timeout=self.timeout)
            if parsed.scheme == "file":
                return Path(url2pathname(parsed.path)).read_bytes()
            return Path(url).read_bytes()
        except (requests.exceptions.RequestException, OSError) as e:
            raise LoadFailure(f"PDFを取得できませんでした: {url}: {e}") from e
