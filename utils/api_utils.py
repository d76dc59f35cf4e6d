# utils/api_utils.py
import logging
from typing import Dict, Any, Optional

import requests

from utils.constants import REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class APIUtils:
    """HTTP通信に関する共通処理を提供するユーティリティクラス。"""

    @staticmethod
    def make_api_request(
        url: str,
        method: str = "POST",
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: int = REQUEST_TIMEOUT
    ) -> Dict[str, Any]:
        """指定されたURLにAPIリクエストを送信し、JSONレスポンスを返す。

        Args:
            url (str): リクエストを送信するAPIエンドポイントのURL。
            method (str): HTTPメソッド（例: "GET", "POST"）。
            data (Optional[Dict[str, Any]]): リクエストボディとして送信するJSONデータ。
            files (Optional[Dict[str, Any]]): multipart/form-data で送信するファイル。
            headers (Optional[Dict[str, str]]): 追加のリクエストヘッダー。
            timeout (int): タイムアウト秒数。

        Returns:
            Dict[str, Any]: APIからのJSONレスポンス。

        Raises:
            requests.exceptions.RequestException: ネットワークエラーやHTTPエラーステータスの場合。
        """
        try:
            response = requests.request(method, url, json=data, files=files, headers=headers, timeout=timeout)
            response.raise_for_status()  # 2xx以外のステータスコードで例外を発生させる
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error("API request to %s failed: %s", url, e)
            raise

    @staticmethod
    def fetch_bytes(url: str, timeout: int = REQUEST_TIMEOUT) -> bytes:
        """URLの内容をバイト列として取得する。

        Raises:
            requests.exceptions.RequestException: ネットワークエラーやHTTPエラーステータスの場合。
        """
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return response.content

    @staticmethod
    def error_message(error: requests.exceptions.RequestException) -> Optional[str]:
        """HTTPエラーレスポンスのJSON本文から ``error`` 項目を取り出す。"""
        response = getattr(error, 'response', None)
        if response is None:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return None
