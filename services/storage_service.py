# services/storage_service.py
import json
import logging
import os
from typing import Dict, Any, Optional, Union, List

from .errors import PersistenceReadFailure
from utils.constants import DATA_DIR, STORAGE_FILE_NAME

logger = logging.getLogger(__name__)


class StorageService:
    """ローカルファイルシステムへのデータ永続化を管理するサービスクラス。

    JSON形式のデータの保存・読み込みと、単一のJSONファイルを使った
    キー・バリュー形式の文字列ストア (``get`` / ``set``) を提供します。
    """

    def __init__(self, base_path: str = DATA_DIR, store_file_name: str = STORAGE_FILE_NAME) -> None:
        """StorageServiceのコンストラクタ。

        Args:
            base_path (str): データを保存する基準ディレクトリのパス。
                             存在しない場合は自動的に作成されます。
            store_file_name (str): キー・バリューストアとして使うJSONファイル名。
        """
        self.base_path = base_path
        self.store_file_name = store_file_name
        os.makedirs(self.base_path, exist_ok=True)

    def get_path(self, file_name: str) -> str:
        """ベースパスとファイル名を結合して完全なファイルパスを取得する。"""
        return os.path.join(self.base_path, file_name)

    def save_json(self, file_name: str, data: Union[Dict[str, Any], List[Dict[str, Any]]]) -> bool:
        """データをJSONファイルとしてローカルに保存する。

        Args:
            file_name (str): 保存するファイル名。
            data (Union[Dict, List]): 保存するデータ（辞書または辞書のリスト）。

        Returns:
            bool: 保存に成功した場合はTrue。
        """
        file_path = self.get_path(file_name)
        tmp_path = f"{file_path}.tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, file_path)
            logger.debug("データを %s に保存しました。", file_path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("ファイル保存中にエラーが発生しました: %s, %s", file_path, e)
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            return False

    def load_json(self, file_name: str) -> Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]:
        """ローカルのJSONファイルからデータを読み込む。

        Args:
            file_name (str): 読み込むファイル名。

        Returns:
            Optional[Union[Dict, List]]: 読み込まれたデータ。ファイルが存在しない場合はNone。

        Raises:
            PersistenceReadFailure: ファイルの読み込みまたはJSONの解析に失敗した場合。
        """
        file_path = self.get_path(file_name)
        if not os.path.exists(file_path):
            return None
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            # ValueError は JSONDecodeError と UnicodeDecodeError の両方を含む
            raise PersistenceReadFailure(f"ファイル読み込み中にエラーが発生しました: {file_path}, {e}") from e

    # --- キー・バリューストア ---
    def _load_store(self) -> Dict[str, str]:
        data = self.load_json(self.store_file_name)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise PersistenceReadFailure(f"ストアの形式が不正です: {self.store_file_name}")
        return data

    def get(self, key: str) -> Optional[str]:
        """キーに対応する文字列を返す。存在しない場合はNone。

        Raises:
            PersistenceReadFailure: ストアファイルが読めない場合。
        """
        value = self._load_store().get(key)
        if value is not None and not isinstance(value, str):
            raise PersistenceReadFailure(f"値が文字列ではありません: {key}")
        return value

    def set(self, key: str, value: str) -> None:
        """キーに文字列を保存する。既存の値は上書きされる。

        ストアファイルが壊れている場合は、そのキーだけを含む新しいストアで置き換えます。
        """
        try:
            store = self._load_store()
        except PersistenceReadFailure as e:
            logger.warning("壊れたストアを作り直します: %s", e)
            store = {}
        store[key] = value
        if not self.save_json(self.store_file_name, store):
            logger.error("キーを保存できませんでした: %s", key)

    def remove(self, key: str) -> None:
        """キーを削除する。存在しない場合は何もしない。"""
        store = self._load_store()
        if key in store:
            del store[key]
            if not self.save_json(self.store_file_name, store):
                logger.error("キーを削除できませんでした: %s", key)
