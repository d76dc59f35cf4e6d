# services/base_service.py
from __future__ import annotations
import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TypeVar, Generic, Any, Optional
from urllib.parse import quote

from .errors import PersistenceReadFailure

if TYPE_CHECKING:
    from .storage_service import StorageService

logger = logging.getLogger(__name__)

# 永続化するデータモデルの型
T = TypeVar('T')


class BaseService(Generic[T], ABC):
    """
    キー・バリューストアにJSON文字列として1件ずつ保存するサービスの基底クラス。

    キーは ``KEY_PREFIX`` と識別子 (URLなど) のパーセントエンコードを連結したものです。
    具象クラスはデータモデルとJSON互換データの相互変換 (``to_payload`` / ``from_payload``) を実装します。

    Attributes:
        storage_service (Optional[StorageService]): ローカルストレージサービスへの参照。
            Noneの場合は何も保存しない。
    """

    KEY_PREFIX: str = ""

    def __init__(self, storage_service: Optional[StorageService] = None) -> None:
        """BaseServiceのコンストラクタ。

        Args:
            storage_service (Optional[StorageService]): ストレージサービスインスタンス。
        """
        self.storage_service = storage_service

    @classmethod
    def storage_key(cls, identifier: str) -> str:
        """識別子から永続化キーを生成する。"""
        return f"{cls.KEY_PREFIX}{quote(identifier, safe='')}"

    @abstractmethod
    def to_payload(self, data: T) -> Any:
        """データモデルをJSONシリアライズ可能な値に変換する。"""

    @abstractmethod
    def from_payload(self, payload: Any) -> T:
        """JSONから読み込んだ値をデータモデルに変換する。不正な場合はValueError。"""

    def load_data(self, identifier: str) -> Optional[T]:
        """
        保存済みのデータを読み込む。

        Args:
            identifier (str): データを一意に識別するためのキー（例: URL）。

        Returns:
            Optional[T]: 読み込まれたデータモデルオブジェクト。保存されていない場合はNone。

        Raises:
            PersistenceReadFailure: 読み込みまたは解析に失敗した場合。
        """
        if not self.storage_service:
            return None
        raw = self.storage_service.get(self.storage_key(identifier))
        if raw is None:
            return None
        try:
            return self.from_payload(json.loads(raw))
        except ValueError as e:
            raise PersistenceReadFailure(f"保存済みデータを解析できません: {identifier}: {e}") from e

    def save_data(self, identifier: str, data: T) -> None:
        """
        データ全体を保存する。既存の値は上書きされる。

        Args:
            identifier (str): データを一意に識別するためのキー。
            data (T): 保存するデータモデルオブジェクト。
        """
        if self.storage_service:
            payload = json.dumps(self.to_payload(data), ensure_ascii=False)
            self.storage_service.set(self.storage_key(identifier), payload)
