# services/overlay_service.py
import logging
from typing import Any, Dict, List, Optional

from models.overlay_models import PageOverlays, deserialize_overlays, serialize_overlays
from utils.constants import OVERLAY_KEY_PREFIX
from .base_service import BaseService
from .errors import PersistenceReadFailure
from .overlay_store import OverlayStore
from .storage_service import StorageService

logger = logging.getLogger(__name__)


class OverlayService(BaseService[PageOverlays]):
    """文書URLをキーとして、テキスト注釈コレクションを永続化するサービスクラス。

    文書ごとに1レコードを持ち、変更のたびにコレクション全体で上書きします。
    保存済みデータの読み込みに失敗しても編集は止めず、空のコレクションとして扱います。
    """

    KEY_PREFIX = OVERLAY_KEY_PREFIX

    def __init__(self, storage_service: Optional[StorageService] = None) -> None:
        """OverlayServiceのコンストラクタ。

        Args:
            storage_service (Optional[StorageService]): データ永続化のためのストレージサービス。
        """
        super().__init__(storage_service=storage_service)

    @classmethod
    def document_key(cls, url: str) -> str:
        """文書URLから永続化キーを生成する。URLはパーセントエンコードされる。"""
        return cls.storage_key(url)

    def to_payload(self, data: PageOverlays) -> Dict[str, List[Dict[str, Any]]]:
        return serialize_overlays(data)

    def from_payload(self, payload: Any) -> PageOverlays:
        return deserialize_overlays(payload)

    def load_or_empty(self, url: str) -> PageOverlays:
        """保存済みの注釈を読み込む。存在しない場合や読み込みに失敗した場合は空のコレクション。"""
        try:
            return self.load_data(url) or {}
        except PersistenceReadFailure as e:
            logger.warning("保存済み注釈を読み込めなかったため空の状態で開始します: %s", e)
            return {}

    def bind(self, store: OverlayStore, url: str) -> None:
        """ストアを文書の保存データで初期化し、以降の変更を自動保存するよう設定する。

        Args:
            store (OverlayStore): 対象のストア。
            url (str): 現在の文書URL。
        """
        store.on_change = None
        store.restore(self.load_or_empty(url))
        store.on_change = lambda s: self.save_data(url, s.snapshot())
        logger.info("注釈を復元しました: %s (%d ページ)", url, len(store.pages()))
