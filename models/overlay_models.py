# models/overlay_models.py
import uuid
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Tuple

from utils.constants import DEFAULT_COLOR, DEFAULT_POSITION, DEFAULT_TEXT


@dataclass(frozen=True)
class PageSize:
    """ページのネイティブサイズ (PDFポイント)。

    スケール1でレンダリングした描画面のピクセルサイズとも一致します。

    Attributes:
        width (float): ページの幅。
        height (float): ページの高さ。
    """
    width: float
    height: float


@dataclass(frozen=True)
class DocumentInfo:
    """読み込み済みのPDF文書を表現するデータモデル。

    読み込み後は変更されません。新しいアップロードは常に新しいインスタンスになります。

    Attributes:
        url (str): 文書を一意に識別するURL (永続化キーの元になる)。
        page_count (int): 総ページ数。
        page_sizes (Tuple[PageSize, ...]): ページごとのネイティブサイズ。
    """
    url: str
    page_count: int
    page_sizes: Tuple[PageSize, ...]

    def page_size(self, page_index: int) -> PageSize:
        """指定されたページのサイズを返す。範囲外の場合はIndexError。"""
        if not 0 <= page_index < self.page_count:
            raise IndexError(f"page index out of range: {page_index}")
        return self.page_sizes[page_index]


@dataclass
class OverlayItem:
    """ページ上に配置される単一のテキスト注釈。

    Attributes:
        id (str): 注釈の一意なID。生存期間中は変わらない。
        text (str): 表示テキスト。空文字も可。
        x (float): ページ幅に対する左端からの位置 (0..1)。
        y (float): ページ高さに対する上端からの位置 (0..1)。
        font_size (float): フォントサイズ。UIのピクセルとPDFのポイントを同じ値として扱う。
        color (str): CSS形式の色指定。
    """
    id: str
    text: str
    x: float
    y: float
    font_size: float
    color: str

    @classmethod
    def create(cls, font_size: float, text: str = DEFAULT_TEXT, x: float = DEFAULT_POSITION,
               y: float = DEFAULT_POSITION, color: str = DEFAULT_COLOR) -> 'OverlayItem':
        """新しいIDを採番して注釈を生成する。"""
        return cls(id=str(uuid.uuid4()), text=text, x=x, y=y, font_size=font_size, color=color)

    def copy(self) -> 'OverlayItem':
        return OverlayItem(**asdict(self))

    def to_dict(self) -> Dict[str, Any]:
        """JSON保存用の辞書に変換する。キー名は保存形式に合わせてcamelCase。"""
        return {
            'id': self.id,
            'text': self.text,
            'x': self.x,
            'y': self.y,
            'fontSize': self.font_size,
            'color': self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OverlayItem':
        """保存形式の辞書から注釈を復元する。

        Raises:
            ValueError: 必須項目の欠落や型の不一致がある場合。
        """
        if not isinstance(data, dict):
            raise ValueError(f"overlay item must be an object: {data!r}")
        try:
            item_id = data['id']
            text = data['text']
            x = float(data['x'])
            y = float(data['y'])
            font_size = float(data['fontSize'])
            color = data['color']
        except (KeyError, TypeError) as e:
            raise ValueError(f"malformed overlay item: {data!r}") from e
        if not isinstance(item_id, str) or not isinstance(text, str) or not isinstance(color, str):
            raise ValueError(f"malformed overlay item: {data!r}")
        return cls(id=item_id, text=text, x=x, y=y, font_size=font_size, color=color)


# ページ番号 (0始まり) -> 注釈リスト。リストの順序が重なり順 (後ろほど手前)。
PageOverlays = Dict[int, List[OverlayItem]]


def copy_overlays(overlays: PageOverlays) -> PageOverlays:
    """注釈コレクションのディープコピーを返す。"""
    return {page: [item.copy() for item in items] for page, items in overlays.items()}


def serialize_overlays(overlays: PageOverlays) -> Dict[str, List[Dict[str, Any]]]:
    """注釈コレクションをJSONシリアライズ可能な辞書に変換する。"""
    return {str(page): [item.to_dict() for item in items] for page, items in sorted(overlays.items())}


def deserialize_overlays(data: Any) -> PageOverlays:
    """辞書データから注釈コレクションを復元する。

    Raises:
        ValueError: データ構造が不正な場合。
    """
    if not isinstance(data, dict):
        raise ValueError("overlay collection must be an object")
    overlays: PageOverlays = {}
    for page_key, items in data.items():
        try:
            page_index = int(page_key)
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid page index: {page_key!r}") from e
        if page_index < 0:
            raise ValueError(f"invalid page index: {page_key!r}")
        if not isinstance(items, list):
            raise ValueError(f"overlays for page {page_key} must be a list")
        overlays[page_index] = [OverlayItem.from_dict(item) for item in items]
    return overlays


@dataclass
class PixelTextItem:
    """1ページ目だけを扱う簡易エディタの注釈。座標は描画面ピクセル (左上原点)。

    Attributes:
        id (str): 注釈のID。
        text (str): 表示テキスト。
        x (float): 左端からの位置 (ピクセル)。
        y (float): 上端からの位置 (ピクセル)。
        size (float): フォントサイズ。
    """
    id: str
    text: str
    x: float
    y: float
    size: float = 16
