# services/overlay_store.py
from typing import Any, Callable, List, Optional

from models.overlay_models import OverlayItem, PageOverlays, copy_overlays


class OverlayStore:
    """ページ番号ごとのテキスト注釈リストを保持するインメモリストア。

    すべての操作は同期的で、存在しないIDに対する更新・削除は何もしません。
    UIでは削除と更新が前後することがあるため、これは意図した動作です。

    ``on_change`` を設定すると、状態が変わる操作のたびにストア自身を引数に呼び出されます。
    """

    def __init__(self, on_change: Optional[Callable[['OverlayStore'], None]] = None) -> None:
        self._overlays: PageOverlays = {}
        self.on_change = on_change

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def add(self, page_index: int, item: OverlayItem) -> None:
        """ページの注釈リストの末尾に注釈を追加する。"""
        self._overlays.setdefault(page_index, []).append(item)
        self._changed()

    def update(self, page_index: int, overlay_id: str, **fields: Any) -> bool:
        """IDで注釈を探し、指定されたフィールドを上書きする。

        x / y は呼び出し側で [0, 1] に丸め込んでから渡してください。

        Args:
            page_index (int): ページ番号。
            overlay_id (str): 注釈のID。
            **fields: 上書きするフィールド (text, x, y, font_size, color)。

        Returns:
            bool: 注釈が見つかり更新された場合はTrue。
        """
        item = self.get(page_index, overlay_id)
        if item is None:
            return False
        for name, value in fields.items():
            if name == 'id' or not hasattr(item, name):
                raise AttributeError(f"OverlayItem has no editable field '{name}'")
            setattr(item, name, value)
        self._changed()
        return True

    def remove(self, page_index: int, overlay_id: str) -> bool:
        """IDで注釈を削除する。ページの注釈がなくなった場合はページのエントリも削除する。"""
        items = self._overlays.get(page_index)
        if not items:
            return False
        remaining = [item for item in items if item.id != overlay_id]
        if len(remaining) == len(items):
            return False
        if remaining:
            self._overlays[page_index] = remaining
        else:
            del self._overlays[page_index]
        self._changed()
        return True

    def get(self, page_index: int, overlay_id: str) -> Optional[OverlayItem]:
        for item in self._overlays.get(page_index, []):
            if item.id == overlay_id:
                return item
        return None

    def items(self, page_index: int) -> List[OverlayItem]:
        """ページの注釈リスト (重なり順) のコピーを返す。"""
        return list(self._overlays.get(page_index, []))

    def pages(self) -> List[int]:
        """注釈が存在するページ番号を昇順で返す。"""
        return sorted(self._overlays)

    def snapshot(self) -> PageOverlays:
        """永続化・書き出し用に、コレクション全体のディープコピーを返す。"""
        return copy_overlays(self._overlays)

    def restore(self, overlays: PageOverlays) -> None:
        """コレクション全体を置き換える。文書の切り替え時や永続化データの復元時に使う。"""
        self._overlays = {page: items for page, items in copy_overlays(overlays).items() if items}
