# services/interaction_controller.py
import logging
from typing import Any, Optional

from models.overlay_models import OverlayItem, PageSize
from utils.constants import (DEFAULT_FONT_SIZE_MAX, DEFAULT_FONT_SIZE_MIN, DEFAULT_FONT_SIZE_RATIO,
                             FONT_SIZE_MAX, FONT_SIZE_MIN)
from utils.coordinate_utils import Point, clamp, from_surface, round_half_up
from .overlay_store import OverlayStore
from .render_service import RenderPipeline

logger = logging.getLogger(__name__)


class InteractionController:
    """テキスト注釈の作成・更新・削除と、ドラッグ結果の座標変換を行うクラス。

    新規追加はレンダリングパイプラインがREADYのときだけ受け付けます。移動と編集は、
    表示中の文書 (最後に公開された文書) に対して常に受け付けます。
    """

    EDITABLE_FIELDS = ("text", "color", "font_size")

    def __init__(self, store: OverlayStore, pipeline: RenderPipeline) -> None:
        self.store = store
        self.pipeline = pipeline

    @staticmethod
    def default_font_size(page_width: float) -> int:
        """ページ幅から新規注釈のフォントサイズを決める (ページ幅の2%, 12..24)。"""
        size = round_half_up(page_width * DEFAULT_FONT_SIZE_RATIO)
        return int(clamp(size, DEFAULT_FONT_SIZE_MIN, DEFAULT_FONT_SIZE_MAX))

    def page_size(self, page_index: int) -> Optional[PageSize]:
        return self.pipeline.page_size(page_index)

    def add_text_overlay(self, page_index: int) -> Optional[OverlayItem]:
        """ページ中央に既定のテキスト注釈を追加する。

        Returns:
            Optional[OverlayItem]: 追加した注釈。ページサイズが未確定の場合はNone。
        """
        size = self.page_size(page_index)
        if size is None:
            logger.warning("Cannot add overlay: page %d is not ready", page_index)
            return None
        item = OverlayItem.create(font_size=self.default_font_size(size.width))
        self.store.add(page_index, item)
        return item

    def on_drag_stop(self, page_index: int, overlay_id: str, surface_pos: Point) -> bool:
        """ドラッグ終了位置 (描画面ピクセル) を正規化座標に変換して注釈を移動する。

        次の文書のロード中やロード失敗後も、表示中の文書のページサイズで変換します。
        """
        size = self.pipeline.displayed_page_size(page_index)
        if size is None:
            logger.warning("Ignoring drag on page %d: page is not displayed", page_index)
            return False
        x, y = from_surface(surface_pos, size)
        return self.store.update(page_index, overlay_id, x=x, y=y)

    def on_edit_field(self, page_index: int, overlay_id: str, field: str, value: Any) -> bool:
        """テキスト・色・フォントサイズを更新する。

        フォントサイズは 8..72 に丸め込みます。位置 (x, y) はドラッグ経由でのみ変更できます。

        Raises:
            ValueError: 編集できないフィールドが指定された場合。
        """
        if field not in self.EDITABLE_FIELDS:
            raise ValueError(f"field '{field}' cannot be edited directly")
        if field == "font_size":
            number = float(value)
            value = clamp(int(number) if number.is_integer() else number, FONT_SIZE_MIN, FONT_SIZE_MAX)
        elif not isinstance(value, str):
            raise ValueError(f"field '{field}' expects a string")
        return self.store.update(page_index, overlay_id, **{field: value})

    def remove_text_overlay(self, page_index: int, overlay_id: str) -> bool:
        return self.store.remove(page_index, overlay_id)
