from __future__ import annotations
from typing import Dict, Optional

from PyQt6.QtCore import Qt, QPoint
from PyQt6.QtGui import QPixmap
from PyQt6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton

from services.interaction_controller import InteractionController
from services.render_service import PageSurface
from utils.coordinate_utils import to_surface
from utils.text_metrics import TextMeasurer
from .text_overlay import TextOverlayWidget


class PageView(QWidget):
    """
    1ページ分の表示領域。見出し・「テキスト追加」ボタン・ページ画像と、
    その上に重ねるテキスト注釈ウィジェットで構成されます。

    描画面はページのネイティブサイズ (1ポイント=1ピクセル) で固定され、
    注釈の位置は正規化座標から描画面ピクセル座標に変換して配置します。
    """

    def __init__(self, surface: PageSurface, controller: InteractionController,
                 measurer: TextMeasurer, parent: Optional[QWidget] = None) -> None:
        """
        PageViewのコンストラクタ。

        Args:
            surface (PageSurface): レンダリング済みの描画面。
            controller (InteractionController): 注釈の操作を受け付けるコントローラ。
            measurer (TextMeasurer): 注釈の入力欄の幅の計算に使う計測器。
            parent (Optional[QWidget]): 親ウィジェット。
        """
        super().__init__(parent)
        self.surface = surface
        self.page_index: int = surface.index
        self.controller = controller
        self.measurer = measurer
        self.overlay_widgets: Dict[str, TextOverlayWidget] = {}

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 12)

        header = QHBoxLayout()
        self.title_label = QLabel(f"ページ {self.page_index + 1}")
        self.title_label.setStyleSheet("font-weight: bold;")
        self.add_button = QPushButton("テキスト追加")
        self.add_button.clicked.connect(self.add_overlay)
        header.addWidget(self.title_label)
        header.addStretch()
        header.addWidget(self.add_button)
        layout.addLayout(header)

        self.canvas = QLabel(self)
        self.canvas.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.canvas.setFixedSize(max(1, int(surface.size.width)), max(1, int(surface.size.height)))
        self.canvas.setStyleSheet("background-color: white; border: 1px solid #ccc;")
        if surface.image is not None:
            self.canvas.setPixmap(QPixmap.fromImage(surface.image))
        else:
            self.canvas.setText(f"このページを表示できませんでした\n{surface.error or ''}")
            self.canvas.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.canvas, alignment=Qt.AlignmentFlag.AlignHCenter)

        self.sync_overlays()

    def add_overlay(self) -> None:
        if self.controller.add_text_overlay(self.page_index) is not None:
            self.sync_overlays()

    def sync_overlays(self) -> None:
        """ストアの内容に合わせて注釈ウィジェットを作成・更新・削除する。"""
        size = self.surface.size
        items = self.controller.store.items(self.page_index)
        alive = {item.id for item in items}
        for overlay_id in list(self.overlay_widgets):
            if overlay_id not in alive:
                self.overlay_widgets.pop(overlay_id).deleteLater()

        for item in items:
            widget = self.overlay_widgets.get(item.id)
            if widget is None:
                widget = self._create_overlay_widget(item)
            else:
                widget.set_item(item)
            x, y = to_surface((item.x, item.y), size)
            widget.move(int(round(x)), int(round(y)))
            widget.raise_()

    def _create_overlay_widget(self, item) -> TextOverlayWidget:
        widget = TextOverlayWidget(item, self.measurer, self.canvas)
        widget.text_edited.connect(lambda oid, text: self._edit(oid, "text", text))
        widget.color_changed.connect(lambda oid, color: self._edit(oid, "color", color))
        widget.font_size_changed.connect(lambda oid, value: self._edit(oid, "font_size", value))
        widget.drag_stopped.connect(self._on_drag_stopped)
        widget.delete_requested.connect(self._on_delete_requested)
        widget.show()
        self.overlay_widgets[item.id] = widget
        return widget

    def _edit(self, overlay_id: str, field: str, value) -> None:
        self.controller.on_edit_field(self.page_index, overlay_id, field, value)

    def _on_drag_stopped(self, overlay_id: str, pos: QPoint) -> None:
        # 移動が受け付けられなかった場合もストアの位置に戻す
        self.controller.on_drag_stop(self.page_index, overlay_id, (pos.x(), pos.y()))
        self.sync_overlays()

    def set_editable(self, editable: bool) -> None:
        """新規追加の可否を切り替える。ロード中・ロード失敗後は追加できない。"""
        self.add_button.setEnabled(editable)

    def _on_delete_requested(self, overlay_id: str) -> None:
        self.controller.remove_text_overlay(self.page_index, overlay_id)
        self.sync_overlays()
