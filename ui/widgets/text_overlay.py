from __future__ import annotations
from typing import Optional

from PyQt6.QtCore import pyqtSignal, Qt, QPoint
from PyQt6.QtGui import QColor, QFont, QMouseEvent
from PyQt6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLineEdit, QToolButton,
                             QSpinBox, QColorDialog)

from models.overlay_models import OverlayItem
from utils.constants import FONT_SIZE_MAX, FONT_SIZE_MIN
from utils.text_metrics import TextMeasurer


class TextOverlayWidget(QWidget):
    """
    ページ上に配置される、移動可能なテキスト注釈ウィジェット。

    1行のテキスト入力欄と、色・フォントサイズ・削除の操作部を持ちます。
    ウィジェットの枠をドラッグすると親ウィジェット (ページ) の範囲内で移動でき、
    ドラッグ終了時に左上の位置を ``drag_stopped`` で通知します。
    状態は保持せず、変更はすべてシグナルで外部に伝えます。
    """
    text_edited = pyqtSignal(str, str)
    color_changed = pyqtSignal(str, str)
    font_size_changed = pyqtSignal(str, int)
    drag_stopped = pyqtSignal(str, QPoint)
    delete_requested = pyqtSignal(str)

    INPUT_PADDING = 8
    INPUT_BORDER = 2
    INPUT_MIN_WIDTH = 40

    def __init__(self, item: OverlayItem, measurer: TextMeasurer, parent: Optional[QWidget] = None) -> None:
        """
        TextOverlayWidgetのコンストラクタ。

        Args:
            item (OverlayItem): 表示する注釈。
            measurer (TextMeasurer): 入力欄の幅の計算に使う計測器。
            parent (Optional[QWidget]): 親ウィジェット (ページの描画面)。
        """
        super().__init__(parent)
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self.overlay_id: str = item.id
        self.measurer = measurer

        # --- 状態変数の型定義 ---
        self._press_pos: Optional[QPoint] = None
        self._widget_start: Optional[QPoint] = None
        self._dragging: bool = False
        self._color: QColor = QColor(item.color)
        self._font_size: float = item.font_size

        # --- UI要素の型定義 ---
        self.line_edit: QLineEdit
        self.color_button: QToolButton
        self.size_spin: QSpinBox
        self.delete_button: QToolButton

        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(2)

        self.line_edit = QLineEdit(self)
        self.line_edit.setFrame(False)
        self.line_edit.setText(item.text)
        layout.addWidget(self.line_edit)

        controls = QHBoxLayout()
        controls.setContentsMargins(0, 0, 0, 0)
        controls.setSpacing(2)
        self.color_button = QToolButton(self)
        self.color_button.setToolTip("文字色")
        self.color_button.clicked.connect(self._choose_color)
        self.size_spin = QSpinBox(self)
        self.size_spin.setRange(FONT_SIZE_MIN, FONT_SIZE_MAX)
        self.size_spin.setToolTip("フォントサイズ")
        self.size_spin.setValue(int(round(item.font_size)))
        self.delete_button = QToolButton(self)
        self.delete_button.setText("削除")
        self.delete_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.delete_button.clicked.connect(lambda: self.delete_requested.emit(self.overlay_id))
        controls.addWidget(self.color_button)
        controls.addWidget(self.size_spin)
        controls.addStretch()
        controls.addWidget(self.delete_button)
        layout.addLayout(controls)

        self.line_edit.textEdited.connect(self._on_text_edited)
        self.size_spin.valueChanged.connect(self._on_size_changed)

        self.setStyleSheet("TextOverlayWidget { background-color: rgba(255, 255, 255, 0.85); border: 1px dashed #666; border-radius: 4px; }")
        self._apply_text_style()

    def set_item(self, item: OverlayItem) -> None:
        """ストアの内容を表示に反映する。入力中のテキストはカーソル位置を保つ。"""
        if self.line_edit.text() != item.text:
            self.line_edit.setText(item.text)
        self._color = QColor(item.color)
        self._font_size = item.font_size
        self.size_spin.blockSignals(True)
        self.size_spin.setValue(int(round(item.font_size)))
        self.size_spin.blockSignals(False)
        self._apply_text_style()

    def _apply_text_style(self) -> None:
        """テキストの色・フォントサイズを設定し、入力欄の幅を内容に合わせる。"""
        font = QFont(self.line_edit.font())
        font.setPixelSize(max(1, int(round(self._font_size))))
        self.line_edit.setFont(font)
        color_name = self._color.name() if self._color.isValid() else "#000000"
        self.line_edit.setStyleSheet(f"QLineEdit {{ background-color: transparent; color: {color_name}; }}")
        self.color_button.setStyleSheet(f"QToolButton {{ background-color: {color_name}; min-width: 16px; }}")
        self._autosize()

    def _autosize(self) -> None:
        width = self.measurer.autosize_width(
            self.line_edit.text(), self._font_size,
            padding=self.INPUT_PADDING, border=self.INPUT_BORDER, min_width=self.INPUT_MIN_WIDTH,
        )
        self.line_edit.setFixedWidth(width)
        self.adjustSize()

    def _on_text_edited(self, text: str) -> None:
        self._autosize()
        self.text_edited.emit(self.overlay_id, text)

    def _on_size_changed(self, value: int) -> None:
        self._font_size = value
        self._apply_text_style()
        self.font_size_changed.emit(self.overlay_id, value)

    def _choose_color(self) -> None:
        color = QColorDialog.getColor(self._color, self, "文字色を選択")
        if not color.isValid():
            return
        self._color = color
        self._apply_text_style()
        self.color_changed.emit(self.overlay_id, color.name())

    # --- ドラッグ ---
    def _begin_drag(self, pos: QPoint) -> None:
        """ドラッグ操作を開始するために初期位置を記録する。位置はスクリーン座標。"""
        self._press_pos = pos
        self._widget_start = self.pos()
        self._dragging = False

    def _apply_drag(self, pos: QPoint) -> bool:
        """ドラッグ中にウィジェットの位置を更新する。親ウィジェットの外には出さない。"""
        if self._press_pos is None or self._widget_start is None: return False
        delta = pos - self._press_pos
        if not self._dragging and delta.manhattanLength() > 3:
            self._dragging = True
        if not self._dragging: return False

        new_pos = self._widget_start + delta
        if self.parentWidget():
            max_x = self.parentWidget().width() - self.width()
            max_y = self.parentWidget().height() - self.height()
            new_pos.setX(max(0, min(new_pos.x(), max_x)))
            new_pos.setY(max(0, min(new_pos.y(), max_y)))
        self.move(new_pos)
        return True

    def _end_drag(self) -> bool:
        """ドラッグ操作を終了し、ドラッグが発生したかどうかを返す。"""
        was_dragging = self._dragging
        self._press_pos = None
        self._widget_start = None
        self._dragging = False
        return was_dragging

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """枠部分でのマウスプレスでドラッグを開始する。"""
        if event.button() == Qt.MouseButton.LeftButton:
            self._begin_drag(event.globalPosition().toPoint())
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if event.buttons() & Qt.MouseButton.LeftButton:
            if self._apply_drag(event.globalPosition().toPoint()): return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """ドラッグ終了時に、親ウィジェット内での左上の位置を通知する。"""
        if event.button() == Qt.MouseButton.LeftButton:
            if self._end_drag():
                self.drag_stopped.emit(self.overlay_id, self.pos())
                return
        super().mouseReleaseEvent(event)
