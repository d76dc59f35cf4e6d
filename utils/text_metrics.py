# utils/text_metrics.py
"""テキスト幅の計測と、入力欄の自動幅計算。"""
import math
from typing import Optional

import fitz  # PyMuPDF


class TextMeasurer:
    """標準フォントのメトリクスを使ってテキスト幅を計測するクラス。

    フォントは最初の計測時に一度だけ読み込まれ、以降は読み取り専用で共有されます。
    計測が必要なコンポーネントには、このインスタンスを明示的に渡してください。
    """

    def __init__(self, font_code: str = "helv") -> None:
        """
        Args:
            font_code (str): PyMuPDFの Base-14 フォントコード (例: "helv", "tiro")。
        """
        self.font_code = font_code
        self._font: Optional[fitz.Font] = None

    @property
    def font(self) -> fitz.Font:
        if self._font is None:
            self._font = fitz.Font(self.font_code)
        return self._font

    def text_width(self, text: str, font_size: float) -> float:
        """テキストを指定サイズで描画したときの幅 (ポイント) を返す。"""
        return self.font.text_length(text, fontsize=font_size)

    def autosize_width(self, text: str, font_size: float, padding: float = 0.0,
                       border: float = 0.0, min_width: int = 20) -> int:
        """入力内容に合わせて伸縮する入力欄の幅を計算する。

        空文字の場合は空白1文字分の幅を基準にします。

        Args:
            text (str): 入力欄の内容。
            font_size (float): フォントサイズ。
            padding (float): 左右パディングの合計。
            border (float): 左右ボーダーの合計。
            min_width (int): 最小幅。

        Returns:
            int: 入力欄の幅 (ピクセル)。
        """
        measured = self.text_width(text or " ", font_size)
        return max(min_width, int(math.ceil(measured + padding + border + 1)))


__all__ = ['TextMeasurer']
