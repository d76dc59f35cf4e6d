# utils/coordinate_utils.py
"""正規化座標・描画面ピクセル座標・PDFポイント座標の相互変換。

3つの座標系を扱います。

* 正規化座標: ページの幅・高さに対する比率 (0..1)。原点は左上。
* 描画面ピクセル座標: スケール1でレンダリングした描画面上の位置。原点は左上で、
  1ピクセル = 1ポイント。
* PDFポイント座標: PDFページ内部の座標。原点は左下。

どの関数も状態を持たず、正のページサイズに対して例外を送出しません。
"""
import math
from typing import Tuple

from models.overlay_models import PageSize

Point = Tuple[float, float]


def clamp(value: float, lower: float, upper: float) -> float:
    """値を [lower, upper] の範囲に収める。"""
    return max(lower, min(upper, value))


def clamp01(value: float) -> float:
    """値を [0, 1] の範囲に収める。"""
    return clamp(value, 0.0, 1.0)


def round_half_up(value: float) -> int:
    """0.5を常に切り上げる丸め。Pythonの ``round`` (偶数丸め) とは結果が異なる。"""
    return int(math.floor(value + 0.5))


def to_surface(norm: Point, size: PageSize) -> Point:
    """正規化座標を描画面ピクセル座標に変換する。

    Args:
        norm (Point): 正規化座標 (x, y)。
        size (PageSize): 対象ページのサイズ (ポイント)。

    Returns:
        Point: 描画面上の位置 (x, y)。
    """
    return (norm[0] * size.width, norm[1] * size.height)


def from_surface(pos: Point, size: PageSize) -> Point:
    """描画面ピクセル座標を正規化座標に変換する。

    ページ外の座標は [0, 1] に丸め込まれます。幅または高さが0以下のページに
    対しては (0.0, 0.0) を返します。

    Args:
        pos (Point): 描画面上の位置 (x, y)。
        size (PageSize): 対象ページのサイズ (ポイント)。

    Returns:
        Point: [0, 1] に収まる正規化座標 (x, y)。
    """
    if size.width <= 0 or size.height <= 0:
        return (0.0, 0.0)
    return (clamp01(pos[0] / size.width), clamp01(pos[1] / size.height))


def to_pdf_point(norm: Point, size: PageSize, font_size: float) -> Point:
    """左上原点の正規化座標を、左下原点のPDFベースライン位置に変換する。

    テキスト上端からベースラインまでの距離はフォントサイズで近似します
    (フォントのアセント値は使いません)。y は丸め込まないため、
    ``norm.y == 1`` のとき ``-font_size`` になります。

    Args:
        norm (Point): 正規化座標 (x, y)。
        size (PageSize): 書き出し先ページのサイズ (ポイント)。
        font_size (float): フォントサイズ (ポイント)。

    Returns:
        Point: PDFポイント座標 (x, y)。
    """
    x = norm[0] * size.width
    y = size.height - norm[1] * size.height - font_size
    return (x, y)


__all__ = ['Point', 'clamp', 'clamp01', 'round_half_up', 'to_surface', 'from_surface', 'to_pdf_point']
