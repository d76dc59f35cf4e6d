# utils/color_utils.py
"""CSS形式の色指定を 0..1 のRGBタプルに変換するユーティリティ。"""
import re
from typing import Callable, Optional, Tuple

from PyQt6.QtGui import QColor

RGB = Tuple[float, float, float]
ColorResolver = Callable[[str], Optional[RGB]]

BLACK: RGB = (0.0, 0.0, 0.0)

_HEX_PATTERN = re.compile(r'^#([0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$')
_RGB_FUNC_PATTERN = re.compile(
    r'^rgba?\(\s*([-+]?[\d.]+%?)\s*[,\s]\s*([-+]?[\d.]+%?)\s*[,\s]\s*([-+]?[\d.]+%?)'
    r'(?:\s*[,/]\s*[-+]?[\d.]+%?)?\s*\)$',
    re.IGNORECASE
)


def _channel_to_255(token: str) -> int:
    """rgb()の1成分 (数値またはパーセント) を 0..255 の整数に変換する。"""
    if token.endswith('%'):
        value = float(token[:-1]) * 255.0 / 100.0
    else:
        value = float(token)
    return int(max(0, min(255, round(value))))


def parse_css_color(value: str) -> Optional[RGB]:
    """16進表記と ``rgb()`` / ``rgba()`` 表記の色を解析する。

    アルファ値は無視されます。解析できない場合はNoneを返します。

    Args:
        value (str): 色指定文字列 (例: "#1e90ff", "#fff", "rgb(10, 20, 30)")。

    Returns:
        Optional[RGB]: 0..1 のRGBタプル。
    """
    text = value.strip()
    match = _HEX_PATTERN.match(text)
    if match:
        digits = match.group(1)
        if len(digits) in (3, 4):
            digits = ''.join(c * 2 for c in digits)
        r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
        return (r / 255.0, g / 255.0, b / 255.0)

    match = _RGB_FUNC_PATTERN.match(text)
    if match:
        try:
            r, g, b = (_channel_to_255(token) for token in match.groups())
        except ValueError:
            return None
        return (r / 255.0, g / 255.0, b / 255.0)
    return None


def qt_color_resolver(value: str) -> Optional[RGB]:
    """QColorを使って色名 (例: "red", "steelblue") を解決する。"""
    color = QColor(value.strip())
    if not color.isValid():
        return None
    return (color.redF(), color.greenF(), color.blueF())


def normalize_color(value: str, resolver: Optional[ColorResolver] = qt_color_resolver) -> RGB:
    """任意のCSS色指定を 0..1 のRGBタプルに正規化する。

    まず組み込みの簡易パーサで解析し、失敗した場合は ``resolver`` に委ねます。
    どちらでも解決できない色は黒として扱います。

    Args:
        value (str): 色指定文字列。
        resolver (Optional[ColorResolver]): 色名を解決する関数。

    Returns:
        RGB: 0..1 のRGBタプル。
    """
    if not isinstance(value, str) or not value.strip():
        return BLACK
    parsed = parse_css_color(value)
    if parsed is not None:
        return parsed
    if resolver is not None:
        resolved = resolver(value)
        if resolved is not None:
            return resolved
    return BLACK


def rgb_to_hex(rgb: RGB) -> str:
    """0..1 のRGBタプルを "#rrggbb" 形式に変換する。"""
    return '#{:02x}{:02x}{:02x}'.format(*(int(round(max(0.0, min(1.0, c)) * 255)) for c in rgb))


__all__ = ['RGB', 'ColorResolver', 'BLACK', 'parse_css_color', 'qt_color_resolver', 'normalize_color', 'rgb_to_hex']
