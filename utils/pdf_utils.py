# utils/pdf_utils.py
"""PDFの読み込みやレンダリングなど、PyMuPDFを使った共通処理を提供します。"""

import fitz  # PyMuPDF
from PyQt6.QtGui import QImage

from models.overlay_models import PageSize


class PDFUtils:
    """PDF処理に関する共通機能を提供するユーティリティクラス。"""

    # PDF標準14フォント名 -> PyMuPDFのフォントコード
    STANDARD_FONT_CODES = {
        "Helvetica": "helv",
        "Helvetica-Bold": "hebo",
        "Helvetica-Oblique": "heit",
        "Helvetica-BoldOblique": "hebi",
        "Times-Roman": "tiro",
        "Times-Bold": "tibo",
        "Times-Italic": "tiit",
        "Times-BoldItalic": "tibi",
        "Courier": "cour",
        "Courier-Bold": "cobo",
        "Courier-Oblique": "coit",
        "Courier-BoldOblique": "cobi",
        "Symbol": "symb",
        "ZapfDingbats": "zadb",
    }

    @staticmethod
    def open_from_bytes(data: bytes) -> fitz.Document:
        """バイト列からPDF文書を開く。

        Args:
            data (bytes): PDFのバイト列。

        Returns:
            fitz.Document: 開いた文書。

        Raises:
            ValueError: PDFとして解釈できない場合、またはページが1つもない場合。
        """
        if not data:
            raise ValueError("empty PDF data")
        try:
            doc = fitz.open(stream=bytes(data), filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise ValueError(f"cannot open PDF: {e}") from e
        if not doc.is_pdf:
            doc.close()
            raise ValueError("data is not a PDF document")
        if doc.page_count == 0:
            doc.close()
            raise ValueError("PDF document has no pages")
        return doc

    @staticmethod
    def page_size(page: fitz.Page) -> PageSize:
        """ページのネイティブサイズ (ポイント) を返す。"""
        rect = page.rect
        return PageSize(width=float(rect.width), height=float(rect.height))

    @staticmethod
    def render_page(page: fitz.Page, scale: float = 1.0) -> QImage:
        """PDFの指定されたページをQImageオブジェクトにレンダリングする。

        Args:
            page (fitz.Page): レンダリング対象のPyMuPDFページオブジェクト。
            scale (float): レンダリング時の拡大率。1.0で1ポイント=1ピクセル。

        Returns:
            QImage: レンダリングされたページのQImageオブジェクト。
        """
        matrix = fitz.Matrix(scale, scale)
        pix = page.get_pixmap(matrix=matrix, alpha=False)

        if pix.alpha:
            image_format = QImage.Format.Format_RGBA8888
        else:
            image_format = QImage.Format.Format_RGB888

        qimage = QImage(pix.samples, pix.width, pix.height, pix.stride, image_format)

        # pixのバッファが解放された後も使えるようにコピーして返す
        return qimage.copy()

    @classmethod
    def standard_font_code(cls, font_name: str) -> str:
        """標準フォント名をPyMuPDFのフォントコードに変換する。

        Raises:
            ValueError: 標準14フォント以外が指定された場合。
        """
        if font_name in cls.STANDARD_FONT_CODES:
            return cls.STANDARD_FONT_CODES[font_name]
        if font_name in cls.STANDARD_FONT_CODES.values():
            return font_name
        raise ValueError(f"not a standard PDF font: {font_name}")
