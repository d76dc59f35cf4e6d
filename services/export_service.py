# services/export_service.py
import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import fitz  # PyMuPDF

from models.overlay_models import PageOverlays, PageSize, PixelTextItem
from utils.color_utils import BLACK, RGB, ColorResolver, normalize_color, qt_color_resolver
from utils.constants import EXPORT_FILE_NAME, STANDARD_FONT
from utils.coordinate_utils import to_pdf_point
from utils.pdf_utils import PDFUtils
from .errors import ExportFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriterFont:
    """文書に埋め込んだ標準フォント。

    Attributes:
        name (str): PDF標準フォント名 (例: "Helvetica")。
        code (str): PyMuPDFのフォントコード (例: "helv")。
        font (fitz.Font): 幅の計測に使うフォントオブジェクト。
    """
    name: str
    code: str
    font: fitz.Font


@dataclass(frozen=True)
class ExportedText:
    """書き出し時に発行したテキスト描画命令の記録。座標はPDFポイント (左下原点)。"""
    page_index: int
    text: str
    x: float
    y: float
    font_size: float
    rgb: RGB
    width: float


@dataclass
class ExportResult:
    """書き出し結果。

    Attributes:
        data (bytes): 注釈を焼き込んだPDFのバイト列。
        draws (List[ExportedText]): 発行した描画命令 (発行順)。
    """
    data: bytes
    draws: List[ExportedText]


class FitzDocumentWriter:
    """PyMuPDFを使った文書ライター。

    ``draw_text`` が受け取る座標はPDFのポイント座標 (左下原点) で、y はテキストの
    ベースラインです。PyMuPDFのページ座標は左上原点のため、内部で変換します。
    """

    def load(self, data: bytes) -> fitz.Document:
        return PDFUtils.open_from_bytes(data)

    def page_count(self, doc: fitz.Document) -> int:
        return doc.page_count

    def get_page(self, doc: fitz.Document, page_index: int) -> fitz.Page:
        return doc.load_page(page_index)

    def get_page_size(self, page: fitz.Page) -> PageSize:
        return PDFUtils.page_size(page)

    def embed_standard_font(self, doc: fitz.Document, font_name: str) -> WriterFont:
        """標準14フォントを用意する。フォントのリソースは最初の描画時にページへ登録される。"""
        code = PDFUtils.standard_font_code(font_name)
        return WriterFont(name=font_name, code=code, font=fitz.Font(code))

    def measure_text_width(self, font: WriterFont, text: str, size: float) -> float:
        return font.font.text_length(text, fontsize=size)

    def draw_text(self, page: fitz.Page, text: str, x: float, y: float, size: float,
                  font: WriterFont, rgb: RGB) -> None:
        baseline = fitz.Point(x, page.rect.height - y)
        page.insert_text(baseline, text, fontsize=size, fontname=font.code, color=rgb)

    def save(self, doc: fitz.Document) -> bytes:
        return doc.tobytes(garbage=3, deflate=True)

    def close(self, doc: fitz.Document) -> None:
        doc.close()


class ExportService:
    """テキスト注釈をPDFのページコンテンツに焼き込んで書き出すサービスクラス。

    書き出しは元のPDFのバイト列 (レンダリング用とは別のコピー) から毎回新しい
    文書を読み込んで行います。途中で失敗した場合は ``ExportFailure`` を送出し、
    ファイルは作成しません。
    """

    def __init__(self, writer: Optional[FitzDocumentWriter] = None,
                 color_resolver: Optional[ColorResolver] = qt_color_resolver,
                 font_name: str = STANDARD_FONT) -> None:
        """ExportServiceのコンストラクタ。

        Args:
            writer (Optional[FitzDocumentWriter]): 文書ライター。
            color_resolver (Optional[ColorResolver]): 色名の解決に使う関数。
            font_name (str): すべての注釈に使う標準フォント名。
        """
        self.writer = writer or FitzDocumentWriter()
        self.color_resolver = color_resolver
        self.font_name = font_name

    def export(self, pdf_bytes: bytes, overlays: PageOverlays) -> ExportResult:
        """注釈を焼き込んだPDFを生成する。

        Args:
            pdf_bytes (bytes): 元のPDFのバイト列。
            overlays (PageOverlays): 注釈コレクション。

        Returns:
            ExportResult: 生成したPDFと描画命令の記録。

        Raises:
            ExportFailure: 読み込み・フォント埋め込み・描画・保存のいずれかに失敗した場合。
        """
        if not pdf_bytes:
            raise ExportFailure("書き出し元のPDFがありません")
        doc = None
        try:
            doc = self.writer.load(bytes(pdf_bytes))
            font = self.writer.embed_standard_font(doc, self.font_name)
            draws: List[ExportedText] = []
            page_count = self.writer.page_count(doc)
            for page_index in range(page_count):
                items = overlays.get(page_index, [])
                if not items:
                    continue
                page = self.writer.get_page(doc, page_index)
                size = self.writer.get_page_size(page)
                for item in items:
                    rgb = normalize_color(item.color, self.color_resolver)
                    x, y = to_pdf_point((item.x, item.y), size, item.font_size)
                    width = self.writer.measure_text_width(font, item.text, item.font_size)
                    self.writer.draw_text(page, item.text, x, y, item.font_size, font, rgb)
                    draws.append(ExportedText(page_index, item.text, x, y, item.font_size, rgb, width))
            data = self.writer.save(doc)
        except ExportFailure:
            raise
        except Exception as e:
            logger.error("Export failed: %s", e)
            raise ExportFailure(f"PDFの書き出しに失敗しました: {e}") from e
        finally:
            if doc is not None:
                self.writer.close(doc)
        logger.info("Exported %d overlay(s)", len(draws))
        outside = sorted(page for page in overlays if page >= page_count)
        if outside:
            logger.warning("Overlays on pages outside the document were ignored: %s", outside)
        return ExportResult(data=data, draws=draws)

    def export_first_page_pixels(self, pdf_bytes: bytes, items: Sequence[PixelTextItem],
                                 canvas_size: Optional[Tuple[float, float]] = None) -> ExportResult:
        """1ページ目だけを対象に、描画面ピクセル座標の注釈を書き出す簡易版。

        描画面とページのサイズ比で座標を換算し、y はそのまま反転します
        (フォントサイズによるベースライン補正は行いません)。色は常に黒です。

        Args:
            pdf_bytes (bytes): 元のPDFのバイト列。
            items (Sequence[PixelTextItem]): 描画面ピクセル座標の注釈。
            canvas_size (Optional[Tuple[float, float]]): 描画面のサイズ。Noneの場合はページサイズ。

        Raises:
            ExportFailure: 書き出しに失敗した場合。
        """
        if not pdf_bytes:
            raise ExportFailure("書き出し元のPDFがありません")
        doc = None
        try:
            doc = self.writer.load(bytes(pdf_bytes))
            page = self.writer.get_page(doc, 0)
            font = self.writer.embed_standard_font(doc, self.font_name)
            size = self.writer.get_page_size(page)
            canvas_width, canvas_height = canvas_size or (size.width, size.height)
            x_ratio = size.width / canvas_width
            y_ratio = size.height / canvas_height
            draws: List[ExportedText] = []
            for item in items:
                x = item.x * x_ratio
                y = (canvas_height - item.y) * y_ratio
                width = self.writer.measure_text_width(font, item.text, item.size)
                self.writer.draw_text(page, item.text, x, y, item.size, font, BLACK)
                draws.append(ExportedText(0, item.text, x, y, item.size, BLACK, width))
            data = self.writer.save(doc)
        except Exception as e:
            logger.error("Single page export failed: %s", e)
            raise ExportFailure(f"PDFの書き出しに失敗しました: {e}") from e
        finally:
            if doc is not None:
                self.writer.close(doc)
        return ExportResult(data=data, draws=draws)

    @staticmethod
    def ensure_pdf_suffix(file_path: str, default_name: str = EXPORT_FILE_NAME) -> str:
        """ファイル名が .pdf で終わるようにする。空の場合は既定のファイル名。"""
        if not file_path:
            return default_name
        if not file_path.lower().endswith('.pdf'):
            file_path += '.pdf'
        return file_path

    @classmethod
    def write_file(cls, data: bytes, file_path: str) -> str:
        """PDFのバイト列をファイルに書き込み、実際のパスを返す。

        一時ファイルに書き込んでから置き換えるため、失敗しても不完全なファイルは残りません。

        Raises:
            ExportFailure: 書き込みに失敗した場合。
        """
        target = cls.ensure_pdf_suffix(file_path)
        tmp_path = f"{target}.part"
        try:
            with open(tmp_path, 'wb') as f:
                f.write(data)
            os.replace(tmp_path, target)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise ExportFailure(f"ファイルを書き込めませんでした: {target}: {e}") from e
        return target
