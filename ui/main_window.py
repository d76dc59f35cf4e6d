# ui/main_window.py
import logging
from typing import List, Optional

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QLabel, QPushButton, QToolBar,
    QMessageBox, QScrollArea, QSizePolicy, QProgressBar
)
from PyQt6.QtCore import Qt

from models.overlay_models import DocumentInfo
from services.editor_session import EditorSession
from services.export_service import ExportService
from services.overlay_service import OverlayService
from services.render_service import PageSurface, RenderPipeline, RenderState, qt_scheduler
from services.storage_service import StorageService
from services.upload_service import UploadService
from ui.handlers.export_handler import ExportHandler
from ui.handlers.pdf_handler import PDFHandler
from ui.widgets import PageView
from utils.constants import DATA_DIR
from utils.text_metrics import TextMeasurer

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """PDFのテキスト注釈エディタのメインウィンドウ。

    上部のツールバーで文書を開き・書き出し、中央のスクロール領域に全ページを縦に並べて表示します。
    """
    def __init__(self, session: Optional[EditorSession] = None) -> None:
        super().__init__()
        self.setWindowTitle("PDFテキスト注釈エディタ")
        self.setGeometry(50, 50, 1000, 1000)

        self.session: EditorSession = session or self._create_session()
        self.session.notify = self.show_message
        self.session.document_ready_listeners.append(self.on_document_ready)
        self.session.pipeline.on_state_changed = self.on_render_state_changed
        self.session.pipeline.on_progress = self.on_render_progress

        self.measurer = TextMeasurer()
        self.page_views: List[PageView] = []

        self.pdf_handler = PDFHandler(self)
        self.export_handler = ExportHandler(self)

        self.setup_toolbar()
        self.setup_page_area()
        self.connect_signals()
        self.update_actions()

    @staticmethod
    def _create_session() -> EditorSession:
        storage = StorageService(base_path=DATA_DIR)
        return EditorSession(
            pipeline=RenderPipeline(scheduler=qt_scheduler),
            overlay_service=OverlayService(storage),
            export_service=ExportService(),
            upload_service=UploadService(),
        )

    def createPopupMenu(self):
        return None

    def setup_toolbar(self) -> None:
        toolbar = QToolBar("メインツールバー")
        toolbar.setMovable(False)
        self.addToolBar(Qt.ToolBarArea.TopToolBarArea, toolbar)
        toolbar.setStyleSheet("""
            QToolBar { spacing: 4px; }
            QPushButton {
                background-color: #f0f0f0;
                border: 1px solid #c0c0c0;
                padding: 5px 10px;
                border-radius: 4px;
            }
            QPushButton:disabled { color: #999; }
            QPushButton#ExportButton {
                background-color: #007bff;
                color: white;
                font-weight: bold;
            }
        """)

        self.open_button = QPushButton("PDFを開く")
        self.upload_button = QPushButton("アップロード")
        self.url_button = QPushButton("URLから開く")
        toolbar.addWidget(self.open_button)
        toolbar.addWidget(self.upload_button)
        toolbar.addWidget(self.url_button)
        toolbar.addSeparator()

        self.status_label = QLabel("PDFファイルを開いてください...")
        toolbar.addWidget(self.status_label)
        self.progress_bar = QProgressBar()
        self.progress_bar.setMaximumWidth(160)
        self.progress_bar.hide()
        toolbar.addWidget(self.progress_bar)

        spacer = QWidget(); spacer.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        toolbar.addWidget(spacer)

        self.export_button = QPushButton("PDFを書き出す")
        self.export_button.setObjectName("ExportButton")
        toolbar.addWidget(self.export_button)

    def setup_page_area(self) -> None:
        self.page_scroll_area = QScrollArea()
        self.page_scroll_area.setWidgetResizable(True)
        self.page_scroll_area.setStyleSheet("QScrollArea { background-color: #e5e7eb; }")
        self.page_container = QWidget()
        self.page_layout = QVBoxLayout(self.page_container)
        self.page_layout.setAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignHCenter)
        self.page_scroll_area.setWidget(self.page_container)
        self.setCentralWidget(self.page_scroll_area)

    def connect_signals(self) -> None:
        self.open_button.clicked.connect(self.pdf_handler.open_pdf_file)
        self.upload_button.clicked.connect(self.pdf_handler.upload_pdf_file)
        self.url_button.clicked.connect(self.pdf_handler.open_pdf_url)
        self.export_button.clicked.connect(self.export_handler.save_as_pdf)

    def set_status(self, text: str) -> None:
        self.status_label.setText(text)

    def show_message(self, title: str, message: str) -> None:
        """EditorSessionからの通知をメッセージボックスで表示する。"""
        logger.info("%s: %s", title, message)
        QMessageBox.warning(self, title, message)

    def update_actions(self) -> None:
        self.export_button.setEnabled(self.session.can_export)

    # --- レンダリング状態 ---
    def on_render_state_changed(self, state: RenderState) -> None:
        if state is RenderState.LOADING:
            self.progress_bar.setValue(0)
            self.progress_bar.show()
            self.set_status("読み込み中...")
        else:
            self.progress_bar.hide()
            if state is RenderState.FAILED:
                self.set_status("PDFを表示できませんでした")
        for view in self.page_views:
            view.set_editable(state is RenderState.READY)
        self.update_actions()

    def on_render_progress(self, done: int, total: int) -> None:
        self.progress_bar.setMaximum(total)
        self.progress_bar.setValue(done)

    def on_document_ready(self, document: DocumentInfo, surfaces: List[PageSurface]) -> None:
        """全ページのレンダリングが終わったら、ページ表示を作り直す。"""
        self.clear_pages()
        for surface in surfaces:
            view = PageView(surface, self.session.controller, self.measurer, self.page_container)
            self.page_layout.addWidget(view)
            self.page_views.append(view)
        self.set_status(f"{document.url} ({document.page_count} ページ)")
        self.update_actions()

    def clear_pages(self) -> None:
        for view in self.page_views:
            self.page_layout.removeWidget(view)
            view.deleteLater()
        self.page_views = []
