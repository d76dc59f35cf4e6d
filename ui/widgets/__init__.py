from .text_overlay import TextOverlayWidget
from .page_view import PageView

__all__ = [
    "TextOverlayWidget",
    "PageView",
]
