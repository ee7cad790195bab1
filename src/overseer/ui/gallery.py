"""
Component gallery.

Pages through every panel and every modal kind drawn with synthetic data,
using the same compositor, cell buffers and terminal sink as the live
renderer. Panels are shown alone in a frame; modals are overlaid on a full
sample dashboard.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence

from rich.text import Text

from .app import KeySource, ScreenSink
from .components import activity, context, draw_box, prompt, top_panel
from .components.modals import sample_spec
from .compositor import compose
from .core.cell_buffer import CellBuffer, DoubleBuffer
from .core.layout import ScreenRect
from .core.painter import paint_lines, write_text
from .core.resize_handler import clear_resize_handler, setup_resize_handler
from .core.terminal import KeyEvent
from .state import ActiveModal, FocusTarget, ModalKind, UiState
from .theme import THEME

logger = logging.getLogger(__name__)

GALLERY_HINTS = "←/→: Page  Esc: Quit"
NEXT_KEYS = ("right", "down", "pagedown", "tab", "space")
PREV_KEYS = ("left", "up", "pageup")

PanelPreview = Callable[[int, int], List[Text]]


@dataclass(frozen=True)
class GalleryPage:
    title: str
    render: Callable[[CellBuffer], None]


def sample_state() -> UiState:
    return UiState(
        focus=FocusTarget.ACTIVITY,
        top=top_panel.sample_data(),
        activity=activity.sample_data(),
        context=context.sample_data(),
        prompt=prompt.sample_data(),
    )


def _panel_page(title: str, preview: PanelPreview, rows: Optional[int] = None) -> GalleryPage:
    def render(buffer: CellBuffer) -> None:
        # The bottom row is the gallery caption.
        height = buffer.height - 1
        if rows is not None:
            height = min(height, rows + 2)
        if buffer.width < 4 or height < 3:
            return
        content = preview(buffer.width - 4, height - 2)
        paint_lines(buffer, ScreenRect(0, 0, buffer.width, height), draw_box(title, content, buffer.width, height))

    return GalleryPage(title, render)


def _screen_page(title: str, state: UiState) -> GalleryPage:
    def render(buffer: CellBuffer) -> None:
        compose(state, buffer)

    return GalleryPage(title, render)


def build_pages() -> List[GalleryPage]:
    """Panels first, then the dashboard, then one page per modal kind."""
    state = sample_state()
    pages = [
        _panel_page("Header", top_panel.preview, rows=4),
        _panel_page("Activity", activity.preview),
        _panel_page("Context", context.preview),
        _panel_page("Prompt", prompt.preview, rows=3),
        _screen_page("Dashboard", state),
    ]
    for kind in ModalKind:
        title = kind.value.replace("_", " ").capitalize() + " modal"
        pages.append(_screen_page(title, replace(state, modal=ActiveModal(sample_spec(kind)))))
    return pages


def render_page(pages: Sequence[GalleryPage], index: int, buffer: CellBuffer) -> None:
    """Paint one page and the caption row below it."""
    page = pages[index]
    page.render(buffer)
    if buffer.height == 0:
        return
    y = buffer.height - 1
    caption = Text(f" {index + 1}/{len(pages)} {page.title} ", style=f"bold {THEME['accent']}")
    caption.append(f" {GALLERY_HINTS}", style=THEME["dim"])
    buffer.fill_rect(ScreenRect(0, y, buffer.width, 1))
    write_text(buffer, 0, y, caption, buffer.width)


def next_page(index: int, key: KeyEvent, count: int) -> Optional[int]:
    """
    Page index after a key press.

    Returns:
        The new index, or None when the key closes the gallery
    """
    if key.key == "escape" or key.char in ("q", "Q") or (key.ctrl and key.key == "c"):
        return None
    if key.key in NEXT_KEYS:
        return (index + 1) % count
    if key.key in PREV_KEYS:
        return (index - 1) % count
    return index


def run_gallery(sink: ScreenSink, keys: KeySource, frame_rate: float = 30.0) -> int:
    """
    Show the gallery until Esc or q.

    Returns:
        Index of the page that was showing when the gallery closed
    """
    pages = build_pages()
    width, height = sink.size
    frames = DoubleBuffer(width, height)
    resized = threading.Event()
    index = 0
    dirty = True

    sink.enter()
    keys.start()
    setup_resize_handler(lambda cols, rows: resized.set())
    try:
        while True:
            if resized.is_set():
                resized.clear()
                frames.invalidate()
                sink.clear()
                dirty = True
            if sink.size != frames.size:
                frames.resize(*sink.size)
                dirty = True

            while keys.is_key_available():
                key = keys.read_key()
                if key is None:
                    break
                moved = next_page(index, key, len(pages))
                if moved is None:
                    logger.debug("Gallery closed on %s", pages[index].title)
                    return index
                dirty = dirty or moved != index
                index = moved

            if dirty:
                render_page(pages, index, frames.current)
                frames.present(sink)
                sink.place_cursor(0, 0, False)
                sink.flush()
                dirty = False
            time.sleep(1.0 / frame_rate)
    finally:
        clear_resize_handler()
        keys.stop()
        sink.exit()
