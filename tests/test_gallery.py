"""
Tests for the component gallery.
"""

from __future__ import annotations

from collections import deque

from hypothesis import given, settings, strategies as st

from overseer.ui.components.modals import sample_spec
from overseer.ui.core.cell_buffer import CellBuffer
from overseer.ui.core.terminal import KeyEvent, KeyModifiers
from overseer.ui.gallery import build_pages, next_page, render_page, run_gallery
from overseer.ui.state import ModalKind


def _screen(buffer: CellBuffer) -> str:
    return "\n".join(buffer.row_text(y) for y in range(buffer.height))


class LateKeys:
    """Key source whose keys arrive after the first frame is drawn."""

    def __init__(self, *keys: KeyEvent):
        self.pending = deque(keys)
        self.polls = 0
        self.started = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.started = False

    def is_key_available(self) -> bool:
        self.polls += 1
        return self.polls > 1 and bool(self.pending)

    def read_key(self):
        return self.pending.popleft() if self.pending else None


def test_pages_cover_panels_and_every_modal_kind() -> None:
    """Verify the gallery has a page per panel, the dashboard and each modal kind."""
    titles = [page.title for page in build_pages()]
    assert titles[:5] == ["Header", "Activity", "Context", "Prompt", "Dashboard"]
    assert len(titles) == 5 + len(ModalKind)
    assert "Resource viewer modal" in titles
    assert "Escalation modal" in titles


def test_every_page_renders_into_a_cell_buffer() -> None:
    """Verify each page paints content and its caption."""
    pages = build_pages()
    for index, page in enumerate(pages):
        buffer = CellBuffer(80, 24)
        render_page(pages, index, buffer)
        screen = _screen(buffer)
        assert f"{index + 1}/{len(pages)} {page.title}" in buffer.row_text(23)
        assert sum(1 for y in range(23) if buffer.row_text(y).strip()) >= 3
        if page.title == "Dashboard":
            assert "Persist job state" in screen
            assert "Add a test for the marker file" in screen


def test_modal_pages_show_the_sample_modal() -> None:
    """Verify modal pages overlay the modal's title on the dashboard."""
    pages = build_pages()
    for offset, kind in enumerate(ModalKind):
        buffer = CellBuffer(100, 30)
        render_page(pages, 5 + offset, buffer)
        assert sample_spec(kind).title in _screen(buffer)


@settings(max_examples=30, deadline=None)
@given(st.integers(20, 140), st.integers(6, 50))
def test_pages_render_at_any_size(width, height) -> None:
    """Verify no page fails or spills outside small and large screens."""
    pages = build_pages()
    for index in range(len(pages)):
        buffer = CellBuffer(width, height)
        render_page(pages, index, buffer)
        assert buffer.row_text(height - 1).strip()


def test_next_page_wraps_and_closes() -> None:
    """Verify arrows cycle pages and Esc, q or Ctrl+C close the gallery."""
    assert next_page(0, KeyEvent("right"), 4) == 1
    assert next_page(3, KeyEvent("right"), 4) == 0
    assert next_page(0, KeyEvent("left"), 4) == 3
    assert next_page(2, KeyEvent.for_char("x"), 4) == 2
    assert next_page(2, KeyEvent("escape"), 4) is None
    assert next_page(2, KeyEvent.for_char("q"), 4) is None
    assert next_page(2, KeyEvent("c", KeyModifiers.CTRL), 4) is None


def test_run_gallery_draws_and_restores_terminal(sink) -> None:
    """Verify the gallery paints through the sink and releases it on exit."""
    keys = LateKeys(KeyEvent("right"), KeyEvent("right"), KeyEvent("escape"))
    assert run_gallery(sink, keys, frame_rate=1000.0) == 2
    written = "".join(text for _, _, text, _ in sink.writes)
    assert "Header" in written
    assert not sink.entered
    assert not keys.started
    assert sink.cursor == (0, 0, False)
