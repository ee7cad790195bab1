"""
Tests for the cell buffer, differ and double buffer.
"""

from __future__ import annotations

from hypothesis import given, strategies as st
from rich.cells import cell_len
from rich.style import Style

from overseer.ui.core.cell_buffer import (
    BLANK,
    Cell,
    CellBuffer,
    DoubleBuffer,
    Run,
    diff,
    render_runs,
)
from overseer.ui.core.layout import ScreenRect

STYLES = st.sampled_from([Style.null(), Style(bold=True), Style(color="red")])
WRITES = st.lists(
    st.tuples(
        st.integers(-3, 14),
        st.integers(-1, 9),
        st.text(alphabet="ab 日́\t", max_size=8),
        STYLES,
    ),
    max_size=10,
)


def _apply(buffer: CellBuffer, writes) -> None:
    for x, y, text, style in writes:
        buffer.write(x, y, text, style)


def test_write_returns_columns_and_clips_to_width() -> None:
    """Verify writes stop at the buffer edge."""
    buffer = CellBuffer(5, 1)
    assert buffer.write(0, 0, "hello world") == 5
    assert buffer.row_text(0) == "hello"


def test_write_respects_max_width() -> None:
    """Verify max_width clips before the buffer edge."""
    buffer = CellBuffer(10, 1)
    buffer.write(2, 0, "abcdef", max_width=3)
    assert buffer.row_text(0) == "  abc     "


def test_out_of_bounds_writes_are_ignored() -> None:
    """Verify rows and columns outside the buffer are clipped silently."""
    buffer = CellBuffer(4, 2)
    assert buffer.write(0, 5, "abc") == 0
    assert buffer.write(0, -1, "abc") == 0
    buffer.write(-2, 0, "abcd")
    assert buffer.row_text(0) == "cd  "


def test_wide_character_occupies_two_cells() -> None:
    """Verify a wide grapheme is a lead cell plus a continuation cell."""
    buffer = CellBuffer(4, 1)
    assert buffer.write(0, 0, "日") == 2
    assert buffer.get(0, 0).grapheme == "日"
    assert buffer.get(1, 0).is_continuation


def test_wide_character_straddling_clip_edge_becomes_space() -> None:
    """Verify a wide grapheme that does not fit is replaced by a space."""
    buffer = CellBuffer(3, 1)
    buffer.write(0, 0, "日本")
    assert buffer.get(0, 0).grapheme == "日"
    assert buffer.get(2, 0).grapheme == " "
    assert not buffer.get(2, 0).is_continuation


def test_combining_mark_attaches_to_previous_cell() -> None:
    """Verify zero-width characters join the preceding grapheme."""
    buffer = CellBuffer(3, 1)
    assert buffer.write(0, 0, "éx") == 2
    assert buffer.get(0, 0).grapheme == "é"
    assert buffer.get(1, 0).grapheme == "x"


def test_overwriting_half_of_wide_character_repairs_pair() -> None:
    """Verify writing over a continuation cell blanks the orphaned lead."""
    buffer = CellBuffer(4, 1)
    buffer.write(0, 0, "日")
    buffer.write(1, 0, "x")
    assert buffer.get(0, 0).grapheme == " "
    assert buffer.get(1, 0).grapheme == "x"


def test_apply_style_rect_keeps_graphemes() -> None:
    """Verify restyling changes style only."""
    buffer = CellBuffer(4, 2)
    buffer.write(0, 0, "abcd")
    dim = Style(dim=True)
    buffer.apply_style_rect(ScreenRect(1, 0, 2, 5), dim)
    assert buffer.get(0, 0) == Cell("a")
    assert buffer.get(1, 0) == Cell("b", dim)
    assert buffer.get(2, 0) == Cell("c", dim)


@given(st.integers(1, 12), st.integers(1, 8), WRITES, WRITES)
def test_diff_contains_exactly_the_changed_cells(width, height, first, second) -> None:
    """Verify diff is minimal and complete."""
    previous = CellBuffer(width, height)
    _apply(previous, first)
    current = previous.copy()
    _apply(current, second)

    changes = diff(previous, current)
    changed = {(x, y) for x, y, _ in changes}
    expected = {
        (x, y)
        for y in range(height)
        for x in range(width)
        if previous.get(x, y) != current.get(x, y)
    }
    assert changed == expected

    patched = previous.copy()
    patched.apply(changes)
    assert patched == current


@given(st.integers(1, 12), st.integers(1, 8), WRITES)
def test_wide_pairs_are_never_split(width, height, writes) -> None:
    """Verify every continuation cell follows a wide lead and vice versa."""
    buffer = CellBuffer(width, height)
    _apply(buffer, writes)
    for row in buffer.rows():
        for x, cell in enumerate(row):
            if cell.is_continuation:
                assert x > 0
                assert cell_len(row[x - 1].grapheme) == 2
            elif cell_len(cell.grapheme) == 2:
                assert x + 1 < width
                assert row[x + 1].is_continuation


def test_diff_of_different_sizes_is_full_repaint() -> None:
    """Verify a size change yields every cell of the new buffer."""
    assert len(diff(CellBuffer(2, 2), CellBuffer(3, 2))) == 6


def test_render_runs_coalesces_same_style_neighbours() -> None:
    """Verify contiguous same-style cells on a row become one run."""
    bold = Style(bold=True)
    changes = [
        (1, 0, Cell("b")),
        (0, 0, Cell("a")),
        (3, 0, Cell("c")),
        (4, 0, Cell("d", bold)),
        (0, 1, Cell("日")),
        (1, 1, Cell("")),
        (2, 1, Cell("x")),
    ]
    assert render_runs(changes) == [
        Run(0, 0, "ab", Style.null()),
        Run(3, 0, "c", Style.null()),
        Run(4, 0, "d", bold),
        Run(0, 1, "日x", Style.null()),
    ]


def test_present_writes_only_changes_and_swaps(sink) -> None:
    """Verify the first frame repaints fully and unchanged frames write nothing."""
    buffers = DoubleBuffer(10, 2)
    buffers.current.write(0, 0, "hi")
    assert buffers.present(sink) == 20
    assert buffers.current.get(0, 0) == BLANK
    assert buffers.previous.get(0, 0).grapheme == "h"

    sink.writes.clear()
    buffers.current.write(0, 0, "hi")
    assert buffers.present(sink) == 0
    assert sink.writes == []

    buffers.current.write(0, 0, "ho")
    assert buffers.present(sink) == 1
    assert sink.writes == [(1, 0, "o", Style.null())]


def test_invalidate_forces_full_repaint(sink) -> None:
    """Verify invalidate makes the next present rewrite every cell."""
    buffers = DoubleBuffer(3, 1)
    buffers.present(sink)
    buffers.invalidate()
    assert buffers.present(sink) == 3
