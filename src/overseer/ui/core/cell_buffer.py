"""
Cell buffer and differ.

A CellBuffer is a width x height grid of styled cells. Wide graphemes occupy
their lead cell plus one continuation cell whose grapheme is the empty
string. All writes clip silently; nothing in here raises because of a bad
coordinate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Protocol, Tuple

from rich.cells import cell_len, get_character_cell_size
from rich.style import Style

from .layout import ScreenRect


@dataclass(frozen=True)
class Cell:
    """One terminal position: a grapheme and its style."""

    grapheme: str = " "
    style: Style = Style.null()

    @property
    def is_continuation(self) -> bool:
        return self.grapheme == ""


BLANK = Cell()

CellChange = Tuple[int, int, Cell]


class Run(NamedTuple):
    """Consecutive changed cells on one row sharing a style."""

    x: int
    y: int
    text: str
    style: Style


class OutputSink(Protocol):
    def write_at(self, x: int, y: int, text: str, style: Style) -> None: ...

    def flush(self) -> None: ...


class CellBuffer:
    """A grid of cells with clipped, width-aware writes."""

    def __init__(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self._rows: List[List[Cell]] = [
            [BLANK] * self.width for _ in range(self.height)
        ]

    def copy(self) -> "CellBuffer":
        clone = CellBuffer(self.width, self.height)
        clone._rows = [list(row) for row in self._rows]
        return clone

    def get(self, x: int, y: int) -> Cell:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self._rows[y][x]
        return BLANK

    def rows(self) -> List[Tuple[Cell, ...]]:
        return [tuple(row) for row in self._rows]

    def row_text(self, y: int) -> str:
        """Plain text of a row, continuation cells omitted."""
        if not 0 <= y < self.height:
            return ""
        return "".join(cell.grapheme for cell in self._rows[y])

    def clear(self, cell: Cell = BLANK) -> None:
        for row in self._rows:
            row[:] = [cell] * self.width

    def set(self, x: int, y: int, cell: Cell) -> None:
        """Place a cell, repairing any wide grapheme it splits."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            return
        row = self._rows[y]
        existing = row[x]
        if existing.is_continuation and x > 0 and not cell.is_continuation:
            lead = row[x - 1]
            if not lead.is_continuation and cell_len(lead.grapheme) == 2:
                row[x - 1] = Cell(" ", lead.style)
        if (
            not existing.is_continuation
            and cell_len(existing.grapheme) == 2
            and x + 1 < self.width
            and row[x + 1].is_continuation
        ):
            row[x + 1] = Cell(" ", row[x + 1].style)
        row[x] = cell

    def write(
        self,
        x: int,
        y: int,
        text: str,
        style: Optional[Style] = None,
        max_width: Optional[int] = None,
    ) -> int:
        """
        Write text starting at (x, y).

        Args:
            x: Starting column (may be negative; clipped)
            y: Row
            text: Text to write; newlines end the write
            style: Style for every written cell
            max_width: Columns available from x

        Returns:
            Number of columns consumed
        """
        if not 0 <= y < self.height:
            return 0
        style = style or Style.null()
        limit = self.width if max_width is None else min(self.width, x + max(0, max_width))
        col = x
        last_lead: Optional[int] = None

        for char in text:
            if char == "\n":
                break
            if char == "\t":
                char = " "
            elif ord(char) < 32 or ord(char) == 127:
                continue

            size = get_character_cell_size(char)
            if size == 0:
                if last_lead is not None:
                    lead = self._rows[y][last_lead]
                    self._rows[y][last_lead] = Cell(lead.grapheme + char, lead.style)
                continue
            if col >= limit:
                break
            if size == 2 and col + 1 >= limit:
                if col >= 0:
                    self.set(col, y, Cell(" ", style))
                col += 1
                break

            if col >= 0:
                self.set(col, y, Cell(char, style))
                last_lead = col
                if size == 2:
                    self.set(col + 1, y, Cell("", style))
            elif size == 2 and col + 1 == 0:
                # Left half clipped away.
                self.set(0, y, Cell(" ", style))
                last_lead = None
            col += size

        return max(0, col - x)

    def fill_rect(self, rect: ScreenRect, cell: Cell = BLANK) -> None:
        for y in range(max(0, rect.y), min(self.height, rect.bottom)):
            for x in range(max(0, rect.x), min(self.width, rect.right)):
                self.set(x, y, cell)

    def apply_style_rect(self, rect: ScreenRect, style: Style) -> None:
        """Replace the style of every cell in rect, keeping graphemes."""
        for y in range(max(0, rect.y), min(self.height, rect.bottom)):
            row = self._rows[y]
            for x in range(max(0, rect.x), min(self.width, rect.right)):
                row[x] = Cell(row[x].grapheme, style)

    def apply(self, changes: Iterable[CellChange]) -> None:
        """Replay changes produced by diff()."""
        for x, y, cell in changes:
            if 0 <= x < self.width and 0 <= y < self.height:
                self._rows[y][x] = cell

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CellBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self._rows == other._rows
        )


def diff(previous: CellBuffer, current: CellBuffer) -> List[CellChange]:
    """
    Cells of current that differ from previous at the same coordinate.

    When the sizes differ every cell of current is returned.
    """
    if previous.width != current.width or previous.height != current.height:
        return [
            (x, y, cell)
            for y, row in enumerate(current._rows)
            for x, cell in enumerate(row)
        ]

    changes: List[CellChange] = []
    for y, (old_row, new_row) in enumerate(zip(previous._rows, current._rows)):
        if old_row == new_row:
            continue
        for x, (old, new) in enumerate(zip(old_row, new_row)):
            if old != new:
                changes.append((x, y, new))
    return changes


def render_runs(changes: Iterable[CellChange]) -> List[Run]:
    """Group changed cells into same-row, same-style runs for the sink."""
    runs: List[Run] = []
    run_x = run_y = run_end = -1
    run_text: List[str] = []
    run_style: Optional[Style] = None

    def flush() -> None:
        if run_text and run_style is not None:
            runs.append(Run(run_x, run_y, "".join(run_text), run_style))

    for x, y, cell in sorted(changes, key=lambda change: (change[1], change[0])):
        if cell.is_continuation:
            # Drawn by its lead cell; an unchanged lead needs no write.
            continue
        width = cell_len(cell.grapheme) or 1
        if run_text and y == run_y and x == run_end and cell.style == run_style:
            run_text.append(cell.grapheme)
            run_end += width
            continue
        flush()
        run_x, run_y, run_end = x, y, x + width
        run_text = [cell.grapheme]
        run_style = cell.style

    flush()
    return runs


class DoubleBuffer:
    """Front/back buffer pair; present() writes only what changed."""

    def __init__(self, width: int, height: int) -> None:
        self.current = CellBuffer(width, height)
        self.previous = CellBuffer(width, height)
        self._full_repaint = True

    @property
    def size(self) -> Tuple[int, int]:
        return self.current.width, self.current.height

    def resize(self, width: int, height: int) -> None:
        if (width, height) == self.size:
            return
        self.current = CellBuffer(width, height)
        self.previous = CellBuffer(width, height)
        self._full_repaint = True

    def invalidate(self) -> None:
        """Force the next present() to rewrite every cell."""
        self._full_repaint = True

    def present(self, sink: OutputSink) -> int:
        """
        Flush the difference to the sink and swap buffers.

        Returns:
            Number of changed cells written
        """
        if self._full_repaint:
            changes = diff(CellBuffer(0, 0), self.current)
        else:
            changes = diff(self.previous, self.current)

        for run in render_runs(changes):
            sink.write_at(run.x, run.y, run.text, run.style)
        sink.flush()

        self._full_repaint = False
        self.previous, self.current = self.current, self.previous
        self.current.clear()
        return len(changes)
