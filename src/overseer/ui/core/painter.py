"""
Paint rich Text lines into a CellBuffer.
"""

import io
from typing import Sequence

from rich.console import Console
from rich.style import Style
from rich.text import Text

from .cell_buffer import CellBuffer
from .layout import ScreenRect

# Only used to resolve style strings into Style objects; never printed to.
_STYLE_CONSOLE = Console(file=io.StringIO(), color_system="truecolor", force_terminal=True)


def write_text(buffer: CellBuffer, x: int, y: int, line: Text, max_width: int) -> int:
    """Write one line of styled text, clipped to max_width. Returns columns used."""
    used = 0
    for segment in line.render(_STYLE_CONSOLE):
        if segment.control or not segment.text:
            continue
        if used >= max_width:
            break
        used += buffer.write(
            x + used,
            y,
            segment.text,
            segment.style or Style.null(),
            max_width=max_width - used,
        )
    return used


def paint_lines(buffer: CellBuffer, rect: ScreenRect, lines: Sequence[Text]) -> None:
    """Paint lines top-down into rect; extra lines and columns are clipped."""
    if rect.is_empty:
        return
    for offset, line in enumerate(lines[: rect.height]):
        write_text(buffer, rect.x, rect.y + offset, line, rect.width)
