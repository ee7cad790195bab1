"""
Divider and border helpers.
"""

from typing import List, Sequence

from rich.cells import cell_len
from rich.text import Text

from ..core.layout import ScreenRect
from ..theme import ICONS, THEME
from .text import fit


def render_divider(rect: ScreenRect) -> List[Text]:
    return [Text(ICONS["separator"], style=THEME["border"]) for _ in range(rect.height)]


def draw_box(
    title: str,
    content: Sequence[Text],
    width: int,
    height: int,
    border_style: str = THEME["border_focus"],
) -> List[Text]:
    """
    Frame content lines in a rounded border of exactly width x height.

    Content that does not fit is clipped; short content is padded.
    """
    if width < 2 or height < 2:
        return []
    inner_w = width - 2
    inner_h = height - 2

    top = Text("╭", style=border_style)
    label = f" {title} " if title else ""
    label = label[: max(0, inner_w - 1)]
    if label:
        top.append("─", style=border_style)
        top.append(label, style=f"bold {THEME['header']}")
        top.append("─" * max(0, inner_w - 1 - cell_len(label)), style=border_style)
    else:
        top.append("─" * inner_w, style=border_style)
    top.append("╮", style=border_style)

    lines = [top]
    for index in range(inner_h):
        body = fit(content[index], inner_w - 2) if index < len(content) else Text()
        row = Text("│ ", style=border_style)
        row.append_text(body)
        row.append(" " * max(0, inner_w - 2 - cell_len(body.plain)))
        row.append(" │" if inner_w >= 2 else "│", style=border_style)
        lines.append(row)

    lines.append(Text("╰" + "─" * inner_w + "╯", style=border_style))
    return lines
