"""
Small text helpers shared by the render functions.

Every helper returns new Text objects; nothing here mutates its arguments.
"""

from typing import Iterable, List

from rich.cells import chop_cells
from rich.text import Text

from ..theme import PROGRESS_EMPTY, PROGRESS_FILLED, THEME


def single_line(value: str) -> str:
    return value.replace("\r", "").replace("\n", " ")


def fit(line: Text, width: int) -> Text:
    """Copy of line truncated with an ellipsis to width cells."""
    if width <= 0:
        return Text()
    result = line.copy()
    result.truncate(width, overflow="ellipsis")
    return result


def fit_all(lines: Iterable[Text], width: int, height: int) -> List[Text]:
    return [fit(line, width) for line in list(lines)[: max(0, height)]]


def wrap(value: str, width: int) -> List[str]:
    """Hard-wrap plain text to width cells, preserving explicit newlines."""
    if width <= 0:
        return []
    wrapped: List[str] = []
    for raw in value.splitlines() or [""]:
        raw = raw.replace("\t", "    ")
        if not raw:
            wrapped.append("")
            continue
        wrapped.extend(chop_cells(raw, width))
    return wrapped


def rule(width: int, style: str = THEME["border"], char: str = "─") -> Text:
    return Text(char * max(0, width), style=style)


def progress_bar(percent: int, width: int = 10) -> Text:
    percent = max(0, min(100, percent))
    filled = round(width * percent / 100)
    bar = Text()
    bar.append(PROGRESS_FILLED * filled, style=THEME["success"])
    bar.append(PROGRESS_EMPTY * (width - filled), style=THEME["dim"])
    bar.append(f" {percent}%", style=THEME["muted"])
    return bar


def options_row(options: Iterable[str], selected: int) -> Text:
    """Horizontal button row; the selected option renders as [>option<]."""
    row = Text()
    for index, option in enumerate(options):
        if index:
            row.append("  ")
        if index == selected:
            row.append(f"[>{option}<]", style=THEME["selected"])
        else:
            row.append(f"[ {option} ]", style=THEME["text"])
    return row
