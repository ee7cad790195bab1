"""
Prompt strip: input line, pause badge, spinner and keyboard hints.
"""

from typing import List, Optional, Tuple

from rich.cells import cell_len
from rich.text import Text

from ..core.layout import ScreenRect
from ..state import PromptData
from ..theme import ICONS, SPINNER_FRAMES, THEME
from .text import fit, rule

PROMPT_PREFIX = f"{ICONS['prompt']} "
NEWLINE_GLYPH = "↵"


def render_spinner(message: str, frame: int) -> Text:
    spinner = Text(SPINNER_FRAMES[frame % len(SPINNER_FRAMES)], style=THEME["accent"])
    spinner.append(f" {message}", style=THEME["muted"])
    return spinner


def _status_badge(data: PromptData) -> Optional[Text]:
    if data.is_paused:
        return Text(f" {ICONS['paused']} PAUSED ", style=THEME["paused"])
    if data.spinner:
        return render_spinner(data.spinner, data.spinner_frame)
    return None


def visible_input(text: str, cursor: int, available: int) -> Tuple[str, int]:
    """
    Horizontal window over the input buffer that keeps the cursor visible.

    Returns:
        Tuple of (visible text, cursor column within it)
    """
    display = text.replace("\n", NEWLINE_GLYPH)
    cursor = max(0, min(cursor, len(display)))
    if available <= 0:
        return "", 0
    start = 0
    while start < cursor and cell_len(display[start:cursor]) >= available:
        start += 1
    visible = display[start:]
    return visible, cell_len(display[start:cursor])


def _input_line(data: PromptData, width: int) -> Tuple[Text, int]:
    line = Text(PROMPT_PREFIX, style=f"bold {THEME['accent']}")
    badge = _status_badge(data)
    badge_width = cell_len(badge.plain) + 1 if badge is not None else 0
    available = max(0, width - len(PROMPT_PREFIX) - badge_width)

    if data.text:
        visible, cursor_col = visible_input(data.text, data.cursor, available)
        line.append_text(fit(Text(visible, style=THEME["input"]), available))
    else:
        cursor_col = 0
        line.append_text(fit(Text(data.placeholder, style=THEME["dim"]), available))

    if badge is not None:
        padding = width - cell_len(line.plain) - cell_len(badge.plain)
        line.append(" " * max(1, padding))
        line.append_text(badge)
    return fit(line, width), len(PROMPT_PREFIX) + cursor_col


def render_prompt(data: PromptData, rect: ScreenRect, focused: bool = True) -> List[Text]:
    if rect.width <= 0 or rect.height <= 0:
        return []
    border_style = THEME["border_focus"] if focused else THEME["border"]
    input_line, _ = _input_line(data, rect.width)
    hints = Text(f" {ICONS['separator']} ".join(data.hints or ()), style=THEME["dim"])
    lines = [rule(rect.width, style=border_style), input_line, fit(hints, rect.width)]
    if rect.height < len(lines):
        # The input line matters most on a short viewport.
        lines = [input_line, lines[0], lines[2]]
    return lines[: rect.height]


def prompt_cursor(data: PromptData, rect: ScreenRect) -> Tuple[int, int]:
    """Absolute terminal position of the input cursor."""
    _, column = _input_line(data, rect.width)
    row = rect.y + (1 if rect.height >= 3 else 0)
    return rect.x + min(column, max(0, rect.width - 1)), row


def sample_data() -> PromptData:
    """Synthetic data for previews and the gallery."""
    return PromptData(
        text="Add a test for the marker file",
        cursor=30,
        spinner="Agent working",
        hints=("Enter: Submit", "Tab: Focus", "Ctrl+P: Pause"),
    )


def preview(width: int = 80, height: int = 3, data: Optional[PromptData] = None) -> List[Text]:
    """Render with synthetic data."""
    return render_prompt(data or sample_data(), ScreenRect(0, 0, width, height))
