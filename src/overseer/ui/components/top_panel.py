"""
Header strip: identity, token usage, workflow phase and step indicator.
"""

from typing import List, Optional

from rich.text import Text

from ..core.layout import ScreenRect
from ..state import TopPanelData
from ..theme import ICONS, THEME
from .text import fit_all, rule

_PHASE_STYLES = {
    "Requirement Gathering": THEME["phase_gathering"],
    "Planning": THEME["phase_planning"],
    "Building": THEME["phase_building"],
}


def format_tokens(count: int) -> str:
    """Format a token count as 950, 12.5K or 1.2M."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def step_indicator(current: int, total: int) -> Text:
    indicator = Text()
    for step in range(1, total + 1):
        if step <= current:
            indicator.append(ICONS["step_done"], style=THEME["accent"])
        else:
            indicator.append(ICONS["step_todo"], style=THEME["dim"])
    return indicator


def _identity_line(data: TopPanelData) -> Text:
    line = Text()
    if data.show_logo:
        line.append("◆ ", style=THEME["accent"])
        line.append("OVERSEER", style=f"bold {THEME['header']}")
    else:
        line.append("overseer", style=THEME["header"])
    line.append(f" v{data.version}", style=THEME["muted"])
    if data.model_name:
        line.append(f" {ICONS['separator']} ", style=THEME["border"])
        line.append(data.model_name, style=THEME["text"])
    return line


def _usage_line(data: TopPanelData) -> Text:
    line = Text()
    line.append("Context ", style=THEME["muted"])
    used = format_tokens(data.context_used_tokens)
    if data.context_max_tokens > 0:
        percent = data.context_used_tokens * 100 // data.context_max_tokens
        style = THEME["warning"] if percent >= 80 else THEME["text"]
        line.append(f"{used}/{format_tokens(data.context_max_tokens)}", style=style)
        line.append(f" ({percent}%)", style=THEME["muted"])
    else:
        line.append(used, style=THEME["text"])
    line.append(f" {ICONS['separator']} ", style=THEME["border"])
    line.append("Requests ", style=THEME["muted"])
    line.append(str(data.request_count), style=THEME["text"])
    if data.iteration:
        line.append(f" {ICONS['separator']} ", style=THEME["border"])
        line.append("Iteration ", style=THEME["muted"])
        limit = f"/{data.max_iterations}" if data.max_iterations else ""
        line.append(f"{data.iteration}{limit}", style=THEME["text"])
    return line


def _phase_line(data: TopPanelData) -> Text:
    line = Text()
    if not data.phase_name:
        line.append("Waiting for the workflow to start", style=THEME["muted"])
        return line
    line.append(data.phase_name, style=f"bold {_PHASE_STYLES.get(data.phase_name, THEME['text'])}")
    if data.total_steps:
        line.append("  ")
        line.append_text(step_indicator(data.current_step, data.total_steps))
        line.append(f"  Step {data.current_step}/{data.total_steps}", style=THEME["muted"])
    if data.step_label:
        line.append(f": {data.step_label}", style=THEME["text"])
    return line


def render_top_panel(data: TopPanelData, rect: ScreenRect) -> List[Text]:
    lines = [
        _identity_line(data),
        _usage_line(data),
        _phase_line(data),
        rule(rect.width),
    ]
    return fit_all(lines, rect.width, rect.height)


def sample_data() -> TopPanelData:
    """Synthetic data for previews and the gallery."""
    return TopPanelData(
        version="0.1.0",
        model_name="claude-opus-4.5",
        context_used_tokens=12_500,
        context_max_tokens=200_000,
        request_count=7,
        phase_name="Building",
        current_step=6,
        total_steps=7,
        step_label="Iterate through tasks",
        iteration=3,
        max_iterations=20,
    )


def preview(width: int = 80, height: int = 4, data: Optional[TopPanelData] = None) -> List[Text]:
    """Render with synthetic data."""
    return render_top_panel(data or sample_data(), ScreenRect(0, 0, width, height))
