"""
Activity feed with progressive disclosure.

The current action is always expanded, warnings and errors are always
expanded, everything else is a one-line summary unless toggled open.
"""

from typing import List, Optional, Tuple

from rich.text import Text

from ..core.layout import ScreenRect
from ..state import ActivityEntry, ActivityPanelData, EntryKind, Severity
from ..theme import ICONS, THEME
from .text import fit, single_line, wrap

_SEVERITY_STYLES = {
    Severity.INFO: THEME["info"],
    Severity.SUCCESS: THEME["success"],
    Severity.WARNING: THEME["warning"],
    Severity.ERROR: THEME["error"],
}

DETAIL_PREFIX = "  │ "


def entry_icon(entry: ActivityEntry) -> str:
    if entry.severity == Severity.ERROR:
        return ICONS["error"]
    if entry.severity == Severity.WARNING:
        return ICONS["warning"]
    return ICONS.get(entry.kind.value, ICONS["action"])


def entry_lines(entry: ActivityEntry, width: int, selected: bool = False) -> List[Text]:
    """Lines for one entry: the summary, plus details when disclosed."""
    style = _SEVERITY_STYLES[entry.severity]
    head = Text()
    icon_style = THEME["accent"] if entry.is_current_action else style
    head.append(f"{entry_icon(entry)} ", style=icon_style)
    summary_style = f"bold {style}" if entry.is_current_action else style
    head.append(single_line(entry.summary), style=summary_style)
    if entry.details and not entry.shows_details:
        head.append(f" (+{len(entry.details)})", style=THEME["dim"])
    if selected:
        head.stylize("reverse")
    lines = [fit(head, width)]

    if entry.shows_details:
        detail_width = max(1, width - len(DETAIL_PREFIX))
        for detail in entry.details:
            for chunk in wrap(detail, detail_width):
                row = Text(DETAIL_PREFIX, style=THEME["border"])
                row.append(chunk, style=THEME["muted"])
                lines.append(fit(row, width))
    return lines


def _window(total: int, height: int, data: ActivityPanelData, selected_span: Optional[Tuple[int, int]]) -> int:
    max_start = max(0, total - height)
    if data.scroll_offset < 0:
        start = max_start
    else:
        start = min(data.scroll_offset, max_start)
    if selected_span is not None:
        first, last = selected_span
        if first < start:
            start = first
        elif last >= start + height:
            start = min(max_start, last - height + 1)
    return start


def render_activity(data: ActivityPanelData, rect: ScreenRect, focused: bool = False) -> List[Text]:
    if rect.height <= 0 or rect.width <= 0:
        return []

    title = Text("ACTIVITY", style=f"bold {THEME['accent'] if focused else THEME['muted']}")
    if data.entries:
        title.append(f" ({len(data.entries)})", style=THEME["dim"])
    body_height = rect.height - 1

    if not data.entries:
        empty = Text("No activity yet", style=THEME["dim"])
        return [fit(title, rect.width), fit(empty, rect.width)][: rect.height]

    body: List[Text] = []
    selected_span = None
    for index, entry in enumerate(data.entries):
        selected = focused and index == data.selected_index
        lines = entry_lines(entry, rect.width, selected=selected)
        if selected:
            selected_span = (len(body), len(body) + len(lines) - 1)
        body.extend(lines)

    start = _window(len(body), body_height, data, selected_span)
    return [fit(title, rect.width)] + body[start : start + body_height]


def sample_data() -> ActivityPanelData:
    """Synthetic data for previews and the gallery."""
    return ActivityPanelData(
        entries=(
            ActivityEntry("Entered Building phase", kind=EntryKind.PHASE_TRANSITION),
            ActivityEntry("Ran test suite", ("42 passed",), kind=EntryKind.TEST_RESULT, severity=Severity.SUCCESS),
            ActivityEntry("Verification found 1 issue", ("Docs missing for JTBD-002",), severity=Severity.WARNING),
            ActivityEntry(
                "Iteration 3",
                ("Reading src/app.py", "Editing src/app.py"),
                is_current_action=True,
                kind=EntryKind.AGENT_OUTPUT,
            ),
        )
    )


def preview(width: int = 60, height: int = 12, data: Optional[ActivityPanelData] = None) -> List[Text]:
    """Render with synthetic data."""
    return render_activity(data or sample_data(), ScreenRect(0, 0, width, height), focused=True)
