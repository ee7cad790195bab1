"""
Modal content renderers.

Each ModalKind has exactly one render function in MODAL_RENDERERS. A renderer
receives the inner size (inside the border) and returns the content lines;
the modal manager draws the border, backdrop and placement.
"""

from typing import Callable, Dict, List, Optional, Tuple

from rich.cells import cell_len
from rich.text import Text

from ..state import ModalKind, ModalSpec
from ..theme import ICONS, THEME
from .text import options_row, wrap

MIN_MODAL_WIDTH = 36
MAX_MODAL_WIDTH = 76
MAX_VIEWER_ROWS = 24

LOGO = (
    "╔═╗╦  ╦╔═╗╦═╗╔═╗╔═╗╔═╗╦═╗",
    "║ ║╚╗╔╝║╣ ╠╦╝╚═╗║╣ ║╣ ╠╦╝",
    "╚═╝ ╚╝ ╚═╝╩╚═╚═╝╚═╝╚═╝╩╚═",
)

VIEWER_FOOTER = "Esc: Close  ↑/↓: Scroll"

ModalRenderer = Callable[[ModalSpec, int, int], List[Text]]


def _message(spec: ModalSpec, width: int, style: str = THEME["text"]) -> List[Text]:
    return [Text(chunk, style=style) for chunk in wrap(spec.message, width)] if spec.message else []


def _plain_lines(spec: ModalSpec, width: int, style: str = THEME["muted"]) -> List[Text]:
    lines: List[Text] = []
    for line in spec.lines:
        lines.extend(Text(chunk, style=style) for chunk in wrap(line, width))
    return lines


def _with_options(body: List[Text], spec: ModalSpec) -> List[Text]:
    if spec.options:
        body = body + [Text(), options_row(spec.options, spec.selected_index)]
    return body


def render_landing(spec: ModalSpec, width: int, height: int) -> List[Text]:
    lines = [Text(row, style=f"bold {THEME['accent']}") for row in LOGO]
    lines.append(Text())
    lines.extend(_message(spec, width))
    if spec.lines:
        lines.append(Text())
        lines.append(Text("Quick commands", style=f"bold {THEME['text']}"))
        lines.extend(_plain_lines(spec, width))
    return _with_options(lines, spec)


def render_help(spec: ModalSpec, width: int, height: int) -> List[Text]:
    lines = _message(spec, width)
    for row in spec.lines:
        name, _, description = row.partition("  ")
        line = Text(name, style=f"bold {THEME['accent']}")
        if description:
            line.append("  " + description.strip(), style=THEME["muted"])
        lines.append(line)
    lines.append(Text())
    lines.append(Text("Esc: Close", style=THEME["dim"]))
    return lines


def render_confirmation(spec: ModalSpec, width: int, height: int) -> List[Text]:
    return _with_options(_message(spec, width) + _plain_lines(spec, width), spec)


def render_error(spec: ModalSpec, width: int, height: int) -> List[Text]:
    lines = [Text(f"{ICONS['error']} ", style=THEME["error"]).append_text(Text(spec.title or "Error", style=f"bold {THEME['error']}"))]
    lines.extend(_message(spec, width, style=THEME["error"]))
    details = _plain_lines(spec, width)
    if details:
        lines.append(Text())
        lines.extend(details)
    return _with_options(lines, spec)


def render_escalation(spec: ModalSpec, width: int, height: int) -> List[Text]:
    lines = [Text(f"{ICONS['warning']} ", style=THEME["warning"]).append_text(Text("Intervention needed", style=f"bold {THEME['warning']}"))]
    lines.extend(_message(spec, width))
    guidance = _plain_lines(spec, width)
    if guidance:
        lines.append(Text())
        lines.extend(guidance)
    return _with_options(lines, spec)


def render_session_resume(spec: ModalSpec, width: int, height: int) -> List[Text]:
    lines = _message(spec, width)
    details = _plain_lines(spec, width)
    if details:
        lines.append(Text())
        lines.extend(details)
    return _with_options(lines, spec)


def render_selection(spec: ModalSpec, width: int, height: int) -> List[Text]:
    lines = _message(spec, width)
    if lines:
        lines.append(Text())
    for index, option in enumerate(spec.options):
        if index == spec.selected_index:
            lines.append(Text(f"{ICONS['in_progress']} {option}", style=THEME["selected"]))
        else:
            lines.append(Text(f"  {option}", style=THEME["text"]))
    return lines


def viewer_rows(spec: ModalSpec, width: int) -> List[str]:
    rows: List[str] = []
    for line in spec.lines:
        rows.extend(wrap(line, width))
    return rows


def viewer_max_offset(spec: ModalSpec, width: int, height: int) -> int:
    """Largest scroll offset that still fills the viewer's text area."""
    return max(0, len(viewer_rows(spec, width)) - max(1, height - 2))


def render_resource_viewer(spec: ModalSpec, width: int, height: int) -> List[Text]:
    body = viewer_rows(spec, width)
    visible = max(1, height - 2)
    offset = max(0, min(spec.scroll_offset, viewer_max_offset(spec, width, height)))
    lines = [Text(row, style=THEME["text"]) for row in body[offset : offset + visible]]
    lines.extend(Text() for _ in range(visible - len(lines)))
    lines.append(Text())
    footer = Text(VIEWER_FOOTER, style=THEME["dim"])
    if body:
        footer.append(f"  {offset + 1}-{offset + len(body[offset:offset + visible])}/{len(body)}", style=THEME["dim"])
    lines.append(footer)
    return lines


MODAL_RENDERERS: Dict[ModalKind, ModalRenderer] = {
    ModalKind.LANDING: render_landing,
    ModalKind.HELP: render_help,
    ModalKind.CONFIRMATION: render_confirmation,
    ModalKind.ERROR: render_error,
    ModalKind.RESOURCE_VIEWER: render_resource_viewer,
    ModalKind.SESSION_RESUME: render_session_resume,
    ModalKind.SELECTION: render_selection,
    ModalKind.ESCALATION: render_escalation,
}


def modal_size(spec: ModalSpec) -> Tuple[int, int]:
    """Outer size (border included) the modal would like to occupy."""
    longest = max(
        [cell_len(spec.title) + 6, cell_len(spec.message) + 4]
        + [cell_len(line) + 4 for line in spec.lines]
        + [cell_len(options_row(spec.options, spec.selected_index).plain) + 4]
    )
    width = max(MIN_MODAL_WIDTH, min(MAX_MODAL_WIDTH, longest))
    if spec.kind == ModalKind.LANDING:
        width = max(width, max(cell_len(row) for row in LOGO) + 4)
    inner_w = width - 4
    if spec.kind == ModalKind.RESOURCE_VIEWER:
        return width, min(len(viewer_rows(spec, inner_w)), MAX_VIEWER_ROWS) + 4
    content = MODAL_RENDERERS[spec.kind](spec, inner_w, 1000)
    return width, len(content) + 2


def render_modal_content(spec: ModalSpec, width: int, height: int) -> List[Text]:
    """
    Render a modal's content clipped to height rows.

    When the content does not fit, the options row stays as the last line and
    the text above it is cut. A selection list keeps the selected entry in
    view instead.
    """
    lines = MODAL_RENDERERS[spec.kind](spec, width, height)
    if height <= 0:
        return []
    if len(lines) <= height:
        return lines
    if spec.kind == ModalKind.SELECTION:
        # Options start after the message and its blank separator.
        selected = len(lines) - len(spec.options) + spec.selected_index
        start = max(0, selected - height + 1)
        return lines[start : start + height]
    if spec.options:
        return lines[: height - 1] + [lines[-1]]
    return lines[:height]


def sample_spec(kind: ModalKind) -> ModalSpec:
    """A representative modal of each kind for previews and the gallery."""
    if kind == ModalKind.LANDING:
        return ModalSpec(
            kind=kind,
            title="overseer",
            message="Supervise an autonomous coding agent from plan to done.",
            lines=("/approve  Start planning", "/help     All commands"),
            options=("Continue", "Help"),
        )
    if kind == ModalKind.HELP:
        return ModalSpec(kind=kind, title="Help", lines=("/approve  Start planning", "/status   Report progress"))
    if kind == ModalKind.CONFIRMATION:
        return ModalSpec(kind=kind, title="Quit", message="Cancel the run and exit overseer?", options=("Quit", "Stay"))
    if kind == ModalKind.ERROR:
        return ModalSpec(
            kind=kind,
            title="Run failed",
            message="The agent exited with code 2.",
            lines=("See .overseer/overseer.log for details",),
            options=("Exit",),
        )
    if kind == ModalKind.RESOURCE_VIEWER:
        return ModalSpec(
            kind=kind,
            title="IMPLEMENTATION_PLAN.md",
            lines=("# Plan", "", "## JTBD-002 Persist job state", "- [x] Write temp file", "- [ ] Rename into place"),
        )
    if kind == ModalKind.SESSION_RESUME:
        return ModalSpec(
            kind=kind,
            title="Resume session",
            message="A previous run stopped during Building.",
            lines=("2 of 5 jobs done",),
            options=("Resume", "Start New"),
        )
    if kind == ModalKind.SELECTION:
        return ModalSpec(
            kind=kind,
            title="Resources",
            message="Choose a resource to open",
            options=("IMPLEMENTATION_PLAN.md", "jobs-to-be-done.json", "AGENTS.md"),
        )
    return ModalSpec(
        kind=kind,
        title="Escalation",
        message="Task 'JTBD-002' has failed 3 consecutive times.",
        options=("Retry", "Skip", "Abort"),
        lines=("Check the failing test output", "Adjust the job description"),
    )


def preview(kind: ModalKind = ModalKind.ESCALATION, width: int = 60, height: int = 12, spec: Optional[ModalSpec] = None) -> List[Text]:
    """Render one modal's content with synthetic data."""
    return render_modal_content(spec or sample_spec(kind), width, height)
