"""
Context panel: current task, job list and numbered resources.
"""

from typing import List, Optional, Sequence

from rich.text import Text

from ..core.layout import ScreenRect
from ..state import (
    ContextPanelData,
    JobListSection,
    ResourceItem,
    SubtaskItem,
    TaskSection,
    TaskState,
)
from ..theme import ICONS, THEME
from .text import fit_all, progress_bar, single_line

_STATE_STYLES = {
    TaskState.PENDING: THEME["muted"],
    TaskState.IN_PROGRESS: THEME["accent"],
    TaskState.COMPLETE: THEME["success"],
    TaskState.FAILED: THEME["error"],
}

MAX_RESOURCES = 9


def _tree(items: Sequence[SubtaskItem]) -> List[Text]:
    lines = []
    for index, item in enumerate(items):
        connector = ICONS["tree_end"] if index == len(items) - 1 else ICONS["tree_mid"]
        line = Text(f"  {connector} ", style=THEME["border"])
        line.append(f"{ICONS[item.state.value]} ", style=_STATE_STYLES[item.state])
        line.append(single_line(item.name), style=THEME["text"])
        lines.append(line)
    return lines


def _task_lines(task: TaskSection) -> List[Text]:
    head = Text(f"{ICONS['in_progress']} ", style=THEME["accent"])
    head.append(single_line(task.name), style=f"bold {THEME['text']}")
    if task.requirement_code:
        head.append(f"  [{task.requirement_code}]", style=THEME["muted"])
    lines = [head, Text("  ").append_text(progress_bar(task.progress_percent))]
    if task.note:
        lines.append(Text(f"  {single_line(task.note)}", style=THEME["warning"]))
    lines.extend(_tree(task.subtasks))
    return lines


def _job_lines(jobs: JobListSection) -> List[Text]:
    head = Text(jobs.title, style=f"bold {THEME['text']}")
    head.append(f" {jobs.completed}/{jobs.total}", style=THEME["muted"])
    return [head] + _tree(jobs.items)


def _resource_lines(resources: Sequence[ResourceItem]) -> List[Text]:
    lines = [Text("Resources", style=f"bold {THEME['text']}")]
    for number, resource in enumerate(resources[:MAX_RESOURCES], start=1):
        line = Text(f"  [{number}] ", style=THEME["accent"])
        line.append(single_line(resource.label), style=THEME["text"])
        lines.append(line)
    lines.append(Text("  Press 1-9 to view", style=THEME["dim"]))
    return lines


def render_context(data: ContextPanelData, rect: ScreenRect, focused: bool = False) -> List[Text]:
    if rect.width <= 0 or rect.height <= 0:
        return []
    lines = [Text("CONTEXT", style=f"bold {THEME['accent'] if focused else THEME['muted']}")]

    sections = []
    if data.current_task is not None:
        sections.append(_task_lines(data.current_task))
    if data.jobs is not None:
        sections.append(_job_lines(data.jobs))
    if data.resources:
        sections.append(_resource_lines(data.resources))

    if not sections:
        lines.append(Text("No plan loaded", style=THEME["dim"]))
    for index, section in enumerate(sections):
        if index:
            lines.append(Text())
        lines.extend(section)

    return fit_all(lines, rect.width, rect.height)


def sample_data() -> ContextPanelData:
    """Synthetic data for previews and the gallery."""
    return ContextPanelData(
        current_task=TaskSection(
            name="Persist job state",
            requirement_code="JTBD-002",
            progress_percent=40,
            subtasks=(
                SubtaskItem("Write temp file", TaskState.COMPLETE),
                SubtaskItem("Rename into place", TaskState.IN_PROGRESS),
            ),
        ),
        jobs=JobListSection(
            title="Jobs",
            completed=1,
            total=3,
            items=(
                SubtaskItem("Parse config", TaskState.COMPLETE),
                SubtaskItem("Persist job state", TaskState.IN_PROGRESS),
                SubtaskItem("Render header", TaskState.PENDING),
            ),
        ),
        resources=(ResourceItem("IMPLEMENTATION_PLAN.md", "# Plan"),),
    )


def preview(width: int = 40, height: int = 16, data: Optional[ContextPanelData] = None) -> List[Text]:
    """Render with synthetic data."""
    return render_context(data or sample_data(), ScreenRect(0, 0, width, height), focused=False)
