"""
Frame composition: layout, component rendering and modal overlay.
"""

import logging
from typing import Callable, List

from rich.text import Text

from .components import (
    render_activity,
    render_context,
    render_divider,
    render_prompt,
    render_top_panel,
)
from .core.cell_buffer import CellBuffer
from .core.layout import LayoutRegions, ScreenRect, calculate_layout
from .core.painter import paint_lines
from .modal_manager import render_modal
from .state import FocusTarget, UiState

logger = logging.getLogger(__name__)


def _paint(buffer: CellBuffer, rect: ScreenRect, name: str, render: Callable[[], List[Text]]) -> None:
    if rect.is_empty:
        return
    try:
        lines = render()
    except Exception:
        # A broken component leaves an empty region; the frame still goes out.
        logger.exception("Failed to render %s", name)
        buffer.fill_rect(rect)
        return
    paint_lines(buffer, rect, lines)


def compose(state: UiState, buffer: CellBuffer) -> LayoutRegions:
    """Paint one complete frame of state into buffer."""
    regions = calculate_layout(buffer.width, buffer.height, state.split_percent)
    focus = None if state.modal_active else state.focus

    _paint(buffer, regions.header, "header", lambda: render_top_panel(state.top, regions.header))
    _paint(
        buffer,
        regions.activity,
        "activity",
        lambda: render_activity(state.activity, regions.activity, focused=focus == FocusTarget.ACTIVITY),
    )
    _paint(buffer, regions.divider, "divider", lambda: render_divider(regions.divider))
    _paint(
        buffer,
        regions.context,
        "context",
        lambda: render_context(state.context, regions.context, focused=focus == FocusTarget.CONTEXT),
    )
    _paint(
        buffer,
        regions.prompt,
        "prompt",
        lambda: render_prompt(state.prompt, regions.prompt, focused=focus == FocusTarget.PROMPT),
    )

    if state.modal is not None:
        viewport = ScreenRect(0, 0, buffer.width, buffer.height)
        try:
            render_modal(buffer, state.modal, viewport)
        except Exception:
            logger.exception("Failed to render modal %s", state.modal.spec.kind.value)
    return regions
