"""
Modal overlay management.

At most one modal is active; further requests queue in arrival order. Focus
is saved when the first modal opens and restored when the last one closes.
"""

import logging
from dataclasses import replace
from typing import Optional, Tuple

from rich.style import Style

from ..bus.commands import Command, ModalResponse
from .components.border import draw_box
from .components.modals import modal_size, render_modal_content, viewer_max_offset
from .core.cell_buffer import CellBuffer
from .core.layout import ScreenRect, centered_rect
from .core.painter import paint_lines
from .state import ActiveModal, ModalKind, ModalSpec, UiState
from .theme import THEME

logger = logging.getLogger(__name__)

MODAL_MARGIN = 2

# Choice reported when a modal is closed with Esc instead of an option.
DISMISSED = ""

BACKDROP_STYLE = Style.parse(THEME["backdrop"])


def open_modal(state: UiState, modal: ActiveModal) -> UiState:
    if state.modal is None:
        return replace(state, modal=modal, pre_modal_focus=state.focus)
    return replace(state, pending_modals=state.pending_modals + (modal,))


def close_modal(state: UiState) -> UiState:
    """Close the active modal and promote the next queued one, if any."""
    if state.modal is None:
        return state
    if state.pending_modals:
        return replace(
            state,
            modal=state.pending_modals[0],
            pending_modals=state.pending_modals[1:],
        )
    return replace(state, modal=None, focus=state.pre_modal_focus)


def navigate_modal(state: UiState, delta: int) -> UiState:
    """Move the option selection, or scroll a resource viewer."""
    if state.modal is None:
        return state
    spec = state.modal.spec
    if spec.kind == ModalKind.RESOURCE_VIEWER:
        rect = modal_rect(spec, ScreenRect(0, 0, *state.screen_size))
        limit = viewer_max_offset(spec, rect.width - 4, rect.height - 2)
        offset = max(0, min(spec.scroll_offset + delta, limit))
        new_spec = replace(spec, scroll_offset=offset)
    elif spec.options:
        new_spec = replace(spec, selected_index=(spec.selected_index + delta) % len(spec.options))
    else:
        return state
    return replace(state, modal=replace(state.modal, spec=new_spec))


def selected_choice(spec: ModalSpec) -> str:
    if spec.options and 0 <= spec.selected_index < len(spec.options):
        return spec.options[spec.selected_index]
    return DISMISSED


def report(modal: ActiveModal, choice: str) -> Optional[Command]:
    """
    Deliver a modal result to whoever asked for it.

    A response future is resolved in place; an orchestration modal without a
    future yields a ModalResponse command; local modals report nothing.
    """
    if modal.response is not None:
        if not modal.response.done():
            modal.response.set_result(choice)
        return None
    if modal.spec.local:
        return None
    return ModalResponse(modal.spec.modal_id, choice)


def resolve_modal(state: UiState, confirmed: bool) -> Tuple[UiState, str, Optional[Command]]:
    """
    Close the active modal with the selected option (confirmed) or DISMISSED.

    Returns:
        Tuple of (new state, choice, command to post or None)
    """
    if state.modal is None:
        return state, DISMISSED, None
    modal = state.modal
    choice = selected_choice(modal.spec) if confirmed else DISMISSED
    command = report(modal, choice)
    logger.debug("Modal %s closed with %r", modal.spec.modal_id or modal.spec.kind.value, choice)
    return close_modal(state), choice, command


def modal_rect(spec: ModalSpec, viewport: ScreenRect) -> ScreenRect:
    width, height = modal_size(spec)
    return centered_rect(viewport, width, height, margin=MODAL_MARGIN)


def render_modal(buffer: CellBuffer, modal: ActiveModal, viewport: ScreenRect) -> ScreenRect:
    """Dim everything already painted, then draw the modal on top."""
    buffer.apply_style_rect(viewport, BACKDROP_STYLE)
    rect = modal_rect(modal.spec, viewport)
    if rect.width < 4 or rect.height < 3:
        return rect
    content = render_modal_content(modal.spec, rect.width - 4, rect.height - 2)
    box = draw_box(modal.spec.title, content, rect.width, rect.height)
    buffer.fill_rect(rect)
    paint_lines(buffer, rect, box)
    return rect
