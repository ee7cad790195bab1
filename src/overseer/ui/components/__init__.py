"""
Pure render functions: (data, rect) -> list of rich Text lines.
"""

from .activity import render_activity
from .border import draw_box, render_divider
from .context import render_context
from .modals import MODAL_RENDERERS, modal_size, render_modal_content
from .prompt import prompt_cursor, render_prompt, render_spinner
from .top_panel import format_tokens, render_top_panel

__all__ = [
    "render_activity",
    "render_context",
    "render_divider",
    "render_prompt",
    "render_spinner",
    "render_top_panel",
    "render_modal_content",
    "draw_box",
    "modal_size",
    "prompt_cursor",
    "format_tokens",
    "MODAL_RENDERERS",
]
