"""
Tests for the pure render components.
"""

from __future__ import annotations

import pytest
from hypothesis import given, strategies as st
from rich.cells import cell_len
from rich.text import Text

from overseer.ui.components import activity, context, modals, prompt, top_panel
from overseer.ui.components.border import draw_box, render_divider
from overseer.ui.components.text import fit, options_row, progress_bar, wrap
from overseer.ui.core.layout import ScreenRect
from overseer.ui.state import (
    ActivityEntry,
    ActivityPanelData,
    ContextPanelData,
    ModalKind,
    ModalSpec,
    PromptData,
    ResourceItem,
    Severity,
    TopPanelData,
)


def _plain(lines) -> str:
    return "\n".join(line.plain for line in lines)


def test_progressive_disclosure() -> None:
    """Verify only the current action, warnings and expanded entries show details."""
    data = ActivityPanelData(
        entries=(
            ActivityEntry("finished step", ("hidden detail", "another")),
            ActivityEntry("flaky test", ("warning detail",), severity=Severity.WARNING),
            ActivityEntry("opened entry", ("toggled detail",), expanded=True),
            ActivityEntry("working", ("live detail",), is_current_action=True),
        )
    )
    text = _plain(activity.render_activity(data, ScreenRect(0, 0, 60, 20)))
    assert "hidden detail" not in text
    assert "finished step (+2)" in text
    assert "warning detail" in text
    assert "toggled detail" in text
    assert "live detail" in text
    assert text.splitlines()[0] == "ACTIVITY (4)"


def test_activity_follows_tail() -> None:
    """Verify the newest entries are visible when the feed overflows."""
    entries = tuple(ActivityEntry(f"entry {index}") for index in range(30))
    lines = activity.render_activity(ActivityPanelData(entries=entries), ScreenRect(0, 0, 40, 6))
    assert len(lines) == 6
    assert lines[-1].plain.endswith("entry 29")


def test_activity_keeps_selection_visible() -> None:
    """Verify a selected entry scrolls into view."""
    entries = tuple(ActivityEntry(f"entry {index}") for index in range(30))
    data = ActivityPanelData(entries=entries, selected_index=2)
    lines = activity.render_activity(data, ScreenRect(0, 0, 40, 6), focused=True)
    assert any(line.plain.endswith("entry 2") for line in lines)


def test_empty_activity_placeholder() -> None:
    """Verify an empty feed renders a placeholder."""
    assert "No activity yet" in _plain(activity.render_activity(ActivityPanelData(), ScreenRect(0, 0, 30, 5)))


def test_context_lists_numbered_resources() -> None:
    """Verify resources are numbered for the 1-9 keys."""
    data = ContextPanelData(resources=(ResourceItem("PLAN.md"), ResourceItem("jobs.json")))
    text = _plain(context.render_context(data, ScreenRect(0, 0, 40, 10)))
    assert "[1] PLAN.md" in text
    assert "[2] jobs.json" in text
    assert "Press 1-9 to view" in text


def test_context_without_plan() -> None:
    """Verify an empty context panel says so."""
    assert "No plan loaded" in _plain(context.render_context(ContextPanelData(), ScreenRect(0, 0, 30, 5)))


@pytest.mark.parametrize(
    "count,expected",
    [(0, "0"), (950, "950"), (12_500, "12.5K"), (1_200_000, "1.2M")],
)
def test_format_tokens(count, expected) -> None:
    """Verify compact token formatting."""
    assert top_panel.format_tokens(count) == expected


def test_top_panel_lines() -> None:
    """Verify the header shows identity, usage and phase progress."""
    data = TopPanelData(
        version="1.2.3",
        model_name="test-model",
        context_used_tokens=50_000,
        context_max_tokens=200_000,
        request_count=4,
        phase_name="Planning",
        current_step=3,
        total_steps=7,
        step_label="Identify Components",
        iteration=2,
        max_iterations=10,
    )
    lines = top_panel.render_top_panel(data, ScreenRect(0, 0, 100, 4))
    assert "v1.2.3" in lines[0].plain and "test-model" in lines[0].plain
    assert "50.0K/200.0K (25%)" in lines[1].plain
    assert "Iteration 2/10" in lines[1].plain
    assert "●●●○○○○" in lines[2].plain
    assert "Step 3/7: Identify Components" in lines[2].plain


def test_visible_input_keeps_cursor_in_view() -> None:
    """Verify the input window scrolls to keep the cursor visible."""
    assert prompt.visible_input("abcdef", 6, 4) == ("def", 3)
    assert prompt.visible_input("ab", 1, 10) == ("ab", 1)
    assert prompt.visible_input("a\nb", 3, 10) == ("a↵b", 3)


def test_prompt_shows_pause_badge_and_hints() -> None:
    """Verify the prompt strip renders the paused state and hint row."""
    data = PromptData(text="hello", cursor=5, is_paused=True, hints=("Enter: Submit", "Tab: Focus"))
    lines = prompt.render_prompt(data, ScreenRect(0, 0, 60, 3))
    assert len(lines) == 3
    assert lines[1].plain.startswith("> hello")
    assert "PAUSED" in lines[1].plain
    assert lines[2].plain == "Enter: Submit │ Tab: Focus"


def test_prompt_cursor_position() -> None:
    """Verify the cursor lands after the typed text on the input row."""
    data = PromptData(text="abc", cursor=2)
    assert prompt.prompt_cursor(data, ScreenRect(5, 20, 40, 3)) == (5 + 2 + 2, 21)


@given(st.integers(1, 140), st.integers(1, 20))
def test_previews_never_exceed_width(width, height) -> None:
    """Verify every panel renders within its rect at any size."""
    for lines in (
        top_panel.preview(width, height),
        activity.preview(width, height),
        context.preview(width, height),
        prompt.preview(width, min(height, 3)),
    ):
        assert len(lines) <= height
        for line in lines:
            assert cell_len(line.plain) <= width


def test_every_modal_kind_has_a_renderer() -> None:
    """Verify the modal dispatch table is exhaustive."""
    assert set(modals.MODAL_RENDERERS) == set(ModalKind)
    for kind in ModalKind:
        assert modals.preview(kind)


@given(st.sampled_from(list(ModalKind)), st.text(max_size=120), st.lists(st.text(max_size=100), max_size=40))
def test_modal_size_is_bounded(kind, message, lines) -> None:
    """Verify modal sizes stay within the width limits."""
    spec = ModalSpec(kind=kind, title="Title", message=message, lines=tuple(lines), options=("Yes", "No"))
    width, height = modals.modal_size(spec)
    assert modals.MIN_MODAL_WIDTH <= width <= modals.MAX_MODAL_WIDTH
    if kind == ModalKind.RESOURCE_VIEWER:
        assert height <= modals.MAX_VIEWER_ROWS + 4


def test_resource_viewer_scrolls() -> None:
    """Verify the viewer shows a window of lines and its position."""
    spec = ModalSpec(kind=ModalKind.RESOURCE_VIEWER, lines=tuple(f"line {n}" for n in range(1, 21)), scroll_offset=5)
    lines = modals.render_resource_viewer(spec, 40, 7)
    assert lines[0].plain == "line 6"
    assert lines[-1].plain.endswith("6-10/20")


def test_options_row_marks_selection() -> None:
    """Verify the selected option is bracketed with arrows."""
    assert options_row(("Retry", "Skip"), 1).plain == "[ Retry ]  [>Skip<]"


def test_draw_box_is_exact_size() -> None:
    """Verify the border frame is exactly the requested size."""
    lines = draw_box("Title", [Text("a very long line that must be clipped")], 20, 5)
    assert len(lines) == 5
    assert all(cell_len(line.plain) == 20 for line in lines)
    assert lines[0].plain.startswith("╭─ Title ")
    assert lines[-1].plain == "╰" + "─" * 18 + "╯"


def test_fit_and_wrap_helpers() -> None:
    """Verify truncation and hard wrapping by cell width."""
    assert fit(Text("abcdef"), 4).plain == "abc…"
    assert fit(Text("abcdef"), 0).plain == ""
    assert wrap("abcdef", 4) == ["abcd", "ef"]
    assert wrap("日本語", 4) == ["日本", "語"]
    assert progress_bar(50, 4).plain == "██░░ 50%"


def test_divider_fills_rect_height() -> None:
    """Verify the divider has one glyph per row."""
    assert len(render_divider(ScreenRect(10, 0, 1, 7))) == 7
