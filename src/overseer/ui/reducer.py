"""
Pure state transitions for the render loop.

apply_event folds one bus Event into the snapshot; apply_action folds one
routed key press and returns any Commands to post. Both return a new UiState
and never mutate their input.
"""

from dataclasses import replace
from typing import List, Tuple

from ..bus.commands import Cancel, Command, SubmitPrompt, TogglePause
from ..bus.events import (
    ActivityDetailAppended,
    ActivityEntryAdded,
    ContextUpdated,
    Event,
    IterationChanged,
    ModalRequested,
    PhaseChanged,
    RunFinished,
    SpinnerChanged,
    TokenUsageChanged,
)
from ..workflow.outcome import ExitOutcome
from .core.terminal import KeyEvent
from .input_router import KeyAction, cycle_focus, hints
from .modal_manager import navigate_modal, open_modal, resolve_modal
from .slash_commands import help_lines, is_known, is_local, parse_slash
from .state import (
    ActiveModal,
    ActivityEntry,
    ActivityPanelData,
    EntryKind,
    FocusTarget,
    ModalKind,
    ModalSpec,
    ResourceItem,
    Severity,
    UiState,
)

RUN_FINISHED_MODAL_ID = "run-finished"
QUIT_MODAL_ID = "quit"
RESOURCES_MODAL_ID = "resources"
QUIT_OPTIONS = ("Quit", "Stay")

# Frames per spinner glyph at the default frame rate.
SPINNER_DIVISOR = 3


def add_entry(activity: ActivityPanelData, entry: ActivityEntry) -> ActivityPanelData:
    """Append an entry; a new current action demotes the previous one."""
    entries = activity.entries
    if entry.is_current_action:
        entries = tuple(
            replace(existing, is_current_action=False) if existing.is_current_action else existing
            for existing in entries
        )
    return replace(activity, entries=entries + (entry,))


def append_details(activity: ActivityPanelData, lines: Tuple[str, ...]) -> ActivityPanelData:
    entries = list(activity.entries)
    target = next(
        (index for index in range(len(entries) - 1, -1, -1) if entries[index].is_current_action),
        len(entries) - 1,
    )
    if target < 0:
        entries.append(ActivityEntry("Agent output", lines, is_current_action=True, kind=EntryKind.AGENT_OUTPUT))
    else:
        entry = entries[target]
        entries[target] = replace(entry, details=entry.details + lines)
    return replace(activity, entries=tuple(entries))


def help_modal() -> ActiveModal:
    return ActiveModal(
        ModalSpec(kind=ModalKind.HELP, title="Help", lines=help_lines(), local=True)
    )


def quit_modal() -> ActiveModal:
    return ActiveModal(
        ModalSpec(
            kind=ModalKind.CONFIRMATION,
            title="Quit",
            modal_id=QUIT_MODAL_ID,
            message="Cancel the run and exit overseer?",
            options=QUIT_OPTIONS,
            local=True,
        )
    )


def resource_picker(resources: Tuple[ResourceItem, ...]) -> ActiveModal:
    return ActiveModal(
        ModalSpec(
            kind=ModalKind.SELECTION,
            title="Resources",
            modal_id=RESOURCES_MODAL_ID,
            message="Choose a resource to open",
            options=tuple(resource.label for resource in resources),
            local=True,
        )
    )


def resource_viewer(resource: ResourceItem) -> ActiveModal:
    return ActiveModal(
        ModalSpec(
            kind=ModalKind.RESOURCE_VIEWER,
            title=resource.label,
            lines=tuple(resource.content.splitlines()),
            local=True,
        )
    )


def apply_event(state: UiState, event: Event) -> UiState:
    if isinstance(event, ActivityEntryAdded):
        return replace(state, activity=add_entry(state.activity, event.entry))
    if isinstance(event, ActivityDetailAppended):
        return replace(state, activity=append_details(state.activity, event.lines))
    if isinstance(event, PhaseChanged):
        top = replace(
            state.top,
            phase_name=event.phase,
            current_step=event.step,
            total_steps=event.total,
            step_label=event.step_label,
        )
        return replace(state, top=top)
    if isinstance(event, ContextUpdated):
        return replace(state, context=event.context)
    if isinstance(event, TokenUsageChanged):
        top = replace(
            state.top,
            context_used_tokens=event.used_tokens,
            context_max_tokens=event.max_tokens,
            request_count=event.request_count,
        )
        return replace(state, top=top)
    if isinstance(event, ModalRequested):
        return open_modal(state, ActiveModal(event.modal, event.response))
    if isinstance(event, IterationChanged):
        top = replace(state.top, iteration=event.iteration, max_iterations=event.max_iterations)
        return replace(state, top=top)
    if isinstance(event, SpinnerChanged):
        return replace(state, prompt=replace(state.prompt, spinner=event.message))
    if isinstance(event, RunFinished):
        return _finish(state, event)
    return state


def _finish(state: UiState, event: RunFinished) -> UiState:
    state = replace(
        state,
        outcome_message=event.message or event.outcome.description,
        prompt=replace(state.prompt, spinner=None),
    )
    if event.outcome in (ExitOutcome.SUCCESS, ExitOutcome.CANCELLED):
        return replace(state, should_exit=True)
    spec = ModalSpec(
        kind=ModalKind.ERROR,
        title=event.outcome.description,
        modal_id=RUN_FINISHED_MODAL_ID,
        message=event.message or event.outcome.description,
        options=("Exit",),
        local=True,
    )
    return open_modal(state, ActiveModal(spec))


def _edit_prompt(state: UiState, text: str, cursor: int) -> UiState:
    return replace(state, prompt=replace(state.prompt, text=text, cursor=cursor))


def _submit(state: UiState) -> Tuple[UiState, List[Command]]:
    text = state.prompt.text
    if not text.strip():
        return state, []
    state = _edit_prompt(state, "", 0)

    command = parse_slash(text)
    if command is None:
        return state, [SubmitPrompt(text.strip())]
    if not is_known(command):
        warning = ActivityEntry(f"Unknown command /{command.name}", ("Type /help for the command list",), severity=Severity.WARNING)
        return replace(state, activity=add_entry(state.activity, warning)), []
    if not is_local(command):
        return state, [command]
    if command.name == "help":
        return open_modal(state, help_modal()), []
    if command.name == "quit":
        return open_modal(state, quit_modal()), []
    if command.name == "resources":
        if not state.context.resources:
            notice = ActivityEntry("No resources to show", severity=Severity.WARNING)
            return replace(state, activity=add_entry(state.activity, notice)), []
        return open_modal(state, resource_picker(state.context.resources)), []
    if command.name in ("pause", "resume"):
        paused = command.name == "pause"
        if paused == state.prompt.is_paused:
            return state, []
        return replace(state, prompt=replace(state.prompt, is_paused=paused)), [TogglePause()]
    return state, []


def _move_selection(state: UiState, delta: int) -> UiState:
    count = len(state.activity.entries)
    if count == 0:
        return state
    current = state.activity.selected_index
    if current < 0:
        selected = count - 1
    else:
        selected = max(0, min(count - 1, current + delta))
    return replace(state, activity=replace(state.activity, selected_index=selected))


def _toggle_expand(state: UiState) -> UiState:
    entries = state.activity.entries
    if not entries:
        return state
    index = state.activity.selected_index
    if not 0 <= index < len(entries):
        index = len(entries) - 1
    entry = entries[index]
    toggled = entries[:index] + (replace(entry, expanded=not entry.expanded),) + entries[index + 1 :]
    return replace(state, activity=replace(state.activity, entries=toggled, selected_index=index))


def _close_modal(state: UiState, confirmed: bool) -> Tuple[UiState, List[Command]]:
    closing = state.modal
    state, choice, command = resolve_modal(state, confirmed)
    commands = [command] if command is not None else []
    if closing is not None:
        spec = closing.spec
        if spec.modal_id == RUN_FINISHED_MODAL_ID:
            state = replace(state, should_exit=True)
        elif spec.kind == ModalKind.LANDING and choice == "Help":
            state = open_modal(state, help_modal())
        elif spec.modal_id == QUIT_MODAL_ID and choice == QUIT_OPTIONS[0]:
            state = replace(state, prompt=replace(state.prompt, spinner="Cancelling"))
            commands.append(Cancel())
        elif spec.modal_id == RESOURCES_MODAL_ID and choice:
            match = next((r for r in state.context.resources if r.label == choice), None)
            if match is not None:
                state = open_modal(state, resource_viewer(match))
    return state, commands


def apply_action(state: UiState, action: KeyAction, key: KeyEvent) -> Tuple[UiState, List[Command]]:
    """
    Apply a routed key action.

    Returns:
        Tuple of (new state, commands to post on the command bus)
    """
    prompt = state.prompt

    if action == KeyAction.NONE:
        return state, []
    if action == KeyAction.CANCEL:
        return replace(state, prompt=replace(prompt, spinner="Cancelling")), [Cancel()]
    if action == KeyAction.PAUSE:
        return replace(state, prompt=replace(prompt, is_paused=not prompt.is_paused)), [TogglePause()]
    if action == KeyAction.CYCLE_FOCUS:
        return replace(state, focus=cycle_focus(state.focus)), []
    if action == KeyAction.SUBMIT:
        return _submit(state)

    if action in (KeyAction.MODAL_CONFIRM, KeyAction.MODAL_DISMISS):
        return _close_modal(state, confirmed=action == KeyAction.MODAL_CONFIRM)
    if action == KeyAction.MODAL_NEXT:
        return navigate_modal(state, 1), []
    if action == KeyAction.MODAL_PREV:
        return navigate_modal(state, -1), []

    if action.resource_index is not None:
        resources = state.context.resources
        if action.resource_index >= len(resources):
            return state, []
        return open_modal(state, resource_viewer(resources[action.resource_index])), []

    if action in (KeyAction.SELECT_UP, KeyAction.SELECT_DOWN, KeyAction.EXPAND):
        if state.focus != FocusTarget.ACTIVITY:
            return state, []
        if action == KeyAction.EXPAND:
            return _toggle_expand(state), []
        return _move_selection(state, -1 if action == KeyAction.SELECT_UP else 1), []

    # Everything below edits the input buffer.
    if state.focus != FocusTarget.PROMPT or state.modal_active:
        return state, []
    text, cursor = prompt.text, prompt.cursor
    if action == KeyAction.INSERT_CHAR and key.char:
        return _edit_prompt(state, text[:cursor] + key.char + text[cursor:], cursor + len(key.char)), []
    if action == KeyAction.NEWLINE:
        return _edit_prompt(state, text[:cursor] + "\n" + text[cursor:], cursor + 1), []
    if action == KeyAction.BACKSPACE and cursor > 0:
        return _edit_prompt(state, text[: cursor - 1] + text[cursor:], cursor - 1), []
    if action == KeyAction.DELETE and cursor < len(text):
        return _edit_prompt(state, text[:cursor] + text[cursor + 1 :], cursor), []
    if action == KeyAction.CURSOR_LEFT:
        return _edit_prompt(state, text, max(0, cursor - 1)), []
    if action == KeyAction.CURSOR_RIGHT:
        return _edit_prompt(state, text, min(len(text), cursor + 1)), []
    if action == KeyAction.CURSOR_HOME:
        return _edit_prompt(state, text, 0), []
    if action == KeyAction.CURSOR_END:
        return _edit_prompt(state, text, len(text)), []
    return state, []


def advance_frame(state: UiState) -> UiState:
    """Per-frame bookkeeping: frame counter, spinner glyph and hint row."""
    frame = state.frame + 1
    prompt = replace(
        state.prompt,
        spinner_frame=frame // SPINNER_DIVISOR,
        hints=hints(state.focus, state.modal_active),
    )
    return replace(state, frame=frame, prompt=prompt)
