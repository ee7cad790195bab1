"""
Orchestrator: the worker-thread side of a run.

It owns the workflow engine and the loop controller, consumes Commands from
the renderer at safe points and reports everything back as Events. The last
event it posts is always RunFinished.
"""

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import List, Optional

from ..bus import MessageBus
from ..bus.commands import Cancel, Command, ModalResponse, SlashCommand, SubmitPrompt, TogglePause
from ..bus.events import ActivityEntryAdded, ModalRequested, RunFinished
from ..config import HarnessConfig
from ..errors import AgentSessionError, ChannelClosedError, OverseerError
from ..services.agent.session import AgentSession
from ..services.state.loop_store import LoopStateStore
from ..ui.state import ActivityEntry, EntryKind, ModalKind, ModalSpec, Severity
from .failure_handler import FailureClassification, FailureHandler
from .loop_controller import EscalationDecision, LoopController, abort_on_escalation
from .outcome import ExitOutcome
from .pause import PauseController
from .state_machine import WorkflowEngine, WorkflowPhase
from .verification import VerificationGate

logger = logging.getLogger(__name__)

COMMAND_POLL_INTERVAL = 0.1

RESUME = "Resume"
START_NEW = "Start New"
VIEW_DETAILS = "View Details"


class Orchestrator:
    """
    Runs one harness session on the calling (worker) thread.

    attended=True waits for the user to approve the specification and asks
    through modals when a task keeps failing. attended=False treats starting
    the run as approval and stops with INTERVENTION_REQUIRED on escalation.
    """

    def __init__(
        self,
        config: HarnessConfig,
        bus: MessageBus,
        cancellation: threading.Event,
        session: AgentSession,
        store: Optional[LoopStateStore] = None,
        engine: Optional[WorkflowEngine] = None,
        gate: Optional[VerificationGate] = None,
        attended: bool = True,
    ):
        self.config = config
        self.bus = bus
        self.cancellation = cancellation
        self.session = session
        self.attended = attended
        self.store = store or LoopStateStore(config.working_directory)
        self.engine = engine or WorkflowEngine()
        self.pause = PauseController()
        self.failures = FailureHandler(config.failure_threshold)
        self._queued: List[str] = []
        self._responses: dict = {}
        self._start: Optional[SlashCommand] = None
        self._modal_count = 0

        self.loop = LoopController(
            config,
            self.engine,
            self.store,
            session,
            bus.events,
            cancellation,
            failures=self.failures,
            gate=gate or VerificationGate(config.working_directory, config.test_command, config.build_command),
            pause=self.pause,
            escalate=self.ask_escalation if attended else abort_on_escalation,
            instructions=self.take_instructions,
            on_poll=self.drain_commands,
        )

    def _post(self, event) -> None:
        try:
            self.bus.events.post(event)
        except ChannelClosedError:
            logger.debug("Event channel closed; dropped %s", type(event).__name__)

    def _entry(self, summary: str, severity: Severity = Severity.INFO, details=(), kind: EntryKind = EntryKind.ACTION) -> None:
        self._post(ActivityEntryAdded(ActivityEntry(summary, tuple(details), severity=severity, kind=kind)))

    def take_instructions(self) -> List[str]:
        queued, self._queued = self._queued, []
        return queued

    def drain_commands(self) -> None:
        """Apply every pending command. Called only at safe points."""
        for command in self.bus.commands.drain():
            self.handle_command(command)

    def handle_command(self, command: Command) -> None:
        if isinstance(command, Cancel):
            logger.info("Cancellation requested")
            self.cancellation.set()
        elif isinstance(command, TogglePause):
            paused = self.pause.toggle()
            logger.info("Loop %s", "paused" if paused else "resumed")
        elif isinstance(command, ModalResponse):
            self._responses[command.modal_id] = command.choice
        elif isinstance(command, SubmitPrompt):
            self._on_prompt(command.text)
        elif isinstance(command, SlashCommand):
            self._on_slash(command)

    def _on_prompt(self, text: str) -> None:
        if self.engine.current_phase == WorkflowPhase.GATHERING and self._start is None:
            self._entry(f"You: {text}", kind=EntryKind.ACTION)
            self._converse(text)
            return
        self._queued.append(text)
        self._entry("Instruction queued for the next iteration", details=(text,))

    def _converse(self, text: str) -> None:
        try:
            self.loop.run_conversation(text)
        except AgentSessionError as e:
            self._entry(f"Agent error: {e}", Severity.ERROR)

    def _on_slash(self, command: SlashCommand) -> None:
        name = command.name
        if name in ("approve", "plan", "build"):
            if self._start is not None or self.engine.current_phase != WorkflowPhase.GATHERING:
                self._entry("The loop is already running")
                return
            self.engine.approve_specification()
            self._start = command
        elif name == "status":
            self._entry(self.status_line(), details=self.status_details())
        else:
            self._entry(f"Unknown command /{name}", Severity.WARNING)

    def status_line(self) -> str:
        step = self.engine.current_step
        return f"{step.phase.value}: step {step.number} ({step.value}), iteration {self.loop.iterations}"

    def status_details(self) -> tuple:
        jobs = self.store.load_jobs()
        done = sum(1 for job in jobs if job.is_done)
        details = [f"Jobs: {done}/{len(jobs)} done"]
        if self.pause.is_paused:
            details.append("Paused")
        return tuple(details)

    def request_modal(self, spec: ModalSpec) -> str:
        """
        Show a modal and block until it is answered or the run is cancelled.

        Returns:
            The chosen option, or "" if dismissed or cancelled
        """
        response: Future = Future()
        self._post(ModalRequested(spec, response))
        while True:
            try:
                return response.result(timeout=COMMAND_POLL_INTERVAL)
            except FutureTimeoutError:
                self.drain_commands()
                if spec.modal_id in self._responses:
                    return self._responses.pop(spec.modal_id)
                if self.cancellation.is_set():
                    return ""

    def _modal_id(self, prefix: str) -> str:
        self._modal_count += 1
        return f"{prefix}-{self._modal_count}"

    def ask_escalation(self, classification: FailureClassification) -> EscalationDecision:
        spec = ModalSpec(
            kind=ModalKind.ESCALATION,
            title="Repeated failure",
            modal_id=self._modal_id("escalation"),
            message=classification.message,
            options=tuple(decision.value for decision in EscalationDecision),
            lines=(
                "Retry: reset the failure count and try again",
                "Skip: move the job to the back of the queue",
                "Abort: stop the loop for manual intervention",
            ),
        )
        choice = self.request_modal(spec)
        if self.cancellation.is_set():
            # The loop sees the cancellation at its next boundary.
            return EscalationDecision.RETRY
        for decision in EscalationDecision:
            if decision.value == choice:
                return decision
        return EscalationDecision.ABORT

    def _offer_resume(self) -> Optional[SlashCommand]:
        jobs = self.store.load_jobs()
        if not jobs:
            return None
        done = sum(1 for job in jobs if job.is_done)
        while True:
            spec = ModalSpec(
                kind=ModalKind.SESSION_RESUME,
                title="Resume session",
                modal_id=self._modal_id("resume"),
                message=f"Found {len(jobs)} job(s) from a previous run, {done} done.",
                options=(RESUME, START_NEW, VIEW_DETAILS),
                lines=tuple(f"[{job.status.value}] {job.description or job.id}" for job in jobs[:8]),
            )
            choice = self.request_modal(spec)
            if choice == VIEW_DETAILS:
                content = self.store.jobs_path.read_text(encoding="utf-8")
                viewer = ModalSpec(
                    kind=ModalKind.RESOURCE_VIEWER,
                    title=self.store.jobs_path.name,
                    lines=tuple(content.splitlines()),
                    local=True,
                )
                self._post(ModalRequested(viewer))
                continue
            if choice == RESUME:
                self.engine.approve_specification()
                return SlashCommand("build")
            return None

    def _wait_for_start(self) -> Optional[SlashCommand]:
        self._entry(
            "Describe what to build, then type /approve to start planning",
            kind=EntryKind.PHASE_TRANSITION,
        )
        while self._start is None:
            if self.cancellation.is_set():
                return None
            self.bus.commands.wait(COMMAND_POLL_INTERVAL)
            self.drain_commands()
        return self._start

    def _run(self) -> ExitOutcome:
        self.loop.announce_step()
        self.loop.publish_context()

        if not self.attended:
            self.engine.approve_specification()
            return self.loop.run()

        start = self._offer_resume()
        if start is None and not self.cancellation.is_set():
            start = self._wait_for_start()
        if start is None:
            self.loop.message = "Cancelled before the loop started"
            return ExitOutcome.CANCELLED
        return self.loop.run(skip_plan=start.name == "build" and self.store.has_jobs())

    def run(self) -> ExitOutcome:
        """Thread body. Always posts RunFinished before returning."""
        try:
            outcome = self._run()
            message = self.loop.message
        except OverseerError as e:
            logger.error("Run failed: %s", e)
            outcome, message = ExitOutcome.FAILURE, str(e)
        except Exception as e:
            logger.exception("Unexpected orchestrator error")
            outcome, message = ExitOutcome.FAILURE, f"Unexpected error: {e}"
        logger.info("Run finished: %s", outcome.name)
        self._post(RunFinished(outcome, message))
        return outcome
