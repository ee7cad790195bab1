"""
Autonomous plan/build loop.

Planning runs once: clear a stale completion marker, re-read the loop state,
stream the plan prompt to the agent and advance the workflow to Building.
Building then repeats one unit of agent work per iteration until the
completion marker appears, the run is cancelled or the iteration limit is
reached, in that order of priority.
"""

import logging
import re
import threading
from contextlib import closing
from datetime import datetime, timezone
from enum import Enum
from typing import AbstractSet, Callable, Dict, List, Optional, Set, Tuple

from ..bus.channel import OrderedChannel
from ..bus.events import (
    ActivityDetailAppended,
    ActivityEntryAdded,
    ContextUpdated,
    Event,
    IterationChanged,
    PhaseChanged,
    SpinnerChanged,
    TokenUsageChanged,
)
from ..config import HarnessConfig
from ..errors import AgentSessionError, ChannelClosedError, PersistenceError
from ..services.agent.session import AgentSession
from ..services.state.loop_store import DONE_MARKER, JOBS_PATH, PLAN_PATH, Job, JobStatus, LoopStateStore
from ..ui.state import (
    ActivityEntry,
    ContextPanelData,
    EntryKind,
    JobListSection,
    ResourceItem,
    Severity,
    SubtaskItem,
    TaskSection,
    TaskState,
)
from .failure_handler import FailureAction, FailureClassification, FailureHandler
from .outcome import ExitOutcome
from .pause import PauseController
from .state_machine import TOTAL_STEPS, TransitionResult, WorkflowEngine, WorkflowStep, WorkflowTrigger
from .verification import VerificationGate, VerificationResult

logger = logging.getLogger(__name__)

# Rough context window used for the header's usage gauge.
DEFAULT_CONTEXT_WINDOW = 200_000
CHARS_PER_TOKEN = 4

# Fired opportunistically, in order, to carry the workflow into Building.
PLANNING_TRIGGERS = (
    WorkflowTrigger.SPEC_APPROVED,
    WorkflowTrigger.DEPENDENCIES_DETERMINED,
    WorkflowTrigger.COMPONENTS_IDENTIFIED,
    WorkflowTrigger.ASSESS,
    WorkflowTrigger.COMPONENT_SELECTED,
    WorkflowTrigger.TASKS_BROKEN_DOWN,
)

# Tool-call lines in the agent's stream: "$ pytest -q", "✓ Edit src/app.py".
COMMAND_LINE = re.compile(r"^\s*\$\s+\S")
FILE_EDIT_LINE = re.compile(r"^\s*(?:[✓✔●]\s*)?(?:Edit|Edited|Create|Created|Write|Wrote|Update|Updated)\s+(?:file\s+)?\S*[/.]\S*")
CHECKLIST_LINE = re.compile(r"^\s*[-*]\s+\[(?P<mark>[ xX])\]\s+(?P<text>.+)$")

PLAN_TASK_ID = "plan"
BUILD_TASK_ID = "build"

_TASK_STATES = {
    JobStatus.PENDING: TaskState.PENDING,
    JobStatus.IN_PROGRESS: TaskState.IN_PROGRESS,
    JobStatus.DONE: TaskState.COMPLETE,
}


class EscalationDecision(Enum):
    RETRY = "Retry"
    SKIP = "Skip"
    ABORT = "Abort"


Escalate = Callable[[FailureClassification], EscalationDecision]


def abort_on_escalation(classification: FailureClassification) -> EscalationDecision:
    """Escalation policy for unattended runs: stop and ask for a human."""
    return EscalationDecision.ABORT


def current_job(jobs: List[Job]) -> Optional[Job]:
    """The job being worked on: the first in progress, else the first pending."""
    for status in (JobStatus.IN_PROGRESS, JobStatus.PENDING):
        for job in jobs:
            if job.status == status:
                return job
    return None


def classify_output(line: str) -> Optional[EntryKind]:
    """Activity kind for an agent output line that reports a tool call, else None."""
    if COMMAND_LINE.match(line):
        return EntryKind.COMMAND
    if FILE_EDIT_LINE.match(line):
        return EntryKind.FILE_EDIT
    return None


def plan_subtasks(plan: str, job: Job) -> Tuple[SubtaskItem, ...]:
    """
    Checklist items of the plan section that names the job.

    A section starts at a markdown heading mentioning the job id or its
    requirement code and ends at the next heading. The first open item is
    the one in progress.
    """
    needles = [needle for needle in (job.id, job.requirement_code) if needle]
    items: List[SubtaskItem] = []
    in_section = False
    for line in plan.splitlines():
        if line.lstrip().startswith("#"):
            if items:
                break
            in_section = any(needle in line for needle in needles)
            continue
        if not in_section:
            continue
        match = CHECKLIST_LINE.match(line)
        if match is None:
            continue
        done = match.group("mark").lower() == "x"
        items.append(SubtaskItem(match.group("text").strip(), TaskState.COMPLETE if done else TaskState.PENDING))

    for index, item in enumerate(items):
        if item.state == TaskState.PENDING:
            items[index] = SubtaskItem(item.name, TaskState.IN_PROGRESS)
            break
    return tuple(items)


def build_context(
    jobs: List[Job],
    resources: List[ResourceItem],
    failed: AbstractSet[str] = frozenset(),
    plan: str = "",
) -> ContextPanelData:
    """
    Context panel data for the current job list.

    Args:
        jobs: Jobs in priority order
        resources: Documents for the numbered viewer
        failed: Ids of jobs whose last verification failed
        plan: Implementation plan text, source of the current job's subtasks
    """
    done = sum(1 for job in jobs if job.is_done)

    def state_of(job: Job) -> TaskState:
        if job.id in failed and not job.is_done:
            return TaskState.FAILED
        return _TASK_STATES[job.status]

    job_list = None
    if jobs:
        job_list = JobListSection(
            title="Jobs",
            completed=done,
            total=len(jobs),
            items=tuple(SubtaskItem(job.description or job.id, state_of(job)) for job in jobs),
        )
    task = None
    active = current_job(jobs)
    if active is not None:
        task = TaskSection(
            name=active.description or active.id,
            requirement_code=active.requirement_code,
            progress_percent=done * 100 // len(jobs),
            note=active.partial_implementation or "",
            subtasks=plan_subtasks(plan, active) if plan else (),
        )
    return ContextPanelData(current_task=task, jobs=job_list, resources=tuple(resources))


class LoopController:
    """
    Drives the workflow through planning and the autonomous build loop.

    Runs on the orchestrator thread. All progress is reported as events; the
    only blocking calls are agent streams, verification commands, file I/O and
    pause waits.
    """

    def __init__(
        self,
        config: HarnessConfig,
        engine: WorkflowEngine,
        store: LoopStateStore,
        session: AgentSession,
        events: OrderedChannel,
        cancellation: threading.Event,
        failures: Optional[FailureHandler] = None,
        gate: Optional[VerificationGate] = None,
        pause: Optional[PauseController] = None,
        escalate: Escalate = abort_on_escalation,
        instructions: Optional[Callable[[], List[str]]] = None,
        on_poll: Optional[Callable[[], None]] = None,
    ):
        self.config = config
        self.engine = engine
        self.store = store
        self.session = session
        self.events = events
        self.cancellation = cancellation
        self.failures = failures or FailureHandler(config.failure_threshold)
        self.gate = gate
        self.pause = pause or PauseController()
        self.escalate = escalate
        self._instructions = instructions
        self._on_poll = on_poll

        self.iterations = 0
        self.used_tokens = 0
        self.request_count = 0
        self.message = ""
        self._failed_verification: Set[str] = set()

        engine.add_listener(self._on_transition)

    def _post(self, event: Event) -> None:
        try:
            self.events.post(event)
        except ChannelClosedError:
            logger.debug("Event channel closed; dropped %s", type(event).__name__)

    def _entry(self, summary: str, severity: Severity = Severity.INFO, details=(), kind: EntryKind = EntryKind.ACTION, current: bool = False) -> None:
        self._post(
            ActivityEntryAdded(
                ActivityEntry(summary, tuple(details), severity=severity, kind=kind, is_current_action=current)
            )
        )

    def _poll(self) -> None:
        if self._on_poll is not None:
            self._on_poll()

    def announce_step(self) -> None:
        step = self.engine.current_step
        self._post(PhaseChanged(step.phase.value, step.number, TOTAL_STEPS, step.value))

    def _on_transition(self, result: TransitionResult) -> None:
        self.announce_step()
        if result.phase_changed:
            self._entry(f"Entered {result.current.phase.value} phase", kind=EntryKind.PHASE_TRANSITION)

    def _advance_to_building(self) -> None:
        for trigger in PLANNING_TRIGGERS:
            if self.engine.can_fire(trigger):
                self.engine.fire(trigger)

    def _resources(self) -> List[ResourceItem]:
        resources = []
        plan = self.store.load_plan()
        if plan:
            resources.append(ResourceItem(PLAN_PATH.name, plan))
        if self.store.jobs_path.exists():
            resources.append(ResourceItem(JOBS_PATH.name, self.store.jobs_path.read_text(encoding="utf-8")))
        for relative in (self.config.plan_prompt_path, self.config.build_prompt_path):
            path = self.config.resolve(relative)
            if path.exists():
                resources.append(ResourceItem(path.name, path.read_text(encoding="utf-8")))
        return resources

    def publish_context(self, jobs: Optional[List[Job]] = None) -> None:
        if jobs is None:
            jobs = self.store.load_jobs()
        try:
            resources = self._resources()
        except (OSError, PersistenceError) as e:
            logger.warning("Cannot read resources: %s", e)
            resources = []
        plan = next((resource.content for resource in resources if resource.label == PLAN_PATH.name), "")
        self._post(ContextUpdated(build_context(jobs, resources, self._failed_verification, plan)))

    def _stream(self, prompt: str) -> None:
        """Send one prompt and relay every output line; the stream is always closed."""
        self._post(SpinnerChanged("Agent working"))
        self.request_count += 1
        characters = len(prompt)
        try:
            with closing(self.session.send(prompt)) as stream:
                for line in stream:
                    characters += len(line)
                    kind = classify_output(line)
                    if kind is not None:
                        self._entry(line.strip(), kind=kind)
                    elif self.config.stream_output:
                        self._post(ActivityDetailAppended((line,)))
        finally:
            self.used_tokens += characters // CHARS_PER_TOKEN
            self._post(TokenUsageChanged(self.used_tokens, DEFAULT_CONTEXT_WINDOW, self.request_count))
            self._post(SpinnerChanged(None))

    def _handle_failure(self, classification: FailureClassification) -> Optional[ExitOutcome]:
        """
        Act on a classified failure.

        Returns:
            An outcome if the run must stop, otherwise None
        """
        if classification.action == FailureAction.SELF_CORRECT:
            self._entry(classification.message, Severity.WARNING)
            return None
        if classification.action == FailureAction.BLOCK:
            self._entry(classification.message, Severity.ERROR)
            self.message = classification.message
            return ExitOutcome.FAILURE

        self._entry(classification.message, Severity.ERROR)
        decision = self.escalate(classification)
        task_id = classification.task_id or BUILD_TASK_ID
        logger.info("Escalation for %s resolved as %s", task_id, decision.value)

        if decision == EscalationDecision.ABORT:
            self.message = classification.message
            return ExitOutcome.INTERVENTION_REQUIRED
        self.failures.record_success(task_id)
        if decision == EscalationDecision.SKIP:
            self._skip_job(task_id, classification.message)
        self._entry(f"{decision.value}: {task_id}", Severity.INFO)
        return None

    def _skip_job(self, job_id: str, reason: str) -> None:
        jobs = self.store.load_jobs()
        if not jobs:
            return
        last_priority = max(job.priority for job in jobs)
        updated = []
        for job in jobs:
            if job.id.casefold() == job_id.casefold() and not job.is_done:
                job = job.model_copy(
                    update={
                        "status": JobStatus.PENDING,
                        "priority": last_priority + 1,
                        "partial_implementation": f"Skipped by user: {reason}",
                    }
                )
            updated.append(job)
        self.store.save_jobs(updated)
        self.publish_context(updated)

    def _persist_partial_progress(self) -> None:
        jobs = self.store.load_jobs()
        active = current_job(jobs)
        if active is None:
            return
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        note = f"Interrupted after iteration {self.iterations} at {stamp}"
        if active.partial_implementation:
            note = f"{active.partial_implementation}\n{note}"
        updated = [
            job.model_copy(update={"partial_implementation": note}) if job.id == active.id else job
            for job in jobs
        ]
        self.store.save_jobs(updated)

    def _cancelled(self) -> ExitOutcome:
        try:
            self._persist_partial_progress()
        except PersistenceError as e:
            logger.error("Could not record partial progress: %s", e)
        self.message = f"Cancelled after {self.iterations} iteration(s)"
        self._entry(self.message, Severity.WARNING)
        return ExitOutcome.CANCELLED

    def run_plan_phase(self) -> Optional[ExitOutcome]:
        """Run planning once. Returns an outcome only if the run must stop."""
        self.store.remove_marker()
        self.store.load_plan()
        self.store.load_jobs()
        prompt = self.store.load_prompt(self.config.plan_prompt_path)

        while True:
            if self.cancellation.is_set():
                return self._cancelled()
            self._entry("Planning", kind=EntryKind.AGENT_OUTPUT, current=True)
            try:
                self._stream(prompt)
                break
            except AgentSessionError as e:
                outcome = self._handle_failure(self.failures.record_failure(PLAN_TASK_ID, str(e)))
                if outcome is not None:
                    return outcome

        self.failures.record_success(PLAN_TASK_ID)
        jobs = self.store.load_jobs()
        self._entry(f"Plan ready: {len(jobs)} job(s)", Severity.SUCCESS)
        self.publish_context(jobs)
        self._advance_to_building()
        return None

    def run_conversation(self, text: str) -> None:
        """Send a free-form message to the agent while the specification is drafted."""
        self._entry("Drafting specification", kind=EntryKind.AGENT_OUTPUT, current=True)
        self._stream(text)

    def _build_prompt(self, base: str) -> str:
        queued = self._instructions() if self._instructions is not None else []
        if not queued:
            return base
        extra = "\n".join(f"- {text}" for text in queued)
        return f"{base}\n\n## Additional instructions from the user\n{extra}\n"

    def _report_tests(self, results: Dict[str, VerificationResult]) -> None:
        if self.gate is None or not self.gate.test_command or not results:
            return
        passed = next(iter(results.values())).tests_pass
        command = " ".join(self.gate.test_command)
        if passed:
            self._entry(f"Tests passed: {command}", Severity.SUCCESS, kind=EntryKind.TEST_RESULT)
        else:
            self._entry(f"Tests failed: {command}", Severity.ERROR, kind=EntryKind.TEST_RESULT)

    def _verify(self, jobs: List[Job], done_before: Set[str]) -> List[FailureClassification]:
        """Gate newly completed jobs; failing ones revert to in-progress."""
        newly_done = [job for job in jobs if job.is_done and job.id not in done_before]
        if not newly_done or self.gate is None or not self.config.verify_after_iteration:
            return []

        self._post(SpinnerChanged("Verifying"))
        results = self.gate.verify_jobs(newly_done)
        self._post(SpinnerChanged(None))
        self._report_tests(results)
        classifications = []
        for index, job in enumerate(jobs):
            result = results.get(job.id)
            if result is None:
                continue
            if result.complete:
                self.failures.record_success(job.id)
                self._failed_verification.discard(job.id)
                self._entry(f"Verified {job.id}", Severity.SUCCESS, result.notes, kind=EntryKind.VERIFICATION)
                continue
            jobs[index] = job.model_copy(
                update={
                    "status": JobStatus.IN_PROGRESS,
                    "partial_implementation": "\n".join(result.issues),
                }
            )
            self._failed_verification.add(job.id)
            self._entry(f"Verification failed for {job.id}", Severity.WARNING, result.issues, kind=EntryKind.VERIFICATION)
            classifications.append(self.failures.record_failure(job.id, "; ".join(result.issues)))
        return classifications

    def run_iteration(self, build_prompt: str) -> Optional[ExitOutcome]:
        """One unit of agent work plus verification and write-back."""
        self.iterations += 1
        self._post(IterationChanged(self.iterations, self.config.max_iterations))

        jobs = self.store.load_jobs()
        done_before = {job.id for job in jobs if job.is_done}
        active = current_job(jobs)
        task_id = active.id if active is not None else BUILD_TASK_ID
        label = (active.description or active.id) if active is not None else "build"
        self._entry(f"Iteration {self.iterations}: {label}", kind=EntryKind.AGENT_OUTPUT, current=True)

        try:
            self._stream(self._build_prompt(build_prompt))
        except AgentSessionError as e:
            return self._handle_failure(self.failures.record_failure(task_id, str(e)))

        jobs = self.store.load_jobs()
        classifications = self._verify(jobs, done_before)
        # The agent owns the jobs file; only verification reverts are written back.
        if classifications:
            self.store.save_jobs(jobs)
        self.publish_context(jobs)
        self.engine.fire(WorkflowTrigger.TASK_ITERATION_COMPLETE)

        for classification in classifications:
            outcome = self._handle_failure(classification)
            if outcome is not None:
                return outcome
        return None

    def run_build_phase(self) -> ExitOutcome:
        build_prompt = self.store.load_prompt(self.config.build_prompt_path)
        limit = self.config.max_iterations

        while True:
            self._poll()
            if self.store.marker_exists():
                if self.engine.can_fire(WorkflowTrigger.COMPONENT_COMPLETE):
                    self.engine.fire(WorkflowTrigger.COMPONENT_COMPLETE)
                self.message = f"Loop complete after {self.iterations} iteration(s)"
                self._entry(self.message, Severity.SUCCESS)
                return ExitOutcome.SUCCESS
            if self.cancellation.is_set():
                return self._cancelled()
            if limit is not None and self.iterations >= limit:
                self.message = f"Reached the iteration limit ({limit}) before {DONE_MARKER} appeared"
                self._entry(self.message, Severity.WARNING)
                return ExitOutcome.INTERVENTION_REQUIRED
            if self.pause.is_paused:
                self._entry("Paused", Severity.INFO)
                if not self.pause.wait_if_paused(self.cancellation, on_poll=self._poll):
                    continue
                self._entry("Resumed", Severity.INFO)

            outcome = self.run_iteration(build_prompt)
            if outcome is not None:
                return outcome
            self.cancellation.wait(self.config.iteration_delay)

    def run(self, skip_plan: bool = False) -> ExitOutcome:
        """
        Run planning (unless skipped) and then the build loop.

        Returns:
            How the run ended; self.message carries a human-readable reason
        """
        self.announce_step()
        if self.engine.current_step == WorkflowStep.DRAFT_SPECIFICATION and not self.engine.specification_approved:
            self.message = "The specification must be approved before planning"
            return ExitOutcome.INTERVENTION_REQUIRED

        try:
            if skip_plan:
                self.publish_context()
                self._advance_to_building()
            else:
                outcome = self.run_plan_phase()
                if outcome is not None:
                    return outcome
            return self.run_build_phase()
        except PersistenceError as e:
            classification = self.failures.record_critical(str(e))
            self._handle_failure(classification)
            return ExitOutcome.FAILURE
