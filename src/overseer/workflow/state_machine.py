"""
Seven-step workflow state machine.

DRAFT_SPECIFICATION -> DETERMINE_DEPENDENCIES -> IDENTIFY_COMPONENTS ->
SELECT_NEXT_COMPONENT -> BREAK_INTO_TASKS -> ITERATE_TASKS -> REPEAT, with
REPEAT looping back to SELECT_NEXT_COMPONENT on ASSESS. Leaving requirement
gathering is human-gated by approve_specification().
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class WorkflowPhase(Enum):
    GATHERING = "Requirement Gathering"
    PLANNING = "Planning"
    BUILDING = "Building"


class WorkflowStep(Enum):
    DRAFT_SPECIFICATION = "Draft specification"
    DETERMINE_DEPENDENCIES = "Determine dependencies"
    IDENTIFY_COMPONENTS = "Identify components"
    SELECT_NEXT_COMPONENT = "Select next component"
    BREAK_INTO_TASKS = "Break into tasks"
    ITERATE_TASKS = "Iterate through tasks"
    REPEAT = "Repeat"

    @property
    def number(self) -> int:
        return list(WorkflowStep).index(self) + 1

    @property
    def phase(self) -> WorkflowPhase:
        return STEP_PHASES[self]


class WorkflowTrigger(Enum):
    SPEC_APPROVED = "spec_approved"
    DEPENDENCIES_DETERMINED = "dependencies_determined"
    COMPONENTS_IDENTIFIED = "components_identified"
    COMPONENT_SELECTED = "component_selected"
    MODULE_COMPLETE = "module_complete"
    TASKS_BROKEN_DOWN = "tasks_broken_down"
    TASK_ITERATION_COMPLETE = "task_iteration_complete"
    COMPONENT_COMPLETE = "component_complete"
    ASSESS = "assess"


STEP_PHASES: Dict[WorkflowStep, WorkflowPhase] = {
    WorkflowStep.DRAFT_SPECIFICATION: WorkflowPhase.GATHERING,
    WorkflowStep.DETERMINE_DEPENDENCIES: WorkflowPhase.PLANNING,
    WorkflowStep.IDENTIFY_COMPONENTS: WorkflowPhase.PLANNING,
    WorkflowStep.SELECT_NEXT_COMPONENT: WorkflowPhase.PLANNING,
    WorkflowStep.BREAK_INTO_TASKS: WorkflowPhase.PLANNING,
    WorkflowStep.ITERATE_TASKS: WorkflowPhase.BUILDING,
    WorkflowStep.REPEAT: WorkflowPhase.BUILDING,
}

TOTAL_STEPS = len(WorkflowStep)

# (step, trigger) -> destination. A step mapped to itself is a re-entry.
TRANSITIONS: Dict[Tuple[WorkflowStep, WorkflowTrigger], WorkflowStep] = {
    (WorkflowStep.DRAFT_SPECIFICATION, WorkflowTrigger.SPEC_APPROVED): WorkflowStep.DETERMINE_DEPENDENCIES,
    (WorkflowStep.DETERMINE_DEPENDENCIES, WorkflowTrigger.DEPENDENCIES_DETERMINED): WorkflowStep.IDENTIFY_COMPONENTS,
    (WorkflowStep.IDENTIFY_COMPONENTS, WorkflowTrigger.COMPONENTS_IDENTIFIED): WorkflowStep.SELECT_NEXT_COMPONENT,
    (WorkflowStep.SELECT_NEXT_COMPONENT, WorkflowTrigger.COMPONENT_SELECTED): WorkflowStep.BREAK_INTO_TASKS,
    (WorkflowStep.SELECT_NEXT_COMPONENT, WorkflowTrigger.MODULE_COMPLETE): WorkflowStep.REPEAT,
    (WorkflowStep.BREAK_INTO_TASKS, WorkflowTrigger.TASKS_BROKEN_DOWN): WorkflowStep.ITERATE_TASKS,
    (WorkflowStep.ITERATE_TASKS, WorkflowTrigger.TASK_ITERATION_COMPLETE): WorkflowStep.ITERATE_TASKS,
    (WorkflowStep.ITERATE_TASKS, WorkflowTrigger.COMPONENT_COMPLETE): WorkflowStep.REPEAT,
    (WorkflowStep.REPEAT, WorkflowTrigger.ASSESS): WorkflowStep.SELECT_NEXT_COMPONENT,
}


@dataclass(frozen=True)
class TransitionResult:
    success: bool
    trigger: WorkflowTrigger
    previous: WorkflowStep
    current: WorkflowStep
    error: Optional[str] = None

    @property
    def phase_changed(self) -> bool:
        return self.previous.phase != self.current.phase


TransitionListener = Callable[[TransitionResult], None]


class WorkflowEngine:
    """
    Tracks the current workflow step and applies triggers.

    Not thread-safe; owned by the orchestrator thread.
    """

    def __init__(self, initial_step: WorkflowStep = WorkflowStep.DRAFT_SPECIFICATION):
        self._step = initial_step
        self._spec_approved = initial_step != WorkflowStep.DRAFT_SPECIFICATION
        self._complete = False
        self._listeners: List[TransitionListener] = []

    @property
    def current_step(self) -> WorkflowStep:
        return self._step

    @property
    def current_phase(self) -> WorkflowPhase:
        return self._step.phase

    @property
    def step_number(self) -> int:
        return self._step.number

    @property
    def is_complete(self) -> bool:
        """True once the last component has been reported complete."""
        return self._complete

    @property
    def specification_approved(self) -> bool:
        return self._spec_approved

    def approve_specification(self) -> None:
        """Pass the human gate between requirement gathering and planning."""
        self._spec_approved = True
        logger.info("Specification approved")

    def reset_approval(self) -> None:
        self._spec_approved = False

    def add_listener(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    def can_fire(self, trigger: WorkflowTrigger) -> bool:
        if (self._step, trigger) not in TRANSITIONS:
            return False
        if trigger == WorkflowTrigger.SPEC_APPROVED and not self._spec_approved:
            return False
        return True

    def permitted_triggers(self) -> List[WorkflowTrigger]:
        return [trigger for trigger in WorkflowTrigger if self.can_fire(trigger)]

    def fire(self, trigger: WorkflowTrigger) -> TransitionResult:
        """
        Apply a trigger.

        An unpermitted trigger leaves the step unchanged and returns a failed
        result carrying the reason.
        """
        previous = self._step
        if not self.can_fire(trigger):
            if trigger == WorkflowTrigger.SPEC_APPROVED and (previous, trigger) in TRANSITIONS:
                error = "Specification has not been approved"
            else:
                error = f"Trigger {trigger.value} is not permitted from step '{previous.value}'"
            logger.warning(error)
            return TransitionResult(False, trigger, previous, previous, error)

        self._step = TRANSITIONS[(previous, trigger)]
        if trigger == WorkflowTrigger.MODULE_COMPLETE:
            self._complete = True
            logger.info("Workflow complete: all components done")
        logger.info(
            "Workflow transitioned from %s to %s via %s",
            previous.name,
            self._step.name,
            trigger.value,
        )

        result = TransitionResult(True, trigger, previous, self._step)
        for listener in self._listeners:
            listener(result)
        return result
