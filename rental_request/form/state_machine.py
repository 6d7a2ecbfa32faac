"""
Finite state machine for the six-step rental request form.

Each transition names the remote operation that must succeed before it
fires, so the controller never decides "create or update" by inspecting
step numbers. The self-healing recreate path is a first-class transition
rather than an exception handler.

Usage:
    sm = FormStateMachine()
    sm.operation_for(has_lead_id=False)   # RemoteOperation.CREATE
    sm.transition(StepTrigger.LEAD_CREATED)
    assert sm.current_step == FormStep.EQUIPMENT
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Callable, Optional

from rental_request.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class FormStep(IntEnum):
    """Pages of the rental form; SUCCESS is terminal."""
    ZIP_CODE = 1
    EQUIPMENT = 2
    DATES = 3
    DETAILS = 4
    CONTACT = 5
    SUCCESS = 6


class StepTrigger(str, Enum):
    """Events that cause step transitions."""
    LEAD_CREATED = "lead_created"
    LEAD_UPDATED = "lead_updated"
    LEAD_RECREATED = "lead_recreated"
    ZIP_MISSING = "zip_missing"
    STEP_BACK = "step_back"
    RESET = "reset"


class RemoteOperation(str, Enum):
    """Remote call that backs a transition."""
    CREATE = "create"
    UPDATE = "update"
    NONE = "none"


@dataclass
class Transition:
    """A single valid step transition."""
    from_step: FormStep
    to_step: FormStep
    trigger: StepTrigger
    operation: RemoteOperation = RemoteOperation.NONE


@dataclass
class StepEntry:
    """Recorded history entry for a step visit."""
    step: FormStep
    entered_at: datetime
    trigger: Optional[StepTrigger] = None


_INPUT_STEPS = [
    FormStep.ZIP_CODE,
    FormStep.EQUIPMENT,
    FormStep.DATES,
    FormStep.DETAILS,
    FormStep.CONTACT,
]


class FormStateMachine:
    """
    Deterministic step controller for the rental form.

    Forward movement requires a successful remote sync; backward movement
    is local. SUCCESS has no outgoing transition except RESET.
    """

    TRANSITIONS: list[Transition] = [
        # --- Forward, first sync creates the lead ---
        *[Transition(s, FormStep(s + 1), StepTrigger.LEAD_CREATED, RemoteOperation.CREATE)
          for s in _INPUT_STEPS],

        # --- Forward, later syncs update it ---
        *[Transition(s, FormStep(s + 1), StepTrigger.LEAD_UPDATED, RemoteOperation.UPDATE)
          for s in _INPUT_STEPS],

        # --- Stale reference recovered by creating a fresh lead ---
        *[Transition(s, FormStep(s + 1), StepTrigger.LEAD_RECREATED, RemoteOperation.CREATE)
          for s in _INPUT_STEPS],

        # --- Stale reference with no ZIP to recreate from ---
        *[Transition(s, FormStep.ZIP_CODE, StepTrigger.ZIP_MISSING)
          for s in _INPUT_STEPS],

        # --- Previous (floored at the first step) ---
        *[Transition(s, FormStep(max(s - 1, FormStep.ZIP_CODE)), StepTrigger.STEP_BACK)
          for s in _INPUT_STEPS],

        # --- Full reset ---
        *[Transition(s, FormStep.ZIP_CODE, StepTrigger.RESET) for s in FormStep],
    ]

    def __init__(self, on_enter: Optional[Callable[[FormStep], None]] = None) -> None:
        self._current_step = FormStep.ZIP_CODE
        self._history: list[StepEntry] = [
            StepEntry(step=FormStep.ZIP_CODE, entered_at=datetime.now(timezone.utc))
        ]
        self._on_enter = on_enter

    @property
    def current_step(self) -> FormStep:
        return self._current_step

    def transition(self, trigger: StepTrigger) -> FormStep:
        """
        Execute a step transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new form step.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        t = self._find(self._current_step, trigger)
        if t is None:
            valid = [v.value for v in self.get_valid_triggers()]
            raise InvalidTransitionError(
                f"No valid transition from step {int(self._current_step)} "
                f"with trigger '{trigger.value}'. Valid triggers: {valid}"
            )

        old_step = self._current_step
        self._current_step = t.to_step
        self._history.append(StepEntry(
            step=self._current_step,
            entered_at=datetime.now(timezone.utc),
            trigger=trigger,
        ))

        logger.debug(
            "Step transition: %d -> %d (trigger: %s)",
            old_step, self._current_step, trigger.value,
        )
        if self._on_enter is not None and t.to_step != old_step:
            self._on_enter(self._current_step)
        return self._current_step

    def operation_for(self, has_lead_id: bool) -> RemoteOperation:
        """Remote call needed to move forward from the current step."""
        if self.is_terminal():
            return RemoteOperation.NONE
        return RemoteOperation.UPDATE if has_lead_id else RemoteOperation.CREATE

    def trigger_for(self, operation: RemoteOperation) -> StepTrigger:
        """Forward trigger that a successful ``operation`` fires."""
        for t in self.TRANSITIONS:
            if (
                t.from_step == self._current_step
                and t.operation == operation
                and t.trigger != StepTrigger.LEAD_RECREATED
            ):
                return t.trigger
        raise InvalidTransitionError(
            f"No forward transition from step {int(self._current_step)} "
            f"for operation '{operation.value}'"
        )

    def can(self, trigger: StepTrigger) -> bool:
        return self._find(self._current_step, trigger) is not None

    def get_valid_triggers(self) -> list[StepTrigger]:
        """Return all triggers valid from the current step."""
        return [t.trigger for t in self.TRANSITIONS if t.from_step == self._current_step]

    def get_history(self) -> list[StepEntry]:
        """Return the full step transition history."""
        return list(self._history)

    def get_step_trace(self) -> list[int]:
        """Return ordered list of steps visited."""
        return [int(entry.step) for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the form has reached the success step."""
        return self._current_step == FormStep.SUCCESS

    def _find(self, step: FormStep, trigger: StepTrigger) -> Optional[Transition]:
        for t in self.TRANSITIONS:
            if t.from_step == step and t.trigger == trigger:
                return t
        return None
