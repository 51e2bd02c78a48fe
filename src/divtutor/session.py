"""Session state machine for one long-division problem at a time.

A session moves ``not_started -> in_progress -> complete``. Resetting keeps the
problem and clears the learner's work; starting a new problem is allowed from
any state. Every public operation builds the next state on a private copy and
publishes it in one assignment, so observers never see a half-applied
submission.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field

from .focus import FocusController
from .generator import ProblemGenerator, ProblemSettings
from .interface import (
    DivisionEvent,
    DivisionEventType,
    DivisionProblem,
    DivisionStep,
    FieldError,
    FieldType,
    FocusPosition,
    Severity,
    StepValidation,
    UserInput,
)
from .planner import DivisionRound, divide_rounds, plan, quotient_digits
from .validation import (
    check_completion,
    find_canonical_step,
    latest_inputs,
    require_valid_problem,
    validate_step,
)

logger = logging.getLogger(__name__)

Listener = Callable[[DivisionEvent], None]


class SessionStateError(RuntimeError):
    """Raised when an operation needs an active problem and none exists."""


class SessionStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class WorkingArea(BaseModel):
    """Learner-entered scratch values, one slot per canonical step number."""

    model_config = ConfigDict(extra="forbid")

    multiply_results: list[int | None] = Field(default_factory=list)
    subtract_results: list[int | None] = Field(default_factory=list)
    bring_down_digits: list[int | None] = Field(default_factory=list)
    remainders: list[int] = Field(default_factory=list)

    @classmethod
    def sized(cls, total_steps: int) -> "WorkingArea":
        return cls(
            multiply_results=[None] * total_steps,
            subtract_results=[None] * total_steps,
            bring_down_digits=[None] * total_steps,
        )

    def record(self, field_type: FieldType, step_number: int, value: int) -> bool:
        """Store ``value`` in the bucket for ``field_type``.

        Returns:
            ``False`` when the field has no working-area bucket or the step
            number falls outside the arena.
        """

        buckets: dict[FieldType, list[int | None] | None] = {
            FieldType.QUOTIENT: None,
            FieldType.MULTIPLY: self.multiply_results,
            FieldType.SUBTRACT: self.subtract_results,
            FieldType.BRING_DOWN: self.bring_down_digits,
        }
        bucket = buckets[field_type]
        if bucket is None or not 0 <= step_number < len(bucket):
            return False

        bucket[step_number] = value
        if field_type is FieldType.SUBTRACT:
            self.remainders = [item for item in self.subtract_results if item is not None]
        return True

    def is_filled(self, field_type: FieldType, step_number: int) -> bool:
        buckets = {
            FieldType.MULTIPLY: self.multiply_results,
            FieldType.SUBTRACT: self.subtract_results,
            FieldType.BRING_DOWN: self.bring_down_digits,
        }
        bucket = buckets.get(field_type)
        if bucket is None or not 0 <= step_number < len(bucket):
            return False
        return bucket[step_number] is not None


class SessionState(BaseModel):
    """Snapshot of everything the host UI renders for the current problem."""

    model_config = ConfigDict(extra="forbid")

    status: SessionStatus = SessionStatus.NOT_STARTED
    problem: DivisionProblem | None = None
    steps: list[DivisionStep] = Field(default_factory=list)
    current_step: int = 0
    total_steps: int = 0
    quotient_digits: list[int | None] = Field(default_factory=list)
    working_area: WorkingArea = Field(default_factory=WorkingArea)
    user_inputs: list[UserInput] = Field(default_factory=list)
    is_complete: bool = False
    errors: list[FieldError] = Field(default_factory=list)


def _record_input(state: SessionState, user_input: UserInput) -> None:
    """Write ``user_input`` into the quotient row or the working area.

    A quotient digit is stored only when it names a divide step at the same
    quotient position.
    """

    if user_input.field_type is FieldType.QUOTIENT:
        step = find_canonical_step(user_input.step_number, FieldType.QUOTIENT, state.steps)
        if step is not None and step.position == user_input.position:
            state.quotient_digits[step.position] = user_input.value
            return
        logger.warning(
            f"Step {user_input.step_number} has no quotient digit at position "
            f"{user_input.position}; value not stored"
        )
        return

    if not state.working_area.record(
        user_input.field_type, user_input.step_number, user_input.value
    ):
        logger.warning(
            f"Step {user_input.step_number} is outside the working area; "
            f"{user_input.field_type.value} value not stored"
        )


class SessionController:
    """Own the mutable state of one tutoring session.

    Args:
        generator_settings: Default constraints used by
            :meth:`generate_problem` when no settings are passed.
    """

    def __init__(
        self, generator_settings: Mapping[str, Any] | ProblemSettings | None = None
    ) -> None:
        self._state = SessionState()
        self._rounds: list[DivisionRound] = []
        self._listeners: list[Listener] = []
        self._generator = ProblemGenerator(generator_settings)

    @property
    def state(self) -> SessionState:
        """Return a deep copy of the current state."""

        return self._state.model_copy(deep=True)

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def rounds(self) -> list[DivisionRound]:
        return list(self._rounds)

    @property
    def round_count(self) -> int:
        return len(self._rounds)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for session events and return an unsubscriber."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def start_problem(self, problem: DivisionProblem) -> None:
        """Plan ``problem`` and begin a fresh attempt at it.

        Raises:
            ConfigurationError: If the divisor is zero or either operand is
                outside the allowed range. The current session is untouched.
        """

        require_valid_problem(problem)
        steps = plan(problem.divisor, problem.dividend)
        solved = problem.solved()

        self._rounds = divide_rounds(steps)
        self._state = SessionState(
            status=SessionStatus.IN_PROGRESS,
            problem=solved,
            steps=steps,
            total_steps=len(steps),
            quotient_digits=[None] * len(quotient_digits(steps)),
            working_area=WorkingArea.sized(len(steps)),
        )
        logger.info(f"Started problem {solved.dividend} ÷ {solved.divisor}")
        self._publish(
            DivisionEventType.PROBLEM_STARTED,
            {"divisor": solved.divisor, "dividend": solved.dividend, "total_steps": len(steps)},
        )

    def submit_step(self, user_input: UserInput) -> StepValidation:
        """Commit a learner answer and apply its consequences in one transition.

        The input is appended to history and written to its working-area slot,
        any earlier error for the same step and field is replaced, the step
        cursor advances when a correct answer replaces a missing or wrong one,
        and completion is judged again. A session that is already complete
        stays complete.

        Raises:
            SessionStateError: If no problem has been started.
        """

        if self._state.status is SessionStatus.NOT_STARTED:
            raise SessionStateError("Start a problem before submitting steps")

        validation = validate_step(user_input, self._state.steps)
        previous = latest_inputs(self._state.user_inputs).get(
            (user_input.step_number, user_input.field_type)
        )
        already_correct = (
            previous is not None and validate_step(previous, self._state.steps).is_valid
        )
        draft = self._state.model_copy(deep=True)

        draft.user_inputs.append(user_input)
        _record_input(draft, user_input)

        draft.errors = [
            error
            for error in draft.errors
            if not (
                error.step_number == user_input.step_number
                and error.field_type is user_input.field_type
            )
        ]
        if not validation.is_valid:
            draft.errors.append(
                FieldError(
                    step_number=user_input.step_number,
                    field_type=user_input.field_type,
                    position=user_input.position,
                    message=f"{validation.message}. {validation.hint}",
                    severity=Severity.ERROR,
                )
            )
        elif not already_correct:
            draft.current_step = min(draft.current_step + 1, draft.total_steps)

        was_complete = draft.is_complete
        draft.is_complete = was_complete or check_completion(draft).is_complete
        if draft.is_complete:
            draft.status = SessionStatus.COMPLETE

        self._state = draft
        logger.debug(
            f"Step {user_input.step_number} {user_input.field_type.value}="
            f"{user_input.value} valid={validation.is_valid}"
        )

        self._publish(
            DivisionEventType.STEP_COMPLETED if validation.is_valid else DivisionEventType.STEP_FAILED,
            {
                "step_number": user_input.step_number,
                "field_type": user_input.field_type.value,
                "value": user_input.value,
                "correct_value": validation.correct_value,
            },
        )
        if draft.is_complete and not was_complete:
            logger.info("Problem complete")
            self._publish(
                DivisionEventType.PROBLEM_COMPLETED,
                {"inputs": len(draft.user_inputs)},
            )
        return validation

    def reset_problem(self) -> None:
        """Clear the learner's work while keeping the current problem.

        Raises:
            SessionStateError: If no problem has been started.
        """

        if self._state.status is SessionStatus.NOT_STARTED:
            raise SessionStateError("There is no problem to reset")

        total_steps = self._state.total_steps
        self._state = SessionState(
            status=SessionStatus.IN_PROGRESS,
            problem=self._state.problem,
            steps=self._state.steps,
            total_steps=total_steps,
            quotient_digits=[None] * len(self._state.quotient_digits),
            working_area=WorkingArea.sized(total_steps),
        )
        self._publish(DivisionEventType.PROBLEM_RESET, {})

    def generate_problem(
        self, settings: Mapping[str, Any] | ProblemSettings | None = None
    ) -> DivisionProblem:
        """Return a random problem without starting it."""

        if settings is None:
            return self._generator.generate()
        return ProblemGenerator(settings).generate()

    def validate_step(self, user_input: UserInput) -> StepValidation:
        """Check ``user_input`` against the current problem without recording it."""

        return validate_step(user_input, self._state.steps)

    def rebuild_working_area(self) -> WorkingArea:
        """Derive the working area from the input history alone."""

        area = WorkingArea.sized(self._state.total_steps)
        for item in self._state.user_inputs:
            if item.field_type is not FieldType.QUOTIENT:
                area.record(item.field_type, item.step_number, item.value)
        return area

    def step_for_focus(self, focus: FocusPosition) -> DivisionStep | None:
        """Return the canonical step behind a round-based focus position."""

        if not 0 <= focus.step_number < len(self._rounds):
            return None
        return self._rounds[focus.step_number].step_for(focus.field_type)

    def input_for_focus(self, focus: FocusPosition, value: int) -> UserInput:
        """Build the :class:`UserInput` for typing ``value`` into ``focus``.

        Fields that have no canonical step map to step number ``-1`` so the
        answer fails validation instead of matching an unrelated step.
        """

        step = self.step_for_focus(focus)
        if step is None:
            return UserInput(
                step_number=-1,
                field_type=focus.field_type,
                position=focus.position,
                value=value,
            )

        position = step.position if focus.field_type is FieldType.QUOTIENT else focus.position
        return UserInput(
            step_number=step.step_number,
            field_type=focus.field_type,
            position=position,
            value=value,
        )

    def error_for_focus(self, focus: FocusPosition) -> FieldError | None:
        step = self.step_for_focus(focus)
        if step is None:
            return None
        for error in self._state.errors:
            if error.step_number == step.step_number and error.field_type is focus.field_type:
                return error
        return None

    def focus_for_error(self, error: FieldError) -> FocusPosition | None:
        """Return the round-based field ``error`` was recorded against."""

        for division_round in self._rounds:
            step = division_round.step_for(error.field_type)
            if step is not None and step.step_number == error.step_number:
                return FocusPosition(
                    step_number=division_round.index, field_type=error.field_type
                )
        return None

    def focus_controller(
        self, on_focus: Callable[[FocusPosition], None] | None = None
    ) -> FocusController:
        """Create a focus controller sized for the current problem."""

        if self._state.status is SessionStatus.NOT_STARTED:
            raise SessionStateError("Start a problem before navigating fields")
        return FocusController(
            quotient_length=1, total_steps=len(self._rounds), on_focus=on_focus
        )

    def _publish(self, event_type: DivisionEventType, data: dict[str, Any]) -> None:
        event = DivisionEvent(type=event_type, data=data)
        for listener in list(self._listeners):
            listener(event)
