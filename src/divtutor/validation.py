"""Answer checking, hints, completion, and problem input validation.

Incorrect answers and answers for fields that do not exist are reported as
data (:class:`~divtutor.interface.StepValidation`) so a session never breaks
on a learner's mistake. Only unusable problem definitions raise
:class:`~divtutor.planner.ConfigurationError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import TYPE_CHECKING, Iterable

from .interface import (
    CompletionStatus,
    DivisionProblem,
    DivisionStep,
    FieldType,
    Severity,
    StepValidation,
    UserInput,
)
from .focus import NAVIGATION_KEYS, NUMPAD_KEYS
from .planner import ConfigurationError, DivisionByZeroError, DivisionRound

if TYPE_CHECKING:
    from .session import SessionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DivisionLimits:
    min_divisor: int = 1
    max_divisor: int = 999
    min_dividend: int = 1
    max_dividend: int = 9999
    max_input_length: int = 4


DIVISION_LIMITS = DivisionLimits()


class MESSAGES:
    """Fixed learner-facing strings."""

    DIVISION_BY_ZERO = "Cannot divide by zero"
    INVALID_NUMBER = "Please enter a valid number"
    OUT_OF_RANGE = "Number is out of allowed range"
    INCORRECT_STEP = "This step is incorrect"
    EMPTY_FIELD = "This field cannot be empty"

    HINT_QUOTIENT = "Look at the first digit(s) of the dividend"
    HINT_MULTIPLY = "Multiply the quotient digit by the divisor"
    HINT_SUBTRACT = "Subtract the multiplication result from the dividend portion"
    HINT_BRING_DOWN = "Bring down the next digit from the dividend"
    HINT_CHECK_WORK = "Double-check your multiplication and subtraction"

    STEP_CORRECT = "Correct! Moving to next step."
    PROBLEM_COMPLETE = "Excellent! You completed the division problem."


_HINTS: dict[FieldType, str] = {
    FieldType.QUOTIENT: MESSAGES.HINT_QUOTIENT,
    FieldType.MULTIPLY: MESSAGES.HINT_MULTIPLY,
    FieldType.SUBTRACT: MESSAGES.HINT_SUBTRACT,
    FieldType.BRING_DOWN: MESSAGES.HINT_BRING_DOWN,
}


@dataclass(frozen=True)
class InputCheck:
    """Outcome of checking a raw number typed during problem setup."""

    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class KeyCheck:
    is_allowed: bool
    prevent_default: bool = False


@dataclass(frozen=True)
class RoundCompletion:
    is_complete: bool
    missing_fields: list[FieldType] = field(default_factory=list)


def hint_for(field_type: FieldType | str) -> str:
    """Return the hint shown after a wrong answer in ``field_type``."""

    try:
        return _HINTS[FieldType(field_type)]
    except ValueError:
        return MESSAGES.HINT_CHECK_WORK


def find_canonical_step(
    step_number: int, field_type: FieldType, steps: Iterable[DivisionStep]
) -> DivisionStep | None:
    """Return the canonical step answered by ``field_type`` at ``step_number``."""

    operation = field_type.operation
    for step in steps:
        if step.step_number == step_number and step.operation is operation:
            return step
    return None


def validate_step(user_input: UserInput, steps: Iterable[DivisionStep]) -> StepValidation:
    """Check one learner answer against the canonical steps.

    An answer for a step number/field pair that has no canonical step fails
    closed with ``correct_value=0`` and the generic hint.
    """

    expected = find_canonical_step(user_input.step_number, user_input.field_type, steps)
    if expected is None:
        logger.debug(
            f"No canonical {user_input.field_type.value} step #{user_input.step_number}"
        )
        return StepValidation(
            is_valid=False,
            correct_value=0,
            user_value=user_input.value,
            message=MESSAGES.INCORRECT_STEP,
            hint=MESSAGES.HINT_CHECK_WORK,
        )

    if user_input.value == expected.correct_answer:
        return StepValidation(
            is_valid=True,
            correct_value=expected.correct_answer,
            user_value=user_input.value,
            message=MESSAGES.STEP_CORRECT,
        )

    return StepValidation(
        is_valid=False,
        correct_value=expected.correct_answer,
        user_value=user_input.value,
        message=MESSAGES.INCORRECT_STEP,
        hint=hint_for(user_input.field_type),
    )


def latest_inputs(inputs: Iterable[UserInput]) -> dict[tuple[int, FieldType], UserInput]:
    """Return the most recent input for every ``(step_number, field_type)`` pair."""

    latest: dict[tuple[int, FieldType], UserInput] = {}
    for item in inputs:
        latest[(item.step_number, item.field_type)] = item
    return latest


def check_completion(state: "SessionState") -> CompletionStatus:
    """Judge whether the session's problem has been fully and correctly solved.

    Every field's latest answer is validated again rather than trusting any
    earlier result, so an answer that was later replaced never counts.
    """

    has_errors = any(error.severity is Severity.ERROR for error in state.errors)
    valid_fields = sum(
        1
        for item in latest_inputs(state.user_inputs).values()
        if validate_step(item, state.steps).is_valid
    )
    is_complete = (
        state.total_steps > 0 and valid_fields >= state.total_steps and not has_errors
    )
    return CompletionStatus(
        is_complete=is_complete,
        has_errors=has_errors,
        completion_message=MESSAGES.PROBLEM_COMPLETE if is_complete else None,
    )


def round_completion(division_round: DivisionRound, state: "SessionState") -> RoundCompletion:
    """List the fields of ``division_round`` that still lack a correct answer."""

    latest = latest_inputs(state.user_inputs)
    missing: list[FieldType] = []
    for field_type in FieldType:
        step = division_round.step_for(field_type)
        if step is None:
            continue
        answer = latest.get((step.step_number, field_type))
        if answer is None or answer.value != step.correct_answer:
            missing.append(field_type)
    return RoundCompletion(is_complete=not missing, missing_fields=missing)


def _parse_number(value: str | int) -> int | None:
    if isinstance(value, int):
        return value
    text = value.strip()
    if not re.fullmatch(r"-?\d+", text):
        return None
    return int(text)


def validate_numeric_input(
    value: str | int,
    minimum: int = DIVISION_LIMITS.min_divisor,
    maximum: int = DIVISION_LIMITS.max_dividend,
) -> InputCheck:
    """Check a number typed while defining a problem. Values are never clamped."""

    number = _parse_number(value)
    if number is None:
        return InputCheck(is_valid=False, error=MESSAGES.INVALID_NUMBER)
    if number < minimum or number > maximum:
        return InputCheck(is_valid=False, error=MESSAGES.OUT_OF_RANGE)
    return InputCheck(is_valid=True)


def validate_divisor(divisor: str | int) -> InputCheck:
    if _parse_number(divisor) == 0:
        return InputCheck(is_valid=False, error=MESSAGES.DIVISION_BY_ZERO)
    return validate_numeric_input(
        divisor, DIVISION_LIMITS.min_divisor, DIVISION_LIMITS.max_divisor
    )


def validate_dividend(dividend: str | int) -> InputCheck:
    return validate_numeric_input(
        dividend, DIVISION_LIMITS.min_dividend, DIVISION_LIMITS.max_dividend
    )


def require_valid_problem(problem: DivisionProblem) -> None:
    """Ensure ``problem`` can be started.

    Raises:
        DivisionByZeroError: If the divisor is zero.
        ConfigurationError: If either operand is outside the allowed range.
    """

    if problem.divisor == 0:
        raise DivisionByZeroError(MESSAGES.DIVISION_BY_ZERO)

    divisor_check = validate_divisor(problem.divisor)
    if not divisor_check.is_valid:
        msg = f"Divisor {problem.divisor}: {divisor_check.error}"
        raise ConfigurationError(msg)

    dividend_check = validate_dividend(problem.dividend)
    if not dividend_check.is_valid:
        msg = f"Dividend {problem.dividend}: {dividend_check.error}"
        raise ConfigurationError(msg)


def sanitize_numeric_input(raw: str, max_length: int = DIVISION_LIMITS.max_input_length) -> str:
    """Strip non-digits from ``raw`` and cap its length."""

    return re.sub(r"[^0-9]", "", raw)[:max_length]


def validate_keyboard_input(
    key: str,
    current_value: str,
    max_length: int = DIVISION_LIMITS.max_input_length,
) -> KeyCheck:
    """Decide whether ``key`` may edit a numeric field holding ``current_value``."""

    if key in NAVIGATION_KEYS:
        return KeyCheck(is_allowed=True)
    if key in NUMPAD_KEYS:
        if len(current_value) >= max_length:
            return KeyCheck(is_allowed=False, prevent_default=True)
        return KeyCheck(is_allowed=True)
    return KeyCheck(is_allowed=False, prevent_default=True)


def format_validation_message(validation: StepValidation) -> str:
    """Combine message, correct value, and hint into one display string."""

    parts: list[str] = []
    if validation.message:
        parts.append(validation.message.rstrip(".") + ".")
    if not validation.is_valid:
        parts.append(f"The correct answer is {validation.correct_value}.")
    if validation.hint:
        parts.append(f"Hint: {validation.hint}")
    return " ".join(parts)


def should_auto_advance(validation: StepValidation, auto_advance: bool) -> bool:
    return auto_advance and validation.is_valid
