"""Long-division step planning.

:func:`plan` decomposes a division into the ordered steps a learner performs
by hand: pick a quotient digit, multiply it back, subtract, and bring down the
next dividend digit. Everything else in this module is derived from that one
deterministic pass.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from .interface import DivisionProblem, DivisionStep, FieldType, Operation

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when a problem definition cannot be used to start a division."""


class DivisionByZeroError(ConfigurationError):
    """Raised when a problem is defined with a divisor of zero."""


@dataclass(frozen=True)
class DivisionRound:
    """Steps produced for one quotient digit.

    Attributes:
        index: Zero-based round number, equal to the quotient digit index.
        partial_dividend: Running value divided during this round.
        divide: Step producing the quotient digit.
        multiply: Step multiplying the quotient digit by the divisor.
        subtract: Step subtracting the product from ``partial_dividend``.
        bring_down: Step bringing down the next dividend digit, if any remain.
    """

    index: int
    partial_dividend: int
    divide: DivisionStep
    multiply: DivisionStep
    subtract: DivisionStep
    bring_down: DivisionStep | None = None

    def step_for(self, field_type: FieldType) -> DivisionStep | None:
        """Return the canonical step answered by ``field_type`` in this round."""

        steps: dict[FieldType, DivisionStep | None] = {
            FieldType.QUOTIENT: self.divide,
            FieldType.MULTIPLY: self.multiply,
            FieldType.SUBTRACT: self.subtract,
            FieldType.BRING_DOWN: self.bring_down,
        }
        return steps[field_type]


@dataclass(frozen=True)
class RoundValues:
    """Arithmetic values a learner writes down during one round."""

    current_dividend: int
    quotient_digit: int
    multiply_result: int
    subtract_result: int


@dataclass(frozen=True)
class DivisionLayout:
    """Sizing information a renderer needs before drawing the bracket."""

    divisor_width: int
    dividend_digits: list[str]
    quotient_positions: int


def _make_step(step_number: int, operation: Operation, position: int, answer: int) -> DivisionStep:
    return DivisionStep(
        step_number=step_number,
        operation=operation,
        position=position,
        correct_answer=answer,
        value=answer,
    )


def plan(divisor: int, dividend: int) -> list[DivisionStep]:
    """Return every long-division step for ``dividend ÷ divisor``.

    A divide/multiply/subtract triple is emitted as soon as the running value
    reaches the divisor, for every digit after that, and for the final digit
    regardless. A bring-down step follows each triple while digits remain.

    Args:
        divisor: The number by which we divide. Must be positive.
        dividend: The number being divided. Must not be negative.

    Returns:
        The steps in order, numbered ``0..N-1``.

    Raises:
        DivisionByZeroError: If ``divisor`` is zero.
        ConfigurationError: If ``divisor`` or ``dividend`` is negative.
    """

    if divisor == 0:
        raise DivisionByZeroError("Division by zero is not allowed")
    if divisor < 0:
        raise ConfigurationError("divisor must be greater than 0")
    if dividend < 0:
        raise ConfigurationError("dividend must not be negative")

    digits = [int(char) for char in str(dividend)]
    last_index = len(digits) - 1
    steps: list[DivisionStep] = []
    running = 0
    quotient_index = 0

    for index, digit in enumerate(digits):
        running = running * 10 + digit
        # Skip leading positions that cannot be divided yet.
        if quotient_index == 0 and running < divisor and index < last_index:
            continue

        quotient_digit = running // divisor
        product = quotient_digit * divisor
        difference = running - product

        steps.append(_make_step(len(steps), Operation.DIVIDE, quotient_index, quotient_digit))
        steps.append(_make_step(len(steps), Operation.MULTIPLY, index, product))
        steps.append(_make_step(len(steps), Operation.SUBTRACT, index, difference))
        quotient_index += 1
        running = difference

        if index < last_index:
            steps.append(
                _make_step(len(steps), Operation.BRING_DOWN, index + 1, digits[index + 1])
            )

    logger.debug(f"Planned {len(steps)} steps for {dividend} ÷ {divisor}")
    return steps


def quotient_digits(steps: list[DivisionStep]) -> list[int]:
    """Return the quotient digits in the order they are produced."""

    return [step.correct_answer for step in steps if step.operation is Operation.DIVIDE]


def quotient_from_steps(steps: list[DivisionStep]) -> int:
    """Concatenate the divide answers into the integer quotient."""

    digits = quotient_digits(steps)
    if not digits:
        return 0
    return int("".join(str(digit) for digit in digits))


def remainder_from_steps(steps: list[DivisionStep]) -> int:
    """Return the final subtraction result, which is the remainder."""

    for step in reversed(steps):
        if step.operation is Operation.SUBTRACT:
            return step.correct_answer
    return 0


def divide_rounds(steps: list[DivisionStep]) -> list[DivisionRound]:
    """Group a flat step sequence into one :class:`DivisionRound` per digit.

    Raises:
        ConfigurationError: If ``steps`` is not a sequence produced by
            :func:`plan`.
    """

    rounds: list[DivisionRound] = []
    cursor = 0
    while cursor < len(steps):
        chunk = steps[cursor : cursor + 3]
        operations = [step.operation for step in chunk]
        if operations != [Operation.DIVIDE, Operation.MULTIPLY, Operation.SUBTRACT]:
            msg = f"Malformed step sequence at step {cursor}"
            raise ConfigurationError(msg)
        divide, multiply, subtract = chunk
        cursor += 3

        bring_down = None
        if cursor < len(steps) and steps[cursor].operation is Operation.BRING_DOWN:
            bring_down = steps[cursor]
            cursor += 1

        rounds.append(
            DivisionRound(
                index=len(rounds),
                partial_dividend=multiply.correct_answer + subtract.correct_answer,
                divide=divide,
                multiply=multiply,
                subtract=subtract,
                bring_down=bring_down,
            )
        )
    return rounds


def find_step(
    steps: list[DivisionStep], round_index: int, field_type: FieldType
) -> DivisionStep | None:
    """Map a round-based field to the canonical step it answers."""

    rounds = divide_rounds(steps)
    if not 0 <= round_index < len(rounds):
        return None
    return rounds[round_index].step_for(field_type)


def quotient_and_remainder(divisor: int, dividend: int) -> tuple[int, int]:
    if divisor == 0:
        raise DivisionByZeroError("Division by zero is not allowed")
    return divmod(dividend, divisor)


def initial_dividend_digits(divisor: int, dividend: int) -> int:
    """Return how many leading dividend digits the first division uses."""

    dividend_text = str(dividend)
    digits = 1
    while int(dividend_text[:digits]) < divisor and digits < len(dividend_text):
        digits += 1
    return digits


def working_values_for_round(divisor: int, dividend: int, round_index: int) -> RoundValues:
    """Return the values written during ``round_index`` of the division.

    The current dividend carries the real running remainder from the previous
    round, so the values agree with :func:`plan` for every round.

    Raises:
        ConfigurationError: If ``round_index`` does not exist for the problem.
    """

    rounds = divide_rounds(plan(divisor, dividend))
    if not 0 <= round_index < len(rounds):
        msg = f"Round {round_index} is out of range for {dividend} ÷ {divisor}"
        raise ConfigurationError(msg)

    current = rounds[round_index]
    return RoundValues(
        current_dividend=current.partial_dividend,
        quotient_digit=current.divide.correct_answer,
        multiply_result=current.multiply.correct_answer,
        subtract_result=current.subtract.correct_answer,
    )


def format_problem(problem: DivisionProblem) -> str:
    """Render ``problem`` as a one-line string such as ``'1006 ÷ 53 = 18 R52'``."""

    text = f"{problem.dividend} ÷ {problem.divisor}"
    if problem.quotient is not None:
        text += f" = {problem.quotient}"
        if problem.remainder:
            text += f" R{problem.remainder}"
    return text


def layout_for(divisor: int, dividend: int) -> DivisionLayout:
    steps = plan(divisor, dividend)
    return DivisionLayout(
        divisor_width=len(str(divisor)),
        dividend_digits=list(str(dividend)),
        quotient_positions=len(quotient_digits(steps)),
    )
