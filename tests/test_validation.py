"""Tests for answer checking, hints, and problem input validation."""

import pytest

from divtutor.interface import DivisionProblem, FieldType, StepValidation, UserInput
from divtutor.planner import ConfigurationError, DivisionByZeroError, divide_rounds, plan
from divtutor.session import SessionController
from divtutor.validation import (
    MESSAGES,
    check_completion,
    format_validation_message,
    hint_for,
    require_valid_problem,
    round_completion,
    sanitize_numeric_input,
    should_auto_advance,
    validate_dividend,
    validate_divisor,
    validate_keyboard_input,
    validate_numeric_input,
    validate_step,
)

STEPS = plan(53, 1006)


def test_validate_step_accepts_correct_answer() -> None:
    result = validate_step(
        UserInput(step_number=0, field_type=FieldType.QUOTIENT, position=0, value=1), STEPS
    )

    assert result.is_valid
    assert result.correct_value == 1
    assert result.hint is None
    assert result.message == MESSAGES.STEP_CORRECT


def test_validate_step_reports_field_hint_on_mismatch() -> None:
    result = validate_step(
        UserInput(step_number=1, field_type=FieldType.MULTIPLY, position=2, value=50), STEPS
    )

    assert not result.is_valid
    assert result.correct_value == 53
    assert result.user_value == 50
    assert result.hint == MESSAGES.HINT_MULTIPLY


@pytest.mark.parametrize(
    ("step_number", "field_type"),
    [(1, FieldType.QUOTIENT), (99, FieldType.SUBTRACT), (-1, FieldType.BRING_DOWN)],
)
def test_validate_step_fails_closed_for_unknown_fields(
    step_number: int, field_type: FieldType
) -> None:
    result = validate_step(
        UserInput(step_number=step_number, field_type=field_type, value=53), STEPS
    )

    assert not result.is_valid
    assert result.correct_value == 0
    assert result.hint == MESSAGES.HINT_CHECK_WORK


def test_hint_table_covers_every_field_type() -> None:
    assert hint_for(FieldType.QUOTIENT) == MESSAGES.HINT_QUOTIENT
    assert hint_for(FieldType.MULTIPLY) == MESSAGES.HINT_MULTIPLY
    assert hint_for(FieldType.SUBTRACT) == MESSAGES.HINT_SUBTRACT
    assert hint_for("bringDown") == MESSAGES.HINT_BRING_DOWN
    assert hint_for("carry") == MESSAGES.HINT_CHECK_WORK


def test_check_completion_requires_every_step(correct_inputs) -> None:
    controller = SessionController()
    controller.start_problem(DivisionProblem(divisor=12, dividend=84))
    inputs = correct_inputs(controller)

    for item in inputs[:-1]:
        controller.submit_step(item)
        assert not check_completion(controller.state).is_complete

    controller.submit_step(inputs[-1])
    status = check_completion(controller.state)
    assert status.is_complete
    assert not status.has_errors
    assert status.completion_message == MESSAGES.PROBLEM_COMPLETE


def test_round_completion_lists_missing_fields(session, correct_inputs) -> None:
    inputs = correct_inputs(session)
    session.submit_step(inputs[0])
    session.submit_step(inputs[1])

    first_round = divide_rounds(session.state.steps)[0]
    progress = round_completion(first_round, session.state)

    assert not progress.is_complete
    assert progress.missing_fields == [FieldType.SUBTRACT, FieldType.BRING_DOWN]


def test_numeric_input_checks_report_without_clamping() -> None:
    assert validate_numeric_input("42").is_valid
    assert validate_numeric_input("4x2").error == MESSAGES.INVALID_NUMBER
    assert validate_numeric_input(10000).error == MESSAGES.OUT_OF_RANGE
    assert validate_divisor(0).error == MESSAGES.DIVISION_BY_ZERO
    assert validate_divisor(1000).error == MESSAGES.OUT_OF_RANGE
    assert validate_divisor("53").is_valid
    assert validate_dividend(0).error == MESSAGES.OUT_OF_RANGE
    assert validate_dividend("9999").is_valid


def test_require_valid_problem_raises_configuration_errors() -> None:
    with pytest.raises(DivisionByZeroError):
        require_valid_problem(DivisionProblem(divisor=0, dividend=84))
    with pytest.raises(ConfigurationError, match="Dividend"):
        require_valid_problem(DivisionProblem(divisor=4, dividend=10000))
    with pytest.raises(ConfigurationError, match="Divisor"):
        require_valid_problem(DivisionProblem(divisor=1000, dividend=84))

    require_valid_problem(DivisionProblem(divisor=53, dividend=1006))


def test_keyboard_and_text_sanitizing() -> None:
    assert sanitize_numeric_input("1a2b345") == "1234"
    assert sanitize_numeric_input(" 7 ") == "7"

    assert validate_keyboard_input("Tab", "1234").is_allowed
    assert validate_keyboard_input("5", "12").is_allowed
    blocked = validate_keyboard_input("5", "1234")
    assert not blocked.is_allowed
    assert blocked.prevent_default
    assert validate_keyboard_input("x", "").prevent_default


def test_format_validation_message_and_auto_advance() -> None:
    failed = StepValidation(
        is_valid=False,
        correct_value=53,
        user_value=50,
        message=MESSAGES.INCORRECT_STEP,
        hint=MESSAGES.HINT_MULTIPLY,
    )

    assert format_validation_message(failed) == (
        "This step is incorrect. The correct answer is 53. "
        "Hint: Multiply the quotient digit by the divisor"
    )
    assert not should_auto_advance(failed, auto_advance=True)

    passed = StepValidation(is_valid=True, correct_value=53, user_value=53)
    assert should_auto_advance(passed, auto_advance=True)
    assert not should_auto_advance(passed, auto_advance=False)


@pytest.mark.parametrize("divisor", [0, "0", "00", " 0 ", "-0"])
def test_zero_divisor_is_reported_however_it_is_written(divisor) -> None:
    assert validate_divisor(divisor).error == MESSAGES.DIVISION_BY_ZERO


def test_padded_numbers_are_parsed_before_range_checks() -> None:
    assert validate_divisor(" 007 ").is_valid
    assert validate_dividend("0042").is_valid
    assert validate_divisor("-3").error == MESSAGES.OUT_OF_RANGE
