"""Shared fixtures for session and CLI tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from divtutor.interface import DivisionProblem, FieldType, Operation, UserInput
from divtutor.session import SessionController

_FIELD_FOR_OPERATION = {
    Operation.DIVIDE: FieldType.QUOTIENT,
    Operation.MULTIPLY: FieldType.MULTIPLY,
    Operation.SUBTRACT: FieldType.SUBTRACT,
    Operation.BRING_DOWN: FieldType.BRING_DOWN,
}


@pytest.fixture
def session() -> SessionController:
    """Return a session already working on 1006 ÷ 53."""

    controller = SessionController({"random-seed": 11})
    controller.start_problem(DivisionProblem(divisor=53, dividend=1006))
    return controller


@pytest.fixture
def correct_inputs() -> Callable[[SessionController], list[UserInput]]:
    """Build the correct answer for every canonical step of a started session."""

    def _build(controller: SessionController) -> list[UserInput]:
        return [
            UserInput(
                step_number=step.step_number,
                field_type=_FIELD_FOR_OPERATION[step.operation],
                position=step.position,
                value=step.correct_answer,
            )
            for step in controller.state.steps
        ]

    return _build
