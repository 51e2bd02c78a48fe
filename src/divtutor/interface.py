"""Core records shared by the divtutor components.

The planner, validation engine, session controller, and focus controller all
exchange these models so that each piece can be tested on its own while the
host UI only ever sees one consistent schema.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Type

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class Operation(str, Enum):
    """Arithmetic operation performed by a canonical division step."""

    DIVIDE = "divide"
    MULTIPLY = "multiply"
    SUBTRACT = "subtract"
    BRING_DOWN = "bringDown"


class FieldType(str, Enum):
    """Kinds of input fields a learner fills in while dividing."""

    QUOTIENT = "quotient"
    MULTIPLY = "multiply"
    SUBTRACT = "subtract"
    BRING_DOWN = "bringDown"

    @property
    def operation(self) -> Operation:
        """Return the canonical step operation answered by this field."""

        return _FIELD_OPERATIONS[self]

    @property
    def rank(self) -> int:
        """Return the order of this field within a single division round."""

        return _FIELD_RANKS[self]


_FIELD_OPERATIONS: dict[FieldType, Operation] = {
    FieldType.QUOTIENT: Operation.DIVIDE,
    FieldType.MULTIPLY: Operation.MULTIPLY,
    FieldType.SUBTRACT: Operation.SUBTRACT,
    FieldType.BRING_DOWN: Operation.BRING_DOWN,
}

_FIELD_RANKS: dict[FieldType, int] = {
    FieldType.QUOTIENT: 0,
    FieldType.MULTIPLY: 1,
    FieldType.SUBTRACT: 2,
    FieldType.BRING_DOWN: 3,
}


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    HINT = "hint"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class DivisionProblem(BaseModel):
    """A divisor/dividend pair with optional precomputed results.

    Range and zero checks happen when a session starts the problem so that a
    bad pair surfaces as a :class:`~divtutor.planner.ConfigurationError`
    instead of a schema failure.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    divisor: int = Field(..., description="The number by which we divide.")
    dividend: int = Field(..., description="The number being divided.")
    quotient: int | None = Field(
        default=None, description="Integer part of the result, when known."
    )
    remainder: int | None = Field(
        default=None, description="Remainder of the division, when known."
    )

    @model_validator(mode="after")
    def validate_results(self) -> "DivisionProblem":
        if self.divisor <= 0 or self.dividend < 0:
            return self

        if self.quotient is not None and self.quotient != self.dividend // self.divisor:
            msg = "quotient does not match the result of dividend // divisor"
            raise ValueError(msg)
        if self.remainder is not None and self.remainder != self.dividend % self.divisor:
            msg = "remainder does not match the result of dividend % divisor"
            raise ValueError(msg)
        return self

    def solved(self) -> "DivisionProblem":
        """Return a copy with quotient and remainder attached."""

        quotient, remainder = divmod(self.dividend, self.divisor)
        return self.model_copy(update={"quotient": quotient, "remainder": remainder})


class DivisionStep(BaseModel):
    """One canonical step of the long-division procedure."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    step_number: int = Field(..., ge=0, description="Index within the step sequence.")
    operation: Operation
    position: int = Field(
        ...,
        ge=0,
        description=(
            "Quotient digit index for divide steps, otherwise the index of the "
            "dividend digit the step works on."
        ),
    )
    correct_answer: int
    value: int


class UserInput(BaseModel):
    """A single value committed by the learner for one field."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    step_number: int
    field_type: FieldType
    position: int = 0
    value: int
    timestamp: datetime = Field(default_factory=datetime.now)


class FieldError(BaseModel):
    """Validation outcome recorded against a field of the session."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    step_number: int
    field_type: FieldType
    position: int
    message: str
    severity: Severity = Severity.ERROR


class FocusPosition(BaseModel):
    """Identify an input field by round, field type, and digit position."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    step_number: int = 0
    field_type: FieldType = FieldType.QUOTIENT
    position: int = 0

    def key(self) -> tuple[int, int, int]:
        """Return the total ordering key used for lookups and sorting."""

        return (self.step_number, self.field_type.rank, self.position)


class KeyEvent(BaseModel):
    """Keyboard event forwarded from the host UI."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    key: str
    ctrl_key: bool = Field(
        default=False, validation_alias=AliasChoices("ctrl_key", "ctrlKey")
    )
    shift_key: bool = Field(
        default=False, validation_alias=AliasChoices("shift_key", "shiftKey")
    )
    alt_key: bool = Field(
        default=False, validation_alias=AliasChoices("alt_key", "altKey")
    )


class StepValidation(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    is_valid: bool
    correct_value: int
    user_value: int
    message: str | None = None
    hint: str | None = None


class CompletionStatus(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    is_complete: bool
    has_errors: bool
    completion_message: str | None = None


class DivisionEventType(str, Enum):
    PROBLEM_STARTED = "problem_started"
    STEP_COMPLETED = "step_completed"
    STEP_FAILED = "step_failed"
    PROBLEM_COMPLETED = "problem_completed"
    PROBLEM_RESET = "problem_reset"


class DivisionEvent(BaseModel):
    """Notification published by the session after a state transition."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: DivisionEventType
    timestamp: datetime = Field(default_factory=datetime.now)
    data: dict[str, Any] = Field(default_factory=dict)


class ParameterDefinition(BaseModel):
    """Metadata describing a configurable generator parameter.

    The CLI options and the YAML settings template are derived from these
    definitions.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., description="Parameter identifier such as 'max-divisor'")
    default: Any = Field(..., description="Default value applied when unspecified")
    description: str = Field(..., description="Human friendly help text for the CLI")
    value_type: Type[Any] | str | None = Field(
        default=None,
        alias="type",
        validation_alias=AliasChoices("type", "value_type"),
        description=(
            "Optional type hint used by dynamic surfaces such as the CLI to coerce "
            "values. Accepts Python types or string aliases (e.g., 'int')."
        ),
    )

    @property
    def type(self) -> Type[Any] | str | None:
        """Expose ``value_type`` under the historic ``type`` attribute name."""

        return self.value_type
