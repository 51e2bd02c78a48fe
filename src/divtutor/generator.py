"""Random division problem generation bounded by difficulty presets."""

from __future__ import annotations

import logging
import random
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .interface import Difficulty, DivisionProblem, ParameterDefinition
from .planner import ConfigurationError, quotient_and_remainder

logger = logging.getLogger(__name__)


DIFFICULTY_PRESETS: dict[Difficulty, dict[str, Any]] = {
    Difficulty.BEGINNER: {
        "min_divisor": 2,
        "max_divisor": 9,
        "min_dividend": 10,
        "max_dividend": 99,
        "allow_remainders": False,
    },
    Difficulty.INTERMEDIATE: {
        "min_divisor": 10,
        "max_divisor": 99,
        "min_dividend": 100,
        "max_dividend": 999,
        "allow_remainders": True,
    },
    Difficulty.ADVANCED: {
        "min_divisor": 10,
        "max_divisor": 99,
        "min_dividend": 1000,
        "max_dividend": 9999,
        "allow_remainders": True,
    },
}

PROBLEM_EXAMPLES: dict[Difficulty, list[DivisionProblem]] = {
    Difficulty.BEGINNER: [
        DivisionProblem(divisor=3, dividend=96),
        DivisionProblem(divisor=4, dividend=84),
        DivisionProblem(divisor=6, dividend=78),
        DivisionProblem(divisor=7, dividend=91),
        DivisionProblem(divisor=8, dividend=96),
    ],
    Difficulty.INTERMEDIATE: [
        DivisionProblem(divisor=12, dividend=156),
        DivisionProblem(divisor=23, dividend=368),
        DivisionProblem(divisor=34, dividend=578),
        DivisionProblem(divisor=45, dividend=765),
        DivisionProblem(divisor=56, dividend=896),
    ],
    Difficulty.ADVANCED: [
        DivisionProblem(divisor=67, dividend=2814),
        DivisionProblem(divisor=78, dividend=3978),
        DivisionProblem(divisor=89, dividend=5607),
        DivisionProblem(divisor=123, dividend=7890),
        DivisionProblem(divisor=234, dividend=9876),
    ],
}


def normalize_param_keys(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Map external configuration keys to Pydantic field names.

    Args:
        params: Raw configuration dictionary that may contain hyphenated keys
            from CLI flags or YAML settings.

    Returns:
        A dictionary with hyphenated keys converted to snake_case so they align
        with the :class:`ProblemSettings` model definition.
    """

    normalized: dict[str, Any] = {}
    for key, value in (params or {}).items():
        normalized[key.replace("-", "_")] = value
    return normalized


class ProblemSettings(BaseModel):
    """Validated constraints for randomly generated division problems."""

    model_config = ConfigDict(extra="forbid")

    difficulty: Difficulty = Field(
        default=Difficulty.BEGINNER,
        description="Preset used for any bound that is not given explicitly.",
    )
    min_divisor: int = Field(
        default=2,
        description="Minimum divisor value (inclusive) used for random generation.",
    )
    max_divisor: int = Field(
        default=9,
        description="Maximum divisor value (inclusive) used for random generation.",
    )
    min_dividend: int = Field(
        default=10,
        description="Minimum dividend value (inclusive) used for random generation.",
    )
    max_dividend: int = Field(
        default=99,
        description="Maximum dividend value (inclusive) used for random generation.",
    )
    allow_remainders: bool = Field(
        default=False,
        description="Whether to allow division problems that result in remainders.",
    )
    random_seed: int | None = Field(
        default=None,
        description=(
            "Optional seed applied to the generator's RNG for deterministic outputs."
        ),
    )

    @model_validator(mode="before")
    @classmethod
    def apply_preset(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        difficulty = Difficulty(data.get("difficulty") or Difficulty.BEGINNER)
        merged = dict(DIFFICULTY_PRESETS[difficulty])
        merged.update({key: value for key, value in data.items() if value is not None})
        merged["difficulty"] = difficulty
        return merged

    @model_validator(mode="after")
    def validate_bounds(self) -> "ProblemSettings":
        if self.min_dividend > self.max_dividend:
            msg = "min_dividend must be less than or equal to max_dividend"
            raise ValueError(msg)
        if self.min_divisor > self.max_divisor:
            msg = "min_divisor must be less than or equal to max_divisor"
            raise ValueError(msg)
        if self.min_divisor <= 0:
            msg = "min_divisor must be greater than 0"
            raise ValueError(msg)
        if self.min_dividend <= 0:
            msg = "min_dividend must be greater than 0"
            raise ValueError(msg)
        return self


class ProblemGenerator:
    """Draw division problems uniformly from the configured ranges."""

    def __init__(self, params: Mapping[str, Any] | ProblemSettings | None = None) -> None:
        """Validate optional configuration and prepare the RNG.

        Args:
            params: Either validated :class:`ProblemSettings` or a dictionary of
                CLI/YAML parameters. Keys may be hyphenated and are normalized
                before validation.

        Raises:
            ConfigurationError: If ``params`` fails validation against
                :class:`ProblemSettings`.
        """

        if isinstance(params, ProblemSettings):
            self._config = params
        else:
            try:
                self._config = ProblemSettings.model_validate(normalize_param_keys(params))
            except ValidationError as exc:
                raise ConfigurationError("Invalid problem generator parameters") from exc

        self._random = random.Random()
        if self._config.random_seed is not None:
            self._random.seed(self._config.random_seed)

    @property
    def settings(self) -> ProblemSettings:
        return self._config

    @classmethod
    def get_parameters(cls) -> list[ParameterDefinition]:
        """Describe parameters exposed through the CLI and YAML integrations.

        Returns:
            Metadata describing each supported configuration option so the CLI
            and the settings template can surface helpful descriptions.
        """

        return [
            ParameterDefinition(
                name="difficulty",
                default=Difficulty.BEGINNER.value,
                description="Difficulty preset supplying any bound left unset.",
                type=str,
            ),
            ParameterDefinition(
                name="min-divisor",
                default=None,
                description="Minimum divisor value (inclusive) for random division problems.",
                type=int,
            ),
            ParameterDefinition(
                name="max-divisor",
                default=None,
                description="Maximum divisor value (inclusive) for random division problems.",
                type=int,
            ),
            ParameterDefinition(
                name="min-dividend",
                default=None,
                description="Minimum dividend value (inclusive) for random division problems.",
                type=int,
            ),
            ParameterDefinition(
                name="max-dividend",
                default=None,
                description="Maximum dividend value (inclusive) for random division problems.",
                type=int,
            ),
            ParameterDefinition(
                name="allow-remainders",
                default=None,
                description="Whether to allow division problems that result in remainders.",
                type=bool,
            ),
            ParameterDefinition(
                name="random-seed",
                default=None,
                description="Optional seed for deterministic random generation.",
                type=int,
            ),
        ]

    def generate(self) -> DivisionProblem:
        """Create a random division problem honoring the configured bounds.

        When remainders are not allowed the dividend is moved down to the
        nearest multiple of the divisor, adding one divisor back if that falls
        below the minimum dividend.

        Raises:
            ConfigurationError: If remainders are disallowed and no multiple of
                the drawn divisor lies within the dividend range.
        """

        config = self._config
        divisor = self._random.randint(config.min_divisor, config.max_divisor)
        dividend = self._random.randint(config.min_dividend, config.max_dividend)

        if not config.allow_remainders:
            dividend -= dividend % divisor
            if dividend < config.min_dividend:
                dividend += divisor
            if dividend > config.max_dividend:
                msg = (
                    f"No multiple of {divisor} lies between {config.min_dividend} "
                    f"and {config.max_dividend}"
                )
                raise ConfigurationError(msg)

        quotient, remainder = quotient_and_remainder(divisor, dividend)
        logger.debug(
            f"Generated {config.difficulty.value} problem {dividend} ÷ {divisor}"
        )
        return DivisionProblem(
            divisor=divisor,
            dividend=dividend,
            quotient=quotient,
            remainder=remainder,
        )


def generate_problem(
    settings: Mapping[str, Any] | ProblemSettings | None = None,
) -> DivisionProblem:
    """Generate a single problem using ``settings`` or the beginner preset."""

    return ProblemGenerator(settings).generate()
