"""Tests for random problem generation."""

import pytest

from divtutor.generator import (
    DIFFICULTY_PRESETS,
    PROBLEM_EXAMPLES,
    ProblemGenerator,
    ProblemSettings,
    generate_problem,
)
from divtutor.interface import Difficulty
from divtutor.planner import ConfigurationError, plan, quotient_from_steps


def test_generator_is_deterministic_when_seeded() -> None:
    first = ProblemGenerator({"random-seed": 7, "difficulty": "advanced"})
    second = ProblemGenerator({"random-seed": 7, "difficulty": "advanced"})

    assert [first.generate() for _ in range(5)] == [second.generate() for _ in range(5)]


def test_generator_honors_fixed_bounds() -> None:
    problem = ProblemGenerator(
        {
            "min-divisor": 4,
            "max-divisor": 4,
            "min-dividend": 84,
            "max-dividend": 84,
        }
    ).generate()

    assert problem.divisor == 4
    assert problem.dividend == 84
    assert problem.quotient == 21
    assert problem.remainder == 0


def test_generator_readds_divisor_below_minimum() -> None:
    """Every dividend in 17..24 rounds to 20, the only multiple of 5 in range."""

    generator = ProblemGenerator(
        {
            "min-divisor": 5,
            "max-divisor": 5,
            "min-dividend": 17,
            "max-dividend": 24,
            "allow-remainders": False,
        }
    )

    for _ in range(10):
        problem = generator.generate()
        assert problem.dividend == 20
        assert problem.remainder == 0


def test_generator_rejects_range_without_multiple() -> None:
    generator = ProblemGenerator(
        {
            "min-divisor": 5,
            "max-divisor": 5,
            "min-dividend": 17,
            "max-dividend": 19,
            "allow-remainders": False,
        }
    )

    with pytest.raises(ConfigurationError, match="No multiple of 5"):
        generator.generate()


def test_generator_keeps_remainders_when_allowed() -> None:
    problem = ProblemGenerator(
        {
            "difficulty": "intermediate",
            "min-divisor": 5,
            "max-divisor": 5,
            "min-dividend": 17,
            "max-dividend": 17,
        }
    ).generate()

    assert problem.dividend == 17
    assert problem.quotient == 3
    assert problem.remainder == 2


def test_beginner_problems_stay_in_range() -> None:
    for seed in range(25):
        problem = ProblemGenerator({"random-seed": seed}).generate()

        assert 2 <= problem.divisor <= 9
        assert 10 <= problem.dividend <= 99
        assert problem.remainder == 0
        assert quotient_from_steps(plan(problem.divisor, problem.dividend)) == problem.quotient


def test_presets_fill_unset_bounds() -> None:
    settings = ProblemSettings(difficulty=Difficulty.ADVANCED)

    assert settings.min_dividend == DIFFICULTY_PRESETS[Difficulty.ADVANCED]["min_dividend"]
    assert settings.max_dividend == 9999
    assert settings.allow_remainders is True

    overridden = ProblemSettings.model_validate({"difficulty": "advanced", "max_divisor": 20})
    assert overridden.max_divisor == 20
    assert overridden.min_divisor == 10


@pytest.mark.parametrize(
    "params",
    [
        {"min-divisor": 9, "max-divisor": 3},
        {"min-dividend": 90, "max-dividend": 10},
        {"min-divisor": 0, "max-divisor": 3},
        {"difficulty": "impossible"},
        {"unknown-option": 1},
    ],
)
def test_invalid_parameters_raise_configuration_error(params: dict) -> None:
    with pytest.raises(ConfigurationError):
        ProblemGenerator(params)


def test_get_parameters_describe_cli_options() -> None:
    names = [definition.name for definition in ProblemGenerator.get_parameters()]

    assert names == [
        "difficulty",
        "min-divisor",
        "max-divisor",
        "min-dividend",
        "max-dividend",
        "allow-remainders",
        "random-seed",
    ]


def test_generate_problem_uses_beginner_preset_by_default() -> None:
    problem = generate_problem()

    assert 2 <= problem.divisor <= 9
    assert problem.remainder == 0


def test_problem_examples_are_valid_for_their_difficulty() -> None:
    for examples in PROBLEM_EXAMPLES.values():
        for example in examples:
            assert quotient_from_steps(plan(example.divisor, example.dividend)) == (
                example.dividend // example.divisor
            )
