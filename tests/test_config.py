"""Tests for YAML settings loading."""

from pathlib import Path

import pytest
import yaml

from divtutor.config import SettingsError, TutorSettings, load_settings, settings_template
from divtutor.interface import Difficulty


def test_missing_path_returns_defaults() -> None:
    settings = load_settings(None)

    assert settings == TutorSettings()
    assert settings.show_hints
    assert settings.auto_advance
    assert settings.difficulty is Difficulty.BEGINNER


def test_yaml_values_feed_generator_settings(tmp_path: Path) -> None:
    config_path = tmp_path / "settings.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "show_hints": False,
                "difficulty": "intermediate",
                "generator": {"random-seed": 5, "max-divisor": 12},
            }
        ),
        encoding="utf-8",
    )

    settings = load_settings(config_path)
    generator_settings = settings.generator_settings()

    assert not settings.show_hints
    assert generator_settings.difficulty is Difficulty.INTERMEDIATE
    assert generator_settings.min_divisor == 10
    assert generator_settings.max_divisor == 12
    assert generator_settings.random_seed == 5


def test_overrides_win_over_file_values() -> None:
    settings = TutorSettings(generator={"random-seed": 5})

    merged = settings.generator_settings(difficulty=Difficulty.ADVANCED, random_seed=None)

    assert merged.difficulty is Difficulty.ADVANCED
    assert merged.min_dividend == 1000
    assert merged.random_seed == 5


def test_invalid_generator_values_raise_settings_error() -> None:
    settings = TutorSettings(generator={"min-divisor": 9, "max-divisor": 2})

    with pytest.raises(SettingsError):
        settings.generator_settings()


@pytest.mark.parametrize(
    "content",
    [
        "show_hints: [unclosed",
        "- just\n- a list\n",
        "unknown_option: true\n",
        "difficulty: impossible\n",
    ],
)
def test_bad_files_raise_settings_error(tmp_path: Path, content: str) -> None:
    config_path = tmp_path / "settings.yaml"
    config_path.write_text(content, encoding="utf-8")

    with pytest.raises(SettingsError):
        load_settings(config_path)


def test_unreadable_path_raises_settings_error(tmp_path: Path) -> None:
    with pytest.raises(SettingsError):
        load_settings(tmp_path / "missing.yaml")


def test_template_round_trips_through_loader(tmp_path: Path) -> None:
    template = settings_template()

    assert template["difficulty"] == "beginner"
    assert set(template["generator"]) == {
        "allow-remainders",
        "max-dividend",
        "max-divisor",
        "min-dividend",
        "min-divisor",
        "random-seed",
    }

    config_path = tmp_path / "template.yaml"
    config_path.write_text(yaml.safe_dump(template), encoding="utf-8")

    settings = load_settings(config_path)
    assert settings == TutorSettings(generator=template["generator"])
    assert settings.generator_settings().max_dividend == 99
