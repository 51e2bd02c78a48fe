"""Tutor settings loaded from optional YAML files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
import yaml

from .generator import ProblemGenerator, ProblemSettings, normalize_param_keys
from .interface import Difficulty


class SettingsError(RuntimeError):
    """Raised when a settings file cannot be read or validated."""


class TutorSettings(BaseModel):
    """Learner-facing preferences plus problem generator overrides."""

    model_config = ConfigDict(extra="forbid")

    show_hints: bool = Field(
        default=True, description="Show the field hint after a wrong answer."
    )
    auto_advance: bool = Field(
        default=True, description="Move to the next field after a correct answer."
    )
    highlight_errors: bool = Field(
        default=True, description="Mark fields whose latest answer is wrong."
    )
    difficulty: Difficulty = Field(
        default=Difficulty.BEGINNER, description="Preset used for new problems."
    )
    generator: dict[str, Any] = Field(
        default_factory=dict,
        description="Generator overrides such as 'max-divisor' or 'random-seed'.",
    )

    def generator_settings(self, **overrides: Any) -> ProblemSettings:
        """Merge difficulty, file overrides, and ``overrides`` into generator settings.

        Raises:
            SettingsError: If the merged values are not valid generator settings.
        """

        merged: dict[str, Any] = {"difficulty": self.difficulty}
        for source in (self.generator, overrides):
            merged.update(
                {
                    key: value
                    for key, value in normalize_param_keys(source).items()
                    if value is not None
                }
            )
        try:
            return ProblemSettings.model_validate(merged)
        except ValidationError as exc:
            raise SettingsError("Generator settings are invalid") from exc


def load_settings(config_path: Path | None) -> TutorSettings:
    """Load YAML configuration values into :class:`TutorSettings`.

    Args:
        config_path: Optional path to the YAML file provided through ``--config``.

    Returns:
        Settings from the file, or the defaults when no path is given.

    Raises:
        SettingsError: If the file cannot be read or parsed.
    """

    if config_path is None:
        return TutorSettings()

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SettingsError(f"Unable to read config file: {exc}") from exc

    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as exc:
        raise SettingsError("Configuration file contains invalid YAML") from exc

    if not isinstance(data, dict):
        raise SettingsError("Configuration file must define a mapping")

    try:
        return TutorSettings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError("Configuration file is invalid") from exc


def settings_template() -> dict[str, Any]:
    """Create a configuration mapping aligned with :class:`TutorSettings`."""

    defaults = TutorSettings()
    template: dict[str, Any] = {
        "show_hints": defaults.show_hints,
        "auto_advance": defaults.auto_advance,
        "highlight_errors": defaults.highlight_errors,
        "difficulty": defaults.difficulty.value,
        "generator": {},
    }
    for definition in sorted(ProblemGenerator.get_parameters(), key=lambda item: item.name):
        if definition.name == "difficulty":
            continue
        template["generator"][definition.name] = definition.default
    return template
