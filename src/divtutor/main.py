"""Command-line interface for practising long division in the terminal."""

from enum import Enum
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

import typer
import yaml

from .config import SettingsError, TutorSettings, load_settings, settings_template
from .focus import field_sequence
from .generator import ProblemGenerator
from .interface import Difficulty, DivisionProblem, FieldType, FocusPosition
from .planner import ConfigurationError, format_problem, plan, quotient_and_remainder
from .session import SessionController
from .validation import (
    MESSAGES,
    format_validation_message,
    sanitize_numeric_input,
    should_auto_advance,
)


app = typer.Typer(help="Work through long division one step at a time.")

_FIELD_LABELS: dict[FieldType, str] = {
    FieldType.QUOTIENT: "quotient digit",
    FieldType.MULTIPLY: "multiply",
    FieldType.SUBTRACT: "subtract",
    FieldType.BRING_DOWN: "bring down",
}


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_NEXT_COMMANDS = {">", "next"}
_PREVIOUS_COMMANDS = {"<", "prev"}


@app.callback()
def _configure_logging(
    log_level: LogLevel = typer.Option(
        LogLevel.WARNING,
        "--log-level",
        case_sensitive=False,
        help="Logging level for diagnostic output.",
    ),
) -> None:
    """Work through long division one step at a time."""

    logging.basicConfig(
        level=log_level.value,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_settings_or_fail(config: Path | None) -> TutorSettings:
    try:
        return load_settings(config)
    except SettingsError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _build_generator(
    settings: TutorSettings, difficulty: Difficulty | None, seed: int | None
) -> ProblemGenerator:
    try:
        generator_settings = settings.generator_settings(
            difficulty=difficulty, random_seed=seed
        )
    except SettingsError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    return ProblemGenerator(generator_settings)


def _field_label(focus: FocusPosition) -> str:
    return f"Round {focus.step_number + 1} {_FIELD_LABELS[focus.field_type]}"


def _report_open_errors(session: SessionController) -> None:
    """List the fields whose latest answer is still wrong."""

    for error in session.state.errors:
        focus = session.focus_for_error(error)
        if focus is not None:
            typer.echo(f"Still incorrect: {_field_label(focus)}")


@app.command("plan")
def plan_command(
    divisor: int = typer.Argument(..., help="The number to divide by."),
    dividend: int = typer.Argument(..., help="The number being divided."),
    as_json: bool = typer.Option(
        False, "--json", help="Print the steps as JSON instead of a table."
    ),
) -> None:
    """Print every long-division step with its correct answer."""

    try:
        steps = plan(divisor, dividend)
        quotient, remainder = quotient_and_remainder(divisor, dividend)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="DIVISOR") from exc

    if as_json:
        payload = [step.model_dump(mode="json") for step in steps]
        typer.echo(json.dumps(payload, indent=2))
        return

    problem = DivisionProblem(
        divisor=divisor, dividend=dividend, quotient=quotient, remainder=remainder
    )
    typer.echo(format_problem(problem))
    for step in steps:
        typer.echo(
            f"{step.step_number:>3}  {step.operation.value:<10}"
            f"position {step.position:<3} answer {step.correct_answer}"
        )


@app.command("generate")
def generate_command(
    difficulty: Difficulty | None = typer.Option(
        None, "--difficulty", "-d", help="Difficulty preset for the problem."
    ),
    seed: int | None = typer.Option(
        None, "--seed", help="Random seed for reproducible problems."
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML settings file.",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Print a random division problem as JSON."""

    settings = _load_settings_or_fail(config)
    problem = _build_generator(settings, difficulty, seed).generate()
    typer.echo(json.dumps(problem.model_dump(), indent=2))


@app.command("practice")
def practice_command(
    divisor: int | None = typer.Option(None, "--divisor", help="Divisor to practise."),
    dividend: int | None = typer.Option(
        None, "--dividend", help="Dividend to practise."
    ),
    difficulty: Difficulty | None = typer.Option(
        None, "--difficulty", "-d", help="Difficulty preset for a random problem."
    ),
    seed: int | None = typer.Option(
        None, "--seed", help="Random seed for reproducible problems."
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML settings file.",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Solve a division problem field by field.

    Type a number to answer the active field. Enter '>' or '<' to move between
    fields, 'reset' to clear your work, or 'quit' to stop.
    """

    settings = _load_settings_or_fail(config)
    if (divisor is None) != (dividend is None):
        raise typer.BadParameter(
            "Provide both --divisor and --dividend, or neither.",
            param_hint="--divisor/--dividend",
        )

    session = SessionController(_build_generator(settings, difficulty, seed).settings)
    if divisor is not None and dividend is not None:
        problem = DivisionProblem(divisor=divisor, dividend=dividend)
    else:
        problem = session.generate_problem()

    try:
        session.start_problem(problem)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="--divisor/--dividend") from exc

    focus = session.focus_controller()
    typer.echo(f"Solve {problem.dividend} ÷ {problem.divisor}")

    while not session.state.is_complete:
        current = focus.current_focus
        raw = typer.prompt(_field_label(current)).strip().lower()

        if raw in _NEXT_COMMANDS:
            focus.next_field()
            continue
        if raw in _PREVIOUS_COMMANDS:
            focus.previous_field()
            continue
        if raw == "reset":
            if settings.highlight_errors:
                _report_open_errors(session)
            session.reset_problem()
            focus.reset()
            typer.echo("Cleared your work.")
            continue
        if raw == "quit":
            if settings.highlight_errors:
                _report_open_errors(session)
            typer.echo("Stopped before finishing.")
            raise typer.Exit(code=1)

        cleaned = sanitize_numeric_input(raw)
        if not cleaned:
            typer.echo(MESSAGES.EMPTY_FIELD)
            continue

        validation = session.submit_step(session.input_for_focus(current, int(cleaned)))
        if validation.is_valid:
            typer.echo("Correct!")
        elif settings.show_hints:
            typer.echo(f"Not quite. Hint: {validation.hint}")
        else:
            typer.echo("Not quite. Try again.")
        if should_auto_advance(validation, settings.auto_advance):
            focus.next_field()

    solved = session.state.problem
    typer.echo(MESSAGES.PROBLEM_COMPLETE)
    if solved is not None:
        typer.echo(format_problem(solved))


@app.command("check")
def check_command(
    divisor: int = typer.Argument(..., help="The number to divide by."),
    dividend: int = typer.Argument(..., help="The number being divided."),
    answers: list[int] = typer.Argument(
        ..., help="Answers for every step, in step order."
    ),
) -> None:
    """Grade a full list of step answers and report each mistake."""

    session = SessionController()
    try:
        session.start_problem(DivisionProblem(divisor=divisor, dividend=dividend))
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="DIVISOR") from exc

    steps = session.state.steps
    fields = field_sequence(1, session.round_count)
    for step, field_position, value in zip(steps, fields, answers):
        validation = session.submit_step(session.input_for_focus(field_position, value))
        if not validation.is_valid:
            typer.echo(f"Step {step.step_number}: {format_validation_message(validation)}")

    if len(answers) != len(steps):
        typer.echo(f"Expected {len(steps)} answers, got {len(answers)}.")
    if session.state.is_complete:
        typer.echo(MESSAGES.PROBLEM_COMPLETE)
        return
    raise typer.Exit(code=1)


@app.command("write-config")
def write_config(
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help=(
            "File path for the generated YAML template. Defaults to printing the template to stdout."
        ),
        file_okay=True,
        dir_okay=False,
        writable=True,
        resolve_path=True,
    ),
) -> None:
    """Emit a YAML settings template covering every default."""

    header_lines = [
        "# divtutor settings template generated by `divtutor write-config`.",
        "# Leave generator values as null to use the difficulty preset.",
        "",
    ]
    yaml_payload = yaml.safe_dump(settings_template(), sort_keys=False)
    content = "\n".join(header_lines) + "\n" + yaml_payload

    if output is None:
        typer.echo(content)
        return

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")
    except OSError as exc:  # pragma: no cover - filesystem failure
        raise typer.BadParameter(f"Unable to write configuration file: {exc}") from exc
    typer.echo(f"Wrote configuration template to {output}")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point used by the console script defined in ``pyproject.toml``."""

    raw_args = list(argv if argv is not None else sys.argv[1:])
    app(args=raw_args)
