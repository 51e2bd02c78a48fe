"""Keyboard-driven focus navigation across the division input fields.

Fields are visited round by round: the quotient positions of a round, then
its multiply and subtract fields, then its bring-down field when another
round follows. :func:`resolve_key` is the pure transition function; the
:class:`FocusController` only stores the result and forwards focus requests
to the host, which owns any real widgets and event subscriptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable

from .interface import FieldType, FocusPosition, KeyEvent

logger = logging.getLogger(__name__)

NUMPAD_KEYS = frozenset("0123456789")
NAVIGATION_KEYS = frozenset(
    {
        "Tab",
        "Enter",
        "Escape",
        "Backspace",
        "Delete",
        "ArrowUp",
        "ArrowDown",
        "ArrowLeft",
        "ArrowRight",
    }
)
_FORWARD_KEYS = frozenset({"Enter", "ArrowDown", "ArrowRight"})
_BACKWARD_KEYS = frozenset({"ArrowUp", "ArrowLeft"})
_EDITING_KEYS = frozenset({"Backspace", "Delete"})

START_POSITION = FocusPosition(step_number=0, field_type=FieldType.QUOTIENT, position=0)


class Shortcut(str, Enum):
    RESET_PROBLEM = "reset_problem"
    NEW_PROBLEM = "new_problem"
    TOGGLE_HINTS = "toggle_hints"


_SHORTCUTS: dict[str, Shortcut] = {
    "r": Shortcut.RESET_PROBLEM,
    "n": Shortcut.NEW_PROBLEM,
    "h": Shortcut.TOGGLE_HINTS,
}


@dataclass(frozen=True)
class KeyResolution:
    """Result of applying a key press to a focus position.

    Attributes:
        focus: Focus position after the key press.
        prevent_default: ``True`` when the host must suppress its own handling
            of the key.
    """

    focus: FocusPosition
    prevent_default: bool


def _field(step_number: int, field_type: FieldType, position: int = 0) -> FocusPosition:
    return FocusPosition(step_number=step_number, field_type=field_type, position=position)


def next_position(
    focus: FocusPosition, quotient_length: int, total_steps: int
) -> FocusPosition:
    """Return the field after ``focus``, or ``focus`` itself at the end."""

    step = focus.step_number
    if focus.field_type is FieldType.QUOTIENT:
        if focus.position < quotient_length - 1:
            return _field(step, FieldType.QUOTIENT, focus.position + 1)
        return _field(step, FieldType.MULTIPLY)
    if focus.field_type is FieldType.MULTIPLY:
        return _field(step, FieldType.SUBTRACT)
    if focus.field_type is FieldType.SUBTRACT:
        if step < total_steps - 1:
            return _field(step, FieldType.BRING_DOWN)
        return focus
    if focus.field_type is FieldType.BRING_DOWN:
        return _field(step + 1, FieldType.QUOTIENT)
    raise ValueError(f"Unknown field type: {focus.field_type!r}")


def previous_position(
    focus: FocusPosition, quotient_length: int, total_steps: int
) -> FocusPosition:
    """Return the field before ``focus``, or ``focus`` itself at the start."""

    step = focus.step_number
    if focus.field_type is FieldType.QUOTIENT:
        if focus.position > 0:
            return _field(step, FieldType.QUOTIENT, focus.position - 1)
        if step > 0:
            return _field(step - 1, FieldType.BRING_DOWN)
        return focus
    if focus.field_type is FieldType.MULTIPLY:
        return _field(step, FieldType.QUOTIENT, quotient_length - 1)
    if focus.field_type is FieldType.SUBTRACT:
        return _field(step, FieldType.MULTIPLY)
    if focus.field_type is FieldType.BRING_DOWN:
        return _field(step, FieldType.SUBTRACT)
    raise ValueError(f"Unknown field type: {focus.field_type!r}")


def field_sequence(quotient_length: int, total_steps: int) -> list[FocusPosition]:
    """List every field in navigation order."""

    fields = [START_POSITION]
    while True:
        following = next_position(fields[-1], quotient_length, total_steps)
        if following == fields[-1]:
            return fields
        fields.append(following)


def resolve_key(
    event: KeyEvent, focus: FocusPosition, quotient_length: int, total_steps: int
) -> KeyResolution:
    """Apply ``event`` to ``focus`` without touching any controller state.

    Digits, Backspace, and Delete reach the input unchanged. Tab, Enter, and
    the arrow keys move focus. Anything else is swallowed so fields stay
    numeric.
    """

    key = event.key
    if key in NUMPAD_KEYS or key in _EDITING_KEYS:
        return KeyResolution(focus=focus, prevent_default=False)
    if key == "Tab":
        move = previous_position if event.shift_key else next_position
        return KeyResolution(move(focus, quotient_length, total_steps), True)
    if key in _FORWARD_KEYS:
        return KeyResolution(next_position(focus, quotient_length, total_steps), True)
    if key in _BACKWARD_KEYS:
        return KeyResolution(previous_position(focus, quotient_length, total_steps), True)
    return KeyResolution(focus=focus, prevent_default=True)


def resolve_shortcut(event: KeyEvent) -> Shortcut | None:
    """Map Ctrl+R, Ctrl+N, and Ctrl+H to session-level shortcuts."""

    if not event.ctrl_key or event.alt_key:
        return None
    return _SHORTCUTS.get(event.key.lower())


class FocusController:
    """Track which division field is active.

    Args:
        quotient_length: Number of quotient positions visited in each round.
        total_steps: Number of division rounds.
        on_focus: Optional host callback that moves real input focus.
    """

    def __init__(
        self,
        quotient_length: int,
        total_steps: int,
        on_focus: Callable[[FocusPosition], None] | None = None,
    ) -> None:
        if quotient_length < 1:
            raise ValueError("quotient_length must be at least 1")
        if total_steps < 1:
            raise ValueError("total_steps must be at least 1")

        self.quotient_length = quotient_length
        self.total_steps = total_steps
        self._on_focus = on_focus
        self._current = START_POSITION

    @property
    def current_focus(self) -> FocusPosition:
        return self._current

    def next_field(self) -> FocusPosition:
        return self._move_to(
            next_position(self._current, self.quotient_length, self.total_steps)
        )

    def previous_field(self) -> FocusPosition:
        return self._move_to(
            previous_position(self._current, self.quotient_length, self.total_steps)
        )

    def jump_to_field(self, position: FocusPosition) -> FocusPosition:
        """Focus ``position`` directly, ignoring adjacency (pointer clicks)."""

        self._current = position
        self.focus_field(position)
        return position

    def focus_field(self, position: FocusPosition) -> None:
        """Ask the host to move its input focus to ``position``."""

        if self._on_focus is not None:
            self._on_focus(position)

    def handle_key_down(self, event: KeyEvent) -> bool:
        """Apply ``event`` and return whether the host must suppress it."""

        resolution = resolve_key(
            event, self._current, self.quotient_length, self.total_steps
        )
        self._move_to(resolution.focus)
        return resolution.prevent_default

    def reset(self) -> None:
        self._move_to(START_POSITION)

    def _move_to(self, position: FocusPosition) -> FocusPosition:
        if position != self._current:
            logger.debug(f"Focus moved to {position.key()}")
            self._current = position
            self.focus_field(position)
        return self._current
