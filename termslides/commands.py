"""Presentation commands and the mapping from key events to them."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from itertools import pairwise

from termslides.keys import KeyBinding, KeyEvent, MatchKind


class CommandKind(enum.Enum):
    """The kind of a command, without any data it carries."""

    REDRAW = "redraw"
    NEXT = "next"
    NEXT_FAST = "next_fast"
    PREVIOUS = "previous"
    PREVIOUS_FAST = "previous_fast"
    FIRST_SLIDE = "first_slide"
    LAST_SLIDE = "last_slide"
    GO_TO_SLIDE = "go_to_slide"
    RENDER_ASYNC_OPERATIONS = "render_async_operations"
    EXIT = "exit"
    RELOAD = "reload"
    HARD_RELOAD = "hard_reload"
    TOGGLE_SLIDE_INDEX = "toggle_slide_index"
    TOGGLE_KEY_BINDINGS_CONFIG = "toggle_key_bindings_config"
    CLOSE_MODAL = "close_modal"


@dataclass(frozen=True)
class Command:
    """A command for the presenter; ``slide`` is set only for go-to-slide."""

    kind: CommandKind
    slide: int | None = None

    @classmethod
    def go_to_slide(cls, slide: int) -> Command:
        return cls(CommandKind.GO_TO_SLIDE, slide)


@dataclass(frozen=True)
class InputAction:
    """What to do with the buffered events: emit a command, keep buffering or reset."""

    command: Command | None = None
    buffer: bool = False

    @property
    def is_reset(self) -> bool:
        return self.command is None and not self.buffer


BUFFER = InputAction(buffer=True)
RESET = InputAction()


class KeyBindingsValidationError(ValueError):
    """A set of key bindings is invalid."""

    @classmethod
    def invalid(cls, name: str, reason: str) -> KeyBindingsValidationError:
        return cls(f"invalid binding for {name}: {reason}")

    @classmethod
    def conflict(cls, first: KeyBinding, second: KeyBinding) -> KeyBindingsValidationError:
        return cls(f"conflicting keybindings: {first} and {second}")


def validate_conflicts(bindings: Iterable[KeyBinding]) -> None:
    """Raise if any binding is a prefix of, or equal to, another one."""
    ordered = sorted(binding.matchers for binding in bindings)
    for shorter, longer in pairwise(ordered):
        if longer[: len(shorter)] == shorter:
            raise KeyBindingsValidationError.conflict(KeyBinding(shorter), KeyBinding(longer))


class CommandKeyBindings:
    """An ordered set of key bindings, each triggering one kind of command."""

    def __init__(self, bindings: Iterable[tuple[KeyBinding, CommandKind]]) -> None:
        self.bindings: list[tuple[KeyBinding, CommandKind]] = list(bindings)
        for binding, kind in self.bindings:
            if kind is CommandKind.GO_TO_SLIDE and not binding.expects_number():
                raise KeyBindingsValidationError.invalid("go_to_slide", "<number> matcher required")
        validate_conflicts(binding for binding, _ in self.bindings)

    def apply(self, events: Sequence[KeyEvent]) -> InputAction:
        """Decide what the given sequence of buffered events means."""
        any_partial = False
        for binding, kind in self.bindings:
            result = binding.match_events(events)
            if result.kind is MatchKind.FULL:
                return self._instantiate(kind, result.number)
            if result.kind is MatchKind.PARTIAL:
                any_partial = True
        return BUFFER if any_partial else RESET

    @staticmethod
    def _instantiate(kind: CommandKind, number: int | None) -> InputAction:
        if kind is CommandKind.GO_TO_SLIDE:
            if number is None:
                return RESET
            return InputAction(command=Command.go_to_slide(number))
        return InputAction(command=Command(kind))


class UserInput:
    """Turns a stream of key events into commands."""

    def __init__(self, bindings: CommandKeyBindings) -> None:
        self.bindings = bindings
        self._events: list[KeyEvent] = []

    def handle_event(self, event: KeyEvent) -> Command | None:
        """Feed one key event, returning a command if one is now complete."""
        if event.released:
            return None
        self._events.append(event)
        action = self.bindings.apply(self._events)
        if not action.buffer:
            self._events = []
        return action.command

    def handle_resize(self) -> Command:
        """A terminal resize asks for a redraw; buffered keys are kept."""
        return Command(CommandKind.REDRAW)