"""Key codes, key events and key binding patterns.

A key binding is written as a small pattern language, for example ``gg``,
``<c-w>``, ``<PageUp>`` or ``<number>G``, and is matched against a sequence
of key press events.
"""

from __future__ import annotations

import enum
import re
import string
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import total_ordering

_KEY_ORDER = (
    "Backspace",
    "Enter",
    "Left",
    "Right",
    "Up",
    "Down",
    "Home",
    "End",
    "PageUp",
    "PageDown",
    "Tab",
    "BackTab",
    "Delete",
    "Insert",
    "F",
    "Char",
    "Null",
    "Esc",
)

_MAX_NUMBER = 2**32 - 1
_MAX_FUNCTION_KEY = 12
_FUNCTION_NUMBER = re.compile(r"\+?[0-9]+")


@total_ordering
@dataclass(frozen=True, eq=True)
class KeyCode:
    """A key on the keyboard: a named key, a function key or a character."""

    name: str
    value: str | int | None = None

    def __post_init__(self) -> None:
        if self.name not in _KEY_ORDER:
            raise ValueError(f"unknown key name: {self.name}")

    @classmethod
    def char(cls, character: str) -> KeyCode:
        """A key that produces the given character."""
        if len(character) != 1:
            raise ValueError("a character key holds exactly one character")
        return cls("Char", character)

    @classmethod
    def function(cls, number: int) -> KeyCode:
        """The function key with the given number."""
        return cls("F", number)

    @property
    def is_char(self) -> bool:
        return self.name == "Char"

    def _sort_key(self) -> tuple:
        rank = _KEY_ORDER.index(self.name)
        return (rank,) if self.value is None else (rank, self.value)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, KeyCode):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def debug_name(self) -> str:
        """The key's name as shown inside angle brackets."""
        if self.name == "Char":
            return f"Char({self.value!r})"
        if self.name == "F":
            return f"F({self.value})"
        return self.name


KeyCode.BACKSPACE = KeyCode("Backspace")
KeyCode.ENTER = KeyCode("Enter")
KeyCode.LEFT = KeyCode("Left")
KeyCode.RIGHT = KeyCode("Right")
KeyCode.UP = KeyCode("Up")
KeyCode.DOWN = KeyCode("Down")
KeyCode.HOME = KeyCode("Home")
KeyCode.END = KeyCode("End")
KeyCode.PAGE_UP = KeyCode("PageUp")
KeyCode.PAGE_DOWN = KeyCode("PageDown")
KeyCode.TAB = KeyCode("Tab")
KeyCode.ESC = KeyCode("Esc")


@dataclass(frozen=True)
class KeyEvent:
    """A single key event coming from the terminal."""

    code: KeyCode
    control: bool = False
    alt: bool = False
    shift: bool = False
    released: bool = False

    @property
    def is_control_only(self) -> bool:
        """Whether control is the one and only modifier held."""
        return self.control and not self.alt and not self.shift


@total_ordering
@dataclass(frozen=True, eq=True)
class KeyCombination:
    """A key, optionally pressed while holding control."""

    key: KeyCode
    control: bool = False

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, KeyCombination):
            return NotImplemented
        return (self.key, self.control) < (other.key, other.control)


class MatchKind(enum.Enum):
    """How much of a binding a sequence of events matched."""

    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"


@dataclass(frozen=True)
class BindingMatch:
    """The result of matching events against a binding."""

    kind: MatchKind
    number: int | None = None


class KeyBindingParseError(ValueError):
    """A key binding pattern could not be parsed."""


def _strip_any(text: str, aliases: Sequence[str]) -> str | None:
    for alias in aliases:
        if text.startswith(alias):
            return text[len(alias):]
    return None


_NAMED_KEYS: tuple[tuple[tuple[str, ...], KeyCode], ...] = (
    (("<PageUp>", "<page_up>"), KeyCode.PAGE_UP),
    (("<PageDown>", "<page_down>"), KeyCode.PAGE_DOWN),
    (("<cr>", "<CR>", "<Enter>", "<enter>"), KeyCode.ENTER),
    (("<Home>", "<home>"), KeyCode.HOME),
    (("<End>", "<end>"), KeyCode.END),
    (("<Left>", "<left>"), KeyCode.LEFT),
    (("<Right>", "<right>"), KeyCode.RIGHT),
    (("<Up>", "<up>"), KeyCode.UP),
    (("<Down>", "<down>"), KeyCode.DOWN),
    (("<Esc>", "<esc>"), KeyCode.ESC),
    (("<Tab>", "<tab>"), KeyCode.TAB),
    (("<Backspace>", "<backspace>"), KeyCode.BACKSPACE),
)


def _parse_key_code(text: str) -> tuple[KeyCode, str]:
    for aliases, code in _NAMED_KEYS:
        rest = _strip_any(text, aliases)
        if rest is not None:
            return code, rest
    rest = _strip_any(text, ("<F", "<f"))
    if rest is not None:
        number_text, separator, rest = rest.partition(">")
        if not separator or not _FUNCTION_NUMBER.fullmatch(number_text):
            raise KeyBindingParseError("invalid control sequence")
        number = int(number_text)
        if number > 255 or number > _MAX_FUNCTION_KEY:
            raise KeyBindingParseError("invalid control sequence")
        return KeyCode.function(number), rest
    if not text:
        raise KeyBindingParseError("no input")
    head = text[0]
    # these would make patterns ambiguous
    if head in "<>":
        raise KeyBindingParseError(f"not a valid key: {head}")
    if head.isalnum() or head in string.punctuation or head == " ":
        return KeyCode.char(head), text[1:]
    raise KeyBindingParseError(f"not a valid key: {head}")


@total_ordering
@dataclass(frozen=True, eq=True)
class KeyMatcher:
    """One element of a binding: a key combination or a number placeholder."""

    combination: KeyCombination | None = None

    @property
    def is_number(self) -> bool:
        return self.combination is None

    def _sort_key(self) -> tuple:
        if self.combination is None:
            return (1,)
        return (0, self.combination)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, KeyMatcher):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def try_match_events(
        self, events: Sequence[KeyEvent]
    ) -> tuple[int | None, Sequence[KeyEvent]] | None:
        """Match the head of the events, returning any number read and what is left."""
        if self.combination is None:
            return self._match_number(events)
        if not events:
            return None
        event = events[0]
        combo = self.combination
        if combo.key == event.code and combo.control == event.is_control_only:
            return None, events[1:]
        return None

    @staticmethod
    def _match_number(
        events: Sequence[KeyEvent],
    ) -> tuple[int | None, Sequence[KeyEvent]] | None:
        number: int | None = None
        consumed = 0
        for event in events:
            code = event.code
            if not (code.is_char and code.value in string.digits):
                break
            number = (number or 0) * 10 + int(code.value)
            if number > _MAX_NUMBER:
                return None
            consumed += 1
        if number is None:
            return None
        return number, events[consumed:]

    @classmethod
    def parse(cls, text: str) -> tuple[KeyMatcher, str]:
        """Parse one matcher from the front of the text, returning it and the rest."""
        if text.startswith("<number>"):
            return KEY_NUMBER, text[len("<number>"):]
        rest = _strip_any(text, ("<c-", "<C-"))
        if rest is not None:
            key, rest = _parse_key_code(rest)
            if not rest.startswith(">"):
                raise KeyBindingParseError("invalid control sequence")
            return cls(KeyCombination(key, control=True)), rest[1:]
        key, rest = _parse_key_code(text)
        return cls(KeyCombination(key, control=False)), rest

    def __str__(self) -> str:
        combo = self.combination
        if combo is None:
            return "<number>"
        if combo.key.is_char:
            body = "' '" if combo.key.value == " " else str(combo.key.value)
        else:
            body = f"<{combo.key.debug_name()}>"
        return f"<c-{body}>" if combo.control else body


KEY_NUMBER = KeyMatcher()


@total_ordering
@dataclass(frozen=True, eq=True)
class KeyBinding:
    """A sequence of matchers that together trigger a command."""

    matchers: tuple[KeyMatcher, ...] = field(default_factory=tuple)

    @classmethod
    def parse(cls, text: str) -> KeyBinding:
        """Parse a binding pattern such as ``<number>G``."""
        matchers: list[KeyMatcher] = []
        has_number = False
        while text:
            matcher, text = KeyMatcher.parse(text)
            if matcher.is_number:
                if has_number:
                    raise KeyBindingParseError("too many number placeholders")
                has_number = True
            matchers.append(matcher)
        return cls(tuple(matchers))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, KeyBinding):
            return NotImplemented
        return self.matchers < other.matchers

    def match_events(self, events: Sequence[KeyEvent]) -> BindingMatch:
        """Match a sequence of events against this binding."""
        number: int | None = None
        last = len(self.matchers) - 1
        for index, matcher in enumerate(self.matchers):
            result = matcher.try_match_events(events)
            if result is None:
                return BindingMatch(MatchKind.NONE)
            found, events = result
            if found is not None:
                number = found
            # matchers remain but the events ran out
            if index != last and not events:
                return BindingMatch(MatchKind.PARTIAL)
        return BindingMatch(MatchKind.FULL, number)

    def expects_number(self) -> bool:
        """Whether this binding holds a ``<number>`` placeholder."""
        return any(matcher.is_number for matcher in self.matchers)

    def __str__(self) -> str:
        return "".join(str(matcher) for matcher in self.matchers)


def parse_key_binding(text: str) -> KeyBinding:
    """Parse a key binding pattern."""
    return KeyBinding.parse(text)