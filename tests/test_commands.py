import pytest

from termslides.commands import (
    Command,
    CommandKeyBindings,
    CommandKind,
    KeyBindingsValidationError,
    UserInput,
    validate_conflicts,
)
from termslides.keys import KeyCode, KeyEvent, parse_key_binding

DEFAULTS = [
    (CommandKind.NEXT, ["l", "j", "<right>", "<page_down>", "<down>", " "]),
    (CommandKind.NEXT_FAST, ["n"]),
    (CommandKind.PREVIOUS, ["h", "k", "<left>", "<page_up>", "<up>"]),
    (CommandKind.PREVIOUS_FAST, ["p"]),
    (CommandKind.FIRST_SLIDE, ["gg"]),
    (CommandKind.LAST_SLIDE, ["G"]),
    (CommandKind.GO_TO_SLIDE, ["<number>G"]),
    (CommandKind.EXIT, ["<c-c>"]),
    (CommandKind.HARD_RELOAD, ["<c-r>"]),
    (CommandKind.TOGGLE_SLIDE_INDEX, ["<c-p>"]),
    (CommandKind.TOGGLE_KEY_BINDINGS_CONFIG, ["?"]),
    (CommandKind.RENDER_ASYNC_OPERATIONS, ["<c-e>"]),
    (CommandKind.CLOSE_MODAL, ["<esc>"]),
]


def default_bindings():
    return CommandKeyBindings(
        (parse_key_binding(pattern), kind) for kind, patterns in DEFAULTS for pattern in patterns
    )


def ch(c, control=False, released=False):
    return KeyEvent(KeyCode.char(c), control=control, released=released)


@pytest.mark.parametrize(
    "patterns",
    [
        ["<number>G", "other", "<number>Go"],
        ["<PageUp><PageDown>", "something", "<PageUp>"],
        ["<cr><cr>", "<cr><cr>"],
        ["<c-w>", "<c-w>a"],
        ["<c-w>", "<c-w>"],
        ["<number>", "<number>"],
    ],
)
def test_conflicts(patterns):
    with pytest.raises(KeyBindingsValidationError, match="conflicting keybindings"):
        validate_conflicts(parse_key_binding(p) for p in patterns)


@pytest.mark.parametrize(
    "patterns",
    [["<number>Ga", "<number>Go"], ["<c-a><number>", "<c-a>hi"]],
)
def test_no_conflicts(patterns):
    assert validate_conflicts(parse_key_binding(p) for p in patterns) is None


def test_default_bindings_build():
    bindings = default_bindings()
    assert len(bindings.bindings) == 21


def test_go_to_slide_requires_number():
    with pytest.raises(KeyBindingsValidationError, match="go_to_slide"):
        CommandKeyBindings([(parse_key_binding("G"), CommandKind.GO_TO_SLIDE)])


def test_conflicting_bindings_rejected():
    with pytest.raises(KeyBindingsValidationError):
        CommandKeyBindings(
            [(parse_key_binding("g"), CommandKind.NEXT), (parse_key_binding("gg"), CommandKind.FIRST_SLIDE)]
        )


def test_apply_actions():
    bindings = default_bindings()
    assert bindings.apply([ch("l")]).command == Command(CommandKind.NEXT)
    assert bindings.apply([ch("g")]).buffer
    assert bindings.apply([ch("z")]).is_reset


def test_single_key_command():
    user = UserInput(default_bindings())
    assert user.handle_event(ch("l")) == Command(CommandKind.NEXT)
    assert user.handle_event(KeyEvent(KeyCode.PAGE_UP)) == Command(CommandKind.PREVIOUS)


def test_multi_key_command():
    user = UserInput(default_bindings())
    assert user.handle_event(ch("g")) is None
    assert user.handle_event(ch("g")) == Command(CommandKind.FIRST_SLIDE)


def test_go_to_slide_number():
    user = UserInput(default_bindings())
    assert user.handle_event(ch("4")) is None
    assert user.handle_event(ch("2")) is None
    assert user.handle_event(ch("G")) == Command.go_to_slide(42)


def test_control_key():
    user = UserInput(default_bindings())
    assert user.handle_event(ch("c", control=True)) == Command(CommandKind.EXIT)
    assert user.handle_event(ch("c")) is None


def test_released_events_ignored():
    user = UserInput(default_bindings())
    assert user.handle_event(ch("g")) is None
    assert user.handle_event(ch("g", released=True)) is None
    assert user.handle_event(ch("g")) == Command(CommandKind.FIRST_SLIDE)


def test_unknown_key_resets_buffer():
    user = UserInput(default_bindings())
    assert user.handle_event(ch("g")) is None
    assert user.handle_event(ch("z")) is None
    assert user.handle_event(ch("l")) == Command(CommandKind.NEXT)


def test_resize_keeps_buffer():
    user = UserInput(default_bindings())
    assert user.handle_event(ch("g")) is None
    assert user.handle_resize() == Command(CommandKind.REDRAW)
    assert user.handle_event(ch("g")) == Command(CommandKind.FIRST_SLIDE)