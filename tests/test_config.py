import pytest

from termslides.commands import Command, CommandKind, KeyBindingsValidationError
from termslides.config import (
    Config,
    ConfigLoadError,
    ImageProtocol,
    KeyBindingsConfig,
    ValidateOverflows,
    parse_config,
)
from termslides.keys import KeyCode, KeyEvent, parse_key_binding


def press(*chars):
    return [KeyEvent(KeyCode.char(c)) for c in chars]


def test_default_bindings():
    bindings = KeyBindingsConfig().to_command_bindings()
    assert bindings.apply(press("l")).command == Command(CommandKind.NEXT)
    assert bindings.apply(press("g", "g")).command == Command(CommandKind.FIRST_SLIDE)
    assert bindings.apply(press("4", "2", "G")).command == Command.go_to_slide(42)
    assert bindings.apply(press("?")).command == Command(CommandKind.TOGGLE_KEY_BINDINGS_CONFIG)


def test_default_reload_is_hard_reload():
    bindings = KeyBindingsConfig().to_command_bindings()
    event = KeyEvent(KeyCode.char("r"), control=True)
    assert bindings.apply([event]).command == Command(CommandKind.HARD_RELOAD)


def test_defaults():
    config = Config()
    assert config.defaults.terminal_font_size == 16
    assert config.defaults.image_protocol is ImageProtocol.AUTO
    assert config.defaults.validate_overflows is ValidateOverflows.NEVER
    assert config.typst.ppi == 300
    assert config.mermaid.scale == 2
    assert config.snippet.render.threads == 2
    assert config.snippet.exec.enable is False
    assert config.options.strict_front_matter_parsing is None


def test_missing_file_gives_defaults(tmp_path):
    assert Config.load(tmp_path / "nope.yaml") == Config()


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert Config.load(path) == Config()


def test_directory_is_io_error(tmp_path):
    with pytest.raises(ConfigLoadError, match="^io: "):
        Config.load(tmp_path)


def test_load_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "defaults:\n"
        "  theme: light\n"
        "  terminal_font_size: 20\n"
        "  image_protocol: kitty-local\n"
        "  validate_overflows: when_presenting\n"
        "options:\n"
        "  incremental_lists: true\n"
        "  command_prefix: 'cmd:'\n"
        "typst:\n"
        "  ppi: 400\n"
        "mermaid:\n"
        "  scale: 3\n"
        "snippet:\n"
        "  render:\n"
        "    threads: 4\n"
    )
    config = Config.load(path)
    assert config.defaults.theme == "light"
    assert config.defaults.terminal_font_size == 20
    assert config.defaults.image_protocol is ImageProtocol.KITTY_LOCAL
    assert config.defaults.validate_overflows is ValidateOverflows.WHEN_PRESENTING
    assert config.options.incremental_lists is True
    assert config.options.command_prefix == "cmd:"
    assert config.typst.ppi == 400
    assert config.mermaid.scale == 3
    assert config.snippet.render.threads == 4


def test_unknown_top_level_field():
    with pytest.raises(ConfigLoadError, match="invalid configuration"):
        parse_config("potato: 1\n")


def test_unknown_nested_field():
    with pytest.raises(ConfigLoadError, match="invalid configuration"):
        parse_config({"defaults": {"colour": "red"}})


def test_invalid_image_protocol():
    with pytest.raises(ConfigLoadError):
        parse_config({"defaults": {"image_protocol": "kitty_local"}})


def test_font_size_out_of_range():
    with pytest.raises(ConfigLoadError):
        parse_config({"defaults": {"terminal_font_size": 256}})


def test_wrong_type():
    with pytest.raises(ConfigLoadError):
        parse_config({"options": {"incremental_lists": "yes please"}})


def test_broken_yaml():
    with pytest.raises(ConfigLoadError, match="invalid configuration"):
        parse_config("defaults: [\n")


def test_snippet_exec_custom():
    config = parse_config(
        {
            "snippet": {
                "exec": {
                    "enable": True,
                    "custom": {
                        "python": {
                            "filename": "snippet.py",
                            "environment": {"PYTHONUNBUFFERED": "1"},
                            "commands": [["python", "$pwd/snippet.py"]],
                        }
                    },
                }
            }
        }
    )
    assert config.snippet.exec.enable is True
    python = config.snippet.exec.custom["python"]
    assert python.filename == "snippet.py"
    assert python.environment == {"PYTHONUNBUFFERED": "1"}
    assert python.commands == [["python", "$pwd/snippet.py"]]


def test_snippet_exec_requires_enable():
    with pytest.raises(ConfigLoadError, match="enable"):
        parse_config({"snippet": {"exec": {"custom": {}}}})


def test_snippet_custom_requires_commands():
    with pytest.raises(ConfigLoadError, match="commands"):
        parse_config({"snippet": {"exec": {"enable": True, "custom": {"x": {"filename": "a"}}}}})


def test_bindings_override():
    config = parse_config({"bindings": {"next": ["<c-n>", "x"]}})
    assert config.bindings.next == [parse_key_binding("<c-n>"), parse_key_binding("x")]
    assert config.bindings.previous == KeyBindingsConfig().previous
    bindings = config.bindings.to_command_bindings()
    assert bindings.apply(press("x")).command == Command(CommandKind.NEXT)


def test_invalid_binding_pattern():
    with pytest.raises(ConfigLoadError):
        parse_config({"bindings": {"next": ["<hi>"]}})


def test_go_to_slide_requires_number():
    config = parse_config({"bindings": {"go_to_slide": ["Q"]}})
    with pytest.raises(KeyBindingsValidationError, match="go_to_slide"):
        config.bindings.to_command_bindings()


def test_conflicting_bindings():
    config = parse_config({"bindings": {"next": ["l"], "exit": ["l"]}})
    with pytest.raises(KeyBindingsValidationError, match="conflicting"):
        config.bindings.to_command_bindings()