"""User configuration loaded from a YAML file."""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from termslides.commands import CommandKeyBindings, CommandKind
from termslides.keys import KeyBinding, KeyBindingParseError, parse_key_binding

DEFAULT_FONT_SIZE = 16
DEFAULT_SNIPPET_RENDER_THREADS = 2
DEFAULT_TYPST_PPI = 300
DEFAULT_MERMAID_SCALE = 2


class ConfigLoadError(Exception):
    """The configuration file could not be read or is invalid."""

    @classmethod
    def io(cls, error: OSError) -> ConfigLoadError:
        return cls(f"io: {error}")

    @classmethod
    def invalid(cls, reason: str) -> ConfigLoadError:
        return cls(f"invalid configuration: {reason}")


class ValidateOverflows(enum.Enum):
    """When to check that slides fit the terminal."""

    NEVER = "never"
    ALWAYS = "always"
    WHEN_PRESENTING = "when_presenting"
    WHEN_DEVELOPING = "when_developing"


class ImageProtocol(enum.Enum):
    """The protocol used to draw images in the terminal."""

    AUTO = "auto"
    ITERM2 = "iterm2"
    KITTY_LOCAL = "kitty-local"
    KITTY_REMOTE = "kitty-remote"
    SIXEL = "sixel"
    ASCII_BLOCKS = "ascii-blocks"


def _mapping(value: Any, where: str, allowed: tuple[str, ...] | None) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigLoadError.invalid(f"{where}: expected a mapping")
    if allowed is not None:
        for key in value:
            if key not in allowed:
                expected = ", ".join(allowed)
                raise ConfigLoadError.invalid(
                    f"{where}: unknown field `{key}`, expected one of {expected}"
                )
    return value


def _bool(value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigLoadError.invalid(f"{where}: expected a boolean")
    return value


def _optional_bool(value: Any, where: str) -> bool | None:
    return None if value is None else _bool(value, where)


def _string(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise ConfigLoadError.invalid(f"{where}: expected a string")
    return value


def _optional_string(value: Any, where: str) -> str | None:
    return None if value is None else _string(value, where)


def _unsigned(value: Any, where: str, bits: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigLoadError.invalid(f"{where}: expected an integer")
    if not 0 <= value < 2**bits:
        raise ConfigLoadError.invalid(f"{where}: integer {value} out of range")
    return value


def _enum(enum_type: type[enum.Enum], value: Any, where: str) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        variants = ", ".join(member.value for member in enum_type)
        raise ConfigLoadError.invalid(
            f"{where}: unknown variant `{value}`, expected one of {variants}"
        ) from None


@dataclass
class DefaultsConfig:
    """Defaults applied to every presentation."""

    theme: str | None = None
    terminal_font_size: int = DEFAULT_FONT_SIZE
    image_protocol: ImageProtocol = ImageProtocol.AUTO
    validate_overflows: ValidateOverflows = ValidateOverflows.NEVER

    @classmethod
    def from_data(cls, data: Any) -> DefaultsConfig:
        where = "defaults"
        raw = _mapping(
            data, where, ("theme", "terminal_font_size", "image_protocol", "validate_overflows")
        )
        config = cls(theme=_optional_string(raw.get("theme"), f"{where}.theme"))
        if "terminal_font_size" in raw:
            config.terminal_font_size = _unsigned(
                raw["terminal_font_size"], f"{where}.terminal_font_size", 8
            )
        if "image_protocol" in raw:
            config.image_protocol = _enum(
                ImageProtocol, raw["image_protocol"], f"{where}.image_protocol"
            )
        if "validate_overflows" in raw:
            config.validate_overflows = _enum(
                ValidateOverflows, raw["validate_overflows"], f"{where}.validate_overflows"
            )
        return config


@dataclass
class OptionsConfig:
    """Presentation parsing options; unset values fall back to built-in defaults."""

    implicit_slide_ends: bool | None = None
    command_prefix: str | None = None
    image_attributes_prefix: str | None = None
    incremental_lists: bool | None = None
    end_slide_shorthand: bool | None = None
    strict_front_matter_parsing: bool | None = None

    @classmethod
    def from_data(cls, data: Any) -> OptionsConfig:
        where = "options"
        bools = (
            "implicit_slide_ends",
            "incremental_lists",
            "end_slide_shorthand",
            "strict_front_matter_parsing",
        )
        strings = ("command_prefix", "image_attributes_prefix")
        raw = _mapping(data, where, bools + strings)
        values: dict[str, Any] = {}
        for name in bools:
            values[name] = _optional_bool(raw.get(name), f"{where}.{name}")
        for name in strings:
            values[name] = _optional_string(raw.get(name), f"{where}.{name}")
        return cls(**values)


@dataclass
class LanguageSnippetExecutionConfig:
    """How to run snippets of one programming language."""

    filename: str
    commands: list[list[str]]
    environment: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_data(cls, data: Any, where: str) -> LanguageSnippetExecutionConfig:
        raw = _mapping(data, where, None)
        for required in ("filename", "commands"):
            if required not in raw:
                raise ConfigLoadError.invalid(f"{where}: missing field `{required}`")
        filename = _string(raw["filename"], f"{where}.filename")
        raw_commands = raw["commands"]
        if not isinstance(raw_commands, list):
            raise ConfigLoadError.invalid(f"{where}.commands: expected a sequence")
        commands = []
        for command in raw_commands:
            if not isinstance(command, list):
                raise ConfigLoadError.invalid(f"{where}.commands: expected a sequence")
            commands.append([_string(arg, f"{where}.commands") for arg in command])
        environment = {
            _string(key, f"{where}.environment"): _string(value, f"{where}.environment")
            for key, value in _mapping(raw.get("environment"), f"{where}.environment", None).items()
        }
        return cls(filename=filename, commands=commands, environment=environment)


@dataclass
class SnippetExecConfig:
    """Snippet execution settings."""

    enable: bool = False
    custom: dict[str, LanguageSnippetExecutionConfig] = field(default_factory=dict)

    @classmethod
    def from_data(cls, data: Any) -> SnippetExecConfig:
        where = "snippet.exec"
        raw = _mapping(data, where, ("enable", "custom"))
        if "enable" not in raw:
            raise ConfigLoadError.invalid(f"{where}: missing field `enable`")
        custom = {
            _string(language, f"{where}.custom"): LanguageSnippetExecutionConfig.from_data(
                value, f"{where}.custom.{language}"
            )
            for language, value in _mapping(raw.get("custom"), f"{where}.custom", None).items()
        }
        return cls(enable=_bool(raw["enable"], f"{where}.enable"), custom=dict(sorted(custom.items())))


@dataclass
class SnippetRenderConfig:
    """Snippet auto rendering settings."""

    threads: int = DEFAULT_SNIPPET_RENDER_THREADS

    @classmethod
    def from_data(cls, data: Any) -> SnippetRenderConfig:
        where = "snippet.render"
        raw = _mapping(data, where, ("threads",))
        if "threads" in raw:
            return cls(threads=_unsigned(raw["threads"], f"{where}.threads", 64))
        return cls()


@dataclass
class SnippetConfig:
    """Settings for code snippets."""

    exec: SnippetExecConfig = field(default_factory=SnippetExecConfig)
    render: SnippetRenderConfig = field(default_factory=SnippetRenderConfig)

    @classmethod
    def from_data(cls, data: Any) -> SnippetConfig:
        raw = _mapping(data, "snippet", ("exec", "render"))
        config = cls()
        if "exec" in raw:
            config.exec = SnippetExecConfig.from_data(raw["exec"])
        if "render" in raw:
            config.render = SnippetRenderConfig.from_data(raw["render"])
        return config


@dataclass
class TypstConfig:
    """Settings for rendering typst and latex formulas."""

    ppi: int = DEFAULT_TYPST_PPI

    @classmethod
    def from_data(cls, data: Any) -> TypstConfig:
        raw = _mapping(data, "typst", ("ppi",))
        if "ppi" in raw:
            return cls(ppi=_unsigned(raw["ppi"], "typst.ppi", 32))
        return cls()


@dataclass
class MermaidConfig:
    """Settings for rendering mermaid diagrams."""

    scale: int = DEFAULT_MERMAID_SCALE

    @classmethod
    def from_data(cls, data: Any) -> MermaidConfig:
        raw = _mapping(data, "mermaid", ("scale",))
        if "scale" in raw:
            return cls(scale=_unsigned(raw["scale"], "mermaid.scale", 32))
        return cls()


def _bindings(*patterns: str) -> list[KeyBinding]:
    return [parse_key_binding(pattern) for pattern in patterns]


def _default(*patterns: str) -> Any:
    return field(default_factory=lambda: _bindings(*patterns))


# The order here is the order bindings are tried in.
_BINDING_COMMANDS: tuple[tuple[str, CommandKind], ...] = (
    ("next", CommandKind.NEXT),
    ("next_fast", CommandKind.NEXT_FAST),
    ("previous", CommandKind.PREVIOUS),
    ("previous_fast", CommandKind.PREVIOUS_FAST),
    ("first_slide", CommandKind.FIRST_SLIDE),
    ("last_slide", CommandKind.LAST_SLIDE),
    ("go_to_slide", CommandKind.GO_TO_SLIDE),
    ("exit", CommandKind.EXIT),
    ("reload", CommandKind.HARD_RELOAD),
    ("toggle_slide_index", CommandKind.TOGGLE_SLIDE_INDEX),
    ("toggle_bindings", CommandKind.TOGGLE_KEY_BINDINGS_CONFIG),
    ("execute_code", CommandKind.RENDER_ASYNC_OPERATIONS),
    ("close_modal", CommandKind.CLOSE_MODAL),
)


@dataclass
class KeyBindingsConfig:
    """The key bindings for every command."""

    next: list[KeyBinding] = _default("l", "j", "<right>", "<page_down>", "<down>", " ")
    next_fast: list[KeyBinding] = _default("n")
    previous: list[KeyBinding] = _default("h", "k", "<left>", "<page_up>", "<up>")
    previous_fast: list[KeyBinding] = _default("p")
    first_slide: list[KeyBinding] = _default("gg")
    last_slide: list[KeyBinding] = _default("G")
    go_to_slide: list[KeyBinding] = _default("<number>G")
    execute_code: list[KeyBinding] = _default("<c-e>")
    reload: list[KeyBinding] = _default("<c-r>")
    toggle_slide_index: list[KeyBinding] = _default("<c-p>")
    toggle_bindings: list[KeyBinding] = _default("?")
    close_modal: list[KeyBinding] = _default("<esc>")
    exit: list[KeyBinding] = _default("<c-c>")

    @classmethod
    def from_data(cls, data: Any) -> KeyBindingsConfig:
        names = tuple(name for name, _ in _BINDING_COMMANDS)
        raw = _mapping(data, "bindings", names)
        values: dict[str, list[KeyBinding]] = {}
        for name, patterns in raw.items():
            where = f"bindings.{name}"
            if not isinstance(patterns, list):
                raise ConfigLoadError.invalid(f"{where}: expected a sequence")
            try:
                values[name] = [parse_key_binding(_string(p, where)) for p in patterns]
            except KeyBindingParseError as error:
                raise ConfigLoadError.invalid(f"{where}: {error}") from None
        return cls(**values)

    def to_command_bindings(self) -> CommandKeyBindings:
        """Build the validated command bindings for these settings."""
        return CommandKeyBindings(
            (binding, kind)
            for name, kind in _BINDING_COMMANDS
            for binding in getattr(self, name)
        )


_SECTIONS = {
    "defaults": DefaultsConfig,
    "typst": TypstConfig,
    "mermaid": MermaidConfig,
    "options": OptionsConfig,
    "bindings": KeyBindingsConfig,
    "snippet": SnippetConfig,
}


@dataclass
class Config:
    """The whole user configuration."""

    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    typst: TypstConfig = field(default_factory=TypstConfig)
    mermaid: MermaidConfig = field(default_factory=MermaidConfig)
    options: OptionsConfig = field(default_factory=OptionsConfig)
    bindings: KeyBindingsConfig = field(default_factory=KeyBindingsConfig)
    snippet: SnippetConfig = field(default_factory=SnippetConfig)

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> Config:
        """Load the configuration file; a missing file gives the defaults."""
        try:
            contents = Path(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls()
        except OSError as error:
            raise ConfigLoadError.io(error) from error
        except UnicodeDecodeError as error:
            raise ConfigLoadError.invalid(str(error)) from error
        return parse_config(contents)


def parse_config(data: Any) -> Config:
    """Build a configuration from YAML text or from already parsed YAML data."""
    if isinstance(data, (str, bytes)):
        try:
            data = yaml.safe_load(data)
        except yaml.YAMLError as error:
            raise ConfigLoadError.invalid(str(error)) from error
    raw = _mapping(data, "config", tuple(_SECTIONS))
    return Config(**{name: _SECTIONS[name].from_data(value) for name, value in raw.items()})