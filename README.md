# termslides

Building blocks for a terminal slideshow presenter:

- **Key bindings** (`termslides.keys`): parse binding patterns such as `gg`,
  `<c-r>`, `<PageDown>` or `<number>G` and match them against key events.
- **Commands** (`termslides.commands`): presentation commands, the mapping
  from key bindings to them (`CommandKeyBindings`), conflict detection
  (`validate_conflicts`), and `UserInput`, which turns a stream of key events
  into commands.
- **File watching** (`termslides.watcher`): `PresentationFileWatcher` polls a
  file's modification time and reports changes.
- **Command source** (`termslides.source`): `CommandSource` combines queued
  key events and file watching, emitting a reload command when the
  presentation file changes.
- **Configuration** (`termslides.config`): load a YAML configuration file with
  `Config.load`, or parse text or data with `parse_config`; every section has
  defaults.
- **Snippet execution** (`termslides.execute`): `SnippetExecutor` runs code
  snippets through per-language commands in a background thread and collects
  their output.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Key bindings

```python
from termslides.keys import KeyCode, KeyEvent, parse_key_binding

binding = parse_key_binding("<number>G")
events = [KeyEvent(KeyCode.char("4")), KeyEvent(KeyCode.char("2")), KeyEvent(KeyCode.char("G"))]
result = binding.match_events(events)
print(result.kind, result.number)   # MatchKind.FULL 42
print(str(binding))                 # <number>G
```

Supported keys are single characters, `<c-x>` / `<C-x>` for control
combinations, `<PageUp>`, `<PageDown>`, `<Enter>` (or `<cr>`), `<Home>`,
`<End>`, the arrow keys, `<Esc>`, `<Tab>`, `<Backspace>`, `<F1>` to `<F12>`,
and at most one `<number>` placeholder per binding. Invalid patterns raise
`KeyBindingParseError`.

A match is `MatchKind.FULL`, `MatchKind.PARTIAL` (the events so far are a
prefix of the binding) or `MatchKind.NONE`.

## Commands from key events

```python
from termslides.config import KeyBindingsConfig
from termslides.commands import UserInput
from termslides.keys import KeyCode, KeyEvent

user_input = UserInput(KeyBindingsConfig().to_command_bindings())
user_input.handle_event(KeyEvent(KeyCode.char("g")))          # None, waiting for more
print(user_input.handle_event(KeyEvent(KeyCode.char("g"))))   # first-slide command
```

Building `CommandKeyBindings` raises `KeyBindingsValidationError` when one
binding is a prefix of another, or when a go-to-slide binding has no
`<number>` placeholder.

`CommandSource` wraps this: push key events with `push_event` (and resizes
with `push_resize`), then call `try_next_command`, which handles one queued
event and otherwise returns a reload command if the presentation file has
changed, or `None`.

## Configuration

```python
from termslides.config import Config

config = Config.load("config.yaml")     # a missing file gives the defaults
bindings = config.bindings.to_command_bindings()
```

Sections are `defaults`, `typst`, `mermaid`, `options`, `bindings` and
`snippet`. Unknown fields, unknown enum values and values of the wrong type
raise `ConfigLoadError`.

## Running snippets

`SnippetExecutor` has no executors of its own; give it one per language.
`$pwd` in a command is replaced by the temporary directory the snippet is
written to, which is also the working directory.

```python
from termslides.config import LanguageSnippetExecutionConfig
from termslides.execute import SnippetExecutor

executor = SnippetExecutor({
    "bash": LanguageSnippetExecutionConfig(
        filename="script.sh",
        commands=[["bash", "$pwd/script.sh"]],
    ),
})
handle = executor.execute("bash", "echo hello", executable=True)
state = handle.wait(10)
print(state.status, state.output)       # ProcessStatus.SUCCESS ['hello']
```

Standard output and standard error are collected together, line by line, with
tabs expanded to four spaces. Invalid executor settings raise
`InvalidSnippetConfig`; executing an unsupported language or a snippet not
marked executable raises `CodeExecuteError`.

## What this package does not do

It does not parse markdown, build or render slides, read keys from the
terminal, draw images, load themes or export to PDF, and it provides no
command-line program. The configuration's image protocol, typst and mermaid
settings are only parsed and stored.