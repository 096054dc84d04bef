"""The source of presenter commands: user keys and presentation file changes."""

from __future__ import annotations

import os
from collections import deque

from termslides.commands import Command, CommandKind, UserInput
from termslides.config import KeyBindingsConfig
from termslides.keys import KeyEvent
from termslides.watcher import PresentationFileWatcher

_RESIZE = object()


class CommandSource:
    """Yields commands from queued terminal events, or a reload when the file changes."""

    def __init__(
        self,
        presentation_path: str | os.PathLike[str],
        config: KeyBindingsConfig | None = None,
    ) -> None:
        bindings = (config or KeyBindingsConfig()).to_command_bindings()
        self._watcher = PresentationFileWatcher(presentation_path)
        self._user_input = UserInput(bindings)
        self._pending: deque[object] = deque()

    def push_event(self, event: KeyEvent) -> None:
        """Queue a key event read from the terminal."""
        self._pending.append(event)

    def push_resize(self) -> None:
        """Queue a terminal resize."""
        self._pending.append(_RESIZE)

    def try_next_command(self) -> Command | None:
        """Handle at most one queued event, then check the file for changes.

        Returns ``None`` when neither produced a command.
        """
        if self._pending:
            item = self._pending.popleft()
            if item is _RESIZE:
                command: Command | None = self._user_input.handle_resize()
            else:
                command = self._user_input.handle_event(item)  # type: ignore[arg-type]
            if command is not None:
                return command
        if self._watcher.has_modifications():
            return Command(CommandKind.RELOAD)
        return None