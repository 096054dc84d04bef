"""Polling watcher over the presentation file."""

from __future__ import annotations

import os
from pathlib import Path


class PresentationFileWatcher:
    """Tracks a file's modification time to tell whether it changed.

    Polling keeps this simple: the last seen modification time is stored and
    compared against the current one on each check.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        try:
            self._last_modification = self.path.stat().st_mtime_ns
        except OSError:
            self._last_modification = 0

    def has_modifications(self) -> bool:
        """Whether the file changed since the last check."""
        try:
            modified = self.path.stat().st_mtime_ns
        except OSError:
            # a file that vanished has changed too
            return True
        if modified > self._last_modification:
            self._last_modification = modified
            return True
        return False