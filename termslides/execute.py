"""Running code snippets in external processes and collecting their output."""

from __future__ import annotations

import enum
import os
import subprocess
import tempfile
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from termslides.config import LanguageSnippetExecutionConfig

_PWD_PLACEHOLDER = "$pwd"
_TEMP_PREFIX = ".termslides"


class InvalidSnippetConfig(ValueError):
    """An executor configuration for some language is unusable."""

    def __init__(self, language: str, reason: str) -> None:
        super().__init__(f"invalid snippet execution for '{language}': {reason}")
        self.language = language
        self.reason = reason


class CodeExecuteError(Exception):
    """A snippet could not be executed."""

    @classmethod
    def unsupported_execution(cls) -> CodeExecuteError:
        return cls("code language doesn't support execution")

    @classmethod
    def not_executable_code(cls) -> CodeExecuteError:
        return cls("code is not marked for execution")

    @classmethod
    def temp_dir(cls, error: OSError) -> CodeExecuteError:
        return cls(f"error creating temporary directory: {error}")

    @classmethod
    def spawn_process(cls, command: str, error: OSError) -> CodeExecuteError:
        return cls(f"error spawning process '{command}': {error}")


class ProcessStatus(enum.Enum):
    """The status of a snippet's execution."""

    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"

    def is_finished(self) -> bool:
        """Whether the execution is over, successfully or not."""
        return self in (ProcessStatus.SUCCESS, ProcessStatus.FAILURE)


@dataclass
class ExecutionState:
    """The output gathered so far and the current status."""

    output: list[str] = field(default_factory=list)
    status: ProcessStatus = ProcessStatus.RUNNING


class ExecutionHandle:
    """A handle over a snippet running in the background."""

    def __init__(self) -> None:
        self._state = ExecutionState()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    def snapshot(self) -> ExecutionState:
        """A copy of the current execution state."""
        with self._lock:
            return ExecutionState(list(self._state.output), self._state.status)

    def wait(self, timeout: float | None = None) -> ExecutionState:
        """Wait for the execution to finish and return its final state.

        Raises TimeoutError if it is still running after ``timeout`` seconds.
        """
        if self._thread is not None:
            self._thread.join(timeout)
        state = self.snapshot()
        if not state.status.is_finished():
            raise TimeoutError("snippet execution did not finish in time")
        return state

    def _push_line(self, line: str) -> None:
        with self._lock:
            self._state.output.append(line)

    def _set_status(self, status: ProcessStatus) -> None:
        with self._lock:
            self._state.status = status

    def _start(self, runner: _CommandsRunner) -> None:
        self._thread = threading.Thread(target=runner.run, daemon=True)
        self._thread.start()


class _CommandsRunner:
    """Runs a snippet's commands one after another, feeding a handle."""

    def __init__(
        self,
        handle: ExecutionHandle,
        script_directory: tempfile.TemporaryDirectory[str],
        commands: list[list[str]],
        environment: Mapping[str, str],
    ) -> None:
        self._handle = handle
        self._directory = script_directory
        self._commands = commands
        self._environment = {**os.environ, **environment}

    def run(self) -> None:
        try:
            succeeded = all(self._run_command(command) for command in self._commands)
        finally:
            self._directory.cleanup()
        self._handle._set_status(ProcessStatus.SUCCESS if succeeded else ProcessStatus.FAILURE)

    def _run_command(self, command: list[str]) -> bool:
        directory = self._directory.name
        args = [arg.replace(_PWD_PLACEHOLDER, directory) for arg in command]
        try:
            process = subprocess.Popen(
                args,
                cwd=directory,
                env=self._environment,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as error:
            self._handle._push_line(str(CodeExecuteError.spawn_process(args[0], error)))
            self._handle._set_status(ProcessStatus.FAILURE)
            return False
        with process:
            assert process.stdout is not None
            for line in process.stdout:
                self._handle._push_line(line.rstrip("\r\n").replace("\t", "    "))
            return process.wait() == 0


class SnippetExecutor:
    """Runs snippets of the languages it has executors for."""

    def __init__(
        self, custom_executors: Mapping[str, LanguageSnippetExecutionConfig] | None = None
    ) -> None:
        executors = dict(custom_executors or {})
        for language, config in executors.items():
            if not config.filename:
                raise InvalidSnippetConfig(language, "filename is empty")
            if not config.commands:
                raise InvalidSnippetConfig(language, "no commands given")
            if any(not command for command in config.commands):
                raise InvalidSnippetConfig(language, "empty command given")
        self._executors = dict(sorted(executors.items()))

    def is_execution_supported(self, language: str) -> bool:
        """Whether snippets of this language can be executed."""
        return language in self._executors

    def execute(self, language: str, contents: str, executable: bool = True) -> ExecutionHandle:
        """Start running a snippet in the background and return its handle."""
        if not executable:
            raise CodeExecuteError.not_executable_code()
        config = self._executors.get(language)
        if config is None:
            raise CodeExecuteError.unsupported_execution()
        try:
            directory = tempfile.TemporaryDirectory(prefix=_TEMP_PREFIX)
        except OSError as error:
            raise CodeExecuteError.temp_dir(error) from error
        try:
            Path(directory.name, config.filename).write_text(contents, encoding="utf-8")
        except OSError as error:
            directory.cleanup()
            raise CodeExecuteError.temp_dir(error) from error
        handle = ExecutionHandle()
        runner = _CommandsRunner(
            handle,
            directory,
            [list(command) for command in config.commands],
            dict(config.environment),
        )
        handle._start(runner)
        return handle