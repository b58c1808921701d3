"""
Child process execution with per-stream output capture and log routing.

This module provides the process-spawning collaborator used by the
Terraform service: commands run with shell=False, stdout/stderr are
streamed line by line to a logger at a configurable level, and a
non-zero exit code raises ProcessExitError.
"""

import logging
import subprocess
import threading
from dataclasses import dataclass, fields, replace
from typing import List, Optional, Sequence

from ..security.sanitizer import InputSanitizer, SecurityError
from ..utils import subprocess_creation_flags
from .errors import ProcessExitError

logger = logging.getLogger(__name__)

# Log level value that drops the stream's output instead of logging it.
SUPPRESS = "suppress"


@dataclass
class SpawnOptions:
    """
    Options for a spawned process.

    Fields left to None are "unset": they do not override anything when
    layered with override(), and fall back to the runner defaults when
    the process is spawned.
    """
    working_directory: Optional[str] = None
    capture_stdout: Optional[bool] = None
    capture_stderr: Optional[bool] = None
    stdout_log: Optional[str] = None  # level name, or SUPPRESS
    stderr_log: Optional[str] = None

    @classmethod
    def with_logging(cls, level: str, **kwargs) -> "SpawnOptions":
        """Build options routing both streams to the same log level."""
        return cls(stdout_log=level, stderr_log=level, **kwargs)

    def override(self, other: Optional["SpawnOptions"]) -> "SpawnOptions":
        """Return a copy of these options with the set fields of `other` applied on top."""
        if other is None:
            return replace(self)
        updates = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **updates)


@dataclass
class CommandResult:
    """Result of a process execution."""
    exit_code: int
    stdout: Optional[str] = None  # only set when captured
    stderr: Optional[str] = None
    command: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ProcessRunner:
    """
    Spawns executables and waits for them to exit.

    Output of both streams is always read (so that it can be logged);
    it is only returned in the CommandResult when capture is requested.
    """

    DEFAULT_LOG_LEVEL = "info"
    # Seconds to wait for the output readers of a terminated process.
    READER_JOIN_TIMEOUT = 5

    def __init__(
        self,
        timeout: Optional[float] = None,
        output_logger: Optional[logging.Logger] = None,
    ):
        self._timeout = timeout
        self._output_logger = output_logger or logging.getLogger("terraguard.process")

    def spawn(
        self,
        executable: str,
        args: Sequence[str],
        options: Optional[SpawnOptions] = None,
    ) -> CommandResult:
        """
        Run `executable` with `args` and return its result.

        Raises:
            ProcessExitError: If the process exits with a non-zero code
                or does not finish before the timeout.
            SecurityError: If an argument is unsafe.
            OSError: If the executable cannot be started.
        """
        options = options or SpawnOptions()
        args = list(args)
        cmd = [executable] + args

        for arg in cmd:
            if not InputSanitizer.is_safe_command_arg(arg):
                raise SecurityError(f"Unsafe command argument: {arg!r}")

        stdout_level = self._resolve_level(options.stdout_log)
        stderr_level = self._resolve_level(options.stderr_log)
        stdout_lines: List[str] = []
        stderr_lines: List[str] = []

        logger.debug(f"Spawning: {' '.join(cmd)}")
        process = subprocess.Popen(
            cmd,
            cwd=options.working_directory,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            shell=False,
            creationflags=subprocess_creation_flags(),
        )

        def _reader(stream, lines: List[str], level: Optional[int]):
            for line in stream:
                line = line.rstrip("\n")
                lines.append(line)
                self._emit(level, line)

        readers = [
            threading.Thread(target=_reader, args=(process.stdout, stdout_lines, stdout_level), daemon=True),
            threading.Thread(target=_reader, args=(process.stderr, stderr_lines, stderr_level), daemon=True),
        ]
        for reader in readers:
            reader.start()

        try:
            process.wait(timeout=self._timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Command timed out after {self._timeout}s: {' '.join(cmd)}")
            process.terminate()
            process.wait()
            for reader in readers:
                reader.join(timeout=self.READER_JOIN_TIMEOUT)
            result = CommandResult(
                exit_code=-1,
                stdout="\n".join(stdout_lines) if options.capture_stdout else None,
                stderr="Command timed out",
                command=executable,
            )
            raise ProcessExitError(executable, args, result)

        for reader in readers:
            reader.join()

        result = CommandResult(
            exit_code=process.returncode,
            stdout="\n".join(stdout_lines) if options.capture_stdout else None,
            stderr="\n".join(stderr_lines) if options.capture_stderr else None,
            command=executable,
        )

        if not result.success:
            raise ProcessExitError(executable, args, result)

        return result

    def _resolve_level(self, level: Optional[str]) -> Optional[int]:
        """Map a level name to a logging level, or None when suppressed."""
        if level is None:
            level = self.DEFAULT_LOG_LEVEL
        if level == SUPPRESS:
            return None
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        return resolved

    def _emit(self, level: Optional[int], line: str):
        if level is not None:
            self._output_logger.log(level, line)
