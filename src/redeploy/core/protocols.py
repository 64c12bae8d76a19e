"""Protocol definitions for dependency injection.

This module defines Protocol-based abstractions for every external dependency
the deployment core touches: the logging sink, the filesystem, subprocesses,
time (including the cancellable backoff wait), the process environment and
configuration loading.

Protocols use structural typing, so any object with matching methods satisfies
them without inheritance. Tests pass ``Mock(spec=...)`` objects instead of the
production implementations in ``redeploy.core.implementations``.
"""

from typing import Protocol, Dict, Any, List, Optional, TextIO, Union
from pathlib import Path


class Logger(Protocol):
    """Line-oriented, append-only logging sink.

    The deployment core writes progress and error lines here and never reads
    anything back.
    """

    def info(self, message: str) -> None:
        """Log informational message."""
        ...

    def warning(self, message: str) -> None:
        """Log warning message."""
        ...

    def error(self, message: str) -> None:
        """Log error message."""
        ...

    def debug(self, message: str) -> None:
        """Log debug message."""
        ...


class FileSystemService(Protocol):
    """Abstraction for the few filesystem queries the core needs."""

    def exists(self, path: Union[str, Path]) -> bool:
        """Check if path exists."""
        ...

    def read_file(self, path: Union[str, Path]) -> str:
        """Read entire file as string."""
        ...


class ProcessHandle(Protocol):
    """Abstraction for subprocess handle.

    Wraps subprocess.Popen; the pipes requested at start are text streams.
    """

    stdin: Optional[TextIO]
    stdout: Optional[TextIO]
    stderr: Optional[TextIO]

    def poll(self) -> Optional[int]:
        """Check if process has terminated. Returns exit code or None."""
        ...

    def wait(self) -> int:
        """Wait for process to terminate and return exit code."""
        ...


class ProcessExecutor(Protocol):
    """Abstraction for process execution.

    Wraps subprocess.Popen so boundary dispatch can be tested without ssh.
    """

    def popen(
        self,
        cmd: List[str],
        stdin: Optional[Any] = None,
        stdout: Optional[Any] = None,
        stderr: Optional[Any] = None,
        env: Optional[Dict[str, str]] = None,
        new_session: bool = False
    ) -> ProcessHandle:
        """Execute command and return process handle.

        ``new_session`` detaches the child from the terminal's process group,
        so a Ctrl-C aimed at this process does not reach it.
        """
        ...


class TimeProvider(Protocol):
    """Abstraction for time operations.

    ``wait`` is the cancellable sleep used between deployment attempts.
    """

    def wait(self, seconds: float) -> bool:
        """Block for ``seconds`` unless cancelled.

        Returns:
            True if the wait was interrupted by cancellation, False if the
            full interval elapsed.
        """
        ...

    def cancel(self) -> None:
        """Make the current and every later ``wait`` return True."""
        ...


class EnvironmentProvider(Protocol):
    """Abstraction for access to the process environment."""

    def get_environ(self) -> Dict[str, str]:
        """Get copy of environment variables."""
        ...


class ConfigLoader(Protocol):
    """Abstraction for configuration file loading."""

    def load_yaml(self, path: str) -> Dict[str, Any]:
        """Load YAML file and return parsed dictionary."""
        ...
