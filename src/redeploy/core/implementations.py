"""Production implementations of dependency injection protocols.

These wrap the real console, filesystem, subprocess, clock and YAML parser.
For testing, use mocks or test doubles instead of these implementations.
"""

import os
import subprocess
import sys
import threading
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, TextIO, Union


class ConsoleLogger:
    """Production logger that prints to console (stdout/stderr)."""

    def info(self, message: str) -> None:
        """Print info message to stdout."""
        print(message)

    def warning(self, message: str) -> None:
        """Print warning message to stdout."""
        print(f"Warning: {message}")

    def error(self, message: str) -> None:
        """Print error message to stderr."""
        print(f"Error: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        """Print debug message to stdout."""
        print(f"Debug: {message}")


class StreamLogger:
    """Logger writing every line to a single text stream.

    Used on the far side of an SSH dispatch, where stdout is reserved for the
    JSON result and progress lines travel back over stderr.
    """

    def __init__(self, stream: TextIO):
        self.stream = stream

    def _write(self, line: str) -> None:
        self.stream.write(line + "\n")
        self.stream.flush()

    def info(self, message: str) -> None:
        self._write(message)

    def warning(self, message: str) -> None:
        self._write(f"Warning: {message}")

    def error(self, message: str) -> None:
        self._write(f"Error: {message}")

    def debug(self, message: str) -> None:
        self._write(f"Debug: {message}")


class RealFileSystemService:
    """Production filesystem service using pathlib."""

    def exists(self, path: Union[str, Path]) -> bool:
        """Check if path exists."""
        return Path(path).exists()

    def read_file(self, path: Union[str, Path]) -> str:
        """Read entire file as string."""
        with open(path, 'r') as f:
            return f.read()


class SubprocessHandle:
    """Wrapper around subprocess.Popen handle."""

    def __init__(self, popen_handle):
        """Initialize with actual subprocess.Popen object."""
        self._handle = popen_handle
        self.stdin = popen_handle.stdin
        self.stdout = popen_handle.stdout
        self.stderr = popen_handle.stderr

    def poll(self) -> Optional[int]:
        """Check if process has terminated."""
        return self._handle.poll()

    def wait(self) -> int:
        """Wait for process to terminate."""
        return self._handle.wait()


class SubprocessExecutor:
    """Production process executor using real subprocess.Popen."""

    def popen(
        self,
        cmd: List[str],
        stdin: Optional[Any] = None,
        stdout: Optional[Any] = None,
        stderr: Optional[Any] = None,
        env: Optional[Dict[str, str]] = None,
        new_session: bool = False
    ) -> SubprocessHandle:
        """Execute command and return process handle.

        Pipes are line-buffered text streams.
        """
        handle = subprocess.Popen(
            cmd,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
            env=env,
            text=True,
            bufsize=1,
            start_new_session=new_session
        )
        return SubprocessHandle(handle)


class SystemTimeProvider:
    """Production time provider with a cancellable wait.

    ``cancel()`` may be called from any thread; a wait in progress returns
    immediately and every later wait returns at once as well.
    """

    def __init__(self):
        self._cancelled = threading.Event()

    def wait(self, seconds: float) -> bool:
        """Block for ``seconds``; return True if cancelled meanwhile."""
        return self._cancelled.wait(seconds)

    def cancel(self) -> None:
        """Interrupt current and future waits."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class SystemEnvironmentProvider:
    """Production environment provider using os.environ."""

    def get_environ(self) -> Dict[str, str]:
        """Get copy of environment variables."""
        return dict(os.environ)


class YamlConfigLoader:
    """Production config loader using real YAML parser."""

    def __init__(self, filesystem: 'RealFileSystemService'):
        """Initialize with filesystem service for reading files."""
        self.fs = filesystem

    def load_yaml(self, path: str) -> Dict[str, Any]:
        """Load YAML file and return parsed dictionary.

        An empty file yields an empty dictionary.
        """
        content = self.fs.read_file(path)
        return yaml.safe_load(content) or {}
