"""
Dispatchers - deliver a RemoteInvocation to the machine holding the artifact.

Location string routing (DispatcherFactory.from_location):
    (empty) / local://     → LocalDispatcher (artifact is on this machine)
    user@host              → SSHDispatcher(user, host, port=22)
    user@host:2222         → SSHDispatcher with custom SSH port
    user@[fe80::1]:2222    → SSHDispatcher with IPv6

The SSH hand-off: the invocation payload goes to ``python -m redeploy.remote``
as the first stdin line, progress lines stream back on stderr and are relayed
as they arrive, and a single JSON document on stdout carries the result.
While the remote side runs, a ``cancel`` line on stdin stops its retries.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from redeploy.core.implementations import SubprocessExecutor
from redeploy.core.protocols import Logger, ProcessExecutor, ProcessHandle

from . import exceptions
from .exceptions import DispatchError, RedeployError
from .invocation import InvocationResult, RemoteInvocation

logger = logging.getLogger(__name__)

REMOTE_MODULE = "redeploy.remote"
CANCEL_REQUEST = "cancel"


class Dispatcher(Protocol):
    """Runs an invocation where ``artifact_path`` resides."""

    def dispatch(self, invocation: RemoteInvocation, artifact_path: Union[str, Path]) -> InvocationResult:
        ...

    def cancel(self) -> None:
        """Ask a running dispatch to stop retrying; the attempt in flight completes."""
        ...


class LocalDispatcher:
    """The artifact is local: run the invocation in this process."""

    def dispatch(self, invocation: RemoteInvocation, artifact_path: Union[str, Path]) -> InvocationResult:
        return invocation.execute(Path(artifact_path))

    def cancel(self) -> None:
        # Local invocations stop through the orchestrator's time provider.
        pass


def error_to_dict(error: BaseException) -> Dict[str, str]:
    """Wire form of an error raised on the executing side."""
    data = {"type": type(error).__name__, "message": str(error)}
    if isinstance(error, exceptions.UnsupportedArtifactType):
        data["extension"] = error.extension
    elif isinstance(error, exceptions.MissingArtifact):
        data["path"] = str(error.path)
    return data


def error_from_dict(data: Dict[str, str]) -> RedeployError:
    """Rebuild a wire error as the matching RedeployError subclass.

    The original message is preserved so operators see the container-side
    diagnostic. Unknown types become DispatchError.
    """
    name = data.get("type", "")
    message = data.get("message", "")
    cls = getattr(exceptions, name, None)
    if not (isinstance(cls, type) and issubclass(cls, RedeployError)):
        return DispatchError(f"{name}: {message}" if name else message)
    if cls is exceptions.UnsupportedArtifactType:
        return cls(data.get("extension", ""))
    if cls is exceptions.MissingArtifact:
        return cls(data.get("path", ""))
    return cls(message)


class SSHDispatcher:
    """
    Runs invocations on a remote host via SSH.

    Requirements on the host: passwordless SSH, Python 3 with redeploy installed.
    """

    def __init__(
        self,
        user: str,
        host: str,
        ssh_port: int = 22,
        python: str = "python3",
        process_executor: Optional[ProcessExecutor] = None,
        logger: Optional[Logger] = None,
        debug: bool = False
    ):
        """
        Args:
            user: SSH username
            host: IP or hostname
            ssh_port: SSH port (default: 22)
            python: Interpreter on the host that can import redeploy
            process_executor: Runs the ssh client (default: subprocess)
            logger: Receives progress lines relayed from the host; when None
                the invocation's own logger is used
            debug: Ask the host for driver debug lines (relayed as debug)
        """
        self.user = user
        self.host = host
        self.ssh_port = ssh_port
        self.python = python
        self.process = process_executor or SubprocessExecutor()
        self.log = logger
        self.debug = debug
        self._handle: Optional[ProcessHandle] = None
        self._cancelled = False

    def _ssh_cmd(self, command: str) -> List[str]:
        """Build SSH command with custom port."""
        return [
            "ssh",
            "-p", str(self.ssh_port),
            "-o", "BatchMode=yes",
            f"{self.user}@{self.host}",
            command
        ]

    def remote_command(self) -> List[str]:
        command = f"{self.python} -m {REMOTE_MODULE}"
        if self.debug:
            command += " --debug"
        return self._ssh_cmd(command)

    def _relay_line(self, sink: Logger, line: str) -> None:
        if not line.strip():
            return
        if line.startswith("Warning: "):
            sink.warning(line[len("Warning: "):])
        elif line.startswith("Error: "):
            sink.error(line[len("Error: "):])
        elif line.startswith("Debug: "):
            sink.debug(line[len("Debug: "):])
        else:
            sink.info(line)

    def _parse_result(self, stdout: str) -> Optional[dict]:
        # Login banners may precede the result; it is the last non-empty line.
        lines = [line for line in (stdout or "").splitlines() if line.strip()]
        if not lines:
            return None
        try:
            return json.loads(lines[-1])
        except json.JSONDecodeError:
            return None

    def _write_stdin(self, handle: ProcessHandle, line: str) -> bool:
        try:
            handle.stdin.write(line + "\n")
            handle.stdin.flush()
        except (OSError, ValueError) as e:
            # ssh already exited; its stderr and exit code tell the operator why.
            logger.debug("stdin to %s closed: %s", self.host, e)
            return False
        return True

    def cancel(self) -> None:
        """Forward a cancel request to the host.

        Safe to call from a signal handler. The remote retry loop stops at its
        next backoff wait and reports ``cancelled``.
        """
        self._cancelled = True
        handle = self._handle
        if handle is not None:
            self._write_stdin(handle, CANCEL_REQUEST)

    def dispatch(self, invocation: RemoteInvocation, artifact_path: Union[str, Path]) -> InvocationResult:
        """
        Send the invocation to the host and wait for its answer.

        ssh runs in its own session so Ctrl-C in the terminal does not kill it;
        use ``cancel()`` to stop the remote retries instead.

        Raises:
            DispatchError: ssh failed or no parsable result came back
            RedeployError: Error raised on the host, rebuilt locally with the
                original message
        """
        request = json.dumps({
            "invocation": invocation.to_payload(),
            "artifact_path": str(artifact_path),
        })
        cmd = self.remote_command()
        sink = self.log or invocation.log
        logger.debug("dispatching to %s@%s:%s", self.user, self.host, self.ssh_port)

        handle = self.process.popen(
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            new_session=True
        )
        self._handle = handle
        try:
            self._write_stdin(handle, request)
            if self._cancelled:
                self._write_stdin(handle, CANCEL_REQUEST)
            # Relay progress as it arrives; the remote writes only the result to stdout.
            for line in handle.stderr:
                self._relay_line(sink, line.rstrip("\r\n"))
            stdout = handle.stdout.read()
            returncode = handle.wait()
        finally:
            self._handle = None
            try:
                handle.stdin.close()
            except OSError as e:
                logger.debug("closing stdin to %s: %s", self.host, e)

        reply = self._parse_result(stdout)
        if reply is None:
            raise DispatchError(
                f"No result from {self.user}@{self.host}:{self.ssh_port} "
                f"(ssh exit code {returncode})\n\n"
                f"Troubleshooting:\n"
                f"  1. Verify SSH access: ssh -p {self.ssh_port} {self.user}@{self.host}\n"
                f"  2. Verify redeploy is installed there: "
                f"ssh -p {self.ssh_port} {self.user}@{self.host} {self.python} -m {REMOTE_MODULE} --help"
            )
        if "error" in reply:
            raise error_from_dict(reply["error"])
        return InvocationResult(handled=bool(reply.get("handled")), status=reply.get("status", "deployed"))


class DispatcherFactory:
    """Factory for parsing artifact location strings into dispatchers."""

    @staticmethod
    def from_location(location: Optional[str], **kwargs) -> Dispatcher:
        """
        Parse a location string.

        Args:
            location: Where the artifact lives (None for this machine)
            **kwargs: Passed to SSHDispatcher (python, process_executor, logger, debug)

        Raises:
            ValueError: If format not recognized
        """
        if not location or location == "local://":
            return LocalDispatcher()

        if '@' in location:
            user, host_part = location.split('@', 1)

            if host_part.startswith('['):
                # IPv6: user@[fe80::1] or user@[fe80::1]:2222
                bracket_end = host_part.find(']')
                if bracket_end == -1:
                    raise ValueError(f"Malformed IPv6 address: {location}")
                host = host_part[1:bracket_end]
                remainder = host_part[bracket_end + 1:]
                port = int(remainder[1:]) if remainder.startswith(':') else 22
            elif ':' in host_part:
                host, port_str = host_part.rsplit(':', 1)
                port = int(port_str)
            else:
                host = host_part
                port = 22

            if not user or not host:
                raise ValueError(f"Malformed SSH location: {location}")
            return SSHDispatcher(user, host, ssh_port=port, **kwargs)

        raise ValueError(
            f"Unknown artifact location: {location}\n"
            f"Expected: local:// | user@host | user@host:port | user@[ipv6]:port"
        )
