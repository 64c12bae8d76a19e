"""
Executing side of an SSH dispatch.

Run as ``python -m redeploy.remote`` on the machine holding the artifact.
Reads ``{"invocation": ..., "artifact_path": ...}`` as the first stdin line,
writes progress lines to stderr and exactly one JSON line to stdout:

    {"handled": true, "status": "deployed"}
    {"error": {"type": "ContainerError", "message": "..."}}

A later ``cancel`` line on stdin stops retrying at the next backoff wait.
"""
import argparse
import json
import logging
import sys
import threading
from pathlib import Path
from typing import Optional, TextIO

from redeploy.core import StreamLogger, SystemTimeProvider
from redeploy.core.protocols import TimeProvider
from redeploy.deploy.dispatch import CANCEL_REQUEST, error_to_dict
from redeploy.deploy.exceptions import DeploymentCancelled, DispatchError, RedeployError
from redeploy.deploy.invocation import RemoteInvocation


def watch_for_cancel(stdin: TextIO, time_provider: TimeProvider) -> None:
    """Cancel ``time_provider`` when a cancel line arrives; return at EOF."""
    for line in stdin:
        if line.strip() == CANCEL_REQUEST:
            time_provider.cancel()
            return


def run(stdin: TextIO, stdout: TextIO, stderr: TextIO, time_provider=None) -> int:
    """Execute one request. Returns the process exit code."""
    logger = StreamLogger(stderr)
    time_provider = time_provider or SystemTimeProvider()

    def _reply(data) -> None:
        stdout.write(json.dumps(data) + "\n")
        stdout.flush()

    try:
        request = json.loads(stdin.readline())
        invocation = RemoteInvocation.from_payload(
            request["invocation"],
            logger,
            time_provider=time_provider,
        )
        artifact_path = Path(request["artifact_path"])
    except (ValueError, KeyError, TypeError) as e:
        _reply({"error": error_to_dict(DispatchError(f"Malformed invocation request: {e}"))})
        return 1
    except RedeployError as e:
        _reply({"error": error_to_dict(e)})
        return 1

    watcher = threading.Thread(
        target=watch_for_cancel, args=(stdin, time_provider), name="redeploy-cancel", daemon=True
    )
    watcher.start()

    try:
        result = invocation.execute(artifact_path)
    except KeyboardInterrupt:
        _reply({"error": error_to_dict(DeploymentCancelled("Deployment interrupted on remote host"))})
        return 130
    except RedeployError as e:
        _reply({"error": error_to_dict(e)})
        return 1

    _reply(result.to_dict())
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='python -m redeploy.remote',
        description='Execute a deployment invocation read from stdin (used by SSH dispatch)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Write driver debug lines to stderr'
    )
    args = parser.parse_args(argv)

    if args.debug:
        # The dispatcher relays "Debug: " lines to its logger's debug channel.
        logging.basicConfig(level=logging.DEBUG, format="Debug: %(name)s: %(message)s", stream=sys.stderr)
    return run(sys.stdin, sys.stdout, sys.stderr)


if __name__ == '__main__':
    sys.exit(main())
