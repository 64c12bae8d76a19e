"""
RemoteInvocation - a self-contained unit of deployment work.

An invocation carries everything needed to configure the container, package
the artifact and deploy it: the target (variant id, raw settings, toolkit
name), an environment snapshot, the raw context path and the attempt count.
It runs on whichever machine holds the artifact file, so large archives are
never copied to the orchestrating process just to be deployed.

``to_payload``/``from_payload`` give the JSON-safe wire form used to send an
invocation across a process or machine boundary. The logging sink is not part
of the payload; the executing side binds its own.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from redeploy.core.implementations import RealFileSystemService, SystemTimeProvider
from redeploy.core.protocols import FileSystemService, Logger, TimeProvider

from .base import DEFAULT_ATTEMPTS, ContainerTarget, OutcomeStatus
from .exceptions import ConfigurationError, MissingArtifact
from .expander import Environment, MapResolver, expand_variable
from .packager import package
from .retry import RetryingDeployer
from .variants import get_container, get_variant

PAYLOAD_VERSION = 1


@dataclass(frozen=True)
class InvocationResult:
    """
    Answer of an invocation.

    Attributes:
        handled: The boolean "handled" signal (True unless an error escaped)
        status: "deployed", "skipped" (artifact missing) or "cancelled"
    """
    handled: bool
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {"handled": self.handled, "status": self.status}


class RemoteInvocation:
    """
    Configure, package and deploy one artifact where it lives.

    Args:
        target: Container description with raw, unexpanded settings
        environment: Build environment snapshot
        logger: Logging sink on the executing side
        context_path: Raw context path (expanded at execution time)
        attempts: Maximum deployment attempts
        filesystem: Used for the artifact existence check
        time_provider: Supplies the retry backoff wait
    """

    def __init__(
        self,
        target: ContainerTarget,
        environment: Mapping[str, str],
        logger: Logger,
        context_path: Optional[str] = None,
        attempts: int = DEFAULT_ATTEMPTS,
        filesystem: Optional[FileSystemService] = None,
        time_provider: Optional[TimeProvider] = None
    ):
        if not isinstance(attempts, int) or attempts < 1:
            raise ConfigurationError(f"Attempt count must be a positive integer, got {attempts!r}")
        self.target = target
        self.environment = environment if isinstance(environment, Environment) else Environment(environment)
        self.log = logger
        self.context_path = context_path
        self.attempts = attempts
        self.fs = filesystem or RealFileSystemService()
        self.time = time_provider or SystemTimeProvider()

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe form. Environment order is kept as a list of pairs."""
        return {
            "version": PAYLOAD_VERSION,
            "target": self.target.to_dict(),
            "environment": [[k, v] for k, v in self.environment.items()],
            "context_path": self.context_path,
            "attempts": self.attempts,
        }

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        logger: Logger,
        filesystem: Optional[FileSystemService] = None,
        time_provider: Optional[TimeProvider] = None
    ) -> 'RemoteInvocation':
        """Rebuild an invocation on the executing side."""
        version = payload.get("version")
        if version != PAYLOAD_VERSION:
            raise ConfigurationError(f"Unsupported invocation payload version: {version!r}")
        return cls(
            target=ContainerTarget.from_dict(payload["target"]),
            environment=Environment((k, v) for k, v in payload.get("environment") or []),
            logger=logger,
            context_path=payload.get("context_path"),
            attempts=payload.get("attempts", DEFAULT_ATTEMPTS),
            filesystem=filesystem,
            time_provider=time_provider,
        )

    def _check_artifact(self, path: Path) -> None:
        if not self.fs.exists(path):
            raise MissingArtifact(path)

    def execute(self, path: Path) -> InvocationResult:
        """
        Run the deployment against the local file ``path``.

        Steps:
            1. Missing file -> log, report skipped (the build step does not fail)
            2. Fresh driver toolkit for this call
            3. Resolver backed by the environment snapshot
            4. Container handle from the variant's configuration
            5. Expand the raw context path
            6. Package, then deploy with retries

        Raises:
            ConfigurationError: Unknown variant/toolkit, unsupported artifact
            ContainerError: Every attempt failed (last driver error)
        """
        try:
            self._check_artifact(path)
        except MissingArtifact as e:
            self.log.warning(str(e))
            return InvocationResult(handled=True, status="skipped")

        # Lazy import to avoid circular dependencies
        from redeploy.drivers import load_toolkit

        toolkit = load_toolkit(self.target.toolkit)
        resolver = MapResolver(self.environment)
        variant = get_variant(self.target.variant_id)
        container = get_container(
            toolkit.configuration_factory,
            toolkit.container_factory,
            variant,
            self.environment,
            resolver,
            self.target.settings,
        )
        context_path = expand_variable(self.environment, resolver, self.context_path)

        deployable = package(path, context_path)
        deployer = toolkit.deployer_factory.create_deployer(container)
        outcome = RetryingDeployer(self.log, self.time).deploy(
            deployer, deployable, self.attempts, container_name=container.name
        )

        if outcome.status is OutcomeStatus.CANCELLED:
            return InvocationResult(handled=True, status="cancelled")
        return InvocationResult(handled=True, status="deployed")

    def invoke(self, path: Path) -> bool:
        """Boolean form of ``execute``."""
        return self.execute(path).handled
