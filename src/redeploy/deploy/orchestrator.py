"""
DeploymentOrchestrator - entry point of a deployment action.

Resolves the build environment, packs the request into a RemoteInvocation and
hands it to a dispatcher that runs it where the artifact file lives.
"""

from pathlib import Path
from typing import Optional, Union

from redeploy.core.implementations import SystemTimeProvider
from redeploy.core.protocols import Logger, TimeProvider

from .base import DEFAULT_ATTEMPTS, ContainerTarget, DeploymentRequest, EnvironmentSource
from .dispatch import Dispatcher, LocalDispatcher
from .expander import Environment
from .invocation import InvocationResult, RemoteInvocation


class DeploymentOrchestrator:
    """
    Deploys one artifact to one configured container target.

    Args:
        logger: Logging sink for the orchestrating side
        dispatcher: Places the invocation next to the artifact (default: local)
        time_provider: Backoff clock for invocations executed in this process
    """

    def __init__(
        self,
        logger: Logger,
        dispatcher: Optional[Dispatcher] = None,
        time_provider: Optional[TimeProvider] = None
    ):
        self.log = logger
        self.dispatcher = dispatcher or LocalDispatcher()
        self.time = time_provider or SystemTimeProvider()
        self.last_result: Optional[InvocationResult] = None

    def cancel(self) -> None:
        """Stop further attempts of the running deployment.

        Safe to call from a signal handler; the attempt in flight completes.
        """
        self.time.cancel()
        self.dispatcher.cancel()

    def resolve_environment(self, build=None) -> Environment:
        """Environment of ``build``; empty when the build cannot report one."""
        if isinstance(build, EnvironmentSource):
            return Environment(build.get_environment(self.log))
        return Environment()

    def create_invocation(self, target: ContainerTarget, request: DeploymentRequest) -> RemoteInvocation:
        return RemoteInvocation(
            target=target,
            environment=request.environment,
            logger=self.log,
            context_path=request.context_path,
            attempts=request.max_attempts,
            time_provider=self.time,
        )

    def deploy(self, target: ContainerTarget, request: DeploymentRequest) -> bool:
        """Dispatch ``request`` and wait for the boolean "handled" answer.

        Raises:
            ConfigurationError: Fatal setup problem (unknown variant, bad artifact type)
            ContainerError: All attempts failed
            DispatchError: The invocation could not be delivered
        """
        invocation = self.create_invocation(target, request)
        self.last_result = self.dispatcher.dispatch(invocation, request.artifact_path)
        return self.last_result.handled

    def redeploy_file(
        self,
        target: ContainerTarget,
        artifact_path: Union[str, Path],
        context_path: Optional[str] = None,
        attempts: int = DEFAULT_ATTEMPTS,
        build=None
    ) -> bool:
        """Convenience form: resolve the environment from ``build`` and deploy."""
        request = DeploymentRequest(
            artifact_path=Path(artifact_path),
            context_path=context_path,
            max_attempts=attempts,
            environment=self.resolve_environment(build),
        )
        return self.deploy(target, request)
