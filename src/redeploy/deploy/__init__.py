"""
Artifact deployment subsystem.

Deploys a WAR or EAR to an already-running application container, executing
where the artifact lives and retrying while the container is unavailable.

Public API:
    - DeploymentOrchestrator: Entry point
    - RemoteInvocation, InvocationResult: Unit of work and its answer
    - LocalDispatcher, SSHDispatcher, DispatcherFactory: Boundary crossing
    - RetryingDeployer: Bounded retry loop
    - package, WAR, EAR: Artifact classification
    - ContainerVariant, VARIANTS, get_container: Configuration building
    - Environment, MapResolver, expand_variable: Macro expansion
    - ConfigurationError, UnsupportedArtifactType, ContainerError,
      MissingArtifact, DeploymentCancelled, DispatchError: Exceptions
"""

from .base import (
    AttemptOutcome,
    ConfigurationType,
    ContainerTarget,
    ContainerType,
    DEFAULT_ATTEMPTS,
    DeploymentRequest,
    DriverToolkit,
    EAR,
    EnvironmentSource,
    OutcomeStatus,
    WAR,
)
from .exceptions import (
    ConfigurationError,
    ContainerError,
    DeploymentCancelled,
    DispatchError,
    MissingArtifact,
    RedeployError,
    TransientContainerError,
    UnsupportedArtifactType,
)
from .expander import Environment, MapResolver, expand_variable, replace_macro
from .packager import package
from .retry import BACKOFF_SECONDS, RetryingDeployer
from .variants import VARIANTS, ContainerVariant, get_container, get_variant
from .invocation import InvocationResult, RemoteInvocation
from .dispatch import DispatcherFactory, LocalDispatcher, SSHDispatcher
from .orchestrator import DeploymentOrchestrator

__all__ = [
    # Entry point
    "DeploymentOrchestrator",

    # Boundary crossing
    "RemoteInvocation",
    "InvocationResult",
    "LocalDispatcher",
    "SSHDispatcher",
    "DispatcherFactory",

    # Deployment
    "RetryingDeployer",
    "BACKOFF_SECONDS",
    "DEFAULT_ATTEMPTS",
    "package",
    "WAR",
    "EAR",
    "AttemptOutcome",
    "OutcomeStatus",

    # Configuration
    "ContainerVariant",
    "VARIANTS",
    "get_variant",
    "get_container",
    "ContainerTarget",
    "ContainerType",
    "ConfigurationType",
    "DriverToolkit",
    "DeploymentRequest",
    "EnvironmentSource",
    "Environment",
    "MapResolver",
    "expand_variable",
    "replace_macro",

    # Exceptions
    "RedeployError",
    "ConfigurationError",
    "UnsupportedArtifactType",
    "ContainerError",
    "TransientContainerError",
    "MissingArtifact",
    "DeploymentCancelled",
    "DispatchError",
]
