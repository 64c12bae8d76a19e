"""
Container driver boundary and deployment value types.

The deployment core does not know how to talk to any particular container
product. It drives a pluggable toolkit made of three factories:

    ConfigurationFactory  (variant id, type, scope)        -> RuntimeConfiguration
    ContainerFactory      (variant id, type, configuration) -> ContainerHandle
    DeployerFactory       (container handle)                -> Deployer

A Deployer exposes ``redeploy(deployable)``, which stops any existing
deployment of the same artifact and installs the new one, raising
ContainerError on failure.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Union, runtime_checkable

from .exceptions import ConfigurationError
from .expander import Environment

DEFAULT_ATTEMPTS = 4


class ContainerType(Enum):
    """How the driver reaches the container."""
    REMOTE = "remote"
    INSTALLED = "installed"
    EMBEDDED = "embedded"


class ConfigurationType(Enum):
    """Scope of a container configuration."""
    RUNTIME = "runtime"
    STANDALONE = "standalone"
    EXISTING = "existing"


# Deployables

@dataclass(frozen=True)
class WAR:
    """Web archive; ``context`` is the optional context path."""
    path: str
    context: Optional[str] = None

    kind = "war"


@dataclass(frozen=True)
class EAR:
    """Enterprise archive. Context paths do not apply."""
    path: str

    kind = "ear"


Deployable = Union[WAR, EAR]


# Driver protocols

@runtime_checkable
class RuntimeConfiguration(Protocol):
    """Driver-owned configuration object, populated in place by a variant."""

    def set_property(self, name: str, value: Optional[str]) -> None:
        ...

    def get_property(self, name: str) -> Optional[str]:
        ...


class ContainerHandle(Protocol):
    """A container the driver knows how to reach."""

    @property
    def name(self) -> str:
        ...

    @property
    def configuration(self) -> RuntimeConfiguration:
        ...


class ConfigurationFactory(Protocol):
    def create_configuration(
        self,
        container_id: str,
        container_type: ContainerType,
        configuration_type: ConfigurationType
    ) -> RuntimeConfiguration:
        """Raises ConfigurationError for an unknown container id."""
        ...


class ContainerFactory(Protocol):
    def create_container(
        self,
        container_id: str,
        container_type: ContainerType,
        configuration: RuntimeConfiguration
    ) -> ContainerHandle:
        """Raises ConfigurationError for an unknown container id."""
        ...


@runtime_checkable
class Deployer(Protocol):
    def redeploy(self, deployable: Deployable) -> None:
        """Undeploy if present, then deploy. Raises ContainerError."""
        ...


class DeployerFactory(Protocol):
    def create_deployer(self, container: ContainerHandle) -> Deployer:
        ...


@dataclass
class DriverToolkit:
    """The three factories of one container driver, created per invocation."""
    configuration_factory: ConfigurationFactory
    container_factory: ContainerFactory
    deployer_factory: DeployerFactory


# Outcomes

class OutcomeStatus(Enum):
    SUCCEEDED = "succeeded"
    TRANSIENT_FAILURE = "transient_failure"
    FATAL_FAILURE = "fatal_failure"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AttemptOutcome:
    """
    Result of one deployment attempt.

    The outcome of a whole request is the outcome of its last attempt.
    CANCELLED means retrying was abandoned during a backoff wait: no
    deployment succeeded, no error was raised.
    """
    status: OutcomeStatus
    attempt: int
    max_attempts: int
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


# Requests

@dataclass(frozen=True)
class ContainerTarget:
    """
    Raw description of the container to deploy to.

    Attributes:
        variant_id: Key into the variant table (e.g. "tomcat9x")
        settings: Unexpanded configuration strings (url, username, ...)
        toolkit: Name of the driver toolkit that knows this variant
    """
    variant_id: str
    settings: Mapping[str, str] = field(default_factory=dict)
    toolkit: str = "tomcat"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant_id": self.variant_id,
            "settings": dict(self.settings),
            "toolkit": self.toolkit,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ContainerTarget':
        return cls(
            variant_id=data["variant_id"],
            settings=dict(data.get("settings") or {}),
            toolkit=data.get("toolkit") or "tomcat",
        )


@dataclass(frozen=True)
class DeploymentRequest:
    """One deployment action. Immutable after construction."""
    artifact_path: Path
    context_path: Optional[str] = None
    max_attempts: int = DEFAULT_ATTEMPTS
    environment: Environment = field(default_factory=Environment)

    def __post_init__(self):
        if not isinstance(self.max_attempts, int) or self.max_attempts < 1:
            raise ConfigurationError(
                f"Attempt count must be a positive integer, got {self.max_attempts!r}"
            )
        object.__setattr__(self, "artifact_path", Path(self.artifact_path))
        if not isinstance(self.environment, Environment):
            object.__setattr__(self, "environment", Environment(self.environment))


@runtime_checkable
class EnvironmentSource(Protocol):
    """A build that can report its environment variables."""

    def get_environment(self, logger) -> Mapping[str, str]:
        ...
