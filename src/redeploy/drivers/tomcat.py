"""
Tomcat driver toolkit - deploys through the Tomcat manager text interface.

Targets: Tomcat 6.x - 10.x with the manager application enabled
Strategy: PUT <manager>/deploy?path=/ctx&update=true with the WAR as body

``update=true`` makes Tomcat undeploy an existing application at the same
context first, which gives the idempotent redeploy the retry loop relies on.
"""

import logging
import os
from typing import Dict, Optional

import requests
from requests.exceptions import RequestException

from redeploy.deploy.base import (
    ConfigurationType,
    ContainerType,
    Deployable,
    DriverToolkit,
    EAR,
    WAR,
)
from redeploy.deploy.exceptions import ConfigurationError, ContainerError
from redeploy.deploy.variants import RemoteProperty

logger = logging.getLogger(__name__)

SUPPORTED_CONTAINERS: Dict[str, str] = {
    "tomcat6x": "Tomcat 6.x",
    "tomcat7x": "Tomcat 7.x",
    "tomcat8x": "Tomcat 8.x",
    "tomcat9x": "Tomcat 9.x",
    "tomcat10x": "Tomcat 10.x",
}

DEFAULT_TIMEOUT = 120


def _require_supported(container_id: str) -> None:
    if container_id not in SUPPORTED_CONTAINERS:
        raise ConfigurationError(
            f"Container {container_id!r} is not supported by the tomcat toolkit\n"
            f"Supported: {', '.join(SUPPORTED_CONTAINERS)}"
        )


class PropertyConfiguration:
    """Runtime configuration held as a flat property map."""

    def __init__(self, container_id: str, container_type: ContainerType,
                 configuration_type: ConfigurationType):
        self.container_id = container_id
        self.container_type = container_type
        self.configuration_type = configuration_type
        self.properties: Dict[str, Optional[str]] = {}

    def set_property(self, name: str, value: Optional[str]) -> None:
        self.properties[name] = value

    def get_property(self, name: str) -> Optional[str]:
        return self.properties.get(name)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PropertyConfiguration):
            return NotImplemented
        return (
            self.container_id == other.container_id
            and self.container_type == other.container_type
            and self.configuration_type == other.configuration_type
            and self.properties == other.properties
        )

    def __repr__(self) -> str:
        # Never show credentials.
        shown = {k: ("***" if k == RemoteProperty.PASSWORD and v else v)
                 for k, v in self.properties.items()}
        return f"PropertyConfiguration({self.container_id!r}, {shown})"


class TomcatConfigurationFactory:
    def create_configuration(self, container_id, container_type, configuration_type):
        _require_supported(container_id)
        if container_type is not ContainerType.REMOTE or configuration_type is not ConfigurationType.RUNTIME:
            raise ConfigurationError(
                f"Tomcat toolkit only supports remote runtime configurations, "
                f"got {container_type.value}/{configuration_type.value}"
            )
        return PropertyConfiguration(container_id, container_type, configuration_type)


class TomcatContainer:
    """Handle on a running Tomcat reached through its manager application."""

    def __init__(self, container_id: str, configuration: PropertyConfiguration):
        self.container_id = container_id
        self.configuration = configuration

    @property
    def name(self) -> str:
        return f"{SUPPORTED_CONTAINERS[self.container_id]} Remote"

    @property
    def manager_uri(self) -> str:
        uri = self.configuration.get_property(RemoteProperty.URI)
        if not uri:
            raise ConfigurationError(f"{self.name}: no manager URI configured")
        return uri


class TomcatContainerFactory:
    def create_container(self, container_id, container_type, configuration):
        _require_supported(container_id)
        if container_type is not ContainerType.REMOTE:
            raise ConfigurationError(f"Tomcat toolkit cannot create a {container_type.value} container")
        return TomcatContainer(container_id, configuration)


def context_path_for(war: WAR) -> str:
    """Manager ``path`` parameter for a WAR.

    Defaults to the file stem; ``ROOT`` and the empty context map to ``/``.
    """
    context = war.context
    if context is None:
        context = os.path.splitext(os.path.basename(war.path))[0]
    context = context.strip().strip("/")
    if not context or context == "ROOT":
        return "/"
    return "/" + context


class TomcatManagerDeployer:
    """
    Deployer speaking the manager text protocol.

    Every reply starts with ``OK -`` or ``FAIL -``; anything other than an OK
    reply with HTTP 200 becomes a ContainerError carrying the reply text.
    Each attempt opens and closes its own HTTP session.
    """

    def __init__(self, container: TomcatContainer, session_factory=requests.Session,
                 timeout: float = DEFAULT_TIMEOUT):
        self.container = container
        self.session_factory = session_factory
        self.timeout = timeout

    def _auth(self):
        config = self.container.configuration
        username = config.get_property(RemoteProperty.USERNAME)
        if not username:
            return None
        return (username, config.get_property(RemoteProperty.PASSWORD) or "")

    def redeploy(self, deployable: Deployable) -> None:
        if isinstance(deployable, EAR):
            raise ConfigurationError(
                f"{self.container.name} cannot deploy enterprise archives: {deployable.path}"
            )

        url = f"{self.container.manager_uri}/deploy"
        params = {"path": context_path_for(deployable), "update": "true"}
        logger.debug("PUT %s path=%s", url, params["path"])

        try:
            with self.session_factory() as session, open(deployable.path, "rb") as body:
                response = session.put(
                    url,
                    params=params,
                    data=body,
                    auth=self._auth(),
                    headers={"Content-Type": "application/octet-stream"},
                    timeout=self.timeout,
                )
        except RequestException as e:
            raise ContainerError(f"Failed to reach {url}: {e}") from e
        except OSError as e:
            raise ContainerError(f"Cannot read {deployable.path}: {e}") from e

        text = (response.text or "").strip()
        if response.status_code != 200:
            raise ContainerError(
                f"{self.container.name} manager returned HTTP {response.status_code}"
                + (f": {text}" if text else "")
            )
        if not text.startswith("OK"):
            raise ContainerError(text or f"{self.container.name} manager returned an empty reply")
        logger.debug("manager reply: %s", text)


class TomcatDeployerFactory:
    def __init__(self, session_factory=requests.Session):
        self.session_factory = session_factory

    def create_deployer(self, container: TomcatContainer) -> TomcatManagerDeployer:
        return TomcatManagerDeployer(container, session_factory=self.session_factory)


def create_toolkit() -> DriverToolkit:
    """Fresh tomcat factories; nothing is shared between invocations."""
    return DriverToolkit(
        configuration_factory=TomcatConfigurationFactory(),
        container_factory=TomcatContainerFactory(),
        deployer_factory=TomcatDeployerFactory(),
    )
