"""
Container variants and runtime configuration building.

A variant pairs the identifier the driver toolkit knows a container product by
with a ``configure`` capability that fills an empty RuntimeConfiguration from
raw settings and the build environment. Variants live in an explicit dispatch
table (VARIANTS); a deployment target names its variant up front and nothing
in the artifact or environment can change that choice.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from .base import (
    ConfigurationFactory,
    ConfigurationType,
    ContainerFactory,
    ContainerHandle,
    ContainerType,
    RuntimeConfiguration,
)
from .exceptions import ConfigurationError
from .expander import Environment, Resolver, expand_variable


class RemoteProperty:
    """Configuration property names shared with the drivers."""
    URI = "remote.uri"
    USERNAME = "remote.username"
    PASSWORD = "remote.password"


Configurer = Callable[
    ['ContainerVariant', RuntimeConfiguration, Environment, Resolver, Mapping[str, str]],
    None
]


@dataclass(frozen=True)
class ContainerVariant:
    """
    One supported container product/version.

    Attributes:
        variant_id: Identifier handed to the driver toolkit (e.g. "tomcat9x")
        product: Human readable product name
        configurer: Function populating a configuration for this variant
        options: Variant-specific constants the configurer reads
    """
    variant_id: str
    product: str
    configurer: Configurer
    options: Mapping[str, str] = field(default_factory=dict)

    def identity(self) -> str:
        return self.variant_id

    def configure(
        self,
        config: RuntimeConfiguration,
        environment: Environment,
        resolver: Resolver,
        settings: Mapping[str, str]
    ) -> None:
        """Populate ``config`` in place. Calling it twice changes nothing."""
        self.configurer(self, config, environment, resolver, settings)


def configure_tomcat(
    variant: ContainerVariant,
    config: RuntimeConfiguration,
    environment: Environment,
    resolver: Resolver,
    settings: Mapping[str, str]
) -> None:
    """Point the configuration at a Tomcat manager application.

    The manager URI is the expanded base URL (trailing slash dropped) plus the
    manager path, which defaults per Tomcat generation.
    """
    url = expand_variable(environment, resolver, settings.get("url"))
    if not url:
        raise ConfigurationError(f"{variant.product}: a container URL is required")

    manager_path = expand_variable(environment, resolver, settings.get("manager_path"))
    if not manager_path:
        manager_path = variant.options["manager_path"]
    if not manager_path.startswith("/"):
        manager_path = "/" + manager_path

    config.set_property(RemoteProperty.URI, url.rstrip("/") + manager_path)
    config.set_property(
        RemoteProperty.USERNAME,
        expand_variable(environment, resolver, settings.get("username"))
    )
    config.set_property(
        RemoteProperty.PASSWORD,
        expand_variable(environment, resolver, settings.get("password"))
    )


def _tomcat(major: int, manager_path: str) -> ContainerVariant:
    return ContainerVariant(
        variant_id=f"tomcat{major}x",
        product=f"Tomcat {major}.x",
        configurer=configure_tomcat,
        options={"manager_path": manager_path},
    )


VARIANTS: Dict[str, ContainerVariant] = {
    variant.variant_id: variant
    for variant in (
        _tomcat(6, "/manager"),
        _tomcat(7, "/manager/text"),
        _tomcat(8, "/manager/text"),
        _tomcat(9, "/manager/text"),
        _tomcat(10, "/manager/text"),
    )
}


def list_variants() -> List[ContainerVariant]:
    return list(VARIANTS.values())


def get_variant(variant_id: str) -> ContainerVariant:
    """Look up a variant by id.

    Raises:
        ConfigurationError: If the id is not in the table
    """
    try:
        return VARIANTS[variant_id]
    except KeyError:
        raise ConfigurationError(
            f"Unknown container variant: {variant_id!r}\n"
            f"Supported: {', '.join(sorted(VARIANTS))}"
        ) from None


def get_container(
    config_factory: ConfigurationFactory,
    container_factory: ContainerFactory,
    variant: ContainerVariant,
    environment: Environment,
    resolver: Resolver,
    settings: Optional[Mapping[str, str]] = None
) -> ContainerHandle:
    """
    Build a remote, runtime-scoped configuration and bind a container to it.

    The driver connects to a container that is already running; nothing is
    provisioned or installed.

    Raises:
        ConfigurationError: If the factories do not recognise the variant
    """
    variant_id = variant.identity()
    config = config_factory.create_configuration(
        variant_id, ContainerType.REMOTE, ConfigurationType.RUNTIME
    )
    variant.configure(config, environment, resolver, settings or {})
    return container_factory.create_container(variant_id, ContainerType.REMOTE, config)
