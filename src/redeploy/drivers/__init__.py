"""
Container driver toolkits.

Each toolkit bundles the configuration, container and deployer factories for
one family of container products. Toolkits are looked up by name so that a
serialized invocation can name its driver without carrying code.

Public API:
    - TOOLKITS: name -> toolkit constructor
    - load_toolkit: build fresh factories for a name
"""

from typing import Callable, Dict

from redeploy.deploy.base import DriverToolkit
from redeploy.deploy.exceptions import ConfigurationError

from . import tomcat

TOOLKITS: Dict[str, Callable[[], DriverToolkit]] = {
    "tomcat": tomcat.create_toolkit,
}


def load_toolkit(name: str) -> DriverToolkit:
    """Instantiate a new toolkit; every call returns new factory objects."""
    try:
        factory = TOOLKITS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown driver toolkit: {name!r}\n"
            f"Available: {', '.join(sorted(TOOLKITS))}"
        ) from None
    return factory()


__all__ = ["TOOLKITS", "load_toolkit"]
