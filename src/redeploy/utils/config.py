"""Deployment target configuration from YAML files and command-line overrides.

Example file:

    variant: tomcat9x
    url: http://${TOMCAT_HOST}:8080
    username: deployer
    password: ${TOMCAT_PASSWORD}
    context: /shop
    attempts: 4
    location: ci@build-agent-3
    environment:
      TOMCAT_HOST: tomcat.internal

Settings stay unexpanded here; macros are resolved on the executing side.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from redeploy.core.protocols import ConfigLoader
from redeploy.deploy.base import DEFAULT_ATTEMPTS, ContainerTarget
from redeploy.deploy.exceptions import ConfigurationError

SETTING_KEYS = ("url", "username", "password", "manager_path")
DEFAULT_TOOLKIT = "tomcat"

# Seed the build environment from os.environ when set to 1/true/yes/on
INHERIT_ENV_VAR = "REDEPLOY_INHERIT_ENV"


@dataclass
class DeployConfig:
    """Everything the deploy command needs besides the artifact path."""
    target: ContainerTarget
    context: Optional[str] = None
    attempts: int = DEFAULT_ATTEMPTS
    location: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)


def env_bool(raw: Optional[str], default: bool = False) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def parse_env_assignments(items: Optional[Iterable[str]]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` strings, keeping their order.

    Raises:
        ConfigurationError: If an item has no '=' or an empty key
    """
    env: Dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(f"Invalid environment assignment {item!r}, expected KEY=VALUE")
        env[key.strip()] = value
    return env


def load_deploy_config(path: str, config_loader: ConfigLoader) -> Dict[str, Any]:
    """Load a target file; the top level must be a mapping."""
    data = config_loader.load_yaml(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping at top level")
    env = data.get("environment")
    if env is not None and not isinstance(env, dict):
        raise ConfigurationError(f"{path}: 'environment' must be a mapping")
    return data


def build_deploy_config(
    file_config: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None,
    base_environment: Optional[Dict[str, str]] = None
) -> DeployConfig:
    """Merge file values with overrides (overrides win when not None).

    Args:
        file_config: Parsed target file (or None)
        overrides: Values from command-line flags
        base_environment: Lowest-priority environment (e.g. inherited os.environ)

    Raises:
        ConfigurationError: If no variant is given or attempts is invalid
    """
    merged: Dict[str, Any] = dict(file_config or {})
    for key, value in (overrides or {}).items():
        if value is not None and key != "environment":
            merged[key] = value

    variant = merged.get("variant")
    if not variant:
        raise ConfigurationError("No container variant given (set 'variant' or pass --variant)")

    try:
        attempts = int(merged.get("attempts", DEFAULT_ATTEMPTS))
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid attempts value: {merged.get('attempts')!r}") from None
    if attempts < 1:
        raise ConfigurationError(f"Attempts must be at least 1, got {attempts}")

    environment: Dict[str, str] = dict(base_environment or {})
    for key, value in ((file_config or {}).get("environment") or {}).items():
        environment[str(key)] = "" if value is None else str(value)
    environment.update((overrides or {}).get("environment") or {})

    settings = {
        key: str(merged[key])
        for key in SETTING_KEYS
        if merged.get(key) is not None
    }

    return DeployConfig(
        target=ContainerTarget(
            variant_id=str(variant),
            settings=settings,
            toolkit=str(merged.get("toolkit") or DEFAULT_TOOLKIT),
        ),
        context=merged.get("context"),
        attempts=attempts,
        location=merged.get("location"),
        environment=environment,
    )
