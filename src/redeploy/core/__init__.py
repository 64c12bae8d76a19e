"""Core dependency injection infrastructure for redeploy.

Protocol-based abstractions for every external dependency (console, filesystem,
subprocess, time, environment, configuration files) plus their production
implementations. Deployment code depends only on the protocols; commands wire
in the real implementations.
"""

from redeploy.core.protocols import (
    Logger,
    FileSystemService,
    ProcessExecutor,
    ProcessHandle,
    TimeProvider,
    EnvironmentProvider,
    ConfigLoader,
)

from redeploy.core.implementations import (
    ConsoleLogger,
    StreamLogger,
    RealFileSystemService,
    SubprocessExecutor,
    SubprocessHandle,
    SystemTimeProvider,
    SystemEnvironmentProvider,
    YamlConfigLoader,
)

__all__ = [
    # Protocols
    "Logger",
    "FileSystemService",
    "ProcessExecutor",
    "ProcessHandle",
    "TimeProvider",
    "EnvironmentProvider",
    "ConfigLoader",
    # Implementations
    "ConsoleLogger",
    "StreamLogger",
    "RealFileSystemService",
    "SubprocessExecutor",
    "SubprocessHandle",
    "SystemTimeProvider",
    "SystemEnvironmentProvider",
    "YamlConfigLoader",
]
