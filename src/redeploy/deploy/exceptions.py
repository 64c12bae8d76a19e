"""
Deployment exceptions.

Fatal kinds (ConfigurationError, UnsupportedArtifactType) propagate straight to
the caller. ContainerError is the driver-reported failure that the retry loop
absorbs until the attempt bound is exhausted.
"""


class RedeployError(Exception):
    """Base class for every error raised by the deployment core."""
    pass


class ConfigurationError(RedeployError):
    """
    Raised when the deployment cannot be set up. Never retried.

    Examples:
        - Unknown container variant or driver toolkit
        - Configuration type the driver does not support
        - Attempt count below 1
    """
    pass


class UnsupportedArtifactType(ConfigurationError):
    """Raised when the artifact extension is neither .war nor .ear."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f'Extension File Error. Unsupported: ."{extension}"')


class ContainerError(RedeployError):
    """
    Raised by a container driver when a deployment request fails.

    Treated as transient: the container may be restarting. The message is the
    container-side diagnostic and is surfaced verbatim once retries run out.
    """
    pass


TransientContainerError = ContainerError


class MissingArtifact(RedeployError):
    """
    Raised when the artifact file is absent on the executing machine.

    Not fatal: the invocation logs it and reports the deployment as skipped.
    """

    def __init__(self, path):
        self.path = path
        super().__init__(f"No such file: {path}")


class DeploymentCancelled(RedeployError):
    """Raised when a deployment is interrupted while waiting to retry."""
    pass


class DispatchError(RedeployError):
    """
    Raised when an invocation cannot be delivered to, or answered by, the
    machine holding the artifact (ssh failure, garbled result).
    """
    pass
