"""
RetryingDeployer - bounded retries around a driver's redeploy operation.

Containers commonly need tens of seconds to come back after a crash or after
another application was redeployed, so a failed attempt is followed by a fixed
15 second wait before the next one. No exponential backoff, no jitter: the
worst-case wall clock cost is 15 * (max_attempts - 1) seconds plus the
attempts themselves.
"""

from typing import List, Optional

from redeploy.core.protocols import Logger, TimeProvider

from .base import AttemptOutcome, Deployable, Deployer, OutcomeStatus
from .exceptions import ConfigurationError, ContainerError

BACKOFF_SECONDS = 15


class RetryingDeployer:
    """
    Drives ``deployer.redeploy`` until it succeeds or attempts run out.

    States: attempting(n) for n = 1..max_attempts, then succeeded, fatally
    failed (exception raised) or cancelled (outcome returned).

    Args:
        logger: Sink for progress and error lines
        time_provider: Supplies the cancellable backoff wait
    """

    def __init__(self, logger: Logger, time_provider: TimeProvider):
        self.log = logger
        self.time = time_provider
        self.outcomes: List[AttemptOutcome] = []

    def deploy(
        self,
        deployer: Deployer,
        deployable: Deployable,
        max_attempts: int,
        container_name: Optional[str] = None
    ) -> AttemptOutcome:
        """
        Deploy with retries.

        Args:
            deployer: Driver deployer bound to the target container
            deployable: WAR or EAR to install
            max_attempts: Upper bound on redeploy calls (>= 1)
            container_name: Name used in progress lines

        Returns:
            SUCCEEDED outcome for the first attempt that worked, or a
            CANCELLED outcome if a backoff wait was interrupted

        Raises:
            ContainerError: The last attempt failed; the driver's exception
                is re-raised unchanged
            ConfigurationError: max_attempts < 1, or the driver reported a
                fatal problem (not retried)
        """
        if max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be >= 1, got {max_attempts}")

        self.outcomes = []
        context = getattr(deployable, "context", None)
        for attempt in range(1, max_attempts + 1):
            self.log.info(
                f"Deploying {deployable.path} to container {container_name} "
                f"with context {context} and try {attempt}/{max_attempts}"
            )
            try:
                deployer.redeploy(deployable)
                return self._record(OutcomeStatus.SUCCEEDED, attempt, max_attempts)
            except ContainerError as e:
                self.log.error(f"Deploy Problem [attempt {attempt} of {max_attempts}] - {e}")
                if attempt >= max_attempts:
                    self._record(OutcomeStatus.FATAL_FAILURE, attempt, max_attempts, str(e))
                    raise
                self._record(OutcomeStatus.TRANSIENT_FAILURE, attempt, max_attempts, str(e))

            # Container may be restarting; give it time before the next try.
            if self.time.wait(BACKOFF_SECONDS):
                self.log.warning("Deployment cancelled, no further attempts")
                return self._record(
                    OutcomeStatus.CANCELLED, attempt, max_attempts, "cancelled during backoff"
                )

        # Unreachable: the last attempt either returns or raises.
        raise AssertionError("retry loop exited without an outcome")

    def _record(
        self,
        status: OutcomeStatus,
        attempt: int,
        max_attempts: int,
        reason: Optional[str] = None
    ) -> AttemptOutcome:
        outcome = AttemptOutcome(status, attempt, max_attempts, reason)
        self.outcomes.append(outcome)
        return outcome
