"""Unit tests for RetryingDeployer.

The backoff wait goes through an injected TimeProvider, so every scenario
runs instantly and the number and length of waits can be asserted.
"""
import pytest
from unittest.mock import Mock, call

from redeploy.core.protocols import Logger, TimeProvider
from redeploy.deploy.base import WAR, EAR, Deployer, OutcomeStatus
from redeploy.deploy.exceptions import ConfigurationError, ContainerError
from redeploy.deploy.retry import RetryingDeployer, BACKOFF_SECONDS


def make_deployer(side_effect=None):
    deployer = Mock(spec=Deployer)
    deployer.redeploy.side_effect = side_effect
    return deployer


class TestRetryingDeployerSuccess:
    """Attempts stop at the first success."""

    def setup_method(self):
        self.logger = Mock(spec=Logger)
        self.time = Mock(spec=TimeProvider)
        self.time.wait.return_value = False
        self.retrying = RetryingDeployer(self.logger, self.time)
        self.war = WAR("/builds/app.war", context="/app")

    def test_first_attempt_succeeds(self):
        deployer = make_deployer()

        outcome = self.retrying.deploy(deployer, self.war, 4, container_name="Tomcat 9.x Remote")

        assert outcome.status is OutcomeStatus.SUCCEEDED
        assert outcome.attempt == 1
        assert outcome.succeeded
        deployer.redeploy.assert_called_once_with(self.war)
        self.time.wait.assert_not_called()

    def test_succeeds_after_transient_failures(self):
        deployer = make_deployer([ContainerError("restarting"), ContainerError("restarting"), None])

        outcome = self.retrying.deploy(deployer, self.war, 4)

        assert outcome.status is OutcomeStatus.SUCCEEDED
        assert outcome.attempt == 3
        assert deployer.redeploy.call_count == 3
        assert self.time.wait.call_args_list == [call(BACKOFF_SECONDS), call(BACKOFF_SECONDS)]

    @pytest.mark.parametrize("max_attempts", [1, 2, 5])
    def test_never_exceeds_max_attempts(self, max_attempts):
        deployer = make_deployer(ContainerError("down"))

        with pytest.raises(ContainerError):
            self.retrying.deploy(deployer, self.war, max_attempts)

        assert deployer.redeploy.call_count == max_attempts

    def test_progress_logged_before_each_attempt(self):
        events = []
        self.logger.info.side_effect = lambda msg: events.append(("log", msg))
        deployer = make_deployer()
        deployer.redeploy.side_effect = lambda d: events.append(("redeploy", d))

        self.retrying.deploy(deployer, self.war, 3, container_name="Tomcat 9.x Remote")

        assert events[0][0] == "log"
        assert events[1] == ("redeploy", self.war)
        assert "/builds/app.war" in events[0][1]
        assert "Tomcat 9.x Remote" in events[0][1]
        assert "context /app" in events[0][1]
        assert "try 1/3" in events[0][1]
        assert events[0][1].startswith("Deploying /builds/app.war")

    def test_outcomes_recorded_per_attempt(self):
        deployer = make_deployer([ContainerError("busy"), None])

        self.retrying.deploy(deployer, self.war, 3)

        statuses = [o.status for o in self.retrying.outcomes]
        assert statuses == [OutcomeStatus.TRANSIENT_FAILURE, OutcomeStatus.SUCCEEDED]
        assert self.retrying.outcomes[0].reason == "busy"


class TestRetryingDeployerExhaustion:
    """Driver never succeeds."""

    def setup_method(self):
        self.logger = Mock(spec=Logger)
        self.time = Mock(spec=TimeProvider)
        self.time.wait.return_value = False
        self.retrying = RetryingDeployer(self.logger, self.time)

    def test_exact_attempts_and_waits(self):
        deployer = make_deployer(ContainerError("Connection refused"))

        with pytest.raises(ContainerError):
            self.retrying.deploy(deployer, EAR("/builds/app.ear"), 4)

        assert deployer.redeploy.call_count == 4
        # No wait after the final failed attempt
        assert self.time.wait.call_count == 3
        assert sum(c.args[0] for c in self.time.wait.call_args_list) == BACKOFF_SECONDS * 3

    def test_final_error_is_last_driver_error(self):
        errors = [ContainerError("first"), ContainerError("second"), ContainerError("FAIL - last one")]
        deployer = make_deployer(errors)

        with pytest.raises(ContainerError) as excinfo:
            self.retrying.deploy(deployer, WAR("/a.war"), 3)

        assert excinfo.value is errors[-1]
        assert str(excinfo.value) == "FAIL - last one"
        assert self.retrying.outcomes[-1].status is OutcomeStatus.FATAL_FAILURE

    def test_each_failure_logged_with_counter(self):
        deployer = make_deployer(ContainerError("boom"))

        with pytest.raises(ContainerError):
            self.retrying.deploy(deployer, WAR("/a.war"), 2)

        messages = [c.args[0] for c in self.logger.error.call_args_list]
        assert messages == [
            "Deploy Problem [attempt 1 of 2] - boom",
            "Deploy Problem [attempt 2 of 2] - boom",
        ]

    def test_single_attempt_never_waits(self):
        deployer = make_deployer(ContainerError("down"))

        with pytest.raises(ContainerError):
            self.retrying.deploy(deployer, WAR("/a.war"), 1)

        self.time.wait.assert_not_called()


class TestRetryingDeployerFatalAndCancel:

    def setup_method(self):
        self.logger = Mock(spec=Logger)
        self.time = Mock(spec=TimeProvider)
        self.retrying = RetryingDeployer(self.logger, self.time)

    def test_configuration_error_not_retried(self):
        deployer = make_deployer(ConfigurationError("cannot deploy EAR"))

        with pytest.raises(ConfigurationError):
            self.retrying.deploy(deployer, EAR("/a.ear"), 4)

        deployer.redeploy.assert_called_once()
        self.time.wait.assert_not_called()

    def test_cancel_during_backoff_stops_without_raising(self):
        self.time.wait.return_value = True
        deployer = make_deployer(ContainerError("restarting"))

        outcome = self.retrying.deploy(deployer, WAR("/a.war"), 4)

        assert outcome.status is OutcomeStatus.CANCELLED
        assert outcome.attempt == 1
        assert not outcome.succeeded
        deployer.redeploy.assert_called_once()
        self.logger.warning.assert_called_once_with("Deployment cancelled, no further attempts")

    def test_rejects_zero_attempts(self):
        deployer = make_deployer()

        with pytest.raises(ConfigurationError):
            self.retrying.deploy(deployer, WAR("/a.war"), 0)

        deployer.redeploy.assert_not_called()
