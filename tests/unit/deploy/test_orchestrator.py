"""Unit tests for DeploymentOrchestrator."""
import pytest
from pathlib import Path
from unittest.mock import Mock

from redeploy.core import SystemTimeProvider
from redeploy.core.protocols import Logger, TimeProvider
from redeploy.deploy.base import ContainerTarget, DeploymentRequest
from redeploy.deploy.dispatch import LocalDispatcher
from redeploy.deploy.exceptions import ConfigurationError, ContainerError
from redeploy.deploy.expander import Environment
from redeploy.deploy.invocation import InvocationResult, RemoteInvocation
from redeploy.deploy.orchestrator import DeploymentOrchestrator


class FakeBuild:
    def __init__(self, env):
        self.env = env
        self.loggers = []

    def get_environment(self, logger):
        self.loggers.append(logger)
        return self.env


TARGET = ContainerTarget("tomcat9x", {"url": "http://${HOST}:8080"})


class TestResolveEnvironment:

    def setup_method(self):
        self.logger = Mock(spec=Logger)
        self.orchestrator = DeploymentOrchestrator(self.logger, dispatcher=Mock())

    def test_build_reports_environment(self):
        build = FakeBuild({"HOST": "box", "BUILD_NUMBER": "42"})

        env = self.orchestrator.resolve_environment(build)

        assert env == Environment({"HOST": "box", "BUILD_NUMBER": "42"})
        assert build.loggers == [self.logger]

    def test_plain_object_gives_empty_environment(self):
        assert len(self.orchestrator.resolve_environment(object())) == 0

    def test_no_build_gives_empty_environment(self):
        assert len(self.orchestrator.resolve_environment()) == 0


class TestDeploy:

    def setup_method(self):
        self.logger = Mock(spec=Logger)
        self.time = Mock(spec=TimeProvider)
        self.dispatcher = Mock()
        self.dispatcher.dispatch.return_value = InvocationResult(handled=True, status="deployed")
        self.orchestrator = DeploymentOrchestrator(self.logger, self.dispatcher, self.time)

    def test_dispatches_invocation_with_request_fields(self):
        request = DeploymentRequest(
            artifact_path="/builds/shop.war",
            context_path="/${APP}",
            max_attempts=2,
            environment={"APP": "shop"},
        )

        assert self.orchestrator.deploy(TARGET, request) is True

        invocation, path = self.dispatcher.dispatch.call_args[0]
        assert isinstance(invocation, RemoteInvocation)
        assert path == Path("/builds/shop.war")
        assert invocation.target == TARGET
        assert invocation.context_path == "/${APP}"
        assert invocation.attempts == 2
        assert invocation.environment["APP"] == "shop"
        assert invocation.log is self.logger
        assert invocation.time is self.time

    def test_records_last_result(self):
        self.dispatcher.dispatch.return_value = InvocationResult(handled=True, status="skipped")

        self.orchestrator.deploy(TARGET, DeploymentRequest(artifact_path="/x.war"))

        assert self.orchestrator.last_result.status == "skipped"

    def test_errors_propagate(self):
        self.dispatcher.dispatch.side_effect = ContainerError("FAIL - no space left")

        with pytest.raises(ContainerError, match="no space left"):
            self.orchestrator.deploy(TARGET, DeploymentRequest(artifact_path="/x.war"))

    def test_redeploy_file_uses_build_environment(self):
        build = FakeBuild({"HOST": "box"})

        self.orchestrator.redeploy_file(TARGET, "/x.war", context_path="/a", attempts=3, build=build)

        invocation = self.dispatcher.dispatch.call_args[0][0]
        assert invocation.environment.to_dict() == {"HOST": "box"}
        assert invocation.attempts == 3

    def test_redeploy_file_rejects_zero_attempts(self):
        with pytest.raises(ConfigurationError):
            self.orchestrator.redeploy_file(TARGET, "/x.war", attempts=0)

        self.dispatcher.dispatch.assert_not_called()

    def test_default_dispatcher_is_local(self):
        assert isinstance(DeploymentOrchestrator(self.logger).dispatcher, LocalDispatcher)


class TestCancel:

    def test_cancel_reaches_time_provider_and_dispatcher(self):
        time_provider = Mock(spec=TimeProvider)
        dispatcher = Mock()
        orchestrator = DeploymentOrchestrator(Mock(spec=Logger), dispatcher, time_provider)

        orchestrator.cancel()

        time_provider.cancel.assert_called_once()
        dispatcher.cancel.assert_called_once()

    def test_default_time_provider_is_cancellable(self):
        orchestrator = DeploymentOrchestrator(Mock(spec=Logger), dispatcher=Mock())

        orchestrator.cancel()

        assert isinstance(orchestrator.time, SystemTimeProvider)
        assert orchestrator.time.cancelled
