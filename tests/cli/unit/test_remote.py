"""Unit tests for the executing side of SSH dispatch (python -m redeploy.remote)."""
import io
import json
import logging

import pytest
from unittest.mock import Mock, patch

from redeploy.core import SystemTimeProvider
from redeploy.core.protocols import Logger, TimeProvider
from redeploy.deploy.base import ContainerTarget, Deployer, DriverToolkit
from redeploy.deploy.exceptions import ContainerError
from redeploy.deploy.invocation import RemoteInvocation
from redeploy.drivers import TOOLKITS
from redeploy.drivers.tomcat import TomcatConfigurationFactory, TomcatContainerFactory
from redeploy import remote


def request_for(artifact_path, attempts=2, variant="tomcat9x"):
    invocation = RemoteInvocation(
        target=ContainerTarget(variant, {"url": "http://${HOST}:8080"}, toolkit="fake"),
        environment={"HOST": "tomcat.internal"},
        logger=Mock(spec=Logger),
        context_path="/shop",
        attempts=attempts,
    )
    return json.dumps({"invocation": invocation.to_payload(), "artifact_path": str(artifact_path)})


class TestRemoteRun:

    def setup_method(self):
        self.deployer = Mock(spec=Deployer)
        deployer_factory = Mock()
        deployer_factory.create_deployer.return_value = self.deployer
        toolkit = lambda: DriverToolkit(TomcatConfigurationFactory(), TomcatContainerFactory(), deployer_factory)
        self.patcher = patch.dict(TOOLKITS, {"fake": toolkit})
        self.patcher.start()
        self.time = Mock(spec=TimeProvider)
        self.time.wait.return_value = False
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    def teardown_method(self):
        self.patcher.stop()

    def run(self, stdin_text):
        code = remote.run(io.StringIO(stdin_text), self.stdout, self.stderr, time_provider=self.time)
        return code, json.loads(self.stdout.getvalue().strip().splitlines()[-1])

    @pytest.fixture
    def war(self, tmp_path):
        path = tmp_path / "shop.war"
        path.write_bytes(b"PK")
        return path

    def test_successful_deploy(self, war):
        code, reply = self.run(request_for(war))

        assert code == 0
        assert reply == {"handled": True, "status": "deployed"}
        assert "Deploying" in self.stderr.getvalue()
        assert self.deployer.redeploy.call_args[0][0].context == "/shop"

    def test_missing_artifact_reports_skipped(self, tmp_path):
        code, reply = self.run(request_for(tmp_path / "missing.war"))

        assert code == 0
        assert reply == {"handled": True, "status": "skipped"}
        assert "Warning: No such file" in self.stderr.getvalue()

    def test_exhausted_retries_reported_as_error(self, war):
        self.deployer.redeploy.side_effect = ContainerError("FAIL - Application already exists")

        code, reply = self.run(request_for(war, attempts=2))

        assert code == 1
        assert reply["error"] == {"type": "ContainerError", "message": "FAIL - Application already exists"}
        assert self.stderr.getvalue().count("Deploy Problem") == 2

    def test_unsupported_artifact(self, tmp_path):
        path = tmp_path / "shop.zip"
        path.write_bytes(b"PK")

        code, reply = self.run(request_for(path))

        assert code == 1
        assert reply["error"]["type"] == "UnsupportedArtifactType"
        assert reply["error"]["extension"] == "zip"

    def test_malformed_request(self):
        code, reply = self.run("not json")

        assert code == 1
        assert reply["error"]["type"] == "DispatchError"
        assert "Malformed invocation request" in reply["error"]["message"]

    def test_missing_keys(self):
        code, reply = self.run(json.dumps({"artifact_path": "/x.war"}))

        assert code == 1
        assert reply["error"]["type"] == "DispatchError"

    def test_interrupt_reports_cancelled(self, war):
        self.deployer.redeploy.side_effect = KeyboardInterrupt

        code, reply = self.run(request_for(war))

        assert code == 130
        assert reply["error"]["type"] == "DeploymentCancelled"

    def test_stdout_holds_only_result(self, war):
        self.run(request_for(war))

        assert len(self.stdout.getvalue().strip().splitlines()) == 1

    def test_malformed_environment_pair(self):
        request = json.loads(request_for("/x.war"))
        request["invocation"]["environment"] = [["ONLY_KEY"]]

        code, reply = self.run(json.dumps(request))

        assert code == 1
        assert reply["error"]["type"] == "DispatchError"
        assert "Malformed invocation request" in reply["error"]["message"]

    def test_unknown_payload_version(self):
        request = json.loads(request_for("/x.war"))
        request["invocation"]["version"] = 99

        code, reply = self.run(json.dumps(request))

        assert code == 1
        assert reply["error"]["type"] == "ConfigurationError"

    def test_cancel_line_stops_retries(self, war):
        self.deployer.redeploy.side_effect = ContainerError("restarting")
        clock = SystemTimeProvider()

        code = remote.run(
            io.StringIO(request_for(war, attempts=4) + "\ncancel\n"),
            self.stdout,
            self.stderr,
            time_provider=clock,
        )

        reply = json.loads(self.stdout.getvalue().strip().splitlines()[-1])
        assert code == 0
        assert reply == {"handled": True, "status": "cancelled"}
        assert clock.cancelled
        assert self.deployer.redeploy.call_count == 1
        assert "Warning: Deployment cancelled, no further attempts" in self.stderr.getvalue()


class TestWatchForCancel:

    def test_cancel_line_cancels(self):
        clock = Mock(spec=TimeProvider)

        remote.watch_for_cancel(io.StringIO("noise\ncancel\n"), clock)

        clock.cancel.assert_called_once()

    def test_eof_without_cancel(self):
        clock = Mock(spec=TimeProvider)

        remote.watch_for_cancel(io.StringIO(""), clock)

        clock.cancel.assert_not_called()


class TestRemoteMain:

    def test_debug_flag_configures_logging(self):
        with patch("redeploy.remote.run", return_value=0) as run, \
                patch("redeploy.remote.logging.basicConfig") as basic_config:
            assert remote.main(["--debug"]) == 0

        assert basic_config.call_args[1]["level"] == logging.DEBUG
        run.assert_called_once()

    def test_no_logging_setup_by_default(self):
        with patch("redeploy.remote.run", return_value=0), \
                patch("redeploy.remote.logging.basicConfig") as basic_config:
            remote.main([])

        basic_config.assert_not_called()
