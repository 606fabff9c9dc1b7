"""Unit tests for the exec plugin runner.

This module tests the ExecPluginRunner including:
- Command and environment construction
- Exit code and ExecCredential handling
- Timeout, cancellation and interrupt handling
"""

import io
import json
import subprocess
import threading
from unittest.mock import MagicMock, patch

import pytest

from clusterlogin.clients.exec_plugin import EXEC_INFO_ENV, ExecPluginRunner, exec_info
from clusterlogin.core.exceptions import ExecPluginFailedError

EXEC_CREDENTIAL = json.dumps(
    {
        "kind": "ExecCredential",
        "apiVersion": "client.authentication.k8s.io/v1",
        "status": {"token": "id-token"},
    }
)


def _proc(exit_code: int = 0, stdout: str = EXEC_CREDENTIAL, stderr: str = "") -> MagicMock:
    proc = MagicMock()
    proc.stdout = io.StringIO(stdout)
    proc.stderr = io.StringIO(stderr)
    proc.wait.return_value = exit_code
    return proc


class TestExecInfo:
    """Tests for the KUBERNETES_EXEC_INFO document."""

    def test_includes_cluster_info(self, credential_entry) -> None:
        """Test cluster server and CA are passed to the plugin."""
        info = exec_info(credential_entry.auth_info, credential_entry.cluster)

        assert info["kind"] == "ExecCredential"
        assert info["apiVersion"] == "client.authentication.k8s.io/v1"
        assert info["spec"]["interactive"] is True
        assert info["spec"]["cluster"]["server"] == "https://prod.example.com:6443"
        assert "certificate-authority-data" in info["spec"]["cluster"]

    def test_without_cluster_info(self, credential_entry) -> None:
        """Test cluster info is omitted when not requested."""
        credential_entry.auth_info.exec.provide_cluster_info = False

        info = exec_info(credential_entry.auth_info, credential_entry.cluster)

        assert "cluster" not in info["spec"]


class TestRun:
    """Tests for ExecPluginRunner.run."""

    def test_success(self, credential_entry) -> None:
        """Test a successful run returns the plugin output."""
        stderr = io.StringIO()
        runner = ExecPluginRunner(stderr=stderr)

        with patch("subprocess.Popen", return_value=_proc(stderr="opening browser\n")) as mock:
            result = runner.run(credential_entry.auth_info, credential_entry.cluster)

        assert result.exit_code == 0
        assert result.stdout == EXEC_CREDENTIAL
        assert result.stderr == "opening browser\n"
        assert stderr.getvalue() == "opening browser\n"

        cmd = mock.call_args[0][0]
        assert cmd == [
            "/usr/local/bin/clusterlogin",
            "auth",
            "oidc",
            "https://auth.example.com/realms/team-a",
            "prod-client",
        ]
        env = mock.call_args[1]["env"]
        assert json.loads(env[EXEC_INFO_ENV])["spec"]["cluster"]["server"] == (
            "https://prod.example.com:6443"
        )

    def test_exec_env_passed(self, credential_entry) -> None:
        """Test exec env entries are added to the environment."""
        credential_entry.auth_info.exec.env = {"LOGIN_HINT": "ops"}

        with patch("subprocess.Popen", return_value=_proc()) as mock:
            ExecPluginRunner(stderr=io.StringIO()).run(
                credential_entry.auth_info, credential_entry.cluster
            )

        assert mock.call_args[1]["env"]["LOGIN_HINT"] == "ops"

    def test_nonzero_exit(self, credential_entry) -> None:
        """Test a non-zero exit code fails with stderr."""
        proc = _proc(exit_code=1, stdout="", stderr="login failed\n")

        with patch("subprocess.Popen", return_value=proc):
            with pytest.raises(ExecPluginFailedError) as exc_info:
                ExecPluginRunner(stderr=io.StringIO()).run(
                    credential_entry.auth_info, credential_entry.cluster
                )

        assert exc_info.value.exit_code == 1
        assert exc_info.value.stderr == "login failed\n"
        assert exc_info.value.cancelled is False

    def test_not_an_exec_credential(self, credential_entry) -> None:
        """Test output other than an ExecCredential fails."""
        with patch("subprocess.Popen", return_value=_proc(stdout='{"kind": "Other"}')):
            with pytest.raises(ExecPluginFailedError, match="did not return an ExecCredential"):
                ExecPluginRunner(stderr=io.StringIO()).run(
                    credential_entry.auth_info, credential_entry.cluster
                )

    def test_invalid_json(self, credential_entry) -> None:
        """Test non-JSON output fails."""
        with patch("subprocess.Popen", return_value=_proc(stdout="token")):
            with pytest.raises(ExecPluginFailedError, match="invalid output"):
                ExecPluginRunner(stderr=io.StringIO()).run(
                    credential_entry.auth_info, credential_entry.cluster
                )

    def test_command_not_found(self, credential_entry) -> None:
        """Test a missing executable fails."""
        with patch("subprocess.Popen", side_effect=FileNotFoundError("no such file")):
            with pytest.raises(ExecPluginFailedError, match="unable to run exec plugin"):
                ExecPluginRunner().run(credential_entry.auth_info, credential_entry.cluster)

    def test_timeout_terminates(self, credential_entry) -> None:
        """Test an expired timeout terminates the plugin."""
        proc = _proc()
        proc.wait.side_effect = [subprocess.TimeoutExpired("cmd", 0.2), 0]

        clock = MagicMock(side_effect=[0, 10])

        with patch("subprocess.Popen", return_value=proc):
            with pytest.raises(ExecPluginFailedError, match="timed out") as exc_info:
                ExecPluginRunner(stderr=io.StringIO(), clock=clock).run(
                    credential_entry.auth_info, credential_entry.cluster, timeout=5
                )

        assert exc_info.value.cancelled is True
        proc.terminate.assert_called_once()

    def test_cancel_event_terminates(self, credential_entry) -> None:
        """Test a set cancel event terminates the plugin."""
        proc = _proc()
        proc.wait.side_effect = [subprocess.TimeoutExpired("cmd", 0.2), 0]
        cancel = threading.Event()
        cancel.set()

        with patch("subprocess.Popen", return_value=proc):
            with pytest.raises(ExecPluginFailedError, match="cancelled") as exc_info:
                ExecPluginRunner(stderr=io.StringIO()).run(
                    credential_entry.auth_info, credential_entry.cluster, cancel_event=cancel
                )

        assert exc_info.value.cancelled is True
        proc.terminate.assert_called_once()

    def test_interrupt_terminates(self, credential_entry) -> None:
        """Test an operator interrupt terminates the plugin."""
        proc = _proc()
        proc.wait.side_effect = [KeyboardInterrupt(), 0]

        with patch("subprocess.Popen", return_value=proc):
            with pytest.raises(ExecPluginFailedError, match="interrupted") as exc_info:
                ExecPluginRunner(stderr=io.StringIO()).run(
                    credential_entry.auth_info, credential_entry.cluster
                )

        assert exc_info.value.cancelled is True
        proc.terminate.assert_called_once()

    def test_kill_after_grace_period(self, credential_entry) -> None:
        """Test a plugin ignoring terminate is killed."""
        proc = _proc()
        proc.wait.side_effect = [KeyboardInterrupt(), subprocess.TimeoutExpired("cmd", 5), 0]

        with patch("subprocess.Popen", return_value=proc):
            with pytest.raises(ExecPluginFailedError):
                ExecPluginRunner(stderr=io.StringIO()).run(
                    credential_entry.auth_info, credential_entry.cluster
                )

        proc.kill.assert_called_once()
