"""Exec credential plugin runner."""

import base64
import json
import os
import subprocess
import sys
import threading
import time
from collections.abc import Callable
from typing import IO, Any, TextIO

from clusterlogin.core.exceptions import ExecPluginFailedError
from clusterlogin.core.models import AuthInfoEntry, ClusterEntry, ExecResult
from clusterlogin.utils.logging import get_logger

logger = get_logger(__name__)

EXEC_INFO_ENV = "KUBERNETES_EXEC_INFO"
POLL_INTERVAL_SECONDS = 0.2
TERMINATE_GRACE_SECONDS = 5


def exec_info(auth_info: AuthInfoEntry, cluster: ClusterEntry) -> dict[str, Any]:
    """ExecCredential passed to the plugin in KUBERNETES_EXEC_INFO."""
    spec: dict[str, Any] = {"interactive": True}
    if auth_info.exec.provide_cluster_info:
        cluster_info: dict[str, Any] = {"server": cluster.server}
        if cluster.ca_data:
            cluster_info["certificate-authority-data"] = base64.b64encode(cluster.ca_data).decode()
        spec["cluster"] = cluster_info

    return {
        "kind": "ExecCredential",
        "apiVersion": auth_info.exec.api_version,
        "spec": spec,
    }


class ExecPluginRunner:
    """Runs an exec credential plugin the way Kubernetes clients do."""

    def __init__(
        self,
        stderr: TextIO | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize runner.

        Args:
            stderr: Stream plugin diagnostics are relayed to (default sys.stderr)
            clock: Monotonic clock used for the timeout
        """
        self.stderr = stderr
        self.clock = clock

    def _relay(self, source: IO[str], sink: list[str], echo: TextIO | None) -> None:
        for line in source:
            sink.append(line)
            if echo is not None:
                echo.write(line)
                echo.flush()

    def _terminate(self, proc: subprocess.Popen) -> None:
        proc.terminate()
        try:
            proc.wait(timeout=TERMINATE_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()

    def run(
        self,
        auth_info: AuthInfoEntry,
        cluster: ClusterEntry,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ExecResult:
        """Run the exec plugin of an auth-info entry and wait for it.

        Without a timeout the call blocks until the plugin exits. An operator
        interrupt, an expired timeout or a set cancel event terminate the plugin.

        Args:
            auth_info: Auth-info entry holding the exec configuration
            cluster: Cluster entry the credential is for
            timeout: Seconds to wait before giving up (optional)
            cancel_event: Event that cancels the wait when set (optional)

        Returns:
            ExecResult of a successful run

        Raises:
            ExecPluginFailedError: If the plugin fails, is cancelled or cannot be started
        """
        cmd = [auth_info.exec.command, *auth_info.exec.args]
        env = {
            **os.environ,
            **auth_info.exec.env,
            EXEC_INFO_ENV: json.dumps(exec_info(auth_info, cluster)),
        }

        logger.debug("running_exec_plugin", command=" ".join(cmd))

        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=env,
            )
        except OSError as e:
            logger.error("exec_plugin_start_failed", command=cmd[0], error=str(e))
            raise ExecPluginFailedError(f"unable to run exec plugin {cmd[0]}: {e}") from e

        stdout_lines: list[str] = []
        stderr_lines: list[str] = []
        readers = [
            threading.Thread(
                target=self._relay, args=(proc.stdout, stdout_lines, None), daemon=True
            ),
            threading.Thread(
                target=self._relay,
                args=(proc.stderr, stderr_lines, self.stderr or sys.stderr),
                daemon=True,
            ),
        ]
        for reader in readers:
            reader.start()

        deadline = self.clock() + timeout if timeout is not None else None
        try:
            while True:
                try:
                    exit_code = proc.wait(timeout=POLL_INTERVAL_SECONDS)
                    break
                except subprocess.TimeoutExpired:
                    if cancel_event is not None and cancel_event.is_set():
                        self._terminate(proc)
                        raise ExecPluginFailedError(
                            "exec plugin cancelled", cancelled=True
                        ) from None
                    if deadline is not None and self.clock() >= deadline:
                        self._terminate(proc)
                        raise ExecPluginFailedError(
                            f"exec plugin timed out after {timeout}s", cancelled=True
                        ) from None
        except KeyboardInterrupt:
            self._terminate(proc)
            logger.warning("exec_plugin_interrupted")
            raise ExecPluginFailedError("exec plugin interrupted", cancelled=True) from None

        for reader in readers:
            reader.join()

        result = ExecResult(
            exit_code=exit_code, stdout="".join(stdout_lines), stderr="".join(stderr_lines)
        )
        logger.debug("exec_plugin_completed", returncode=exit_code)

        if exit_code != 0:
            logger.error("exec_plugin_failed", returncode=exit_code)
            raise ExecPluginFailedError(
                f"exec plugin exited with code {exit_code}: {result.stderr.strip()}",
                exit_code=exit_code,
                stderr=result.stderr,
            )

        try:
            credential = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ExecPluginFailedError(
                f"exec plugin returned invalid output: {e}", exit_code=exit_code
            ) from e
        if not isinstance(credential, dict) or credential.get("kind") != "ExecCredential":
            raise ExecPluginFailedError(
                "exec plugin did not return an ExecCredential", exit_code=exit_code
            )

        return result
