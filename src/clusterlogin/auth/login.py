"""Login orchestration.

Runs the login pipeline for one cluster:

1. Resolving: parse the cluster argument and fetch connection metadata
2. Building: construct the kubeconfig entries with this executable as exec plugin
3. Merging: upsert the entries into the kubeconfig and optionally switch context
4. Verifying: optionally run the exec plugin right away

A failing step raises LoginStepError naming the step. A failed verification
leaves the merged entries in place so that a later run of the exec plugin,
e.g. by kubectl, can still succeed.
"""

import os
import shutil
import sys
import threading
from collections.abc import Callable

from clusterlogin.auth.builder import build_credential_entry
from clusterlogin.auth.resolver import ClusterResolver, context_name
from clusterlogin.clients.exec_plugin import ExecPluginRunner
from clusterlogin.core.exceptions import ClusterLoginError, LoginStepError, SelfResolutionError
from clusterlogin.core.models import BuilderOptions, LoginResult, LoginStep
from clusterlogin.kubeconfig.store import KubeconfigStore
from clusterlogin.utils.logging import get_logger, log_error

logger = get_logger(__name__)

PROGRAM_NAME = "clusterlogin"


def resolve_self_executable(
    argv0: str | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> str:
    """Path of the running executable, used as exec plugin command.

    Args:
        argv0: Program path as invoked (defaults to sys.argv[0])
        which: PATH lookup function

    Returns:
        Absolute path of an executable file

    Raises:
        SelfResolutionError: If no executable can be found
    """
    if argv0 is None:
        argv0 = sys.argv[0] if sys.argv else ""
    if not argv0:
        raise SelfResolutionError("could not get command name from sys.argv")

    if os.sep in argv0:
        path = os.path.abspath(argv0)
        if os.path.isfile(path) and os.access(path, os.X_OK):
            return path
        # python -m clusterlogin points argv0 at a module file
        found = which(PROGRAM_NAME)
    else:
        found = which(argv0)

    if not found:
        raise SelfResolutionError(f"could not find executable for {argv0!r}")
    return os.path.abspath(found)


class LoginOrchestrator:
    """Drives a cluster login from resolution to verification."""

    def __init__(
        self,
        resolver: ClusterResolver,
        store: KubeconfigStore,
        exec_runner: ExecPluginRunner | None = None,
        executable_resolver: Callable[[], str] = resolve_self_executable,
    ):
        """Initialize orchestrator.

        Args:
            resolver: Cluster resolver
            store: Kubeconfig store the entries are merged into
            exec_runner: Exec plugin runner (optional)
            executable_resolver: Returns the exec plugin command
        """
        self.resolver = resolver
        self.store = store
        self.exec_runner = exec_runner or ExecPluginRunner()
        self.executable_resolver = executable_resolver

    def login(
        self,
        raw_name: str,
        ambient_namespace: str | None = None,
        exec_plugin_now: bool = False,
        switch_context: bool = True,
        context_name_override: str | None = None,
        context_namespace: str | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> LoginResult:
        """Log in to a cluster.

        Args:
            raw_name: `name` or `name/namespace`
            ambient_namespace: Namespace used when raw_name has none (optional,
                defaults to the namespace of the resource API context)
            exec_plugin_now: Run the exec plugin after writing the kubeconfig
            switch_context: Make the new context the current context
            context_name_override: Context name to use instead of `name/namespace`
            context_namespace: Default namespace of the written context (optional)
            timeout: Exec plugin timeout in seconds (optional)
            cancel_event: Event that cancels the exec plugin (optional)

        Returns:
            LoginResult

        Raises:
            LoginStepError: If any step fails
        """
        step = LoginStep.RESOLVING
        try:
            resolved = self.resolver.resolve(raw_name, ambient_namespace)

            step = LoginStep.BUILDING
            command = self.executable_resolver()
            connection = resolved.connection
            entry = build_credential_entry(
                api_endpoint=connection.api_endpoint,
                issuer_url=connection.oidc_issuer_url,
                command=command,
                client_id=connection.oidc_client_id,
                context_name=context_name(resolved.identity),
                ca_cert=connection.ca_certificate,
                options=BuilderOptions(
                    context_name=context_name_override,
                    run_exec_plugin=exec_plugin_now,
                    switch_current_context=switch_context,
                    namespace=context_namespace,
                ),
            )

            step = LoginStep.MERGING
            self.store.merge_and_persist(entry, set_current=entry.switch_current_context)

            verified = False
            if entry.run_exec_plugin:
                step = LoginStep.VERIFYING
                self.exec_runner.run(
                    entry.auth_info, entry.cluster, timeout=timeout, cancel_event=cancel_event
                )
                verified = True

            step = LoginStep.DONE
        except ClusterLoginError as e:
            log_error(logger, e, operation=step.value, cluster=raw_name)
            logger.debug("login_step_failed", step=step.value, exc_info=True)
            raise LoginStepError(step.value, e) from e

        logger.info(
            "login_complete",
            step=step.value,
            context=entry.name,
            current=entry.switch_current_context,
            verified=verified,
        )
        return LoginResult(
            context_name=entry.name,
            kubeconfig_path=str(self.store.path),
            current=entry.switch_current_context,
            verified=verified,
        )
