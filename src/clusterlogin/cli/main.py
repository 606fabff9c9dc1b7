"""Main CLI entry point for clusterlogin."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.markup import escape

from clusterlogin import __version__
from clusterlogin.core.exceptions import ClusterLoginError, ExecPluginFailedError, LoginStepError

if TYPE_CHECKING:
    from clusterlogin.auth.login import LoginOrchestrator
    from clusterlogin.clients.resource_client import ResourceClient
    from clusterlogin.core.config import ClusterLoginConfig
    from clusterlogin.kubeconfig.store import KubeconfigStore

console = Console()
err_console = Console(stderr=True)


class ClusterLoginContext:
    """Shared context for CLI commands with lazy initialization."""

    def __init__(
        self,
        config: ClusterLoginConfig,
        kubeconfig: str | None = None,
        api_context: str | None = None,
        namespace: str | None = None,
    ):
        """Initialize context.

        Command line values take precedence over the configuration file.

        Args:
            config: Loaded configuration
            kubeconfig: Kubeconfig path (optional)
            api_context: Kubeconfig context of the resource API (optional)
            namespace: Namespace of cluster resources (optional)
        """
        self.config = config
        self.kubeconfig = kubeconfig or config.api.kubeconfig
        self.api_context = api_context or config.api.context
        self.namespace = namespace or config.api.namespace
        self._resource_client: ResourceClient | None = None
        self._store: KubeconfigStore | None = None
        self._orchestrator: LoginOrchestrator | None = None

    @property
    def resource_client(self) -> ResourceClient:
        """Get or create resource API client lazily."""
        if self._resource_client is None:
            from clusterlogin.clients.resource_client import ResourceClient

            self._resource_client = ResourceClient(
                kubeconfig_path=self.kubeconfig,
                context=self.api_context,
                resource=self.config.cluster_resource,
            )
        return self._resource_client

    @property
    def store(self) -> KubeconfigStore:
        """Get or create kubeconfig store lazily."""
        if self._store is None:
            from clusterlogin.kubeconfig.paths import KubeconfigPathResolver
            from clusterlogin.kubeconfig.store import KubeconfigStore

            self._store = KubeconfigStore(KubeconfigPathResolver().resolve(self.kubeconfig))
        return self._store

    @property
    def orchestrator(self) -> LoginOrchestrator:
        """Get or create login orchestrator lazily."""
        if self._orchestrator is None:
            from clusterlogin.auth.login import LoginOrchestrator
            from clusterlogin.auth.resolver import ClusterResolver

            self._orchestrator = LoginOrchestrator(
                resolver=ClusterResolver(self.resource_client),
                store=self.store,
            )
        return self._orchestrator


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default=None,
    help="Path to configuration file (default: ~/.clusterlogin/config.yaml)",
)
@click.option("--kubeconfig", default=None, help="Path to the kubeconfig file")
@click.option(
    "--context",
    "api_context",
    default=None,
    help="Kubeconfig context of the API (default: nineapis.ch)",
)
@click.option(
    "-n",
    "--namespace",
    envvar="CLUSTERLOGIN_NAMESPACE",
    default=None,
    help="Namespace of cluster resources (default: namespace of the API context)",
)
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    kubeconfig: str | None,
    api_context: str | None,
    namespace: str | None,
    log_level: str | None,
) -> None:
    """Log in to managed Kubernetes clusters with OIDC."""
    from clusterlogin.core.config import ClusterLoginConfig
    from clusterlogin.utils.logging import setup_logging

    try:
        config = ClusterLoginConfig.load(config_path)
    except ClusterLoginError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        ctx.exit(1)

    setup_logging(
        level=log_level or config.logging.level,
        format=config.logging.format,
        output=config.logging.output,
    )

    ctx.obj = ClusterLoginContext(
        config=config,
        kubeconfig=kubeconfig,
        api_context=api_context,
        namespace=namespace,
    )


@cli.group()
def auth() -> None:
    """Authenticate with clusters."""


@auth.command()
@click.argument("name")
@click.option(
    "--exec-plugin",
    is_flag=True,
    help="Automatically run exec plugin after writing the kubeconfig.",
)
@click.option(
    "--switch-context/--no-switch-context",
    default=True,
    help="Make the cluster's context the current context.",
)
@click.option(
    "--context-namespace",
    default=None,
    help="Default namespace of the written context.",
)
@click.option(
    "--exec-timeout",
    type=float,
    default=None,
    help="Seconds to wait for the exec plugin (default: no limit).",
)
@click.pass_context
def cluster(
    ctx: click.Context,
    name: str,
    exec_plugin: bool,
    switch_context: bool,
    context_namespace: str | None,
    exec_timeout: float | None,
) -> None:
    """Log in to a cluster. NAME also accepts the 'name/namespace' format."""
    cl_ctx: ClusterLoginContext = ctx.obj
    timeout = exec_timeout
    if timeout is None:
        timeout = cl_ctx.config.exec_plugin.timeout_seconds

    try:
        result = cl_ctx.orchestrator.login(
            name,
            cl_ctx.namespace,
            exec_plugin_now=exec_plugin,
            switch_context=switch_context,
            context_namespace=context_namespace,
            timeout=timeout,
        )
    except LoginStepError as e:
        err_console.print(f"[red]Error during {e.step}: {escape(str(e.cause))}[/red]")
        if isinstance(e.cause, ExecPluginFailedError):
            err_console.print(
                "[yellow]The kubeconfig has been updated, the login will be retried "
                "on the next use of the context.[/yellow]"
            )
        ctx.exit(1)
    except ClusterLoginError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        ctx.exit(1)

    console.print(f"[green]✓ Kubeconfig updated: {escape(result.kubeconfig_path)}[/green]")
    if result.current:
        console.print(f"Switched to context [bold]{escape(result.context_name)}[/bold]")
    else:
        console.print(f"Context [bold]{escape(result.context_name)}[/bold] is available")
    if result.verified:
        console.print("[green]✓ Login verified[/green]")


@auth.command(hidden=True)
@click.argument("issuer_url")
@click.argument("client_id")
@click.pass_context
def oidc(ctx: click.Context, issuer_url: str, client_id: str) -> None:
    """Exec credential plugin: print an ExecCredential for an OIDC login."""
    from clusterlogin.auth.oidc import OIDCTokenHelper

    cl_ctx: ClusterLoginContext = ctx.obj
    helper = OIDCTokenHelper(
        command=cl_ctx.config.exec_plugin.oidc_helper_command,
        token_cache_dir=cl_ctx.config.exec_plugin.token_cache_dir,
    )

    try:
        exit_code = helper.get_token(issuer_url, client_id)
    except ClusterLoginError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        ctx.exit(1)

    ctx.exit(exit_code)


if __name__ == "__main__":
    cli()
