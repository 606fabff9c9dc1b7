"""Credential entry construction."""

from clusterlogin.core.models import (
    AuthInfoEntry,
    BuilderOptions,
    ClusterEntry,
    ContextEntry,
    CredentialEntry,
    ExecConfig,
    ExecInteractiveMode,
)

OIDC_SUBCOMMAND = ("auth", "oidc")


def exec_args(issuer_url: str, client_id: str) -> list[str]:
    """Arguments the exec plugin is invoked with."""
    return [*OIDC_SUBCOMMAND, issuer_url, client_id]


def build_credential_entry(
    api_endpoint: str,
    issuer_url: str,
    command: str,
    client_id: str,
    context_name: str,
    ca_cert: bytes = b"",
    options: BuilderOptions | None = None,
) -> CredentialEntry:
    """Build the kubeconfig entries for an OIDC login.

    Cluster, user and context entries all carry the context name, so
    re-running a login replaces exactly the entries it wrote before.

    Args:
        api_endpoint: Cluster API server URL
        issuer_url: OIDC issuer URL
        command: Executable the exec plugin runs
        client_id: OIDC client id
        context_name: Derived context name, `<cluster>/<namespace>`
        ca_cert: Decoded API server CA certificate
        options: Optional overrides

    Returns:
        CredentialEntry with the three linked entries
    """
    options = options or BuilderOptions()
    name = options.context_name or context_name

    return CredentialEntry(
        cluster=ClusterEntry(name=name, server=api_endpoint, ca_data=ca_cert),
        auth_info=AuthInfoEntry(
            name=name,
            exec=ExecConfig(
                command=command,
                args=exec_args(issuer_url, client_id),
                provide_cluster_info=True,
                interactive_mode=ExecInteractiveMode.IF_AVAILABLE,
            ),
        ),
        context=ContextEntry(name=name, cluster=name, user=name, namespace=options.namespace),
        run_exec_plugin=options.run_exec_plugin,
        switch_current_context=options.switch_current_context,
    )
