"""Core data models for clusterlogin."""

import base64
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

EXEC_API_VERSION = "client.authentication.k8s.io/v1"


class LoginStep(str, Enum):
    """Login pipeline step."""

    RESOLVING = "resolving"
    BUILDING = "building"
    MERGING = "merging"
    VERIFYING = "verifying"
    DONE = "done"


class ExecInteractiveMode(str, Enum):
    """Exec plugin interactive mode as understood by Kubernetes clients."""

    NEVER = "Never"
    IF_AVAILABLE = "IfAvailable"
    ALWAYS = "Always"


class ClusterIdentity(BaseModel):
    """Fully-qualified cluster resource identity."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Cluster resource name")
    namespace: str = Field(..., min_length=1, description="Cluster resource namespace")

    def __str__(self) -> str:
        return f"{self.name}/{self.namespace}"


class ClusterConnectionInfo(BaseModel):
    """Connection metadata taken from the cluster status."""

    model_config = ConfigDict(frozen=True)

    api_endpoint: str
    oidc_issuer_url: str
    oidc_client_id: str
    ca_certificate: bytes = b""


class ResolvedCluster(BaseModel):
    """Cluster identity together with its connection metadata."""

    model_config = ConfigDict(frozen=True)

    identity: ClusterIdentity
    connection: ClusterConnectionInfo


class ClusterEntry(BaseModel):
    """Kubeconfig cluster entry."""

    name: str
    server: str
    ca_data: bytes = b""

    def to_kubeconfig(self) -> dict[str, Any]:
        cluster: dict[str, Any] = {"server": self.server}
        if self.ca_data:
            cluster["certificate-authority-data"] = base64.b64encode(self.ca_data).decode()
        return {"name": self.name, "cluster": cluster}


class ExecConfig(BaseModel):
    """Exec credential plugin invocation."""

    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    api_version: str = EXEC_API_VERSION
    provide_cluster_info: bool = True
    interactive_mode: ExecInteractiveMode = ExecInteractiveMode.IF_AVAILABLE

    def to_kubeconfig(self) -> dict[str, Any]:
        exec_config: dict[str, Any] = {
            "apiVersion": self.api_version,
            "command": self.command,
            "args": list(self.args),
        }
        if self.env:
            exec_config["env"] = [{"name": k, "value": v} for k, v in self.env.items()]
        exec_config["provideClusterInfo"] = self.provide_cluster_info
        exec_config["interactiveMode"] = self.interactive_mode.value
        return exec_config


class AuthInfoEntry(BaseModel):
    """Kubeconfig user (auth-info) entry."""

    name: str
    exec: ExecConfig

    def to_kubeconfig(self) -> dict[str, Any]:
        return {"name": self.name, "user": {"exec": self.exec.to_kubeconfig()}}


class ContextEntry(BaseModel):
    """Kubeconfig context entry."""

    name: str
    cluster: str
    user: str
    namespace: str | None = None

    def to_kubeconfig(self) -> dict[str, Any]:
        context: dict[str, Any] = {"cluster": self.cluster, "user": self.user}
        if self.namespace:
            context["namespace"] = self.namespace
        return {"name": self.name, "context": context}


class BuilderOptions(BaseModel):
    """Optional settings applied when building a credential entry."""

    model_config = ConfigDict(frozen=True)

    context_name: str | None = None
    run_exec_plugin: bool = False
    switch_current_context: bool = False
    namespace: str | None = None


class CredentialEntry(BaseModel):
    """Cluster, auth-info and context entries for one login.

    All three records share the same name.
    """

    cluster: ClusterEntry
    auth_info: AuthInfoEntry
    context: ContextEntry
    run_exec_plugin: bool = False
    switch_current_context: bool = False

    @property
    def name(self) -> str:
        return self.context.name

    def to_kubeconfig_items(self) -> dict[str, dict[str, Any]]:
        """Render the entries in kubeconfig schema, keyed by section."""
        return {
            "clusters": self.cluster.to_kubeconfig(),
            "users": self.auth_info.to_kubeconfig(),
            "contexts": self.context.to_kubeconfig(),
        }


class ExecResult(BaseModel):
    """Outcome of one exec plugin run."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""


class LoginResult(BaseModel):
    """Outcome of a successful login."""

    context_name: str
    kubeconfig_path: str
    current: bool
    verified: bool = False
