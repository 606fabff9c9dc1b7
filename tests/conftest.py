"""Pytest configuration and shared fixtures."""

import base64
from pathlib import Path
from typing import Any

import pytest

from clusterlogin.auth.builder import build_credential_entry
from clusterlogin.core.models import ClusterIdentity, CredentialEntry

CA_CERT = b"-----BEGIN CERTIFICATE-----\nMIIBdummy\n-----END CERTIFICATE-----\n"


def make_cluster_object(
    name: str = "prod",
    namespace: str = "team-a",
    api_endpoint: str = "https://prod.example.com:6443",
    issuer_url: str = "https://auth.example.com/realms/team-a",
    client_id: str = "prod-client",
    ca_cert: str | None = None,
) -> dict[str, Any]:
    """Build a cluster object as returned by the resource API."""
    return {
        "apiVersion": "infrastructure.nine.ch/v1alpha1",
        "kind": "KubernetesCluster",
        "metadata": {"name": name, "namespace": namespace},
        "status": {
            "atProvider": {
                "apiEndpoint": api_endpoint,
                "oidcIssuerURL": issuer_url,
                "oidcClientID": client_id,
                "apiCACert": base64.b64encode(CA_CERT).decode() if ca_cert is None else ca_cert,
            }
        },
    }


class FakeResourceClient:
    """In-memory resource API keyed by identity."""

    def __init__(self, clusters: list[dict[str, Any]] | None = None, namespace: str = ""):
        self.clusters = {
            (c["metadata"]["name"], c["metadata"]["namespace"]): c for c in clusters or []
        }
        self.namespace = namespace
        self.calls: list[ClusterIdentity] = []
        self.namespace_lookups = 0

    def default_namespace(self) -> str:
        self.namespace_lookups += 1
        return self.namespace

    def get_cluster(self, identity: ClusterIdentity) -> dict[str, Any]:
        from clusterlogin.core.exceptions import NotFoundError

        self.calls.append(identity)
        try:
            return self.clusters[(identity.name, identity.namespace)]
        except KeyError:
            raise NotFoundError(f"cluster {identity} not found") from None


@pytest.fixture
def cluster_object() -> dict[str, Any]:
    """Provide a cluster object for prod/team-a."""
    return make_cluster_object()


@pytest.fixture
def fake_resource_client(cluster_object: dict[str, Any]) -> FakeResourceClient:
    """Provide a resource API holding prod/team-a."""
    return FakeResourceClient([cluster_object])


@pytest.fixture
def kubeconfig_path(tmp_path: Path) -> Path:
    """Provide a kubeconfig path that does not exist yet."""
    return tmp_path / ".kube" / "config"


@pytest.fixture
def credential_entry() -> CredentialEntry:
    """Provide a credential entry for prod/team-a."""
    return build_credential_entry(
        api_endpoint="https://prod.example.com:6443",
        issuer_url="https://auth.example.com/realms/team-a",
        command="/usr/local/bin/clusterlogin",
        client_id="prod-client",
        context_name="prod/team-a",
        ca_cert=CA_CERT,
    )
