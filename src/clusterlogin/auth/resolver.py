"""Cluster identity and connection metadata resolution."""

import base64
import binascii
from typing import Any, Protocol
from urllib.parse import urlparse

from clusterlogin.core.exceptions import (
    IncompleteStatusError,
    InvalidEncodingError,
    InvalidIdentifierError,
)
from clusterlogin.core.models import ClusterConnectionInfo, ClusterIdentity, ResolvedCluster
from clusterlogin.utils.logging import get_logger

logger = get_logger(__name__)


class ClusterGetter(Protocol):
    """Point lookup of a cluster resource."""

    def get_cluster(self, identity: ClusterIdentity) -> dict[str, Any]: ...

    def default_namespace(self) -> str: ...


def parse_cluster_name(raw_name: str, ambient_namespace: str) -> ClusterIdentity:
    """Turn `name` or `name/namespace` into a cluster identity.

    Args:
        raw_name: Cluster argument as given by the user
        ambient_namespace: Namespace used when the argument carries none

    Returns:
        ClusterIdentity

    Raises:
        InvalidIdentifierError: On more than one `/`, an empty name or no namespace
    """
    parts = raw_name.split("/")
    if len(parts) > 2:
        raise InvalidIdentifierError(
            f"invalid cluster name {raw_name!r}: expected 'name' or 'name/namespace'"
        )

    name, namespace = parts[0], ambient_namespace
    if len(parts) == 2:
        namespace = parts[1]

    if not name:
        raise InvalidIdentifierError(f"invalid cluster name {raw_name!r}: name cannot be empty")
    if not namespace:
        raise InvalidIdentifierError("namespace cannot be empty")

    return ClusterIdentity(name=name, namespace=namespace)


def context_name(identity: ClusterIdentity) -> str:
    """Kubeconfig context name of a cluster."""
    return f"{identity.name}/{identity.namespace}"


def _parse_url(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise IncompleteStatusError(f"cluster status has no {field}")

    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise IncompleteStatusError(f"invalid cluster {field}: {value!r}")
    return value


def extract_connection_info(cluster: dict[str, Any]) -> ClusterConnectionInfo:
    """Read connection metadata from a cluster object's status.

    Args:
        cluster: Cluster object as returned by the resource API

    Returns:
        ClusterConnectionInfo with the decoded CA certificate

    Raises:
        IncompleteStatusError: If endpoint or issuer URL are missing or invalid
        InvalidEncodingError: If the CA certificate is not valid base64
    """
    at_provider = (cluster.get("status") or {}).get("atProvider") or {}

    api_endpoint = _parse_url(at_provider.get("apiEndpoint"), "API endpoint")
    issuer_url = _parse_url(at_provider.get("oidcIssuerURL"), "OIDC issuer URL")

    try:
        ca_cert = base64.b64decode(at_provider.get("apiCACert") or "", validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError(f"unable to decode API CA certificate: {e}") from e

    return ClusterConnectionInfo(
        api_endpoint=api_endpoint,
        oidc_issuer_url=issuer_url,
        oidc_client_id=at_provider.get("oidcClientID") or "",
        ca_certificate=ca_cert,
    )


class ClusterResolver:
    """Resolves a cluster argument to its identity and connection metadata."""

    def __init__(self, client: ClusterGetter):
        """Initialize resolver.

        Args:
            client: Resource API client
        """
        self.client = client

    def resolve(self, raw_name: str, ambient_namespace: str | None = None) -> ResolvedCluster:
        """Resolve a cluster.

        Without an ambient namespace, a bare name falls back to the namespace
        of the client's kubeconfig context. Lookup errors from the client
        propagate unchanged.

        Args:
            raw_name: `name` or `name/namespace`
            ambient_namespace: Default namespace (optional)

        Returns:
            ResolvedCluster
        """
        if ambient_namespace is None and "/" not in raw_name:
            ambient_namespace = self.client.default_namespace()
        identity = parse_cluster_name(raw_name, ambient_namespace or "")
        cluster = self.client.get_cluster(identity)
        connection = extract_connection_info(cluster)

        logger.info(
            "cluster_resolved",
            cluster=str(identity),
            api_endpoint=connection.api_endpoint,
            issuer_url=connection.oidc_issuer_url,
        )
        return ResolvedCluster(identity=identity, connection=connection)
