"""Resource API client for cluster lookups."""

from typing import Any

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from clusterlogin.core.config import ClusterResourceConfig
from clusterlogin.core.exceptions import ConfigurationError, NotFoundError, UpstreamError
from clusterlogin.core.models import ClusterIdentity
from clusterlogin.utils.logging import get_logger

logger = get_logger(__name__)


class ResourceClient:
    """Kubernetes client wrapper for the central resource API."""

    def __init__(
        self,
        kubeconfig_path: str | None = None,
        context: str | None = None,
        resource: ClusterResourceConfig | None = None,
    ):
        """Initialize resource client.

        Args:
            kubeconfig_path: Path to kubeconfig file (optional)
            context: Kubernetes context of the resource API (optional)
            resource: Cluster custom resource coordinates (optional)
        """
        self.kubeconfig_path = kubeconfig_path
        self.context = context
        self.resource = resource or ClusterResourceConfig()
        self._custom_objects: client.CustomObjectsApi | None = None

    @property
    def custom_objects(self) -> client.CustomObjectsApi:
        """Custom objects API, loaded from the kubeconfig on first use.

        Raises:
            ConfigurationError: If the kubeconfig or context cannot be loaded
        """
        if self._custom_objects is None:
            try:
                api_client = config.new_client_from_config(
                    config_file=self.kubeconfig_path, context=self.context
                )
            except config.ConfigException as e:
                logger.error("resource_client_initialization_failed", error=str(e))
                raise ConfigurationError(
                    f"Failed to load resource API configuration: {e}"
                ) from e

            self._custom_objects = client.CustomObjectsApi(api_client)
            logger.debug("resource_client_initialized", context=self.context)
        return self._custom_objects

    def default_namespace(self) -> str:
        """Namespace of the selected kubeconfig context.

        Returns:
            Namespace name, or an empty string if the context sets none
        """
        try:
            contexts, active = config.list_kube_config_contexts(config_file=self.kubeconfig_path)
        except config.ConfigException as e:
            raise ConfigurationError(f"Failed to read kubeconfig contexts: {e}") from e

        selected = active
        if self.context:
            selected = next((c for c in contexts if c.get("name") == self.context), None)
        if not selected:
            return ""
        return (selected.get("context") or {}).get("namespace") or ""

    def get_cluster(self, identity: ClusterIdentity) -> dict[str, Any]:
        """Get a cluster resource.

        Args:
            identity: Cluster name and namespace

        Returns:
            Cluster object as returned by the API

        Raises:
            NotFoundError: If the cluster does not exist
            UpstreamError: If the lookup fails
        """
        try:
            logger.debug("getting_cluster", name=identity.name, namespace=identity.namespace)
            return self.custom_objects.get_namespaced_custom_object(
                group=self.resource.group,
                version=self.resource.version,
                namespace=identity.namespace,
                plural=self.resource.plural,
                name=identity.name,
            )

        except ApiException as e:
            logger.error("get_cluster_failed", status=e.status, reason=e.reason)
            if e.status == 404:
                raise NotFoundError(
                    f"cluster {identity} not found in namespace {identity.namespace}"
                ) from e
            raise UpstreamError(f"Failed to get cluster {identity}: {e.reason}") from e
        except HTTPError as e:
            logger.error("get_cluster_failed", error=str(e))
            raise UpstreamError(f"Failed to get cluster {identity}: {e}") from e
