"""Kubeconfig location and persistence."""

from clusterlogin.kubeconfig.paths import KubeconfigPathResolver
from clusterlogin.kubeconfig.store import KubeconfigDocument, KubeconfigStore

__all__ = [
    "KubeconfigDocument",
    "KubeconfigPathResolver",
    "KubeconfigStore",
]
