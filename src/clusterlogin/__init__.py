"""Cluster login CLI.

Authenticate against managed Kubernetes clusters through OIDC and keep the local
kubeconfig up to date.
"""

__version__ = "0.1.0"
__author__ = "Platform Engineering Team"
__license__ = "Apache-2.0"
