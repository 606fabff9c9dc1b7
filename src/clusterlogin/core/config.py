"""Configuration management for clusterlogin."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from clusterlogin.core.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = "~/.clusterlogin/config.yaml"
DEFAULT_API_CONTEXT = "nineapis.ch"


class APIConfig(BaseModel):
    """Resource API connection configuration."""

    context: str | None = DEFAULT_API_CONTEXT  # kubeconfig context of the resource API
    namespace: str | None = None
    kubeconfig: str | None = None  # explicit kubeconfig path


class ClusterResourceConfig(BaseModel):
    """Coordinates of the cluster custom resource."""

    group: str = "infrastructure.nine.ch"
    version: str = "v1alpha1"
    plural: str = "kubernetesclusters"


class ExecPluginConfig(BaseModel):
    """Exec plugin configuration."""

    timeout_seconds: float | None = None  # None waits until the plugin exits
    oidc_helper_command: str = "kubectl-oidc_login"
    token_cache_dir: str = "~/.kube/cache/oidc-login"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "console"
    output: str = "stderr"


class ClusterLoginConfig(BaseModel):
    """Main clusterlogin configuration."""

    api: APIConfig = Field(default_factory=APIConfig)
    cluster_resource: ClusterResourceConfig = Field(default_factory=ClusterResourceConfig)
    exec_plugin: ExecPluginConfig = Field(default_factory=ExecPluginConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: str | Path) -> "ClusterLoginConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            ClusterLoginConfig instance

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        config_path = Path(path).expanduser()

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f)
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        try:
            return cls(**(data or {}))
        except Exception as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def load(cls, path: str | Path | None = None) -> "ClusterLoginConfig":
        """Load configuration, falling back to defaults.

        An explicitly given path must exist. The default path is optional.

        Args:
            path: Explicit configuration file path (optional)

        Returns:
            ClusterLoginConfig instance
        """
        if path is not None:
            return cls.from_file(path)

        default_path = Path(DEFAULT_CONFIG_PATH).expanduser()
        if default_path.exists():
            return cls.from_file(default_path)
        return cls()

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation
        """
        return self.model_dump()
