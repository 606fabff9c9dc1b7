"""Custom exceptions for clusterlogin."""


class ClusterLoginError(Exception):
    """Base exception for all clusterlogin errors."""


class ConfigurationError(ClusterLoginError):
    """Configuration-related errors."""


class InvalidIdentifierError(ClusterLoginError):
    """Cluster argument is not a valid `name` or `name/namespace`."""


class NotFoundError(ClusterLoginError):
    """Cluster resource does not exist in the resource API."""


class UpstreamError(ClusterLoginError):
    """Resource API lookup failed."""


class IncompleteStatusError(ClusterLoginError):
    """Cluster status is missing connection metadata."""


class InvalidEncodingError(ClusterLoginError):
    """Cluster status carries data that cannot be decoded."""


class SelfResolutionError(ClusterLoginError):
    """Path of the running executable could not be determined."""


class NotWritableError(ClusterLoginError):
    """Kubeconfig could not be written."""


class CorruptKubeconfigError(ClusterLoginError):
    """Existing kubeconfig cannot be parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"kubeconfig {path} is not valid: {reason}")


class ExecPluginFailedError(ClusterLoginError):
    """Exec plugin exited unsuccessfully or was cancelled."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        stderr: str = "",
        cancelled: bool = False,
    ):
        self.exit_code = exit_code
        self.stderr = stderr
        self.cancelled = cancelled
        super().__init__(message)


class LoginStepError(ClusterLoginError):
    """A login step failed.

    Wraps the underlying error together with the name of the step that raised it.
    """

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"{step}: {cause}")
