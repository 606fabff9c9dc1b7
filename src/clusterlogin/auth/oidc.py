"""OIDC credential helper run by the kubeconfig exec plugin."""

import subprocess
from pathlib import Path

from clusterlogin.core.exceptions import ExecPluginFailedError
from clusterlogin.utils.logging import get_logger

logger = get_logger(__name__)


class OIDCTokenHelper:
    """Obtains an ExecCredential through kubelogin.

    kubelogin opens the browser for the authorization code flow with PKCE or
    answers from its token cache, and prints the ExecCredential to stdout.
    """

    def __init__(self, command: str = "kubectl-oidc_login", token_cache_dir: str | None = None):
        """Initialize helper.

        Args:
            command: kubelogin executable
            token_cache_dir: Token cache directory (optional)
        """
        self.command = command
        self.token_cache_dir = token_cache_dir

    def build_command(self, issuer_url: str, client_id: str) -> list[str]:
        cmd = [
            self.command,
            "get-token",
            f"--oidc-issuer-url={issuer_url}",
            f"--oidc-client-id={client_id}",
            "--oidc-use-pkce",
        ]
        if self.token_cache_dir:
            cmd.append(f"--token-cache-dir={Path(self.token_cache_dir).expanduser()}")
        return cmd

    def get_token(self, issuer_url: str, client_id: str) -> int:
        """Run kubelogin with stdout and stderr attached to ours.

        Args:
            issuer_url: OIDC issuer URL
            client_id: OIDC client id

        Returns:
            kubelogin exit code

        Raises:
            ExecPluginFailedError: If kubelogin is not installed
        """
        cmd = self.build_command(issuer_url, client_id)
        logger.debug("running_oidc_helper", command=" ".join(cmd))

        try:
            result = subprocess.run(cmd, check=False)
        except FileNotFoundError as e:
            logger.error("oidc_helper_not_found", command=self.command)
            raise ExecPluginFailedError(
                f"{self.command} not found. Please install kubelogin (kubectl oidc-login)."
            ) from e

        logger.debug("oidc_helper_completed", returncode=result.returncode)
        return result.returncode
