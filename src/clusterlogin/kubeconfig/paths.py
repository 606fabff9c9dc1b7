"""Kubeconfig file location."""

import os
import pwd
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from clusterlogin.core.exceptions import ConfigurationError

RECOMMENDED_HOME_DIR = ".kube"
RECOMMENDED_FILE_NAME = "config"
KUBECONFIG_ENV = "KUBECONFIG"

PathProvider = Callable[[Mapping[str, str]], list[Path]]


def from_env_var(environ: Mapping[str, str]) -> list[Path]:
    """Paths listed in KUBECONFIG."""
    value = environ.get(KUBECONFIG_ENV, "")
    return [Path(p).expanduser() for p in value.split(os.pathsep) if p]


def from_home_dir(environ: Mapping[str, str]) -> list[Path]:
    """$HOME/.kube/config when HOME is set."""
    home = environ.get("HOME")
    if not home:
        return []
    return [Path(home) / RECOMMENDED_HOME_DIR / RECOMMENDED_FILE_NAME]


def from_user_database(environ: Mapping[str, str]) -> list[Path]:
    """Home directory of the current OS user, used only without HOME."""
    if environ.get("HOME"):
        return []
    try:
        home = pwd.getpwuid(os.getuid()).pw_dir
    except KeyError as e:
        raise ConfigurationError(f"could not get current user: {e}") from e
    return [Path(home) / RECOMMENDED_HOME_DIR / RECOMMENDED_FILE_NAME]


DEFAULT_PROVIDERS: tuple[PathProvider, ...] = (from_env_var, from_home_dir, from_user_database)


class KubeconfigPathResolver:
    """Resolves the kubeconfig path from an ordered list of providers.

    The first provider that yields candidates wins. Among its candidates the
    first existing file is used, otherwise the first candidate.
    """

    def __init__(
        self,
        providers: Sequence[PathProvider] = DEFAULT_PROVIDERS,
        environ: Mapping[str, str] | None = None,
    ):
        self.providers = tuple(providers)
        self.environ = os.environ if environ is None else environ

    def candidates(self) -> list[Path]:
        for provider in self.providers:
            paths = provider(self.environ)
            if paths:
                return paths
        return []

    def resolve(self, explicit: str | Path | None = None) -> Path:
        """Resolve the kubeconfig path.

        Args:
            explicit: Path given on the command line or in config (optional)

        Returns:
            Kubeconfig path

        Raises:
            ConfigurationError: If no provider yields a path
        """
        if explicit:
            return Path(explicit).expanduser()

        paths = self.candidates()
        if not paths:
            raise ConfigurationError("unable to determine kubeconfig location")

        return next((p for p in paths if p.exists()), paths[0])
