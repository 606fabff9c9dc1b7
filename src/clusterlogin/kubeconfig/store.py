"""Kubeconfig loading, merging and persistence."""

import copy
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from clusterlogin.core.exceptions import CorruptKubeconfigError, NotWritableError
from clusterlogin.core.models import CredentialEntry
from clusterlogin.utils.logging import get_logger

logger = get_logger(__name__)

NAMED_SECTIONS = ("clusters", "users", "contexts")
FILE_MODE = 0o600
DIR_MODE = 0o700


class KubeconfigDocument:
    """In-memory kubeconfig.

    Keeps every key it was loaded with so that entries written by other
    tools survive a merge.
    """

    def __init__(self, data: dict[str, Any] | None = None):
        self.data: dict[str, Any] = data if data is not None else self._empty_data()
        for section in NAMED_SECTIONS:
            if self.data.get(section) is None:
                self.data[section] = []

    @staticmethod
    def _empty_data() -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [],
            "contexts": [],
            "current-context": "",
            "preferences": {},
            "users": [],
        }

    @classmethod
    def empty(cls) -> "KubeconfigDocument":
        return cls()

    @property
    def current_context(self) -> str:
        return self.data.get("current-context") or ""

    def set_current_context(self, name: str) -> None:
        self.data["current-context"] = name

    def names(self, section: str) -> list[str]:
        return [item.get("name") for item in self.data[section] if isinstance(item, dict)]

    def context_names(self) -> list[str]:
        return self.names("contexts")

    def get(self, section: str, name: str) -> dict[str, Any] | None:
        return next(
            (i for i in self.data[section] if isinstance(i, dict) and i.get("name") == name),
            None,
        )

    def _upsert_item(self, section: str, item: dict[str, Any]) -> None:
        items = self.data[section]
        for index, existing in enumerate(items):
            if isinstance(existing, dict) and existing.get("name") == item["name"]:
                items[index] = item
                return
        items.append(item)

    def upsert(self, entry: CredentialEntry) -> None:
        """Insert or replace the cluster, user and context of an entry.

        Same-named entries are replaced in place, everything else is kept.
        """
        for section, item in entry.to_kubeconfig_items().items():
            self._upsert_item(section, item)

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self.data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KubeconfigDocument):
            return NotImplemented
        return self.data == other.data


class KubeconfigStore:
    """Kubeconfig file on disk."""

    def __init__(self, path: str | Path):
        """Initialize store.

        Args:
            path: Kubeconfig file path
        """
        self.path = Path(path)

    def load(self) -> KubeconfigDocument:
        """Load the kubeconfig.

        A missing or empty file yields an empty document.

        Raises:
            CorruptKubeconfigError: If the file is not a valid kubeconfig
            NotWritableError: If the file cannot be read
        """
        try:
            content = self.path.read_text()
        except FileNotFoundError:
            logger.debug("kubeconfig_not_found", path=str(self.path))
            return KubeconfigDocument.empty()
        except OSError as e:
            raise NotWritableError(f"unable to read kubeconfig {self.path}: {e}") from e

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise CorruptKubeconfigError(str(self.path), str(e)) from e

        if data is None:
            return KubeconfigDocument.empty()
        if not isinstance(data, dict):
            raise CorruptKubeconfigError(str(self.path), "top level is not a mapping")
        for section in NAMED_SECTIONS:
            if data.get(section) is not None and not isinstance(data[section], list):
                raise CorruptKubeconfigError(str(self.path), f"{section} is not a list")

        return KubeconfigDocument(data)

    def save(self, document: KubeconfigDocument) -> None:
        """Write the document, replacing the file atomically.

        A symlinked kubeconfig is written through to its target.

        Raises:
            NotWritableError: If the file cannot be written
        """
        content = yaml.safe_dump(document.data, default_flow_style=False, sort_keys=False)

        target = Path(os.path.realpath(self.path))
        tmp_path = None
        try:
            target.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
            with os.fdopen(fd, "w") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, FILE_MODE)
            os.replace(tmp_path, target)
        except OSError as e:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)
            logger.error("kubeconfig_write_failed", path=str(self.path), error=str(e))
            raise NotWritableError(f"unable to write kubeconfig {self.path}: {e}") from e

        logger.info("kubeconfig_written", path=str(self.path))

    def merge_and_persist(self, entry: CredentialEntry, set_current: bool) -> KubeconfigDocument:
        """Merge an entry into the kubeconfig on disk.

        Load, merge and write happen back to back; only the entry's three
        records come from this process.

        Args:
            entry: Credential entry to upsert
            set_current: Make the entry's context the current context

        Returns:
            The document as written
        """
        document = self.load()
        document.upsert(entry)
        if set_current:
            document.set_current_context(entry.context.name)
        self.save(document)

        logger.info(
            "kubeconfig_merged",
            path=str(self.path),
            context=entry.context.name,
            current_context=document.current_context,
        )
        return document
