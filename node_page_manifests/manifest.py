"""Node manifest file storage."""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from node_page_manifests.models import NodeManifestError, check_path_segment

DEFAULT_CACHE_DIRECTORY = ".cache"
NODE_MANIFESTS_DIRNAME = "node-manifests"


class ManifestWriteError(NodeManifestError):
    """Manifest file could not be written."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"Failed to write node manifest {path}: {message}")
        self.path = path


class Storage(ABC):
    """Abstract directory and JSON file storage."""

    @abstractmethod
    def ensure_directory(self, path: Path) -> None:
        """Create the directory and its parents if missing."""

    @abstractmethod
    def write_json(self, path: Path, payload: dict[str, Any]) -> None:
        """Write payload as JSON, replacing any existing file."""


class LocalStorage(Storage):
    """Filesystem storage.

    Payloads are encoded before anything touches the disk and land through
    a temporary sibling file, so a failed write never leaves a partial file
    at the target path.
    """

    def ensure_directory(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def write_json(self, path: Path, payload: dict[str, Any]) -> None:
        content = json.dumps(payload, ensure_ascii=False, indent=2) + "\n"
        tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
        try:
            tmp_path.write_text(content, encoding="utf-8")
            tmp_path.replace(path)
        finally:
            tmp_path.unlink(missing_ok=True)


class ManifestWriter:
    """Writes one JSON file per manifest under a plugin scoped directory."""

    def __init__(
        self,
        working_directory: Path,
        cache_directory: str = DEFAULT_CACHE_DIRECTORY,
        storage: Storage | None = None,
    ) -> None:
        self.working_directory = working_directory
        self.cache_directory = cache_directory
        self.storage = storage or LocalStorage()

    def plugin_directory(self, plugin_name: str) -> Path:
        check_path_segment(plugin_name, "pluginName")
        return self.working_directory / self.cache_directory / NODE_MANIFESTS_DIRNAME / plugin_name

    def manifest_path(self, plugin_name: str, manifest_id: str) -> Path:
        check_path_segment(manifest_id, "manifestId")
        return self.plugin_directory(plugin_name) / f"{manifest_id}.json"

    def write(self, plugin_name: str, manifest_id: str, payload: dict[str, Any]) -> Path:
        """Persist payload and return the written path."""

        manifest_path = self.manifest_path(plugin_name, manifest_id)
        try:
            self.storage.ensure_directory(manifest_path.parent)
            self.storage.write_json(manifest_path, payload)
        except (OSError, TypeError, ValueError) as exc:
            raise ManifestWriteError(manifest_path, str(exc)) from exc
        return manifest_path
