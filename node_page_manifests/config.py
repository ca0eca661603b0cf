"""Environment driven settings for node manifest processing."""

from __future__ import annotations

import os
from dataclasses import dataclass

from node_page_manifests.manifest import DEFAULT_CACHE_DIRECTORY
from node_page_manifests.processor import DEFAULT_CONCURRENCY
from node_page_manifests.state import DEFAULT_MAX_PENDING

CACHE_DIR_ENV_VAR = "NODE_MANIFEST_CACHE_DIR"
CONCURRENCY_ENV_VAR = "NODE_MANIFEST_CONCURRENCY"
FILE_LIMIT_ENV_VAR = "NODE_MANIFEST_FILE_LIMIT"


@dataclass(frozen=True)
class ManifestSettings:
    cache_directory: str = DEFAULT_CACHE_DIRECTORY
    concurrency: int = DEFAULT_CONCURRENCY
    max_pending: int = DEFAULT_MAX_PENDING

    @classmethod
    def from_env(cls) -> "ManifestSettings":
        """Load settings from environment variables, falling back to defaults."""

        cache_directory = os.getenv(CACHE_DIR_ENV_VAR, DEFAULT_CACHE_DIRECTORY).strip()
        if not cache_directory:
            raise RuntimeError(f"{CACHE_DIR_ENV_VAR} is empty.")
        return cls(
            cache_directory=cache_directory,
            concurrency=_int_from_env(CONCURRENCY_ENV_VAR, DEFAULT_CONCURRENCY),
            max_pending=_int_from_env(FILE_LIMIT_ENV_VAR, DEFAULT_MAX_PENDING),
        )


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {value!r}.") from exc
