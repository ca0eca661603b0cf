"""Shared fixtures for node manifest tests."""

from __future__ import annotations

import pytest

from node_page_manifests.models import ManifestRequest
from node_page_manifests.reporter import Reporter


class RecordingReporter(Reporter):
    """Reporter that records every message it receives."""

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.infos: list[str] = []

    def warn(self, message: str) -> str:
        self.warnings.append(message)
        return message

    def info(self, message: str) -> str:
        self.infos.append(message)
        return message


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def request_factory():
    def make(manifest_id: str, node_id: str | None = None, plugin_name: str = "test") -> ManifestRequest:
        return ManifestRequest(
            plugin_name=plugin_name,
            manifest_id=manifest_id,
            node={"id": node_id or manifest_id, "title": f"Node {node_id or manifest_id}"},
        )

    return make
