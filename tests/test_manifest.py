"""Tests for manifest writer."""

import json
import os
from pathlib import Path
from typing import Any

import pytest

from node_page_manifests.manifest import LocalStorage, ManifestWriteError, ManifestWriter, Storage
from node_page_manifests.models import InvalidManifestRequestError


class BrokenStorage(Storage):
    def ensure_directory(self, path: Path) -> None:
        pass

    def write_json(self, path: Path, payload: dict[str, Any]) -> None:
        raise PermissionError(13, "Permission denied", str(path))


def test_manifest_path_layout(tmp_path: Path) -> None:
    writer = ManifestWriter(tmp_path)
    expected = f"{os.path.join(str(tmp_path), '.cache', 'node-manifests', 'test')}/2.json"
    assert str(writer.manifest_path("test", "2")) == expected


def test_manifest_write(tmp_path: Path) -> None:
    writer = ManifestWriter(tmp_path, storage=LocalStorage())
    payload = {"node": {"id": "1"}, "page": {"path": "/one"}, "foundPageBy": "ownerNodeId"}

    manifest_path = writer.write("test", "1", payload)

    assert manifest_path == tmp_path / ".cache" / "node-manifests" / "test" / "1.json"
    assert json.loads(manifest_path.read_text(encoding="utf-8")) == payload


def test_manifest_write_overwrites(tmp_path: Path) -> None:
    writer = ManifestWriter(tmp_path, cache_directory="build-cache")
    writer.write("test", "1", {"page": {"path": "/old"}})
    manifest_path = writer.write("test", "1", {"page": {"path": "/new"}})

    assert manifest_path.parent == tmp_path / "build-cache" / "node-manifests" / "test"
    assert json.loads(manifest_path.read_text(encoding="utf-8"))["page"]["path"] == "/new"
    assert len(list(manifest_path.parent.iterdir())) == 1


def test_manifest_write_error(tmp_path: Path) -> None:
    writer = ManifestWriter(tmp_path, storage=BrokenStorage())

    with pytest.raises(ManifestWriteError) as excinfo:
        writer.write("test", "1", {})

    assert excinfo.value.path == writer.manifest_path("test", "1")
    assert isinstance(excinfo.value.__cause__, PermissionError)


def test_unserializable_payload_leaves_no_file(tmp_path: Path) -> None:
    writer = ManifestWriter(tmp_path)
    writer.write("test", "1", {"page": {"path": "/old"}})

    with pytest.raises(ManifestWriteError) as excinfo:
        writer.write("test", "1", {"node": {"id": "1", "tags": {"a", "b"}}})

    manifest_path = writer.manifest_path("test", "1")
    assert isinstance(excinfo.value.__cause__, TypeError)
    assert json.loads(manifest_path.read_text(encoding="utf-8")) == {"page": {"path": "/old"}}
    assert [path.name for path in manifest_path.parent.iterdir()] == ["1.json"]


@pytest.mark.parametrize(("plugin_name", "manifest_id"), [("test", "../../x"), ("..", "1")])
def test_manifest_path_rejects_traversal(tmp_path: Path, plugin_name, manifest_id) -> None:
    writer = ManifestWriter(tmp_path)

    with pytest.raises(InvalidManifestRequestError):
        writer.manifest_path(plugin_name, manifest_id)
