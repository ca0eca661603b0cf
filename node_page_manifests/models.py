"""Data model for node page manifests."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class NodeManifestError(RuntimeError):
    """Base error for node manifest processing."""


class UnreachableStateError(NodeManifestError):
    """A foundPageBy tag arrived outside the known set."""

    def __init__(self, found_page_by: object) -> None:
        super().__init__(
            f"Unreachable state: foundPageBy {found_page_by!r} is not a known "
            "node manifest mapping method."
        )
        self.found_page_by = found_page_by


class InvalidManifestRequestError(NodeManifestError, ValueError):
    """Manifest request is missing required fields or is a duplicate."""


def check_path_segment(value: object, label: str) -> str:
    """Ensure value can be used as a single file or directory name."""

    if not isinstance(value, str) or value in ("", ".", ".."):
        raise InvalidManifestRequestError(f"{label} {value!r} is not a valid name.")
    if "/" in value or "\\" in value or "\0" in value:
        raise InvalidManifestRequestError(
            f"{label} {value!r} must not contain path separators."
        )
    return value


class FoundPageBy(str, Enum):
    """Heuristic used to locate the page owning a node."""

    OWNER_NODE_ID = "ownerNodeId"
    FILESYSTEM_ROUTE_API = "filesystem-route-api"
    CONTEXT_ID = "context.id"
    QUERY_TRACKING = "queryTracking"
    NONE = "none"


@dataclass(frozen=True)
class PageRef:
    """Reference to a rendered page."""

    path: str


@dataclass(frozen=True)
class ResolutionResult:
    """Page owning a node, tagged with the heuristic that found it.

    ``found_page_by`` is kept as received from the lookup so an unknown tag
    reaches diagnostics intact.
    """

    page: PageRef | None
    found_page_by: FoundPageBy | str


@dataclass(frozen=True)
class ManifestRequest:
    """Request from a plugin to record which page renders a node."""

    plugin_name: str
    manifest_id: str
    node: Mapping[str, Any]

    def __post_init__(self) -> None:
        check_path_segment(self.plugin_name, "pluginName")
        check_path_segment(self.manifest_id, "manifestId")
        if not isinstance(self.node, Mapping) or self.node.get("id") in (None, ""):
            raise InvalidManifestRequestError(
                f"Manifest request {self.manifest_id} from {self.plugin_name} has no node id."
            )

    @property
    def node_id(self) -> str:
        return str(self.node["id"])

    @property
    def key(self) -> tuple[str, str]:
        return self.plugin_name, self.manifest_id

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ManifestRequest":
        """Build a request from a ``{pluginName, manifestId, node}`` mapping."""

        plugin_name = data.get("pluginName", data.get("plugin_name"))
        manifest_id = data.get("manifestId", data.get("manifest_id"))
        node = data.get("node")
        if not plugin_name:
            raise InvalidManifestRequestError("Manifest request is missing pluginName.")
        if manifest_id is None or manifest_id == "":
            raise InvalidManifestRequestError(
                f"Manifest request from {plugin_name} is missing manifestId."
            )
        if isinstance(node, Mapping):
            node = dict(node)
        return cls(plugin_name=str(plugin_name), manifest_id=str(manifest_id), node=node)


@dataclass(frozen=True)
class ManifestArtifact:
    """Resolved manifest persisted for downstream tooling."""

    node: Mapping[str, Any]
    page_path: str | None
    found_page_by: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "node": dict(self.node),
            "page": {"path": self.page_path},
            "foundPageBy": self.found_page_by,
        }
