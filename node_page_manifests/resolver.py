"""Page ownership lookup for nodes."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from node_page_manifests.models import FoundPageBy, PageRef, ResolutionResult

COLLECTION_SEGMENT = re.compile(r"\{[^}]+\}")


class PageOwnershipLookup(Protocol):
    def __call__(self, *, node_id: str) -> ResolutionResult: ...


class PageOwnershipResolver:
    """Delegates node id lookups to an injected ownership lookup."""

    def __init__(self, find_page_owned_by_node_id: PageOwnershipLookup) -> None:
        self.find_page_owned_by_node_id = find_page_owned_by_node_id

    def resolve(self, node_id: str) -> ResolutionResult:
        return self.find_page_owned_by_node_id(node_id=node_id)


@dataclass(frozen=True)
class PageRecord:
    """A page created during the build."""

    path: str
    component_path: str = ""
    owner_node_id: str | None = None
    context: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_collection_page(self) -> bool:
        return bool(COLLECTION_SEGMENT.search(self.component_path))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PageRecord":
        owner = data.get("ownerNodeId", data.get("owner_node_id"))
        return cls(
            path=str(data["path"]),
            component_path=str(data.get("componentPath", data.get("component_path", ""))),
            owner_node_id=str(owner) if owner is not None else None,
            context=dict(data.get("context") or {}),
        )


class PageRegistry:
    """In-memory node to page lookup.

    Precedence: an explicit ownerNodeId always wins, then the first page
    whose context id matches (tagged filesystem-route-api for collection
    pages), then the first known page that queried the node.
    """

    def __init__(
        self,
        pages: Iterable[PageRecord] = (),
        queries_by_node: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self.pages: dict[str, PageRecord] = {}
        for page in pages:
            self.add_page(page)
        self.queries_by_node: dict[str, list[str]] = {
            str(node_id): list(paths) for node_id, paths in (queries_by_node or {}).items()
        }

    def add_page(self, page: PageRecord) -> None:
        self.pages[page.path] = page

    def track_query(self, node_id: str, page_path: str) -> None:
        paths = self.queries_by_node.setdefault(node_id, [])
        if page_path not in paths:
            paths.append(page_path)

    def find_page_owned_by_node_id(self, *, node_id: str) -> ResolutionResult:
        found: PageRecord | None = None
        found_by = FoundPageBy.NONE

        for page in self.pages.values():
            if page.owner_node_id == node_id:
                return ResolutionResult(
                    page=PageRef(path=page.path),
                    found_page_by=FoundPageBy.OWNER_NODE_ID,
                )
            context_id = page.context.get("id")
            if found is None and context_id is not None and str(context_id) == node_id:
                found = page
                found_by = (
                    FoundPageBy.FILESYSTEM_ROUTE_API
                    if page.is_collection_page
                    else FoundPageBy.CONTEXT_ID
                )

        if found is not None:
            return ResolutionResult(page=PageRef(path=found.path), found_page_by=found_by)

        for path in self.queries_by_node.get(node_id, []):
            if path in self.pages:
                return ResolutionResult(
                    page=PageRef(path=path),
                    found_page_by=FoundPageBy.QUERY_TRACKING,
                )

        return ResolutionResult(page=None, found_page_by=FoundPageBy.NONE)

    @classmethod
    def from_json(cls, path: Path) -> "PageRegistry":
        """Load ``{"pages": [...], "queries": {node_id: [page_path, ...]}}``."""

        data = json.loads(path.read_text(encoding="utf-8"))
        pages = [PageRecord.from_dict(item) for item in data.get("pages", [])]
        return cls(pages=pages, queries_by_node=data.get("queries", {}))
