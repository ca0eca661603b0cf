"""Warnings about how a node was mapped to its page."""

from __future__ import annotations

from dataclasses import dataclass

from node_page_manifests.models import FoundPageBy, ManifestRequest, UnreachableStateError
from node_page_manifests.reporter import LoggingReporter, Reporter

SUCCESS_MESSAGE = "success"
CONTENT_SYNC_DOCS = "https://www.gatsbyjs.com/docs/conceptual/content-sync"

WARNING_CATEGORIES = frozenset(
    {FoundPageBy.NONE, FoundPageBy.CONTEXT_ID, FoundPageBy.QUERY_TRACKING}
)


@dataclass(frozen=True)
class DiagnosticResult:
    """Outcome of a mapping check and every message it could have produced."""

    message: str
    category: FoundPageBy
    possible_messages: dict[str, str]

    @property
    def warned(self) -> bool:
        return self.category in WARNING_CATEGORIES


def coerce_found_page_by(value: object) -> FoundPageBy:
    """Return the enum member for a tag or raise UnreachableStateError."""

    if isinstance(value, FoundPageBy):
        return value
    try:
        return FoundPageBy(value)
    except ValueError:
        raise UnreachableStateError(value) from None


def build_messages(request: ManifestRequest, page_path: str | None) -> dict[str, str]:
    """Build the message table for one request, keyed by foundPageBy value."""

    prefix = (
        f'Plugin {request.plugin_name} created a node manifest for node id '
        f'"{request.node_id}" with manifest id "{request.manifest_id}"'
    )
    return {
        FoundPageBy.NONE.value: (
            f"{prefix} but couldn't find a page for this node.\n"
            "If a manifest should exist for this node, make sure a page renders it "
            "and pass ownerNodeId to createPage() when the page is not created by "
            f"the filesystem route API. This can be expected for nodes no page renders. "
            f"See {CONTENT_SYNC_DOCS}"
        ),
        FoundPageBy.CONTEXT_ID.value: (
            f"{prefix} but the page at {page_path} has no ownerNodeId.\n"
            "The page was matched through pageContext.id, which only works when the "
            "id in context happens to be the owner node. Add ownerNodeId to "
            f"createPage() to map this node to its page explicitly. See {CONTENT_SYNC_DOCS}"
        ),
        FoundPageBy.QUERY_TRACKING.value: (
            f"{prefix} but no page declares it through ownerNodeId.\n"
            f"The page at {page_path} was picked because it is the first page where "
            "this node is queried, which may not be the page that renders it. Add "
            f"ownerNodeId to createPage() for the owning page. See {CONTENT_SYNC_DOCS}"
        ),
        FoundPageBy.FILESYSTEM_ROUTE_API.value: SUCCESS_MESSAGE,
        FoundPageBy.OWNER_NODE_ID.value: SUCCESS_MESSAGE,
    }


class MappingDiagnostics:
    """Classifies a page resolution and warns about unreliable mappings."""

    def __init__(self, reporter: Reporter | None = None) -> None:
        self.reporter = reporter or LoggingReporter()

    def diagnose(
        self,
        request: ManifestRequest,
        found_page_by: FoundPageBy | str,
        page_path: str | None,
    ) -> DiagnosticResult:
        category = coerce_found_page_by(found_page_by)
        possible_messages = build_messages(request, page_path)
        message = possible_messages[category.value]
        if category in WARNING_CATEGORIES:
            self.reporter.warn(message)
        return DiagnosticResult(
            message=message,
            category=category,
            possible_messages=possible_messages,
        )
