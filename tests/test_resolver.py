"""Tests for page ownership lookup."""

import json
from pathlib import Path

from node_page_manifests.models import FoundPageBy, PageRef, ResolutionResult
from node_page_manifests.resolver import PageOwnershipResolver, PageRecord, PageRegistry


def test_resolver_delegates_to_lookup() -> None:
    calls: list[str] = []

    def lookup(*, node_id: str) -> ResolutionResult:
        calls.append(node_id)
        return ResolutionResult(page=PageRef(path=f"/{node_id}"), found_page_by="anything")

    result = PageOwnershipResolver(lookup).resolve("abc")

    assert calls == ["abc"]
    assert result.page == PageRef(path="/abc")
    assert result.found_page_by == "anything"


def test_owner_node_id_wins_over_context_id() -> None:
    registry = PageRegistry(
        pages=[
            PageRecord(path="/listing", component_path="src/templates/list.js", context={"id": "n1"}),
            PageRecord(path="/post", component_path="src/templates/post.js", owner_node_id="n1"),
        ]
    )

    result = registry.find_page_owned_by_node_id(node_id="n1")

    assert result.page == PageRef(path="/post")
    assert result.found_page_by is FoundPageBy.OWNER_NODE_ID


def test_context_id_match() -> None:
    registry = PageRegistry(
        pages=[PageRecord(path="/post", component_path="src/templates/post.js", context={"id": "n1"})]
    )

    result = registry.find_page_owned_by_node_id(node_id="n1")

    assert result.page == PageRef(path="/post")
    assert result.found_page_by is FoundPageBy.CONTEXT_ID


def test_collection_page_uses_filesystem_route_api() -> None:
    registry = PageRegistry(
        pages=[
            PageRecord(
                path="/blog/hello",
                component_path="src/pages/blog/{MarkdownRemark.slug}.js",
                context={"id": "n1"},
            )
        ]
    )

    result = registry.find_page_owned_by_node_id(node_id="n1")

    assert result.found_page_by is FoundPageBy.FILESYSTEM_ROUTE_API


def test_query_tracking_is_last_resort() -> None:
    registry = PageRegistry(
        pages=[PageRecord(path="/a"), PageRecord(path="/b")],
        queries_by_node={"n1": ["/deleted", "/b", "/a"]},
    )

    result = registry.find_page_owned_by_node_id(node_id="n1")

    assert result.page == PageRef(path="/b")
    assert result.found_page_by is FoundPageBy.QUERY_TRACKING


def test_unknown_node_resolves_to_none() -> None:
    registry = PageRegistry(pages=[PageRecord(path="/a")])
    registry.track_query("other", "/a")

    result = registry.find_page_owned_by_node_id(node_id="n1")

    assert result.page is None
    assert result.found_page_by is FoundPageBy.NONE


def test_registry_from_json(tmp_path: Path) -> None:
    pages_path = tmp_path / "pages.json"
    pages_path.write_text(
        json.dumps(
            {
                "pages": [
                    {"path": "/post", "componentPath": "src/post.js", "ownerNodeId": "n1"},
                    {"path": "/about", "context": {"id": "n2"}},
                ],
                "queries": {"n3": ["/about"]},
            }
        ),
        encoding="utf-8",
    )

    registry = PageRegistry.from_json(pages_path)

    assert registry.find_page_owned_by_node_id(node_id="n1").found_page_by is FoundPageBy.OWNER_NODE_ID
    assert registry.find_page_owned_by_node_id(node_id="n2").found_page_by is FoundPageBy.CONTEXT_ID
    assert registry.find_page_owned_by_node_id(node_id="n3").page == PageRef(path="/about")
