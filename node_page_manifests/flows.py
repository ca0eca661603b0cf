"""Prefect flow orchestration."""

from __future__ import annotations

import logging
from pathlib import Path

from prefect import flow

from node_page_manifests.config import ManifestSettings
from node_page_manifests.manifest import ManifestWriter
from node_page_manifests.processor import BatchOutcome, ManifestBatchProcessor
from node_page_manifests.reporter import LoggingReporter
from node_page_manifests.resolver import PageOwnershipResolver, PageRegistry
from node_page_manifests.state import QueueFile

LOGGER = logging.getLogger("node_page_manifests.flow")


@flow(name="process_node_manifests_flow")
async def process_node_manifests_flow(
    pages_path: Path,
    queue_path: Path,
    working_directory: Path,
    settings: ManifestSettings | None = None,
) -> BatchOutcome:
    """Write manifests for every pending request in a JSONL queue file.

    Only the lines processed by this run are removed from the queue file;
    lines appended meanwhile or left over the pending limit stay queued.
    """

    settings = settings or ManifestSettings.from_env()
    if not pages_path.exists():
        raise FileNotFoundError(f"Pages file not found: {pages_path}")

    registry = PageRegistry.from_json(pages_path)
    queue_file = QueueFile(queue_path)
    queue = queue_file.load(max_pending=settings.max_pending)
    snapshot = queue.get_pending_manifests()
    LOGGER.info("Loaded %s pages and %s pending manifests", len(registry.pages), len(queue))

    processor = ManifestBatchProcessor(
        queue=queue,
        resolver=PageOwnershipResolver(registry.find_page_owned_by_node_id),
        writer=ManifestWriter(working_directory, cache_directory=settings.cache_directory),
        reporter=LoggingReporter(logging.getLogger("node_page_manifests.report")),
        concurrency=settings.concurrency,
    )
    outcome = await processor.run()

    remaining = {id(request) for request in queue.get_pending_manifests()}
    queue_file.remove(request for request in snapshot if id(request) not in remaining)
    return outcome
