"""Batch processing of pending node manifests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import anyio

from node_page_manifests.diagnostics import MappingDiagnostics
from node_page_manifests.manifest import ManifestWriteError, ManifestWriter
from node_page_manifests.models import (
    ManifestArtifact,
    ManifestRequest,
    UnreachableStateError,
)
from node_page_manifests.reporter import LoggingReporter, Reporter
from node_page_manifests.resolver import PageOwnershipResolver
from node_page_manifests.state import ManifestQueue

LOGGER = logging.getLogger("node_page_manifests.processor")

DEFAULT_CONCURRENCY = 20


@dataclass(frozen=True)
class EntryOutcome:
    request: ManifestRequest
    manifest_path: Path | None
    status: str
    error: str | None


@dataclass(frozen=True)
class BatchOutcome:
    processed: int = 0
    written: list[Path] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)


def _find_unreachable(group: BaseExceptionGroup) -> UnreachableStateError | None:
    for exc in group.exceptions:
        if isinstance(exc, UnreachableStateError):
            return exc
        if isinstance(exc, BaseExceptionGroup):
            nested = _find_unreachable(exc)
            if nested is not None:
                return nested
    return None


class ManifestBatchProcessor:
    """Drains the pending queue and writes one manifest file per request."""

    def __init__(
        self,
        queue: ManifestQueue,
        resolver: PageOwnershipResolver,
        writer: ManifestWriter,
        reporter: Reporter | None = None,
        diagnostics: MappingDiagnostics | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.queue = queue
        self.resolver = resolver
        self.writer = writer
        self.reporter = reporter or LoggingReporter()
        self.diagnostics = diagnostics or MappingDiagnostics(self.reporter)
        self.concurrency = concurrency

    async def process_node_manifest(self, request: ManifestRequest) -> EntryOutcome:
        """Resolve, check and persist a single request.

        Write failures are logged and returned as a failed outcome. An
        unknown foundPageBy tag raises UnreachableStateError.
        """

        resolution = self.resolver.resolve(request.node_id)
        page_path = resolution.page.path if resolution.page else None
        diagnostic = self.diagnostics.diagnose(request, resolution.found_page_by, page_path)
        artifact = ManifestArtifact(
            node=request.node,
            page_path=page_path,
            found_page_by=diagnostic.category.value,
        )
        try:
            manifest_path = await anyio.to_thread.run_sync(
                self.writer.write,
                request.plugin_name,
                request.manifest_id,
                artifact.to_payload(),
            )
        except ManifestWriteError as exc:
            LOGGER.error(
                "Failed to write manifest %s for plugin %s: %s",
                request.manifest_id,
                request.plugin_name,
                exc,
            )
            return EntryOutcome(
                request=request,
                manifest_path=None,
                status="failed",
                error=str(exc),
            )
        LOGGER.debug("Wrote node manifest %s", manifest_path)
        return EntryOutcome(
            request=request,
            manifest_path=manifest_path,
            status="written",
            error=None,
        )

    async def run(self) -> BatchOutcome:
        """Process every request pending at call time, then clear them."""

        pending = self.queue.get_pending_manifests()
        if not pending:
            return BatchOutcome()

        semaphore = anyio.Semaphore(max(self.concurrency, 1))
        send_channel, receive_channel = anyio.create_memory_object_stream[EntryOutcome](
            len(pending)
        )

        async def process_one(request: ManifestRequest) -> None:
            async with semaphore:
                outcome = await self.process_node_manifest(request)
            await send_channel.send(outcome)

        async with receive_channel:
            try:
                async with anyio.create_task_group() as tg:
                    for request in pending:
                        tg.start_soon(process_one, request)
            except BaseExceptionGroup as group:
                fatal = _find_unreachable(group)
                if fatal is None:
                    raise
                raise fatal from None
            finally:
                await send_channel.aclose()

            outcomes = [outcome async for outcome in receive_channel]

        self.reporter.info(f"Wrote out {len(pending)} node page manifest files")
        self.queue.clear_processed(pending)

        failures = [outcome.request.key for outcome in outcomes if outcome.status == "failed"]
        if failures:
            LOGGER.error("Failed node manifests: %s", failures)
        return BatchOutcome(
            processed=len(pending),
            written=[
                outcome.manifest_path for outcome in outcomes if outcome.manifest_path is not None
            ],
            failures=failures,
        )
