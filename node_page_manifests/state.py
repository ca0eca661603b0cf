"""Pending node manifest queue."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from node_page_manifests.models import InvalidManifestRequestError, ManifestRequest

LOGGER = logging.getLogger("node_page_manifests.state")

DEFAULT_MAX_PENDING = 10000


class ManifestQueue:
    """Ordered queue of manifest requests waiting to be written.

    A queue belongs to one build; several queues can live side by side.
    """

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self.max_pending = max_pending
        self._pending: dict[tuple[str, str], ManifestRequest] = {}
        self._limit_warned = False

    def __len__(self) -> int:
        return len(self._pending)

    def enqueue(self, request: ManifestRequest) -> bool:
        """Add a request. Returns False when the pending limit drops it."""

        if request.key in self._pending:
            raise InvalidManifestRequestError(
                f"Manifest {request.manifest_id} from {request.plugin_name} is already pending."
            )
        if self.max_pending > 0 and len(self._pending) >= self.max_pending:
            if not self._limit_warned:
                LOGGER.warning(
                    "Node manifest limit of %s reached, dropping manifest %s from %s",
                    self.max_pending,
                    request.manifest_id,
                    request.plugin_name,
                )
                self._limit_warned = True
            return False
        self._pending[request.key] = request
        return True

    def get_pending_manifests(self) -> tuple[ManifestRequest, ...]:
        """Point-in-time snapshot of pending requests in enqueue order."""

        return tuple(self._pending.values())

    def clear_processed(self, processed: Iterable[ManifestRequest]) -> int:
        """Remove exactly the given requests and return how many were removed."""

        removed = 0
        for request in processed:
            if self._pending.get(request.key) is request:
                del self._pending[request.key]
                removed += 1
        if len(self._pending) < self.max_pending:
            self._limit_warned = False
        return removed


@contextmanager
def _locked(lock_path: Path) -> Iterator[None]:
    """Hold an exclusive lock on a sidecar lock file."""

    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.touch(exist_ok=True)
    with lock_path.open("r+") as handle:
        try:
            import fcntl

            fcntl.flock(handle, fcntl.LOCK_EX)
        except ImportError:
            pass
        yield


class QueueFile:
    """JSONL file of pending requests shared with producers in other processes.

    Producers append with ``append``. A build claims lines with ``load`` and,
    once they are processed, removes exactly those lines with ``remove``.
    Every read and rewrite happens under ``<name>.lock``.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.lock_path = path.with_name(f"{path.name}.lock")
        self._claimed: dict[tuple[str, str], str] = {}

    def append(self, request: ManifestRequest) -> None:
        line = json.dumps(
            {
                "pluginName": request.plugin_name,
                "manifestId": request.manifest_id,
                "node": dict(request.node),
            },
            ensure_ascii=False,
        )
        with _locked(self.lock_path):
            prefix = ""
            if self.path.exists():
                existing = self.path.read_text(encoding="utf-8")
                if existing and not existing.endswith("\n"):
                    prefix = "\n"
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(prefix + line + "\n")

    def load(self, max_pending: int = DEFAULT_MAX_PENDING) -> ManifestQueue:
        """Claim up to ``max_pending`` requests; the rest stay in the file."""

        queue = ManifestQueue(max_pending=max_pending)
        with _locked(self.lock_path):
            if not self.path.exists():
                return queue
            lines = self.path.read_text(encoding="utf-8").splitlines()

        deferred = 0
        for line_number, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line:
                continue
            if max_pending > 0 and len(queue) >= max_pending:
                deferred += 1
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                raise InvalidManifestRequestError(
                    f"{self.path}:{line_number} is not valid JSON: {exc}"
                ) from exc
            request = ManifestRequest.from_dict(data)
            queue.enqueue(request)
            self._claimed[request.key] = line

        if deferred:
            LOGGER.info(
                "Left %s node manifests in %s for the next run (limit %s)",
                deferred,
                self.path,
                max_pending,
            )
        return queue

    def remove(self, processed: Iterable[ManifestRequest]) -> int:
        """Drop the lines claimed for the given requests and keep everything else."""

        targets = [
            self._claimed.pop(request.key)
            for request in processed
            if request.key in self._claimed
        ]
        if not targets:
            return 0

        removed = 0
        with _locked(self.lock_path):
            if not self.path.exists():
                return 0
            remaining = self.path.read_text(encoding="utf-8").splitlines()
            for target in targets:
                for index, line in enumerate(remaining):
                    if line.strip() == target:
                        del remaining[index]
                        removed += 1
                        break
            content = "".join(f"{line}\n" for line in remaining if line.strip())
            tmp_path = self.path.with_name(f".{self.path.name}.tmp")
            tmp_path.write_text(content, encoding="utf-8")
            tmp_path.replace(self.path)
        return removed
