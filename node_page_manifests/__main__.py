"""CLI entrypoint for node page manifests."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from functools import partial
from pathlib import Path

import anyio
from dotenv import find_dotenv, load_dotenv

from node_page_manifests.config import ManifestSettings
from node_page_manifests.flows import process_node_manifests_flow


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Write node page manifests")
    parser.add_argument("--pages", required=True, help="JSON file with pages and query tracking")
    parser.add_argument("--queue", required=True, help="JSONL file of pending manifest requests")
    parser.add_argument("--cwd", default=".", help="Site working directory")
    parser.add_argument("--cache-dir", default=None, help="Cache directory name under --cwd")
    parser.add_argument("--concurrency", type=int, default=None, help="Concurrent manifest writes")
    return parser


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    load_dotenv(find_dotenv(usecwd=True))

    parser = build_parser()
    args = parser.parse_args()

    settings = ManifestSettings.from_env()
    if args.cache_dir:
        settings = replace(settings, cache_directory=args.cache_dir)
    if args.concurrency is not None:
        settings = replace(settings, concurrency=args.concurrency)

    flow_runner = partial(
        process_node_manifests_flow,
        pages_path=Path(args.pages),
        queue_path=Path(args.queue),
        working_directory=Path(args.cwd).resolve(),
        settings=settings,
    )
    outcome = anyio.run(flow_runner)

    if outcome.failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
