"""Reporting sink used by manifest processing."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod


class Reporter(ABC):
    """Abstract reporter interface.

    Methods return the message they were given so callers can verify what
    was reported.
    """

    @abstractmethod
    def warn(self, message: str) -> str:
        """Report a warning."""

    @abstractmethod
    def info(self, message: str) -> str:
        """Report an informational message."""


class LoggingReporter(Reporter):
    """Reporter that forwards to a standard library logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("node_page_manifests.report")

    def warn(self, message: str) -> str:
        self.logger.warning(message)
        return message

    def info(self, message: str) -> str:
        self.logger.info(message)
        return message
