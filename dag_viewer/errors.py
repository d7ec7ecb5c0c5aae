"""Exceptions raised by DAG Viewer."""

from __future__ import annotations


class DagViewerError(Exception):
    """Base class for all DAG Viewer errors."""


class NodeApiError(DagViewerError):
    """HTTP query against the node failed or returned an unusable body."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class FeedParseError(DagViewerError):
    """A live feed message could not be turned into an event."""


class ChannelClosed(DagViewerError):
    """Send attempted on an event channel whose receiver has gone away."""
