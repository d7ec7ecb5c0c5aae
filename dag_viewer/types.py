"""
Data types for DAG Viewer.

Notes:
- Using NamedTuple for immutable records; a status change produces a new
  DagBlock via _replace()
- Feed events form a closed union (BlockCreated, BlockAdded, BlockFinalized,
  Started, FeedError) so consumers can dispatch with isinstance()
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import NamedTuple, Union

# Height of a block whose number has not been looked up yet
UNKNOWN_HEIGHT = -1

SHORT_LEN = 8


def shorten(value: str, length: int = SHORT_LEN) -> str:
    """First `length` characters of a hash or key."""
    return value[:length]


class BlockStatus(Enum):
    """Lifecycle stage of a block as reported by the node."""
    CREATED = "created"      # Just proposed
    ADDED = "added"          # Validated and added to the DAG
    FINALIZED = "finalized"  # Reached finality


class DagDeploy(NamedTuple):
    """A deploy included in a block."""
    id: str
    cost: int
    deployer: str
    errored: bool


class DagBlock(NamedTuple):
    """A block in the DAG."""
    hash: str
    block_number: int         # UNKNOWN_HEIGHT until fetched from the API
    timestamp: datetime       # Aware, UTC
    creator: str
    seq_num: int
    parents: tuple[str, ...]  # Empty = genesis, >1 = merge
    deploy_count: int
    status: BlockStatus
    shard_id: str = ""
    pre_state_hash: str = ""
    post_state_hash: str = ""
    deploys: tuple[DagDeploy, ...] = ()

    @property
    def short_hash(self) -> str:
        return shorten(self.hash)

    @property
    def creator_short(self) -> str:
        return shorten(self.creator)

    @property
    def height_known(self) -> bool:
        return self.block_number >= 0

    def with_status(self, status: BlockStatus) -> DagBlock:
        return self._replace(status=status)

    def age_seconds(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        return max(0, int((now - self.timestamp).total_seconds()))

    def age_string(self, now: datetime | None = None) -> str:
        """Human-readable age, e.g. '12s ago', '3m ago'."""
        seconds = self.age_seconds(now)
        if seconds < 60:
            return f"{seconds}s ago"
        if seconds < 3600:
            return f"{seconds // 60}m ago"
        if seconds < 86400:
            return f"{seconds // 3600}h ago"
        return f"{seconds // 86400}d ago"


class ColumnKind(Enum):
    EMPTY = "empty"
    LINE = "line"    # Continuing line tracking a block hash
    NODE = "node"    # The node of this row's block


class GraphColumn(NamedTuple):
    """State of one graph column on one row."""
    kind: ColumnKind
    tracking: str | None = None  # Hash followed by a LINE column

    @classmethod
    def line(cls, block_hash: str) -> GraphColumn:
        return cls(ColumnKind.LINE, block_hash)


EMPTY = GraphColumn(ColumnKind.EMPTY)
NODE = GraphColumn(ColumnKind.NODE)


class GraphEdge(NamedTuple):
    """Edge from a node to one of its parents."""
    from_col: int
    to_col: int
    parent_hash: str


class GraphRow(NamedTuple):
    """One line of the git-style graph."""
    block_hash: str
    node_column: int
    columns: tuple[GraphColumn, ...]
    edges: tuple[GraphEdge, ...]


# --- Feed events -------------------------------------------------------------

class BlockCreated(NamedTuple):
    """Full (or best-effort partial) block record; status is carried inside."""
    block: DagBlock


class BlockAdded(NamedTuple):
    block_hash: str


class BlockFinalized(NamedTuple):
    block_hash: str


class Started(NamedTuple):
    """Connection handshake from the node. Never forwarded."""


class FeedError(NamedTuple):
    """Terminal error of the live feed."""
    message: str


DagEvent = Union[BlockCreated, BlockAdded, BlockFinalized, Started, FeedError]
