"""
Block store for the live DAG view.

Two mappings are kept in sync by add_block(), the single mutation entry point
for adjacency:
1. hash -> DagBlock
2. parent hash -> child hashes (derived from every block's parents)

Tips (blocks with no known child) are maintained incrementally. The graph
layout is recomputed from scratch by compute_layout() after each mutation;
at the size of one validator set's DAG a full pass is cheap.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from .layout import compute_layout
from ..types import BlockStatus, DagBlock, GraphRow


class Dag:
    """
    Arena of blocks keyed by hash, plus the last computed graph layout.

    Thread-safety: NOT thread-safe. Owned by the UI controller only.
    """

    __slots__ = (
        '_blocks', '_children', '_tips',
        'graph_rows', 'sorted_hashes', 'max_columns',
    )

    def __init__(self) -> None:
        self._blocks: dict[str, DagBlock] = {}
        self._children: dict[str, list[str]] = {}
        # dict keys double as an insertion-ordered set
        self._tips: dict[str, None] = {}

        self.graph_rows: list[GraphRow] = []
        self.sorted_hashes: list[str] = []
        self.max_columns: int = 0

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, block_hash: object) -> bool:
        return block_hash in self._blocks

    def get(self, block_hash: str) -> DagBlock | None:
        return self._blocks.get(block_hash)

    @property
    def blocks(self) -> Mapping[str, DagBlock]:
        """Read-only view; all writes go through add_block()."""
        return MappingProxyType(self._blocks)

    @property
    def tips(self) -> tuple[str, ...]:
        return tuple(self._tips)

    def children_of(self, block_hash: str) -> tuple[str, ...]:
        return tuple(self._children.get(block_hash, ()))

    def add_block(self, block: DagBlock) -> None:
        """
        Insert or update a block.

        Adjacency and tips are only touched the first time a hash is seen,
        so re-inserting a block (e.g. after a refetch) is idempotent.
        """
        is_update = block.hash in self._blocks

        if not is_update:
            for parent in block.parents:
                self._children.setdefault(parent, []).append(block.hash)
                # Parent is no longer a tip
                self._tips.pop(parent, None)

            # A child may have arrived before this block did
            if not self._children.get(block.hash):
                self._tips[block.hash] = None

        self._blocks[block.hash] = block

    def add_blocks(self, blocks: Iterable[DagBlock]) -> None:
        for block in blocks:
            self.add_block(block)

    def update_status(self, block_hash: str, status: BlockStatus) -> None:
        """Overwrite a block's status. Unknown hashes are ignored.

        No ordering is enforced: a stale CREATED arriving after FINALIZED
        moves the block back to CREATED.
        """
        block = self._blocks.get(block_hash)
        if block is not None:
            self._blocks[block_hash] = block.with_status(status)

    def sorted_by_height(self) -> list[str]:
        """Hashes by height descending, then timestamp descending."""
        ordered = sorted(
            self._blocks.values(),
            key=lambda b: (b.block_number, b.timestamp),
            reverse=True,
        )
        return [b.hash for b in ordered]

    def compute_layout(self) -> None:
        """Recompute graph_rows and max_columns for the current block set."""
        self.sorted_hashes = self.sorted_by_height()
        self.graph_rows, self.max_columns = compute_layout(self._blocks, self.sorted_hashes)

    def layout_len(self) -> int:
        return len(self.graph_rows)

    def get_row(self, index: int) -> GraphRow | None:
        if 0 <= index < len(self.graph_rows):
            return self.graph_rows[index]
        return None
