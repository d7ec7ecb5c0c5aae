"""
Git-style column layout for the block DAG (the `git log --graph` packing).

Blocks are walked newest to oldest. Each active column either is empty or
waits for the hash it will display next when walking towards genesis:
- a block takes the column a child reserved for it, else the first empty
  column, else a new one
- the first parent continues in the block's column
- every other parent (a merge) reuses its reserved column or claims the
  first empty column other than the block's own
- parents missing from the store get no edge and no column

The whole layout is recomputed on every mutation: O(blocks x avg parents).
"""

from __future__ import annotations

from typing import Mapping, Sequence

from ..types import EMPTY, NODE, DagBlock, GraphColumn, GraphEdge, GraphRow


def _first_empty(columns: list[str | None], skip: int = -1) -> int:
    """Index of the first free column (ignoring `skip`), appending if none."""
    for idx, tracked in enumerate(columns):
        if tracked is None and idx != skip:
            return idx
    columns.append(None)
    return len(columns) - 1


def compute_layout(
    blocks: Mapping[str, DagBlock],
    sorted_hashes: Sequence[str],
) -> tuple[list[GraphRow], int]:
    """
    Lay out `sorted_hashes` (newest first) into graph rows.

    Returns (rows, max_columns), where max_columns is the widest row
    including columns that only receive a merge edge.
    """
    rows: list[GraphRow] = []
    max_columns = 0

    columns: list[str | None] = []
    reserved: dict[str, int] = {}   # hash -> column waiting for it
    drawn: dict[str, int] = {}      # hash -> node column of an emitted row

    for block_hash in sorted_hashes:
        block = blocks.get(block_hash)
        if block is None:
            continue

        node_col = reserved.pop(block_hash, None)
        if node_col is None:
            node_col = _first_empty(columns)

        while len(columns) <= node_col:
            columns.append(None)

        row_columns: list[GraphColumn] = [
            EMPTY if tracked is None else GraphColumn.line(tracked)
            for tracked in columns
        ]
        row_columns[node_col] = NODE

        # This column is consumed; the primary parent may claim it back
        columns[node_col] = None

        edges: list[GraphEdge] = []
        for i, parent_hash in enumerate(block.parents):
            if parent_hash not in blocks:
                # Dangling parent, outside our view
                continue

            if parent_hash in drawn:
                # Parent already placed above us (its height was unknown
                # or out of order): point at it, reserve nothing
                parent_col = drawn[parent_hash]
            elif parent_hash in reserved:
                # Another branch is already waiting for this parent
                parent_col = reserved[parent_hash]
            elif i == 0:
                parent_col = node_col
                reserved[parent_hash] = parent_col
                columns[parent_col] = parent_hash
            else:
                parent_col = _first_empty(columns, skip=node_col)
                reserved[parent_hash] = parent_col
                columns[parent_col] = parent_hash

            edges.append(GraphEdge(node_col, parent_col, parent_hash))

        drawn[block_hash] = node_col

        # Keep the rendered width minimal
        while len(columns) > 1 and columns[-1] is None:
            columns.pop()

        width = len(row_columns)
        for edge in edges:
            width = max(width, edge.to_col + 1)
        max_columns = max(max_columns, width)

        rows.append(GraphRow(
            block_hash=block_hash,
            node_column=node_col,
            columns=tuple(row_columns),
            edges=tuple(edges),
        ))

    return rows, max_columns
