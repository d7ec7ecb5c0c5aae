"""
View state machine of the DAG viewer, independent of the terminal library.

States: main view and detail view (show_details). `running` turns False only
on quit. The Textual app calls tick() once per frame and handle_key() for
every key press, then redraws from this object's state.
"""

from __future__ import annotations

import logging

from ..datafeed.channel import EventChannel
from ..engine.dag import Dag
from ..types import (
    BlockAdded,
    BlockCreated,
    BlockFinalized,
    BlockStatus,
    DagBlock,
    DagEvent,
    FeedError,
    shorten,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 10
DEFAULT_VIEWPORT_HEIGHT = 20

UP_KEYS = frozenset({"up", "k"})
DOWN_KEYS = frozenset({"down", "j"})
TOP_KEYS = frozenset({"g", "home"})
BOTTOM_KEYS = frozenset({"G", "end"})
QUIT_KEYS = frozenset({"q", "escape"})
DETAIL_KEYS = frozenset({"enter"})


class DagController:
    """
    Owns the Dag and every piece of view state.

    Thread-safety: NOT thread-safe. Only the UI loop touches it; the feed
    task talks to it through the EventChannel.
    """

    def __init__(self, dag: Dag | None = None) -> None:
        self.dag = dag if dag is not None else Dag()
        self.scroll_offset = 0
        self.selected_index = 0
        self.show_details = False
        self.running = True
        self.follow_head = True
        self.status_message = "Connecting..."
        self.block_count = len(self.dag)
        self.viewport_height = DEFAULT_VIEWPORT_HEIGHT

    # --- Data ----------------------------------------------------------------

    def load_blocks(self, blocks: list[DagBlock]) -> None:
        """Initial bulk load, before the UI starts."""
        self.dag.add_blocks(blocks)
        self.dag.compute_layout()
        self.block_count = len(self.dag)
        self.status_message = f"Loaded {self.block_count} blocks"

    def tick(self, channel: EventChannel | None) -> int:
        """
        Per-frame ingestion step. Applies every queued event without waiting.

        Skipped entirely in the detail view so the block being inspected does
        not change; events stay buffered in the channel meanwhile.
        Returns the number of events applied.
        """
        if channel is None or self.show_details:
            return 0
        events = channel.drain()
        for event in events:
            self.handle_event(event)
        return len(events)

    def handle_event(self, event: DagEvent) -> None:
        if isinstance(event, BlockCreated):
            block = event.block
            height = block.block_number if block.height_known else "???"
            self.status_message = f"New block: #{height} {block.short_hash}"
            self.dag.add_block(block)
            self.dag.compute_layout()
            self.block_count = len(self.dag)

            # Keep the newest block in view
            if self.follow_head:
                self.selected_index = 0
                self.scroll_offset = 0
        elif isinstance(event, BlockAdded):
            self.dag.update_status(event.block_hash, BlockStatus.ADDED)
        elif isinstance(event, BlockFinalized):
            self.dag.update_status(event.block_hash, BlockStatus.FINALIZED)
            self.status_message = f"Finalized: {shorten(event.block_hash)}..."
        elif isinstance(event, FeedError):
            self.status_message = f"Error: {event.message}"
        else:
            logger.debug("Ignoring event %r", event)

    # --- Input ---------------------------------------------------------------

    @property
    def row_count(self) -> int:
        return self.dag.layout_len()

    def handle_key(self, key: str) -> bool:
        """Dispatch one key press. Returns True if the key was used."""
        if self.show_details:
            if key in QUIT_KEYS or key in DETAIL_KEYS:
                self.show_details = False
                return True
            return False

        num_rows = self.row_count

        if key in QUIT_KEYS:
            self.running = False
        elif key in UP_KEYS:
            if self.selected_index > 0:
                self.selected_index -= 1
                self.ensure_visible()
                # Resume following once back at the top
                self.follow_head = self.scroll_offset == 0 and self.selected_index == 0
        elif key in DOWN_KEYS:
            if self.selected_index + 1 < num_rows:
                self.selected_index += 1
                self.ensure_visible()
                self.follow_head = False
        elif key == "pageup":
            self.selected_index = max(0, self.selected_index - PAGE_SIZE)
            self.ensure_visible()
            self.follow_head = self.scroll_offset == 0 and self.selected_index == 0
        elif key == "pagedown":
            self.selected_index = max(0, min(self.selected_index + PAGE_SIZE, num_rows - 1))
            self.ensure_visible()
            self.follow_head = False
        elif key in TOP_KEYS:
            self.selected_index = 0
            self.scroll_offset = 0
            self.follow_head = True
        elif key in BOTTOM_KEYS:
            self.selected_index = max(0, num_rows - 1)
            self.ensure_visible()
        elif key in DETAIL_KEYS:
            if self.selected_block() is not None:
                self.show_details = True
        else:
            return False
        return True

    # --- View ----------------------------------------------------------------

    def set_viewport_height(self, height: int) -> None:
        self.viewport_height = max(1, height)
        self.ensure_visible()

    def ensure_visible(self) -> None:
        """Scroll by the minimum amount that keeps the selection on screen."""
        if self.selected_index < self.scroll_offset:
            self.scroll_offset = self.selected_index
        elif self.selected_index >= self.scroll_offset + self.viewport_height:
            self.scroll_offset = self.selected_index - self.viewport_height + 1

    def visible_range(self) -> range:
        start = self.scroll_offset
        return range(start, min(start + self.viewport_height, self.row_count))

    def selected_block(self) -> DagBlock | None:
        row = self.dag.get_row(self.selected_index)
        if row is None:
            return None
        return self.dag.get(row.block_hash)

    @property
    def tip_count(self) -> int:
        return len(self.dag.tips)
