"""
DAG TUI using Textual.

Displays:
- Main view: header + git-style graph rows, one per block, newest on top
- Detail view: every attribute of the selected block
- Status bar: key hints, block/tip counts and the last status message

Frame model:
- A 100ms interval timer is the frame tick: it drains the event channel
  (main view only) and redraws
- Key presses go straight to the DagController state machine
- No network I/O ever happens on this loop
"""

from __future__ import annotations

import logging

from rich.console import RenderableType
from rich.text import Text

from textual import events
from textual.app import App, ComposeResult
from textual.widgets import Static

from .controller import DagController
from .renderer import DagRenderer
from ..datafeed.channel import EventChannel

logger = logging.getLogger(__name__)

FRAME_INTERVAL_SEC = 0.1

# Header title + separator above the rows
HEADER_LINES = 2

BORDER_COLOR = "#22d3ee"
HINT_COLOR = "#facc15"
COUNT_COLOR = "#22d3ee"
MESSAGE_COLOR = "#22c55e"


class DagTable(Static):
    """Main graph display widget."""

    DEFAULT_CSS = """
    DagTable {
        width: 100%;
        height: 1fr;
        border: round #22d3ee;
        padding: 0 1;
    }
    """

    def __init__(self, controller: DagController, renderer: DagRenderer) -> None:
        super().__init__()
        self.controller = controller
        self.renderer = renderer
        self.border_title = " DAG Viewer "

    def on_resize(self, event: events.Resize) -> None:
        self.controller.set_viewport_height(self.size.height - HEADER_LINES)

    def render(self) -> RenderableType:
        ctl = self.controller
        dag = ctl.dag
        width = self.size.width

        if not dag.graph_rows:
            return Text("Waiting for blocks...", style="dim")

        # Clamp against the real viewport before drawing
        ctl.set_viewport_height(self.size.height - HEADER_LINES)

        lines = [
            self.renderer.render_header(dag, width),
            Text("─" * width, style="#475569"),
        ]
        for index in ctl.visible_range():
            row = dag.graph_rows[index]
            lines.append(self.renderer.render_row(row, dag, index == ctl.selected_index, width))
        return Text("\n").join(lines)


class DetailPanel(Static):
    """Attributes of the selected block."""

    DEFAULT_CSS = """
    DetailPanel {
        width: 100%;
        height: 1fr;
        border: round #22d3ee;
        padding: 0 1;
    }
    """

    def __init__(self, controller: DagController, renderer: DagRenderer) -> None:
        super().__init__()
        self.controller = controller
        self.renderer = renderer
        self.border_title = " Block Details "

    def render(self) -> RenderableType:
        block = self.controller.selected_block()
        if block is None:
            return Text("No block selected", style="dim")
        return self.renderer.render_details(block)


class StatusBar(Static):
    """Key hints, counters and status message."""

    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: 3;
        border: round #475569;
        padding: 0 1;
    }
    """

    def __init__(self, controller: DagController) -> None:
        super().__init__()
        self.controller = controller

    def render(self) -> RenderableType:
        ctl = self.controller
        parts = [
            Text("[↑↓/jk] ", style=HINT_COLOR),
            Text("Navigate  "),
            Text("[Enter] ", style=HINT_COLOR),
            Text("Details  "),
            Text("[g/G] ", style=HINT_COLOR),
            Text("Top/Bottom  "),
            Text("[q] ", style=HINT_COLOR),
            Text("Quit"),
            Text("  │  ", style="dim"),
            Text(f"Blocks: {ctl.block_count}  Tips: {ctl.tip_count}  ", style=COUNT_COLOR),
        ]
        if ctl.follow_head:
            parts.append(Text("[follow] ", style="bold " + MESSAGE_COLOR))
        parts.append(Text(ctl.status_message, style=MESSAGE_COLOR))

        result = Text(no_wrap=True, overflow="ellipsis")
        for p in parts:
            result.append(p)
        return result


class DagApp(App):
    """Main DAG Viewer application."""

    CSS = """
    Screen {
        background: #0f172a;
    }
    """

    def __init__(
        self,
        controller: DagController,
        channel: EventChannel | None = None,
        renderer: DagRenderer | None = None,
        frame_interval: float = FRAME_INTERVAL_SEC,
    ) -> None:
        super().__init__()
        self.controller = controller
        self.channel = channel
        self.renderer = renderer or DagRenderer()
        self.frame_interval = frame_interval
        self._dag_table: DagTable | None = None
        self._detail_panel: DetailPanel | None = None
        self._status_bar: StatusBar | None = None

    def compose(self) -> ComposeResult:
        self._dag_table = DagTable(self.controller, self.renderer)
        self._detail_panel = DetailPanel(self.controller, self.renderer)
        self._status_bar = StatusBar(self.controller)
        self._detail_panel.display = False

        yield self._dag_table
        yield self._detail_panel
        yield self._status_bar

    def on_mount(self) -> None:
        """Start the frame tick."""
        self.set_interval(self.frame_interval, self._frame)
        self._refresh_view()

    def on_unmount(self) -> None:
        # Lets a producer blocked on a full channel notice we are gone
        if self.channel is not None:
            self.channel.close()

    def _frame(self) -> None:
        applied = self.controller.tick(self.channel)
        if applied:
            logger.debug("Applied %d feed events", applied)
        self._refresh_view()

    def _refresh_view(self) -> None:
        details = self.controller.show_details
        if self._dag_table is not None:
            self._dag_table.display = not details
            self._dag_table.refresh()
        if self._detail_panel is not None:
            self._detail_panel.display = details
            self._detail_panel.refresh()
        if self._status_bar is not None:
            self._status_bar.display = not details
            self._status_bar.refresh()

    def on_key(self, event: events.Key) -> None:
        """Sole key dispatcher: every press goes to the controller."""
        key = event.character if event.is_printable and event.character else event.key
        if not self.controller.handle_key(key):
            return
        event.prevent_default()
        event.stop()

        if not self.controller.running:
            self.exit()
            return
        self._refresh_view()


async def run_ui(controller: DagController, channel: EventChannel | None, renderer: DagRenderer) -> None:
    """Run the TUI application until the user quits."""
    app = DagApp(controller, channel, renderer)
    await app.run_async()
