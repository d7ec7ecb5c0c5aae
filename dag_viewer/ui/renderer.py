"""
Row formatting for the DAG view.

Every function here is pure: (graph row, dag, flags, width) -> Rich Text.

Row layout:
    GRAPH | CREATOR BLOCK HASH | PARENTS (centered) | DEPLOYS STATUS AGE

Colors of graph lanes and creators depend on the column index only, so a
branch keeps its color while it scrolls.
"""

from __future__ import annotations

from datetime import datetime

from rich.console import Group
from rich.style import Style
from rich.text import Text

from ..engine.dag import Dag
from ..types import BlockStatus, ColumnKind, DagBlock, GraphRow, shorten

# Lane palette (cycled by column index)
LANE_COLORS = (
    "#22d3ee",  # Cyan
    "#e879f9",  # Magenta
    "#facc15",  # Yellow
    "#60a5fa",  # Blue
    "#4ade80",  # Green
    "#f87171",  # Red
    "#a5f3fc",  # Light cyan
    "#f5d0fe",  # Light magenta
)

DIM_COLOR = "#64748b"
TEXT_COLOR = "#f8fafc"
LABEL_COLOR = "#facc15"
HEIGHT_COLOR = "#94a3b8"
SELECTED_BG = "#334155"

STATUS_STYLES = {
    BlockStatus.FINALIZED: ("FINAL", "#22c55e"),
    BlockStatus.ADDED: ("ADDED", "#eab308"),
    BlockStatus.CREATED: ("NEW", "#06b6d4"),
}

STATUS_DETAILS = {
    BlockStatus.FINALIZED: "FINALIZED",
    BlockStatus.ADDED: "ADDED (pending finalization)",
    BlockStatus.CREATED: "CREATED (pending validation)",
}

# Fixed column widths
LANE_WIDTH = 2
CREATOR_WIDTH = 10
BLOCK_WIDTH = 7
HASH_WIDTH = 10
DEPLOYS_WIDTH = 10
STATUS_WIDTH = 8
AGE_WIDTH = 8
SPACING = 2  # Between column groups

PARENT_SEPARATOR = "  |  "


def lane_color(col: int) -> str:
    return LANE_COLORS[col % len(LANE_COLORS)]


def center(text: str, width: int) -> str:
    """Center `text` in `width` cells, hard-truncating when it does not fit."""
    if width <= 0:
        return ""
    if len(text) >= width:
        return text[:width]
    padding = width - len(text)
    left = padding // 2
    return " " * left + text + " " * (padding - left)


def height_label(block: DagBlock) -> str:
    return str(block.block_number) if block.height_known else "???"


class DagRenderer:
    """Formats header, rows and the block detail panel."""

    def __init__(self, show_deploys: bool = True) -> None:
        self.show_deploys = show_deploys

    # --- Width arithmetic ----------------------------------------------------

    def graph_width(self, dag: Dag) -> int:
        return LANE_WIDTH * max(1, dag.max_columns)

    def fixed_width(self, graph_width: int) -> int:
        """Width of everything except the PARENTS column."""
        width = graph_width + CREATOR_WIDTH + BLOCK_WIDTH + HASH_WIDTH
        width += SPACING + SPACING + STATUS_WIDTH + AGE_WIDTH
        if self.show_deploys:
            width += DEPLOYS_WIDTH
        return width

    def parents_width(self, dag: Dag, total_width: int) -> int:
        return max(0, total_width - self.fixed_width(self.graph_width(dag)))

    # --- Pieces --------------------------------------------------------------

    def render_graph(self, row: GraphRow, graph_cols: int) -> Text:
        """Lane glyphs for one row: node, continuing lines and merge corners."""
        glyphs: list[tuple[str, int]] = []
        for col in range(graph_cols):
            kind = row.columns[col].kind if col < len(row.columns) else ColumnKind.EMPTY
            if kind is ColumnKind.NODE:
                glyphs.append(("●", col))
            elif kind is ColumnKind.LINE:
                glyphs.append(("│", col))
            else:
                glyphs.append((" ", col))

        for edge in row.edges:
            if edge.to_col == edge.from_col or edge.to_col >= graph_cols:
                continue
            glyph, _ = glyphs[edge.to_col]
            if glyph == " ":
                corner = "╮" if edge.to_col > edge.from_col else "╭"
                glyphs[edge.to_col] = (corner, edge.to_col)

        text = Text(no_wrap=True)
        for glyph, col in glyphs:
            text.append(glyph.ljust(LANE_WIDTH), style=lane_color(col))
        return text

    def format_parents(self, block: DagBlock, dag: Dag, width: int) -> str:
        """
        Parents as 'hash[creator:#height]', falling back to bare hashes when
        the enriched form does not fit. Centered in `width`.
        """
        if not block.parents:
            return center("(genesis)", width)

        enriched = []
        for parent_hash in block.parents:
            parent = dag.get(parent_hash)
            if parent is None:
                enriched.append(shorten(parent_hash))
            else:
                enriched.append(
                    f"{shorten(parent_hash)}[{parent.creator_short}:#{height_label(parent)}]"
                )
        text = PARENT_SEPARATOR.join(enriched)

        if len(text) > width:
            text = "  ".join(shorten(p) for p in block.parents)
        return center(text, width)

    # --- Public --------------------------------------------------------------

    def render_row(
        self,
        row: GraphRow,
        dag: Dag,
        selected: bool,
        total_width: int,
        now: datetime | None = None,
    ) -> Text:
        """Render a single row of the DAG."""
        block = dag.get(row.block_hash)
        if block is None:
            return Text("")

        line = Text(no_wrap=True, overflow="crop")
        line.append_text(self.render_graph(row, max(1, dag.max_columns)))

        # Left side (left-aligned): creator, block, hash
        line.append(f"{block.creator_short:<{CREATOR_WIDTH}}", style=lane_color(row.node_column))
        line.append(f"#{height_label(block):<{BLOCK_WIDTH - 1}}", style=HEIGHT_COLOR)
        hash_style = Style(color=TEXT_COLOR, bold=True) if selected else Style(color=DIM_COLOR)
        line.append(f"{block.short_hash:<{HASH_WIDTH}}", style=hash_style)
        line.append(" " * SPACING)

        # Center: parents, using all remaining space
        line.append(
            self.format_parents(block, dag, self.parents_width(dag, total_width)),
            style=DIM_COLOR,
        )
        line.append(" " * SPACING)

        # Right side (right-aligned): deploys, status, age
        if self.show_deploys:
            deploy_style = Style(color=TEXT_COLOR, bold=True) if block.deploy_count else Style(color=DIM_COLOR)
            line.append(f"{f'{block.deploy_count} dep':>{DEPLOYS_WIDTH}}", style=deploy_style)

        label, color = STATUS_STYLES[block.status]
        line.append(f"{label:>{STATUS_WIDTH}}", style=color)
        line.append(f"{block.age_string(now):>{AGE_WIDTH}}", style=DIM_COLOR)

        if selected:
            line.stylize(f"on {SELECTED_BG}")
        return line

    def render_header(self, dag: Dag, total_width: int) -> Text:
        """Column titles, using the same widths as render_row()."""
        style = Style(color=DIM_COLOR, bold=True)
        graph_width = self.graph_width(dag)

        title = "GRAPH" if graph_width >= len("GRAPH") else ""
        header = Text(no_wrap=True, overflow="crop")
        header.append(f"{title:<{graph_width}}", style=style)
        header.append(f"{'CREATOR':<{CREATOR_WIDTH}}", style=style)
        header.append(f"{'BLOCK':<{BLOCK_WIDTH}}", style=style)
        header.append(f"{'HASH':<{HASH_WIDTH}}", style=style)
        header.append(" " * SPACING)
        header.append(center("PARENTS", self.parents_width(dag, total_width)), style=style)
        header.append(" " * SPACING)
        if self.show_deploys:
            header.append(f"{'DEPLOYS':>{DEPLOYS_WIDTH}}", style=style)
        header.append(f"{'STATUS':>{STATUS_WIDTH}}", style=style)
        header.append(f"{'AGE':>{AGE_WIDTH}}", style=style)
        return header

    def render_details(self, block: DagBlock) -> Group:
        """Full attribute listing of one block."""
        lines: list[Text] = [Text("")]

        def field(label: str, value: str) -> None:
            lines.append(Text.assemble(("  " + f"{label + ':':<13}", LABEL_COLOR), value))

        def section(title: str) -> None:
            lines.append(Text(""))
            lines.append(Text(f"  {title}", style=LABEL_COLOR))

        field("Hash", block.hash)
        field("Block #", height_label(block))
        field("Timestamp", block.timestamp.strftime("%Y-%m-%d %H:%M:%S UTC"))
        field("Creator", block.creator)
        field("Seq Num", str(block.seq_num))
        field("Shard", block.shard_id or "root")

        section("Parents:")
        if not block.parents:
            lines.append(Text("    (genesis - no parents)"))
        for parent_hash in block.parents:
            lines.append(Text(f"    └─ {parent_hash[:16]}..."))

        section("State Transition:")
        lines.append(Text(f"    Pre:  {_state_hash(block.pre_state_hash)}"))
        lines.append(Text(f"    Post: {_state_hash(block.post_state_hash)}"))

        section(f"Deploys ({block.deploy_count}):")
        if not block.deploys:
            lines.append(Text("    (no deploys)"))
        for deploy in block.deploys:
            mark, color = ("✗", "#ef4444") if deploy.errored else ("✓", "#22c55e")
            lines.append(Text.assemble(
                "    └─ [", (mark, color),
                f"] {deploy.id[:12]}  cost: {deploy.cost}  deployer: {shorten(deploy.deployer)}",
            ))

        lines.append(Text(""))
        _, color = STATUS_STYLES[block.status]
        lines.append(Text.assemble(
            ("  Status: ", LABEL_COLOR),
            (STATUS_DETAILS[block.status], Style(color=color, bold=True)),
        ))
        lines.append(Text(""))
        lines.append(Text.assemble((" [Esc] ", LABEL_COLOR), "Back"))
        return Group(*lines)


def _state_hash(value: str) -> str:
    if not value:
        return "(empty)"
    if len(value) > 16:
        return f"{value[:16]}..."
    return value
