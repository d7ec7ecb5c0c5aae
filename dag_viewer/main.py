#!/usr/bin/env python3
"""
DAG Viewer - Live block DAG visualization for a node, drawn like git log --graph.

Usage:
    python -m dag_viewer.main --host localhost --http-port 40403 --depth 50

    Or, once installed:
    dag-viewer --depth 200

Controls:
    j/k, arrows - Move selection
    g / G       - Top (follow newest) / bottom
    Enter       - Block details
    q / Esc     - Back / quit
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Sequence

from .config import ViewerConfig, parse_config
from .errors import NodeApiError

logger = logging.getLogger("dag_viewer")


def configure_logging(config: ViewerConfig) -> None:
    """Route logs to a file or to the Textual devtools console, never the screen."""
    if config.log_file:
        handler: logging.Handler = logging.FileHandler(config.log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    else:
        from textual.logging import TextualHandler
        handler = TextualHandler()

    logger.addHandler(handler)
    logger.setLevel(config.log_level)


async def main(config: ViewerConfig) -> None:
    """Main entry point - loads history, then runs live feed and UI concurrently."""

    # Import here to avoid slow startup for --help
    import aiohttp

    from .datafeed.channel import EventChannel
    from .datafeed.node_api import NodeApiClient
    from .datafeed.reconciler import EventReconciler
    from .ui.controller import DagController
    from .ui.dag_view import run_ui
    from .ui.renderer import DagRenderer

    print(f"Loading blocks from {config.host}:{config.http_port}...")
    print(f"  Depth: {config.depth}")
    print(f"  Live:  {'yes' if config.live else 'no'}")
    print()

    async with aiohttp.ClientSession() as session:
        api = NodeApiClient(session, config.api_base)

        # History first; the UI only starts once it is in the store
        blocks = await api.fetch_blocks(config.depth)

        controller = DagController()
        controller.load_blocks(blocks)
        renderer = DagRenderer(show_deploys=config.show_deploys)

        if not config.live:
            await run_ui(controller, None, renderer)
            return

        channel = EventChannel()
        reconciler = EventReconciler(api, channel, config.ws_url)

        async def run_feed() -> None:
            try:
                await reconciler.run(session)
            except asyncio.CancelledError:
                pass

        feed_task = asyncio.create_task(run_feed())

        try:
            # Run UI (blocks until quit)
            await run_ui(controller, channel, renderer)
        finally:
            # Cleanup
            reconciler.stop()
            channel.close()
            feed_task.cancel()
            try:
                await feed_task
            except asyncio.CancelledError:
                pass


def cli(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    config = parse_config(argv)
    configure_logging(config)

    try:
        asyncio.run(main(config))
    except NodeApiError as e:
        print(f"Failed to load blocks: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
