"""
Runtime configuration for DAG Viewer.

Values come from the command line; each option's default can be overridden
through an environment variable so the viewer can be pointed at a node
without retyping flags.
"""

from __future__ import annotations

import argparse
import os
from typing import NamedTuple, Sequence

DEFAULT_HOST = "localhost"
DEFAULT_HTTP_PORT = 40403
DEFAULT_DEPTH = 50
DEFAULT_LOG_LEVEL = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise SystemExit(f"{name} must be an integer, got {raw!r}")


class ViewerConfig(NamedTuple):
    """Everything the viewer needs to connect and render."""
    host: str = DEFAULT_HOST
    http_port: int = DEFAULT_HTTP_PORT
    depth: int = DEFAULT_DEPTH
    live: bool = True
    show_deploys: bool = True
    log_file: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def api_base(self) -> str:
        return f"http://{self.host}:{self.http_port}"

    @property
    def ws_url(self) -> str:
        # The event stream shares the HTTP API port
        return f"ws://{self.host}:{self.http_port}/ws/events"

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> ViewerConfig:
        return cls(
            host=args.host,
            http_port=args.http_port,
            depth=args.depth,
            live=not args.no_live,
            show_deploys=not args.hide_deploys,
            log_file=args.log_file,
            log_level=args.log_level.upper(),
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dag-viewer",
        description="DAG Viewer - Live block DAG of a node, drawn like git log --graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    dag-viewer
    dag-viewer --host node0.example.org --depth 200
    dag-viewer --no-live --hide-deploys

Controls:
    j/k, arrows    Move selection
    PgUp/PgDn      Move by 10
    g / G          Top (follow head) / bottom
    Enter          Block details
    q / Esc        Back / quit
        """
    )

    parser.add_argument(
        "--host",
        default=os.environ.get("DAG_VIEWER_HOST", DEFAULT_HOST),
        help=f"Node host (default: {DEFAULT_HOST}, env DAG_VIEWER_HOST)"
    )

    parser.add_argument(
        "--http-port",
        type=int,
        default=_env_int("DAG_VIEWER_HTTP_PORT", DEFAULT_HTTP_PORT),
        help=f"Node HTTP API port, also used for the event stream (default: {DEFAULT_HTTP_PORT})"
    )

    parser.add_argument(
        "--depth",
        type=int,
        default=_env_int("DAG_VIEWER_DEPTH", DEFAULT_DEPTH),
        help=f"Number of recent blocks to load at startup (default: {DEFAULT_DEPTH})"
    )

    parser.add_argument(
        "--no-live",
        action="store_true",
        help="Do not subscribe to live block events"
    )

    parser.add_argument(
        "--hide-deploys",
        action="store_true",
        help="Hide the deploy count column"
    )

    parser.add_argument(
        "--log-file",
        default=os.environ.get("DAG_VIEWER_LOG_FILE"),
        help="Write logs to this file instead of the Textual devtools console"
    )

    parser.add_argument(
        "--log-level",
        default=os.environ.get("DAG_VIEWER_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "debug", "info", "warning", "error"],
        help=f"Log level (default: {DEFAULT_LOG_LEVEL})"
    )

    return parser


def parse_config(argv: Sequence[str] | None = None) -> ViewerConfig:
    args = build_parser().parse_args(argv)
    if args.depth <= 0:
        raise SystemExit("--depth must be positive")
    return ViewerConfig.from_args(args)
