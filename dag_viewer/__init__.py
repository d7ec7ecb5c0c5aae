"""
DAG Viewer - Live git-log style view of a blockchain block DAG in the terminal.

Architecture:
- datafeed/: Node REST queries, live event feed and block reconciliation
- engine/: Block store and column layout of the graph
- ui/: Row rendering, view state machine and the Textual TUI
"""

__version__ = "0.1.0"
