"""
JSON -> DagBlock / DagEvent parsing.

The node uses two naming conventions:
- REST queries (/api/blocks, /api/block): camelCase (blockHash, seqNum, ...)
- Live event stream (/ws/events): kebab-case (block-hash, seq-num, ...)

Feed messages are parsed by a single entry point, parse_feed_event(), which
either returns a complete event or raises FeedParseError. Nothing is ever
half-built.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import orjson

from ..errors import FeedParseError
from ..types import (
    UNKNOWN_HEIGHT,
    BlockAdded,
    BlockCreated,
    BlockFinalized,
    BlockStatus,
    DagBlock,
    DagDeploy,
    DagEvent,
    Started,
)


def _str_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(v for v in value if isinstance(v, str))


def _int(value: Any, default: int = 0) -> int:
    # bool is an int subclass; never treat it as a number here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return int(value)


def _timestamp(millis: Any) -> datetime:
    if isinstance(millis, bool) or not isinstance(millis, (int, float)):
        return datetime.now(timezone.utc)
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return datetime.now(timezone.utc)


# --- REST (camelCase) --------------------------------------------------------

def parse_deploy(data: Any) -> DagDeploy | None:
    """Parse one entry of the 'deploys' list of /api/block/{hash}."""
    if not isinstance(data, dict):
        return None
    deploy_id = data.get("sig") or data.get("deployId") or ""
    if not isinstance(deploy_id, str):
        return None
    deployer = data.get("deployer")
    return DagDeploy(
        id=deploy_id,
        cost=_int(data.get("cost")),
        deployer=deployer if isinstance(deployer, str) else "",
        errored=bool(data.get("errored", False)),
    )


def parse_block_summary(
    data: Any,
    status: BlockStatus = BlockStatus.FINALIZED,
    deploys: tuple[DagDeploy, ...] = (),
) -> DagBlock | None:
    """
    Parse a block summary from the REST API.

    Required: blockHash, blockNumber, sender. Returns None when any is
    missing or mistyped.
    """
    if not isinstance(data, dict):
        return None

    block_hash = data.get("blockHash")
    block_number = data.get("blockNumber")
    creator = data.get("sender")
    if not isinstance(block_hash, str) or not block_hash:
        return None
    if isinstance(block_number, bool) or not isinstance(block_number, int):
        return None
    if not isinstance(creator, str):
        return None

    def _opt_str(key: str) -> str:
        value = data.get(key)
        return value if isinstance(value, str) else ""

    deploy_count = _int(data.get("deployCount"), len(deploys))

    return DagBlock(
        hash=block_hash,
        block_number=block_number,
        timestamp=_timestamp(data.get("timestamp")),
        creator=creator,
        seq_num=_int(data.get("seqNum")),
        parents=_str_list(data.get("parentsHashList")),
        deploy_count=deploy_count,
        status=status,
        shard_id=_opt_str("shardId"),
        pre_state_hash=_opt_str("preStateHash"),
        post_state_hash=_opt_str("postStateHash"),
        deploys=deploys,
    )


def parse_block_list(body: Any) -> list[DagBlock]:
    """Parse /api/blocks/{depth}. Unparseable entries are skipped."""
    if not isinstance(body, list):
        return []
    blocks = []
    for entry in body:
        block = parse_block_summary(entry)
        if block is not None:
            blocks.append(block)
    return blocks


def parse_block_info(body: Any) -> DagBlock | None:
    """Parse /api/block/{hash}: {"blockInfo": {...}, "deploys": [...]}."""
    if not isinstance(body, dict):
        return None
    raw_deploys = body.get("deploys")
    deploys: tuple[DagDeploy, ...] = ()
    if isinstance(raw_deploys, list):
        deploys = tuple(d for d in map(parse_deploy, raw_deploys) if d is not None)
    return parse_block_summary(body.get("blockInfo"), deploys=deploys)


# --- Live feed (kebab-case) --------------------------------------------------

def _require_hash(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise FeedParseError("Missing payload")
    block_hash = payload.get("block-hash")
    if not isinstance(block_hash, str) or not block_hash:
        raise FeedParseError("Missing block-hash")
    return block_hash


def parse_event_block(payload: Any, status: BlockStatus = BlockStatus.CREATED) -> DagBlock:
    """
    Parse the payload of a block-created event.

    The stream carries the validator's seq-num but no block number, so the
    height is UNKNOWN_HEIGHT until the block is refetched over HTTP.
    """
    block_hash = _require_hash(payload)

    creator = payload.get("creator")
    if not isinstance(creator, str):
        creator = "unknown"

    deploy_ids = payload.get("deploy-ids", payload.get("deploys"))
    deploy_count = len(deploy_ids) if isinstance(deploy_ids, list) else 0

    return DagBlock(
        hash=block_hash,
        block_number=UNKNOWN_HEIGHT,
        timestamp=datetime.now(timezone.utc),
        creator=creator,
        seq_num=_int(payload.get("seq-num")),
        parents=_str_list(payload.get("parent-hashes")),
        deploy_count=deploy_count,
        status=status,
    )


def parse_feed_event(raw: str | bytes) -> DagEvent:
    """
    Parse one text frame of the event stream.

    Format: {"event": "block-created", "schema-version": 1, "payload": {...}}

    Raises FeedParseError for invalid JSON, unknown event names or missing
    required fields.
    """
    try:
        message = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise FeedParseError(f"Invalid JSON: {e}") from e

    if not isinstance(message, dict):
        raise FeedParseError("Event is not an object")

    event_type = message.get("event")
    payload = message.get("payload")

    if event_type == "block-created":
        return BlockCreated(parse_event_block(payload))
    if event_type == "block-added":
        return BlockAdded(_require_hash(payload))
    if event_type == "block-finalised":
        return BlockFinalized(_require_hash(payload))
    if event_type == "started":
        return Started()

    raise FeedParseError(f"Unknown event type: {event_type!r}")
