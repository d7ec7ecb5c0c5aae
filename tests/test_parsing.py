"""
Parsing tests for REST block summaries and live feed frames.
"""

import orjson
import pytest

from dag_viewer.datafeed.parsing import (
    parse_block_info,
    parse_block_list,
    parse_block_summary,
    parse_feed_event,
)
from dag_viewer.errors import FeedParseError
from dag_viewer.types import (
    UNKNOWN_HEIGHT,
    BlockAdded,
    BlockCreated,
    BlockFinalized,
    BlockStatus,
    Started,
)

from conftest import make_hash


def summary(name: str = "b1", number: int = 12, **extra) -> dict:
    data = {
        "blockHash": make_hash(name),
        "blockNumber": number,
        "timestamp": 1_700_000_000_000,
        "sender": "04abcdef0123456789",
        "seqNum": 4,
        "parentsHashList": [make_hash("p1"), make_hash("p2")],
        "deployCount": 2,
        "shardId": "root",
        "preStateHash": "aa" * 32,
        "postStateHash": "bb" * 32,
    }
    data.update(extra)
    return data


def frame(event: str, payload: dict | None = None) -> bytes:
    message: dict = {"event": event, "schema-version": 1}
    if payload is not None:
        message["payload"] = payload
    return orjson.dumps(message)


class TestBlockSummary:
    """REST (camelCase) parsing."""

    def test_full_summary(self):
        block = parse_block_summary(summary())
        assert block is not None
        assert block.hash == make_hash("b1")
        assert block.short_hash == "b1000000"
        assert block.block_number == 12
        assert block.timestamp.year == 2023
        assert block.creator_short == "04abcdef"
        assert block.seq_num == 4
        assert block.parents == (make_hash("p1"), make_hash("p2"))
        assert block.deploy_count == 2
        assert block.shard_id == "root"
        assert block.status is BlockStatus.FINALIZED

    def test_missing_required_field(self):
        data = summary()
        del data["blockNumber"]
        assert parse_block_summary(data) is None

    def test_optional_fields_default(self):
        data = summary()
        for key in ("shardId", "preStateHash", "postStateHash", "seqNum", "deployCount"):
            del data[key]
        block = parse_block_summary(data)
        assert block.shard_id == ""
        assert block.seq_num == 0
        assert block.deploy_count == 0

    def test_block_list_skips_bad_entries(self):
        body = [summary("b1", 1), {"nonsense": True}, summary("b2", 2)]
        blocks = parse_block_list(body)
        assert [b.block_number for b in blocks] == [1, 2]

    def test_block_list_rejects_non_list(self):
        assert parse_block_list({"blocks": []}) == []

    def test_block_info_with_deploys(self):
        body = {
            "blockInfo": summary(deployCount=2),
            "deploys": [
                {"sig": "3045022100aa", "cost": 120, "deployer": "04ffee", "errored": False},
                {"sig": "3045022100bb", "cost": 7, "deployer": "04ffee", "errored": True},
                "garbage",
            ],
        }
        block = parse_block_info(body)
        assert block is not None
        assert [d.id for d in block.deploys] == ["3045022100aa", "3045022100bb"]
        assert block.deploys[1].errored is True
        assert block.deploys[0].cost == 120

    def test_block_info_missing(self):
        assert parse_block_info({"deploys": []}) is None
        assert parse_block_info(None) is None


class TestFeedEvents:
    """Live feed (kebab-case) parsing."""

    def test_block_created(self):
        event = parse_feed_event(frame("block-created", {
            "block-hash": make_hash("new"),
            "parent-hashes": [make_hash("p1")],
            "justification-hashes": [],
            "deploy-ids": ["d1", "d2", "d3"],
            "creator": "04validator",
            "seq-num": 42,
        }))
        assert isinstance(event, BlockCreated)
        block = event.block
        assert block.hash == make_hash("new")
        assert block.block_number == UNKNOWN_HEIGHT
        assert block.seq_num == 42
        assert block.deploy_count == 3
        assert block.parents == (make_hash("p1"),)
        assert block.status is BlockStatus.CREATED

    def test_block_created_without_creator(self):
        event = parse_feed_event(frame("block-created", {"block-hash": make_hash("new")}))
        assert event.block.creator == "unknown"

    def test_block_added(self):
        event = parse_feed_event(frame("block-added", {"block-hash": make_hash("x")}))
        assert event == BlockAdded(make_hash("x"))

    def test_block_finalised(self):
        event = parse_feed_event(frame("block-finalised", {"block-hash": make_hash("x")}))
        assert event == BlockFinalized(make_hash("x"))

    def test_started(self):
        assert isinstance(parse_feed_event(frame("started")), Started)

    def test_text_frame(self):
        raw = frame("block-added", {"block-hash": make_hash("x")}).decode()
        assert parse_feed_event(raw) == BlockAdded(make_hash("x"))

    @pytest.mark.parametrize("raw", [
        b"not json",
        b"[1, 2, 3]",
        frame("block-exploded", {"block-hash": "x"}),
        frame("block-added", {}),
        frame("block-added"),
        frame("block-finalised", {"block-hash": 17}),
        frame("block-created", {"creator": "04abc"}),
    ])
    def test_malformed_frames_rejected(self, raw):
        with pytest.raises(FeedParseError):
            parse_feed_event(raw)
