"""
Node API client tests against a local aiohttp server.
"""

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from dag_viewer.datafeed.node_api import NodeApiClient
from dag_viewer.errors import NodeApiError
from dag_viewer.types import BlockStatus

from conftest import make_hash


def summary(name: str, number: int, parents=()) -> dict:
    return {
        "blockHash": make_hash(name),
        "blockNumber": number,
        "timestamp": 1_717_243_200_000,
        "sender": "04abcdef0123",
        "seqNum": number,
        "parentsHashList": [make_hash(p) for p in parents],
        "deployCount": 0,
    }


async def blocks_handler(request: web.Request) -> web.Response:
    depth = int(request.match_info["depth"])
    body = [summary("b2", 2, ("b1",)), summary("b1", 1), {"broken": True}][:depth]
    return web.json_response(body)


async def block_handler(request: web.Request) -> web.Response:
    block_hash = request.match_info["hash"]
    if block_hash == make_hash("b1"):
        return web.json_response({
            "blockInfo": summary("b1", 1),
            "deploys": [{"sig": "3045aa", "cost": 3, "deployer": "04ff", "errored": False}],
        })
    if block_hash == make_hash("junk"):
        return web.Response(text="<html>oops</html>")
    return web.Response(status=404, text="not found")


@pytest.fixture
async def api():
    app = web.Application()
    app.router.add_get("/api/blocks/{depth}", blocks_handler)
    app.router.add_get("/api/block/{hash}", block_handler)

    async with test_utils.TestServer(app) as server:
        async with aiohttp.ClientSession() as session:
            yield NodeApiClient(session, f"http://{server.host}:{server.port}/")


class TestNodeApiClient:

    @pytest.mark.asyncio
    async def test_fetch_blocks(self, api):
        blocks = await api.fetch_blocks(3)
        assert [b.block_number for b in blocks] == [2, 1]
        assert all(b.status is BlockStatus.FINALIZED for b in blocks)
        assert blocks[0].parents == (make_hash("b1"),)

    @pytest.mark.asyncio
    async def test_fetch_block(self, api):
        block = await api.fetch_block(make_hash("b1"))
        assert block.block_number == 1
        assert [d.id for d in block.deploys] == ["3045aa"]

    @pytest.mark.asyncio
    async def test_unknown_block_raises_with_status(self, api):
        with pytest.raises(NodeApiError) as exc_info:
            await api.fetch_block(make_hash("ghost"))
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, api):
        with pytest.raises(NodeApiError, match="invalid JSON"):
            await api.fetch_block(make_hash("junk"))

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        async with aiohttp.ClientSession() as session:
            api = NodeApiClient(session, "http://127.0.0.1:1")
            with pytest.raises(NodeApiError):
                await api.fetch_blocks(10)
