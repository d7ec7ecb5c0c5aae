"""
Node HTTP API client (read-only block queries).

Endpoints:
- GET /api/blocks/{depth}  -> most recent blocks, used once at startup
- GET /api/block/{hash}    -> one block plus its deploys, used by the
                              reconciler to complete live feed events
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp
import orjson

from .parsing import parse_block_info, parse_block_list
from ..errors import NodeApiError
from ..types import DagBlock

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SEC = 10.0


class NodeApiClient:
    """
    Async client for the node's block query endpoints.

    The aiohttp session is owned by the caller so the feed listener can share
    it for the websocket.
    """

    def __init__(self, session: aiohttp.ClientSession, api_base: str) -> None:
        self.session = session
        self.api_base = api_base.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SEC)

    async def _get_json(self, path: str) -> Any:
        url = f"{self.api_base}{path}"
        try:
            async with self.session.get(url, timeout=self._timeout) as resp:
                if resp.status != 200:
                    raise NodeApiError(f"GET {path} failed: HTTP {resp.status}", status=resp.status)
                data = await resp.read()
        except aiohttp.ClientError as e:
            raise NodeApiError(f"GET {path} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise NodeApiError(f"GET {path} timed out") from e

        try:
            return orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise NodeApiError(f"GET {path} returned invalid JSON: {e}") from e

    async def fetch_blocks(self, depth: int) -> list[DagBlock]:
        """Fetch the `depth` most recent blocks. Historical blocks are FINALIZED."""
        body = await self._get_json(f"/api/blocks/{depth}")
        if not isinstance(body, list):
            raise NodeApiError("Unexpected /api/blocks response: expected a JSON array")
        blocks = parse_block_list(body)
        logger.info("Loaded %d of %d blocks from %s", len(blocks), len(body), self.api_base)
        return blocks

    async def fetch_block(self, block_hash: str) -> DagBlock | None:
        """Single attempt to fetch a block by hash.

        Returns None when the body does not describe a block. A node that
        does not know the hash yet answers with an HTTP error, raised as
        NodeApiError like any transport failure.
        """
        body = await self._get_json(f"/api/block/{block_hash}")
        return parse_block_info(body)
