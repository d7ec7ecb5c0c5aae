"""
Live event feed listener and reconciler.

Handles:
1. Websocket subscription to the node's event stream
2. Parsing frames into DagEvents (malformed frames are dropped)
3. Completing every block event with an authoritative HTTP lookup, since the
   stream never carries the block number
4. Delivering the result over the bounded EventChannel to the UI

Events reach the channel in the order their lookups finish, not the order
they arrived in.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterable, Protocol

import aiohttp

from .channel import EventChannel
from .parsing import parse_feed_event
from ..errors import ChannelClosed, FeedParseError, NodeApiError
from ..types import (
    BlockAdded,
    BlockCreated,
    BlockFinalized,
    BlockStatus,
    DagBlock,
    DagEvent,
    FeedError,
    Started,
)

logger = logging.getLogger(__name__)

# The block may not be queryable right after the notification
FETCH_ATTEMPTS = 3
FETCH_RETRY_DELAY_SEC = 0.5

WS_HEARTBEAT_SEC = 30.0


class BlockSource(Protocol):
    async def fetch_block(self, block_hash: str) -> DagBlock | None: ...


class EventReconciler:
    """
    Turns the partial push feed into complete block records for the UI.

    Usage:
        reconciler = EventReconciler(api, channel, config.ws_url)
        await reconciler.run(session)   # returns when the feed ends
    """

    def __init__(
        self,
        api: BlockSource,
        channel: EventChannel,
        ws_url: str = "",
        fetch_attempts: int = FETCH_ATTEMPTS,
        retry_delay: float = FETCH_RETRY_DELAY_SEC,
    ) -> None:
        self.api = api
        self.channel = channel
        self.ws_url = ws_url
        self.fetch_attempts = fetch_attempts
        self.retry_delay = retry_delay

        self._running = False

        # Counters, logged when the feed ends
        self.received = 0
        self.dropped = 0
        self.unresolved = 0

    async def fetch_with_retry(self, block_hash: str) -> DagBlock | None:
        """Look a block up by hash, retrying while the node catches up."""
        for attempt in range(self.fetch_attempts):
            if attempt > 0:
                await asyncio.sleep(self.retry_delay)
            try:
                block = await self.api.fetch_block(block_hash)
            except NodeApiError as e:
                logger.debug("Lookup %s attempt %d failed: %s", block_hash[:8], attempt + 1, e)
                continue
            if block is not None:
                return block
        return None

    async def reconcile(self, event: DagEvent) -> DagEvent:
        """
        Replace a partial event by a full BlockCreated record.

        The resulting block carries the status the original event implies.
        If the lookup keeps failing, the original event is returned as is.
        """
        if isinstance(event, BlockCreated):
            block_hash, status = event.block.hash, BlockStatus.CREATED
        elif isinstance(event, BlockAdded):
            block_hash, status = event.block_hash, BlockStatus.ADDED
        elif isinstance(event, BlockFinalized):
            block_hash, status = event.block_hash, BlockStatus.FINALIZED
        else:
            return event

        full_block = await self.fetch_with_retry(block_hash)
        if full_block is None:
            self.unresolved += 1
            logger.info("Block %s not queryable, forwarding partial event", block_hash[:8])
            return event
        return BlockCreated(full_block.with_status(status))

    async def handle_message(self, raw: str | bytes) -> None:
        """Parse, reconcile and forward one text frame.

        Raises ChannelClosed when the UI side has gone away.
        """
        self.received += 1
        try:
            event = parse_feed_event(raw)
        except FeedParseError as e:
            self.dropped += 1
            logger.debug("Dropping feed message: %s", e)
            return

        if isinstance(event, Started):
            logger.debug("Event stream handshake received")
            return

        await self.channel.send(await self.reconcile(event))

    async def _report(self, event: FeedError) -> None:
        logger.warning("Live feed ended: %s", event.message)
        try:
            await self.channel.send(event)
        except ChannelClosed:
            pass

    async def consume(self, messages: AsyncIterable[Any]) -> None:
        """
        Process websocket messages until the stream ends.

        A close or transport error ends the feed with a single FeedError. A
        closed channel ends it silently.
        """
        self._running = True
        try:
            async for msg in messages:
                if not self._running:
                    return

                if msg.type == aiohttp.WSMsgType.TEXT:
                    await self.handle_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    await self._report(FeedError(f"Event stream error: {msg.data}"))
                    return
                elif msg.type in (
                    aiohttp.WSMsgType.CLOSE,
                    aiohttp.WSMsgType.CLOSING,
                    aiohttp.WSMsgType.CLOSED,
                ):
                    break

            await self._report(FeedError("Event stream closed"))
        except ChannelClosed:
            logger.info("UI closed the event channel, stopping feed")
        finally:
            self._running = False
            logger.info(
                "Feed stats: %d received, %d dropped, %d unresolved",
                self.received, self.dropped, self.unresolved,
            )

    async def run(self, session: aiohttp.ClientSession) -> None:
        """Connect to the event stream and reconcile until it ends."""
        logger.info("Connecting to %s", self.ws_url)
        try:
            async with session.ws_connect(self.ws_url, heartbeat=WS_HEARTBEAT_SEC) as ws:
                await self.consume(ws)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await self._report(FeedError(f"Event stream connection failed: {e}"))

    def stop(self) -> None:
        """Signal the listener to stop after the current message."""
        self._running = False
