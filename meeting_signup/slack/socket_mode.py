"""
Slack Socket Mode Listener

Receives Events API envelopes over Slack's Socket Mode WebSocket (aiohttp),
acknowledges them and hands the inner event to the dispatcher.
"""

import asyncio
import logging
from typing import Optional, Set

from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse
from slack_sdk.web.async_client import AsyncWebClient

from .dispatcher import SlackEventDispatcher


logger = logging.getLogger(__name__)


class SocketModeListener:
    """
    Socket Mode event source.

    Each event runs in its own task so a handler waiting on Slack or Graph
    does not hold up the next event.

    Usage:
        listener = SocketModeListener(app_token, web_client, dispatcher)
        await listener.start()   # runs until stop()
    """

    def __init__(self, app_token: str, web_client: AsyncWebClient, dispatcher: SlackEventDispatcher):
        """
        Initialize Socket Mode listener.

        Args:
            app_token: App-level token (xapp-...)
            web_client: Bot-token web client
            dispatcher: Event dispatcher
        """
        self.app_token = app_token
        self.web_client = web_client
        self.dispatcher = dispatcher

        self.client: Optional[SocketModeClient] = None
        self._tasks: Set[asyncio.Task] = set()
        self._stopped: Optional[asyncio.Event] = None

    async def handle_request(self, client: SocketModeClient, req: SocketModeRequest):
        """Acknowledge an envelope and schedule its event."""
        await client.send_socket_mode_response(SocketModeResponse(envelope_id=req.envelope_id))

        if req.type != "events_api":
            logger.debug(f"Ignoring Socket Mode request type {req.type}")
            return

        event = (req.payload or {}).get("event") or {}
        task = asyncio.create_task(self.dispatcher.dispatch(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def start(self):
        """Connect and block until stop() is called."""
        self._stopped = asyncio.Event()
        self.client = SocketModeClient(app_token=self.app_token, web_client=self.web_client)
        self.client.socket_mode_request_listeners.append(self.handle_request)

        logger.info("Connecting to Slack via Socket Mode")
        await self.client.connect()
        logger.info("✅ Connected to Slack (Socket Mode)")

        try:
            await self._stopped.wait()
        finally:
            await self.client.close()

    async def stop(self):
        """Stop listening."""
        logger.info("Stopping Socket Mode listener")
        if self._stopped is not None:
            self._stopped.set()
