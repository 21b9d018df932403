"""
Slack Chat Client

Thin async wrapper over slack_sdk's AsyncWebClient exposing the handful of
calls the bot needs: threaded posts, ephemeral notices, direct messages,
reactions and profile email lookup.
"""

import asyncio
import logging
from typing import Optional

import aiohttp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from ..core.exceptions import ChatPostError


logger = logging.getLogger(__name__)


class SlackChatClient:
    """
    Slack Web API calls used by the handlers.

    Post methods raise ChatPostError on Slack API errors; get_user_email
    returns None when the address cannot be resolved.

    Usage:
        chat = SlackChatClient(AsyncWebClient(token=config.slack.bot_token))
        await chat.post_message("C123", "hello", thread_ts="1700000000.000100")
    """

    def __init__(self, web_client: AsyncWebClient):
        self.web_client = web_client

    async def post_message(self, channel: str, text: str, thread_ts: Optional[str] = None) -> str:
        """
        Post a message, optionally as a thread reply.

        Returns:
            Timestamp of the posted message
        """
        try:
            kwargs = {"channel": channel, "text": text}
            if thread_ts:
                kwargs["thread_ts"] = thread_ts
            response = await self.web_client.chat_postMessage(**kwargs)
            return response.get("ts", "")
        except SlackApiError as e:
            raise ChatPostError(f"chat.postMessage to {channel} failed: {e.response.get('error')}") from e

    async def post_ephemeral(self, channel: str, user: str, text: str):
        """Post a message in a channel visible only to one user."""
        try:
            await self.web_client.chat_postEphemeral(channel=channel, user=user, text=text)
        except SlackApiError as e:
            raise ChatPostError(f"chat.postEphemeral to {user} in {channel} failed: {e.response.get('error')}") from e

    async def send_direct_message(self, user: str, text: str) -> str:
        """Send a direct message (posting to a user ID opens the DM)."""
        return await self.post_message(user, text)

    async def add_reaction(self, channel: str, ts: str, name: str):
        """Add a reaction to a message. An existing identical reaction is not an error."""
        try:
            await self.web_client.reactions_add(channel=channel, timestamp=ts, name=name)
        except SlackApiError as e:
            if e.response.get("error") == "already_reacted":
                return
            raise ChatPostError(f"reactions.add :{name}: on {channel}/{ts} failed: {e.response.get('error')}") from e

    async def get_user_email(self, user: str) -> Optional[str]:
        """
        Look up a user's profile email.

        Returns:
            Email address, or None if the profile has none or the lookup failed
        """
        try:
            response = await self.web_client.users_info(user=user)
        except SlackApiError as e:
            logger.warning(f"users.info failed for {user}: {e.response.get('error')}")
            return None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"users.info request for {user} failed: {e!r}")
            return None

        profile = (response.get("user") or {}).get("profile") or {}
        email = (profile.get("email") or "").strip()
        return email or None
