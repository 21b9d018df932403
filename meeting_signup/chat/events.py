"""
Chat event types handled by the bot.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ChatMessage:
    """
    New message posted in a channel.

    Attributes:
        channel: Channel ID
        ts: Message timestamp (Slack message ID)
        user: Author user ID
        text: Message text as delivered by Slack (mrkdwn, HTML-escaped)
        subtype: Slack message subtype (edits, joins, bot posts); None for plain messages
        bot_id: Set when a bot posted the message
    """
    channel: str
    ts: str
    user: str
    text: str
    subtype: Optional[str] = None
    bot_id: Optional[str] = None

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "ChatMessage":
        return cls(
            channel=event.get("channel", ""),
            ts=event.get("ts", ""),
            user=event.get("user", ""),
            text=event.get("text") or "",
            subtype=event.get("subtype"),
            bot_id=event.get("bot_id"),
        )

    @property
    def is_user_message(self) -> bool:
        """True for plain messages written by a person."""
        return not self.subtype and not self.bot_id and bool(self.user)


@dataclass
class ReactionEvent:
    """
    Reaction added to a message.

    Attributes:
        reaction: Emoji name without colons (e.g. "raised_hand")
        user: User who reacted
        channel: Channel of the reacted-to message
        message_ts: Timestamp of the reacted-to message
    """
    reaction: str
    user: str
    channel: str
    message_ts: str

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "ReactionEvent":
        item = event.get("item") or {}
        return cls(
            reaction=event.get("reaction", ""),
            user=event.get("user", ""),
            channel=item.get("channel", ""),
            message_ts=item.get("ts", ""),
        )

    @property
    def base_reaction(self) -> str:
        """Emoji name without a skin-tone modifier ('raised_hand::skin-tone-3' -> 'raised_hand')."""
        return self.reaction.split("::", 1)[0]
