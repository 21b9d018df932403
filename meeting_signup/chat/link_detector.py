"""
Meeting Link Detector

Watches channel messages for meeting links. A parseable link starts tracking
the meeting and invites the channel to opt in with a reaction.
"""

import logging
from enum import Enum

from .events import ChatMessage
from .link_parser import LinkParser
from ..core.exceptions import ChatPlatformError
from ..core.store import MeetingRecord, MembershipStore, message_key
from ..slack.client import SlackChatClient


logger = logging.getLogger(__name__)


class DetectionOutcome(Enum):
    """Result of handling one message."""
    IGNORED = "ignored"  # No link, or not a user message
    PARSE_FAILED = "parse_failed"  # Link found but no meeting ID
    TRACKED = "tracked"  # New meeting record created
    ALREADY_TRACKED = "already_tracked"  # Message was tracked before
    ERROR = "error"  # Unexpected failure (logged)


PARSE_FAILED_TEXT = "Couldn't parse the Teams meeting link."
PROMPT_TEXT = "I've detected a Teams meeting link! React with :{reaction}: to be added to this meeting."


class LinkDetector:
    """
    Turns meeting links posted in chat into tracked meetings.

    Usage:
        detector = LinkDetector(store, chat, parser)
        await detector.handle_message(ChatMessage.from_event(event))
    """

    def __init__(
        self,
        store: MembershipStore,
        chat: SlackChatClient,
        parser: LinkParser,
        opt_in_reaction: str = "raised_hand",
        marker_reaction: str = "calendar",
    ):
        """
        Initialize link detector.

        Args:
            store: Membership store shared with the enrollment coordinator
            chat: Slack client used for replies and reactions
            parser: Meeting link parser (single provider or chain)
            opt_in_reaction: Reaction users add to join
            marker_reaction: Reaction the bot adds to tracked messages
        """
        self.store = store
        self.chat = chat
        self.parser = parser
        self.opt_in_reaction = opt_in_reaction
        self.marker_reaction = marker_reaction

    async def handle_message(self, message: ChatMessage) -> DetectionOutcome:
        """
        Handle a new channel message. Never raises.

        Args:
            message: Incoming message

        Returns:
            DetectionOutcome
        """
        try:
            return await self._handle_message(message)
        except Exception as e:
            logger.error(f"Error handling meeting link in message {message.ts}: {e}", exc_info=True)
            return DetectionOutcome.ERROR

    async def _handle_message(self, message: ChatMessage) -> DetectionOutcome:
        if not message.is_user_message:
            return DetectionOutcome.IGNORED

        meeting_link = self.parser.parse(message.text)
        if meeting_link is None:
            return DetectionOutcome.IGNORED

        if not meeting_link.is_parsed:
            logger.warning(f"Meeting link without meeting ID in {message.channel}/{message.ts}: {meeting_link.link}")
            await self.chat.post_message(message.channel, PARSE_FAILED_TEXT, thread_ts=message.ts)
            return DetectionOutcome.PARSE_FAILED

        record = MeetingRecord(
            source_message_id=message_key(message.channel, message.ts),
            meeting_id=meeting_link.meeting_id,
            meeting_link=meeting_link.link,
            created_by=message.user,
            channel=message.channel,
            message_ts=message.ts,
            provider=meeting_link.provider,
        )
        if not self.store.add(record):
            return DetectionOutcome.ALREADY_TRACKED

        # The record stays tracked even if advertising it fails
        try:
            await self.chat.add_reaction(message.channel, message.ts, self.marker_reaction)
            await self.chat.post_message(
                message.channel,
                PROMPT_TEXT.format(reaction=self.opt_in_reaction),
                thread_ts=message.ts,
            )
        except ChatPlatformError as e:
            logger.error(f"Meeting {record.meeting_id} tracked but not advertised: {e}")

        logger.info(
            f"Detected {meeting_link.provider} meeting {record.meeting_id} "
            f"posted by {message.user} in {message.channel}"
        )
        return DetectionOutcome.TRACKED
