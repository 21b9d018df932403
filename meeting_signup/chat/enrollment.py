"""
Enrollment Coordinator

Adds people to a tracked meeting when they react to its chat message with the
opt-in emoji. The store only records a participant after Graph confirms the
attendee was added.
"""

import asyncio
import contextlib
import logging
from enum import Enum

from .events import ReactionEvent
from ..core.exceptions import ChatPlatformError
from ..core.store import MeetingRecord, MembershipStore, message_key
from ..graph.meetings import AttendeeAddResult, MeetingAttendeeService
from ..slack.client import SlackChatClient


logger = logging.getLogger(__name__)


class EnrollmentOutcome(Enum):
    """Result of handling one reaction."""
    UNTRACKED = "untracked"  # Reaction on a message we don't track
    OTHER_REACTION = "other_reaction"  # Not the opt-in emoji
    ALREADY_ENROLLED = "already_enrolled"
    NO_EMAIL = "no_email"  # Profile has no email
    ADDED = "added"
    FAILED = "failed"  # Remote add failed
    ERROR = "error"  # Unexpected failure (logged)


ALREADY_ENROLLED_TEXT = "You're already added to this meeting!"
NO_EMAIL_TEXT = "Couldn't find your email address. Make sure your Slack profile has an email set."
ADDED_TEXT = "<@{user}> has been added to the Teams meeting!"
DIRECT_MESSAGE_TEXT = "You've been added to a Teams meeting. Here's the link: {link}"
FAILED_TEXT = (
    "Sorry, there was a problem adding you to the meeting. "
    "Please try again or contact the meeting organizer."
)


class EnrollmentCoordinator:
    """
    Handles opt-in reactions on tracked meeting messages.

    Flow per reaction:
        1. Ignore untracked messages and other emoji
        2. Tell already-enrolled users so, privately
        3. Resolve the user's email from their Slack profile
        4. Add them as attendee via Graph (in a worker thread)
        5. On success record them, announce in thread and DM the link;
           on failure send a private notice and leave the record alone

    Usage:
        coordinator = EnrollmentCoordinator(store, chat, attendee_service)
        await coordinator.handle_reaction(ReactionEvent.from_event(event))
    """

    def __init__(
        self,
        store: MembershipStore,
        chat: SlackChatClient,
        attendees: MeetingAttendeeService,
        opt_in_reaction: str = "raised_hand",
        serialize: bool = True,
    ):
        """
        Initialize enrollment coordinator.

        Args:
            store: Membership store shared with the link detector
            chat: Slack client
            attendees: Graph attendee service
            opt_in_reaction: Emoji name that means "add me"
            serialize: Hold the meeting's lock from the enrolled check to the
                       participant update, so duplicate reactions can't both
                       reach Graph
        """
        self.store = store
        self.chat = chat
        self.attendees = attendees
        self.opt_in_reaction = opt_in_reaction
        self.serialize = serialize

    async def handle_reaction(self, reaction: ReactionEvent) -> EnrollmentOutcome:
        """
        Handle a reaction-added event. Never raises.

        Args:
            reaction: Incoming reaction

        Returns:
            EnrollmentOutcome
        """
        try:
            key = message_key(reaction.channel, reaction.message_ts)
            record = self.store.get(key)
            if record is None:
                return EnrollmentOutcome.UNTRACKED

            if reaction.base_reaction != self.opt_in_reaction:
                return EnrollmentOutcome.OTHER_REACTION

            guard = self.store.lock(key) if self.serialize else contextlib.nullcontext()
            async with guard:
                return await self._enroll(record, reaction)
        except Exception as e:
            logger.error(f"Error handling reaction from {reaction.user} on {reaction.message_ts}: {e}", exc_info=True)
            return EnrollmentOutcome.ERROR

    async def _enroll(self, record: MeetingRecord, reaction: ReactionEvent) -> EnrollmentOutcome:
        user = reaction.user
        key = record.source_message_id

        if self.store.is_participant(key, user):
            await self.chat.post_ephemeral(reaction.channel, user, ALREADY_ENROLLED_TEXT)
            return EnrollmentOutcome.ALREADY_ENROLLED

        email = await self.chat.get_user_email(user)
        if not email:
            logger.info(f"No email on Slack profile for {user}, cannot add to meeting {record.meeting_id}")
            await self.chat.post_ephemeral(reaction.channel, user, NO_EMAIL_TEXT)
            return EnrollmentOutcome.NO_EMAIL

        result = await self._add_attendee(record.meeting_id, email)
        if not result.success:
            logger.warning(
                f"Could not add {user} ({email}) to meeting {record.meeting_id}: "
                f"{result.error} (status: {result.status_code})"
            )
            await self.chat.post_ephemeral(reaction.channel, user, FAILED_TEXT)
            return EnrollmentOutcome.FAILED

        self.store.add_participant(key, user)
        logger.info(f"Enrolled {user} ({email}) in meeting {record.meeting_id} ({len(record.participants)} total)")

        # The add is already confirmed; notification failures only get logged
        try:
            await self.chat.post_message(record.channel, ADDED_TEXT.format(user=user), thread_ts=record.message_ts)
        except ChatPlatformError as e:
            logger.warning(f"Could not announce {user} in thread {record.source_message_id}: {e}")

        try:
            await self.chat.send_direct_message(user, DIRECT_MESSAGE_TEXT.format(link=record.meeting_link))
        except ChatPlatformError as e:
            logger.warning(f"Could not send meeting link to {user}: {e}")

        return EnrollmentOutcome.ADDED

    async def _add_attendee(self, meeting_id: str, email: str) -> AttendeeAddResult:
        """Run the blocking Graph call in the default executor."""
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                None,
                lambda: self.attendees.add_attendee(meeting_id, email)
            )
        except Exception as e:
            logger.error(f"Unexpected error adding {email} to meeting {meeting_id}: {e}", exc_info=True)
            return AttendeeAddResult(success=False, error=str(e))
