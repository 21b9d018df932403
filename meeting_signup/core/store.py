"""
Membership Store

In-memory table of meetings announced in chat, keyed by the chat message that
introduced the meeting link. Records live for the lifetime of the process.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Set


logger = logging.getLogger(__name__)


def message_key(channel: str, ts: str) -> str:
    """Build the source message identifier for a chat message."""
    return f"{channel}:{ts}"


@dataclass(frozen=True)
class MeetingRecord:
    """
    A meeting announced in a chat message.

    Attributes:
        source_message_id: Key of the chat message that carried the link
        meeting_id: Provider meeting identifier extracted from the link
        meeting_link: Original URL
        created_by: Chat user who posted the link
        channel: Chat channel of the source message
        message_ts: Chat timestamp of the source message (thread anchor)
        provider: Name of the link parser that matched
        participants: Users confirmed as attendees (grows only)
    """
    source_message_id: str
    meeting_id: str
    meeting_link: str
    created_by: str
    channel: str
    message_ts: str
    provider: str = ""
    participants: Set[str] = field(default_factory=set, compare=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)


class MembershipStore:
    """
    Process-local store of tracked meetings.

    Only the link detector (add) and enrollment coordinator (participant
    updates) use it. Participants can be added but never removed.

    Usage:
        store = MembershipStore()
        store.add(record)

        async with store.lock(record.source_message_id):
            if not store.is_participant(key, user_id):
                ...
                store.add_participant(key, user_id)
    """

    def __init__(self):
        self._records: Dict[str, MeetingRecord] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def add(self, record: MeetingRecord) -> bool:
        """
        Track a new meeting.

        Returns:
            True if stored, False if the source message is already tracked
            (the existing record is kept untouched)
        """
        if record.source_message_id in self._records:
            logger.debug(f"Message {record.source_message_id} already tracked, keeping existing record")
            return False

        self._records[record.source_message_id] = record
        logger.info(
            f"Tracking meeting {record.meeting_id} from message {record.source_message_id} "
            f"({len(self._records)} tracked)"
        )
        return True

    def get(self, source_message_id: str) -> Optional[MeetingRecord]:
        return self._records.get(source_message_id)

    def is_participant(self, source_message_id: str, user_id: str) -> bool:
        record = self._records.get(source_message_id)
        return record is not None and user_id in record.participants

    def add_participant(self, source_message_id: str, user_id: str) -> bool:
        """
        Record a confirmed attendee.

        Returns:
            True if the user was newly added, False if already present

        Raises:
            KeyError: If the source message is not tracked
        """
        record = self._records[source_message_id]
        if user_id in record.participants:
            return False
        record.participants.add(user_id)
        return True

    def lock(self, source_message_id: str) -> asyncio.Lock:
        """Get the lock guarding enrollment on one tracked message."""
        lock = self._locks.get(source_message_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[source_message_id] = lock
        return lock

    def __contains__(self, source_message_id: str) -> bool:
        return source_message_id in self._records

    def __len__(self) -> int:
        return len(self._records)
