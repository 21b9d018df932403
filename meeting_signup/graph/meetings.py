"""
Microsoft Graph API - Meeting Attendees

Adds people to an existing Teams meeting (Outlook calendar event).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from ..graph.client import GraphAPIClient
from ..core.exceptions import GraphAPIError


logger = logging.getLogger(__name__)


@dataclass
class AttendeeAddResult:
    """
    Outcome of an attendee add.

    Attributes:
        success: Whether the person is now an attendee
        status_code: HTTP status of the failing call (None on transport/token errors)
        error: Failure description for logs
        already_attendee: Person was on the event before this call
    """
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    already_attendee: bool = False


class MeetingAttendeeService:
    """
    Adds attendees to calendar events via Microsoft Graph API.

    Graph's PATCH on an event replaces the whole attendees collection, so the
    current attendees are read first and the new address is appended.

    Graph API endpoints:
    - Read event: GET /users/{mailbox}/events/{id}?$select=attendees
    - Update event: PATCH /users/{mailbox}/events/{id}

    Usage:
        client = GraphAPIClient(config)
        service = MeetingAttendeeService(client, organizer_mailbox="organizer@example.com")

        result = service.add_attendee("AAMkAG...", "user@example.com")
        if result.success:
            ...
    """

    def __init__(self, client: GraphAPIClient, organizer_mailbox: str = "", attendee_type: str = "required"):
        """
        Initialize attendee service.

        Args:
            client: GraphAPIClient instance
            organizer_mailbox: Mailbox owning the events (empty = /me)
            attendee_type: Graph attendee type (required, optional, resource)
        """
        self.client = client
        self.organizer_mailbox = organizer_mailbox
        self.attendee_type = attendee_type

    def _event_endpoint(self, meeting_id: str) -> str:
        event_id = quote(meeting_id, safe="")
        if self.organizer_mailbox:
            return f"/users/{quote(self.organizer_mailbox, safe='@')}/events/{event_id}"
        return f"/me/events/{event_id}"

    def add_attendee(self, meeting_id: str, email: str) -> AttendeeAddResult:
        """
        Add an attendee to a meeting.

        Expected failures (token errors, non-2xx responses, transport errors)
        are returned as an unsuccessful result instead of raised.

        Args:
            meeting_id: Graph event ID
            email: Attendee email address

        Returns:
            AttendeeAddResult
        """
        endpoint = self._event_endpoint(meeting_id)

        try:
            event = self.client.get(endpoint, params={"$select": "attendees"})
            attendees: List[Dict[str, Any]] = event.get("attendees", [])

            existing = {
                (a.get("emailAddress", {}).get("address") or "").lower()
                for a in attendees
            }
            if email.lower() in existing:
                logger.info(f"{email} is already an attendee of meeting {meeting_id}")
                return AttendeeAddResult(success=True, already_attendee=True)

            attendees = attendees + [{
                "emailAddress": {"address": email},
                "type": self.attendee_type,
            }]

            self.client.patch(endpoint, json={"attendees": attendees})
            logger.info(f"Added {email} to meeting {meeting_id} ({len(attendees)} attendees)")
            return AttendeeAddResult(success=True)

        except GraphAPIError as e:
            logger.error(f"Failed to add {email} to meeting {meeting_id}: {e}")
            return AttendeeAddResult(success=False, status_code=e.status_code, error=str(e))
        except requests.RequestException as e:
            logger.error(f"Network error adding {email} to meeting {meeting_id}: {e}")
            return AttendeeAddResult(success=False, error=f"Network error: {e}")
