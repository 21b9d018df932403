"""
Slack Event Dispatcher

Routes Events API payloads (from Socket Mode or HTTP) to the handlers.
"""

import logging
from typing import Any, Dict

from ..chat.events import ChatMessage, ReactionEvent
from ..chat.link_detector import LinkDetector
from ..chat.enrollment import EnrollmentCoordinator


logger = logging.getLogger(__name__)


class SlackEventDispatcher:
    """
    Sends message events to the link detector and reaction_added events to
    the enrollment coordinator. Other event types are ignored.
    """

    def __init__(self, detector: LinkDetector, coordinator: EnrollmentCoordinator):
        self.detector = detector
        self.coordinator = coordinator

    async def dispatch(self, event: Dict[str, Any]):
        """
        Dispatch one inner event (payload["event"]).

        Args:
            event: Slack event dict
        """
        event_type = event.get("type")

        try:
            if event_type == "message":
                outcome = await self.detector.handle_message(ChatMessage.from_event(event))
            elif event_type == "reaction_added":
                outcome = await self.coordinator.handle_reaction(ReactionEvent.from_event(event))
            else:
                logger.debug(f"Ignoring Slack event type {event_type}")
                return
        except Exception as e:
            logger.error(f"Unhandled error dispatching {event_type} event: {e}", exc_info=True)
            return

        logger.debug(f"{event_type} event handled: {outcome.value}")
