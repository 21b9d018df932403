"""
Chat Integration Module

Meeting link detection and reaction-based enrollment for the sign-up bot.
"""

from .events import ChatMessage, ReactionEvent
from .link_parser import LinkParser, MeetingLink, QueryParameterLinkParser, LinkParserChain, build_link_parser
from .link_detector import LinkDetector, DetectionOutcome
from .enrollment import EnrollmentCoordinator, EnrollmentOutcome

__all__ = [
    "ChatMessage",
    "ReactionEvent",
    "LinkParser",
    "MeetingLink",
    "QueryParameterLinkParser",
    "LinkParserChain",
    "build_link_parser",
    "LinkDetector",
    "DetectionOutcome",
    "EnrollmentCoordinator",
    "EnrollmentOutcome",
]
