"""
Meeting Link Parsers

Recognize meeting-invitation URLs in chat text and extract the provider's
meeting identifier. Providers are pluggable: each parser is a small strategy
object, and a chain of them is built from configuration.
"""

import html
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit


logger = logging.getLogger(__name__)


@dataclass
class MeetingLink:
    """
    Meeting link found in a message.

    Attributes:
        link: The URL as it appeared (HTML entities decoded)
        meeting_id: Extracted meeting identifier, or None if the URL
                    matched but carried no usable identifier
        provider: Name of the parser that matched
        position: Offset of the URL in the decoded text
    """
    link: str
    meeting_id: Optional[str]
    provider: str
    position: int = 0

    @property
    def is_parsed(self) -> bool:
        return bool(self.meeting_id)


class LinkParser(ABC):
    """Finds at most one meeting link in a piece of chat text."""

    name: str = ""

    @abstractmethod
    def parse(self, text: str) -> Optional[MeetingLink]:
        """
        Find the first meeting link in text.

        Returns:
            MeetingLink (meeting_id may be None), or None if no link matched.
            Never raises for malformed input.
        """
        pass


class QueryParameterLinkParser(LinkParser):
    """
    Matches URLs with a regex and reads the meeting ID from a query parameter.

    Usage:
        parser = QueryParameterLinkParser(
            name="teams",
            pattern=r"https://teams\\.microsoft\\.com/l/meetup-join/[^\\s<>|]+",
            id_param="meetingId",
        )
        link = parser.parse("Join: https://teams.microsoft.com/l/meetup-join/abc?meetingId=42")
        link.meeting_id  # "42"
    """

    def __init__(self, name: str, pattern: str, id_param: str):
        self.name = name
        self.pattern = re.compile(pattern, re.IGNORECASE)
        self.id_param = id_param

    def parse(self, text: str) -> Optional[MeetingLink]:
        if not text:
            return None

        # Slack escapes &, < and > in message text
        decoded = html.unescape(text)
        match = self.pattern.search(decoded)
        if not match:
            return None

        link = match.group(0)
        return MeetingLink(
            link=link,
            meeting_id=self.extract_meeting_id(link),
            provider=self.name,
            position=match.start(),
        )

    def extract_meeting_id(self, link: str) -> Optional[str]:
        """
        Read the meeting ID query parameter from a URL.

        Returns:
            The first non-empty value of the parameter, or None
        """
        try:
            query = urlsplit(link).query
            values = parse_qs(query).get(self.id_param, [])
        except ValueError as e:
            logger.warning(f"Could not parse meeting link {link}: {e}")
            return None

        for value in values:
            value = value.strip()
            if value:
                return value
        return None


class LinkParserChain(LinkParser):
    """
    Runs several parsers and keeps the link that appears first in the text.

    Only one link per message is ever returned; later links are ignored.
    """

    name = "chain"

    def __init__(self, parsers: List[LinkParser]):
        self.parsers = list(parsers)

    def parse(self, text: str) -> Optional[MeetingLink]:
        found = [link for link in (p.parse(text) for p in self.parsers) if link is not None]
        if not found:
            return None
        return min(found, key=lambda link: link.position)


def build_link_parser(providers: List[Dict[str, Any]]) -> LinkParser:
    """
    Build the parser chain from the link_providers configuration.

    Args:
        providers: List of dicts with name, pattern, id_param

    Returns:
        LinkParser covering every configured provider
    """
    parsers: List[LinkParser] = [
        QueryParameterLinkParser(
            name=p["name"],
            pattern=p["pattern"],
            id_param=p["id_param"],
        )
        for p in providers
    ]
    if len(parsers) == 1:
        return parsers[0]
    return LinkParserChain(parsers)
