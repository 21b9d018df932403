"""
Custom exceptions for the Slack → Teams meeting sign-up bot.
"""


class MeetingSignupException(Exception):
    """Base exception for all custom exceptions."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(MeetingSignupException):
    """Configuration is invalid or missing."""

    pass


# ============================================================================
# Graph API Exceptions
# ============================================================================


class GraphAPIError(MeetingSignupException):
    """Error communicating with Microsoft Graph API."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(GraphAPIError):
    """Token acquisition or authorization failed for Graph API."""

    pass


class MeetingNotFoundError(GraphAPIError):
    """Meeting (calendar event) not found in Graph API."""

    pass


# ============================================================================
# Chat Platform Exceptions
# ============================================================================


class ChatPlatformError(MeetingSignupException):
    """Error communicating with the chat platform."""

    pass


class ChatPostError(ChatPlatformError):
    """Failed to post a message or reaction to chat."""

    pass
