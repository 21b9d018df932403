"""
Meeting Sign-up Bot

Wires configuration, Slack, Graph and the membership store together and runs
the event transports.
"""

import asyncio
import logging

import uvicorn
from slack_sdk.web.async_client import AsyncWebClient

from .chat.enrollment import EnrollmentCoordinator
from .chat.link_detector import LinkDetector
from .chat.link_parser import build_link_parser
from .core.config import ConfigManager
from .core.exceptions import ConfigurationError
from .core.store import MembershipStore
from .graph.client import GraphAPIClient
from .graph.meetings import MeetingAttendeeService
from .slack.client import SlackChatClient
from .slack.dispatcher import SlackEventDispatcher
from .slack.socket_mode import SocketModeListener
from .web.app import create_app


logger = logging.getLogger(__name__)


class MeetingSignupBot:
    """
    Composition root for the bot.

    Owns the single MembershipStore and injects it into both handlers.

    Usage:
        bot = MeetingSignupBot(get_config())
        asyncio.run(bot.run(mode="auto"))
    """

    MODES = ("auto", "socket", "http")

    def __init__(self, config: ConfigManager):
        """
        Build all components from configuration.

        Args:
            config: Loaded ConfigManager
        """
        self.config = config
        self.store = MembershipStore()

        self.web_client = AsyncWebClient(token=config.slack.bot_token)
        self.chat = SlackChatClient(self.web_client)

        self.graph_client = GraphAPIClient(config.graph_api, timeout=config.app.request_timeout_seconds)
        self.attendees = MeetingAttendeeService(
            self.graph_client,
            organizer_mailbox=config.graph_api.organizer_mailbox,
            attendee_type=config.app.attendee_type,
        )

        self.detector = LinkDetector(
            self.store,
            self.chat,
            build_link_parser(config.app.link_providers),
            opt_in_reaction=config.app.opt_in_reaction,
            marker_reaction=config.app.marker_reaction,
        )
        self.coordinator = EnrollmentCoordinator(
            self.store,
            self.chat,
            self.attendees,
            opt_in_reaction=config.app.opt_in_reaction,
            serialize=config.app.serialize_enrollments,
        )
        self.dispatcher = SlackEventDispatcher(self.detector, self.coordinator)

    def resolve_mode(self, mode: str = "auto") -> str:
        """
        Pick the Slack transport.

        auto = Socket Mode when an app token is configured, otherwise HTTP.

        Raises:
            ConfigurationError: If the requested transport lacks credentials
        """
        if mode not in self.MODES:
            raise ConfigurationError(f"Unknown mode '{mode}' (expected one of {', '.join(self.MODES)})")

        if mode == "auto":
            mode = "socket" if self.config.slack.socket_mode_available else "http"

        if mode == "socket" and not self.config.slack.app_token:
            raise ConfigurationError("Socket Mode requires SLACK_APP_TOKEN")
        if mode == "http" and not self.config.slack.signing_secret:
            raise ConfigurationError("Events API mode requires SLACK_SIGNING_SECRET")
        return mode

    async def run(self, mode: str = "auto", host: str = None, port: int = None):
        """
        Run the bot until interrupted.

        The HTTP server always runs (health check); in http mode it also
        receives Slack events on /slack/events.
        """
        mode = self.resolve_mode(mode)
        host = host or self.config.server.host
        port = port or self.config.server.port

        app = create_app(
            self.dispatcher,
            signing_secret=self.config.slack.signing_secret if mode == "http" else None,
            transport=mode,
        )
        server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_config=None, log_level=None))

        logger.info(f"⚡️ Meeting sign-up bot starting ({mode} mode, listening on {host}:{port})")

        if mode == "http":
            await server.serve()
            return

        # uvicorn owns SIGINT/SIGTERM; the listener stops when the server does
        listener = SocketModeListener(self.config.slack.app_token, self.web_client, self.dispatcher)
        listener_task = asyncio.create_task(listener.start())
        listener_task.add_done_callback(self._log_listener_exit)
        try:
            await server.serve()
        finally:
            await listener.stop()
            await asyncio.gather(listener_task, return_exceptions=True)
            logger.info("✅ Bot stopped")

    @staticmethod
    def _log_listener_exit(task: asyncio.Task):
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Socket Mode listener exited: {task.exception()}")
