"""
FastAPI Application Factory

HTTP side of the bot: health check and the Slack Events API endpoint.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from slack_sdk.signature import SignatureVerifier

from ..slack.dispatcher import SlackEventDispatcher


logger = logging.getLogger(__name__)


def create_app(
    dispatcher: SlackEventDispatcher,
    signing_secret: Optional[str] = None,
    transport: str = "http",
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        dispatcher: Event dispatcher for Events API deliveries
        signing_secret: Slack signing secret; None disables /slack/events
        transport: Active Slack transport ("http" or "socket"), reported by /api/health

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Slack Teams Meeting Sign-up",
        description="Adds Slack users to Teams meetings when they react to a meeting link",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
    )

    app.state.dispatcher = dispatcher
    app.state.transport = transport
    app.state.signature_verifier = SignatureVerifier(signing_secret) if signing_secret else None

    # Imported here to avoid circular imports
    from .routers import health, slack_events

    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(slack_events.router, prefix="/slack", tags=["Slack"])

    logger.info(f"FastAPI application created (transport: {transport}, events API: {bool(signing_secret)})")

    return app
