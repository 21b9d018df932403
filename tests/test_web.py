"""
Tests for event delivery: FastAPI routes, Socket Mode listener and dispatcher.
"""

import asyncio
import json
import time

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, Mock

from slack_sdk.signature import SignatureVerifier
from slack_sdk.socket_mode.request import SocketModeRequest

from meeting_signup.chat.enrollment import EnrollmentCoordinator, EnrollmentOutcome
from meeting_signup.chat.events import ChatMessage, ReactionEvent
from meeting_signup.chat.link_detector import DetectionOutcome, LinkDetector
from meeting_signup.slack.dispatcher import SlackEventDispatcher
from meeting_signup.slack.socket_mode import SocketModeListener
from meeting_signup.web.app import create_app
from tests.factories import SlackTestFactory


SIGNING_SECRET = "8f742231b10e8888abcd99yyyzzz85a5"


class RecordingDispatcher:
    """Stands in for SlackEventDispatcher and records dispatched events."""

    def __init__(self):
        self.events = []

    async def dispatch(self, event):
        self.events.append(event)


def signed_headers(body: bytes, secret: str = SIGNING_SECRET, timestamp: str = None) -> dict:
    timestamp = timestamp or str(int(time.time()))
    signature = SignatureVerifier(secret).generate_signature(timestamp=timestamp, body=body)
    return {
        "X-Slack-Request-Timestamp": timestamp,
        "X-Slack-Signature": signature,
        "Content-Type": "application/json",
    }


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def http_client(dispatcher):
    return TestClient(create_app(dispatcher, signing_secret=SIGNING_SECRET, transport="http"))


class TestHealth:

    def test_health(self, http_client):
        response = http_client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["transport"] == "http"


class TestSlackEventsEndpoint:

    def test_url_verification(self, http_client):
        body = json.dumps({"type": "url_verification", "challenge": "3eZbrw1aBm2rZgRNFdxV2595E9CY3gmdALWMmHkvFXO7tYXAYM8P"}).encode()

        response = http_client.post("/slack/events", content=body, headers=signed_headers(body))

        assert response.status_code == 200
        assert response.json() == {"challenge": "3eZbrw1aBm2rZgRNFdxV2595E9CY3gmdALWMmHkvFXO7tYXAYM8P"}

    def test_event_callback_is_dispatched(self, http_client, dispatcher):
        event = SlackTestFactory.create_reaction_event("1.1")
        body = json.dumps(SlackTestFactory.create_event_callback(event)).encode()

        response = http_client.post("/slack/events", content=body, headers=signed_headers(body))

        assert response.status_code == 200
        assert dispatcher.events == [event]

    def test_invalid_signature_rejected(self, http_client, dispatcher):
        body = json.dumps(SlackTestFactory.create_event_callback({"type": "message"})).encode()

        response = http_client.post("/slack/events", content=body, headers=signed_headers(body, secret="wrong"))

        assert response.status_code == 401
        assert dispatcher.events == []

    def test_stale_timestamp_rejected(self, http_client, dispatcher):
        body = json.dumps(SlackTestFactory.create_event_callback({"type": "message"})).encode()
        stale = str(int(time.time()) - 60 * 10)

        response = http_client.post("/slack/events", content=body, headers=signed_headers(body, timestamp=stale))

        assert response.status_code == 401

    def test_invalid_json_rejected(self, http_client):
        body = b"not json"
        response = http_client.post("/slack/events", content=body, headers=signed_headers(body))
        assert response.status_code == 400

    def test_disabled_without_signing_secret(self, dispatcher):
        client = TestClient(create_app(dispatcher, signing_secret=None, transport="socket"))
        body = b"{}"

        response = client.post("/slack/events", content=body, headers=signed_headers(body))

        assert response.status_code == 404
        assert client.get("/api/health").json()["transport"] == "socket"


class TestSocketModeListener:

    @pytest.mark.asyncio
    async def test_events_api_request_acked_and_dispatched(self, dispatcher):
        listener = SocketModeListener("xapp-1", Mock(), dispatcher)
        socket_client = Mock()
        socket_client.send_socket_mode_response = AsyncMock()
        event = SlackTestFactory.create_message_event("hi")
        request = SocketModeRequest(
            type="events_api",
            envelope_id="57d6a792-4d35-4d0b-b6aa-3361493e1caf",
            payload=SlackTestFactory.create_event_callback(event),
        )

        await listener.handle_request(socket_client, request)
        await asyncio.sleep(0)

        ack = socket_client.send_socket_mode_response.call_args[0][0]
        assert ack.envelope_id == "57d6a792-4d35-4d0b-b6aa-3361493e1caf"
        assert dispatcher.events == [event]

    @pytest.mark.asyncio
    async def test_other_request_types_acked_only(self, dispatcher):
        listener = SocketModeListener("xapp-1", Mock(), dispatcher)
        socket_client = Mock()
        socket_client.send_socket_mode_response = AsyncMock()
        request = SocketModeRequest(type="slash_commands", envelope_id="e2", payload={"command": "/x"})

        await listener.handle_request(socket_client, request)
        await asyncio.sleep(0)

        socket_client.send_socket_mode_response.assert_awaited_once()
        assert dispatcher.events == []


class TestSlackEventDispatcher:

    @pytest.fixture
    def handlers(self):
        detector = Mock(spec=LinkDetector)
        detector.handle_message.return_value = DetectionOutcome.IGNORED
        coordinator = Mock(spec=EnrollmentCoordinator)
        coordinator.handle_reaction.return_value = EnrollmentOutcome.UNTRACKED
        return detector, coordinator

    @pytest.mark.asyncio
    async def test_message_goes_to_detector(self, handlers):
        detector, coordinator = handlers
        event = SlackTestFactory.create_message_event("hi", channel="C1", ts="1.1")

        await SlackEventDispatcher(detector, coordinator).dispatch(event)

        message = detector.handle_message.call_args[0][0]
        assert isinstance(message, ChatMessage)
        assert (message.channel, message.ts, message.text) == ("C1", "1.1", "hi")
        coordinator.handle_reaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_reaction_goes_to_coordinator(self, handlers):
        detector, coordinator = handlers
        event = SlackTestFactory.create_reaction_event("1.1", user="U1", channel="C1")

        await SlackEventDispatcher(detector, coordinator).dispatch(event)

        reaction = coordinator.handle_reaction.call_args[0][0]
        assert isinstance(reaction, ReactionEvent)
        assert (reaction.channel, reaction.message_ts, reaction.user, reaction.reaction) == ("C1", "1.1", "U1", "raised_hand")
        detector.handle_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_events_ignored(self, handlers):
        detector, coordinator = handlers

        await SlackEventDispatcher(detector, coordinator).dispatch({"type": "reaction_removed"})

        detector.handle_message.assert_not_called()
        coordinator.handle_reaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_handler_exception_is_contained(self, handlers):
        detector, coordinator = handlers
        detector.handle_message.side_effect = RuntimeError("boom")

        await SlackEventDispatcher(detector, coordinator).dispatch(SlackTestFactory.create_message_event("hi"))
