"""
Slack Events API Router

HTTP delivery of Slack events. Requests are verified with the app's signing
secret, acknowledged immediately and dispatched in the background (Slack
expects an answer within 3 seconds).
"""

import json
import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/events")
async def slack_events(request: Request, background_tasks: BackgroundTasks):
    """
    Receive an Events API request.

    Handles url_verification challenges and event_callback payloads.
    """
    verifier = request.app.state.signature_verifier
    if verifier is None:
        raise HTTPException(status_code=404, detail="Events API not enabled")

    body = await request.body()
    if not verifier.is_valid_request(body, dict(request.headers)):
        logger.warning("Rejected Slack request with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    payload_type = payload.get("type")

    if payload_type == "url_verification":
        logger.info("Responding to Slack URL verification challenge")
        return {"challenge": payload.get("challenge")}

    if payload_type == "event_callback":
        event = payload.get("event") or {}
        background_tasks.add_task(request.app.state.dispatcher.dispatch, event)
    else:
        logger.debug(f"Ignoring Slack payload type {payload_type}")

    return {"ok": True}
