"""Slack interactive callback handling."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
import urllib.parse
from dataclasses import dataclass

from cost_anomaly_reactor.storage.models import ACTIONS_BLOCK_ID

# Requests older than this are rejected as replays
MAX_REQUEST_AGE_SECONDS = 60 * 5


@dataclass
class SlackInteraction:
    """Feedback button click parsed from a block_actions payload."""

    action_id: str
    anomaly_id: str
    button_text: str
    user_id: str
    user_name: str
    channel_id: str
    message_ts: str


def verify_slack_signature(
    signing_secret: str,
    timestamp: str,
    body: str,
    signature: str,
    now: float | None = None,
) -> bool:
    """
    Verify Slack request signature using HMAC-SHA256.

    Args:
        signing_secret: Slack app signing secret.
        timestamp: X-Slack-Request-Timestamp header value.
        body: Raw request body.
        signature: X-Slack-Signature header value.
        now: Current Unix time. Defaults to time.time().

    Returns:
        True if signature is valid, False otherwise.
    """
    try:
        request_time = int(timestamp)
    except (ValueError, TypeError):
        return False
    current = time.time() if now is None else now
    if abs(current - request_time) > MAX_REQUEST_AGE_SECONDS:
        return False

    sig_basestring = f"v0:{timestamp}:{body}"
    expected_signature = "v0=" + hmac.new(
        signing_secret.encode("utf-8"),
        sig_basestring.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(expected_signature, signature)


def parse_interaction_payload(body: str) -> SlackInteraction | None:
    """
    Parse a feedback button click from a URL-encoded interaction body.

    Only actions in the reactor's feedback block are considered; other
    block actions are ignored.

    Args:
        body: URL-encoded request body containing payload={json}.

    Returns:
        SlackInteraction, or None if no feedback action was clicked.

    Raises:
        ValueError: If the payload is malformed.
    """
    parsed = urllib.parse.parse_qs(body)
    payload_str = parsed.get("payload", [""])[0]

    if not payload_str:
        raise ValueError("Missing payload in request body")

    try:
        payload = json.loads(payload_str)
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not parse action response JSON: {e}") from e

    if payload.get("type") != "block_actions":
        raise ValueError(f"Unexpected payload type: {payload.get('type')}")

    action = next(
        (a for a in payload.get("actions", []) if a.get("block_id") == ACTIONS_BLOCK_ID),
        None,
    )
    if action is None:
        return None

    value = urllib.parse.parse_qs(action.get("value", ""))
    anomaly_id = value.get("anomaly_id", [""])[0]
    if not anomaly_id:
        raise ValueError("Missing anomaly_id in action value")

    user = payload.get("user", {})
    text = action.get("text") or {}

    return SlackInteraction(
        action_id=action.get("action_id", ""),
        anomaly_id=anomaly_id,
        button_text=text.get("text", ""),
        user_id=user.get("id", ""),
        user_name=user.get("name") or user.get("username", "Unknown"),
        channel_id=payload.get("channel", {}).get("id", ""),
        message_ts=payload.get("message", {}).get("ts", ""),
    )
