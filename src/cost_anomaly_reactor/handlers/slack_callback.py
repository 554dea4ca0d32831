"""
Slack Callback Lambda Handler.

Handles feedback button clicks on anomaly messages and forwards them to
Cost Anomaly Detection. Receives requests via Lambda Function URL.
"""

from __future__ import annotations

import base64
import json
from datetime import UTC, datetime
from typing import Any

from botocore.exceptions import ClientError

from cost_anomaly_reactor.config.loader import get_cached_config
from cost_anomaly_reactor.notifications.slack.bot import SlackAPIError
from cost_anomaly_reactor.notifications.slack.callback import (
    parse_interaction_payload,
    verify_slack_signature,
)
from cost_anomaly_reactor.reactor import AnomalyReactor, get_reactor


def handler(
    event: dict[str, Any],
    context: Any,
    reactor: AnomalyReactor | None = None,
    signing_secret: str | None = None,
) -> dict[str, Any]:
    """
    Lambda handler for Slack interactive callbacks.

    Environment variables:
    - SLACK_SIGNING_SECRET or CONFIG_SECRET_NAME: Slack signing secret
    - SLACK_BOT_TOKEN / SLACK_TOKEN: Bot token used for thread replies

    Args:
        event: Lambda Function URL event.
        context: Lambda context.
        reactor: Optional reactor (tests); defaults to the cached one.
        signing_secret: Optional signing secret; defaults to configuration.

    Returns:
        HTTP response dict with statusCode and body.
    """
    print(f"Slack callback received at {datetime.now(UTC).isoformat()}")

    headers = {k.lower(): v for k, v in event.get("headers", {}).items()}
    body = event.get("body", "")

    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")

    timestamp = headers.get("x-slack-request-timestamp", "")
    signature = headers.get("x-slack-signature", "")

    if not timestamp or not signature:
        print("Missing Slack signature headers")
        return _error_response(401, "Missing signature headers")

    signing_secret = signing_secret or get_cached_config().slack.signing_secret
    if not signing_secret:
        print("Could not retrieve signing secret")
        return _error_response(500, "Configuration error")

    if not verify_slack_signature(signing_secret, timestamp, body, signature):
        print("Invalid Slack signature")
        return _error_response(401, "Invalid signature")

    try:
        interaction = parse_interaction_payload(body)
    except ValueError as e:
        print(f"Failed to parse payload: {e}")
        return _error_response(400, str(e))

    if interaction is None:
        print("No feedback action found")
        return _success_response()

    reactor = reactor or get_reactor()
    try:
        feedback = reactor.handle_feedback(interaction)
    except (ValueError, ClientError) as e:
        print(f"Failed to provide feedback: {e}")
        reactor.report_error(
            "failed to provide feedback",
            e,
            channel=interaction.channel_id,
            thread_ts=interaction.message_ts,
        )
        return _error_response(500, "failed to provide feedback")
    except SlackAPIError as e:
        # Feedback reached AWS; only the confirmation reply failed
        print(f"Failed to post feedback confirmation: {e}")
        return _success_response()

    print(f"Provided feedback {feedback} for anomaly {interaction.anomaly_id}")
    return _success_response()


def _success_response() -> dict[str, Any]:
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"ok": True}),
    }


def _error_response(status_code: int, message: str) -> dict[str, Any]:
    """Build an error response."""
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"error": message}),
    }
