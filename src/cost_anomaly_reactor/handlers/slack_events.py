"""
Slack Events Lambda Handler.

Handles @mentions of the reactor bot. Mentioning the bot with `where`
replies with where the reactor is running.
Receives requests via Lambda Function URL.
"""

from __future__ import annotations

import base64
import json
import os
import socket
from datetime import UTC, datetime
from typing import Any

from cost_anomaly_reactor.config.loader import get_cached_config
from cost_anomaly_reactor.notifications.slack.bot import SlackAPIError
from cost_anomaly_reactor.notifications.slack.callback import verify_slack_signature
from cost_anomaly_reactor.reactor import AnomalyReactor, get_reactor

USAGE_TEXT = (
    "I'm AWS Cost Anomaly Detection Reactor, "
    "if you need running information, please mention me with `where`"
)


def handler(
    event: dict[str, Any],
    context: Any,
    reactor: AnomalyReactor | None = None,
    signing_secret: str | None = None,
    account_id: str | None = None,
) -> dict[str, Any]:
    """
    Lambda handler for Slack Events API.

    Handles:
    - URL verification challenges (during Slack app setup)
    - app_mention events (@reactor in channels)

    Args:
        event: Lambda Function URL event.
        context: Lambda context.
        reactor: Optional reactor (tests); defaults to the cached one.
        signing_secret: Optional signing secret; defaults to configuration.
        account_id: Optional AWS account ID shown by `where`.

    Returns:
        HTTP response dict with statusCode and body.
    """
    print(f"Slack events handler invoked at {datetime.now(UTC).isoformat()}")

    headers = {k.lower(): v for k, v in event.get("headers", {}).items()}
    body = event.get("body", "")

    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")

    timestamp = headers.get("x-slack-request-timestamp", "")
    signature = headers.get("x-slack-signature", "")

    if not timestamp or not signature:
        print("Missing Slack signature headers")
        return _error_response(401, "Missing signature headers")

    if signing_secret is None or account_id is None:
        config = get_cached_config()
        signing_secret = signing_secret or config.slack.signing_secret
        account_id = config.aws.account_id if account_id is None else account_id
    if not signing_secret:
        print("Could not retrieve signing secret")
        return _error_response(500, "Configuration error")

    if not verify_slack_signature(signing_secret, timestamp, body, signature):
        print("Invalid Slack signature")
        return _error_response(401, "Invalid signature")

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        print(f"Failed to parse JSON body: {e}")
        return _error_response(400, "Invalid JSON")

    if payload.get("type") == "url_verification":
        print("URL verification challenge received")
        return {
            "statusCode": 200,
            "headers": {"Content-Type": "text/plain"},
            "body": payload.get("challenge", ""),
        }

    if payload.get("type") != "event_callback":
        print(f"Unhandled payload type: {payload.get('type')}")
        return _success_response()

    event_data = payload.get("event", {})
    if event_data.get("type") != "app_mention":
        print(f"Unhandled event type: {event_data.get('type')}")
        return _success_response()

    text = event_data.get("text", "")
    print(f"App mention event: {text}")
    if "where" in text:
        reply = running_info(account_id or "", context)
    else:
        reply = USAGE_TEXT

    reactor = reactor or get_reactor()
    try:
        reactor.slack.send_message(event_data.get("channel", ""), reply)
    except SlackAPIError as e:
        print(f"Failed to post message: {e}")

    return _success_response()


def running_info(account_id: str, context: Any = None) -> str:
    """
    Describe where the reactor is running.

    Args:
        account_id: AWS account ID; omitted with the region when empty.
        context: Lambda context providing function name and version.

    Returns:
        Slack message text.
    """
    lines = ["AWS Cost Anomaly Detection Reactor running information"]
    if account_id:
        lines.append(f"- aws_account_id: {account_id}")
        lines.append(f"- region: {os.environ.get('AWS_REGION', '')}")

    function_name = getattr(context, "function_name", "") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME", "")
    if function_name:
        function_version = getattr(context, "function_version", "") or os.environ.get(
            "AWS_LAMBDA_FUNCTION_VERSION", ""
        )
        lines.append(f"- lambda_function_name: {function_name}")
        lines.append(f"- lambda_function_version: {function_version}")

    lines.append(f"- hostname: {socket.gethostname()}")
    return "\n".join(lines) + "\n"


def _success_response() -> dict[str, Any]:
    """Return a success response to Slack."""
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"ok": True}),
    }


def _error_response(status_code: int, message: str) -> dict[str, Any]:
    """Return an error response."""
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"error": message}),
    }
