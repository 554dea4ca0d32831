"""
SNS Notification Lambda Handler.

Receives Cost Anomaly Detection notifications either from an SNS Lambda
subscription or from an SNS HTTPS subscription on a Lambda Function URL,
and relays them to Slack.
"""

from __future__ import annotations

import base64
import json
from datetime import UTC, datetime
from typing import Any

from botocore.exceptions import ClientError
from pydantic import ValidationError

from cost_anomaly_reactor.reactor import AnomalyReactor, get_reactor
from cost_anomaly_reactor.storage.models import Anomaly


def handler(event: dict[str, Any], context: Any, reactor: AnomalyReactor | None = None) -> dict[str, Any]:
    """
    Lambda handler for anomaly notifications.

    Handles:
    - SNS Lambda trigger events (Records[].Sns)
    - SNS HTTP(S) SubscriptionConfirmation and Notification envelopes
    - Raw anomaly JSON posted without an SNS envelope

    Environment variables:
    - SLACK_CHANNEL: Channel ID to post to
    - SLACK_BOT_TOKEN / SLACK_TOKEN: Bot token (or CONFIG_SECRET_NAME)
    - DYNAMODB_TABLE_NAME: Optional anomaly message table

    Args:
        event: Lambda event.
        context: Lambda context.
        reactor: Optional reactor (tests); defaults to the cached one.

    Returns:
        HTTP response dict with statusCode and body.
    """
    print(f"Anomaly notification handler invoked at {datetime.now(UTC).isoformat()}")
    reactor = reactor or get_reactor()

    if "Records" in event:
        statuses = []
        for record in event["Records"]:
            sns = record.get("Sns", {})
            statuses.append(_handle_envelope(reactor, sns)["statusCode"])
        status = max(statuses, default=200)
        if status >= 400:
            return _error_response(status, "failed to process notification")
        return _success_response()

    body = event.get("body", "")
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")

    try:
        envelope = json.loads(body)
    except json.JSONDecodeError as e:
        print(f"Failed to decode body: {e}")
        return _error_response(400, "Invalid JSON")

    if not isinstance(envelope, dict):
        return _error_response(400, "Invalid JSON")

    if not envelope.get("Type") and not envelope.get("MessageId") and not envelope.get("TopicArn"):
        print("Maybe this is a raw notification, falling back to Notification type")
        envelope = {"Type": "Notification", "Message": body}

    return _handle_envelope(reactor, envelope)


def _handle_envelope(reactor: AnomalyReactor, envelope: dict[str, Any]) -> dict[str, Any]:
    """Dispatch one SNS message by type."""
    message_type = envelope.get("Type", "")
    print(
        f"Handle SNS message: type={message_type} topic_arn={envelope.get('TopicArn', '')} "
        f"message_id={envelope.get('MessageId', '')}"
    )

    if message_type == "SubscriptionConfirmation":
        try:
            reactor.confirm_subscription(envelope.get("TopicArn", ""), envelope.get("Token", ""))
        except (ClientError, ValueError) as e:
            print(f"Failed to confirm subscription: {e}")
            return _error_response(500, "failed to confirm subscription")
        return _success_response()

    if message_type == "Notification":
        try:
            anomaly = Anomaly.model_validate_json(envelope.get("Message", ""))
        except ValidationError as e:
            print(f"Failed to unmarshal message: {e}")
            return _error_response(400, "Invalid anomaly message")

        try:
            reactor.post_anomaly_detected(anomaly)
        except Exception as e:
            print(f"Failed to post anomaly detected message: {e}")
            reactor.report_error("failed to post anomaly detected message", e)
            return _error_response(500, "failed to post anomaly detected message")
        return _success_response()

    print(f"Unhandled SNS message type: {message_type}")
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
