"""Pytest configuration and fixtures."""

import hashlib
import hmac
import json
import time
from urllib.parse import urlencode

import matplotlib

matplotlib.use("Agg")

import pytest

from cost_anomaly_reactor.storage.models import Anomaly

MONITOR_ARN = "arn:aws:ce::123456789012:anomalymonitor/abcdef12-1234-4ea0-84cc-918a97d736ef"
ANOMALY_ID = "12345678-abcd-ef12-3456-987654321a12"
SIGNING_SECRET = "test-signing-secret"


@pytest.fixture
def sample_anomaly_dict():
    """Anomaly notification as delivered by Cost Anomaly Detection over SNS."""
    return {
        "accountId": "123456789012",
        "anomalyDetailsLink": (
            "https://console.aws.amazon.com/cost-management/home#/anomaly-detection/monitors/"
            f"abcdef12-1234-4ea0-84cc-918a97d736ef/anomalies/{ANOMALY_ID}"
        ),
        "anomalyEndDate": "2021-05-25T00:00:00Z",
        "anomalyId": ANOMALY_ID,
        "anomalyScore": {"currentScore": 0.47, "maxScore": 0.47},
        "anomalyStartDate": "2021-05-25T00:00:00Z",
        "dimensionalValue": "Amazon Elastic Compute Cloud - Compute",
        "impact": {
            "maxImpact": 151.0,
            "totalActualSpend": 1301.0,
            "totalExpectedSpend": 300.0,
            "totalImpact": 1001.0,
            "totalImpactPercentage": 333.67,
        },
        "monitorArn": MONITOR_ARN,
        "rootCauses": [
            {
                "linkedAccount": "123456789012",
                "linkedAccountName": "production",
                "region": "ap-northeast-1",
                "service": "Amazon Elastic Compute Cloud - Compute",
                "usageType": "AnomalousUsageType",
            }
        ],
        "subscriptionId": "123456789-a1b2-c3d4-e5f6-abcdef123456",
        "subscriptionName": "alert-subscription",
    }


@pytest.fixture
def sample_anomaly(sample_anomaly_dict):
    """Parsed single-account anomaly."""
    return Anomaly.model_validate(sample_anomaly_dict)


@pytest.fixture
def org_anomaly(sample_anomaly_dict):
    """Anomaly from an organization-wide monitor (no linked account)."""
    data = dict(sample_anomaly_dict)
    data["rootCauses"] = [{"service": "Amazon Simple Notification Service"}]
    return Anomaly.model_validate(data)


def sign_slack_request(body, secret=SIGNING_SECRET, timestamp=None):
    """Build Slack signature headers for a request body."""
    timestamp = str(int(time.time()) if timestamp is None else timestamp)
    digest = hmac.new(
        secret.encode("utf-8"),
        f"v0:{timestamp}:{body}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return {
        "X-Slack-Request-Timestamp": timestamp,
        "X-Slack-Signature": f"v0={digest}",
    }


def block_actions_body(action_id="yes", anomaly_id=ANOMALY_ID, block_id="aws-cost-anomaly-detection-reactor"):
    """URL-encoded interaction body for a feedback button click."""
    payload = {
        "type": "block_actions",
        "user": {"id": "U123", "name": "alice"},
        "channel": {"id": "C123"},
        "message": {"ts": "1621900000.000100"},
        "actions": [
            {
                "block_id": block_id,
                "action_id": action_id,
                "text": {"type": "plain_text", "text": "Accurate anomaly"},
                "value": urlencode({"anomaly_id": anomaly_id, "action": action_id.upper()}),
            }
        ],
    }
    return urlencode({"payload": json.dumps(payload)})


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary."""
    return {
        "project_name": "test-reactor",
        "environment": "dev",
        "aws": {
            "region": "ap-northeast-1",
        },
        "slack": {
            "channel": "C123",
            "bot_token": "xoxb-test",
            "signing_secret": SIGNING_SECRET,
        },
        "dynamodb": {
            "table_name": "anomaly-messages",
        },
        "graph": {
            "max_series": 5,
            "window_days": 3,
        },
    }


@pytest.fixture
def sign_request():
    """Signer for Slack request bodies."""
    return sign_slack_request


@pytest.fixture
def feedback_body():
    """Builder for feedback button click bodies."""
    return block_actions_body
