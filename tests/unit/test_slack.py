"""Tests for Slack formatting, callbacks and the bot client."""

import json
import time
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlencode

import pytest

from cost_anomaly_reactor.notifications.slack.bot import SlackAPIError, SlackBotClient
from cost_anomaly_reactor.notifications.slack.callback import (
    parse_interaction_payload,
    verify_slack_signature,
)
from cost_anomaly_reactor.notifications.slack.formatter import SlackFormatter
from cost_anomaly_reactor.storage.models import ACTIONS_BLOCK_ID


class TestSlackFormatter:
    """Tests for SlackFormatter."""

    def test_alert_has_feedback_buttons(self, sample_anomaly):
        message = SlackFormatter().format_anomaly_alert(sample_anomaly)

        actions = next(b for b in message["blocks"] if b["type"] == "actions")
        assert actions["block_id"] == ACTIONS_BLOCK_ID
        assert [e["action_id"] for e in actions["elements"]] == ["yes", "no", "planed_activity"]

        value = parse_qs(actions["elements"][2]["value"])
        assert value == {"anomaly_id": [sample_anomaly.anomaly_id], "action": ["PLANNED_ACTIVITY"]}

    def test_alert_text_and_root_causes(self, sample_anomaly):
        message = SlackFormatter().format_anomaly_alert(sample_anomaly)

        assert "$1,001.00" in message["text"]
        rendered = json.dumps(message["blocks"])
        assert "Account: production (123456789012)" in rendered
        assert "AnomalousUsageType" in rendered
        assert sample_anomaly.anomaly_details_link in rendered

    def test_impact_update(self):
        text = SlackFormatter().format_impact_update(10.0, 12.5)
        assert text == "Update Total Impact `10.000000` to `12.500000`"

    def test_feedback_confirmation(self):
        text = SlackFormatter().format_feedback_confirmation("Accurate anomaly", "a-1", "alice")
        assert text == "Feedback of `Accurate anomaly` was provided for AnomalyID `a-1` by user `alice` ."

    def test_error(self):
        text = SlackFormatter().format_error("failed to post", ValueError("boom"))
        assert text == "[error] failed to post: boom"


class TestSignature:
    """Tests for Slack request signing."""

    def test_valid_signature(self, sign_request):
        headers = sign_request("payload=x")
        assert verify_slack_signature(
            "test-signing-secret",
            headers["X-Slack-Request-Timestamp"],
            "payload=x",
            headers["X-Slack-Signature"],
        )

    def test_wrong_secret(self, sign_request):
        headers = sign_request("payload=x", secret="other")
        assert not verify_slack_signature(
            "test-signing-secret",
            headers["X-Slack-Request-Timestamp"],
            "payload=x",
            headers["X-Slack-Signature"],
        )

    def test_stale_timestamp(self, sign_request):
        old = int(time.time()) - 600
        headers = sign_request("payload=x", timestamp=old)
        assert not verify_slack_signature(
            "test-signing-secret",
            headers["X-Slack-Request-Timestamp"],
            "payload=x",
            headers["X-Slack-Signature"],
        )

    def test_bad_timestamp(self):
        assert not verify_slack_signature("s", "not-a-number", "", "v0=abc")


class TestParseInteraction:
    """Tests for parse_interaction_payload."""

    def test_feedback_click(self, feedback_body):
        interaction = parse_interaction_payload(feedback_body("no", anomaly_id="a-1"))

        assert interaction.action_id == "no"
        assert interaction.anomaly_id == "a-1"
        assert interaction.user_name == "alice"
        assert interaction.channel_id == "C123"
        assert interaction.message_ts == "1621900000.000100"
        assert interaction.button_text == "Accurate anomaly"

    def test_other_block_is_ignored(self, feedback_body):
        assert parse_interaction_payload(feedback_body(block_id="something-else")) is None

    def test_missing_payload(self):
        with pytest.raises(ValueError):
            parse_interaction_payload("")

    def test_unexpected_type(self):
        body = urlencode({"payload": json.dumps({"type": "view_submission"})})
        with pytest.raises(ValueError):
            parse_interaction_payload(body)

    def test_missing_anomaly_id(self, feedback_body):
        with pytest.raises(ValueError):
            parse_interaction_payload(feedback_body(anomaly_id=""))


def fake_response(data):
    response = MagicMock()
    response.json.return_value = data
    return response


class TestSlackBotClient:
    """Tests for SlackBotClient."""

    def test_thread_reply_with_broadcast(self):
        session = MagicMock()
        session.headers = {}
        session.post.return_value = fake_response({"ok": True, "ts": "2.0"})
        client = SlackBotClient("xoxb-test", session=session)

        client.send_message("C123", "hello", thread_ts="1.0", reply_broadcast=True)

        url = session.post.call_args.args[0]
        payload = session.post.call_args.kwargs["json"]
        assert url == "https://slack.com/api/chat.postMessage"
        assert payload == {"channel": "C123", "text": "hello", "thread_ts": "1.0", "reply_broadcast": True}
        assert session.headers["Authorization"] == "Bearer xoxb-test"

    def test_api_error_raises(self):
        session = MagicMock()
        session.headers = {}
        session.post.return_value = fake_response({"ok": False, "error": "channel_not_found"})
        client = SlackBotClient("xoxb-test", session=session)

        with pytest.raises(SlackAPIError) as exc_info:
            client.send_blocks("C404", [])
        assert exc_info.value.error == "channel_not_found"

    def test_upload_file_into_thread(self):
        session = MagicMock()
        session.headers = {}
        session.post.side_effect = [
            fake_response({"ok": True, "upload_url": "https://files.slack.com/upload/x", "file_id": "F1"}),
            fake_response({}),
            fake_response({"ok": True, "files": [{"id": "F1", "title": "g.png"}]}),
        ]
        client = SlackBotClient("xoxb-test", session=session)

        uploaded = client.upload_file("C123", "g.png", b"\x89PNG", thread_ts="1.0")

        assert uploaded == {"id": "F1", "title": "g.png"}
        first, second, third = session.post.call_args_list
        assert first.kwargs["data"] == {"filename": "g.png", "length": "4"}
        assert second.args[0] == "https://files.slack.com/upload/x"
        assert third.kwargs["data"]["channel_id"] == "C123"
        assert third.kwargs["data"]["thread_ts"] == "1.0"
        assert json.loads(third.kwargs["data"]["files"]) == [{"id": "F1", "title": "g.png"}]
