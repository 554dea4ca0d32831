"""Slack Block Kit message formatting."""

from datetime import datetime
from typing import Any
from urllib.parse import urlencode

from cost_anomaly_reactor.storage.models import (
    ACTIONS_BLOCK_ID,
    FEEDBACK_ACTIONS,
    Anomaly,
    RootCause,
)


def _format_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def _root_cause_line(root_cause: RootCause) -> str:
    """One bullet describing a root cause."""
    parts = []
    if root_cause.linked_account:
        name = root_cause.linked_account_name or root_cause.linked_account
        parts.append(f"Account: {name} ({root_cause.linked_account})")
    if root_cause.region:
        parts.append(f"Region: {root_cause.region}")
    if root_cause.service:
        parts.append(f"Service: {root_cause.service}")
    if root_cause.usage_type:
        parts.append(f"Usage type: {root_cause.usage_type}")
    return "• " + " / ".join(parts) if parts else "• (unknown)"


def feedback_value(anomaly_id: str, feedback: str) -> str:
    """Button value: URL-encoded anomaly ID and feedback type."""
    return urlencode({"anomaly_id": anomaly_id, "action": feedback})


class SlackFormatter:
    """Format anomaly messages using Slack Block Kit."""

    BUTTON_LABELS = {
        "yes": ":white_check_mark: Accurate anomaly",
        "no": ":x: Not an issue",
        "planed_activity": ":calendar: Planned activity",
    }

    BUTTON_STYLES = {
        "yes": "primary",
        "no": "danger",
    }

    def format_anomaly_alert(self, anomaly: Anomaly) -> dict[str, Any]:
        """
        Format an anomaly alert with interactive feedback buttons.

        Args:
            anomaly: The anomaly from the SNS notification.

        Returns:
            Slack chat.postMessage payload (text + blocks, no channel).
        """
        impact = anomaly.impact
        period = f"{_format_date(anomaly.anomaly_start_date)} - {_format_date(anomaly.anomaly_end_date)}"
        text = (
            f"AWS Cost Anomaly Detected: ${impact.total_impact:,.2f} "
            f"({impact.total_impact_percentage:.1f}%) in {anomaly.dimensional_value or 'unknown'}"
        )

        blocks: list[dict[str, Any]] = [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": ":rotating_light: AWS Cost Anomaly Detected",
                    "emoji": True,
                },
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Monitor*\n{anomaly.subscription_name or anomaly.monitor_id}"},
                    {"type": "mrkdwn", "text": f"*Dimension*\n{anomaly.dimensional_value or '-'}"},
                    {
                        "type": "mrkdwn",
                        "text": f"*Total Impact*\n${impact.total_impact:,.2f} ({impact.total_impact_percentage:+.1f}%)",
                    },
                    {
                        "type": "mrkdwn",
                        "text": (
                            f"*Actual / Expected*\n${impact.total_actual_spend:,.2f}"
                            f" / ${impact.total_expected_spend:,.2f}"
                        ),
                    },
                    {"type": "mrkdwn", "text": f"*Period*\n{period}"},
                    {"type": "mrkdwn", "text": f"*Account*\n{anomaly.account_id or '-'}"},
                ],
            },
        ]

        if anomaly.root_causes:
            lines = [_root_cause_line(rc) for rc in anomaly.root_causes]
            blocks.append(
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": "*Root causes*\n" + "\n".join(lines)},
                }
            )

        if anomaly.anomaly_details_link:
            blocks.append(
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"<{anomaly.anomaly_details_link}|View anomaly details>"},
                }
            )

        blocks.append({"type": "divider"})
        blocks.append(self._feedback_actions(anomaly.anomaly_id))
        blocks.append(
            {
                "type": "context",
                "elements": [
                    {
                        "type": "mrkdwn",
                        "text": (
                            f"Anomaly ID: `{anomaly.anomaly_id}` | Monitor ID: `{anomaly.monitor_id}`"
                            f" | Score: {anomaly.anomaly_score.current_score:.2f}"
                        ),
                    }
                ],
            }
        )

        return {"text": text, "blocks": blocks}

    def _feedback_actions(self, anomaly_id: str) -> dict[str, Any]:
        """Actions block with one button per feedback type."""
        elements = []
        for action_id, feedback in FEEDBACK_ACTIONS.items():
            button: dict[str, Any] = {
                "type": "button",
                "text": {"type": "plain_text", "text": self.BUTTON_LABELS[action_id], "emoji": True},
                "action_id": action_id,
                "value": feedback_value(anomaly_id, feedback.value),
            }
            if style := self.BUTTON_STYLES.get(action_id):
                button["style"] = style
            elements.append(button)

        return {"type": "actions", "block_id": ACTIONS_BLOCK_ID, "elements": elements}

    def format_impact_update(self, previous_impact: float, current_impact: float) -> str:
        """Thread reply text when a known anomaly is re-notified."""
        return f"Update Total Impact `{previous_impact:f}` to `{current_impact:f}`"

    def format_feedback_confirmation(self, button_text: str, anomaly_id: str, user_name: str) -> str:
        """Thread reply text after feedback was sent to AWS."""
        return f"Feedback of `{button_text}` was provided for AnomalyID `{anomaly_id}` by user `{user_name}` ."

    def format_error(self, context: str, error: Exception | str) -> str:
        return f"[error] {context}: {error}"
