"""Slack integration for Cost Anomaly Reactor."""

from cost_anomaly_reactor.notifications.slack.bot import SlackAPIError, SlackBotClient
from cost_anomaly_reactor.notifications.slack.callback import (
    SlackInteraction,
    parse_interaction_payload,
    verify_slack_signature,
)
from cost_anomaly_reactor.notifications.slack.formatter import SlackFormatter

__all__ = [
    "SlackBotClient",
    "SlackAPIError",
    "SlackFormatter",
    "SlackInteraction",
    "parse_interaction_payload",
    "verify_slack_signature",
]
