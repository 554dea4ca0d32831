"""Notification integrations for Cost Anomaly Reactor."""

from cost_anomaly_reactor.notifications.slack import SlackBotClient, SlackFormatter

__all__ = [
    "SlackBotClient",
    "SlackFormatter",
]
