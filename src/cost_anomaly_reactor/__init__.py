"""
AWS Cost Anomaly Reactor - Cost Anomaly Detection notifications in Slack.

Relays AWS Cost Anomaly Detection alerts to a Slack channel with:
- One message per anomaly, updated when the anomaly is re-notified
- Stacked daily cost graphs for each root cause
- Feedback buttons forwarded to Cost Anomaly Detection
"""

__version__ = "0.1.0"
