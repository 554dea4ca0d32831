"""Storage layer for Cost Anomaly Reactor."""

from cost_anomaly_reactor.storage.models import (
    Anomaly,
    AnomalyImpact,
    AnomalyScore,
    ACTIONS_BLOCK_ID,
    FEEDBACK_ACTIONS,
    AnomalySlackMessage,
    FeedbackType,
    RootCause,
)
from cost_anomaly_reactor.storage.dynamodb import DynamoDBStorage

__all__ = [
    "Anomaly",
    "AnomalyImpact",
    "AnomalyScore",
    "RootCause",
    "ACTIONS_BLOCK_ID",
    "FEEDBACK_ACTIONS",
    "AnomalySlackMessage",
    "FeedbackType",
    "DynamoDBStorage",
]
