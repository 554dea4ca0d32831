"""AWS collaborators for Cost Anomaly Reactor."""

from cost_anomaly_reactor.collectors.aws_cost_explorer import (
    FeedbackProvider,
    GeneratedGraph,
    GraphGenerationError,
    GraphGenerator,
)
from cost_anomaly_reactor.collectors.organizations import AccountNameResolver

__all__ = [
    "GraphGenerator",
    "GeneratedGraph",
    "GraphGenerationError",
    "FeedbackProvider",
    "AccountNameResolver",
]
