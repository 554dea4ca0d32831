"""Configuration management for Cost Anomaly Reactor."""

from cost_anomaly_reactor.config.schema import (
    AWSConfig,
    Config,
    DynamoDBConfig,
    GraphConfig,
    SlackConfig,
)
from cost_anomaly_reactor.config.loader import (
    get_cached_config,
    load_config,
    load_slack_secret,
    resolve_account_id,
    resolve_slack_credentials,
)

__all__ = [
    "Config",
    "AWSConfig",
    "SlackConfig",
    "DynamoDBConfig",
    "GraphConfig",
    "load_config",
    "load_slack_secret",
    "resolve_slack_credentials",
    "resolve_account_id",
    "get_cached_config",
]
