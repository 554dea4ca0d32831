"""Pydantic configuration schema for Cost Anomaly Reactor."""

from typing import Literal

from pydantic import BaseModel, Field


class AWSConfig(BaseModel):
    """AWS account configuration."""

    region: str = "us-east-1"
    account_id: str | None = None  # Resolved with STS if not provided


class SlackConfig(BaseModel):
    """Slack integration configuration."""

    channel: str = ""
    bot_token: str | None = None  # Falls back to Secrets Manager
    signing_secret: str | None = None  # Falls back to Secrets Manager
    secret_name: str | None = None  # Secrets Manager secret with bot_token/signing_secret
    no_error_report: bool = False  # Don't post failures to the channel


class DynamoDBConfig(BaseModel):
    """Anomaly message record storage."""

    table_name: str | None = None  # Disabled when unset
    ttl_days: int = Field(default=30, ge=1, le=365)

    @property
    def enabled(self) -> bool:
        return bool(self.table_name)


class GraphConfig(BaseModel):
    """Cost graph rendering configuration."""

    width_px: int = Field(default=800, ge=100, le=4000)
    height_px: int = Field(default=400, ge=100, le=4000)
    dpi: int = Field(default=100, ge=50, le=600)
    bar_width_points: float = Field(default=20.0, gt=0)
    max_series: int = Field(default=10, ge=2, le=10)  # Palette has 10 colors
    max_labels: int = Field(default=8, ge=1, le=31)
    window_days: int = Field(default=8, ge=0, le=60)  # Days around the anomaly
    max_workers: int = Field(default=1, ge=1, le=8)  # Parallel root-cause fetches
    metric: Literal["NET_UNBLENDED_COST", "UNBLENDED_COST", "AMORTIZED_COST"] = "NET_UNBLENDED_COST"


class Config(BaseModel):
    """Root configuration for Cost Anomaly Reactor."""

    project_name: str = "cost-anomaly-reactor"
    environment: Literal["dev", "staging", "prod"] = "dev"

    aws: AWSConfig = Field(default_factory=AWSConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    dynamodb: DynamoDBConfig = Field(default_factory=DynamoDBConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
