"""Data models for anomaly notifications and DynamoDB storage."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Model read from and written to camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnomalyScore(_CamelModel):
    """Anomaly score reported by Cost Anomaly Detection."""

    current_score: float = 0.0
    max_score: float = 0.0


class AnomalyImpact(_CamelModel):
    """Dollar impact of an anomaly."""

    max_impact: float = 0.0
    total_actual_spend: float = 0.0
    total_expected_spend: float = 0.0
    total_impact: float = 0.0
    total_impact_percentage: float = 0.0


class RootCause(_CamelModel):
    """
    One root cause of an anomaly.

    A root cause without linked_account comes from an organization-wide
    monitor and is charted per linked account.
    """

    linked_account: str | None = None
    linked_account_name: str | None = None
    region: str | None = None
    service: str | None = None
    usage_type: str | None = None


class Anomaly(_CamelModel):
    """Cost anomaly notification delivered through SNS."""

    account_id: str = ""
    anomaly_details_link: str = ""
    anomaly_end_date: datetime
    anomaly_id: str
    anomaly_score: AnomalyScore = Field(default_factory=AnomalyScore)
    anomaly_start_date: datetime
    dimensional_value: str = ""
    impact: AnomalyImpact = Field(default_factory=AnomalyImpact)
    monitor_arn: str = ""
    root_causes: list[RootCause] = Field(default_factory=list)
    subscription_id: str = ""
    subscription_name: str = ""

    @property
    def monitor_id(self) -> str:
        """Monitor ID from the monitor ARN (arn:aws:ce::<acct>:anomalymonitor/<id>)."""
        resource = self.monitor_arn.split(":", 5)[-1] if self.monitor_arn else ""
        return resource.removeprefix("anomalymonitor/")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class FeedbackType(str, Enum):
    """Cost Explorer anomaly feedback types."""

    YES = "YES"
    NO = "NO"
    PLANNED_ACTIVITY = "PLANNED_ACTIVITY"


class AnomalySlackMessage(BaseModel):
    """
    Slack message posted for an anomaly.

    DynamoDB Key Structure:
    - AnomalyID (hash key)
    - SlackTeamID (range key)

    TTL is a Unix timestamp; DynamoDB expires the record after it.
    """

    anomaly_id: str
    slack_team_id: str = ""
    slack_message_timestamp: str
    total_impact: float = 0.0
    ttl: int | None = None

    def with_ttl(self, days: int, now: datetime | None = None) -> "AnomalySlackMessage":
        """Return a copy that expires ``days`` after ``now``."""
        now = now or datetime.now(UTC)
        return self.model_copy(update={"ttl": int((now + timedelta(days=days)).timestamp())})

    def to_dynamodb_item(self) -> dict:
        """Convert to DynamoDB item format."""
        item = {
            "AnomalyID": self.anomaly_id,
            "SlackTeamID": self.slack_team_id,
            "SlackMessageTimestamp": self.slack_message_timestamp,
            "TotalImpact": Decimal(str(self.total_impact)),
        }
        if self.ttl:
            item["TTL"] = self.ttl
        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict) -> "AnomalySlackMessage":
        """Create from DynamoDB item."""
        return cls(
            anomaly_id=item["AnomalyID"],
            slack_team_id=item.get("SlackTeamID", ""),
            slack_message_timestamp=item["SlackMessageTimestamp"],
            total_impact=float(item.get("TotalImpact", 0)),
            ttl=int(item["TTL"]) if "TTL" in item else None,
        )


# Slack actions block carrying the feedback buttons
ACTIONS_BLOCK_ID = "aws-cost-anomaly-detection-reactor"

# Slack button action_id -> Cost Explorer feedback
FEEDBACK_ACTIONS: dict[str, FeedbackType] = {
    "yes": FeedbackType.YES,
    "no": FeedbackType.NO,
    "planed_activity": FeedbackType.PLANNED_ACTIVITY,
}
