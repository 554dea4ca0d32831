"""DynamoDB storage for anomaly Slack message records."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from cost_anomaly_reactor.storage.models import AnomalySlackMessage


class DynamoDBStorage:
    """
    Record of which Slack message was posted for which anomaly.

    Cost Anomaly Detection re-sends a notification whenever an open anomaly's
    impact grows. The record lets the reactor update the original message
    instead of posting a duplicate.
    """

    def __init__(
        self,
        table_name: str,
        slack_team_id: str = "",
        ttl_days: int = 30,
        dynamodb_resource: DynamoDBServiceResource | None = None,
    ):
        """
        Initialize DynamoDB storage.

        Args:
            table_name: Name of the DynamoDB table.
            slack_team_id: Slack team ID used as the range key.
            ttl_days: Days before a record expires.
            dynamodb_resource: Optional boto3 DynamoDB resource. If None, creates one.
        """
        self.dynamodb = dynamodb_resource or boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(table_name)
        self.table_name = table_name
        self.slack_team_id = slack_team_id
        self.ttl_days = ttl_days

    def save_anomaly_message(self, message: AnomalySlackMessage) -> bool:
        """
        Store a message record unless one already exists.

        Args:
            message: Record to store. Team ID and TTL are filled in here.

        Returns:
            True if stored, False if a record for the anomaly already existed.
        """
        message = message.model_copy(update={"slack_team_id": self.slack_team_id})
        message = message.with_ttl(self.ttl_days)
        try:
            self.table.put_item(
                Item=message.to_dynamodb_item(),
                ConditionExpression=Attr("AnomalyID").not_exists() & Attr("SlackTeamID").not_exists(),
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                print(f"Anomaly message already recorded: {message.anomaly_id}")
                return False
            raise
        return True

    def get_anomaly_message(self, anomaly_id: str) -> AnomalySlackMessage | None:
        """
        Get the message record for an anomaly.

        Args:
            anomaly_id: Cost Anomaly Detection anomaly ID.

        Returns:
            AnomalySlackMessage if found, None otherwise.
        """
        try:
            response = self.table.get_item(
                Key={
                    "AnomalyID": anomaly_id,
                    "SlackTeamID": self.slack_team_id,
                }
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
                return None
            raise
        if "Item" in response:
            return AnomalySlackMessage.from_dynamodb_item(response["Item"])
        return None

    def ensure_table(self, delay_seconds: int = 1, max_attempts: int = 300) -> None:
        """
        Create the table if missing, wait until active, and enable TTL.

        Raises:
            WaiterError: If the table does not become active in time.
        """
        client = self.dynamodb.meta.client
        try:
            description = client.describe_table(TableName=self.table_name)["Table"]
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "ResourceNotFoundException":
                raise
            print(f"Table {self.table_name} not found, creating")
            description = client.create_table(
                TableName=self.table_name,
                KeySchema=[
                    {"AttributeName": "AnomalyID", "KeyType": "HASH"},
                    {"AttributeName": "SlackTeamID", "KeyType": "RANGE"},
                ],
                AttributeDefinitions=[
                    {"AttributeName": "AnomalyID", "AttributeType": "S"},
                    {"AttributeName": "SlackTeamID", "AttributeType": "S"},
                ],
                BillingMode="PAY_PER_REQUEST",
            )["TableDescription"]

        if description.get("TableStatus") != "ACTIVE":
            client.get_waiter("table_exists").wait(
                TableName=self.table_name,
                WaiterConfig={"Delay": delay_seconds, "MaxAttempts": max_attempts},
            )
        print(f"Table {self.table_name} ready")

        ttl = client.describe_time_to_live(TableName=self.table_name)
        if ttl["TimeToLiveDescription"].get("TimeToLiveStatus") != "ENABLED":
            print(f"Enabling TTL on {self.table_name}")
            client.update_time_to_live(
                TableName=self.table_name,
                TimeToLiveSpecification={"AttributeName": "TTL", "Enabled": True},
            )
