"""Tests for the anomaly message DynamoDB storage."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, WaiterError

from cost_anomaly_reactor.storage.dynamodb import DynamoDBStorage
from cost_anomaly_reactor.storage.models import AnomalySlackMessage


def client_error(code: str, operation: str = "PutItem") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def resource():
    return MagicMock()


@pytest.fixture
def storage(resource):
    return DynamoDBStorage("anomaly-messages", slack_team_id="T123", ttl_days=30, dynamodb_resource=resource)


class TestDynamoDBStorage:
    """Tests for DynamoDBStorage."""

    def test_save_is_conditional(self, storage):
        saved = storage.save_anomaly_message(
            AnomalySlackMessage(anomaly_id="a-1", slack_message_timestamp="1.0", total_impact=5.0)
        )

        assert saved is True
        kwargs = storage.table.put_item.call_args.kwargs
        assert kwargs["Item"]["AnomalyID"] == "a-1"
        assert kwargs["Item"]["SlackTeamID"] == "T123"
        assert kwargs["Item"]["TTL"] > 0
        assert "ConditionExpression" in kwargs

    def test_save_existing_record(self, storage):
        storage.table.put_item.side_effect = client_error("ConditionalCheckFailedException")

        saved = storage.save_anomaly_message(AnomalySlackMessage(anomaly_id="a-1", slack_message_timestamp="1.0"))

        assert saved is False

    def test_save_other_errors_propagate(self, storage):
        storage.table.put_item.side_effect = client_error("ProvisionedThroughputExceededException")

        with pytest.raises(ClientError):
            storage.save_anomaly_message(AnomalySlackMessage(anomaly_id="a-1", slack_message_timestamp="1.0"))

    def test_get_existing(self, storage):
        storage.table.get_item.return_value = {
            "Item": {
                "AnomalyID": "a-1",
                "SlackTeamID": "T123",
                "SlackMessageTimestamp": "1.0",
                "TotalImpact": 5,
            }
        }

        message = storage.get_anomaly_message("a-1")

        assert message.slack_message_timestamp == "1.0"
        assert message.total_impact == 5.0
        storage.table.get_item.assert_called_once_with(Key={"AnomalyID": "a-1", "SlackTeamID": "T123"})

    def test_get_missing(self, storage):
        storage.table.get_item.return_value = {}
        assert storage.get_anomaly_message("a-1") is None


class TestEnsureTable:
    """Tests for DynamoDBStorage.ensure_table."""

    def test_creates_missing_table_and_enables_ttl(self, storage, resource):
        client = resource.meta.client
        client.describe_table.side_effect = client_error("ResourceNotFoundException", "DescribeTable")
        client.create_table.return_value = {"TableDescription": {"TableStatus": "CREATING"}}
        client.describe_time_to_live.return_value = {"TimeToLiveDescription": {"TimeToLiveStatus": "DISABLED"}}

        storage.ensure_table(delay_seconds=2, max_attempts=5)

        create_kwargs = client.create_table.call_args.kwargs
        assert create_kwargs["KeySchema"] == [
            {"AttributeName": "AnomalyID", "KeyType": "HASH"},
            {"AttributeName": "SlackTeamID", "KeyType": "RANGE"},
        ]
        client.update_time_to_live.assert_called_once_with(
            TableName="anomaly-messages",
            TimeToLiveSpecification={"AttributeName": "TTL", "Enabled": True},
        )
        client.get_waiter.assert_called_once_with("table_exists")
        client.get_waiter.return_value.wait.assert_called_once_with(
            TableName="anomaly-messages",
            WaiterConfig={"Delay": 2, "MaxAttempts": 5},
        )

    def test_existing_active_table(self, storage, resource):
        client = resource.meta.client
        client.describe_table.return_value = {"Table": {"TableStatus": "ACTIVE"}}
        client.describe_time_to_live.return_value = {"TimeToLiveDescription": {"TimeToLiveStatus": "ENABLED"}}

        storage.ensure_table()

        client.create_table.assert_not_called()
        client.get_waiter.assert_not_called()
        client.update_time_to_live.assert_not_called()

    def test_timeout(self, storage, resource):
        client = resource.meta.client
        client.describe_table.return_value = {"Table": {"TableStatus": "CREATING"}}
        client.get_waiter.return_value.wait.side_effect = WaiterError(
            name="TableExists", reason="Max attempts exceeded", last_response={}
        )

        with pytest.raises(WaiterError):
            storage.ensure_table(max_attempts=1)

        client.describe_time_to_live.assert_not_called()
