"""Anomaly notification relay: Slack message, cost graphs, feedback."""

from __future__ import annotations

from typing import Callable

import boto3
from botocore.exceptions import ClientError

from cost_anomaly_reactor.collectors.aws_cost_explorer import FeedbackProvider, GraphGenerator
from cost_anomaly_reactor.collectors.organizations import AccountNameResolver
from cost_anomaly_reactor.config.loader import get_cached_config
from cost_anomaly_reactor.config.schema import Config
from cost_anomaly_reactor.notifications.slack.bot import SlackAPIError, SlackBotClient
from cost_anomaly_reactor.notifications.slack.callback import SlackInteraction
from cost_anomaly_reactor.notifications.slack.formatter import SlackFormatter
from cost_anomaly_reactor.storage.dynamodb import DynamoDBStorage
from cost_anomaly_reactor.storage.models import Anomaly, AnomalySlackMessage


class ConfigurationError(Exception):
    """Required reactor settings are missing."""


def _sns_client_for_region(region: str) -> boto3.client:
    return boto3.client("sns", region_name=region)


class AnomalyReactor:
    """
    Relay Cost Anomaly Detection notifications to one Slack channel.

    One Slack message is kept per anomaly. When DynamoDB storage is
    configured, re-notifications of the same anomaly update that message and
    reply in its thread instead of posting a new one. Root-cause graphs are
    uploaded into the message thread.
    """

    def __init__(
        self,
        channel: str,
        slack: SlackBotClient,
        graph_generator: GraphGenerator,
        feedback_provider: FeedbackProvider,
        storage: DynamoDBStorage | None = None,
        formatter: SlackFormatter | None = None,
        no_error_report: bool = False,
        sns_client_factory: Callable[[str], boto3.client] = _sns_client_for_region,
    ):
        self.channel = channel
        self.slack = slack
        self.graph_generator = graph_generator
        self.feedback_provider = feedback_provider
        self.storage = storage
        self.formatter = formatter or SlackFormatter()
        self.no_error_report = no_error_report
        self._sns_client_factory = sns_client_factory

    @classmethod
    def from_config(cls, config: Config) -> "AnomalyReactor":
        """
        Build a reactor and its AWS/Slack clients from configuration.

        Raises:
            ConfigurationError: If the Slack channel or bot token is missing.
        """
        if not config.slack.bot_token:
            raise ConfigurationError("slack bot token is required")
        if not config.slack.channel:
            raise ConfigurationError("slack channel is required")

        slack = SlackBotClient(config.slack.bot_token)
        me = slack.auth_test()
        print(f"Running slack bot: bot_id={me.get('bot_id')} user_id={me.get('user_id')} team_id={me.get('team_id')}")

        storage = None
        if config.dynamodb.enabled:
            print(f"DynamoDB enabled: table_name={config.dynamodb.table_name}")
            storage = DynamoDBStorage(
                config.dynamodb.table_name,
                slack_team_id=me.get("team_id", ""),
                ttl_days=config.dynamodb.ttl_days,
            )
            storage.ensure_table()

        return cls(
            channel=config.slack.channel,
            slack=slack,
            graph_generator=GraphGenerator(
                account_resolver=AccountNameResolver(),
                graph_config=config.graph,
                region=config.aws.region,
            ),
            feedback_provider=FeedbackProvider(region=config.aws.region),
            storage=storage,
            no_error_report=config.slack.no_error_report,
        )

    def post_anomaly_detected(self, anomaly: Anomaly) -> str:
        """
        Post (or update) the anomaly message and upload its graphs.

        Args:
            anomaly: Parsed anomaly notification.

        Returns:
            Timestamp of the anomaly message (thread parent).
        """
        message = self.formatter.format_anomaly_alert(anomaly)
        graphs = self.graph_generator.generate(anomaly)

        previous = None
        if self.storage is not None:
            try:
                previous = self.storage.get_anomaly_message(anomaly.anomaly_id)
            except ClientError as e:
                print(f"Failed to get anomaly slack message: {e}")

        if previous is not None:
            ts = previous.slack_message_timestamp
            self.slack.send_message(
                self.channel,
                self.formatter.format_impact_update(previous.total_impact, anomaly.impact.total_impact),
                thread_ts=ts,
            )
            self.slack.update_blocks(self.channel, ts, message["blocks"], text=message["text"])
        else:
            response = self.slack.send_blocks(self.channel, message["blocks"], text=message["text"])
            ts = response["ts"]
            if self.storage is not None:
                try:
                    self.storage.save_anomaly_message(
                        AnomalySlackMessage(
                            anomaly_id=anomaly.anomaly_id,
                            slack_message_timestamp=ts,
                            total_impact=anomaly.impact.total_impact,
                        )
                    )
                except ClientError as e:
                    print(f"Failed to save anomaly slack message for {anomaly.anomaly_id}: {e}")

        print(f"Posted anomaly detected message: anomaly_id={anomaly.anomaly_id} thread_ts={ts}")

        for i, generated in enumerate(graphs, start=1):
            name = f"anomaly-{anomaly.anomaly_id}-root-cause{i}.png"
            uploaded = self.slack.upload_file(
                self.channel,
                name,
                generated.data,
                size=generated.size,
                thread_ts=ts,
            )
            print(f"Uploaded file: file_id={uploaded.get('id')} file_name={name}")

        return ts

    def confirm_subscription(self, topic_arn: str, token: str) -> None:
        """Confirm an SNS HTTP subscription and announce it in the channel."""
        region = topic_arn.split(":")[3] if topic_arn.count(":") >= 5 else ""
        if not region:
            raise ValueError(f"invalid topic arn: {topic_arn}")

        self._sns_client_factory(region).confirm_subscription(
            TopicArn=topic_arn,
            Token=token,
            AuthenticateOnUnsubscribe="no",
        )
        print(f"Confirmed subscription: topic_arn={topic_arn}")
        try:
            self.slack.send_message(self.channel, f"confirmed sns subscription for {topic_arn}")
        except SlackAPIError as e:
            print(f"Failed to post message: {e}")

    def handle_feedback(self, interaction: SlackInteraction) -> str:
        """
        Send feedback to AWS and confirm it in the message thread.

        Raises:
            ValueError: Unknown action.
            ClientError: Cost Explorer rejected the feedback.
        """
        print(
            f"Provide feedback action: anomaly_id={interaction.anomaly_id} "
            f"action_id={interaction.action_id} user_id={interaction.user_id}"
        )
        feedback = self.feedback_provider.provide_feedback(interaction.anomaly_id, interaction.action_id)
        self.slack.send_message(
            interaction.channel_id,
            self.formatter.format_feedback_confirmation(
                interaction.button_text, interaction.anomaly_id, interaction.user_name
            ),
            thread_ts=interaction.message_ts,
            reply_broadcast=True,
        )
        return feedback

    def report_error(self, context: str, error: Exception, channel: str | None = None, thread_ts: str | None = None) -> None:
        """Post an error to Slack unless error reports are disabled."""
        if self.no_error_report:
            return
        try:
            self.slack.send_message(channel or self.channel, self.formatter.format_error(context, error), thread_ts=thread_ts)
        except SlackAPIError as e:
            print(f"Failed to post error report: {e}")


_reactor: AnomalyReactor | None = None


def get_reactor() -> AnomalyReactor:
    """Reactor singleton for warm Lambda invocations."""
    global _reactor
    if _reactor is None:
        _reactor = AnomalyReactor.from_config(get_cached_config())
    return _reactor
