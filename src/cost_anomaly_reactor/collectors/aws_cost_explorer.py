"""AWS Cost Explorer collaborators: root-cause cost graphs and anomaly feedback.

Cost Explorer API charges $0.01 per request.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterator

import boto3
from botocore.exceptions import ClientError

from cost_anomaly_reactor.collectors.organizations import AccountNameResolver
from cost_anomaly_reactor.config.schema import GraphConfig
from cost_anomaly_reactor.graph import ChartRenderer, CostGraph, RenderedGraph, RenderFailure
from cost_anomaly_reactor.storage.models import FEEDBACK_ACTIONS, Anomaly, RootCause

# Metrics request name -> key in ResultsByTime
METRIC_RESULT_KEYS = {
    "NET_UNBLENDED_COST": "NetUnblendedCost",
    "UNBLENDED_COST": "UnblendedCost",
    "AMORTIZED_COST": "AmortizedCost",
}
DEFAULT_UNIT = "USD"


class GraphGenerationError(Exception):
    """A root-cause graph could not be built."""


@dataclass
class GeneratedGraph:
    """Rendered graph for one anomaly root cause."""

    root_cause: RootCause
    title: str
    graph: RenderedGraph

    @property
    def data(self) -> bytes:
        return self.graph.data

    @property
    def size(self) -> int:
        return self.graph.size


class GraphGenerator:
    """
    Build one daily cost graph per anomaly root cause.

    Root causes that name a linked account are charted as a single series.
    Organization-wide root causes (no linked account) are grouped by
    LINKED_ACCOUNT, one series per account, labelled with the account name.
    """

    def __init__(
        self,
        ce_client: boto3.client | None = None,
        account_resolver: AccountNameResolver | None = None,
        graph_config: GraphConfig | None = None,
        region: str = "us-east-1",
    ):
        """
        Initialize the graph generator.

        Args:
            ce_client: Optional boto3 Cost Explorer client.
            account_resolver: Resolver for linked account labels.
            graph_config: Rendering and query window settings.
            region: AWS region for the Cost Explorer API.
        """
        self.region = region
        self._ce_client = ce_client
        self.account_resolver = account_resolver or AccountNameResolver()
        self.config = graph_config or GraphConfig()

    @property
    def ce_client(self) -> boto3.client:
        """Get or create Cost Explorer client."""
        if self._ce_client is None:
            self._ce_client = boto3.client("ce", region_name=self.region)
        return self._ce_client

    def _new_graph(self) -> CostGraph:
        renderer = ChartRenderer(
            width_px=self.config.width_px,
            height_px=self.config.height_px,
            dpi=self.config.dpi,
            bar_width_points=self.config.bar_width_points,
            max_labels=self.config.max_labels,
        )
        return CostGraph(renderer=renderer, max_series=self.config.max_series)

    def generate(self, anomaly: Anomaly) -> list[GeneratedGraph]:
        """
        Generate graphs for every root cause of an anomaly.

        The query window is the anomaly period widened by ``window_days`` on
        each side. Graphs are returned in root-cause order.

        Raises:
            GraphGenerationError: If a query or render fails.
        """
        window = timedelta(days=self.config.window_days)
        start = anomaly.anomaly_start_date.date() - window
        end = anomaly.anomaly_end_date.date() + window

        root_causes = anomaly.root_causes
        if self.config.max_workers > 1 and len(root_causes) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                return list(executor.map(lambda rc: self.generate_for_root_cause(start, end, rc), root_causes))
        return [self.generate_for_root_cause(start, end, rc) for rc in root_causes]

    def generate_for_root_cause(self, start: date, end: date, root_cause: RootCause) -> GeneratedGraph:
        """
        Query daily costs for one root cause and render its graph.

        Raises:
            GraphGenerationError: If the query fails, a result is malformed or
                the graph cannot be rendered.
        """
        title = self.build_title(root_cause)
        query = self.build_query(start, end, root_cause)
        grouped = "GroupBy" in query
        result_key = METRIC_RESULT_KEYS[self.config.metric]

        graph = self._new_graph()
        unit = ""
        try:
            for result in self._iter_results(query):
                day = date.fromisoformat(result["TimePeriod"]["Start"])
                if grouped:
                    for group in result.get("Groups", []):
                        metric = group.get("Metrics", {}).get(result_key)
                        if metric is None:
                            raise GraphGenerationError(f"{result_key} not found for {day}")
                        label = self.account_resolver.label(group["Keys"][0])
                        graph.add_point(day, float(metric["Amount"]), label)
                        unit = metric.get("Unit", unit)
                else:
                    metric = result.get("Total", {}).get(result_key)
                    if metric is None:
                        raise GraphGenerationError(f"{result_key} not found for {day}")
                    graph.add_point(day, float(metric["Amount"]), title)
                    unit = metric.get("Unit", unit)
        except ClientError as e:
            raise GraphGenerationError(f"failed to get cost and usage for {title}: {e}") from e
        except (KeyError, IndexError, ValueError) as e:
            raise GraphGenerationError(f"malformed cost and usage result for {title}: {e!r}") from e

        print(f"Generate graph: title={title} start={start} end={end}")
        try:
            rendered = graph.render(title, f"Cost ({unit or DEFAULT_UNIT})")
        except RenderFailure as e:
            raise GraphGenerationError(f"failed to render graph for {title}: {e}") from e
        return GeneratedGraph(root_cause=root_cause, title=title, graph=rendered)

    def build_title(self, root_cause: RootCause) -> str:
        """Join the root cause dimensions into a chart title."""
        parts = []
        if root_cause.linked_account:
            parts.append(self.account_resolver.label(root_cause.linked_account, root_cause.linked_account_name))
        for value in (root_cause.region, root_cause.service, root_cause.usage_type):
            if value:
                parts.append(value)
        return ",".join(parts)

    def build_query(self, start: date, end: date, root_cause: RootCause) -> dict[str, Any]:
        """
        Build GetCostAndUsage parameters for a root cause.

        Usage records only, filtered by every dimension the root cause names.
        """
        dimensions = [("RECORD_TYPE", "Usage")]
        if root_cause.linked_account:
            dimensions.append(("LINKED_ACCOUNT", root_cause.linked_account))
        if root_cause.region:
            dimensions.append(("REGION", root_cause.region))
        if root_cause.service:
            dimensions.append(("SERVICE", root_cause.service))
        if root_cause.usage_type:
            dimensions.append(("USAGE_TYPE", root_cause.usage_type))

        expressions = [{"Dimensions": {"Key": key, "Values": [value]}} for key, value in dimensions]
        query: dict[str, Any] = {
            "TimePeriod": {"Start": start.isoformat(), "End": end.isoformat()},
            "Granularity": "DAILY",
            "Metrics": [self.config.metric],
            # And needs at least two operands
            "Filter": {"And": expressions} if len(expressions) > 1 else expressions[0],
        }
        if not root_cause.linked_account:
            query["GroupBy"] = [{"Type": "DIMENSION", "Key": "LINKED_ACCOUNT"}]
        return query

    def _iter_results(self, query: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Yield ResultsByTime entries across all pages."""
        kwargs = dict(query)
        while True:
            response = self.ce_client.get_cost_and_usage(**kwargs)
            yield from response.get("ResultsByTime", [])
            token = response.get("NextPageToken")
            if not token:
                return
            kwargs["NextPageToken"] = token


class FeedbackProvider:
    """Send Slack button feedback to Cost Anomaly Detection."""

    def __init__(self, ce_client: boto3.client | None = None, region: str = "us-east-1"):
        self.region = region
        self._ce_client = ce_client

    @property
    def ce_client(self) -> boto3.client:
        """Get or create Cost Explorer client."""
        if self._ce_client is None:
            self._ce_client = boto3.client("ce", region_name=self.region)
        return self._ce_client

    def provide_feedback(self, anomaly_id: str, action_id: str) -> str:
        """
        Record feedback for an anomaly.

        Args:
            anomaly_id: Cost Anomaly Detection anomaly ID.
            action_id: Slack button action ID (yes, no, planed_activity).

        Returns:
            The Cost Explorer feedback value sent.

        Raises:
            ValueError: If the action ID is unknown.
        """
        feedback = FEEDBACK_ACTIONS.get(action_id)
        if feedback is None:
            raise ValueError(f"invalid action id: {action_id}")

        print(f"Provide feedback: anomaly_id={anomaly_id} feedback={feedback.value}")
        self.ce_client.provide_anomaly_feedback(AnomalyId=anomaly_id, Feedback=feedback.value)
        return feedback.value
