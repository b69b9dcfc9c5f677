"""
Metric Scaler - Mock metrics client.

============================================================
PURPOSE
============================================================
In-memory MetricQueryClient for tests and dry runs.

FEATURES:
- Configurable response per metric name
- Configurable error injection
- Records every query it receives

============================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from monitor_scaler.client import MetricQueryClient
from monitor_scaler.exceptions import QueryError
from monitor_scaler.models import MetricResponse


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordedQuery:
    """A query received by the mock client."""
    resource_uri: str
    timespan: str
    metric_name: str
    aggregation: str
    filter: str


@dataclass
class MockConfig:
    """Configuration for the mock client."""

    default_response: MetricResponse = field(default_factory=MetricResponse)
    """Returned for metrics without a dedicated response."""

    responses: dict[str, MetricResponse] = field(default_factory=dict)
    """Responses by metric name."""

    error: Optional[QueryError] = None
    """Raised by every query when set."""


class MockMetricsClient(MetricQueryClient):
    """Returns configured responses instead of calling the API."""

    def __init__(self, config: Optional[MockConfig] = None) -> None:
        self.config = config or MockConfig()
        self.queries: list[RecordedQuery] = []
        self.closed = False

    def set_response(self, metric_name: str, response: MetricResponse) -> None:
        self.config.responses[metric_name] = response

    def fail_with(self, error: Optional[QueryError]) -> None:
        self.config.error = error

    async def query(
        self,
        resource_uri: str,
        timespan: str,
        metric_name: str,
        aggregation: str,
        filter: str = "",
    ) -> MetricResponse:
        self.queries.append(RecordedQuery(
            resource_uri=resource_uri,
            timespan=timespan,
            metric_name=metric_name,
            aggregation=aggregation,
            filter=filter,
        ))
        logger.debug(f"[mock] query {metric_name} on {resource_uri}")

        if self.config.error is not None:
            raise self.config.error
        return self.config.responses.get(metric_name, self.config.default_response)

    async def close(self) -> None:
        self.closed = True

    @property
    def last_query(self) -> Optional[RecordedQuery]:
        return self.queries[-1] if self.queries else None
