"""
Metric Scaler Models - Query specification and monitoring response structures.

Response types mirror the Azure Monitor metrics payload. Every level of the
payload, and every aggregation field of a data point, may be absent; absence
is kept as ``None`` and never defaulted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class AggregationType(Enum):
    """Aggregation modes supported by the metrics API."""
    AVERAGE = "Average"
    TOTAL = "Total"
    MAXIMUM = "Maximum"
    MINIMUM = "Minimum"
    COUNT = "Count"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["AggregationType"]:
        """Match a mode name case-insensitively, or return None."""
        if not value:
            return None
        wanted = value.strip().casefold()
        for member in cls:
            if member.value.casefold() == wanted:
                return member
        return None


@dataclass(frozen=True)
class MetricQuerySpec:
    """
    A fully assembled metric query, built once per poll.

    Namespace, type and name come from decomposing the configured
    resource identifier and are never empty.
    """
    metric_name: str
    subscription_id: str
    resource_group: str
    resource_namespace: str
    resource_type: str
    resource_name: str
    aggregation: str
    timespan: str
    filter: str = ""

    def metric_resource_uri(self) -> str:
        """Fully-qualified ARM resource URI addressed by this query."""
        return (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/{self.resource_namespace}"
            f"/{self.resource_type}"
            f"/{self.resource_name}"
        )

    def describe(self) -> dict[str, Any]:
        """Identifying fields, used as error and log context."""
        return {
            "metric_name": self.metric_name,
            "subscription_id": self.subscription_id,
            "resource_group": self.resource_group,
            "resource_namespace": self.resource_namespace,
            "resource_type": self.resource_type,
            "resource_name": self.resource_name,
            "aggregation": self.aggregation,
            "timespan": self.timespan,
        }


def _optional_float(raw: Any) -> Optional[float]:
    return float(raw) if raw is not None else None


def _optional_int(raw: Any) -> Optional[int]:
    return int(raw) if raw is not None else None


@dataclass(frozen=True)
class MetricValue:
    """One data point; each aggregation is independently optional."""
    time_stamp: Optional[str] = None
    average: Optional[float] = None
    total: Optional[float] = None
    maximum: Optional[float] = None
    minimum: Optional[float] = None
    count: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetricValue":
        """Create from a data point of the API payload."""
        return cls(
            time_stamp=data.get("timeStamp"),
            average=_optional_float(data.get("average")),
            total=_optional_float(data.get("total")),
            maximum=_optional_float(data.get("maximum")),
            minimum=_optional_float(data.get("minimum")),
            count=_optional_int(data.get("count")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API's dictionary shape, omitting absent fields."""
        data = {
            "timeStamp": self.time_stamp,
            "average": self.average,
            "total": self.total,
            "maximum": self.maximum,
            "minimum": self.minimum,
            "count": self.count,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class TimeSeriesElement:
    """A time series of data points for one metadata combination."""
    data: Optional[list[MetricValue]] = None
    metadata_values: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeSeriesElement":
        """Create from a time series element of the API payload."""
        points = data.get("data")
        return cls(
            data=[MetricValue.from_dict(p) for p in points] if points is not None else None,
            metadata_values=list(data.get("metadatavalues") or []),
        )


@dataclass(frozen=True)
class Metric:
    """One named metric result."""
    name: Optional[str] = None
    unit: Optional[str] = None
    timeseries: Optional[list[TimeSeriesElement]] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Metric":
        """Create from a metric result of the API payload."""
        name = data.get("name")
        if isinstance(name, dict):
            name = name.get("value")
        series = data.get("timeseries")
        return cls(
            name=name,
            unit=data.get("unit"),
            timeseries=[TimeSeriesElement.from_dict(s) for s in series] if series is not None else None,
            id=data.get("id"),
        )


@dataclass(frozen=True)
class MetricResponse:
    """Raw metrics response returned by the monitoring API."""
    value: Optional[list[Metric]] = None
    timespan: Optional[str] = None
    interval: Optional[str] = None
    namespace: Optional[str] = None
    resource_region: Optional[str] = None
    cost: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetricResponse":
        """Create from the decoded JSON body of a metrics request."""
        metrics = data.get("value")
        return cls(
            value=[Metric.from_dict(m) for m in metrics] if metrics is not None else None,
            timespan=data.get("timespan"),
            interval=data.get("interval"),
            namespace=data.get("namespace"),
            resource_region=data.get("resourceregion"),
            cost=_optional_int(data.get("cost")),
        )

    @classmethod
    def single_point(cls, metric_name: str, **aggregations: Any) -> "MetricResponse":
        """Response holding one metric, one series and one data point."""
        return cls(value=[
            Metric(
                name=metric_name,
                timeseries=[TimeSeriesElement(data=[MetricValue(**aggregations)])],
            ),
        ])
