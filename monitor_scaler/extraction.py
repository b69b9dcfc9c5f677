"""
Metric Scaler - Aggregation extraction.

Reduces a MetricResponse to the single value of the requested aggregation
in the most recent data point. Earlier points of the series are ignored:
the signal is the latest sample, not a summary of the window.
"""

import logging
from typing import Optional

from monitor_scaler.exceptions import (
    EmptyMetricResponse,
    NoDataPoints,
    NoTimeseries,
    UnsupportedOrMissingAggregation,
)
from monitor_scaler.models import (
    AggregationType,
    MetricQuerySpec,
    MetricResponse,
    MetricValue,
)


logger = logging.getLogger(__name__)


def read_aggregation(point: MetricValue, aggregation: AggregationType) -> Optional[float]:
    """Value of one aggregation in a data point, or None when absent."""
    if aggregation == AggregationType.AVERAGE:
        return point.average
    elif aggregation == AggregationType.TOTAL:
        return point.total
    elif aggregation == AggregationType.MAXIMUM:
        return point.maximum
    elif aggregation == AggregationType.MINIMUM:
        return point.minimum
    elif aggregation == AggregationType.COUNT:
        return float(point.count) if point.count is not None else None
    return None


def extract_metric_value(
    spec: MetricQuerySpec,
    response: MetricResponse,
    log: Optional[logging.Logger] = None,
) -> float:
    """
    Select the requested aggregation from the last data point of the
    first time series of the first metric.

    Args:
        spec: The query that produced the response
        response: Raw response from the metrics API
        log: Logger to report the extracted value to

    Returns:
        The metric value as a float

    Raises:
        EmptyMetricResponse: no metric results
        NoTimeseries: first metric has no time series
        NoDataPoints: first time series has no data points
        UnsupportedOrMissingAggregation: mode unknown, or absent from the
            latest data point
    """
    log = log or logger
    label = f"{spec.resource_namespace}/{spec.metric_name}"
    error_args = {
        "metric_name": spec.metric_name,
        "namespace": spec.resource_namespace,
        "aggregation": spec.aggregation,
        "context": spec.describe(),
    }

    if not response.value:
        raise EmptyMetricResponse(
            message=f"Got an empty response for metric {label} and aggregate type {spec.aggregation}",
            **error_args,
        )

    timeseries = response.value[0].timeseries
    if not timeseries:
        raise NoTimeseries(
            message=f"Got metric result for {label} and aggregate type {spec.aggregation} without timeseries",
            **error_args,
        )

    data = timeseries[0].data
    if not data:
        raise NoDataPoints(
            message=f"Got metric result for {label} and aggregate type {spec.aggregation} without any metric values",
            **error_args,
        )

    latest = data[-1]
    aggregation = AggregationType.parse(spec.aggregation)
    value = read_aggregation(latest, aggregation) if aggregation is not None else None

    if value is None:
        raise UnsupportedOrMissingAggregation(
            message=(
                f"Unable to get value for metric {label} with aggregation {spec.aggregation}. "
                f"No value returned by Azure Monitor"
            ),
            **error_args,
        )

    log.debug(f"[extraction] metric type: {spec.aggregation} {value}")
    return value
