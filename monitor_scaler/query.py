"""
Metric Scaler - Query construction and validation.

Builds an immutable MetricQuerySpec from scaler configuration and checks
it before anything is sent to the monitoring API.
"""

from typing import Optional

from monitor_scaler.clock import ClockProtocol
from monitor_scaler.config import ScalerMetadata
from monitor_scaler.exceptions import (
    MalformedResourceIdentifier,
    UnsupportedOrMissingAggregation,
    ValidationError,
)
from monitor_scaler.models import AggregationType, MetricQuerySpec
from monitor_scaler.timespan import format_timespan


RESOURCE_URI_SEGMENTS = ("namespace", "type", "name")


def decompose_resource_uri(resource_uri: str) -> tuple[str, str, str]:
    """
    Split ``<namespace>/<type>/<name>`` into its three segments.

    Raises:
        MalformedResourceIdentifier: unless there are exactly three
            non-empty segments
    """
    segments = resource_uri.split("/") if resource_uri else []

    if len(segments) != len(RESOURCE_URI_SEGMENTS) or not all(segments):
        raise MalformedResourceIdentifier(
            message=(
                f"resourceURI '{resource_uri}' must have the form "
                f"<namespace>/<type>/<name>, got {len(segments)} segment(s)"
            ),
            resource_uri=resource_uri,
        )

    namespace, resource_type, name = segments
    return namespace, resource_type, name


def build_query_spec(
    metadata: ScalerMetadata,
    clock: Optional[ClockProtocol] = None,
) -> MetricQuerySpec:
    """
    Assemble the query for one poll from scaler configuration.

    Errors from resource decomposition and timespan parsing propagate
    unchanged.
    """
    namespace, resource_type, name = decompose_resource_uri(metadata.resource_uri)
    timespan = format_timespan(metadata.aggregation_interval, clock=clock)

    return MetricQuerySpec(
        metric_name=metadata.name,
        subscription_id=metadata.subscription_id,
        resource_group=metadata.resource_group_name,
        resource_namespace=namespace,
        resource_type=resource_type,
        resource_name=name,
        aggregation=metadata.aggregation_type,
        timespan=timespan,
        filter=metadata.filter,
    )


def validate_query_spec(spec: MetricQuerySpec) -> None:
    """
    Check required fields in order: metric name, resource group,
    subscription. Only the first missing field is reported.

    An aggregation outside the five supported modes is rejected last.
    """
    if not spec.metric_name:
        raise ValidationError(
            message="metricName is required",
            field_name="metricName",
            context=spec.describe(),
        )
    if not spec.resource_group:
        raise ValidationError(
            message="resourceGroup is required",
            field_name="resourceGroup",
            metric_name=spec.metric_name,
            context=spec.describe(),
        )
    if not spec.subscription_id:
        raise ValidationError(
            message="subscriptionID is required. set a default or pass via label selectors",
            field_name="subscriptionID",
            metric_name=spec.metric_name,
            context=spec.describe(),
        )

    if AggregationType.parse(spec.aggregation) is None:
        raise UnsupportedOrMissingAggregation(
            message=(
                f"Unsupported aggregation type '{spec.aggregation}', expected one of "
                f"{[a.value for a in AggregationType]}"
            ),
            metric_name=spec.metric_name,
            namespace=spec.resource_namespace,
            aggregation=spec.aggregation,
            context=spec.describe(),
        )
