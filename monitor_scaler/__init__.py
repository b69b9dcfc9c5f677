"""
Monitor Scaler Package - Azure Monitor metric scaling signal.

Turns a declarative metric configuration into an Azure Monitor metrics
query, and the query's response into one integer autoscaling signal.

Features:
- Strict query construction and validation before any network call
- Explicit handling of every optional level of the metrics response
- Round-half-away-from-zero signal, range-checked to 32 bits
- Tagged success/failure results instead of sentinel values
- Injected credential provider, client, clock and logger

Quick Start:
    from monitor_scaler import (
        AzureMonitorMetricsClient,
        AzureMonitorScaler,
        ScalerMetadata,
        create_credential_provider,
    )

    async def poll():
        metadata = ScalerMetadata.from_dict({
            "metricName": "Length",
            "subscriptionId": "...",
            "resourceGroupName": "...",
            "resourceURI": "Microsoft.Storage/queueServices/q1",
            "metricAggregationType": "Average",
            "tenantId": "...",
            "activeDirectoryClientId": "...",
            "activeDirectoryClientPasswordFromEnv": "CLIENT_SECRET",
        }, resolved_env=os.environ)

        credential = create_credential_provider(metadata)
        async with AzureMonitorMetricsClient(credential) as client:
            result = await AzureMonitorScaler(client).get_signal(metadata)
            if result.ok:
                print(result.value)
"""

from monitor_scaler.auth import (
    ClientCredentialsProvider,
    CredentialProvider,
    StaticTokenProvider,
    create_credential_provider,
)
from monitor_scaler.client import AzureMonitorMetricsClient, MetricQueryClient
from monitor_scaler.clock import ClockProtocol, MockClock, SystemClock
from monitor_scaler.config import CLOUD_ENDPOINTS, CloudEndpoints, ScalerMetadata
from monitor_scaler.exceptions import (
    AuthenticationError,
    ConfigurationError,
    EmptyMetricResponse,
    MalformedResourceIdentifier,
    MetricExtractionError,
    MetricScalerError,
    NoDataPoints,
    NoTimeseries,
    QueryError,
    SignalRangeError,
    TimespanParseError,
    UnsupportedOrMissingAggregation,
    ValidationError,
)
from monitor_scaler.extraction import extract_metric_value
from monitor_scaler.mock import MockConfig, MockMetricsClient
from monitor_scaler.models import (
    AggregationType,
    Metric,
    MetricQuerySpec,
    MetricResponse,
    MetricValue,
    TimeSeriesElement,
)
from monitor_scaler.query import build_query_spec, decompose_resource_uri, validate_query_spec
from monitor_scaler.rounding import SignalResult, round_to_signal
from monitor_scaler.scaler import AzureMonitorScaler
from monitor_scaler.timespan import format_timespan


__version__ = "1.0.0"

__all__ = [
    # Pipeline
    "AzureMonitorScaler",
    "build_query_spec",
    "decompose_resource_uri",
    "validate_query_spec",
    "format_timespan",
    "extract_metric_value",
    "round_to_signal",
    "SignalResult",

    # Models
    "AggregationType",
    "MetricQuerySpec",
    "MetricResponse",
    "Metric",
    "TimeSeriesElement",
    "MetricValue",

    # Configuration
    "ScalerMetadata",
    "CloudEndpoints",
    "CLOUD_ENDPOINTS",

    # Collaborators
    "MetricQueryClient",
    "AzureMonitorMetricsClient",
    "MockMetricsClient",
    "MockConfig",
    "CredentialProvider",
    "ClientCredentialsProvider",
    "StaticTokenProvider",
    "create_credential_provider",
    "ClockProtocol",
    "SystemClock",
    "MockClock",

    # Exceptions
    "MetricScalerError",
    "ConfigurationError",
    "MalformedResourceIdentifier",
    "TimespanParseError",
    "ValidationError",
    "QueryError",
    "AuthenticationError",
    "MetricExtractionError",
    "EmptyMetricResponse",
    "NoTimeseries",
    "NoDataPoints",
    "UnsupportedOrMissingAggregation",
    "SignalRangeError",
]
