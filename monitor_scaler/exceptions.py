"""
Metric Scaler Exceptions - Exception hierarchy for the scaling signal pipeline.

Every failure of a poll cycle surfaces as one of these, carrying enough
context (metric, resource, aggregation) to diagnose without re-querying.

MetricScalerError (base)
├── ConfigurationError
├── MalformedResourceIdentifier
├── TimespanParseError
├── ValidationError
├── QueryError
│   └── AuthenticationError
├── MetricExtractionError
│   ├── EmptyMetricResponse
│   ├── NoTimeseries
│   ├── NoDataPoints
│   └── UnsupportedOrMissingAggregation
└── SignalRangeError
"""

from datetime import datetime, timezone
from typing import Any, Optional


class MetricScalerError(Exception):
    """Base exception for all metric scaler errors."""

    def __init__(
        self,
        message: str,
        metric_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.metric_name = metric_name
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "metric_name": self.metric_name,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.metric_name:
            parts.append(f"[metric={self.metric_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class ConfigurationError(MetricScalerError):
    """Scaler configuration is missing or malformed."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, original_error, context)
        self.config_key = config_key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["config_key"] = self.config_key
        return data


class MalformedResourceIdentifier(MetricScalerError):
    """Resource identifier did not split into namespace/type/name."""

    def __init__(
        self,
        message: str,
        resource_uri: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, context=context)
        self.resource_uri = resource_uri

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["resource_uri"] = self.resource_uri
        return data


class TimespanParseError(MetricScalerError):
    """One or more components of an H:M:S aggregation interval failed to parse."""

    def __init__(
        self,
        message: str,
        interval: Optional[str] = None,
        failed_components: Optional[list[str]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, context=context)
        self.interval = interval
        self.failed_components = failed_components or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "interval": self.interval,
            "failed_components": self.failed_components,
        })
        return data


class ValidationError(MetricScalerError):
    """A required query field is empty."""

    def __init__(
        self,
        message: str,
        field_name: str,
        metric_name: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, metric_name, context=context)
        self.field_name = field_name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["field_name"] = self.field_name
        return data


class QueryError(MetricScalerError):
    """The monitoring API call failed (network, authorization, throttling)."""

    def __init__(
        self,
        message: str,
        metric_name: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, metric_name, original_error, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data

    def is_rate_limited(self) -> bool:
        """Check if error is due to throttling."""
        return self.status_code == 429

    def is_server_error(self) -> bool:
        """Check if error is server-side."""
        return self.status_code is not None and 500 <= self.status_code < 600

    def is_client_error(self) -> bool:
        """Check if error is client-side."""
        return self.status_code is not None and 400 <= self.status_code < 500


class AuthenticationError(QueryError):
    """Access token could not be acquired."""


class MetricExtractionError(MetricScalerError):
    """The response could not be reduced to a single value."""

    def __init__(
        self,
        message: str,
        metric_name: Optional[str] = None,
        namespace: Optional[str] = None,
        aggregation: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, metric_name, context=context)
        self.namespace = namespace
        self.aggregation = aggregation

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "namespace": self.namespace,
            "aggregation": self.aggregation,
        })
        return data


class EmptyMetricResponse(MetricExtractionError):
    """Response held no metric results."""


class NoTimeseries(MetricExtractionError):
    """First metric result held no time series."""


class NoDataPoints(MetricExtractionError):
    """First time series held no data points."""


class UnsupportedOrMissingAggregation(MetricExtractionError):
    """Requested aggregation is unknown or absent from the latest data point."""


class SignalRangeError(MetricScalerError):
    """Metric value cannot be represented as a 32-bit scaling signal."""

    def __init__(
        self,
        message: str,
        value: Optional[float] = None,
        metric_name: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, metric_name, context=context)
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["value"] = self.value
        return data
