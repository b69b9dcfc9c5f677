"""
Tests for response extraction and signal rounding.

============================================================
PURPOSE
============================================================
Covers reduction of a metrics response to one value and the
conversion of that value into a 32-bit scaling signal.

TEST PRINCIPLES:
- Every absent level fails with its own error
- Only the latest data point is consulted
- Rounding is half away from zero, never banker's rounding

============================================================
"""

import math

import pytest

from monitor_scaler.exceptions import (
    EmptyMetricResponse,
    MetricScalerError,
    NoDataPoints,
    NoTimeseries,
    SignalRangeError,
    UnsupportedOrMissingAggregation,
)
from monitor_scaler.extraction import extract_metric_value
from monitor_scaler.models import (
    Metric,
    MetricQuerySpec,
    MetricResponse,
    MetricValue,
    TimeSeriesElement,
)
from monitor_scaler.rounding import INT32_MAX, INT32_MIN, SignalResult, round_to_signal


# ============================================================
# FIXTURES
# ============================================================

def make_spec(aggregation: str = "Average") -> MetricQuerySpec:
    return MetricQuerySpec(
        metric_name="Length",
        subscription_id="s1",
        resource_group="g1",
        resource_namespace="Microsoft.Storage",
        resource_type="queueServices",
        resource_name="q1",
        aggregation=aggregation,
        timespan="2024-01-02T02:59:05Z/2024-01-02T03:04:05Z",
    )


def series_response(*points: MetricValue) -> MetricResponse:
    return MetricResponse(value=[
        Metric(name="Length", timeseries=[TimeSeriesElement(data=list(points))]),
    ])


@pytest.fixture
def azure_payload():
    """Decoded JSON body as returned by the metrics API."""
    return {
        "cost": 4,
        "timespan": "2024-01-02T02:59:05Z/2024-01-02T03:04:05Z",
        "interval": "PT1M",
        "namespace": "Microsoft.Storage/storageAccounts/queueServices",
        "resourceregion": "westeurope",
        "value": [
            {
                "id": "/subscriptions/s1/.../providers/Microsoft.Insights/metrics/QueueMessageCount",
                "type": "Microsoft.Insights/metrics",
                "name": {"value": "QueueMessageCount", "localizedValue": "Queue Message Count"},
                "unit": "Count",
                "timeseries": [
                    {
                        "metadatavalues": [],
                        "data": [
                            {"timeStamp": "2024-01-02T03:00:00Z", "average": 3.0, "total": 9.0},
                            {"timeStamp": "2024-01-02T03:01:00Z"},
                            {"timeStamp": "2024-01-02T03:02:00Z", "average": 12.6, "maximum": 20, "count": 3},
                        ],
                    },
                ],
            },
        ],
    }


# ============================================================
# RESPONSE PARSING TESTS
# ============================================================

class TestMetricResponseParsing:
    """Tests for MetricResponse.from_dict."""

    def test_parse_full_payload(self, azure_payload):
        """Test nested payload is parsed level by level."""
        response = MetricResponse.from_dict(azure_payload)

        assert response.interval == "PT1M"
        assert response.resource_region == "westeurope"
        assert response.value[0].name == "QueueMessageCount"

        points = response.value[0].timeseries[0].data
        assert len(points) == 3
        assert points[2] == MetricValue(
            time_stamp="2024-01-02T03:02:00Z",
            average=12.6,
            maximum=20.0,
            count=3,
        )

    def test_absent_fields_stay_none(self, azure_payload):
        """Test missing aggregations are not defaulted."""
        point = MetricResponse.from_dict(azure_payload).value[0].timeseries[0].data[1]

        assert point.average is None
        assert point.total is None
        assert point.count is None
        assert point.to_dict() == {"timeStamp": "2024-01-02T03:01:00Z"}

    def test_absent_levels_stay_none(self):
        """Test missing nesting levels are kept as None."""
        assert MetricResponse.from_dict({}).value is None
        assert MetricResponse.from_dict({"value": [{}]}).value[0].timeseries is None
        assert MetricResponse.from_dict({"value": [{"timeseries": [{}]}]}).value[0].timeseries[0].data is None


# ============================================================
# EXTRACTION TESTS
# ============================================================

class TestExtractMetricValue:
    """Tests for extract_metric_value."""

    def test_latest_point_is_used(self, azure_payload):
        """Test only the most recent data point is read."""
        response = MetricResponse.from_dict(azure_payload)

        assert extract_metric_value(make_spec("Average"), response) == 12.6

    def test_earlier_points_ignored(self, azure_payload):
        """Test a value present only in earlier points is not used."""
        response = MetricResponse.from_dict(azure_payload)

        with pytest.raises(UnsupportedOrMissingAggregation):
            extract_metric_value(make_spec("Total"), response)

    def test_count_converted_to_float(self):
        """Test Count is read from the integer field."""
        response = series_response(MetricValue(count=7))

        value = extract_metric_value(make_spec("Count"), response)

        assert value == 7.0
        assert isinstance(value, float)

    def test_missing_aggregation_names_mode(self):
        """Test a missing field fails naming the requested mode."""
        response = series_response(MetricValue(count=7))

        with pytest.raises(UnsupportedOrMissingAggregation) as exc_info:
            extract_metric_value(make_spec("Average"), response)

        assert exc_info.value.aggregation == "Average"
        assert "Average" in str(exc_info.value)

    @pytest.mark.parametrize("aggregation,expected", [
        ("Average", 1.5),
        ("Total", 6.0),
        ("Maximum", 3.0),
        ("Minimum", 0.5),
        ("Count", 4.0),
    ])
    def test_every_mode(self, aggregation, expected):
        """Test each mode reads its own field."""
        response = series_response(
            MetricValue(average=1.5, total=6.0, maximum=3.0, minimum=0.5, count=4),
        )

        assert extract_metric_value(make_spec(aggregation), response) == expected

    def test_case_insensitive(self):
        """Test AVERAGE and average select the same field."""
        response = series_response(MetricValue(average=2.25))

        assert extract_metric_value(make_spec("AVERAGE"), response) == 2.25
        assert extract_metric_value(make_spec("average"), response) == 2.25

    def test_zero_is_a_value(self):
        """Test a zero reading is returned, not treated as absent."""
        response = series_response(MetricValue(average=0.0))

        assert extract_metric_value(make_spec("Average"), response) == 0.0

    def test_unknown_mode(self):
        """Test an unrecognised mode fails explicitly."""
        response = series_response(MetricValue(average=1.0))

        with pytest.raises(UnsupportedOrMissingAggregation):
            extract_metric_value(make_spec("Median"), response)

    def test_empty_outer_sequence(self):
        """Test an empty result list fails with EmptyMetricResponse."""
        with pytest.raises(EmptyMetricResponse) as exc_info:
            extract_metric_value(make_spec(), MetricResponse(value=[]))

        error = exc_info.value
        assert not isinstance(error, NoTimeseries)
        assert error.namespace == "Microsoft.Storage"
        assert error.metric_name == "Length"
        assert error.aggregation == "Average"

    def test_absent_outer_sequence(self):
        """Test a missing result list fails with EmptyMetricResponse."""
        with pytest.raises(EmptyMetricResponse):
            extract_metric_value(make_spec(), MetricResponse())

    @pytest.mark.parametrize("timeseries", [None, []])
    def test_no_timeseries(self, timeseries):
        """Test a metric without time series fails with NoTimeseries."""
        response = MetricResponse(value=[Metric(name="Length", timeseries=timeseries)])

        with pytest.raises(NoTimeseries):
            extract_metric_value(make_spec(), response)

    @pytest.mark.parametrize("data", [None, []])
    def test_no_data_points(self, data):
        """Test a series without data points fails with NoDataPoints."""
        response = MetricResponse(value=[
            Metric(name="Length", timeseries=[TimeSeriesElement(data=data)]),
        ])

        with pytest.raises(NoDataPoints):
            extract_metric_value(make_spec(), response)

    def test_errors_share_base(self):
        """Test extraction errors are MetricScalerErrors with context."""
        with pytest.raises(MetricScalerError) as exc_info:
            extract_metric_value(make_spec(), MetricResponse(value=[]))

        assert exc_info.value.context["resource_name"] == "q1"


# ============================================================
# ROUNDING TESTS
# ============================================================

class TestRoundToSignal:
    """Tests for round_to_signal."""

    @pytest.mark.parametrize("value,expected", [
        (4.4, 4),
        (4.5, 5),
        (-4.5, -5),
        (-4.4, -4),
        (2.5, 3),
        (0.49999999999999994, 0),
        (12.6, 13),
        (0.0, 0),
    ])
    def test_half_away_from_zero(self, value, expected):
        """Test ties round away from zero."""
        assert round_to_signal(value) == expected

    def test_int32_bounds(self):
        """Test the extremes of the range are accepted."""
        assert round_to_signal(float(INT32_MAX)) == INT32_MAX
        assert round_to_signal(float(INT32_MIN)) == INT32_MIN

    @pytest.mark.parametrize("value", [2.0 ** 31, -(2.0 ** 31) - 0.6, 1e20])
    def test_out_of_range(self, value):
        """Test values outside int32 fail instead of wrapping."""
        with pytest.raises(SignalRangeError) as exc_info:
            round_to_signal(value, metric_name="Length")

        assert exc_info.value.value == value
        assert exc_info.value.metric_name == "Length"

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite(self, value):
        """Test NaN and infinities fail."""
        with pytest.raises(SignalRangeError):
            round_to_signal(value)


class TestSignalResult:
    """Tests for SignalResult."""

    def test_success(self):
        """Test a negative signal is a success, not a failure."""
        result = SignalResult.success(-5, metric_name="Length")

        assert result.ok
        assert result.unwrap() == -5
        assert result.to_dict()["error"] is None

    def test_failure(self):
        """Test a failure re-raises its error on unwrap."""
        error = NoDataPoints("no data", metric_name="Length")
        result = SignalResult.failure(error)

        assert not result.ok
        assert result.metric_name == "Length"
        assert result.to_dict()["error"]["error_type"] == "NoDataPoints"
        with pytest.raises(NoDataPoints):
            result.unwrap()

    def test_needs_exactly_one_outcome(self):
        """Test a result cannot be both or neither."""
        with pytest.raises(ValueError):
            SignalResult()
        with pytest.raises(ValueError):
            SignalResult(value=1, error=NoDataPoints("no data"))
