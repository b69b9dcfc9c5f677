"""
Metric Scaler - Signal pipeline.

One poll is a single sequential chain:

    ScalerMetadata -> build -> validate -> query -> extract -> round

There is no shared mutable state between polls beyond the injected client
(and its credential provider), so concurrent polls for different
resources are independent.
"""

import logging
from typing import Optional

from monitor_scaler.clock import ClockProtocol, SystemClock
from monitor_scaler.client import MetricQueryClient
from monitor_scaler.config import ScalerMetadata
from monitor_scaler.exceptions import MetricScalerError, QueryError
from monitor_scaler.extraction import extract_metric_value
from monitor_scaler.query import build_query_spec, validate_query_spec
from monitor_scaler.rounding import SignalResult, round_to_signal


logger = logging.getLogger(__name__)


class AzureMonitorScaler:
    """
    Computes the scaling signal of an Azure Monitor metric.

    Usage:
        async with AzureMonitorMetricsClient(credential) as client:
            scaler = AzureMonitorScaler(client)
            result = await scaler.get_signal(metadata)
            if result.ok:
                print(result.value)
    """

    def __init__(
        self,
        client: MetricQueryClient,
        clock: Optional[ClockProtocol] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._clock = clock or SystemClock()
        self._log = log or logger

    async def get_metric_value(self, metadata: ScalerMetadata) -> int:
        """
        Compute the signal, raising on failure.

        Raises:
            MetricScalerError: any failure of the poll
        """
        spec = build_query_spec(metadata, clock=self._clock)
        validate_query_spec(spec)

        resource_uri = spec.metric_resource_uri()
        self._log.debug(f"[scaler] resource uri: {resource_uri}")

        try:
            response = await self._client.query(
                resource_uri,
                spec.timespan,
                spec.metric_name,
                spec.aggregation,
                spec.filter,
            )
        except QueryError as e:
            e.context = {**spec.describe(), **e.context}
            self._log.error(f"[scaler] error getting azure monitor metric {spec.metric_name}: {e}")
            raise

        value = extract_metric_value(spec, response, log=self._log)
        return round_to_signal(value, metric_name=spec.metric_name)

    async def get_signal(self, metadata: ScalerMetadata) -> SignalResult:
        """
        Compute the signal as a tagged outcome.

        Never raises for pipeline failures; the caller treats a failed
        result as "do not scale on this metric this cycle".
        """
        try:
            signal = await self.get_metric_value(metadata)
        except MetricScalerError as e:
            self._log.warning(f"[scaler] No signal for metric '{metadata.name}': {e}")
            return SignalResult.failure(e, metric_name=metadata.name or None)
        except Exception as e:
            error = MetricScalerError(
                message=f"Unexpected error: {e}",
                metric_name=metadata.name or None,
                original_error=e,
            )
            self._log.error(f"[scaler] {error}", exc_info=True)
            return SignalResult.failure(error)

        self._log.info(f"[scaler] Metric '{metadata.name}' signal: {signal}")
        return SignalResult.success(signal, metric_name=metadata.name)
