"""
Metric Scaler - Metrics API client.

MetricQueryClient is the boundary to the monitoring service. The Azure
implementation issues exactly one request per query; there is no retry
and no result caching. A failed call surfaces immediately and the caller
tries again on its own polling cadence.

Timeouts: the session carries a total timeout, and callers may impose a
tighter one with ``asyncio.wait_for``.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from monitor_scaler.auth import CredentialProvider
from monitor_scaler.exceptions import QueryError
from monitor_scaler.logging_utils import mask_headers
from monitor_scaler.models import MetricResponse


logger = logging.getLogger(__name__)


class MetricQueryClient(ABC):
    """Issues a metric query against the monitoring API."""

    @abstractmethod
    async def query(
        self,
        resource_uri: str,
        timespan: str,
        metric_name: str,
        aggregation: str,
        filter: str = "",
    ) -> MetricResponse:
        """
        Query one metric of one resource.

        Args:
            resource_uri: ``/subscriptions/.../providers/<ns>/<type>/<name>``
            timespan: ``<start>/<end>`` in RFC 3339
            metric_name: Metric to read
            aggregation: Aggregation mode to request
            filter: Optional OData filter, omitted when empty

        Raises:
            QueryError: on transport, authorization or API failure
        """
        pass

    async def close(self) -> None:
        """Close resources."""

    async def __aenter__(self) -> "MetricQueryClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()


class AzureMonitorMetricsClient(MetricQueryClient):
    """
    Azure Monitor metrics REST API client.

    Endpoint used:
    - GET {resource_uri}/providers/microsoft.insights/metrics

    Reuses one aiohttp session across queries; closes it only if it was
    created here.
    """

    BASE_URL = "https://management.azure.com"
    API_VERSION = "2018-01-01"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        credential: CredentialProvider,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._credential = credential
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def name(self) -> str:
        return "azure_monitor"

    def metrics_url(self, resource_uri: str) -> str:
        return f"{self._base_url}{resource_uri}/providers/microsoft.insights/metrics"

    def build_params(
        self,
        timespan: str,
        metric_name: str,
        aggregation: str,
        filter: str = "",
    ) -> dict[str, str]:
        """Query string of a metrics request."""
        params = {
            "api-version": self.API_VERSION,
            "timespan": timespan,
            "metricnames": metric_name,
            "aggregation": aggregation,
        }
        if filter:
            params["$filter"] = filter
        return params

    async def query(
        self,
        resource_uri: str,
        timespan: str,
        metric_name: str,
        aggregation: str,
        filter: str = "",
    ) -> MetricResponse:
        """Query Azure Monitor and parse the response."""
        url = self.metrics_url(resource_uri)
        params = self.build_params(timespan, metric_name, aggregation, filter)

        try:
            token = await self._credential.get_token()
        except QueryError as e:
            e.metric_name = e.metric_name or metric_name
            raise

        headers = {"Authorization": f"Bearer {token}"}
        data = await self._make_request("GET", url, metric_name, params=params, headers=headers)
        try:
            return MetricResponse.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise QueryError(
                message=f"Error getting azure monitor metric {metric_name}: malformed response body: {e}",
                metric_name=metric_name,
                request_url=url,
                original_error=e,
            )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": "monitor-scaler/1.0",
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        metric_name: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """Make HTTP request with error handling."""
        session = await self._get_session()
        logger.debug(f"[{self.name}] {method} {url} params={params} headers={mask_headers(headers or {})}")

        start_time = time.time()
        try:
            async with session.request(
                method,
                url,
                params=params,
                headers=headers,
            ) as response:
                latency_ms = (time.time() - start_time) * 1000

                if response.status >= 400:
                    body = await response.text()
                    context: dict[str, Any] = {"params": params}
                    if response.status == 429:
                        context["retry_after"] = response.headers.get("Retry-After")
                    raise QueryError(
                        message=f"Error getting azure monitor metric {metric_name}: HTTP {response.status}",
                        metric_name=metric_name,
                        status_code=response.status,
                        response_body=body[:1000],
                        request_url=url,
                        context=context,
                    )

                try:
                    data = await response.json()
                except ValueError as e:
                    raise QueryError(
                        message=f"Error getting azure monitor metric {metric_name}: response is not valid JSON",
                        metric_name=metric_name,
                        status_code=response.status,
                        request_url=url,
                        original_error=e,
                    )
                logger.debug(f"[{self.name}] Request completed in {latency_ms:.1f}ms")

        except aiohttp.ClientError as e:
            raise QueryError(
                message=f"Error getting azure monitor metric {metric_name}: connection error: {e}",
                metric_name=metric_name,
                request_url=url,
                original_error=e,
            )
        except asyncio.TimeoutError as e:
            raise QueryError(
                message=f"Error getting azure monitor metric {metric_name}: request timed out",
                metric_name=metric_name,
                request_url=url,
                original_error=e,
            )

        if not isinstance(data, dict):
            raise QueryError(
                message=f"Error getting azure monitor metric {metric_name}: unexpected response body",
                metric_name=metric_name,
                request_url=url,
                context={"body_type": type(data).__name__},
            )
        return data

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(base_url={self._base_url})>"
