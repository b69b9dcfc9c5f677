"""
Metric Scaler - Credential providers.

A credential provider is constructed once, injected into the metrics
client and reused across polls. It owns the token lifecycle; query logic
only ever asks it for a bearer token.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Optional

import aiohttp

from monitor_scaler.clock import ClockProtocol, SystemClock
from monitor_scaler.config import ScalerMetadata
from monitor_scaler.exceptions import AuthenticationError, ConfigurationError
from monitor_scaler.logging_utils import mask_params


logger = logging.getLogger(__name__)


class CredentialProvider(ABC):
    """Source of bearer tokens for the monitoring API."""

    @abstractmethod
    async def get_token(self) -> str:
        """
        Return a valid access token.

        Raises:
            AuthenticationError: if no token can be acquired
        """
        pass

    async def close(self) -> None:
        """Close resources."""

    async def __aenter__(self) -> "CredentialProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class StaticTokenProvider(CredentialProvider):
    """Serves a pre-issued token (e.g. from a workload identity sidecar)."""

    def __init__(self, token: str) -> None:
        if not token:
            raise ConfigurationError("A static token must not be empty", config_key="token")
        self._token = token

    async def get_token(self) -> str:
        return self._token


class ClientCredentialsProvider(CredentialProvider):
    """
    OAuth2 client-credentials grant against Azure Active Directory.

    Tokens are cached and refreshed once they are within
    ``REFRESH_SKEW`` of expiry. Concurrent callers share one refresh.
    """

    DEFAULT_AUTHORITY = "https://login.microsoftonline.com"
    DEFAULT_RESOURCE = "https://management.azure.com"
    DEFAULT_TIMEOUT = 30.0
    REFRESH_SKEW = timedelta(minutes=5)

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        authority_host: str = DEFAULT_AUTHORITY,
        resource: str = DEFAULT_RESOURCE,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._tenant_id = tenant_id
        self._client_id = client_id
        self._client_secret = client_secret
        self._authority_host = authority_host.rstrip("/")
        self._resource = resource.rstrip("/")
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._clock = clock or SystemClock()

        self._token: Optional[str] = None
        self._expires_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    @property
    def token_url(self) -> str:
        return f"{self._authority_host}/{self._tenant_id}/oauth2/v2.0/token"

    def _token_is_fresh(self) -> bool:
        if self._token is None or self._expires_at is None:
            return False
        return self._clock.now() < self._expires_at - self.REFRESH_SKEW

    async def get_token(self) -> str:
        """Return the cached token, acquiring a new one when stale."""
        if self._token_is_fresh():
            return self._token

        async with self._lock:
            if not self._token_is_fresh():
                await self._acquire_token()
        return self._token

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
            self._owns_session = True
        return self._session

    async def _acquire_token(self) -> None:
        form = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "scope": f"{self._resource}/.default",
        }
        logger.debug(f"[auth] Requesting token from {self.token_url} with {mask_params(form)}")

        session = await self._get_session()
        try:
            async with session.request("POST", self.token_url, data=form) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise AuthenticationError(
                        message=f"Token request failed with HTTP {response.status}",
                        status_code=response.status,
                        response_body=body[:1000],
                        request_url=self.token_url,
                    )
                try:
                    payload = await response.json()
                except ValueError as e:
                    raise AuthenticationError(
                        message="Token response is not valid JSON",
                        request_url=self.token_url,
                        original_error=e,
                    )
        except aiohttp.ClientError as e:
            raise AuthenticationError(
                message=f"Connection error while requesting token: {e}",
                request_url=self.token_url,
                original_error=e,
            )
        except asyncio.TimeoutError as e:
            raise AuthenticationError(
                message="Timed out while requesting token",
                request_url=self.token_url,
                original_error=e,
            )

        if not isinstance(payload, dict):
            raise AuthenticationError(
                message="Token response is not a JSON object",
                request_url=self.token_url,
            )

        token = payload.get("access_token")
        if not token:
            raise AuthenticationError(
                message="Token response did not contain an access_token",
                request_url=self.token_url,
            )

        try:
            expires_in = int(payload.get("expires_in", 0))
        except (TypeError, ValueError) as e:
            raise AuthenticationError(
                message=f"Token response has an invalid expires_in: {payload.get('expires_in')!r}",
                request_url=self.token_url,
                original_error=e,
            )

        self._token = token
        self._expires_at = self._clock.now() + timedelta(seconds=expires_in)
        logger.info(f"[auth] Acquired token for client {self._client_id}, expires at {self._expires_at.isoformat()}")

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(tenant={self._tenant_id}, client={self._client_id})>"


def create_credential_provider(
    metadata: ScalerMetadata,
    session: Optional[aiohttp.ClientSession] = None,
    clock: Optional[ClockProtocol] = None,
) -> ClientCredentialsProvider:
    """
    Build a client-credentials provider for the configured cloud.

    Raises:
        ConfigurationError: if tenant, client id or password is missing
    """
    for attribute, key in (
        ("tenant_id", "tenantId"),
        ("client_id", "activeDirectoryClientId"),
        ("client_password", "activeDirectoryClientPassword"),
    ):
        if not getattr(metadata, attribute):
            raise ConfigurationError(
                message=f"{key} is required for client credentials authentication",
                config_key=key,
            )

    endpoints = metadata.endpoints()
    return ClientCredentialsProvider(
        tenant_id=metadata.tenant_id,
        client_id=metadata.client_id,
        client_secret=metadata.client_password,
        authority_host=endpoints.active_directory,
        resource=endpoints.resource_manager,
        session=session,
        clock=clock,
    )
