"""
Metric Scaler - Configuration.

============================================================
RESPONSIBILITY
============================================================
Loads the fields of a scaler trigger that the signal pipeline consumes.

- KEDA-style trigger metadata (``from_dict``)
- Environment variables / ``.env`` files (``from_env``)
- Cloud endpoint selection

Required-field checks on metric name, resource group and subscription
happen in the query validator, not here, so that a half-filled
configuration still produces a precise ValidationError at poll time.

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from monitor_scaler.exceptions import ConfigurationError
from monitor_scaler.logging_utils import mask_value


logger = logging.getLogger(__name__)


# ============================================================
# CLOUD ENDPOINTS
# ============================================================

@dataclass(frozen=True)
class CloudEndpoints:
    """Endpoints of one Azure cloud."""
    resource_manager: str
    active_directory: str


DEFAULT_CLOUD = "AzurePublicCloud"

CLOUD_ENDPOINTS: dict[str, CloudEndpoints] = {
    "AzurePublicCloud": CloudEndpoints(
        resource_manager="https://management.azure.com",
        active_directory="https://login.microsoftonline.com",
    ),
    "AzureChinaCloud": CloudEndpoints(
        resource_manager="https://management.chinacloudapi.cn",
        active_directory="https://login.chinacloudapi.cn",
    ),
    "AzureUSGovernmentCloud": CloudEndpoints(
        resource_manager="https://management.usgovcloudapi.net",
        active_directory="https://login.microsoftonline.us",
    ),
}


def get_cloud_endpoints(cloud: Optional[str]) -> CloudEndpoints:
    """Look up a cloud by name, case-insensitively."""
    name = cloud or DEFAULT_CLOUD
    for known, endpoints in CLOUD_ENDPOINTS.items():
        if known.lower() == name.lower():
            return endpoints
    raise ConfigurationError(
        message=f"Unknown cloud '{name}', expected one of {sorted(CLOUD_ENDPOINTS)}",
        config_key="cloud",
    )


# ============================================================
# TRIGGER METADATA
# ============================================================

# attribute -> trigger metadata key
METADATA_KEYS = {
    "name": "metricName",
    "subscription_id": "subscriptionId",
    "resource_group_name": "resourceGroupName",
    "resource_uri": "resourceURI",
    "aggregation_type": "metricAggregationType",
    "aggregation_interval": "metricAggregationInterval",
    "filter": "metricFilter",
    "tenant_id": "tenantId",
    "client_id": "activeDirectoryClientId",
    "client_password": "activeDirectoryClientPassword",
    "cloud": "cloud",
}

# attribute -> environment variable suffix
ENV_KEYS = {
    "name": "METRIC_NAME",
    "subscription_id": "SUBSCRIPTION_ID",
    "resource_group_name": "RESOURCE_GROUP",
    "resource_uri": "RESOURCE_URI",
    "aggregation_type": "AGGREGATION_TYPE",
    "aggregation_interval": "AGGREGATION_INTERVAL",
    "filter": "FILTER",
    "tenant_id": "TENANT_ID",
    "client_id": "CLIENT_ID",
    "client_password": "CLIENT_PASSWORD",
    "cloud": "CLOUD",
}

ENV_PREFIX = "AZURE_MONITOR_"


@dataclass
class ScalerMetadata:
    """
    Configuration of one Azure Monitor scaler trigger.

    Credential fields are handed to the credential provider and never
    inspected by the query pipeline.
    """
    name: str = ""
    subscription_id: str = ""
    resource_group_name: str = ""
    resource_uri: str = ""
    aggregation_type: str = ""
    aggregation_interval: str = ""
    filter: str = ""
    tenant_id: str = ""
    client_id: str = ""
    client_password: str = field(default="", repr=False)
    cloud: str = DEFAULT_CLOUD

    @classmethod
    def from_dict(
        cls,
        metadata: Mapping[str, str],
        resolved_env: Optional[Mapping[str, str]] = None,
    ) -> "ScalerMetadata":
        """
        Create from trigger metadata.

        Any key may instead be given as ``<key>FromEnv`` naming a variable
        in ``resolved_env`` (the workload's environment).

        Raises:
            ConfigurationError: if a ``FromEnv`` reference cannot be resolved
        """
        resolved_env = resolved_env if resolved_env is not None else {}
        values: dict[str, str] = {}

        for attribute, key in METADATA_KEYS.items():
            value = _resolve_key(metadata, resolved_env, key)
            if value is not None:
                values[attribute] = value.strip()

        if not values.get("cloud"):
            values.pop("cloud", None)

        return cls(**values)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = ENV_PREFIX,
    ) -> "ScalerMetadata":
        """
        Create from ``<prefix><FIELD>`` environment variables.

        With no explicit mapping, a ``.env`` file is loaded first.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        values = {
            attribute: environ[f"{prefix}{suffix}"].strip()
            for attribute, suffix in ENV_KEYS.items()
            if environ.get(f"{prefix}{suffix}")
        }
        return cls(**values)

    def endpoints(self) -> CloudEndpoints:
        """Endpoints of the configured cloud."""
        return get_cloud_endpoints(self.cloud)

    def has_client_credentials(self) -> bool:
        """Check if a client-credentials grant can be attempted."""
        return bool(self.tenant_id and self.client_id and self.client_password)

    def merge(self, **overrides: Any) -> "ScalerMetadata":
        """Copy with every non-empty override applied."""
        values = {k: v for k, v in overrides.items() if v not in (None, "")}
        unknown = set(values) - set(METADATA_KEYS)
        if unknown:
            raise ConfigurationError(
                message=f"Unknown configuration fields: {sorted(unknown)}",
                config_key=sorted(unknown)[0],
            )
        current = {attribute: getattr(self, attribute) for attribute in METADATA_KEYS}
        current.update(values)
        return ScalerMetadata(**current)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with the client password masked."""
        data = {attribute: getattr(self, attribute) for attribute in METADATA_KEYS}
        if self.client_password:
            data["client_password"] = mask_value(self.client_password)
        return data


def _resolve_key(
    metadata: Mapping[str, str],
    resolved_env: Mapping[str, str],
    key: str,
) -> Optional[str]:
    """Value of ``key``, falling back to its ``FromEnv`` indirection."""
    value = metadata.get(key)
    if value:
        return value

    env_name = metadata.get(f"{key}FromEnv")
    if not env_name:
        return value

    if env_name not in resolved_env:
        raise ConfigurationError(
            message=f"Environment variable '{env_name}' referenced by {key}FromEnv is not set",
            config_key=f"{key}FromEnv",
        )
    logger.debug(f"[config] Resolved {key} from environment variable {env_name}")
    return resolved_env[env_name]
