"""
Metric Scaler - Secure Logging Utilities.

============================================================
PURPOSE
============================================================
Credentials pass through the scaler on their way to the token
endpoint and the metrics API. Nothing that reaches a log line may
contain them raw.

MASKED:
- Client secrets and access tokens
- Authorization headers

============================================================
"""

from typing import Any, Dict


# Header names that should be masked
SENSITIVE_HEADERS = {
    "authorization",
    "x-ms-authorization-auxiliary",
    "proxy-authorization",
}

# Form/query parameter names that should be masked
SENSITIVE_PARAMS = {
    "client_secret",
    "clientpassword",
    "client_password",
    "password",
    "access_token",
    "refresh_token",
    "token",
    "assertion",
}


def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to show at start

    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Mask sensitive headers."""
    if not headers:
        return {}

    masked = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            masked[key] = mask_value(str(value))
        else:
            masked[key] = value
    return masked


def mask_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive parameters, recursing into nested dictionaries."""
    if not params:
        return {}

    masked = {}
    for key, value in params.items():
        if key.lower() in SENSITIVE_PARAMS:
            masked[key] = mask_value(str(value)) if value else value
        elif isinstance(value, dict):
            masked[key] = mask_params(value)
        else:
            masked[key] = value
    return masked
