"""
Metric Scaler - Scaling signal.

Rounds the extracted metric value to a signed 32-bit integer and carries
the outcome of a poll as an explicit success/failure result, so a
legitimately negative reading is never mistaken for an error.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from monitor_scaler.exceptions import MetricScalerError, SignalRangeError


INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


def round_to_signal(value: float, metric_name: Optional[str] = None) -> int:
    """
    Round half away from zero (4.5 -> 5, -4.5 -> -5) into the int32 range.

    Raises:
        SignalRangeError: value is NaN, infinite, or rounds outside int32
    """
    if not math.isfinite(value):
        raise SignalRangeError(
            message=f"Metric value {value} is not a finite number",
            value=value,
            metric_name=metric_name,
        )

    # Decimal(float) is exact, so ties are detected without float error
    rounded = int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))

    if not INT32_MIN <= rounded <= INT32_MAX:
        raise SignalRangeError(
            message=f"Metric value {value} is outside the 32-bit signal range [{INT32_MIN}, {INT32_MAX}]",
            value=value,
            metric_name=metric_name,
        )
    return rounded


@dataclass(frozen=True)
class SignalResult:
    """Outcome of one poll: a scaling signal or the error that prevented it."""
    value: Optional[int] = None
    error: Optional[MetricScalerError] = None
    metric_name: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("SignalResult needs exactly one of value or error")

    @classmethod
    def success(cls, value: int, metric_name: Optional[str] = None) -> "SignalResult":
        return cls(value=value, metric_name=metric_name)

    @classmethod
    def failure(cls, error: MetricScalerError, metric_name: Optional[str] = None) -> "SignalResult":
        return cls(error=error, metric_name=metric_name or error.metric_name)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> int:
        """Return the signal, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "ok": self.ok,
            "metric_name": self.metric_name,
            "value": self.value,
            "error": self.error.to_dict() if self.error else None,
        }
