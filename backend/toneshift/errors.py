"""
Entitlement error taxonomy.

Every error carries a stable `code` (rendered in API responses) and a
`severity`. Access, tone and quota errors are user-facing and come with an
upgrade hint; unknown actions/presets are caller bugs.
"""

from enum import Enum
from typing import Any, Literal

Severity = Literal["low", "medium", "high", "critical"]


class QuotaKind(str, Enum):
    """Which counter ran out."""

    TOKENS = "tokens"
    DAILY = "daily"
    MONTHLY = "monthly"
    EXPORTS = "exports"
    WRITING_SAMPLES = "writing_samples"


class EntitlementError(Exception):
    """Base class for all entitlement failures."""

    code = "entitlement_error"
    severity: Severity = "medium"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def context(self) -> dict[str, Any]:
        """Extra fields rendered next to the message in API responses."""
        return {}


class AccessDeniedError(EntitlementError):
    code = "access_denied"
    severity = "low"

    def __init__(self, message: str, *, action: str, required_tier: str):
        super().__init__(message)
        self.action = action
        self.required_tier = required_tier

    def context(self) -> dict[str, Any]:
        return {"action": self.action, "required_tier": self.required_tier}


class ToneRangeError(EntitlementError):
    code = "tone_range_violation"
    severity = "low"

    def __init__(self, message: str, *, dimensions: list[str], required_tier: str):
        super().__init__(message)
        self.dimensions = dimensions
        self.required_tier = required_tier

    def context(self) -> dict[str, Any]:
        return {"dimensions": self.dimensions, "required_tier": self.required_tier}


class QuotaExceededError(EntitlementError):
    code = "quota_exceeded"
    severity = "low"

    def __init__(
        self,
        message: str,
        *,
        kind: QuotaKind,
        limit: int | None = None,
        used: int | None = None,
        hours_until_reset: int | None = None,
        reset_day_of_month: int | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.limit = limit
        self.used = used
        self.hours_until_reset = hours_until_reset
        self.reset_day_of_month = reset_day_of_month

    def context(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.limit is not None:
            data["limit"] = self.limit
        if self.used is not None:
            data["used"] = self.used
        if self.hours_until_reset is not None:
            data["hours_until_reset"] = self.hours_until_reset
        if self.reset_day_of_month is not None:
            data["reset_day_of_month"] = self.reset_day_of_month
        return data


class RateLimitExceededError(EntitlementError):
    code = "rate_limited"
    severity = "medium"

    def __init__(self, message: str, *, retry_after_seconds: int):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds

    def context(self) -> dict[str, Any]:
        return {"retry_after_seconds": self.retry_after_seconds}


class UnknownActionError(EntitlementError):
    code = "unknown_action"
    severity = "high"

    def __init__(self, action: str):
        super().__init__(f"Unknown action for subscription validation: {action!r}")
        self.action = action


class UnknownPresetError(EntitlementError):
    code = "unknown_preset"
    severity = "high"

    def __init__(self, preset_name: str):
        super().__init__(f"Unknown tone preset: {preset_name!r}")
        self.preset_name = preset_name
