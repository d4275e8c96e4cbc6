"""Subscription tier and entitlement models."""

from enum import Enum
from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
    field_serializer,
)
from pydantic.alias_generators import to_camel

from toneshift.models.tone import ToneDimension

# Wire value used by the frontend and the users table for "no cap"
UNLIMITED_WIRE_VALUE = -1


class SubscriptionTier(str, Enum):
    """Supported subscription tiers, lowest first."""

    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"

    @property
    def rank(self) -> int:
        return list(SubscriptionTier).index(self)


class ProcessingPriority(str, Enum):
    """Queue class for rewrite jobs."""

    STANDARD = "standard"
    PRIORITY = "priority"
    PREMIUM = "premium"

    @property
    def rank(self) -> int:
        return list(ProcessingPriority).index(self)


class AnalysisLevel(str, Enum):
    """How much of the style analysis runs for a user."""

    BASIC = "basic"
    ADVANCED = "advanced"
    EXTENDED = "extended"


class AccessAction(str, Enum):
    """Closed set of gated actions."""

    MODIFY_TONE = "modify_tone"
    USE_PRESETS = "use_presets"
    USE_ADVANCED_PRESETS = "use_advanced_presets"
    ADVANCED_ANALYSIS = "advanced_analysis"
    EXTENDED_ANALYSIS = "extended_analysis"
    PRIORITY_PROCESSING = "priority_processing"


# ---------------------------------------------------------------------------
# Quota limits
# ---------------------------------------------------------------------------


class Limited(BaseModel):
    """A finite quota."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["limited"] = "limited"
    amount: int = Field(ge=0)

    def allows(self, used: int) -> bool:
        return used < self.amount

    def remaining(self, used: int) -> int | None:
        return max(0, self.amount - used)

    def to_wire(self) -> int:
        return self.amount

    def __ge__(self, other: "QuotaLimit") -> bool:
        if isinstance(other, Unlimited):
            return False
        return self.amount >= other.amount


class Unlimited(BaseModel):
    """No cap on the quota."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unlimited"] = "unlimited"

    def allows(self, used: int) -> bool:
        return True

    def remaining(self, used: int) -> int | None:
        return None

    def to_wire(self) -> int:
        return UNLIMITED_WIRE_VALUE

    def __ge__(self, other: "QuotaLimit") -> bool:
        return True


def quota_from_wire(value: object) -> object:
    """Accept the legacy integer form (-1 for unlimited) alongside tagged dicts."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == UNLIMITED_WIRE_VALUE:
            return {"kind": "unlimited"}
        return {"kind": "limited", "amount": value}
    return value


QuotaLimit = Annotated[
    Limited | Unlimited,
    BeforeValidator(quota_from_wire),
    PlainSerializer(lambda limit: limit.to_wire(), return_type=int, when_used="json"),
]

UNLIMITED = Unlimited()


def limited(amount: int) -> Limited:
    return Limited(amount=amount)


# ---------------------------------------------------------------------------
# Subscription limits
# ---------------------------------------------------------------------------


class SubscriptionLimits(BaseModel):
    """Capabilities and quotas granted by a tier. Derived on demand, never persisted."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    can_modify_tone: bool = False
    can_use_presets: bool = False
    can_use_advanced_presets: bool = False
    has_advanced_analysis: bool = False
    has_extended_analysis: bool = False
    has_priority_processing: bool = False
    processing_priority: ProcessingPriority = ProcessingPriority.STANDARD
    max_writing_samples: QuotaLimit = Limited(amount=0)
    daily_limit: QuotaLimit = Limited(amount=0)
    monthly_limit: QuotaLimit = Limited(amount=0)
    export_limit: QuotaLimit = Limited(amount=0)
    available_tone_controls: frozenset[ToneDimension] = frozenset()

    @computed_field(alias="maxToneControls")
    @property
    def max_tone_controls(self) -> int:
        return len(self.available_tone_controls)

    @field_serializer("available_tone_controls", when_used="json")
    def _serialize_tone_controls(self, controls: frozenset[ToneDimension]) -> list[str]:
        return [dimension.value for dimension in ToneDimension if dimension in controls]

    def allows_action(self, action: AccessAction) -> bool:
        return {
            AccessAction.MODIFY_TONE: self.can_modify_tone,
            AccessAction.USE_PRESETS: self.can_use_presets,
            AccessAction.USE_ADVANCED_PRESETS: self.can_use_advanced_presets,
            AccessAction.ADVANCED_ANALYSIS: self.has_advanced_analysis,
            AccessAction.EXTENDED_ANALYSIS: self.has_extended_analysis,
            AccessAction.PRIORITY_PROCESSING: self.has_priority_processing,
        }[action]

    def dominates(self, other: "SubscriptionLimits") -> bool:
        """True if these limits grant at least everything `other` grants."""
        flags_ok = all(self.allows_action(a) or not other.allows_action(a) for a in AccessAction)
        quotas_ok = all(
            getattr(self, name) >= getattr(other, name)
            for name in ("max_writing_samples", "daily_limit", "monthly_limit", "export_limit")
        )
        return (
            flags_ok
            and quotas_ok
            and self.processing_priority.rank >= other.processing_priority.rank
            and self.available_tone_controls >= other.available_tone_controls
        )
