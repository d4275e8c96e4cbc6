"""
Tone settings filtering and validation.

The rewrite pipeline calls `prepare_tone_settings`: dimensions the tier
cannot control are reset to neutral first, then the result is validated.
Free-tier settings are inferred from writing samples rather than set by
hand, so they are checked against a wider tolerance band.
"""

from toneshift.config import ToneValidationConfig, get_settings
from toneshift.constants import TIER_LIMITS
from toneshift.errors import ToneRangeError
from toneshift.models.subscription import AccessAction, SubscriptionTier
from toneshift.models.tone import NEUTRAL_TONE_VALUE, ToneDimension, ToneSettings
from toneshift.models.user import User
from toneshift.services.entitlements import minimum_tier_for, resolve_limits, upgrade_label


def _minimum_tier_with_controls(dimensions: list[ToneDimension]) -> SubscriptionTier | None:
    for tier in SubscriptionTier:
        if set(dimensions) <= TIER_LIMITS[tier].available_tone_controls:
            return tier
    return None


def filter_tone_settings(user: User | None, requested: ToneSettings) -> ToneSettings:
    """
    Copy of `requested` with every dimension the tier cannot control set to neutral.

    Tiers without tone modification pass all values through: their settings
    are analysis output and are checked by the free-tier tolerance instead.
    """
    limits = resolve_limits(user)
    if not limits.can_modify_tone:
        return requested

    updates = {
        dimension.value: NEUTRAL_TONE_VALUE
        for dimension in ToneDimension
        if dimension not in limits.available_tone_controls
    }
    return requested.model_copy(update=updates)


def validate_tone_settings(
    user: User | None,
    settings: ToneSettings,
    config: ToneValidationConfig | None = None,
) -> None:
    """
    Reject settings that move a dimension the tier cannot control.

    Raises:
        ToneRangeError: naming the offending dimensions and the tier that unlocks them.
    """
    config = config or get_settings().tone_validation
    limits = resolve_limits(user)

    if not limits.can_modify_tone:
        modified = [
            dimension
            for dimension in ToneDimension
            if settings.deviation(dimension) > config.free_tier_tolerance
        ]
        if modified:
            label = upgrade_label(minimum_tier_for(AccessAction.MODIFY_TONE))
            raise ToneRangeError(
                f"Custom tone settings require {label} subscription. "
                "Free users have view-only access.",
                dimensions=[d.value for d in modified],
                required_tier=label,
            )
        return

    violations = [
        dimension
        for dimension in ToneDimension
        if dimension not in limits.available_tone_controls
        and settings.deviation(dimension) > config.gated_dimension_tolerance
    ]
    if violations:
        label = upgrade_label(_minimum_tier_with_controls(violations))
        names = [d.value for d in violations]
        raise ToneRangeError(
            f"The following tone controls require {label} subscription: {', '.join(names)}",
            dimensions=names,
            required_tier=label,
        )


def prepare_tone_settings(
    user: User | None,
    requested: ToneSettings,
    config: ToneValidationConfig | None = None,
) -> ToneSettings:
    """Filter then validate, returning the settings the rewrite should use."""
    filtered = filter_tone_settings(user, requested)
    validate_tone_settings(user, filtered, config)
    return filtered
