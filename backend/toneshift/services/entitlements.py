"""
Tier entitlement resolution and access checks.

All functions here are pure: they read the user's tier and nothing else,
so they are safe to call from any request handler without locking.
"""

from toneshift.constants import (
    ACTION_DENIAL_PREFIXES,
    ADVANCED_PRESETS,
    BASIC_PRESETS,
    NO_ACCESS_LIMITS,
    PRIORITY_QUEUE_NUMBERS,
    TIER_LIMITS,
    UPGRADE_LABELS,
)
from toneshift.errors import AccessDeniedError, UnknownActionError, UnknownPresetError
from toneshift.models.subscription import (
    AccessAction,
    AnalysisLevel,
    SubscriptionLimits,
    SubscriptionTier,
)
from toneshift.models.user import User


def resolve_limits(user: User | None) -> SubscriptionLimits:
    """Limits granted by the user's tier. A missing user gets no access at all."""
    if user is None:
        return NO_ACCESS_LIMITS
    return TIER_LIMITS[user.subscription_tier]


def minimum_tier_for(action: AccessAction) -> SubscriptionTier | None:
    """Lowest tier whose limits grant `action`, or None if no tier does."""
    for tier in SubscriptionTier:
        if TIER_LIMITS[tier].allows_action(action):
            return tier
    return None


def upgrade_label(tier: SubscriptionTier | None) -> str:
    if tier is None:
        return UPGRADE_LABELS[SubscriptionTier.PREMIUM]
    return UPGRADE_LABELS[tier]


def _parse_action(action: AccessAction | str) -> AccessAction:
    if isinstance(action, AccessAction):
        return action
    try:
        return AccessAction(action)
    except ValueError:
        raise UnknownActionError(str(action)) from None


def validate_access(user: User | None, action: AccessAction | str) -> None:
    """
    Fail closed unless the user's tier grants `action`.

    Raises:
        UnknownActionError: `action` is not a known action tag.
        AccessDeniedError: the tier does not grant the action.
    """
    parsed = _parse_action(action)
    limits = resolve_limits(user)
    if limits.allows_action(parsed):
        return

    label = upgrade_label(minimum_tier_for(parsed))
    message = f"{ACTION_DENIAL_PREFIXES[parsed.value]} {label} subscription"
    if parsed == AccessAction.MODIFY_TONE:
        message += ". Free users have view-only access to auto-detected tone settings."
    raise AccessDeniedError(message, action=parsed.value, required_tier=label)


def validate_preset_access(user: User | None, preset_name: str) -> None:
    """Basic presets need preset access; advanced presets need the advanced flag."""
    if preset_name in BASIC_PRESETS:
        validate_access(user, AccessAction.USE_PRESETS)
    elif preset_name in ADVANCED_PRESETS:
        validate_access(user, AccessAction.USE_ADVANCED_PRESETS)
    else:
        raise UnknownPresetError(preset_name)


def get_analysis_level(user: User | None) -> AnalysisLevel:
    limits = resolve_limits(user)
    if limits.has_extended_analysis:
        return AnalysisLevel.EXTENDED
    if limits.has_advanced_analysis:
        return AnalysisLevel.ADVANCED
    return AnalysisLevel.BASIC


def get_processing_priority(user: User | None) -> int:
    """
    Queue number for the user's rewrite jobs.

    Numbering is inverted: 1 is scheduled first (premium), 3 last (standard).
    Sort ascending when ordering a queue by this value.
    """
    return PRIORITY_QUEUE_NUMBERS[resolve_limits(user).processing_priority]
