"""
Business logic constants for the Toneshift entitlement service.

These values are stable across environments (dev/staging/prod) and do not
need env-var overrides. For operational parameters that vary per environment
(tone tolerances, rate limits), see config.py.
"""

from toneshift.models.subscription import (
    UNLIMITED,
    ProcessingPriority,
    SubscriptionLimits,
    SubscriptionTier,
    limited,
)
from toneshift.models.tone import ToneDimension

# --- Tone controls unlocked per tier ---
PRO_TONE_CONTROLS: frozenset[ToneDimension] = frozenset(
    {
        ToneDimension.FORMALITY,
        ToneDimension.CASUALNESS,
        ToneDimension.ENTHUSIASM,
        ToneDimension.TECHNICALITY,
        ToneDimension.CREATIVITY,
        ToneDimension.EMPATHY,
    }
)
ALL_TONE_CONTROLS: frozenset[ToneDimension] = frozenset(ToneDimension)

# --- Limits for a missing user (deny posture) ---
NO_ACCESS_LIMITS = SubscriptionLimits()

# --- Tier -> limits table ---
# Quotas: writing samples count, daily/monthly tokens, monthly exports
TIER_LIMITS: dict[SubscriptionTier, SubscriptionLimits] = {
    SubscriptionTier.FREE: SubscriptionLimits(
        processing_priority=ProcessingPriority.STANDARD,
        max_writing_samples=limited(3),
        daily_limit=limited(100_000),
        monthly_limit=limited(1_000_000),
        export_limit=limited(5),
    ),
    SubscriptionTier.PRO: SubscriptionLimits(
        can_modify_tone=True,
        can_use_presets=True,
        has_advanced_analysis=True,
        has_priority_processing=True,
        processing_priority=ProcessingPriority.PRIORITY,
        max_writing_samples=limited(25),
        daily_limit=UNLIMITED,
        monthly_limit=limited(5_000_000),
        export_limit=limited(200),
        available_tone_controls=PRO_TONE_CONTROLS,
    ),
    SubscriptionTier.PREMIUM: SubscriptionLimits(
        can_modify_tone=True,
        can_use_presets=True,
        can_use_advanced_presets=True,
        has_advanced_analysis=True,
        has_extended_analysis=True,
        has_priority_processing=True,
        processing_priority=ProcessingPriority.PREMIUM,
        max_writing_samples=limited(100),
        daily_limit=UNLIMITED,
        monthly_limit=limited(10_000_000),
        export_limit=UNLIMITED,
        available_tone_controls=ALL_TONE_CONTROLS,
    ),
}

_missing_tiers = set(SubscriptionTier) - TIER_LIMITS.keys()
if _missing_tiers:
    raise RuntimeError(f"TIER_LIMITS has no entry for: {sorted(t.value for t in _missing_tiers)}")

# --- Upgrade labels used in denial messages ---
# Label names every tier at or above the key tier
UPGRADE_LABELS: dict[SubscriptionTier, str] = {
    SubscriptionTier.FREE: "Free",
    SubscriptionTier.PRO: "Pro or Premium",
    SubscriptionTier.PREMIUM: "Premium",
}

# --- Access denial message openers, "<feature> require(s)" ---
ACTION_DENIAL_PREFIXES: dict[str, str] = {
    "modify_tone": "Tone customization requires",
    "use_presets": "Tone presets require",
    "use_advanced_presets": "Advanced tone presets require",
    "advanced_analysis": "Advanced style analysis requires",
    "extended_analysis": "Extended style analysis requires",
    "priority_processing": "Priority processing requires",
}

# --- Style presets ---
BASIC_PRESETS: frozenset[str] = frozenset({"Professional", "Friendly", "Academic", "Casual"})
ADVANCED_PRESETS: frozenset[str] = frozenset({"Executive", "Creative", "Technical", "Persuasive"})

# --- Processing queue numbers (1 = scheduled first) ---
PRIORITY_QUEUE_NUMBERS: dict[ProcessingPriority, int] = {
    ProcessingPriority.PREMIUM: 1,
    ProcessingPriority.PRIORITY: 2,
    ProcessingPriority.STANDARD: 3,
}

# --- Quota resets ---
# Daily token counters roll over at midnight UTC
DAILY_RESET_HOUR_UTC = 0

# --- API metadata ---
API_TITLE = "Toneshift Entitlements API"
API_VERSION = "0.1.0"
