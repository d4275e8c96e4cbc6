"""Unit tests for tier entitlement resolution and access checks."""

import pytest

from conftest import make_user
from toneshift.constants import TIER_LIMITS
from toneshift.errors import AccessDeniedError, UnknownActionError, UnknownPresetError
from toneshift.models.subscription import (
    AccessAction,
    AnalysisLevel,
    Limited,
    ProcessingPriority,
    SubscriptionTier,
    Unlimited,
)
from toneshift.models.tone import ToneDimension
from toneshift.services.entitlements import (
    get_analysis_level,
    get_processing_priority,
    minimum_tier_for,
    resolve_limits,
    validate_access,
    validate_preset_access,
)


class TestResolveLimits:
    def test_free_tier(self, free_user):
        limits = resolve_limits(free_user)

        assert limits.can_modify_tone is False
        assert limits.can_use_presets is False
        assert limits.processing_priority == ProcessingPriority.STANDARD
        assert limits.max_writing_samples == Limited(amount=3)
        assert limits.daily_limit == Limited(amount=100_000)
        assert limits.monthly_limit == Limited(amount=1_000_000)
        assert limits.export_limit == Limited(amount=5)
        assert limits.available_tone_controls == frozenset()
        assert limits.max_tone_controls == 0

    def test_pro_tier(self, pro_user):
        limits = resolve_limits(pro_user)

        assert limits.can_modify_tone is True
        assert limits.can_use_presets is True
        assert limits.can_use_advanced_presets is False
        assert limits.has_advanced_analysis is True
        assert limits.has_extended_analysis is False
        assert limits.has_priority_processing is True
        assert limits.processing_priority == ProcessingPriority.PRIORITY
        assert limits.max_writing_samples == Limited(amount=25)
        assert isinstance(limits.daily_limit, Unlimited)
        assert limits.monthly_limit == Limited(amount=5_000_000)
        assert limits.export_limit == Limited(amount=200)
        assert limits.available_tone_controls == {
            ToneDimension.FORMALITY,
            ToneDimension.CASUALNESS,
            ToneDimension.ENTHUSIASM,
            ToneDimension.TECHNICALITY,
            ToneDimension.CREATIVITY,
            ToneDimension.EMPATHY,
        }
        assert limits.max_tone_controls == 6

    def test_premium_tier(self, premium_user):
        limits = resolve_limits(premium_user)

        assert all(limits.allows_action(action) for action in AccessAction)
        assert limits.processing_priority == ProcessingPriority.PREMIUM
        assert limits.max_writing_samples == Limited(amount=100)
        assert isinstance(limits.daily_limit, Unlimited)
        assert limits.monthly_limit == Limited(amount=10_000_000)
        assert isinstance(limits.export_limit, Unlimited)
        assert limits.available_tone_controls == frozenset(ToneDimension)
        assert limits.max_tone_controls == 10

    def test_missing_user_gets_no_access(self):
        limits = resolve_limits(None)

        assert not any(limits.allows_action(action) for action in AccessAction)
        assert limits.processing_priority == ProcessingPriority.STANDARD
        for quota in (
            limits.max_writing_samples,
            limits.daily_limit,
            limits.monthly_limit,
            limits.export_limit,
        ):
            assert quota == Limited(amount=0)
        assert limits.available_tone_controls == frozenset()
        assert limits.max_tone_controls == 0

    @pytest.mark.parametrize("tier", list(SubscriptionTier))
    def test_is_deterministic(self, tier):
        user = make_user(tier)

        assert resolve_limits(user) == resolve_limits(user.model_copy())

    def test_ignores_quota_counters(self):
        fresh = make_user(SubscriptionTier.PRO)
        exhausted = make_user(
            SubscriptionTier.PRO,
            tokens_remaining=0,
            monthly_tokens_used=5_000_000,
            monthly_exports_used=200,
        )

        assert resolve_limits(fresh) == resolve_limits(exhausted)

    @pytest.mark.parametrize("tier", list(SubscriptionTier))
    def test_max_tone_controls_matches_available_set(self, tier):
        limits = TIER_LIMITS[tier]

        assert limits.max_tone_controls == len(limits.available_tone_controls)


class TestTierMonotonicity:
    def test_each_tier_dominates_the_one_below(self):
        free = TIER_LIMITS[SubscriptionTier.FREE]
        pro = TIER_LIMITS[SubscriptionTier.PRO]
        premium = TIER_LIMITS[SubscriptionTier.PREMIUM]

        assert premium.dominates(pro)
        assert pro.dominates(free)
        assert free.dominates(resolve_limits(None))

    def test_lower_tier_does_not_dominate_higher(self):
        free = TIER_LIMITS[SubscriptionTier.FREE]
        pro = TIER_LIMITS[SubscriptionTier.PRO]
        premium = TIER_LIMITS[SubscriptionTier.PREMIUM]

        assert not free.dominates(pro)
        assert not pro.dominates(premium)

    def test_unlimited_outranks_any_finite_limit(self):
        assert Unlimited() >= Limited(amount=10_000_000)
        assert not (Limited(amount=10_000_000) >= Unlimited())


class TestValidateAccess:
    def test_free_user_cannot_modify_tone(self, free_user):
        with pytest.raises(AccessDeniedError) as exc_info:
            validate_access(free_user, "modify_tone")

        assert exc_info.value.required_tier == "Pro or Premium"
        assert "Tone customization requires Pro or Premium subscription" in str(exc_info.value)
        assert "view-only" in str(exc_info.value)

    def test_pro_user_can_modify_tone(self, pro_user):
        validate_access(pro_user, "modify_tone")

    def test_pro_user_cannot_use_advanced_presets(self, pro_user):
        with pytest.raises(AccessDeniedError) as exc_info:
            validate_access(pro_user, AccessAction.USE_ADVANCED_PRESETS)

        assert exc_info.value.required_tier == "Premium"
        assert exc_info.value.action == "use_advanced_presets"
        assert str(exc_info.value) == "Advanced tone presets require Premium subscription"

    def test_plural_feature_names_use_plural_verb(self, free_user):
        with pytest.raises(AccessDeniedError) as exc_info:
            validate_access(free_user, AccessAction.USE_PRESETS)

        assert str(exc_info.value) == "Tone presets require Pro or Premium subscription"

    def test_singular_feature_names_use_singular_verb(self, free_user):
        with pytest.raises(AccessDeniedError) as exc_info:
            validate_access(free_user, AccessAction.PRIORITY_PROCESSING)

        assert str(exc_info.value) == "Priority processing requires Pro or Premium subscription"

    def test_premium_user_can_use_everything(self, premium_user):
        for action in AccessAction:
            validate_access(premium_user, action)

    def test_missing_user_is_denied(self):
        with pytest.raises(AccessDeniedError):
            validate_access(None, "use_presets")

    def test_unknown_action_is_rejected(self, premium_user):
        with pytest.raises(UnknownActionError) as exc_info:
            validate_access(premium_user, "delete_everything")

        assert exc_info.value.action == "delete_everything"

    def test_minimum_tier_for_each_action(self):
        assert minimum_tier_for(AccessAction.MODIFY_TONE) == SubscriptionTier.PRO
        assert minimum_tier_for(AccessAction.PRIORITY_PROCESSING) == SubscriptionTier.PRO
        assert minimum_tier_for(AccessAction.EXTENDED_ANALYSIS) == SubscriptionTier.PREMIUM


class TestValidatePresetAccess:
    def test_basic_preset_needs_paid_tier(self, free_user, pro_user):
        with pytest.raises(AccessDeniedError):
            validate_preset_access(free_user, "Professional")
        validate_preset_access(pro_user, "Professional")

    def test_advanced_preset_needs_premium(self, pro_user, premium_user):
        with pytest.raises(AccessDeniedError) as exc_info:
            validate_preset_access(pro_user, "Executive")

        assert exc_info.value.required_tier == "Premium"
        validate_preset_access(premium_user, "Executive")

    def test_unknown_preset_is_rejected(self, premium_user):
        with pytest.raises(UnknownPresetError):
            validate_preset_access(premium_user, "Pirate")


class TestAnalysisLevel:
    def test_levels_by_tier(self, free_user, pro_user, premium_user):
        assert get_analysis_level(free_user) == AnalysisLevel.BASIC
        assert get_analysis_level(pro_user) == AnalysisLevel.ADVANCED
        assert get_analysis_level(premium_user) == AnalysisLevel.EXTENDED
        assert get_analysis_level(None) == AnalysisLevel.BASIC


class TestProcessingPriority:
    def test_queue_numbers_by_tier(self, free_user, pro_user, premium_user):
        assert get_processing_priority(free_user) == 3
        assert get_processing_priority(pro_user) == 2
        assert get_processing_priority(premium_user) == 1

    def test_number_decreases_as_tier_increases(self):
        numbers = [get_processing_priority(make_user(tier)) for tier in SubscriptionTier]

        assert numbers == sorted(numbers, reverse=True)
        assert len(set(numbers)) == len(numbers)
