"""Entitlement decision API endpoints.

Stateless: the calling service posts the user record it loaded and gets a
decision back. Denials are raised as EntitlementError subclasses and
rendered by the exception handler in main.py.
"""

from collections.abc import Callable
from enum import Enum
from typing import TypeVar

import structlog
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from toneshift.constants import TIER_LIMITS
from toneshift.errors import (
    AccessDeniedError,
    QuotaExceededError,
    RateLimitExceededError,
    ToneRangeError,
)
from toneshift.models.audit import ANONYMOUS_USER_ID
from toneshift.models.subscription import AnalysisLevel, SubscriptionLimits, SubscriptionTier
from toneshift.models.tone import ToneSettings
from toneshift.models.user import User
from toneshift.services.audit_log import AuditLogger, build_event, log_bypass_attempt
from toneshift.services.entitlements import (
    get_analysis_level,
    get_processing_priority,
    resolve_limits,
    validate_access,
    validate_preset_access,
)
from toneshift.services.quota_service import (
    check_export_quota,
    check_rewrite_quota,
    check_writing_sample_quota,
)
from toneshift.services.rate_limiter import RateLimiter
from toneshift.services.tone_policy import (
    filter_tone_settings,
    prepare_tone_settings,
    validate_tone_settings,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/entitlements", tags=["entitlements"])

T = TypeVar("T")


class QuotaOperation(str, Enum):
    """Metered operations the quota gate can check."""

    REWRITE = "rewrite"
    EXPORT = "export"
    WRITING_SAMPLE = "writing_sample"


class LimitsRequest(BaseModel):
    """Limits lookup request."""

    user: User | None = None


class LimitsResponse(BaseModel):
    """Resolved limits plus derived analysis level and queue number."""

    tier: SubscriptionTier | None
    limits: SubscriptionLimits
    analysis_level: AnalysisLevel
    processing_priority: int = Field(description="1 is scheduled first, 3 last")


class AccessRequest(BaseModel):
    """Action access check request."""

    user: User | None = None
    action: str = Field(description="Action tag, e.g. modify_tone")


class PresetRequest(BaseModel):
    """Style preset access check request."""

    user: User | None = None
    preset_name: str


class ToneRequest(BaseModel):
    """Tone settings to filter or validate for a user."""

    user: User | None = None
    settings: ToneSettings = Field(default_factory=ToneSettings)


class ToneResponse(BaseModel):
    """Settings the rewrite should use."""

    settings: ToneSettings


class QuotaCheckRequest(BaseModel):
    """Quota pre-check request."""

    user: User
    operation: QuotaOperation
    export_count: int = Field(default=1, ge=1)
    writing_samples: int = Field(default=0, ge=0, description="Samples the user already has")


class DecisionResponse(BaseModel):
    """Returned when a check passes."""

    allowed: bool = True


def _get_audit_logger(request: Request) -> AuditLogger | None:
    return getattr(request.app.state, "audit_logger", None)


def _get_rate_limiter(request: Request) -> RateLimiter | None:
    return getattr(request.app.state, "rate_limiter", None)


async def _enforce_rate_limit(request: Request, user: User | None, action: str) -> None:
    limiter = _get_rate_limiter(request)
    if limiter is None:
        return

    decision = limiter.hit(user.id if user else ANONYMOUS_USER_ID, action)
    if decision.allowed:
        return

    audit_logger = _get_audit_logger(request)
    if audit_logger is not None:
        await audit_logger.log_event(
            build_event(
                user,
                action="rate_limit_violation",
                resource=action,
                allowed=False,
                error_message=f"Rate limit exceeded for action: {action}",
                ip_address=request.client.host if request.client else None,
                user_agent=request.headers.get("user-agent"),
            )
        )
    raise RateLimitExceededError(
        f"Too many requests for {action}. Try again later.",
        retry_after_seconds=decision.retry_after_seconds,
    )


async def _audited(
    request: Request,
    user: User | None,
    action: str,
    resource: str,
    check: Callable[[], T],
) -> T:
    """Run a decision, writing denials to the audit log before re-raising."""
    await _enforce_rate_limit(request, user, action)
    try:
        return check()
    except (AccessDeniedError, ToneRangeError, QuotaExceededError) as e:
        logger.info("entitlement_denied", code=e.code, action=action, resource=resource)
        audit_logger = _get_audit_logger(request)
        if audit_logger is None:
            raise
        ip_address = request.client.host if request.client else None
        user_agent = request.headers.get("user-agent")
        if isinstance(e, QuotaExceededError):
            await audit_logger.log_event(
                build_event(
                    user,
                    action=action,
                    resource=resource,
                    allowed=False,
                    error_message=e.message,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            )
        else:
            await log_bypass_attempt(
                audit_logger, user, action, e.required_tier,
                ip_address=ip_address, user_agent=user_agent,
            )
        raise


@router.get("/tiers", response_model=dict[SubscriptionTier, SubscriptionLimits])
async def list_tiers() -> dict[SubscriptionTier, SubscriptionLimits]:
    """Full tier table, for pricing pages and upgrade prompts."""
    return TIER_LIMITS


@router.post("/limits", response_model=LimitsResponse)
async def get_limits(body: LimitsRequest, request: Request) -> LimitsResponse:
    """Resolve limits for a user (null user gets the no-access limits)."""
    await _enforce_rate_limit(request, body.user, "get_limits")
    return LimitsResponse(
        tier=body.user.subscription_tier if body.user else None,
        limits=resolve_limits(body.user),
        analysis_level=get_analysis_level(body.user),
        processing_priority=get_processing_priority(body.user),
    )


@router.post("/access", response_model=DecisionResponse)
async def check_access(body: AccessRequest, request: Request) -> DecisionResponse:
    """Check that the user's tier grants an action."""
    await _audited(
        request, body.user, body.action, "subscription_features",
        lambda: validate_access(body.user, body.action),
    )
    return DecisionResponse()


@router.post("/presets", response_model=DecisionResponse)
async def check_preset(body: PresetRequest, request: Request) -> DecisionResponse:
    """Check that the user's tier may apply a style preset."""
    await _audited(
        request, body.user, "use_preset", body.preset_name,
        lambda: validate_preset_access(body.user, body.preset_name),
    )
    return DecisionResponse()


@router.post("/tone/filter", response_model=ToneResponse)
async def filter_tone(body: ToneRequest, request: Request) -> ToneResponse:
    """Reset dimensions the tier cannot control to neutral."""
    await _enforce_rate_limit(request, body.user, "filter_tone")
    return ToneResponse(settings=filter_tone_settings(body.user, body.settings))


@router.post("/tone/validate", response_model=DecisionResponse)
async def validate_tone(body: ToneRequest, request: Request) -> DecisionResponse:
    """Validate tone settings as given, without filtering."""
    await _audited(
        request, body.user, "modify_tone", "tone_controls",
        lambda: validate_tone_settings(body.user, body.settings),
    )
    return DecisionResponse()


@router.post("/tone/prepare", response_model=ToneResponse)
async def prepare_tone(body: ToneRequest, request: Request) -> ToneResponse:
    """Filter then validate: the settings a rewrite should run with."""
    settings = await _audited(
        request, body.user, "modify_tone", "tone_controls",
        lambda: prepare_tone_settings(body.user, body.settings),
    )
    return ToneResponse(settings=settings)


@router.post("/quota/check", response_model=DecisionResponse)
async def check_quota(body: QuotaCheckRequest, request: Request) -> DecisionResponse:
    """Advisory quota pre-check. Counters are only changed by the persistence layer."""
    checks: dict[QuotaOperation, Callable[[], None]] = {
        QuotaOperation.REWRITE: lambda: check_rewrite_quota(body.user),
        QuotaOperation.EXPORT: lambda: check_export_quota(body.user, body.export_count),
        QuotaOperation.WRITING_SAMPLE: lambda: check_writing_sample_quota(
            body.user, body.writing_samples
        ),
    }
    await _audited(
        request, body.user, f"{body.operation.value}_quota", "quota",
        checks[body.operation],
    )
    return DecisionResponse()
