"""
Quota gate checks and atomic usage accounting.

The `check_*` functions are advisory pre-checks over a user snapshot.
`QuotaService` is the enforcement point: it re-reads the user, runs the
same checks and writes the incremented counters while holding a per-user
lock, so concurrent requests cannot both spend the last tokens.
"""

import asyncio
import math
from collections import defaultdict
from datetime import UTC, datetime, timedelta
from typing import Protocol

import structlog

from toneshift.constants import DAILY_RESET_HOUR_UTC
from toneshift.errors import QuotaExceededError, QuotaKind
from toneshift.models.subscription import Limited, SubscriptionTier
from toneshift.models.user import User
from toneshift.services.audit_log import AuditLogger, build_event
from toneshift.services.entitlements import resolve_limits, upgrade_label

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def hours_until_daily_reset(now: datetime) -> int:
    """Whole hours (rounded up) until the next daily token reset. Naive times are read as UTC."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    reset = now.astimezone(UTC).replace(
        hour=DAILY_RESET_HOUR_UTC, minute=0, second=0, microsecond=0
    )
    if reset <= now:
        reset += timedelta(days=1)
    return max(1, math.ceil((reset - now).total_seconds() / 3600))


def _upgrade_hint(user: User) -> str:
    if user.subscription_tier == SubscriptionTier.PREMIUM:
        return ""
    next_tier = list(SubscriptionTier)[user.subscription_tier.rank + 1]
    return f" Upgrade to {upgrade_label(next_tier)} for a higher limit."


# ---------------------------------------------------------------------------
# Gate checks
# ---------------------------------------------------------------------------


def check_rewrite_quota(user: User, now: datetime | None = None) -> None:
    """
    Check, in order: tokens remaining, daily limit, monthly limit.

    Raises:
        QuotaExceededError: with the kind of the first counter that is exhausted.
    """
    limits = resolve_limits(user)
    now = now or _utcnow()

    if user.tokens_remaining <= 0:
        raise QuotaExceededError(
            "No tokens remaining. Please wait for your daily reset or upgrade your plan.",
            kind=QuotaKind.TOKENS,
            used=user.tokens_remaining,
        )

    daily = limits.daily_limit
    if isinstance(daily, Limited) and not daily.allows(user.daily_tokens_used):
        hours = hours_until_daily_reset(now)
        raise QuotaExceededError(
            f"Daily limit reached ({daily.amount:,} tokens). "
            f"Tokens reset in {hours} hours at midnight UTC.{_upgrade_hint(user)}",
            kind=QuotaKind.DAILY,
            limit=daily.amount,
            used=user.daily_tokens_used,
            hours_until_reset=hours,
        )

    monthly = limits.monthly_limit
    if isinstance(monthly, Limited) and not monthly.allows(user.monthly_tokens_used):
        raise QuotaExceededError(
            f"Monthly limit reached ({monthly.amount:,} tokens). "
            f"Limit resets on day {user.monthly_reset_date} of the month.{_upgrade_hint(user)}",
            kind=QuotaKind.MONTHLY,
            limit=monthly.amount,
            used=user.monthly_tokens_used,
            reset_day_of_month=user.monthly_reset_date,
        )


def check_export_quota(user: User, count: int = 1) -> None:
    """Reject an export of `count` files that would exceed the monthly export limit."""
    limit = resolve_limits(user).export_limit
    if not isinstance(limit, Limited):
        return
    if user.monthly_exports_used + count > limit.amount:
        raise QuotaExceededError(
            f"Monthly export limit reached ({limit.amount:,} exports). "
            f"Exports reset on day {user.monthly_reset_date} of the month.{_upgrade_hint(user)}",
            kind=QuotaKind.EXPORTS,
            limit=limit.amount,
            used=user.monthly_exports_used,
            reset_day_of_month=user.monthly_reset_date,
        )


def check_writing_sample_quota(user: User | None, current_count: int) -> None:
    """Reject adding one more writing sample when the user already holds the maximum."""
    limit = resolve_limits(user).max_writing_samples
    if limit.allows(current_count):
        return
    hint = _upgrade_hint(user) if user else ""
    raise QuotaExceededError(
        f"Writing sample limit reached ({limit.to_wire()} samples).{hint}",
        kind=QuotaKind.WRITING_SAMPLES,
        limit=limit.to_wire(),
        used=current_count,
    )


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class UserRepository(Protocol):
    """Storage contract for user quota counters."""

    async def get_user(self, user_id: str) -> User | None:
        """Fetch a user."""

    async def save_user(self, user: User) -> User:
        """Persist counter changes."""


class InMemoryUserRepository:
    """In-memory repository used for tests and local fallback."""

    def __init__(self, users: list[User] | None = None) -> None:
        self.users: dict[str, User] = {u.id: u.model_copy(deep=True) for u in users or []}

    async def get_user(self, user_id: str) -> User | None:
        user = self.users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def save_user(self, user: User) -> User:
        stored = user.model_copy(deep=True)
        self.users[stored.id] = stored
        return stored.model_copy(deep=True)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class QuotaService:
    """Checks and increments usage counters as one unit per user."""

    def __init__(
        self,
        repository: UserRepository,
        audit_logger: AuditLogger | None = None,
        now_provider=_utcnow,
    ) -> None:
        self.repository = repository
        self.audit_logger = audit_logger
        self.now_provider = now_provider
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def _load(self, user_id: str) -> User:
        user = await self.repository.get_user(user_id)
        if user is None:
            raise LookupError(f"Unknown user: {user_id}")
        return user

    async def _audit(self, user: User, action: str, resource: str, error: str | None = None) -> None:
        if self.audit_logger is None:
            return
        await self.audit_logger.log_event(
            build_event(
                user,
                action=action,
                resource=resource,
                allowed=error is None,
                error_message=error,
                now=self.now_provider(),
            )
        )

    async def consume_tokens(self, user_id: str, tokens: int) -> User:
        """Spend `tokens` for a rewrite. Raises QuotaExceededError and leaves counters untouched on denial."""
        if tokens <= 0:
            raise ValueError("tokens must be positive")

        async with self._locks[user_id]:
            user = await self._load(user_id)
            try:
                check_rewrite_quota(user, self.now_provider())
            except QuotaExceededError as e:
                await self._audit(user, f"{e.kind.value}_limit_exceeded", "tokens", e.message)
                raise

            user.tokens_remaining = max(0, user.tokens_remaining - tokens)
            user.daily_tokens_used += tokens
            user.monthly_tokens_used += tokens
            saved = await self.repository.save_user(user)

        logger.info(
            "tokens_consumed",
            user_id=user_id,
            tokens=tokens,
            tokens_left=saved.tokens_remaining,
        )
        await self._audit(saved, "tokens_used", "tokens")
        return saved

    async def record_export(self, user_id: str, count: int = 1) -> User:
        """Count `count` exports against the monthly export limit."""
        if count <= 0:
            raise ValueError("count must be positive")

        async with self._locks[user_id]:
            user = await self._load(user_id)
            try:
                check_export_quota(user, count)
            except QuotaExceededError as e:
                await self._audit(user, "export_limit_exceeded", "exports", e.message)
                raise

            user.monthly_exports_used += count
            saved = await self.repository.save_user(user)

        logger.info("export_recorded", user_id=user_id, exports_used=saved.monthly_exports_used)
        await self._audit(saved, "export_successful", "exports")
        return saved
