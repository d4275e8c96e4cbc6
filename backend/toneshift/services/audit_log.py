"""Security audit logging for entitlement decisions."""

from datetime import UTC, datetime
from typing import Protocol

import structlog

from toneshift.models.audit import ANONYMOUS_USER_ID, NO_TIER, SecurityEvent
from toneshift.models.user import User

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AuditLogger(Protocol):
    """Sink for security events."""

    async def log_event(self, event: SecurityEvent) -> None:
        """Record one event. Must not raise for storage problems."""


class StructlogAuditLogger:
    """Writes security events to the structured application log."""

    async def log_event(self, event: SecurityEvent) -> None:
        fields = event.model_dump(mode="json", exclude_none=True)
        if event.allowed:
            logger.info("security_event", **fields)
        else:
            logger.warning("security_event", **fields)


class InMemoryAuditLogger:
    """Collects events in a list. Used for tests and local runs."""

    def __init__(self) -> None:
        self.events: list[SecurityEvent] = []

    async def log_event(self, event: SecurityEvent) -> None:
        self.events.append(event)

    def denied(self) -> list[SecurityEvent]:
        return [event for event in self.events if not event.allowed]


def build_event(
    user: User | None,
    *,
    action: str,
    resource: str,
    allowed: bool,
    error_message: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    now: datetime | None = None,
) -> SecurityEvent:
    return SecurityEvent(
        user_id=user.id if user else ANONYMOUS_USER_ID,
        action=action,
        resource=resource,
        allowed=allowed,
        subscription_tier=user.subscription_tier.value if user else NO_TIER,
        occurred_at=now or _utcnow(),
        ip_address=ip_address,
        user_agent=user_agent,
        error_message=error_message,
    )


async def log_bypass_attempt(
    audit_logger: AuditLogger,
    user: User | None,
    attempted_action: str,
    required_tier: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """Record a request for a capability the user's tier does not include."""
    await audit_logger.log_event(
        build_event(
            user,
            action="subscription_bypass_attempt",
            resource=attempted_action,
            allowed=False,
            error_message=(
                f"Attempted to access {attempted_action} which requires "
                f"{required_tier} subscription"
            ),
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
