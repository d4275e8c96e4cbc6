"""Security audit event models."""

from datetime import datetime

from pydantic import BaseModel

ANONYMOUS_USER_ID = "anonymous"
NO_TIER = "none"


class SecurityEvent(BaseModel):
    """One allow/deny decision recorded in the security audit log."""

    user_id: str
    action: str
    resource: str
    allowed: bool
    subscription_tier: str
    occurred_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None
    error_message: str | None = None
