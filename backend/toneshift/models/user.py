"""User record as supplied by the auth/persistence layer."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from toneshift.models.subscription import SubscriptionTier


class User(BaseModel):
    """Subscription tier plus the quota counters kept on the users table."""

    id: str
    email: str
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    tokens_remaining: int = Field(default=0, ge=0)
    daily_tokens_used: int = Field(default=0, ge=0)
    monthly_tokens_used: int = Field(default=0, ge=0)
    monthly_exports_used: int = Field(default=0, ge=0)
    last_token_reset: date
    # Day of month on which monthly counters roll over
    monthly_reset_date: int = Field(default=1, ge=1, le=31)
    created_at: datetime
    subscription_expires_at: datetime | None = None
    billing_start_date: datetime | None = None
