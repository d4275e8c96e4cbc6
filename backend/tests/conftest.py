"""
Shared test fixtures for the Toneshift backend test suite.
"""

from datetime import UTC, date, datetime

import pytest
import structlog
from fastapi.testclient import TestClient

from toneshift.models.subscription import SubscriptionTier
from toneshift.models.user import User
from toneshift.services.audit_log import InMemoryAuditLogger


@pytest.fixture(autouse=True)
def _configure_structlog_for_tests():
    """Configure structlog for tests using a simple, deterministic setup."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def make_user(tier: SubscriptionTier = SubscriptionTier.FREE, **overrides) -> User:
    """User record with plenty of quota left unless overridden."""
    fields = {
        "id": f"{tier.value}-user",
        "email": f"{tier.value}@example.com",
        "subscription_tier": tier,
        "tokens_remaining": 100_000,
        "daily_tokens_used": 0,
        "monthly_tokens_used": 0,
        "monthly_exports_used": 0,
        "last_token_reset": date(2026, 3, 10),
        "monthly_reset_date": 1,
        "created_at": datetime(2026, 1, 1, tzinfo=UTC),
    }
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def free_user() -> User:
    return make_user(SubscriptionTier.FREE)


@pytest.fixture
def pro_user() -> User:
    return make_user(SubscriptionTier.PRO, tokens_remaining=5_000_000)


@pytest.fixture
def premium_user() -> User:
    return make_user(SubscriptionTier.PREMIUM, tokens_remaining=10_000_000)


@pytest.fixture
def audit_logger() -> InMemoryAuditLogger:
    return InMemoryAuditLogger()


@pytest.fixture
def client(audit_logger: InMemoryAuditLogger) -> TestClient:
    """FastAPI TestClient wrapping the main application."""
    # Clear the lru_cache so settings pick up test env vars
    from toneshift.config import get_settings

    get_settings.cache_clear()

    from toneshift.main import app

    app.state.audit_logger = audit_logger
    app.state.rate_limiter = None
    return TestClient(app)
