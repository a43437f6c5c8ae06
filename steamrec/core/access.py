"""Feature access checks for subscription-gated functionality.

Feedback learning and hybrid vectors were designed as premium features.
Gating is controlled by PREMIUM_FEATURES_REQUIRED; while it is off every
user has access.
"""

from datetime import datetime, timezone
from typing import Optional

from steamrec.config import get_settings

PREMIUM_TIER = "premium"


def _as_naive_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def has_premium_access(
    subscription_tier: str,
    subscription_expires_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> bool:
    """True for an unexpired premium subscription."""
    if subscription_tier != PREMIUM_TIER:
        return False
    if subscription_expires_at is None:
        return True
    now = now or datetime.utcnow()
    return _as_naive_utc(subscription_expires_at) >= _as_naive_utc(now)


def can_use_taste_learning(
    subscription_tier: str,
    subscription_expires_at: Optional[datetime] = None,
) -> bool:
    """Whether the user may submit feedback and receive hybrid vectors."""
    if not get_settings().premium_features_required:
        return True
    return has_premium_access(subscription_tier, subscription_expires_at)
