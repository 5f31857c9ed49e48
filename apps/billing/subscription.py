"""
Subscription state machine.

Pure functions over the billing columns of a tenant. Nothing here touches the
database or the clock implicitly: pass `now` to evaluate at a fixed instant.
Trial expiry is evaluated lazily, there is no background job that moves a
tenant out of `trialing`.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel
from framework.clock import as_utc, utc_now


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"


ACTIVE_STATUSES = frozenset({SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value})


class PauseReason(str, Enum):
    TRIAL_EXPIRED = "trial_expired"
    PAYMENT_PAST_DUE = "payment_past_due"
    SUBSCRIPTION_INACTIVE = "subscription_inactive"


PAUSE_MESSAGES = {
    PauseReason.TRIAL_EXPIRED: "Trial expired. Please subscribe to continue.",
    PauseReason.PAYMENT_PAST_DUE: "Payment past due. Please update your payment method.",
    PauseReason.SUBSCRIPTION_INACTIVE: "Subscription inactive. Please subscribe to continue.",
}


class ServingDecision(BaseModel):
    serve: bool
    reason: Optional[PauseReason] = None

    @property
    def paused(self) -> bool:
        return not self.serve

    @property
    def message(self) -> Optional[str]:
        return PAUSE_MESSAGES.get(self.reason) if self.reason else None


SERVE = ServingDecision(serve=True)


def _value(status) -> Optional[str]:
    return status.value if isinstance(status, Enum) else status


def is_active(status) -> bool:
    return _value(status) in ACTIVE_STATUSES


def is_trial_expired(trial_ends_at: Optional[datetime], status, now: Optional[datetime] = None) -> bool:
    """
    Whether the trial window no longer grants access.

    Never expired for a paying tenant. Any other tenant without a trial end date
    has nothing to fall back on and counts as expired.
    """
    if _value(status) == SubscriptionStatus.ACTIVE.value:
        return False
    if trial_ends_at is None:
        return True
    now = now or utc_now()
    return now > as_utc(trial_ends_at)


def serving_decision(tenant, now: Optional[datetime] = None) -> ServingDecision:
    """Serve or pause a tenant's public widgets."""
    status = _value(tenant.subscription_status)
    if status == SubscriptionStatus.ACTIVE.value:
        return SERVE
    if not is_trial_expired(tenant.trial_ends_at, status, now):
        return SERVE

    if status == SubscriptionStatus.PAST_DUE.value:
        reason = PauseReason.PAYMENT_PAST_DUE
    elif status == SubscriptionStatus.TRIALING.value:
        reason = PauseReason.TRIAL_EXPIRED
    else:
        reason = PauseReason.SUBSCRIPTION_INACTIVE
    return ServingDecision(serve=False, reason=reason)


def trial_days_remaining(trial_ends_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    if trial_ends_at is None:
        return 0
    now = now or utc_now()
    seconds = (as_utc(trial_ends_at) - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))

