"""Subscription status and premium feature gating."""
import hashlib
import hmac
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from study_companion.models import StudyProfile, parse_timestamp

SUBSCRIPTION_DAYS = 30

# Features that need an active subscription.
FEATURE_GATES = {
    "deep-work": "Deep work focus mode",
    "custom-focus": "Custom focus timer",
    "ai-assistant": "AI study assistant",
    "ai-strategy": "AI syllabus strategy",
    "note-import": "Import notes from files",
}


class PremiumFeatureError(Exception):
    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"{FEATURE_GATES.get(feature, feature)} requires a subscription")


def is_premium(profile: Optional[StudyProfile], now: Optional[datetime] = None) -> bool:
    if profile is None or not profile.is_paid:
        return False
    if not profile.subscription_expiry_date:
        return True
    expiry = parse_timestamp(profile.subscription_expiry_date)
    if expiry is None:
        return False
    return expiry > (now or datetime.now())


def can_use(profile: Optional[StudyProfile], feature: str, now: Optional[datetime] = None) -> bool:
    return feature not in FEATURE_GATES or is_premium(profile, now)


def require_premium(profile: Optional[StudyProfile], feature: str, now: Optional[datetime] = None) -> None:
    if not can_use(profile, feature, now):
        raise PremiumFeatureError(feature)


def activate_subscription(profile: StudyProfile, now: Optional[datetime] = None) -> StudyProfile:
    now = now or datetime.now()
    expiry = now + timedelta(days=SUBSCRIPTION_DAYS)
    return replace(profile, is_paid=True, subscription_expiry_date=expiry.isoformat())


def payment_signature(order_id: str, payment_id: str, secret: str) -> str:
    body = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_payment_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """Check a checkout callback signature (HMAC-SHA256 of ``order|payment``)."""
    if not (order_id and payment_id and signature and secret):
        return False
    return hmac.compare_digest(payment_signature(order_id, payment_id, secret), signature)
