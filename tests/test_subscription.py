"""Tests for subscription status, feature gates and payment signatures."""
from datetime import datetime

import pytest

from study_companion.models import StudyProfile
from study_companion.subscription import (
    PremiumFeatureError, activate_subscription, can_use, is_premium, payment_signature,
    require_premium, verify_payment_signature,
)

NOW = datetime(2026, 5, 1, 12, 0)


def test_free_profile_is_not_premium():
    assert not is_premium(StudyProfile(), NOW)
    assert not is_premium(None, NOW)


def test_activation_lasts_thirty_days():
    paid = activate_subscription(StudyProfile(streak=7), NOW)
    assert paid.is_paid
    assert paid.streak == 7
    assert paid.subscription_expiry_date == "2026-05-31T12:00:00"
    assert is_premium(paid, datetime(2026, 5, 31, 11, 59))
    assert not is_premium(paid, datetime(2026, 5, 31, 12, 0))


def test_paid_without_expiry_is_premium():
    assert is_premium(StudyProfile(is_paid=True), NOW)


def test_free_features_always_available():
    assert can_use(StudyProfile(), "pomodoro", NOW)
    assert not can_use(StudyProfile(), "deep-work", NOW)


def test_require_premium_raises_with_feature_name():
    with pytest.raises(PremiumFeatureError) as exc:
        require_premium(StudyProfile(), "ai-assistant", NOW)
    assert exc.value.feature == "ai-assistant"
    assert "AI study assistant" in str(exc.value)


def test_require_premium_passes_for_subscriber():
    require_premium(activate_subscription(StudyProfile(), NOW), "note-import", NOW)


def test_payment_signature_verification():
    signature = payment_signature("order_1", "pay_1", "s3cret")
    assert verify_payment_signature("order_1", "pay_1", signature, "s3cret")
    assert not verify_payment_signature("order_1", "pay_2", signature, "s3cret")
    assert not verify_payment_signature("order_1", "pay_1", signature, "other")


def test_payment_signature_rejects_blank_fields():
    signature = payment_signature("order_1", "pay_1", "s3cret")
    assert not verify_payment_signature("", "pay_1", signature, "s3cret")
    assert not verify_payment_signature("order_1", "pay_1", "", "s3cret")
    assert not verify_payment_signature("order_1", "pay_1", signature, "")


def test_expiry_written_with_utc_suffix():
    paid = StudyProfile(is_paid=True, subscription_expiry_date="2027-01-01T00:00:00.000Z")
    assert is_premium(paid, NOW)
    assert not is_premium(paid, datetime(2027, 2, 1))
    require_premium(paid, "deep-work", NOW)


def test_unreadable_expiry_is_not_premium():
    assert not is_premium(StudyProfile(is_paid=True, subscription_expiry_date="soon"), NOW)
