"""Study profile lifecycle: creation, daily streaks and study hours."""
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from study_companion.models import StudyProfile, User, parse_timestamp

logger = logging.getLogger(__name__)


def _day_of(iso: Optional[str]):
    parsed = parse_timestamp(iso)
    return parsed.date() if parsed else None


def create_default_profile(now: Optional[datetime] = None) -> StudyProfile:
    stamp = (now or datetime.now()).isoformat()
    return StudyProfile(daily_hours=0.0, streak=0, last_study_date=stamp, trial_started_at=stamp, is_paid=False)


def initialize_user(gateway, user: User, now: Optional[datetime] = None) -> StudyProfile:
    """Load the user's profile, creating it on first sign-in.

    Breaks the streak when the last study day was neither today nor yesterday,
    and moves ``last_study_date`` forward to today.
    """
    now = now or datetime.now()
    profile = gateway.get_profile(user.id)
    if profile is None:
        profile = create_default_profile(now)
        gateway.save_profile(user.id, profile)
        logger.info("Created profile for %s", user.id)
        return profile

    changed = False
    if not profile.trial_started_at:
        profile = replace(profile, trial_started_at=now.isoformat())
        changed = True

    today = now.date()
    last_day = _day_of(profile.last_study_date)
    if last_day != today:
        if last_day != today - timedelta(days=1):
            profile = replace(profile, streak=0)
        profile = replace(profile, last_study_date=now.isoformat())
        changed = True

    if changed:
        gateway.save_profile(user.id, profile)
    return profile


def increment_streak(gateway, user_id: str, profile: StudyProfile,
                     now: Optional[datetime] = None) -> StudyProfile:
    """Count today towards the streak once. Returns the (possibly new) profile."""
    now = now or datetime.now()
    if _day_of(profile.last_study_date) == now.date():
        return profile
    updated = replace(profile, streak=profile.streak + 1, last_study_date=now.isoformat())
    gateway.save_profile(user_id, updated)
    return updated


def add_study_minutes(profile: StudyProfile, minutes: int, now: Optional[datetime] = None) -> StudyProfile:
    """Add focus time to today's hours; hours restart from zero on a new day."""
    now = now or datetime.now()
    hours = profile.daily_hours if _day_of(profile.last_study_date) == now.date() else 0.0
    hours += minutes / 60
    return replace(profile, daily_hours=round(hours, 1), last_study_date=now.isoformat())
