"""Focus timer sessions."""
import uuid
from datetime import datetime
from typing import Optional

from study_companion.models import StudyProfile, StudySession, parse_timestamp
from study_companion.profile import add_study_minutes

FOCUS_MODES = {
    "pomodoro": 25,
    "deep-work": 90,
    "custom": None,
}

# Feature gate name per mode; pomodoro is free.
MODE_FEATURES = {"deep-work": "deep-work", "custom": "custom-focus"}


def session_minutes(mode: str, custom_minutes: Optional[int] = None) -> int:
    if mode not in FOCUS_MODES:
        raise ValueError(f"Unknown focus mode: {mode!r}")
    if mode == "custom":
        if not custom_minutes or custom_minutes <= 0:
            raise ValueError("Custom sessions need a positive number of minutes")
        return int(custom_minutes)
    return FOCUS_MODES[mode]


def focus_score(distractions: int) -> int:
    return max(0, 100 - distractions * 10)


def complete_session(gateway, user_id: str, profile: StudyProfile, mode: str, minutes: int,
                     intent: Optional[str] = None, distractions: int = 0,
                     now: Optional[datetime] = None) -> tuple[StudySession, StudyProfile]:
    """Log a finished session and add its time to today's study hours."""
    now = now or datetime.now()
    session = StudySession(
        id=uuid.uuid4().hex,
        duration_minutes=minutes,
        type=mode,
        timestamp=now.isoformat(),
        completed=True,
        intent=intent or None,
        distractions=distractions,
    )
    gateway.save_session(user_id, session)
    updated = add_study_minutes(profile, minutes, now)
    gateway.save_profile(user_id, updated)
    return session, updated


def activity_dates(sessions: list[StudySession]) -> set:
    """Calendar days with at least one logged session."""
    days = set()
    for s in sessions:
        stamp = parse_timestamp(s.timestamp)
        if stamp is not None:
            days.add(stamp.date())
    return days


def total_minutes(sessions: list[StudySession]) -> int:
    return sum(s.duration_minutes for s in sessions if s.completed)
