"""Tests for focus timer sessions."""
from datetime import datetime, timezone

import pytest

from study_companion.focus import (
    activity_dates, complete_session, focus_score, session_minutes, total_minutes,
)
from study_companion.models import StudyProfile, StudySession

NOW = datetime(2026, 4, 2, 18, 0)


def test_session_minutes_per_mode():
    assert session_minutes("pomodoro") == 25
    assert session_minutes("deep-work") == 90
    assert session_minutes("custom", 40) == 40


def test_custom_mode_needs_positive_minutes():
    with pytest.raises(ValueError):
        session_minutes("custom")
    with pytest.raises(ValueError):
        session_minutes("custom", -5)


def test_unknown_mode():
    with pytest.raises(ValueError):
        session_minutes("nap")


def test_focus_score():
    assert focus_score(0) == 100
    assert focus_score(3) == 70
    assert focus_score(15) == 0


def test_complete_session_logs_and_adds_hours(offline_gateway):
    profile = StudyProfile(daily_hours=0.5, last_study_date="2026-04-02T09:00:00")
    session, updated = complete_session(
        offline_gateway, "u1", profile, "pomodoro", 25, intent="Laplace", distractions=1, now=NOW,
    )
    assert session.duration_minutes == 25
    assert session.type == "pomodoro"
    assert session.intent == "Laplace"
    assert session.timestamp == NOW.isoformat()
    assert updated.daily_hours == 0.9
    assert offline_gateway.get_profile("u1") == updated
    stored = offline_gateway.get_recent_sessions("u1", now=NOW)
    assert [s.id for s in stored] == [session.id]


def test_blank_intent_stored_as_none(offline_gateway):
    session, _ = complete_session(offline_gateway, "u1", StudyProfile(), "deep-work", 90, intent="", now=NOW)
    assert session.intent is None


def test_activity_dates_and_total():
    sessions = [
        StudySession(id="1", duration_minutes=25, timestamp="2026-04-01T08:00:00"),
        StudySession(id="2", duration_minutes=50, timestamp="2026-04-01T20:00:00"),
        StudySession(id="3", duration_minutes=90, timestamp="2026-04-02T08:00:00", completed=False),
        StudySession(id="4", duration_minutes=10, timestamp="garbage"),
    ]
    assert activity_dates(sessions) == {datetime(2026, 4, 1).date(), datetime(2026, 4, 2).date()}
    assert total_minutes(sessions) == 85


def test_activity_dates_reads_utc_stamps():
    stamp = NOW.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")
    assert activity_dates([StudySession(id="1", duration_minutes=25, timestamp=stamp)]) == {NOW.date()}
