"""Tests for daily reflections."""
from datetime import datetime

import pytest

from study_companion.journal import (
    average_mood, create_reflection, get_mood_label, mood_trend, save_reflection,
)
from study_companion.models import Reflection

NOW = datetime(2026, 6, 1, 22, 15)


def test_create_reflection():
    r = create_reflection("  Finished Laplace  ", "Sleepy", mood=4, tags=["signals"], now=NOW)
    assert r.wins == "Finished Laplace"
    assert r.blockers == "Sleepy"
    assert r.mood == 4
    assert r.tags == ["signals"]
    assert r.date == NOW.isoformat()
    assert r.id == str(int(NOW.timestamp() * 1000))


def test_blank_reflection_is_skipped(offline_gateway):
    assert create_reflection("  ", "", now=NOW) is None
    assert save_reflection(offline_gateway, "u1", "", "   ", now=NOW) is None
    assert offline_gateway.get_reflections("u1") == []


def test_mood_out_of_range():
    with pytest.raises(ValueError):
        create_reflection("win", "", mood=6)


def test_save_reflection(offline_gateway):
    saved = save_reflection(offline_gateway, "u1", "", "Got stuck on Bode plots", mood=2, now=NOW)
    assert offline_gateway.get_reflections("u1") == [saved]


def test_mood_labels():
    assert get_mood_label(5) == "great"
    assert get_mood_label(1) == "drained"
    assert get_mood_label(42) == "steady"


def test_mood_trend_oldest_first():
    reflections = [Reflection(id=str(d), date=f"2026-06-{d:02d}T21:00:00", mood=d % 5 + 1) for d in range(1, 11)]
    trend = mood_trend(reflections, limit=3)
    assert trend == [("2026-06-08", 4), ("2026-06-09", 5), ("2026-06-10", 1)]


def test_average_mood():
    assert average_mood([]) == 0.0
    reflections = [Reflection(id="1", date="d", mood=3), Reflection(id="2", date="d", mood=4)]
    assert average_mood(reflections) == 3.5
