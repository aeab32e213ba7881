from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from study_companion.app import (
    build_controller, cmd_dashboard, cmd_focus, cmd_import, cmd_journal, cmd_notes, cmd_resources,
    cmd_setup, cmd_syllabus, cmd_toggle, cmd_upgrade, progress_bar,
)
from study_companion.catalog import available_streams
from study_companion.config import Settings
from study_companion.controller import AppController
from study_companion.models import Stream, User, UserPreferences
from study_companion.subscription import PremiumFeatureError


@pytest.fixture
def controller(offline_gateway):
    c = AppController(offline_gateway, assistant=MagicMock())
    c.session_started(User(id="u1", name="Asha"))
    c.complete_setup(UserPreferences(target_marks=65), Stream.EE)
    return c


def test_progress_bar():
    bar = progress_bar(50, width=10)
    assert bar.count("█") == 5
    assert bar.count("░") == 5
    assert bar.startswith("[yellow]")


def test_cmd_setup_selects_stream(offline_gateway):
    c = AppController(offline_gateway)
    c.session_started(User(id="u1"))
    choice = available_streams().index(Stream.ME) + 1
    with patch("study_companion.app.IntPrompt.ask", side_effect=[choice, 150]), \
         patch("study_companion.app.Prompt.ask", return_value="2028"):
        cmd_setup(c)
    assert c.state.stream is Stream.ME
    assert c.state.preferences.target_year == "2028"
    assert c.state.preferences.target_marks == 100
    assert not c.needs_setup


def test_cmd_toggle_marks_topic(controller, offline_gateway):
    with patch("study_companion.app.Prompt.ask", side_effect=["ee-la-1", "pyq"]):
        cmd_toggle(controller)
    assert offline_gateway.get_progress("u1", "EE")["ee-la-1"].pyq


def test_cmd_toggle_unknown_topic(controller, offline_gateway):
    with patch("study_companion.app.Prompt.ask", side_effect=["ghost", "lecture"]):
        cmd_toggle(controller)
    assert offline_gateway.get_progress("u1", "EE") == {}


def test_cmd_dashboard_and_syllabus_render(controller):
    controller.toggle_topic("ee-la-1", "lecture")
    cmd_dashboard(controller)
    with patch("study_companion.app.IntPrompt.ask", return_value=1):
        cmd_syllabus(controller)


def test_cmd_focus_pomodoro(controller, offline_gateway):
    with patch("study_companion.app.Prompt.ask", side_effect=["pomodoro", "Transformers", ""]), \
         patch("study_companion.app.IntPrompt.ask", return_value=2):
        cmd_focus(controller)
    sessions = offline_gateway.get_recent_sessions("u1")
    assert len(sessions) == 1
    assert sessions[0].intent == "Transformers"
    assert sessions[0].distractions == 2


def test_cmd_focus_deep_work_needs_subscription(controller, offline_gateway):
    with patch("study_companion.app.Prompt.ask", return_value="deep-work"):
        with pytest.raises(PremiumFeatureError):
            cmd_focus(controller)
    assert offline_gateway.get_recent_sessions("u1") == []


def test_cmd_journal(controller, offline_gateway):
    with patch("study_companion.app.Prompt.ask", side_effect=["Solved 20 PYQs", ""]), \
         patch("study_companion.app.IntPrompt.ask", return_value=4):
        cmd_journal(controller)
    reflections = offline_gateway.get_reflections("u1")
    assert [r.wins for r in reflections] == ["Solved 20 PYQs"]
    assert reflections[0].mood == 4


def test_cmd_notes_add(controller, offline_gateway):
    with patch("study_companion.app.Prompt.ask", side_effect=["", "Ohm's law", "Circuits", "formula", "V = IR"]), \
         patch("study_companion.app.Confirm.ask", return_value=True):
        cmd_notes(controller)
    notes = offline_gateway.get_notes("u1")
    assert [(n.title, n.type, n.content) for n in notes] == [("Ohm's law", "formula", "V = IR")]
    controller.assistant.note_content.assert_not_called()


def test_cmd_resources_add(controller, offline_gateway):
    with patch("study_companion.app.Prompt.ask", side_effect=["all", "https://youtu.be/abc", "Lecture 1"]), \
         patch("study_companion.app.Confirm.ask", return_value=True):
        cmd_resources(controller)
    resources = offline_gateway.get_resources("u1")
    assert [(r.title, r.type) for r in resources] == [("Lecture 1", "video")]


def test_cmd_import_needs_subscription(controller, tmp_path):
    with pytest.raises(PremiumFeatureError):
        cmd_import(controller, Settings(attachments_dir=str(tmp_path)))


def test_cmd_upgrade_without_payment_config(controller):
    with patch("study_companion.app.Prompt.ask") as ask:
        cmd_upgrade(controller, Settings(payment_secret=None))
    ask.assert_not_called()
    assert not controller.premium


def test_build_controller_offline(tmp_db):
    controller = build_controller(Settings(db_path=tmp_db))
    try:
        assert controller.gateway.remote is None
        assert controller.assistant is not None
        assert not controller.signed_in
    finally:
        controller.gateway.close()


def test_build_controller_with_remote(tmp_db):
    controller = build_controller(Settings(db_path=tmp_db, remote_url="https://store.example/v1/", read_timeout=0.3))
    try:
        assert controller.gateway.remote.base_url == "https://store.example/v1"
        assert controller.gateway.read_timeout == 0.3
    finally:
        controller.gateway.close()
