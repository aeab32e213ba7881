"""Application controller owning the signed-in user's state."""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from study_companion.catalog import get_subjects
from study_companion.dashboard import Stats, compute_stats, exam_date
from study_companion.focus import MODE_FEATURES, complete_session, session_minutes
from study_companion.models import Stream, StudyProfile, StudySession, User, UserPreferences
from study_companion.profile import increment_streak, initialize_user
from study_companion.subscription import (
    activate_subscription, is_premium, require_premium, verify_payment_signature,
)
from study_companion.syllabus import ToggleResult, locate_topic, merge, toggle_progress

logger = logging.getLogger(__name__)

DEFAULT_THEME = "indigo"


@dataclass
class AppState:
    user: Optional[User] = None
    stream: Optional[Stream] = None
    subjects: list = field(default_factory=list)
    profile: Optional[StudyProfile] = None
    preferences: Optional[UserPreferences] = None
    sync_status: str = "Signed out"


class AppController:
    """Single owner of the running session's state.

    Sign-in and sign-out arrive as explicit ``session_started`` and
    ``session_ended`` events. All syllabus changes go through ``toggle``.
    """

    def __init__(self, gateway, assistant=None):
        self.gateway = gateway
        self.assistant = assistant
        self.state = AppState()

    # -------- session events --------

    def session_started(self, user: User, now: Optional[datetime] = None) -> AppState:
        self.state = AppState(user=user, sync_status="Restoring session")
        self.state.profile = initialize_user(self.gateway, user, now)
        self.state.preferences = self.gateway.get_preferences(user.id)
        stream = self.gateway.get_stream(user.id)
        if stream is not None:
            self.load_syllabus(stream)
        self.state.sync_status = "Ready"
        logger.info("Session started for %s (stream=%s)", user.id, stream.name if stream else None)
        return self.state

    def session_ended(self) -> AppState:
        if self.state.user is not None:
            logger.info("Session ended for %s", self.state.user.id)
        self.state = AppState()
        return self.state

    # -------- setup / preferences --------

    @property
    def signed_in(self) -> bool:
        return self.state.user is not None

    @property
    def needs_setup(self) -> bool:
        return self.signed_in and (self.state.preferences is None or self.state.stream is None)

    @property
    def premium(self) -> bool:
        return is_premium(self.state.profile)

    def load_syllabus(self, stream: Stream | str) -> list:
        stream = Stream.from_code(stream) if isinstance(stream, str) else stream
        self.state.stream = stream
        catalog = get_subjects(stream)
        self.state.subjects = merge(catalog, self.gateway.get_progress(self.state.user.id, stream))
        return self.state.subjects

    def complete_setup(self, preferences: UserPreferences, stream: Stream | str) -> None:
        if not self.signed_in:
            return
        if preferences.theme_color is None:
            preferences = replace(preferences, theme_color=DEFAULT_THEME)
        self.state.preferences = preferences
        self.load_syllabus(stream)
        self.gateway.save_preferences(self.state.user.id, preferences)
        self.gateway.set_stream(self.state.user.id, self.state.stream)

    def update_preferences(self, **changes) -> Optional[UserPreferences]:
        if not self.signed_in or self.state.preferences is None:
            return None
        self.state.preferences = replace(self.state.preferences, **changes)
        self.gateway.save_preferences(self.state.user.id, self.state.preferences)
        return self.state.preferences

    # -------- syllabus --------

    def toggle(self, subject_id: str, chapter_id: str, topic_id: str, flag: str,
               now: Optional[datetime] = None) -> ToggleResult:
        state = self.state
        if state.user is None or state.stream is None or state.profile is None:
            return ToggleResult(syllabus=state.subjects)
        result = toggle_progress(
            self.gateway, state.user.id, state.stream,
            state.subjects, subject_id, chapter_id, topic_id, flag,
        )
        state.subjects = result.syllabus
        if result.changed and result.streak_eligible:
            state.profile = increment_streak(self.gateway, state.user.id, state.profile, now)
        return result

    def toggle_topic(self, topic_id: str, flag: str, now: Optional[datetime] = None) -> ToggleResult:
        """Toggle by topic id alone, resolving its subject and chapter."""
        path = locate_topic(self.state.subjects, topic_id)
        if path is None:
            return ToggleResult(syllabus=self.state.subjects)
        return self.toggle(path[0], path[1], topic_id, flag, now)

    def stats(self, now: Optional[datetime] = None) -> Stats:
        prefs = self.state.preferences or UserPreferences()
        return compute_stats(self.state.subjects, exam_date(prefs.target_year), now)

    # -------- focus / subscription --------

    def log_focus_session(self, mode: str, custom_minutes: Optional[int] = None,
                          intent: Optional[str] = None, distractions: int = 0,
                          now: Optional[datetime] = None) -> Optional[StudySession]:
        if not self.signed_in or self.state.profile is None:
            return None
        if mode in MODE_FEATURES:
            require_premium(self.state.profile, MODE_FEATURES[mode], now)
        minutes = session_minutes(mode, custom_minutes)
        session, self.state.profile = complete_session(
            self.gateway, self.state.user.id, self.state.profile, mode, minutes,
            intent=intent, distractions=distractions, now=now,
        )
        return session

    def upgrade(self, order_id: str, payment_id: str, signature: str, secret: str,
                now: Optional[datetime] = None) -> bool:
        """Activate the subscription after a verified payment."""
        if not self.signed_in or self.state.profile is None:
            return False
        if not verify_payment_signature(order_id, payment_id, signature, secret):
            logger.warning("Payment signature mismatch for order %s", order_id)
            return False
        self.state.profile = activate_subscription(self.state.profile, now)
        self.gateway.save_profile(self.state.user.id, self.state.profile)
        return True
