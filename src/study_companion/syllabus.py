"""Merge saved progress into the catalog tree and apply progress toggles.

The functions here are pure: they never mutate their inputs and always return
new trees. Unknown ids are ignored rather than reported.
"""
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from study_companion.models import Chapter, Subject, Topic, TopicProgress

# Accepted flag names mapped to TopicProgress attributes.
PROGRESS_FLAGS = {
    "lecture": "lecture",
    "revision": "revision",
    "pyq": "pyq",
    "pyq_failed": "pyq_failed",
    "pyqFailed": "pyq_failed",
}

# Toggling any flag except this one counts as study activity for the streak.
NON_STREAK_FLAG = "pyq_failed"


def _coerce_progress(value: Any) -> TopicProgress:
    if isinstance(value, TopicProgress):
        return replace(value)
    if isinstance(value, Mapping):
        return TopicProgress.from_dict(value)
    return TopicProgress()


def merge(subjects: list[Subject], progress: Optional[Mapping[str, Any]]) -> list[Subject]:
    """Overlay a progress record onto catalog subjects.

    Each topic whose id appears in ``progress`` gets a copy of that progress;
    other topics keep (a copy of) their own progress, or a cleared record when
    they have none. Progress entries for ids not in ``subjects`` are dropped.
    """
    progress = progress or {}
    merged = []
    for subject in subjects or []:
        chapters = []
        for chapter in subject.chapters or []:
            topics = []
            for topic in chapter.topics or []:
                if topic.id in progress:
                    new_progress = _coerce_progress(progress[topic.id])
                else:
                    new_progress = _coerce_progress(topic.progress)
                topics.append(replace(topic, progress=new_progress))
            chapters.append(replace(chapter, topics=topics))
        merged.append(replace(subject, chapters=chapters))
    return merged


def extract_progress(subjects: list[Subject]) -> dict[str, TopicProgress]:
    """Flatten a syllabus back into a topic id -> progress mapping."""
    record = {}
    for subject in subjects or []:
        for chapter in subject.chapters or []:
            for topic in chapter.topics or []:
                record[topic.id] = _coerce_progress(topic.progress)
    return record


def find_topic(subjects: list[Subject], subject_id: str, chapter_id: str, topic_id: str) -> Optional[Topic]:
    for subject in subjects or []:
        if subject.id != subject_id:
            continue
        for chapter in subject.chapters or []:
            if chapter.id != chapter_id:
                continue
            for topic in chapter.topics or []:
                if topic.id == topic_id:
                    return topic
    return None


def locate_topic(subjects: list[Subject], topic_id: str) -> Optional[tuple[str, str]]:
    """Return the (subject_id, chapter_id) path of a topic, or None."""
    for subject in subjects or []:
        for chapter in subject.chapters or []:
            for topic in chapter.topics or []:
                if topic.id == topic_id:
                    return subject.id, chapter.id
    return None


def flag_attribute(flag: str) -> str:
    try:
        return PROGRESS_FLAGS[flag]
    except KeyError:
        raise ValueError(f"Unknown progress flag: {flag!r}") from None


def apply_toggle(
    subjects: list[Subject], subject_id: str, chapter_id: str, topic_id: str, flag: str,
) -> tuple[list[Subject], Optional[TopicProgress]]:
    """Flip one flag on one topic.

    Returns the new tree and the topic's new progress. When the path does not
    resolve, the input list is returned as-is with ``None``. Untouched subjects,
    chapters and topics are shared with the input.
    """
    attr = flag_attribute(flag)
    target = find_topic(subjects, subject_id, chapter_id, topic_id)
    if target is None:
        return subjects, None

    current = _coerce_progress(target.progress)
    new_progress = replace(current, **{attr: not getattr(current, attr)})

    new_subjects = []
    for subject in subjects:
        if subject.id != subject_id:
            new_subjects.append(subject)
            continue
        chapters = []
        for chapter in subject.chapters or []:
            if chapter.id != chapter_id:
                chapters.append(chapter)
                continue
            topics = [
                replace(t, progress=new_progress) if t is target else t
                for t in chapter.topics or []
            ]
            chapters.append(replace(chapter, topics=topics))
        new_subjects.append(replace(subject, chapters=chapters))
    return new_subjects, new_progress


@dataclass
class ToggleResult:
    syllabus: list
    progress: Optional[TopicProgress] = None
    write: Any = None  # concurrent.futures.Future when a write was issued
    streak_eligible: bool = False

    @property
    def changed(self) -> bool:
        return self.progress is not None


def toggle_progress(
    gateway, user_id: str, stream: str,
    subjects: list[Subject], subject_id: str, chapter_id: str, topic_id: str, flag: str,
) -> ToggleResult:
    """Apply a toggle locally and write the topic's progress through.

    The new tree is available immediately; ``write`` is the pending remote
    write. ``streak_eligible`` tells the caller whether this toggle should
    count towards the study streak.
    """
    new_subjects, new_progress = apply_toggle(subjects, subject_id, chapter_id, topic_id, flag)
    if new_progress is None:
        return ToggleResult(syllabus=subjects)
    write = gateway.set_topic_progress(user_id, stream, topic_id, new_progress)
    return ToggleResult(
        syllabus=new_subjects,
        progress=new_progress,
        write=write,
        streak_eligible=flag_attribute(flag) != NON_STREAK_FLAG,
    )
