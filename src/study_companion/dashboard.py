"""Syllabus statistics and dashboard scoring."""
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from study_companion.models import Subject, TopicProgress

# Projected score per percentage point of lectures completed.
PROJECTION_FACTOR = 0.85
EXAM_MONTH = 2
EXAM_DAY = 1

_CLEARED = TopicProgress()


def js_round(value: float) -> int:
    """Round half up, matching Math.round used by the historical dashboard."""
    return math.floor(value + 0.5)


def get_progress_label(progress: float) -> str:
    if progress >= 75:
        return "ON TRACK"
    elif progress >= 50:
        return "HALFWAY"
    elif progress >= 25:
        return "STARTED"
    return "BEHIND"


def get_progress_color(progress: float) -> str:
    if progress >= 75:
        return "green"
    elif progress >= 50:
        return "yellow"
    elif progress >= 25:
        return "dark_orange"
    return "red"


def get_target_gap_label(target_marks: int, projected_score: int) -> str:
    gap = target_marks - projected_score
    if gap > 60:
        return "UNREALISTIC"
    elif gap > 40:
        return "VERY AMBITIOUS"
    elif gap > 20:
        return "OPTIMISTIC"
    return "REALISTIC"


def exam_date(target_year: int | str) -> datetime:
    """Exam day for a target year: February 1st, local time."""
    return datetime(int(target_year), EXAM_MONTH, EXAM_DAY)


def days_remaining(target: date | datetime, now: Optional[datetime] = None) -> int:
    """Whole days left until ``target``, rounded up. Negative once it has passed."""
    if not isinstance(target, datetime):
        target = datetime(target.year, target.month, target.day)
    now = now or datetime.now()
    return math.ceil((target - now).total_seconds() / 86400)


@dataclass
class NextTopic:
    subject_id: str
    subject: str
    chapter_id: str
    chapter: str
    topic_id: str
    topic: str


@dataclass
class SubjectProgress:
    id: str
    name: str
    progress: float
    total: int


@dataclass
class Stats:
    total_topics: int = 0
    primary_topics: int = 0
    lecture_done: int = 0
    primary_lecture_done: int = 0
    revision_done: int = 0
    pyq_done: int = 0
    weak_count: int = 0
    next_topic: Optional[NextTopic] = None
    subjects: list = field(default_factory=list)
    overall_progress: int = 0
    projected_score: int = 0
    days_remaining: int = 0
    primary_completion: int = 0


def compute_stats(subjects: list[Subject], target_date: date | datetime,
                  now: Optional[datetime] = None) -> Stats:
    """Walk the syllabus once, subject by subject, and aggregate progress.

    ``next_topic`` is the first topic in catalog order whose lecture is not
    done. Missing chapter or topic lists count as empty.
    """
    stats = Stats()
    for subject in subjects or []:
        sub_total = 0
        sub_lecture = 0
        for chapter in subject.chapters or []:
            for topic in chapter.topics or []:
                progress = topic.progress or _CLEARED
                primary = topic.kind == "primary"
                stats.total_topics += 1
                sub_total += 1
                if primary:
                    stats.primary_topics += 1
                if progress.lecture:
                    stats.lecture_done += 1
                    sub_lecture += 1
                    if primary:
                        stats.primary_lecture_done += 1
                elif stats.next_topic is None:
                    stats.next_topic = NextTopic(
                        subject_id=subject.id, subject=subject.name,
                        chapter_id=chapter.id, chapter=chapter.name,
                        topic_id=topic.id, topic=topic.name,
                    )
                if progress.revision:
                    stats.revision_done += 1
                if progress.pyq:
                    stats.pyq_done += 1
                if progress.pyq_failed:
                    stats.weak_count += 1
        stats.subjects.append(SubjectProgress(
            id=subject.id,
            name=subject.name,
            progress=(sub_lecture / sub_total) * 100 if sub_total > 0 else 0,
            total=sub_total,
        ))

    if stats.total_topics > 0:
        stats.overall_progress = js_round(stats.lecture_done / stats.total_topics * 100)
    if stats.primary_topics > 0:
        stats.primary_completion = js_round(stats.primary_lecture_done / stats.primary_topics * 100)
    stats.projected_score = js_round(stats.overall_progress * PROJECTION_FACTOR)
    stats.days_remaining = days_remaining(target_date, now)
    return stats
