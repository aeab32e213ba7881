"""Data classes for the study companion domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp as naive local time.

    Web clients write UTC with a trailing ``Z``; those are converted to local
    time so they compare with ``datetime.now()``. Blank or malformed values
    give None.
    """
    if not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class Stream(Enum):
    CS = "Computer Science & Information Technology"
    ECE = "Electronics & Communication Engineering"
    EE = "Electrical Engineering"
    IN = "Instrumentation Engineering"
    CE = "Civil Engineering"
    ME = "Mechanical Engineering"
    DA = "Data Science & Artificial Intelligence"

    @classmethod
    def from_code(cls, code: str) -> "Stream":
        """Look up a stream by its short code (``"CS"``) or display name."""
        if code in cls.__members__:
            return cls[code]
        return cls(code)


@dataclass
class TopicProgress:
    lecture: bool = False
    revision: bool = False
    pyq: bool = False
    pyq_failed: bool = False
    confidence: Optional[str] = None  # low | medium | high

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "TopicProgress":
        data = data or {}
        return cls(
            lecture=bool(data.get("lecture", False)),
            revision=bool(data.get("revision", False)),
            pyq=bool(data.get("pyq", False)),
            pyq_failed=bool(data.get("pyqFailed", data.get("pyq_failed", False))),
            confidence=data.get("confidence"),
        )

    def to_dict(self) -> dict:
        out = {
            "lecture": self.lecture,
            "revision": self.revision,
            "pyq": self.pyq,
            "pyqFailed": self.pyq_failed,
        }
        if self.confidence is not None:
            out["confidence"] = self.confidence
        return out


@dataclass
class Topic:
    id: str
    name: str
    kind: str = "secondary"  # primary | secondary
    importance: int = 0
    progress: Optional[TopicProgress] = field(default_factory=TopicProgress)

    @property
    def is_primary(self) -> bool:
        return self.kind == "primary"


@dataclass
class Chapter:
    id: str
    name: str
    topics: Optional[list] = field(default_factory=list)


@dataclass
class Subject:
    id: str
    name: str
    chapters: Optional[list] = field(default_factory=list)


@dataclass
class User:
    id: str
    name: str = ""
    email: str = ""
    avatar_url: Optional[str] = None


@dataclass
class UserPreferences:
    target_year: str = "2027"
    attempt_type: str = "Serious"
    primary_goal: str = "IIT Admission"
    target_marks: int = 60
    secondary_goal: Optional[str] = None
    theme_color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "UserPreferences":
        return cls(
            target_year=str(data.get("targetYear", "2027")),
            attempt_type=data.get("attemptType", "Serious"),
            primary_goal=data.get("primaryGoal", "IIT Admission"),
            target_marks=int(data.get("targetMarks", 60)),
            secondary_goal=data.get("secondaryGoal"),
            theme_color=data.get("themeColor"),
        )

    def to_dict(self) -> dict:
        out = {
            "targetYear": self.target_year,
            "attemptType": self.attempt_type,
            "primaryGoal": self.primary_goal,
            "targetMarks": self.target_marks,
        }
        if self.secondary_goal is not None:
            out["secondaryGoal"] = self.secondary_goal
        if self.theme_color is not None:
            out["themeColor"] = self.theme_color
        return out


@dataclass
class StudyProfile:
    daily_hours: float = 0.0
    streak: int = 0
    last_study_date: Optional[str] = None  # ISO datetime
    trial_started_at: Optional[str] = None  # ISO datetime
    is_paid: bool = False
    subscription_expiry_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "StudyProfile":
        return cls(
            daily_hours=float(data.get("dailyHours", 0)),
            streak=int(data.get("streak", 0)),
            last_study_date=data.get("lastStudyDate"),
            trial_started_at=data.get("trialStartedAt"),
            is_paid=bool(data.get("isPaid", False)),
            subscription_expiry_date=data.get("subscriptionExpiryDate"),
        )

    def to_dict(self) -> dict:
        out = {
            "dailyHours": self.daily_hours,
            "streak": self.streak,
            "lastStudyDate": self.last_study_date,
            "trialStartedAt": self.trial_started_at,
            "isPaid": self.is_paid,
        }
        if self.subscription_expiry_date is not None:
            out["subscriptionExpiryDate"] = self.subscription_expiry_date
        return out


@dataclass
class Attachment:
    id: str
    name: str
    url: str
    type: str = "other"  # image | pdf | other
    size: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Attachment":
        return cls(id=data["id"], name=data.get("name", ""), url=data.get("url", ""),
                   type=data.get("type", "other"), size=int(data.get("size", 0)))

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "url": self.url, "type": self.type, "size": self.size}


@dataclass
class Note:
    id: str
    title: str
    content: str = ""
    subject: str = ""
    type: str = "general"  # concept | formula | mistake | general
    priority: str = "medium"  # high | medium | low
    tags: list = field(default_factory=list)
    attachments: list = field(default_factory=list)
    created_at: str = ""
    last_modified: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Note":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            content=data.get("content", ""),
            subject=data.get("subject", ""),
            type=data.get("type", "general"),
            priority=data.get("priority", "medium"),
            tags=list(data.get("tags") or []),
            attachments=[Attachment.from_dict(a) for a in data.get("attachments") or []],
            created_at=data.get("createdAt", ""),
            last_modified=data.get("lastModified", ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "subject": self.subject,
            "type": self.type,
            "priority": self.priority,
            "tags": list(self.tags),
            "attachments": [a.to_dict() for a in self.attachments],
            "createdAt": self.created_at,
            "lastModified": self.last_modified,
        }


@dataclass
class StudySession:
    id: str
    duration_minutes: int
    type: str = "pomodoro"  # pomodoro | deep-work | custom
    timestamp: str = ""
    completed: bool = True
    intent: Optional[str] = None
    distractions: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "StudySession":
        return cls(
            id=data["id"],
            duration_minutes=int(data.get("durationMinutes", 0)),
            type=data.get("type", "pomodoro"),
            timestamp=data.get("timestamp", ""),
            completed=bool(data.get("completed", True)),
            intent=data.get("intent"),
            distractions=int(data.get("distractions", 0)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "durationMinutes": self.duration_minutes,
            "type": self.type,
            "timestamp": self.timestamp,
            "completed": self.completed,
            "intent": self.intent,
            "distractions": self.distractions,
        }


@dataclass
class Reflection:
    id: str
    date: str
    wins: str = ""
    blockers: str = ""
    mood: int = 3
    tags: list = field(default_factory=list)
    ai_analysis: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Reflection":
        return cls(
            id=data["id"],
            date=data.get("date", ""),
            wins=data.get("wins", ""),
            blockers=data.get("blockers", ""),
            mood=int(data.get("mood", 3)),
            tags=list(data.get("tags") or []),
            ai_analysis=data.get("aiAnalysis"),
        )

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "date": self.date,
            "wins": self.wins,
            "blockers": self.blockers,
            "mood": self.mood,
            "tags": list(self.tags),
        }
        if self.ai_analysis is not None:
            out["aiAnalysis"] = self.ai_analysis
        return out


@dataclass
class ResourceLink:
    id: str
    title: str
    url: str
    type: str = "article"  # video | playlist | pdf | article
    subject: str = ""
    added_at: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "ResourceLink":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            url=data.get("url", ""),
            type=data.get("type", "article"),
            subject=data.get("subject", ""),
            added_at=data.get("addedAt", ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "type": self.type,
            "subject": self.subject,
            "addedAt": self.added_at,
        }
