"""Daily reflections: wins, blockers and mood."""
from datetime import datetime
from typing import Optional

from study_companion.models import Reflection

MOOD_LABELS = {1: "drained", 2: "low", 3: "steady", 4: "good", 5: "great"}


def get_mood_label(mood: int) -> str:
    return MOOD_LABELS.get(mood, "steady")


def create_reflection(wins: str, blockers: str, mood: int = 3, tags: Optional[list] = None,
                      now: Optional[datetime] = None) -> Optional[Reflection]:
    """Build a reflection, or None when both wins and blockers are blank."""
    if mood not in MOOD_LABELS:
        raise ValueError(f"Mood must be between 1 and 5, got {mood!r}")
    if not wins.strip() and not blockers.strip():
        return None
    now = now or datetime.now()
    return Reflection(
        id=str(int(now.timestamp() * 1000)),
        date=now.isoformat(),
        wins=wins.strip(),
        blockers=blockers.strip(),
        mood=mood,
        tags=list(tags or []),
    )


def save_reflection(gateway, user_id: str, wins: str, blockers: str, mood: int = 3,
                    tags: Optional[list] = None, now: Optional[datetime] = None) -> Optional[Reflection]:
    reflection = create_reflection(wins, blockers, mood, tags, now)
    if reflection is not None:
        gateway.save_reflection(user_id, reflection)
    return reflection


def mood_trend(reflections: list[Reflection], limit: int = 7) -> list[tuple[str, int]]:
    """(date, mood) for the most recent entries, oldest first."""
    latest = sorted(reflections, key=lambda r: r.date, reverse=True)[:limit]
    return [(r.date[:10], r.mood) for r in reversed(latest)]


def average_mood(reflections: list[Reflection]) -> float:
    if not reflections:
        return 0.0
    return round(sum(r.mood for r in reflections) / len(reflections), 1)
