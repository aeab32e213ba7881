"""Static syllabus catalog shipped with the package."""
import json
from functools import lru_cache
from pathlib import Path

from study_companion.models import Chapter, Stream, Subject, Topic

CONTENT_DIR = Path(__file__).parent / "content"


@lru_cache(maxsize=1)
def _load_raw() -> dict:
    return json.loads((CONTENT_DIR / "catalog.json").read_text(encoding="utf-8"))


def catalog_version() -> int:
    return _load_raw()["version"]


def available_streams() -> list[Stream]:
    """Streams present in the catalog, in catalog order."""
    return [Stream.from_code(code) for code in _load_raw()["streams"]]


def build_subjects(raw_subjects: list) -> list[Subject]:
    """Build a Subject tree from plain catalog dicts.

    Missing ``chapters``/``topics`` keys become empty lists. Every topic starts
    with all progress flags cleared.
    """
    subjects = []
    for s in raw_subjects or []:
        chapters = []
        for c in s.get("chapters") or []:
            topics = [
                Topic(
                    id=t["id"],
                    name=t.get("name", t["id"]),
                    kind=t.get("kind", "secondary"),
                    importance=int(t.get("importance", 0)),
                )
                for t in c.get("topics") or []
            ]
            chapters.append(Chapter(id=c["id"], name=c.get("name", c["id"]), topics=topics))
        subjects.append(Subject(id=s["id"], name=s.get("name", s["id"]), chapters=chapters))
    return subjects


def get_subjects(stream: Stream | str) -> list[Subject]:
    """Return a fresh copy of the catalog subjects for a stream.

    Callers may freely use the result; the cached catalog data is never shared.
    Raises KeyError for a stream that is not in the catalog.
    """
    if isinstance(stream, str):
        stream = Stream.from_code(stream)
    entry = _load_raw()["streams"][stream.name]
    return build_subjects(entry["subjects"])


def topic_ids(stream: Stream | str) -> set[str]:
    return {
        topic.id
        for subject in get_subjects(stream)
        for chapter in subject.chapters
        for topic in chapter.topics
    }
