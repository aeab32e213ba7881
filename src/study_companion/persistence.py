"""Persistence gateway: local cache first, remote store second.

Reads come from the local SQLite cache when it holds the document and only
fall back to the remote store on a miss, bounded by ``read_timeout``. Writes
update the cache immediately and are pushed to the remote store in the
background, bounded by ``write_timeout``. Timeouts and network errors are
logged and turned into "no data" or an unconfirmed write; they never reach
the caller.

Concurrent writes to the same document from several devices are
last-write-wins; nothing here detects or resolves conflicts.

Collections are cache-first as well: once the local cache holds any document
of a collection, the remote store is not asked for it again. Notes, sessions,
reflections or resources added from another device only show up here after
the local cache for that collection is cleared.
"""
import logging
import sqlite3
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import datetime, timedelta
from typing import Optional

import requests

from study_companion import db
from study_companion.models import (
    Note, Reflection, ResourceLink, Stream, StudyProfile, StudySession, TopicProgress,
    UserPreferences, parse_timestamp,
)

logger = logging.getLogger(__name__)

DEFAULT_READ_TIMEOUT = 1.2
DEFAULT_WRITE_TIMEOUT = 2.0

TRANSIENT_ERRORS = (FutureTimeout, TimeoutError, requests.RequestException, OSError, ValueError)


def _stream_key(stream: Stream | str) -> str:
    return stream.name if isinstance(stream, Stream) else Stream.from_code(stream).name


def _done(result: bool) -> Future:
    future = Future()
    future.set_result(result)
    return future


class PersistenceGateway:
    """Per-user document access for preferences, profile, stream, progress,
    notes, focus sessions, reflections and resources.

    ``remote`` is any object with ``get``/``set``/``delete``/``list`` methods
    (see ``HttpDocumentStore``). Without one the gateway works from the local
    cache only.
    """

    def __init__(self, db_path: str = db.DEFAULT_DB_PATH, remote=None,
                 read_timeout: float = DEFAULT_READ_TIMEOUT,
                 write_timeout: float = DEFAULT_WRITE_TIMEOUT):
        self.db_path = db_path
        self.remote = remote
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        db.init_db(db_path)
        self._calls = ThreadPoolExecutor(max_workers=4, thread_name_prefix="remote-call")
        self._writes = ThreadPoolExecutor(max_workers=1, thread_name_prefix="write-through")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self, wait: bool = True) -> None:
        self._writes.shutdown(wait=wait)
        self._calls.shutdown(wait=wait)

    # -------- low level --------

    def _bounded(self, timeout: float, fn, *args):
        """Run a remote call, giving up waiting after ``timeout`` seconds.

        The call itself keeps running in its worker when abandoned.
        """
        return self._calls.submit(fn, *args).result(timeout=timeout)

    def read_document(self, path: str) -> Optional[dict]:
        try:
            cached = db.get_document(self.db_path, path)
        except sqlite3.Error as e:
            logger.warning("Cache read failed for %s: %s", path, e)
            cached = None
        if cached is not None or self.remote is None:
            return cached
        try:
            data = self._bounded(self.read_timeout, self.remote.get, path)
        except TRANSIENT_ERRORS as e:
            logger.debug("Read skipped (offline/timeout) for %s: %r", path, e)
            return None
        if data is not None:
            self._cache_put(path, data, merge=False)
        return data

    def read_collection(self, collection: str) -> list[dict]:
        try:
            cached = db.list_documents(self.db_path, collection)
        except sqlite3.Error as e:
            logger.warning("Cache read failed for %s: %s", collection, e)
            cached = []
        if cached or self.remote is None:
            return cached
        try:
            documents = self._bounded(self.read_timeout, self.remote.list, collection)
        except TRANSIENT_ERRORS as e:
            logger.debug("Collection fetch skipped (offline/timeout) for %s: %r", collection, e)
            return []
        # documents keyed by id may omit the id field itself
        documents = {
            doc_id: {"id": doc_id, **data}
            for doc_id, data in (documents or {}).items()
            if isinstance(data, dict)
        }
        try:
            db.replace_collection(self.db_path, collection, documents)
        except sqlite3.Error as e:
            logger.warning("Cache refresh failed for %s: %s", collection, e)
        return list(documents.values())

    def _records(self, cls, collection: str) -> list:
        """Convert a collection to model objects, skipping malformed documents."""
        records = []
        for data in self.read_collection(collection):
            try:
                records.append(cls.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed document in %s: %r", collection, e)
        return records

    def _cache_put(self, path: str, data: dict, merge: bool) -> None:
        try:
            db.set_document(self.db_path, path, data, merge=merge)
        except sqlite3.Error as e:
            logger.warning("Cache write failed for %s: %s", path, e)

    def _push(self, fn, path: str, *args) -> bool:
        try:
            self._bounded(self.write_timeout, fn, path, *args)
        except TRANSIENT_ERRORS as e:
            logger.debug("Write treated as offline for %s: %r", path, e)
            return False
        return True

    def write_document(self, path: str, data: dict, merge: bool = False) -> Future:
        """Write through. The returned future resolves to True once the remote
        store confirmed the write, False if it was not confirmed."""
        self._cache_put(path, data, merge)
        if self.remote is None:
            return _done(False)
        return self._writes.submit(self._push, self.remote.set, path, data, merge)

    def delete_document(self, path: str) -> Future:
        try:
            db.delete_document(self.db_path, path)
        except sqlite3.Error as e:
            logger.warning("Cache delete failed for %s: %s", path, e)
        if self.remote is None:
            return _done(False)
        return self._writes.submit(self._push, self.remote.delete, path)

    # -------- user document --------

    def _user_field(self, user_id: str, name: str):
        doc = self.read_document(f"users/{user_id}")
        return doc.get(name) if doc else None

    def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        data = self._user_field(user_id, "preferences")
        return UserPreferences.from_dict(data) if data else None

    def save_preferences(self, user_id: str, preferences: UserPreferences) -> Future:
        return self.write_document(f"users/{user_id}", {"preferences": preferences.to_dict()}, merge=True)

    def get_profile(self, user_id: str) -> Optional[StudyProfile]:
        data = self._user_field(user_id, "profile")
        return StudyProfile.from_dict(data) if data else None

    def save_profile(self, user_id: str, profile: StudyProfile) -> Future:
        return self.write_document(f"users/{user_id}", {"profile": profile.to_dict()}, merge=True)

    def get_stream(self, user_id: str) -> Optional[Stream]:
        code = self._user_field(user_id, "stream")
        if not code:
            return None
        try:
            return Stream.from_code(code)
        except (KeyError, ValueError):
            logger.warning("Ignoring unknown saved stream %r for %s", code, user_id)
            return None

    def set_stream(self, user_id: str, stream: Stream | str) -> Future:
        return self.write_document(f"users/{user_id}", {"stream": _stream_key(stream)}, merge=True)

    # -------- progress --------

    def get_progress(self, user_id: str, stream: Stream | str) -> dict[str, TopicProgress]:
        data = self.read_document(f"users/{user_id}/progress/{_stream_key(stream)}") or {}
        return {
            topic_id: TopicProgress.from_dict(value)
            for topic_id, value in data.items()
            if isinstance(value, dict)
        }

    def set_topic_progress(self, user_id: str, stream: Stream | str, topic_id: str,
                           progress: TopicProgress) -> Future:
        return self.write_document(
            f"users/{user_id}/progress/{_stream_key(stream)}",
            {topic_id: progress.to_dict()},
            merge=True,
        )

    # -------- notes --------

    def get_notes(self, user_id: str) -> list[Note]:
        notes = self._records(Note, f"users/{user_id}/notes")
        return sorted(notes, key=lambda n: n.last_modified, reverse=True)

    def save_note(self, user_id: str, note: Note) -> Future:
        return self.write_document(f"users/{user_id}/notes/{note.id}", note.to_dict())

    def delete_note(self, user_id: str, note_id: str) -> Future:
        return self.delete_document(f"users/{user_id}/notes/{note_id}")

    # -------- focus sessions --------

    def save_session(self, user_id: str, session: StudySession) -> Future:
        return self.write_document(f"users/{user_id}/sessions/{session.id}", session.to_dict())

    def get_recent_sessions(self, user_id: str, days: int = 60,
                            now: Optional[datetime] = None) -> list[StudySession]:
        start = (now or datetime.now()) - timedelta(days=days)
        stamped = [
            (parse_timestamp(s.timestamp), s)
            for s in self._records(StudySession, f"users/{user_id}/sessions")
        ]
        recent = [(stamp, s) for stamp, s in stamped if stamp is not None and stamp >= start]
        return [s for _, s in sorted(recent, key=lambda pair: pair[0], reverse=True)]

    # -------- reflections --------

    def get_reflections(self, user_id: str, limit: int = 30) -> list[Reflection]:
        reflections = self._records(Reflection, f"users/{user_id}/reflections")
        return sorted(reflections, key=lambda r: r.date, reverse=True)[:limit]

    def save_reflection(self, user_id: str, reflection: Reflection) -> Future:
        return self.write_document(f"users/{user_id}/reflections/{reflection.id}", reflection.to_dict())

    # -------- resources --------

    def get_resources(self, user_id: str) -> list[ResourceLink]:
        resources = self._records(ResourceLink, f"users/{user_id}/resources")
        return sorted(resources, key=lambda r: r.added_at, reverse=True)

    def save_resource(self, user_id: str, resource: ResourceLink) -> Future:
        return self.write_document(f"users/{user_id}/resources/{resource.id}", resource.to_dict())

    def delete_resource(self, user_id: str, resource_id: str) -> Future:
        return self.delete_document(f"users/{user_id}/resources/{resource_id}")
