"""Tests for merging saved progress and toggling progress flags."""
import copy
from concurrent.futures import Future

import pytest

from study_companion.models import Chapter, Subject, Topic, TopicProgress
from study_companion.syllabus import (
    apply_toggle, extract_progress, find_topic, locate_topic, merge, toggle_progress,
)


class RecordingGateway:
    def __init__(self):
        self.writes = []

    def set_topic_progress(self, user_id, stream, topic_id, progress):
        self.writes.append((user_id, stream, topic_id, progress))
        future = Future()
        future.set_result(True)
        return future


def _progress(subjects, topic_id):
    path = locate_topic(subjects, topic_id)
    return find_topic(subjects, path[0], path[1], topic_id).progress


def test_merge_applies_saved_progress(small_syllabus):
    merged = merge(small_syllabus, {"b": TopicProgress(lecture=True, pyq=True)})
    assert _progress(merged, "b") == TopicProgress(lecture=True, pyq=True)


def test_merge_defaults_unsaved_topics_to_cleared(small_syllabus):
    merged = merge(small_syllabus, {"b": TopicProgress(lecture=True)})
    for topic_id in ("a", "c", "d", "e"):
        p = _progress(merged, topic_id)
        assert (p.lecture, p.revision, p.pyq, p.pyq_failed) == (False, False, False, False)


def test_merge_accepts_stored_dicts(small_syllabus):
    merged = merge(small_syllabus, {"d": {"lecture": True, "pyqFailed": True}})
    p = _progress(merged, "d")
    assert p.lecture is True
    assert p.pyq_failed is True
    assert p.revision is False


def test_merge_drops_unknown_topic_ids(small_syllabus):
    merged = merge(small_syllabus, {"zzz": TopicProgress(lecture=True)})
    assert locate_topic(merged, "zzz") is None
    assert merged == merge(small_syllabus, {})


def test_merge_with_empty_or_missing_progress(small_syllabus):
    assert merge(small_syllabus, {}) == merge(small_syllabus, None)


def test_merge_is_idempotent(small_syllabus):
    record = {"a": TopicProgress(lecture=True), "e": TopicProgress(revision=True, pyq_failed=True)}
    once = merge(small_syllabus, record)
    twice = merge(once, record)
    assert once == twice


def test_merge_does_not_mutate_catalog(small_syllabus):
    original = copy.deepcopy(small_syllabus)
    merged = merge(small_syllabus, {"a": TopicProgress(lecture=True)})
    assert small_syllabus == original
    assert merged[0] is not small_syllabus[0]
    assert merged[0].chapters[0] is not small_syllabus[0].chapters[0]
    merged_topic = merged[0].chapters[0].topics[0]
    catalog_topic = small_syllabus[0].chapters[0].topics[0]
    assert merged_topic is not catalog_topic
    assert merged_topic.progress is not catalog_topic.progress


def test_merged_progress_not_shared_with_record(small_syllabus):
    saved = TopicProgress(lecture=True)
    merged = merge(small_syllabus, {"a": saved})
    assert _progress(merged, "a") == saved
    assert _progress(merged, "a") is not saved


def test_merge_treats_missing_lists_as_empty():
    subjects = [
        Subject(id="s1", name="Empty", chapters=None),
        Subject(id="s2", name="Half", chapters=[Chapter(id="c1", name="No topics", topics=None)]),
    ]
    merged = merge(subjects, {"x": TopicProgress(lecture=True)})
    assert merged[0].chapters == []
    assert merged[1].chapters[0].topics == []


def test_merge_fills_missing_topic_progress():
    subjects = [Subject(id="s", name="S", chapters=[
        Chapter(id="c", name="C", topics=[Topic(id="t", name="T", progress=None)]),
    ])]
    merged = merge(subjects, {})
    assert merged[0].chapters[0].topics[0].progress == TopicProgress()


def test_merge_preserves_catalog_fields(small_syllabus):
    merged = merge(small_syllabus, {})
    topic = merged[0].chapters[0].topics[0]
    assert topic.kind == "primary"
    assert topic.importance == 90
    assert topic.name == "Matrices"


def test_extract_progress_round_trip(small_syllabus):
    merged = merge(small_syllabus, {"c": TopicProgress(pyq=True)})
    assert merge(small_syllabus, extract_progress(merged)) == merged


def test_toggle_flips_only_named_flag(small_syllabus):
    start = merge(small_syllabus, {"a": TopicProgress(lecture=True, revision=True, pyq_failed=True)})
    before = copy.deepcopy(start)
    updated, progress = apply_toggle(start, "math", "alg", "a", "pyq")
    assert progress == TopicProgress(lecture=True, revision=True, pyq=True, pyq_failed=True)
    assert _progress(updated, "a") == progress
    for topic_id in ("b", "c", "d", "e"):
        assert _progress(updated, topic_id) == _progress(before, topic_id)
    assert start == before


def test_toggle_twice_restores_flag(small_syllabus):
    start = merge(small_syllabus, {})
    once, _ = apply_toggle(start, "ckt", "trans", "e", "revision")
    twice, _ = apply_toggle(once, "ckt", "trans", "e", "revision")
    assert twice == start


def test_toggle_shares_untouched_branches(small_syllabus):
    start = merge(small_syllabus, {})
    updated, _ = apply_toggle(start, "ckt", "net", "d", "lecture")
    assert updated[0] is start[0]
    assert updated[1] is not start[1]
    assert updated[1].chapters[1] is start[1].chapters[1]


def test_toggle_missing_topic_is_noop(small_syllabus):
    start = merge(small_syllabus, {})
    snapshot = copy.deepcopy(start)
    updated, progress = apply_toggle(start, "math", "alg", "nope", "lecture")
    assert progress is None
    assert updated == snapshot


def test_toggle_wrong_chapter_is_noop(small_syllabus):
    start = merge(small_syllabus, {})
    updated, progress = apply_toggle(start, "math", "net", "a", "lecture")
    assert progress is None
    assert updated is start


def test_toggle_accepts_camel_case_flag(small_syllabus):
    updated, progress = apply_toggle(merge(small_syllabus, {}), "math", "alg", "c", "pyqFailed")
    assert progress.pyq_failed is True


def test_toggle_unknown_flag_raises(small_syllabus):
    with pytest.raises(ValueError):
        apply_toggle(small_syllabus, "math", "alg", "a", "homework")


def test_toggle_progress_writes_through(small_syllabus):
    gateway = RecordingGateway()
    result = toggle_progress(gateway, "u1", "EE", merge(small_syllabus, {}), "math", "alg", "b", "lecture")
    assert result.changed
    assert result.write.result() is True
    assert gateway.writes == [("u1", "EE", "b", TopicProgress(lecture=True))]
    assert _progress(result.syllabus, "b").lecture is True


def test_toggle_progress_streak_eligibility(small_syllabus):
    gateway = RecordingGateway()
    start = merge(small_syllabus, {})
    assert toggle_progress(gateway, "u1", "EE", start, "math", "alg", "a", "revision").streak_eligible
    assert not toggle_progress(gateway, "u1", "EE", start, "math", "alg", "a", "pyqFailed").streak_eligible


def test_toggle_progress_missing_id_skips_write(small_syllabus):
    gateway = RecordingGateway()
    start = merge(small_syllabus, {})
    result = toggle_progress(gateway, "u1", "EE", start, "math", "alg", "ghost", "lecture")
    assert result.syllabus is start
    assert result.write is None
    assert not result.changed
    assert not result.streak_eligible
    assert gateway.writes == []


def test_locate_topic(small_syllabus):
    assert locate_topic(small_syllabus, "e") == ("ckt", "trans")
    assert locate_topic(small_syllabus, "missing") is None
