"""Tests for DuplicateDetector — per-item queries, resolution and the sweep."""

from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from hackfeed.config import DuplicatesConfig
from hackfeed.content.models import ContentRecord, DeletionReason
from hackfeed.content.store import ArchiveStore, ContentStore
from hackfeed.dedup.detector import DuplicateDetector
from hackfeed.errors import InvalidArgumentError, NotFoundError, TransitionError

BASE = datetime(2026, 5, 1, tzinfo=UTC)

STRETCH_BODY = (
    "Stand up every hour and reach toward the ceiling.\n"
    "Roll your shoulders backward slowly ten times.\n"
    "Finish with gentle neck rotations in both directions."
)


def _make_record(
    title: str,
    body: str = "Put spare coins into a jar every evening.",
    category_id: str = "finance",
    minutes: int = 0,
) -> ContentRecord:
    return ContentRecord(
        title=title,
        body=body,
        summary=title,
        category_id=category_id,
        created_at=BASE + timedelta(minutes=minutes),
    )


@pytest.fixture
def stores(tmp_path: Path) -> tuple[ContentStore, ArchiveStore]:
    return ContentStore(tmp_path), ArchiveStore(tmp_path)


@pytest.fixture
def detector(stores) -> DuplicateDetector:
    content, archive = stores
    return DuplicateDetector(content, archive)


class TestFindPotentialDuplicates:
    def test_ranks_candidates(self, stores, detector):
        content, _ = stores
        target = content.insert(_make_record("Save Money Fast"))
        exact = content.insert(_make_record("save money fast"))
        near = content.insert(_make_record("Save Money Fest", body="Completely other text."))
        content.insert(_make_record("Save Money Faster"))  # substring score 0.8 * 15/17
        content.insert(_make_record("Learn to juggle"))

        results = detector.find_potential_duplicates(target.id)

        assert [c.id for c in results] == [exact.id, near.id]
        assert results[0].title_similarity == 1.0
        assert results[0].overall_similarity == pytest.approx(1.0)
        assert results[1].overall_similarity < results[0].overall_similarity

    def test_excludes_target(self, stores, detector):
        content, _ = stores
        target = content.insert(_make_record("Save Money Fast"))
        assert detector.find_potential_duplicates(target.id) == []

    def test_category_filter(self, stores, detector):
        content, _ = stores
        target = content.insert(_make_record("Save Money Fast"))
        content.insert(_make_record("Save Money Fast", category_id="other"))

        assert len(detector.find_potential_duplicates(target.id)) == 1
        assert detector.find_potential_duplicates(target.id, "finance") == []

    def test_missing_target(self, detector):
        with pytest.raises(NotFoundError):
            detector.find_potential_duplicates("missing")


class TestMarkAsDuplicate:
    def test_archives_with_reference(self, stores, detector):
        content, archive = stores
        original = content.insert(_make_record("Original"))
        dup = content.insert(_make_record("Copy"))

        archived = detector.mark_as_duplicate(dup.id, original.id)

        assert archived is not None
        assert archived.reason == DeletionReason.DUPLICATE
        assert archived.metadata["duplicate_of"] == original.id
        assert archived.content.is_duplicate is True
        assert archived.content.original_content_id == original.id
        assert not content.exists(dup.id)
        assert content.exists(original.id)

    def test_missing_content_is_soft(self, detector):
        assert detector.mark_as_duplicate("gone") is None

    def test_unresolved_original_dropped(self, stores, detector):
        content, _ = stores
        dup = content.insert(_make_record("Copy"))

        archived = detector.mark_as_duplicate(dup.id, "vanished")

        assert archived is not None
        assert "duplicate_of" not in archived.metadata
        assert archived.content.original_content_id is None

    def test_self_reference_rejected(self, stores, detector):
        content, _ = stores
        record = content.insert(_make_record("Only"))
        with pytest.raises(InvalidArgumentError):
            detector.mark_as_duplicate(record.id, record.id)
        assert content.exists(record.id)


class TestResolveDuplicates:
    def test_requires_two_ids(self, detector):
        with pytest.raises(InvalidArgumentError):
            detector.resolve_duplicates(["only-one"])
        with pytest.raises(InvalidArgumentError):
            detector.resolve_duplicates([])

    def test_keeps_first(self, stores, detector):
        content, archive = stores
        a = content.insert(_make_record("A"))
        b = content.insert(_make_record("B"))
        c = content.insert(_make_record("C"))

        result = detector.resolve_duplicates([a.id, b.id, c.id])

        assert result.kept == a.id
        assert result.marked_as_duplicates == [b.id, c.id]
        assert content.exists(a.id)
        assert not content.exists(b.id)
        assert all(r.metadata["duplicate_of"] == a.id for r in archive.find())

    def test_kept_repeated_rejected(self, stores, detector):
        content, _ = stores
        a = content.insert(_make_record("A"))
        with pytest.raises(InvalidArgumentError):
            detector.resolve_duplicates([a.id, a.id])

    def test_skips_missing(self, stores, detector):
        content, _ = stores
        a = content.insert(_make_record("A"))
        b = content.insert(_make_record("B"))

        result = detector.resolve_duplicates([a.id, "gone", b.id])
        assert result.marked_as_duplicates == [b.id]


class TestSweep:
    def test_archives_later_created_item(self, stores, detector):
        content, archive = stores
        first = content.insert(_make_record("5 Minute Stretch Routine", STRETCH_BODY, "health"))
        second = content.insert(
            _make_record("5-Minute Stretch Routine!!", STRETCH_BODY, "health", minutes=5)
        )

        result = detector.sweep(now=BASE)

        assert result.detected == 1
        assert result.archived == 1
        assert result.failed == 0
        assert content.exists(first.id)
        assert not content.exists(second.id)
        archived = archive.find_by_original_id(second.id)
        assert archived is not None
        assert archived.metadata["duplicate_of"] == first.id

    def test_sweep_score(self, detector):
        a = _make_record("5 Minute Stretch Routine", STRETCH_BODY)
        b = _make_record("5-Minute Stretch Routine!!", STRETCH_BODY)
        # body 1.0 * 0.7 + title 1/5 * 0.3
        assert detector.sweep_similarity(a, b) == pytest.approx(0.76)

    def test_insertion_order_does_not_matter(self, stores, detector):
        content, _ = stores
        later = content.insert(_make_record("Daily Budget Review", minutes=10))
        earlier = content.insert(_make_record("Daily Budget Review", minutes=0))

        detector.sweep()

        assert content.exists(earlier.id)
        assert not content.exists(later.id)

    def test_only_within_category(self, stores, detector):
        content, _ = stores
        content.insert(_make_record("Daily Budget Review", category_id="a"))
        content.insert(_make_record("Daily Budget Review", category_id="b"))

        result = detector.sweep()
        assert result.detected == 0
        assert len(content) == 2

    def test_threshold_is_strict(self, stores):
        content, archive = stores
        detector = DuplicateDetector(
            content, archive, DuplicatesConfig(sweep_threshold=0.76)
        )
        content.insert(_make_record("5 Minute Stretch Routine", STRETCH_BODY, "health"))
        content.insert(
            _make_record("5-Minute Stretch Routine!!", STRETCH_BODY, "health", minutes=1)
        )
        with patch.object(detector, "sweep_similarity", return_value=0.76):
            assert detector.sweep().detected == 0

    def test_cluster_keeps_earliest(self, stores, detector):
        content, _ = stores
        first = content.insert(_make_record("Daily Budget Review", minutes=0))
        content.insert(_make_record("Daily Budget Review", minutes=1))
        content.insert(_make_record("Daily Budget Review", minutes=2))

        result = detector.sweep()

        assert result.detected == 2
        assert result.archived == 2
        assert [r.id for r in content.find()] == [first.id]

    def test_failure_counted_and_run_continues(self, stores, detector):
        content, _ = stores
        content.insert(_make_record("Daily Budget Review", minutes=0))
        content.insert(_make_record("Daily Budget Review", minutes=1))
        content.insert(_make_record("Weekly Meal Plan", body="Cook grains in bulk on sunday."))
        content.insert(
            _make_record("Weekly Meal Plan", body="Cook grains in bulk on sunday.", minutes=3)
        )

        original = detector.mark_as_duplicate
        calls = {"n": 0}

        def flaky(content_id, original_id=None, *, now=None):
            calls["n"] += 1
            if calls["n"] == 1:
                raise TransitionError(
                    "boom", content_id=content_id, reason="duplicate", phase="delete"
                )
            return original(content_id, original_id, now=now)

        with patch.object(detector, "mark_as_duplicate", side_effect=flaky):
            result = detector.sweep()

        assert result.detected == 2
        assert result.failed == 1
        assert result.archived == 1

    def test_empty_store(self, detector):
        result = detector.sweep()
        assert result.model_dump() == {"processed": 0, "detected": 0, "archived": 0, "failed": 0}
