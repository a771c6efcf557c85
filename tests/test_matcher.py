"""Tests for the cross-document matcher."""

from datetime import datetime, timedelta, timezone

import pytest

from plag_evidence.core.fingerprint_store import (
    InMemoryFingerprintStore,
    build_fingerprint,
    hash_text,
)
from plag_evidence.core.matcher import CrossDocumentMatcher, round_half_up, sentence_match_percentage
from plag_evidence.core.types import DocumentFingerprint

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

ALPHA = "Sentence alpha is long enough here."
BETA = "Sentence beta is long enough here."
GAMMA = "Sentence gamma is long enough here."
DELTA = "Sentence delta is totally different now."


def add_document(store, document_id, text, minutes=0, owner_id="owner"):
    return store.add(build_fingerprint(
        document_id, owner_id, f"{document_id}.txt", text,
        created_at=BASE_TIME + timedelta(minutes=minutes)
    ))


class AllRecordsStore(InMemoryFingerprintStore):
    """Store that ignores the exclusion argument."""

    def list_recent_fingerprints(self, excluding_document_id, limit):
        return super().list_recent_fingerprints(None, limit)


@pytest.fixture
def store():
    return InMemoryFingerprintStore()


class TestPercentage:
    """Test cases for percentage arithmetic."""

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(7.69) == 8

    def test_percentage_bounds(self):
        assert sentence_match_percentage(0, 0) == 0
        assert sentence_match_percentage(1, 2) == 50
        assert sentence_match_percentage(2, 3) == 67
        assert sentence_match_percentage(3, 3) == 100


class TestCrossDocumentMatcher:
    """Test cases for CrossDocumentMatcher."""

    def test_partial_overlap_worked_example(self, store):
        add_document(store, "old", f"{ALPHA} {BETA} {GAMMA}")
        matcher = CrossDocumentMatcher(store)

        result = matcher.match("new", f"{ALPHA} {DELTA}")

        assert len(result.matches) == 1
        match = result.matches[0]
        assert match.other_document_id == "old"
        assert match.match_count == 1
        assert match.match_percentage == 50
        assert not match.exact_duplicate
        assert match.matched_original_sentences == ["Sentence alpha is long enough here"]
        assert match.uploaded_at == BASE_TIME
        assert result.highest_match == 50
        assert result.has_internal_matches

    def test_hash_level_example(self, store):
        h1, h2, h3, h4 = (hash_text(f"sentence number {i} long enough") for i in range(4))
        store.add(DocumentFingerprint(
            document_id="candidate",
            owner_id="owner",
            content_hash=hash_text("candidate"),
            sentence_hashes=[h1, h2, h3],
            created_at=BASE_TIME
        ))
        matcher = CrossDocumentMatcher(store)

        result = matcher.match("query", "Sentence number 0 long enough. Sentence number 3 long enough.")

        assert result.matches[0].match_count == 1
        assert result.matches[0].match_percentage == 50

    def test_identical_normalized_text_short_circuits(self, store):
        add_document(store, "old", "HELLO there, this is the first sentence of it! And THIS is the second sentence, right?")
        matcher = CrossDocumentMatcher(store)

        text = "hello there this is the first sentence of it. and this is the second sentence right?"
        result = matcher.match("new", text)

        assert result.matches[0].match_percentage == 100
        assert result.matches[0].match_count == 2
        assert result.matches[0].exact_duplicate
        assert result.matches[0].matched_original_sentences == [
            "hello there this is the first sentence of it",
            "and this is the second sentence right",
        ]

    def test_never_matches_itself(self, store):
        text = f"{ALPHA} {BETA}"
        add_document(store, "doc", text)

        assert CrossDocumentMatcher(store).match("doc", text).matches == []

    def test_never_matches_itself_when_store_does_not_exclude(self):
        store = AllRecordsStore()
        text = f"{ALPHA} {BETA}"
        add_document(store, "doc", text)

        assert CrossDocumentMatcher(store).match("doc", text).matches == []

    def test_no_overlap(self, store):
        add_document(store, "old", f"{ALPHA} {BETA}")

        result = CrossDocumentMatcher(store).match("new", f"{GAMMA} {DELTA}")

        assert result.matches == []
        assert result.highest_match == 0
        assert result.candidates_checked == 1

    def test_below_materiality_threshold_excluded(self, store):
        shared = "This shared sentence appears in both documents."
        add_document(store, "old", shared)
        query = " ".join(f"Unique query sentence number {i} is here." for i in range(12)) + " " + shared

        assert CrossDocumentMatcher(store).match("new", query).matches == []

        lenient = CrossDocumentMatcher(store, materiality_threshold=5).match("new", query)
        assert lenient.matches[0].match_percentage == 8
        assert lenient.matches[0].match_count == 1

    def test_candidate_duplicates_not_double_counted(self, store):
        add_document(store, "old", f"{ALPHA} {ALPHA} {ALPHA}")

        result = CrossDocumentMatcher(store).match("new", f"{ALPHA} {DELTA}")

        assert result.matches[0].match_count == 1
        assert result.matches[0].match_percentage == 50

    def test_sorted_and_limited_to_top_k(self, store):
        add_document(store, "half", f"{ALPHA} {DELTA}", minutes=1)
        for i in range(6):
            add_document(store, f"full{i}", f"{ALPHA} {BETA} {GAMMA}", minutes=2 + i)
        add_document(store, "third", f"{GAMMA} {DELTA}", minutes=10)

        result = CrossDocumentMatcher(store).match("new", f"{ALPHA} {BETA} {GAMMA}")

        assert len(result.matches) == 5
        assert all(m.match_percentage == 100 for m in result.matches)
        # equal percentages keep newest first
        assert result.matches[0].other_document_id == "full5"

        result = CrossDocumentMatcher(store, top_k=10).match("new", f"{ALPHA} {BETA} {GAMMA}")
        percentages = [m.match_percentage for m in result.matches]
        assert percentages == sorted(percentages, reverse=True)
        assert percentages[-2:] == [33, 33]

    def test_candidate_window_bounds_search(self, store):
        add_document(store, "old_match", f"{ALPHA} {BETA}", minutes=0)
        add_document(store, "new_unrelated", f"{GAMMA} {DELTA}", minutes=5)

        windowed = CrossDocumentMatcher(store, candidate_window=1).match("query", f"{ALPHA} {BETA}")
        assert windowed.matches == []
        assert windowed.candidates_checked == 1

        full = CrossDocumentMatcher(store).match("query", f"{ALPHA} {BETA}")
        assert full.matches[0].other_document_id == "old_match"

    def test_percentage_within_bounds(self, store):
        add_document(store, "old", f"{ALPHA} {BETA} {GAMMA} {DELTA}")

        result = CrossDocumentMatcher(store).match("new", f"{ALPHA} {ALPHA} {BETA}")

        assert all(0 <= m.match_percentage <= 100 for m in result.matches)
        assert result.matches[0].match_percentage == 100

    def test_empty_store(self, store):
        result = CrossDocumentMatcher(store).match("new", f"{ALPHA} {BETA}")
        assert result.matches == []
        assert not result.has_internal_matches
