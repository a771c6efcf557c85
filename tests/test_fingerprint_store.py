"""Tests for fingerprint building and the fingerprint stores."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from plag_evidence.core.errors import PersistenceFailure
from plag_evidence.core.fingerprint_store import (
    ChromaFingerprintStore,
    InMemoryFingerprintStore,
    build_fingerprint,
    hash_text,
)
from plag_evidence.core.types import DocumentFingerprint

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)
TEXT = "The first sentence is long enough to keep. Tiny. The second sentence is also long enough!"


class FailingStore(InMemoryFingerprintStore):
    def _insert(self, fingerprint):
        raise OSError("disk full")


class TestBuildFingerprint:
    """Test cases for build_fingerprint."""

    def test_fields(self):
        fp = build_fingerprint("doc1", "user1", "doc1.txt", TEXT)

        assert fp.document_id == "doc1"
        assert fp.owner_id == "user1"
        assert fp.file_name == "doc1.txt"
        assert len(fp.content_hash) == 32
        assert len(fp.sentence_hashes) == 2
        assert fp.word_count == 16
        assert fp.created_at.tzinfo is not None

    def test_sentence_hash_order_matches_segments(self):
        fp = build_fingerprint("doc1", "user1", "doc1.txt", TEXT)

        assert fp.sentence_hashes == [
            hash_text("the first sentence is long enough to keep"),
            hash_text("the second sentence is also long enough"),
        ]

    def test_deterministic_across_documents(self):
        first = build_fingerprint("a", "u", "a.txt", TEXT)
        second = build_fingerprint("b", "v", "b.txt", TEXT.upper())

        assert first.content_hash == second.content_hash
        assert first.sentence_hashes == second.sentence_hashes

    def test_hash_is_stable(self):
        assert hash_text("hello") == "5d41402abc4b2a76b9719d911017c592"

    def test_invalid_hash_rejected(self):
        with pytest.raises(ValidationError):
            DocumentFingerprint(document_id="d", owner_id="o", content_hash="not-a-hash")

    def test_fingerprint_is_immutable(self):
        fp = build_fingerprint("doc1", "user1", "doc1.txt", TEXT)
        with pytest.raises(ValidationError):
            fp.word_count = 3


class TestInMemoryFingerprintStore:
    """Test cases for InMemoryFingerprintStore."""

    def test_create_and_get(self):
        store = InMemoryFingerprintStore()
        created = store.create_fingerprint("doc1", "user1", "doc1.txt", TEXT)

        assert store.get_fingerprint("doc1") == created
        assert store.count() == 1

    def test_first_fingerprint_kept(self):
        store = InMemoryFingerprintStore()
        first = store.create_fingerprint("doc1", "user1", "doc1.txt", TEXT)
        second = store.create_fingerprint("doc1", "user1", "doc1.txt", "Completely different content goes here.")

        assert second == first
        assert store.count() == 1

    def test_list_recent_orders_excludes_and_limits(self):
        store = InMemoryFingerprintStore()
        for i in range(4):
            store.add(build_fingerprint(f"doc{i}", "u", "", TEXT, created_at=BASE_TIME + timedelta(hours=i)))

        recent = store.list_recent_fingerprints("doc3", 2)
        assert [fp.document_id for fp in recent] == ["doc2", "doc1"]

        everything = store.list_recent_fingerprints(None, 500)
        assert [fp.document_id for fp in everything] == ["doc3", "doc2", "doc1", "doc0"]

    def test_cascade_deletes(self):
        store = InMemoryFingerprintStore()
        store.create_fingerprint("a", "alice", "", TEXT)
        store.create_fingerprint("b", "alice", "", TEXT)
        store.create_fingerprint("c", "bob", "", TEXT)

        assert store.delete_owner("alice") == 2
        assert store.delete_document("c") == 1
        assert store.delete_document("c") == 0
        assert store.count() == 0

    def test_write_failure_wrapped(self):
        with pytest.raises(PersistenceFailure, match="disk full"):
            FailingStore().create_fingerprint("doc1", "user1", "doc1.txt", TEXT)


class TestChromaFingerprintStore:
    """Test cases for ChromaFingerprintStore against a temporary directory."""

    @pytest.fixture
    def store(self, tmp_path):
        return ChromaFingerprintStore(persist_dir=str(tmp_path / "chroma"), collection_name="fingerprints_test")

    def test_round_trip(self, store):
        created = store.create_fingerprint("doc1", "user1", "doc1.txt", TEXT)
        loaded = store.get_fingerprint("doc1")

        assert loaded.document_id == "doc1"
        assert loaded.owner_id == "user1"
        assert loaded.content_hash == created.content_hash
        assert loaded.sentence_hashes == created.sentence_hashes
        assert loaded.word_count == created.word_count
        assert store.get_fingerprint("missing") is None

    def test_one_record_per_document(self, store):
        store.create_fingerprint("doc1", "user1", "doc1.txt", TEXT)
        store.create_fingerprint("doc1", "user1", "doc1.txt", TEXT)

        assert store.count() == 1

    def test_list_recent(self, store):
        for i in range(3):
            store.add(build_fingerprint(f"doc{i}", "u", f"doc{i}.txt", TEXT,
                                        created_at=BASE_TIME + timedelta(days=i)))

        recent = store.list_recent_fingerprints("doc2", 500)
        assert [fp.document_id for fp in recent] == ["doc1", "doc0"]
        assert [fp.document_id for fp in store.list_recent_fingerprints(None, 1)] == ["doc2"]

    def test_delete_owner(self, store):
        store.create_fingerprint("a", "alice", "a.txt", TEXT)
        store.create_fingerprint("b", "bob", "b.txt", TEXT)

        assert store.delete_owner("alice") == 1
        assert store.delete_document("b") == 1
        assert store.count() == 0

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "chroma")
        ChromaFingerprintStore(persist_dir=path).create_fingerprint("doc1", "u", "doc1.txt", TEXT)

        assert ChromaFingerprintStore(persist_dir=path).get_fingerprint("doc1") is not None
