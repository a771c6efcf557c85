"""Fingerprint store: one append-only content summary per scanned document.

Hashes are 128-bit MD5 digests. They are an approximation for similarity
lookup: collisions are tolerated, and the hashes must not be used for any
security-sensitive purpose.
"""

import hashlib
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

import chromadb
import numpy as np
from chromadb.config import Settings

from .errors import PersistenceFailure
from .log import base_logger
from .normalizer import DEFAULT_MIN_SENTENCE_LENGTH, count_words, normalize_text, segment
from .types import DocumentFingerprint

logger = base_logger.getChild('fingerprint_store')


def hash_text(text: str) -> str:
    """Return the 128-bit hex digest of text. Not suitable for security use."""
    return hashlib.md5(text.encode('utf-8')).hexdigest()


def build_fingerprint(
    document_id: str,
    owner_id: str,
    file_name: str,
    text: str,
    min_sentence_length: int = DEFAULT_MIN_SENTENCE_LENGTH,
    created_at: Optional[datetime] = None
) -> DocumentFingerprint:
    """
    Compute the fingerprint of a document.

    Args:
        document_id: Document identifier
        owner_id: Owning user identifier
        file_name: Original file name
        text: Raw document text
        min_sentence_length: Minimum normalized sentence length
        created_at: Creation timestamp (now if not provided)

    Returns:
        DocumentFingerprint
    """
    normalized = normalize_text(text)
    sentences = segment(text, min_sentence_length)

    data = dict(
        document_id=document_id,
        owner_id=owner_id,
        file_name=file_name,
        content_hash=hash_text(normalized),
        sentence_hashes=[hash_text(s.normalized_text) for s in sentences],
        word_count=count_words(normalized),
    )
    if created_at is not None:
        data["created_at"] = created_at
    return DocumentFingerprint(**data)


class FingerprintStore(ABC):
    """Repository interface for document fingerprints."""

    def __init__(self, min_sentence_length: int = DEFAULT_MIN_SENTENCE_LENGTH):
        self.min_sentence_length = min_sentence_length

    def create_fingerprint(
        self,
        document_id: str,
        owner_id: str,
        file_name: str,
        text: str
    ) -> DocumentFingerprint:
        """
        Fingerprint a document and persist the record.

        A document keeps its first fingerprint; later calls for the same
        document return the stored record unchanged.

        Raises:
            PersistenceFailure: If the record could not be stored
        """
        fingerprint = build_fingerprint(
            document_id, owner_id, file_name, text,
            min_sentence_length=self.min_sentence_length
        )
        try:
            stored = self._insert(fingerprint)
        except PersistenceFailure:
            raise
        except Exception as e:
            raise PersistenceFailure(f"Failed to store fingerprint for {document_id}: {e}") from e

        logger.info(f"Created fingerprint for document {document_id} "
                    f"with {len(stored.sentence_hashes)} sentences")
        return stored

    def add(self, fingerprint: DocumentFingerprint) -> DocumentFingerprint:
        """Store a prebuilt fingerprint; an existing record for the document wins."""
        return self._insert(fingerprint)

    @abstractmethod
    def _insert(self, fingerprint: DocumentFingerprint) -> DocumentFingerprint:
        """Store a fingerprint unless one exists for the document; return the stored record."""

    @abstractmethod
    def list_recent_fingerprints(
        self,
        excluding_document_id: Optional[str],
        limit: int
    ) -> List[DocumentFingerprint]:
        """Return up to ``limit`` newest fingerprints, excluding one document."""

    @abstractmethod
    def get_fingerprint(self, document_id: str) -> Optional[DocumentFingerprint]:
        """Return the fingerprint of a document, if any."""

    @abstractmethod
    def delete_document(self, document_id: str) -> int:
        """Delete the fingerprint of a document. Returns number of records removed."""

    @abstractmethod
    def delete_owner(self, owner_id: str) -> int:
        """Delete every fingerprint owned by a user. Returns number of records removed."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored fingerprints."""


class InMemoryFingerprintStore(FingerprintStore):
    """Process-local fingerprint store."""

    def __init__(self, min_sentence_length: int = DEFAULT_MIN_SENTENCE_LENGTH):
        super().__init__(min_sentence_length)
        self._records: Dict[str, DocumentFingerprint] = {}
        self._lock = threading.Lock()

    def _insert(self, fingerprint: DocumentFingerprint) -> DocumentFingerprint:
        with self._lock:
            existing = self._records.get(fingerprint.document_id)
            if existing is not None:
                logger.debug(f"Fingerprint for {fingerprint.document_id} already exists, keeping it")
                return existing
            self._records[fingerprint.document_id] = fingerprint
            return fingerprint

    def list_recent_fingerprints(
        self,
        excluding_document_id: Optional[str],
        limit: int
    ) -> List[DocumentFingerprint]:
        with self._lock:
            records = [
                fp for fp in self._records.values()
                if fp.document_id != excluding_document_id
            ]
        records.sort(key=lambda fp: fp.created_at, reverse=True)
        return records[:max(0, limit)]

    def get_fingerprint(self, document_id: str) -> Optional[DocumentFingerprint]:
        with self._lock:
            return self._records.get(document_id)

    def delete_document(self, document_id: str) -> int:
        with self._lock:
            return 1 if self._records.pop(document_id, None) is not None else 0

    def delete_owner(self, owner_id: str) -> int:
        with self._lock:
            doomed = [doc_id for doc_id, fp in self._records.items() if fp.owner_id == owner_id]
            for doc_id in doomed:
                del self._records[doc_id]
        return len(doomed)

    def count(self) -> int:
        with self._lock:
            return len(self._records)


class ChromaFingerprintStore(FingerprintStore):
    """ChromaDB-backed fingerprint store, one record per document."""

    def __init__(
        self,
        persist_dir: str = "./chroma_db",
        collection_name: str = "document_fingerprints",
        min_sentence_length: int = DEFAULT_MIN_SENTENCE_LENGTH
    ):
        """
        Initialize the store.

        Args:
            persist_dir: Directory for ChromaDB persistence
            collection_name: Collection holding the fingerprints
            min_sentence_length: Minimum normalized sentence length
        """
        super().__init__(min_sentence_length)
        self.persist_dir = persist_dir
        self.client = chromadb.PersistentClient(
            path=persist_dir,
            settings=Settings(
                anonymized_telemetry=False,
                allow_reset=True
            )
        )
        self.collection = self.client.get_or_create_collection(
            name=collection_name,
            metadata={"description": "Document fingerprints"}
        )
        self.collection_name = collection_name
        self._lock = threading.Lock()
        logger.info(f"Using fingerprint collection: {collection_name}")

    @staticmethod
    def _hash_vector(content_hash: str) -> List[float]:
        """Digest bytes as a fixed 16-dim vector; ChromaDB requires an embedding per record."""
        digest = np.frombuffer(bytes.fromhex(content_hash), dtype=np.uint8)
        return ((digest.astype(np.float32) + 1.0) / 256.0).tolist()

    @staticmethod
    def _to_metadata(fingerprint: DocumentFingerprint) -> Dict[str, object]:
        return {
            "document_id": fingerprint.document_id,
            "owner_id": fingerprint.owner_id,
            "file_name": fingerprint.file_name,
            "content_hash": fingerprint.content_hash,
            "sentence_hashes": " ".join(fingerprint.sentence_hashes),
            "word_count": fingerprint.word_count,
            "created_at": fingerprint.created_at.timestamp(),
        }

    @staticmethod
    def _from_metadata(metadata: Dict[str, object]) -> DocumentFingerprint:
        return DocumentFingerprint(
            document_id=metadata["document_id"],
            owner_id=metadata["owner_id"],
            file_name=metadata.get("file_name", ""),
            content_hash=metadata["content_hash"],
            sentence_hashes=str(metadata.get("sentence_hashes", "")).split(),
            word_count=int(metadata.get("word_count", 0)),
            created_at=datetime.fromtimestamp(float(metadata["created_at"]), tz=timezone.utc),
        )

    def _insert(self, fingerprint: DocumentFingerprint) -> DocumentFingerprint:
        with self._lock:
            existing = self.get_fingerprint(fingerprint.document_id)
            if existing is not None:
                logger.debug(f"Fingerprint for {fingerprint.document_id} already exists, keeping it")
                return existing

            try:
                self.collection.add(
                    ids=[fingerprint.document_id],
                    embeddings=[self._hash_vector(fingerprint.content_hash)],
                    metadatas=[self._to_metadata(fingerprint)]
                )
            except Exception as e:
                logger.error(f"Failed to add fingerprint to collection: {str(e)}")
                raise PersistenceFailure(str(e)) from e
        return fingerprint

    def list_recent_fingerprints(
        self,
        excluding_document_id: Optional[str],
        limit: int
    ) -> List[DocumentFingerprint]:
        """
        Most recent fingerprints first, excluding one document.

        ChromaDB's ``get()`` can neither order nor limit by a metadata field,
        so the metadata of every record is read and the newest ``limit`` are
        kept here. ``limit`` bounds how many documents the matcher compares,
        not how much this call reads; the read grows with the collection.

        Args:
            excluding_document_id: Document left out of the result, if any
            limit: Maximum number of fingerprints returned

        Returns:
            Fingerprints ordered by ``created_at`` descending
        """
        where = None
        if excluding_document_id is not None:
            where = {"document_id": {"$ne": excluding_document_id}}

        results = self.collection.get(where=where, include=["metadatas"])
        fingerprints = [self._from_metadata(m) for m in (results.get("metadatas") or [])]

        # ChromaDB has no ordering on get(); sort by creation time here
        fingerprints.sort(key=lambda fp: fp.created_at, reverse=True)
        return fingerprints[:max(0, limit)]

    def get_fingerprint(self, document_id: str) -> Optional[DocumentFingerprint]:
        results = self.collection.get(ids=[document_id], include=["metadatas"])
        metadatas = results.get("metadatas") or []
        if not metadatas:
            return None
        return self._from_metadata(metadatas[0])

    def delete_document(self, document_id: str) -> int:
        if self.get_fingerprint(document_id) is None:
            return 0
        self.collection.delete(ids=[document_id])
        logger.info(f"Deleted fingerprint for document {document_id}")
        return 1

    def delete_owner(self, owner_id: str) -> int:
        results = self.collection.get(where={"owner_id": owner_id})
        ids = results.get("ids") or []
        if ids:
            self.collection.delete(ids=ids)
            logger.info(f"Deleted {len(ids)} fingerprints for owner {owner_id}")
        return len(ids)

    def count(self) -> int:
        return self.collection.count()
