"""Cross-document matching against previously fingerprinted documents."""

import math
from typing import List

from .fingerprint_store import FingerprintStore, hash_text
from .log import base_logger
from .normalizer import DEFAULT_MIN_SENTENCE_LENGTH, normalize_text, segment
from .types import InternalCheckResult, InternalMatch

logger = base_logger.getChild('matcher')


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values."""
    return int(math.floor(value + 0.5))


def sentence_match_percentage(match_count: int, total_sentences: int) -> int:
    """Share of query sentences matched, as a rounded 0-100 integer."""
    pct = round_half_up(match_count / max(1, total_sentences) * 100)
    return min(100, max(0, pct))


class CrossDocumentMatcher:
    """Compares a document against a bounded window of recent fingerprints."""

    def __init__(
        self,
        store: FingerprintStore,
        candidate_window: int = 500,
        materiality_threshold: int = 10,
        top_k: int = 5,
        min_sentence_length: int = DEFAULT_MIN_SENTENCE_LENGTH
    ):
        """
        Initialize the matcher.

        Args:
            store: Fingerprint repository
            candidate_window: Number of most recent fingerprints compared
            materiality_threshold: Minimum match percentage reported
            top_k: Number of matches returned
            min_sentence_length: Minimum normalized sentence length
        """
        self.store = store
        self.candidate_window = candidate_window
        self.materiality_threshold = materiality_threshold
        self.top_k = top_k
        self.min_sentence_length = min_sentence_length

    def match(self, document_id: str, text: str) -> InternalCheckResult:
        """
        Find previously fingerprinted documents that share content with text.

        Args:
            document_id: Identifier of the scanned document (never matched against itself)
            text: Raw document text

        Returns:
            InternalCheckResult with the top matches, highest first
        """
        sentences = segment(text, self.min_sentence_length)
        query_hashes = [hash_text(s.normalized_text) for s in sentences]
        original_sentences = [s.original_text for s in sentences]
        content_hash = hash_text(normalize_text(text))

        candidates = self.store.list_recent_fingerprints(document_id, self.candidate_window)
        logger.info(f"Comparing document {document_id} against {len(candidates)} existing documents")

        matches: List[InternalMatch] = []
        for candidate in candidates:
            if candidate.document_id == document_id:
                continue

            if candidate.content_hash == content_hash:
                matches.append(InternalMatch(
                    other_document_id=candidate.document_id,
                    match_percentage=100,
                    match_count=len(query_hashes),
                    matched_original_sentences=list(original_sentences),
                    uploaded_at=candidate.created_at,
                    exact_duplicate=True
                ))
                continue

            candidate_hashes = set(candidate.sentence_hashes)
            matched = [
                original for original, h in zip(original_sentences, query_hashes)
                if h in candidate_hashes
            ]
            if not matched:
                continue

            pct = sentence_match_percentage(len(matched), len(query_hashes))
            if pct < self.materiality_threshold:
                logger.debug(f"Candidate {candidate.document_id} below materiality threshold: {pct}%")
                continue

            matches.append(InternalMatch(
                other_document_id=candidate.document_id,
                match_percentage=pct,
                match_count=len(matched),
                matched_original_sentences=matched,
                uploaded_at=candidate.created_at
            ))

        # Stable sort keeps newer candidates first among equal percentages
        matches.sort(key=lambda m: m.match_percentage, reverse=True)
        top_matches = matches[:self.top_k]
        highest = top_matches[0].match_percentage if top_matches else 0

        logger.info(f"Found {len(matches)} matches, highest: {highest}%")

        return InternalCheckResult(
            matches=top_matches,
            highest_match=highest,
            candidates_checked=len(candidates)
        )
