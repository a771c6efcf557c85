"""Scan orchestration: evidence gathering, scoring and the per-document scan lifecycle."""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .config import Config
from .coverage import combined_coverage, coverage, find_all_occurrences, spans_for_passages
from .errors import (
    ExtractionFailure,
    ExternalProviderFailure,
    MatcherFailure,
    PersistenceFailure,
    ScanInProgressError,
)
from .extract import read_document
from .fingerprint_store import FingerprintStore, InMemoryFingerprintStore
from .log import base_logger
from .matcher import CrossDocumentMatcher
from .normalizer import normalize_text, segment, split_into_chunks
from .oracle import TextClassificationOracle, average_verdict
from .providers import ExternalMatchProvider
from .types import (
    CoverageResult,
    ExternalMatch,
    HighlightedSection,
    InternalCheckResult,
    MatchSpan,
    OracleVerdict,
    ScanResult,
    ScanStatus,
)
from .verdict import ScorePolicy, build_summary, get_verdict, match_type

logger = base_logger.getChild('scanner')

ResultHandler = Callable[[ScanResult], None]


class ScanRegistry:
    """Thread-safe scan status per document."""

    def __init__(self):
        self._status: Dict[str, ScanStatus] = {}
        self._lock = threading.Lock()

    def status(self, document_id: str) -> ScanStatus:
        with self._lock:
            return self._status.get(document_id, ScanStatus.PENDING)

    def begin(self, document_id: str):
        """
        Move a document into ``scanning``.

        Raises:
            ScanInProgressError: If the document is already being scanned
        """
        with self._lock:
            if self._status.get(document_id) == ScanStatus.SCANNING:
                raise ScanInProgressError(document_id)
            self._status[document_id] = ScanStatus.SCANNING

    def finish(self, document_id: str, status: ScanStatus):
        if status not in (ScanStatus.COMPLETED, ScanStatus.FAILED):
            raise ValueError(f"Scan cannot finish as {status.value}")
        with self._lock:
            self._status[document_id] = status


class ScanHandle:
    """Observable handle to a background scan."""

    def __init__(self, document_id: str, future: Future, registry: ScanRegistry):
        self.document_id = document_id
        self._future = future
        self._registry = registry

    @property
    def status(self) -> ScanStatus:
        return self._registry.status(self.document_id)

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> ScanResult:
        """Wait for the scan; re-raises whatever made it fail."""
        return self._future.result(timeout)

    def exception(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        return self._future.exception(timeout)

    def __repr__(self):
        return f"ScanHandle(document={self.document_id}, status={self.status.value})"


class DocumentScanner:
    """Runs originality scans with independently degrading evidence sources."""

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[FingerprintStore] = None,
        provider: Optional[ExternalMatchProvider] = None,
        oracle: Optional[TextClassificationOracle] = None,
        registry: Optional[ScanRegistry] = None,
        on_result: Optional[ResultHandler] = None
    ):
        """
        Initialize the scanner.

        Args:
            config: Configuration object (uses defaults if not provided)
            store: Fingerprint repository (in-memory if not provided)
            provider: External match provider, if any
            oracle: Text classification oracle, if any
            registry: Scan status registry (a private one if not provided)
            on_result: Called with each finished ScanResult to persist it
        """
        self.config = config or Config()
        self.store = store or InMemoryFingerprintStore(self.config.min_sentence_length)
        self.matcher = CrossDocumentMatcher(
            self.store,
            candidate_window=self.config.candidate_window,
            materiality_threshold=self.config.materiality_threshold,
            top_k=self.config.top_k_matches,
            min_sentence_length=self.config.min_sentence_length
        )
        self.provider = provider
        self.oracle = oracle
        self.policy = ScorePolicy(self.config.score_policy, self.config.oracle_weight)
        self.registry = registry or ScanRegistry()
        self.on_result = on_result
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    # Evidence sources. Each one logs and degrades to "no evidence" on failure.

    def _check_internal(self, document_id: str, text: str, degraded: List[str]) -> InternalCheckResult:
        try:
            return self.matcher.match(document_id, text)
        except Exception as e:
            failure = MatcherFailure(str(e))
            logger.error(f"Internal check failed for {document_id}: {failure}")
            degraded.append("internal_matches")
            return InternalCheckResult()

    def _record_fingerprint(
        self,
        document_id: str,
        owner_id: str,
        file_name: str,
        text: str,
        degraded: List[str]
    ):
        try:
            self.store.create_fingerprint(document_id, owner_id, file_name, text)
        except Exception as e:
            failure = e if isinstance(e, PersistenceFailure) else PersistenceFailure(str(e))
            logger.error(f"Fingerprint write failed for {document_id}: {failure}")
            degraded.append("fingerprint")

    def _search_external(self, text: str, degraded: List[str]) -> List[ExternalMatch]:
        if self.provider is None or not self.provider.is_enabled():
            logger.debug("No external match provider enabled - skipping")
            return []

        sentences = [s.original_text for s in segment(text, self.config.min_sentence_length)]
        try:
            matches = self.provider.search(sentences)
        except Exception as e:
            failure = e if isinstance(e, ExternalProviderFailure) else ExternalProviderFailure(str(e))
            logger.error(f"External lookup failed: {failure}")
            degraded.append("external_matches")
            return []

        logger.info(f"External provider returned {len(matches)} matches")
        return matches

    def _consult_oracle(self, text: str, degraded: List[str]) -> Optional[OracleVerdict]:
        if self.oracle is None:
            return None

        chunks = split_into_chunks(text, self.config.oracle_chunk_words)[:self.config.oracle_max_chunks]
        verdicts = []
        for chunk in chunks:
            try:
                verdicts.append(self.oracle.classify(chunk))
            except Exception as e:
                logger.warning(f"Oracle classification failed for chunk: {str(e)}")

        if chunks and not verdicts:
            degraded.append("oracle")
        return average_verdict(verdicts)

    @staticmethod
    def _internal_spans(text: str, internal: InternalCheckResult) -> List[MatchSpan]:
        spans = []
        for match in internal.matches:
            if match.exact_duplicate:
                # Identical content covers the whole text, separators and short fragments included
                spans.append(MatchSpan(
                    start=0,
                    end=len(text),
                    source=f"document:{match.other_document_id}",
                    score=100
                ))
                continue
            # Sentences shared by several matches collapse during the merge
            spans.extend(spans_for_passages(
                text,
                dict.fromkeys(match.matched_original_sentences),
                source=f"document:{match.other_document_id}",
                score=match.match_percentage
            ))
        return spans

    @staticmethod
    def _external_spans(text: str, external: List[ExternalMatch]) -> List[MatchSpan]:
        spans = []
        for match in external:
            spans.extend(find_all_occurrences(
                text,
                match.matched_text,
                source=match.source_url or match.source_title or "external",
                score=match.similarity
            ))
        return spans

    @staticmethod
    def _highlights(
        text: str,
        spans: List[MatchSpan],
        external: List[ExternalMatch]
    ) -> List[HighlightedSection]:
        titles = {m.source_url or m.source_title or "external": m.source_title for m in external}
        urls = {m.source_url or m.source_title or "external": m.source_url for m in external}

        seen = set()
        sections = []
        for span in sorted(spans, key=lambda s: (s.start, s.end)):
            key = (span.start, span.end, span.source)
            if key in seen:
                continue
            seen.add(key)
            sections.append(HighlightedSection(
                text=text[span.start:span.end],
                start=span.start,
                end=span.end,
                similarity=span.score,
                match_type=match_type(span.score),
                source_title=titles.get(span.source, span.source),
                source_url=urls.get(span.source)
            ))
        return sections

    def scan_text(self, document_id: str, owner_id: str, file_name: str, text: str) -> ScanResult:
        """
        Gather originality evidence for a document and score it.

        Args:
            document_id: Document identifier
            owner_id: Owning user identifier
            file_name: Original file name
            text: Extracted document text

        Returns:
            ScanResult

        Raises:
            ExtractionFailure: If the text normalizes to nothing
        """
        if not normalize_text(text):
            raise ExtractionFailure(f"Document {document_id} has no usable text")

        started = time.monotonic()
        degraded: List[str] = []
        logger.info(f"Scanning document {document_id} ({len(text):,} characters)")

        internal = self._check_internal(document_id, text, degraded)
        self._record_fingerprint(document_id, owner_id, file_name, text, degraded)
        external = self._search_external(text, degraded)
        oracle_verdict = self._consult_oracle(text, degraded)

        internal_spans = self._internal_spans(text, internal)
        external_spans = self._external_spans(text, external)
        oracle_spans = []
        if oracle_verdict is not None:
            oracle_spans = spans_for_passages(
                text, oracle_verdict.flagged_passages, source="oracle", score=oracle_verdict.score
            )

        internal_cov = coverage(text, internal_spans)
        external_cov = coverage(text, external_spans)
        combined_cov = combined_coverage(text, internal_spans, external_spans, oracle_spans)

        oracle_score = oracle_verdict.score if oracle_verdict is not None else None
        score = self.policy.combine(combined_cov.percentage, oracle_score)
        verdict = get_verdict(score)

        highlights = self._highlights(text, internal_spans + external_spans + oracle_spans, external)
        summary = build_summary(
            score,
            len(highlights),
            has_internal_matches=internal.has_internal_matches,
            external_count=len(external)
        )

        result = ScanResult(
            document_id=document_id,
            text_length=len(text),
            score=score,
            verdict=verdict,
            internal_coverage=internal_cov,
            external_coverage=external_cov,
            combined_coverage=combined_cov,
            oracle_score=oracle_score,
            internal_matches=internal.matches,
            external_matches=external,
            highlighted_sections=highlights,
            summary=summary,
            degraded=degraded,
            scan_duration=time.monotonic() - started
        )

        logger.info(f"Scan complete for {document_id}: score {score:.1f}%, verdict {verdict.value}"
                    + (f", degraded: {', '.join(degraded)}" if degraded else ""))
        return result

    def scan_file(self, document_id: str, owner_id: str, file_path: Union[str, Path]) -> ScanResult:
        """Extract text from a file and scan it."""
        text = read_document(file_path)
        return self.scan_text(document_id, owner_id, Path(file_path).name, text)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.config.scan_workers,
                    thread_name_prefix="plag-scan"
                )
            return self._executor

    def _run(
        self,
        document_id: str,
        owner_id: str,
        file_name: str,
        text: Optional[str],
        file_path: Optional[Union[str, Path]]
    ) -> ScanResult:
        try:
            if text is None:
                result = self.scan_file(document_id, owner_id, file_path)
            else:
                result = self.scan_text(document_id, owner_id, file_name, text)

            if self.on_result is not None:
                try:
                    self.on_result(result)
                except Exception as e:
                    raise PersistenceFailure(f"Failed to store scan result for {document_id}: {e}") from e
        except Exception as e:
            logger.error(f"Scan failed for {document_id}: {str(e)}")
            self.registry.finish(document_id, ScanStatus.FAILED)
            raise

        self.registry.finish(document_id, ScanStatus.COMPLETED)
        return result

    def submit(
        self,
        document_id: str,
        owner_id: str,
        file_name: str = "",
        text: Optional[str] = None,
        file_path: Optional[Union[str, Path]] = None
    ) -> ScanHandle:
        """
        Start a background scan.

        Args:
            document_id: Document identifier
            owner_id: Owning user identifier
            file_name: Original file name
            text: Extracted text; if omitted, ``file_path`` is read
            file_path: File to extract text from

        Returns:
            ScanHandle to poll or wait on

        Raises:
            ScanInProgressError: If the document is already being scanned
        """
        if text is None and file_path is None:
            raise ValueError("Either text or file_path must be provided")

        self.registry.begin(document_id)
        try:
            future = self._get_executor().submit(
                self._run, document_id, owner_id, file_name, text, file_path
            )
        except RuntimeError:
            self.registry.finish(document_id, ScanStatus.FAILED)
            raise

        logger.info(f"Scan started for {document_id}")
        return ScanHandle(document_id, future, self.registry)

    def status(self, document_id: str) -> ScanStatus:
        return self.registry.status(document_id)

    def shutdown(self, wait: bool = True):
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
