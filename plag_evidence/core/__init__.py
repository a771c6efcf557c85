"""Core modules for originality evidence gathering."""

from .config import Config
from .types import (
    NormalizedSentence,
    DocumentFingerprint,
    MatchSpan,
    CoverageResult,
    InternalMatch,
    InternalCheckResult,
    ExternalMatch,
    OracleVerdict,
    HighlightedSection,
    ScanResult,
    ScanStatus,
    Verdict,
)
from .errors import (
    EvidenceError,
    ExtractionFailure,
    MatcherFailure,
    ExternalProviderFailure,
    OracleFailure,
    PersistenceFailure,
    ScanInProgressError,
)
from .normalizer import normalize_text, segment, count_words
from .fingerprint_store import (
    FingerprintStore,
    InMemoryFingerprintStore,
    ChromaFingerprintStore,
    build_fingerprint,
    hash_text,
)
from .matcher import CrossDocumentMatcher
from .coverage import coverage, combined_coverage, merge_spans, find_all_occurrences
from .verdict import ScorePolicy, get_verdict
from .providers import ExternalMatchProvider, NullMatchProvider, WebSearchMatchProvider
from .oracle import TextClassificationOracle, OpenAIClassificationOracle
from .scanner import DocumentScanner, ScanHandle, ScanRegistry
from .report import ReportGenerator

__all__ = [
    "Config",
    "NormalizedSentence",
    "DocumentFingerprint",
    "MatchSpan",
    "CoverageResult",
    "InternalMatch",
    "InternalCheckResult",
    "ExternalMatch",
    "OracleVerdict",
    "HighlightedSection",
    "ScanResult",
    "ScanStatus",
    "Verdict",
    "EvidenceError",
    "ExtractionFailure",
    "MatcherFailure",
    "ExternalProviderFailure",
    "OracleFailure",
    "PersistenceFailure",
    "ScanInProgressError",
    "normalize_text",
    "segment",
    "count_words",
    "FingerprintStore",
    "InMemoryFingerprintStore",
    "ChromaFingerprintStore",
    "build_fingerprint",
    "hash_text",
    "CrossDocumentMatcher",
    "coverage",
    "combined_coverage",
    "merge_spans",
    "find_all_occurrences",
    "ScorePolicy",
    "get_verdict",
    "ExternalMatchProvider",
    "NullMatchProvider",
    "WebSearchMatchProvider",
    "TextClassificationOracle",
    "OpenAIClassificationOracle",
    "DocumentScanner",
    "ScanHandle",
    "ScanRegistry",
    "ReportGenerator",
]
