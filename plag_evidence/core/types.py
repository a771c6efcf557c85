"""Shared data types and models for the originality evidence engine."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Optional
from pydantic import BaseModel, Field, ConfigDict, StringConstraints, model_validator

# 128-bit digest as lowercase hex
ContentHash = Annotated[str, StringConstraints(pattern=r"^[0-9a-f]{32}$")]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScanStatus(str, Enum):
    """Lifecycle of a document scan."""

    PENDING = "pending"
    SCANNING = "scanning"
    COMPLETED = "completed"
    FAILED = "failed"


class Verdict(str, Enum):
    """Ordinal originality label derived from a 0-100 score."""

    ORIGINAL = "original"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class NormalizedSentence(BaseModel):
    """A sentence unit with its normalized form and offsets into the original text."""

    original_text: str = Field(description="Trimmed sentence as it appears in the original text")
    normalized_text: str = Field(description="Normalized sentence used for hashing")
    start_offset: int = Field(ge=0, description="Start position in the original text")
    end_offset: int = Field(ge=0, description="End position (exclusive) in the original text")


class DocumentFingerprint(BaseModel):
    """Persisted summary of a scanned document."""

    document_id: str = Field(description="Identifier of the fingerprinted document")
    owner_id: str = Field(description="Identifier of the owning user")
    file_name: str = Field(default="", description="Original file name")
    content_hash: ContentHash = Field(description="Hash of the normalized full text")
    sentence_hashes: List[ContentHash] = Field(
        default_factory=list,
        description="Hashes of the normalized sentences, in segmenter order"
    )
    word_count: int = Field(default=0, ge=0, description="Number of words in the normalized text")
    created_at: datetime = Field(default_factory=utcnow, description="Creation timestamp")

    model_config = ConfigDict(frozen=True)


class MatchSpan(BaseModel):
    """A half-open character interval [start, end) of a document flagged as matched."""

    start: int = Field(ge=0, description="Start offset")
    end: int = Field(ge=0, description="End offset (exclusive)")
    source: str = Field(default="", description="Where the match came from")
    score: float = Field(default=0.0, description="Similarity score of the match (0-100)")

    @model_validator(mode="after")
    def _check_order(self) -> "MatchSpan":
        if self.end < self.start:
            raise ValueError(f"span end {self.end} precedes start {self.start}")
        return self

    def __len__(self) -> int:
        return self.end - self.start


class CoverageResult(BaseModel):
    """Fraction of a document covered by the union of matched spans."""

    percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    merged_interval_count: int = Field(default=0, ge=0)
    covered_chars: int = Field(default=0, ge=0)


class InternalMatch(BaseModel):
    """A previously fingerprinted document that overlaps with the scanned one."""

    other_document_id: str
    match_percentage: int = Field(ge=0, le=100)
    match_count: int = Field(ge=0)
    matched_original_sentences: List[str] = Field(default_factory=list)
    uploaded_at: datetime
    exact_duplicate: bool = Field(default=False, description="Normalized full texts are identical")


class InternalCheckResult(BaseModel):
    """Outcome of comparing a document against the fingerprint store."""

    matches: List[InternalMatch] = Field(default_factory=list)
    highest_match: int = Field(default=0, ge=0, le=100)
    candidates_checked: int = Field(default=0, ge=0)

    @property
    def has_internal_matches(self) -> bool:
        return bool(self.matches)


class ExternalMatch(BaseModel):
    """A match reported by an external match provider."""

    source_url: Optional[str] = None
    source_title: Optional[str] = None
    matched_text: str
    similarity: float = Field(default=50.0, ge=0.0, le=100.0)


class OracleVerdict(BaseModel):
    """Output of the text classification oracle for one chunk."""

    score: float = Field(ge=0.0, le=100.0)
    rationale: str = ""
    flagged_passages: List[str] = Field(default_factory=list)


class HighlightedSection(BaseModel):
    """A region of the scanned text to highlight in a report."""

    text: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    similarity: float
    match_type: str = Field(description="high, medium or low")
    source_title: Optional[str] = None
    source_url: Optional[str] = None


class ScanResult(BaseModel):
    """Complete originality evidence for one document."""

    document_id: str
    text_length: int = Field(ge=0)
    score: float = Field(ge=0.0, le=100.0, description="Final 0-100 score")
    verdict: Verdict
    internal_coverage: CoverageResult = Field(default_factory=CoverageResult)
    external_coverage: CoverageResult = Field(default_factory=CoverageResult)
    combined_coverage: CoverageResult = Field(default_factory=CoverageResult)
    oracle_score: Optional[float] = None
    internal_matches: List[InternalMatch] = Field(default_factory=list)
    external_matches: List[ExternalMatch] = Field(default_factory=list)
    highlighted_sections: List[HighlightedSection] = Field(default_factory=list)
    summary: str = ""
    degraded: List[str] = Field(default_factory=list, description="Steps that degraded to no evidence")
    scan_duration: float = Field(default=0.0, ge=0.0, description="Seconds spent scanning")
