"""Verdict bands, score combination policy and report summaries."""

from typing import Optional

from .types import Verdict


def clamp_score(score: float) -> float:
    return min(100.0, max(0.0, score))


def get_verdict(score: float) -> Verdict:
    """
    Map a 0-100 score to an ordinal verdict.

    [0, 15) original, [15, 30) low, [30, 50) moderate, [50, 100] high.
    """
    score = clamp_score(score)
    if score < 15:
        return Verdict.ORIGINAL
    if score < 30:
        return Verdict.LOW
    if score < 50:
        return Verdict.MODERATE
    return Verdict.HIGH


def match_type(similarity: float) -> str:
    """Highlight severity for a single matched section."""
    if similarity >= 70:
        return "high"
    if similarity >= 40:
        return "medium"
    return "low"


class ScorePolicy:
    """Combines the coverage score with an optional oracle score."""

    MODES = ("max", "weighted")

    def __init__(self, mode: str = "max", oracle_weight: float = 0.5):
        if mode not in self.MODES:
            raise ValueError(f"Unknown score policy: {mode}")
        if not 0.0 <= oracle_weight <= 1.0:
            raise ValueError("oracle_weight must be between 0 and 1")
        self.mode = mode
        self.oracle_weight = oracle_weight

    def combine(self, coverage_score: float, oracle_score: Optional[float] = None) -> float:
        """
        Final 0-100 score.

        Args:
            coverage_score: Combined span coverage percentage
            oracle_score: Oracle score, or None when the oracle gave nothing

        Returns:
            Combined score clamped to [0, 100]
        """
        if oracle_score is None:
            return clamp_score(coverage_score)
        if self.mode == "max":
            return clamp_score(max(coverage_score, oracle_score))
        w = self.oracle_weight
        return clamp_score((1 - w) * coverage_score + w * oracle_score)


def build_summary(
    score: float,
    section_count: int,
    has_internal_matches: bool = False,
    external_count: int = 0
) -> str:
    """Human-readable summary of a scan."""
    if section_count == 0:
        summary = "No significant plagiarism detected. The content appears to be original."
    elif score < 30:
        summary = (f"Found {section_count} section(s) that may benefit from citations. "
                   "Overall originality is acceptable.")
    elif score < 50:
        summary = (f"Found {section_count} section(s) matching other sources. "
                   "Consider adding citations or rewriting these sections.")
    else:
        summary = (f"High similarity detected in {section_count} section(s). "
                   "This content requires significant revision.")

    if has_internal_matches:
        summary += " ALERT: This content matches previously submitted documents."
    if external_count:
        summary += f" Web search found {external_count} potential online source(s)."
    return summary
