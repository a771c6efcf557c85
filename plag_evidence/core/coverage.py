"""Span coverage: merge matched spans and measure how much of a text they cover."""

from typing import Iterable, List, Sequence, Tuple

from .types import CoverageResult, MatchSpan


def merge_spans(spans: Iterable[MatchSpan]) -> List[Tuple[int, int]]:
    """
    Merge overlapping or touching spans into disjoint intervals.

    Args:
        spans: Spans in any order

    Returns:
        Sorted list of merged (start, end) intervals
    """
    intervals = sorted((s.start, s.end) for s in spans)
    if not intervals:
        return []

    merged = [intervals[0]]
    for start, end in intervals[1:]:
        if start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))

    return merged


def coverage(text: str, spans: Sequence[MatchSpan]) -> CoverageResult:
    """
    Percentage of ``text`` covered by the union of ``spans``.

    Spans are clamped to the text length before merging.

    Args:
        text: The scanned text
        spans: Matched spans, possibly overlapping

    Returns:
        CoverageResult
    """
    text_length = len(text)
    if text_length == 0 or not spans:
        return CoverageResult()

    clamped = [
        MatchSpan(start=min(s.start, text_length), end=min(s.end, text_length))
        for s in spans
    ]
    merged = [(start, end) for start, end in merge_spans(clamped) if end > start]
    covered = sum(end - start for start, end in merged)

    return CoverageResult(
        percentage=min(100.0, covered / text_length * 100),
        merged_interval_count=len(merged),
        covered_chars=covered
    )


def combined_coverage(text: str, *span_lists: Sequence[MatchSpan]) -> CoverageResult:
    """Coverage of the union of several span lists."""
    union: List[MatchSpan] = []
    for spans in span_lists:
        union.extend(spans)
    return coverage(text, union)


def find_all_occurrences(
    text: str,
    substring: str,
    source: str = "",
    score: float = 0.0
) -> List[MatchSpan]:
    """
    Every occurrence of ``substring`` in ``text`` as a span, overlapping ones included.

    Args:
        text: Text to search
        substring: Passage to locate
        source: Source descriptor attached to each span
        score: Similarity score attached to each span

    Returns:
        Spans in left-to-right order
    """
    if not substring:
        return []

    spans = []
    pos = text.find(substring)
    while pos != -1:
        end = pos + len(substring)
        spans.append(MatchSpan(start=pos, end=end, source=source, score=score))
        pos = text.find(substring, pos + 1)

    return spans


def spans_for_passages(
    text: str,
    passages: Iterable[str],
    source: str = "",
    score: float = 0.0
) -> List[MatchSpan]:
    """Locate many passages in ``text``; passages not found contribute nothing."""
    spans = []
    for passage in passages:
        spans.extend(find_all_occurrences(text, passage, source=source, score=score))
    return spans
