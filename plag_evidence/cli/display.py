"""Rich-based display module for scan results."""

from typing import List
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..core.types import HighlightedSection, ScanResult, Verdict

VERDICT_STYLES = {
    Verdict.ORIGINAL: "bold green",
    Verdict.LOW: "bold cyan",
    Verdict.MODERATE: "bold yellow",
    Verdict.HIGH: "bold red",
}

MATCH_TYPE_STYLES = {
    "high": "bold red",
    "medium": "bold yellow",
    "low": "cyan",
}


def create_console() -> Console:
    """Create a rich Console instance."""
    return Console()


def highlight_sections(text: str, sections: List[HighlightedSection]) -> Text:
    """
    Render text with matched sections highlighted.

    Overlapping sections are drawn once, the earliest-starting section wins.

    Args:
        text: The scanned text
        sections: Sections to highlight

    Returns:
        Rich Text object with highlights
    """
    rich_text = Text()
    last_pos = 0

    for section in sorted(sections, key=lambda s: (s.start, s.end)):
        start = max(section.start, last_pos)
        end = min(section.end, len(text))
        if end <= start:
            continue

        if start > last_pos:
            rich_text.append(text[last_pos:start])
        rich_text.append(text[start:end], style=MATCH_TYPE_STYLES.get(section.match_type, "bold"))
        last_pos = end

    if last_pos < len(text):
        rich_text.append(text[last_pos:])

    return rich_text


def display_summary(console: Console, result: ScanResult):
    """
    Display summary statistics.

    Args:
        console: Rich Console instance
        result: ScanResult object
    """
    console.print("Scan complete!", style="bold green")
    console.print()

    console.print("  Score: ", end="")
    console.print(f"{result.score:.1f}%", style=VERDICT_STYLES[result.verdict], end="")
    console.print(f" ({result.verdict.value})")

    console.print(f"  Internal coverage: {result.internal_coverage.percentage:.1f}%")
    console.print(f"  External coverage: {result.external_coverage.percentage:.1f}%")
    console.print(f"  Combined coverage: {result.combined_coverage.percentage:.1f}%")
    if result.oracle_score is not None:
        console.print(f"  Oracle score: {result.oracle_score:.1f}")
    if result.degraded:
        console.print(f"  Degraded: {', '.join(result.degraded)}", style="dim")
    console.print(f"  {result.summary}")
    console.print()


def display_internal_matches(console: Console, result: ScanResult):
    """Display previously submitted documents that match."""
    if not result.internal_matches:
        return

    table = Table(title="Previously submitted documents", expand=True)
    table.add_column("Document")
    table.add_column("Match", justify="right")
    table.add_column("Sentences", justify="right")
    table.add_column("Uploaded")

    for match in result.internal_matches:
        table.add_row(
            match.other_document_id,
            f"{match.match_percentage}%",
            str(match.match_count),
            match.uploaded_at.strftime('%Y-%m-%d %H:%M')
        )

    console.print(table)
    console.print()


def display_result(result: ScanResult, text: str, output_path: str = "", show_text: bool = True):
    """
    Display a scan result with rich formatting.

    Args:
        result: ScanResult object
        text: The scanned text
        output_path: Path where the report was saved, if any
        show_text: Whether to print the highlighted text
    """
    console = create_console()

    display_summary(console, result)
    display_internal_matches(console, result)

    if show_text and result.highlighted_sections:
        console.print("Highlighted text:", style="bold")
        console.print(highlight_sections(text, result.highlighted_sections))
        console.print()

    if output_path:
        console.print(f"Full report saved to: {output_path}", style="cyan")
