"""Report generation module for scan results."""

import json
from datetime import datetime
from pathlib import Path

from .types import ScanResult


class ReportGenerator:
    """Generates JSON and plain-text reports for scan results."""

    FORMATS = ("json", "text")

    def generate_json(self, result: ScanResult, indent: int = 2) -> str:
        """
        Generate JSON format report.

        Args:
            result: ScanResult object
            indent: JSON indentation level

        Returns:
            JSON string
        """
        return json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=indent)

    def generate_text(self, result: ScanResult, max_sections: int = 10) -> str:
        """
        Generate plain text format report.

        Args:
            result: ScanResult object
            max_sections: Maximum number of highlighted sections to list

        Returns:
            Plain text report
        """
        lines = []
        lines.append("=" * 60)
        lines.append("ORIGINALITY REPORT")
        lines.append("=" * 60)
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Document: {result.document_id} ({result.text_length:,} characters)")
        lines.append("")

        lines.append("RESULTS SUMMARY:")
        lines.append(f"  Score: {result.score:.1f}%")
        lines.append(f"  Verdict: {result.verdict.value}")
        lines.append(f"  Internal coverage: {result.internal_coverage.percentage:.1f}%")
        lines.append(f"  External coverage: {result.external_coverage.percentage:.1f}%")
        lines.append(f"  Combined coverage: {result.combined_coverage.percentage:.1f}%")
        if result.oracle_score is not None:
            lines.append(f"  Oracle score: {result.oracle_score:.1f}")
        if result.degraded:
            lines.append(f"  Degraded steps: {', '.join(result.degraded)}")
        lines.append(f"  {result.summary}")
        lines.append("")

        if result.internal_matches:
            lines.append("PREVIOUSLY SUBMITTED DOCUMENTS:")
            for match in result.internal_matches:
                lines.append(f"  {match.other_document_id}: {match.match_percentage}% "
                             f"({match.match_count} sentences, uploaded {match.uploaded_at:%Y-%m-%d %H:%M})")
            lines.append("")

        if result.external_matches:
            lines.append("EXTERNAL SOURCES:")
            for match in result.external_matches:
                lines.append(f"  {match.source_title or 'Unknown'} - {match.source_url or 'N/A'} "
                             f"({match.similarity:.0f}%)")
            lines.append("")

        if result.highlighted_sections:
            lines.append("MATCHED SECTIONS:")
            lines.append("-" * 60)
            for i, section in enumerate(result.highlighted_sections[:max_sections], 1):
                preview = section.text[:200]
                if len(section.text) > 200:
                    preview += "..."
                lines.append(f"#{i} [{section.start}:{section.end}] {section.match_type} "
                             f"({section.similarity:.0f}%) - {section.source_title or 'unknown source'}")
                lines.append(f"  {preview}")
            if len(result.highlighted_sections) > max_sections:
                lines.append(f"\n... and {len(result.highlighted_sections) - max_sections} more sections")
        else:
            lines.append("No matched sections.")

        return "\n".join(lines)

    def save_report(self, result: ScanResult, output_path: str, format: str = "json"):
        """
        Save report to file.

        Args:
            result: ScanResult object
            output_path: Path to save the report
            format: Output format (json, text)
        """
        if format == "json":
            content = self.generate_json(result)
        elif format == "text":
            content = self.generate_text(result)
        else:
            raise ValueError(f"Unsupported format: {format}")

        Path(output_path).write_text(content, encoding='utf-8')
