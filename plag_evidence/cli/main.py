"""Command-line interface for plag-evidence."""

import sys
import logging
from pathlib import Path
import click

from ..core import (
    ChromaFingerprintStore,
    Config,
    DocumentScanner,
    EvidenceError,
    OpenAIClassificationOracle,
    ReportGenerator,
    WebSearchMatchProvider,
    count_words,
    segment,
)
from ..core.extract import read_document
from .display import create_console, display_result


# Configure logging
def setup_logging(verbose: bool):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def open_store(config: Config) -> ChromaFingerprintStore:
    return ChromaFingerprintStore(
        persist_dir=config.chroma_persist_dir,
        collection_name=config.fingerprint_collection,
        min_sentence_length=config.min_sentence_length
    )


@click.group()
@click.version_option(version="0.1.0", prog_name="plag-evidence")
def cli():
    """Originality evidence: fingerprint documents and score their overlap with prior content."""
    pass


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, path_type=Path))
@click.option('--document-id', '-d', help='Document identifier (defaults to the file name)')
@click.option('--owner', default='cli', show_default=True, help='Owning user identifier')
@click.option('--output', '-o', type=click.Path(path_type=Path), help='Output file path')
@click.option('--format', '-f', type=click.Choice(['json', 'text']), default='json', help='Output format')
@click.option('--store-dir', envvar='CHROMA_PERSIST_DIR', help='Fingerprint store directory')
@click.option('--window', type=int, help='Number of recent fingerprints compared')
@click.option('--threshold', '-t', type=int, help='Materiality threshold (0-100)')
@click.option('--policy', type=click.Choice(['max', 'weighted']), help='Score combination policy')
@click.option('--web-search/--no-web-search', default=True, help='Look sentences up on the web when configured')
@click.option('--oracle', is_flag=True, help='Consult the text classification oracle')
@click.option('--show-text/--no-show-text', default=True, help='Print the highlighted text')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
def scan(
    file_path: Path,
    document_id: str,
    owner: str,
    output: Path,
    format: str,
    store_dir: str,
    window: int,
    threshold: int,
    policy: str,
    web_search: bool,
    oracle: bool,
    show_text: bool,
    verbose: bool
):
    """
    Scan a file for overlap with previously fingerprinted documents.

    FILE_PATH: Path to the document to scan
    """
    setup_logging(verbose)

    config = Config()
    if store_dir:
        config.chroma_persist_dir = store_dir
    if window:
        config.candidate_window = window
    if threshold is not None:
        config.materiality_threshold = threshold
    if policy:
        config.score_policy = policy

    provider = WebSearchMatchProvider(config) if web_search else None
    text_oracle = None
    if oracle or config.oracle_enabled:
        if not config.validate_api_key():
            click.echo("Error: OPENAI_API_KEY not set. It is required for --oracle.", err=True)
            sys.exit(1)
        text_oracle = OpenAIClassificationOracle(config)

    document_id = document_id or file_path.name
    if not output:
        output = Path(f"report_{file_path.stem}.{format}")

    click.echo(f"🔍 Scanning {file_path} as {document_id}")
    click.echo(f"   Store: {config.chroma_persist_dir}")
    click.echo(f"   Window: {config.candidate_window}, threshold: {config.materiality_threshold}%")
    click.echo(f"   Web search: {'on' if provider and provider.is_enabled() else 'off'}")

    scanner = DocumentScanner(config, store=open_store(config), provider=provider, oracle=text_oracle)
    try:
        text = read_document(file_path)
        result = scanner.scan_text(document_id, owner, file_path.name, text)
    except EvidenceError as e:
        click.echo(f"\n❌ Scan failed: {str(e)}", err=True)
        sys.exit(1)
    finally:
        scanner.shutdown()

    ReportGenerator().save_report(result, str(output), format)
    display_result(result, text, str(output), show_text=show_text)


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, path_type=Path))
@click.option('--document-id', '-d', help='Document identifier (defaults to the file name)')
@click.option('--owner', default='cli', show_default=True, help='Owning user identifier')
@click.option('--store-dir', envvar='CHROMA_PERSIST_DIR', help='Fingerprint store directory')
def fingerprint(file_path: Path, document_id: str, owner: str, store_dir: str):
    """
    Add a file to the fingerprint store without scanning it.

    FILE_PATH: Path to the document
    """
    config = Config()
    if store_dir:
        config.chroma_persist_dir = store_dir

    try:
        text = read_document(file_path)
        record = open_store(config).create_fingerprint(
            document_id or file_path.name, owner, file_path.name, text
        )
    except EvidenceError as e:
        click.echo(f"❌ {str(e)}", err=True)
        sys.exit(1)

    click.echo(f"✅ Fingerprinted {record.document_id}")
    click.echo(f"   Content hash: {record.content_hash}")
    click.echo(f"   Sentences: {len(record.sentence_hashes)}")
    click.echo(f"   Words: {record.word_count:,}")


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, path_type=Path))
@click.option('--min-length', type=int, default=20, help='Minimum normalized sentence length')
def analyze(file_path: Path, min_length: int):
    """
    Show segmentation statistics for a file without scanning it.

    FILE_PATH: Path to the file to analyze
    """
    click.echo(f"📊 Analyzing file: {file_path}")

    try:
        text = read_document(file_path)
    except EvidenceError as e:
        click.echo(f"Error reading file: {str(e)}", err=True)
        sys.exit(1)

    sentences = segment(text, min_length)

    click.echo(f"\n📈 Segmentation Statistics:")
    click.echo(f"   File length: {len(text):,} characters")
    click.echo(f"   Words: {count_words(text):,}")
    click.echo(f"   Fingerprinted sentences: {len(sentences)}")

    if sentences:
        lengths = [len(s.normalized_text) for s in sentences]
        click.echo(f"   Average sentence length: {sum(lengths) / len(lengths):.0f} characters")

        click.echo(f"\n📝 Preview of first 3 sentences:")
        for i, sentence in enumerate(sentences[:3], 1):
            preview = sentence.original_text[:100]
            if len(sentence.original_text) > 100:
                preview += "..."
            click.echo(f"\n   Sentence {i} [{sentence.start_offset}:{sentence.end_offset}]:")
            click.echo(f"   {preview}")


@cli.command()
@click.option('--limit', '-n', type=int, default=20, help='Number of fingerprints to list')
@click.option('--store-dir', envvar='CHROMA_PERSIST_DIR', help='Fingerprint store directory')
def recent(limit: int, store_dir: str):
    """List the most recently fingerprinted documents."""
    from rich.table import Table

    config = Config()
    if store_dir:
        config.chroma_persist_dir = store_dir

    store = open_store(config)
    records = store.list_recent_fingerprints(None, limit)

    table = Table(title=f"{len(records)} of {store.count()} fingerprints")
    table.add_column("Document")
    table.add_column("Owner")
    table.add_column("Sentences", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Created")
    for record in records:
        table.add_row(
            record.document_id,
            record.owner_id,
            str(len(record.sentence_hashes)),
            f"{record.word_count:,}",
            record.created_at.strftime('%Y-%m-%d %H:%M:%S')
        )
    create_console().print(table)


@cli.command()
@click.option('--document-id', '-d', help='Remove the fingerprint of one document')
@click.option('--owner', help='Remove every fingerprint of one owner')
@click.option('--store-dir', envvar='CHROMA_PERSIST_DIR', help='Fingerprint store directory')
def forget(document_id: str, owner: str, store_dir: str):
    """Delete fingerprints of a document or of every document of an owner."""
    if not document_id and not owner:
        click.echo("Error: provide --document-id or --owner.", err=True)
        sys.exit(1)

    config = Config()
    if store_dir:
        config.chroma_persist_dir = store_dir
    store = open_store(config)

    removed = 0
    if document_id:
        removed += store.delete_document(document_id)
    if owner:
        removed += store.delete_owner(owner)
    click.echo(f"🗑  Removed {removed} fingerprint(s)")


if __name__ == "__main__":
    cli()
