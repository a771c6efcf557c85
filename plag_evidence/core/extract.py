"""Text extraction for plain-text documents."""

from pathlib import Path
from typing import Union

import chardet

from .errors import ExtractionFailure
from .log import base_logger

logger = base_logger.getChild('extract')

FALLBACK_ENCODINGS = ['utf-8', 'gb2312', 'gbk', 'gb18030', 'big5', 'latin-1']


def read_document(file_path: Union[str, Path]) -> str:
    """
    Read a text file with automatic encoding detection.

    Args:
        file_path: Path to the file

    Returns:
        File contents, stripped

    Raises:
        ExtractionFailure: If the file is missing, unreadable or empty
    """
    path = Path(file_path)
    if not path.is_file():
        raise ExtractionFailure(f"File not found: {file_path}")

    try:
        raw_data = path.read_bytes()
    except OSError as e:
        raise ExtractionFailure(f"Could not read {file_path}: {e}") from e

    result = chardet.detect(raw_data)
    encoding = result['encoding'] or 'utf-8'
    confidence = result['confidence'] or 0
    logger.debug(f"Detected encoding for {file_path}: {encoding} (confidence: {confidence:.2f})")

    for enc in [encoding] + FALLBACK_ENCODINGS:
        try:
            text = raw_data.decode(enc)
        except (UnicodeDecodeError, LookupError):
            continue
        logger.info(f"Successfully read {file_path} with encoding: {enc}")
        text = text.strip()
        if not text:
            raise ExtractionFailure(f"No text found in {file_path}")
        return text

    raise ExtractionFailure(f"Could not decode file {file_path} with any known encoding")
