"""
Extractors module for turning statement documents into records.
"""
from typing import Optional

from config import get_api_key, get_config
from .base_extractor import BaseExtractor, ExtractionError, ValidationIssue
from .claude_extractor import ClaudeFieldExtractor
from .pdf_extractor import PDFFieldExtractor
from .table_loader import RecordTableLoader

EXTRACTION_BACKENDS = ('pdf', 'claude')


def get_extractor(backend: Optional[str] = None, api_key: Optional[str] = None) -> BaseExtractor:
    """
    Build the document extractor for a backend name.

    Args:
        backend: "pdf" (text heuristics) or "claude"; defaults to configuration
        api_key: Anthropic API key for the claude backend

    Raises:
        ValueError: For an unknown backend
    """
    backend = (backend or get_config().get("extraction_backend", "pdf")).lower()

    if backend == 'pdf':
        return PDFFieldExtractor()
    if backend == 'claude':
        return ClaudeFieldExtractor(api_key or get_api_key())

    raise ValueError(
        f"Unknown extraction backend: {backend!r} (expected one of {', '.join(EXTRACTION_BACKENDS)})"
    )


__all__ = [
    'BaseExtractor',
    'ClaudeFieldExtractor',
    'EXTRACTION_BACKENDS',
    'ExtractionError',
    'PDFFieldExtractor',
    'RecordTableLoader',
    'ValidationIssue',
    'get_extractor',
]
