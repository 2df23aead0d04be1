"""
PDF field extractor for bank statements with a text layer.

Handles:
- Final balance lines ("7-SALDO" in "Anexo SEI" documents, "SALDO FINAL", ...)
- Account numbers following a "Conta" / "Account" label
- Document dates in dd/mm/yyyy style
- Bank names found verbatim in the document text

Scanned documents without extractable text are rejected; there is no OCR.
"""
import logging
import re
from typing import List, Optional, Sequence

import pdfplumber

from config import get_config
from extractors.base_extractor import BaseExtractor, ExtractionError
from reconciler.models import ExtractedRecord

logger = logging.getLogger(__name__)

# Monetary amount with a two-digit decimal part, optionally prefixed by a
# currency symbol and sign ("R$ 2.417.764,24", "-74.710,15", "$1,000.00")
_AMOUNT_PATTERN = re.compile(r'(?:R\$\s?|\$\s?)?-?\d[\d.,]*[.,]\d{2}(?!\d)')

_DATE_PATTERN = re.compile(r'\b(\d{2}[/.\-]\d{2}[/.\-]\d{4})\b')

_ACCOUNT_VALUE = r'\s*(?:n[º°o]\.?\s*)?[:#\-]?\s*(\d[\d.\-/]*\d|\d)'


def find_balance(text: str, keywords: Sequence[str]) -> str:
    """
    Find the final balance exactly as printed.

    The first keyword (in priority order) that appears on a line with an
    amount wins; the last amount on the last such line is returned.
    """
    lines = text.splitlines()

    for keyword in keywords:
        needle = keyword.upper()
        candidates = [
            line for line in lines
            if needle in line.upper() and _AMOUNT_PATTERN.search(line)
        ]
        if candidates:
            amounts = _AMOUNT_PATTERN.findall(candidates[-1])
            return amounts[-1].strip()

    return ""


def find_account_number(text: str, labels: Sequence[str]) -> str:
    """Find the first account number that follows one of the labels."""
    for label in labels:
        pattern = re.compile(r'\b' + re.escape(label) + r'\b' + _ACCOUNT_VALUE, re.IGNORECASE)
        match = pattern.search(text)
        if match:
            return match.group(1)
    return ""


def find_document_date(text: str) -> str:
    """Find the first dd/mm/yyyy style date in the text."""
    match = _DATE_PATTERN.search(text)
    return match.group(1) if match else ""


def find_bank_name(text: str, known_banks: Sequence[str]) -> str:
    """Return the first known bank name as spelled in the document."""
    for bank in known_banks:
        match = re.search(re.escape(bank), text, re.IGNORECASE)
        if match:
            return match.group(0)
    return ""


def parse_statement_text(
    text: str,
    file_name: str,
    balance_keywords: Optional[Sequence[str]] = None,
    account_labels: Optional[Sequence[str]] = None,
    known_banks: Optional[Sequence[str]] = None,
) -> ExtractedRecord:
    """
    Extract statement fields from plain document text.

    Fields that cannot be found are left empty; the reconciler decides what
    to do with an incomplete record.
    """
    config = get_config()
    return ExtractedRecord(
        file_name=file_name,
        bank_name=find_bank_name(text, known_banks or config.known_banks),
        account_number=find_account_number(text, account_labels or config.account_label_keywords),
        document_date=find_document_date(text),
        raw_balance_text=find_balance(text, balance_keywords or config.balance_line_keywords),
    )


class PDFFieldExtractor(BaseExtractor):
    """
    Extracts statement fields from the text layer of a PDF.

    Usage::

        extractor = PDFFieldExtractor()
        record = extractor.extract("extrato_julho.pdf")
    """

    def __init__(
        self,
        *,
        balance_keywords: Optional[List[str]] = None,
        account_labels: Optional[List[str]] = None,
        known_banks: Optional[List[str]] = None,
    ):
        config = get_config()
        self.balance_keywords = balance_keywords or config.balance_line_keywords
        self.account_labels = account_labels or config.account_label_keywords
        self.known_banks = known_banks or config.known_banks

    def extract(self, filepath: str, file_name: Optional[str] = None) -> ExtractedRecord:
        name = self.display_name(filepath, file_name)
        text = self._read_text(filepath, name)

        record = parse_statement_text(
            text,
            name,
            balance_keywords=self.balance_keywords,
            account_labels=self.account_labels,
            known_banks=self.known_banks,
        )
        logger.debug("Extracted %s: account=%r balance=%r",
                     name, record.account_number, record.raw_balance_text)
        return record

    @staticmethod
    def _read_text(filepath: str, name: str) -> str:
        try:
            with pdfplumber.open(filepath) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            raise ExtractionError(f"Could not open PDF {name}: {e}", file_name=name) from e

        text = "\n".join(pages)
        if not text.strip():
            raise ExtractionError(
                f"No extractable text in {name}. "
                "Scanned documents must be converted to text first.",
                file_name=name,
            )
        return text
