"""
Abstract base class for statement field extractors.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from normalizer.balance_normalizer import has_balance_digits
from reconciler.models import ExtractedRecord

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Raised when fields cannot be extracted from a document."""

    def __init__(self, message: str, file_name: str = ""):
        super().__init__(message)
        self.file_name = file_name


@dataclass
class ValidationIssue:
    """
    Represents a suspicious field found after extraction.
    """
    file_name: str
    issue_type: str
    message: str
    severity: str = "warning"  # "warning" or "error"


class BaseExtractor(ABC):
    """
    Turns a statement document into an ExtractedRecord.

    Extractors report what the document says; they never decide whether a
    record is acceptable for reconciliation.
    """

    @abstractmethod
    def extract(self, filepath: str, file_name: Optional[str] = None) -> ExtractedRecord:
        """
        Extract statement fields from a single document.

        Args:
            filepath: Path to the document
            file_name: Display name (defaults to the path's basename)

        Returns:
            ExtractedRecord for the document

        Raises:
            ExtractionError: If the document cannot be read
        """

    def extract_all(self, filepaths: Iterable[str]) -> List[ExtractedRecord]:
        """
        Extract every document before returning.

        Raises:
            ExtractionError: On the first document that fails; no partial
                batch is returned
        """
        records = []
        for filepath in filepaths:
            records.append(self.extract(filepath))
        logger.info("Extracted fields from %d document(s)", len(records))
        return records

    @staticmethod
    def display_name(filepath: str, file_name: Optional[str] = None) -> str:
        return file_name or Path(filepath).name

    @staticmethod
    def validate(records: Iterable[ExtractedRecord]) -> List[ValidationIssue]:
        """
        Flag records whose fields look incomplete.

        Returns:
            List of ValidationIssue objects
        """
        issues = []

        for record in records:
            if not record.account_key:
                issues.append(ValidationIssue(
                    file_name=record.file_name,
                    issue_type="missing_account",
                    message=f"{record.file_name}: no account number found",
                    severity="error",
                ))

            if not has_balance_digits(record.raw_balance_text):
                issues.append(ValidationIssue(
                    file_name=record.file_name,
                    issue_type="missing_balance",
                    message=f"{record.file_name}: no final balance found",
                ))

            if not record.bank_name.strip():
                issues.append(ValidationIssue(
                    file_name=record.file_name,
                    issue_type="missing_bank",
                    message=f"{record.file_name}: bank name not identified",
                ))

            if not record.document_date.strip():
                issues.append(ValidationIssue(
                    file_name=record.file_name,
                    issue_type="missing_date",
                    message=f"{record.file_name}: document date not identified",
                ))

        return issues
