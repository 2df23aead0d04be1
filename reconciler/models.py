"""
Records and results exchanged by the reconciliation engine.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple


class InvalidInputError(ValueError):
    """Raised when a batch of records cannot be reconciled."""


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class ExtractedRecord:
    """
    Fields extracted from a single statement document.
    """
    file_name: str
    bank_name: str
    account_number: str
    document_date: str
    raw_balance_text: str

    def to_dict(self) -> Dict[str, str]:
        """Convert record to its wire representation."""
        return {
            'fileName': self.file_name,
            'bankName': self.bank_name,
            'accountNumber': self.account_number,
            'documentDate': self.document_date,
            'rawBalanceText': self.raw_balance_text,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ExtractedRecord':
        """Create record from a wire or snake_case dictionary."""
        return cls(
            file_name=_text(_first_present(data, 'fileName', 'file_name')),
            bank_name=_text(_first_present(data, 'bankName', 'bank_name')),
            account_number=_text(_first_present(data, 'accountNumber', 'account_number')),
            document_date=_text(_first_present(data, 'documentDate', 'document_date')),
            raw_balance_text=_text(_first_present(
                data, 'rawBalanceText', 'raw_balance_text', 'balance'
            )),
        )

    @property
    def account_key(self) -> str:
        """Account number as used for grouping."""
        return self.account_number.strip()


@dataclass(frozen=True)
class DocumentDetail:
    """
    Output view of a record. The balance is the original raw text.
    """
    file_name: str
    bank_name: str
    document_date: str
    balance: str

    @classmethod
    def from_record(cls, record: ExtractedRecord) -> 'DocumentDetail':
        return cls(
            file_name=record.file_name,
            bank_name=record.bank_name,
            document_date=record.document_date,
            balance=record.raw_balance_text,
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            'fileName': self.file_name,
            'bankName': self.bank_name,
            'documentDate': self.document_date,
            'balance': self.balance,
        }


@dataclass(frozen=True)
class BalanceCluster:
    """Documents of one account that share a normalized balance."""
    normalized: str
    documents: Tuple[ExtractedRecord, ...]

    @property
    def variants(self) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
        """
        Each distinct printed balance text with the files that printed it,
        in first-appearance order.
        """
        printed: Dict[str, List[str]] = {}
        for doc in self.documents:
            printed.setdefault(doc.raw_balance_text, []).append(doc.file_name)
        return tuple((text, tuple(files)) for text, files in printed.items())

    @property
    def file_names(self) -> Tuple[str, ...]:
        return tuple(doc.file_name for doc in self.documents)


@dataclass(frozen=True)
class AccountGroup:
    """
    Reconciliation outcome for a single account.
    """
    account_number: str
    documents: Tuple[DocumentDetail, ...]
    values_match: bool
    details: str

    @property
    def is_single_document(self) -> bool:
        return len(self.documents) == 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert group to its wire representation."""
        return {
            'accountNumber': self.account_number,
            'documents': [doc.to_dict() for doc in self.documents],
            'valuesMatch': self.values_match,
            'details': self.details,
        }


def coerce_record(item: Any, position: Optional[int] = None) -> ExtractedRecord:
    """
    Accept an ExtractedRecord or a mapping of its fields.

    Raises:
        InvalidInputError: If the item is neither
    """
    if isinstance(item, ExtractedRecord):
        return item
    if isinstance(item, Mapping):
        return ExtractedRecord.from_dict(item)
    where = f" at position {position}" if position is not None else ""
    raise InvalidInputError(
        f"Unsupported record{where}: expected ExtractedRecord or mapping, "
        f"got {type(item).__name__}"
    )
