"""
Loader for manually keyed statement records in CSV or XLSX tables.

Every cell is read as text so that balances keep the exact formatting the
operator typed ("2.417.764,24" must not become a float).
"""
import csv
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from config import FILE_ENCODINGS, get_column_keywords, get_config
from extractors.base_extractor import ExtractionError
from reconciler.models import ExtractedRecord

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("account_number", "raw_balance_text")


class RecordTableLoader:
    """
    Reads one ExtractedRecord per table row.

    Columns are identified by header keywords (English or Portuguese).
    """

    def __init__(self, filepath: str, sheet_name: Optional[str] = None):
        """
        Initialize the loader.

        Args:
            filepath: Path to a .csv or .xlsx file
            sheet_name: Sheet to read for Excel files (defaults to first sheet)
        """
        self.filepath = filepath
        self.sheet_name = sheet_name
        self._column_mapping: Dict[str, str] = {}

    @property
    def column_mapping(self) -> Dict[str, str]:
        return self._column_mapping

    def load(self) -> List[ExtractedRecord]:
        """
        Load records from the table.

        Returns:
            Records in row order; fully blank rows are skipped

        Raises:
            ExtractionError: If the file cannot be read or lacks required columns
        """
        df = self._read_table()
        self._column_mapping = self._identify_columns(df)
        logger.debug("Column mapping: %s", self._column_mapping)

        missing = [name for name in REQUIRED_FIELDS if name not in self._column_mapping]
        if missing:
            raise ExtractionError(
                f"{Path(self.filepath).name}: missing column(s) for {', '.join(missing)}",
                file_name=Path(self.filepath).name,
            )

        records = []
        table_name = Path(self.filepath).name

        for row_number, (_, row) in enumerate(df.iterrows(), 1):
            values = {
                field: str(row[column]).strip() if field != "raw_balance_text" else str(row[column])
                for field, column in self._column_mapping.items()
            }
            if not any(value.strip() for value in values.values()):
                continue

            records.append(ExtractedRecord(
                file_name=values.get("file_name") or f"{table_name}#row{row_number}",
                bank_name=values.get("bank_name", ""),
                account_number=values.get("account_number", ""),
                document_date=values.get("document_date", ""),
                raw_balance_text=values.get("raw_balance_text", ""),
            ))

        logger.info("Loaded %d record(s) from %s", len(records), table_name)
        return records

    def _read_table(self) -> pd.DataFrame:
        """Read the table with every cell as text."""
        suffix = Path(self.filepath).suffix.lower()
        name = Path(self.filepath).name

        if suffix == '.xlsx':
            try:
                return pd.read_excel(
                    self.filepath,
                    sheet_name=self.sheet_name or 0,
                    dtype=str,
                    keep_default_na=False,
                )
            except (OSError, ValueError) as e:
                raise ExtractionError(f"Could not read {name}: {e}", file_name=name) from e

        if suffix not in ('.csv', '.txt'):
            raise ExtractionError(
                f"Unsupported table format: {suffix or '(none)'} (expected .csv, .txt or .xlsx)",
                file_name=name,
            )

        for encoding in get_config().get("supported_encodings", FILE_ENCODINGS):
            try:
                df = pd.read_csv(
                    self.filepath,
                    sep=None,
                    engine='python',
                    dtype=str,
                    keep_default_na=False,
                    encoding=encoding,
                )
                logger.debug("Read %s with encoding %s", name, encoding)
                return df
            except UnicodeDecodeError:
                continue
            except (OSError, csv.Error, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
                raise ExtractionError(f"Could not read {name}: {e}", file_name=name) from e

        raise ExtractionError(f"Could not decode {name} with any supported encoding", file_name=name)

    def _identify_columns(self, df: pd.DataFrame) -> Dict[str, str]:
        """
        Map record fields to table columns.

        Exact header matches win over substring matches, and each column is
        used for at most one field. Among substring matches the longest
        keyword wins, so "Bank Account" maps to the account number.
        """
        headers = {col: str(col).strip().lower() for col in df.columns}
        keywords = get_column_keywords()
        mapping: Dict[str, str] = {}
        used = set()

        for field, field_keywords in keywords.items():
            for col, header in headers.items():
                if col not in used and header in field_keywords:
                    mapping[field] = col
                    used.add(col)
                    break

        candidates = []
        for order, (field, field_keywords) in enumerate(keywords.items()):
            if field in mapping:
                continue
            for position, (col, header) in enumerate(headers.items()):
                if col in used:
                    continue
                lengths = [len(kw) for kw in field_keywords if kw in header]
                if lengths:
                    candidates.append((-max(lengths), order, position, field, col))

        for _, _, _, field, col in sorted(candidates):
            if field not in mapping and col not in used:
                mapping[field] = col
                used.add(col)

        return mapping
