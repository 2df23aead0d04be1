#!/usr/bin/env python3
"""
Balance Reconciliation Engine - Main Entry Point

Extracts the final balance of several statement documents, groups them by
account number and reports whether the balances agree for each account.

Usage:
    python main.py <input> [<input> ...] [options]

Examples:
    python main.py extrato_julho.pdf anexo_sei.pdf
    python main.py *.pdf --extractor claude --output result.xlsx
    python main.py records.csv --language en --output result.json
"""
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from config import SUPPORTED_LANGUAGES, get_api_key, get_config
from extractors import (
    EXTRACTION_BACKENDS,
    BaseExtractor,
    ExtractionError,
    RecordTableLoader,
    get_extractor,
)
from output.excel_generator import generate_reconciliation_excel
from output.json_report import write_json_report
from reconciler.balance_checker import BalanceReconciler, summarize
from reconciler.models import ExtractedRecord, InvalidInputError

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_DIVERGENT = 2


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Reconcile final balances across statement documents.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py extrato_julho.pdf anexo_sei.pdf
  python main.py *.pdf --extractor claude --output result.xlsx
  python main.py records.csv --language en --output result.json

Exit codes:
  0 - all accounts consistent
  1 - invalid input or extraction failure
  2 - at least one account has divergent balances

Environment Variables:
  ANTHROPIC_API_KEY   - Claude API key for the claude extractor
  EXTRACTION_BACKEND  - Default extractor for PDFs (pdf or claude)
  NARRATIVE_LANGUAGE  - Default language for explanations (pt or en)
        """
    )

    parser.add_argument(
        'inputs',
        nargs='+',
        help='Statement PDFs and/or CSV/XLSX tables of extracted records'
    )
    parser.add_argument(
        '--output', '-o',
        default=None,
        help='Write the result to a .json or .xlsx file'
    )
    parser.add_argument(
        '--extractor', '-e',
        choices=EXTRACTION_BACKENDS,
        default=None,
        help='Field extractor for PDF inputs (default from config)'
    )
    parser.add_argument(
        '--language', '-l',
        choices=SUPPORTED_LANGUAGES,
        default=None,
        help='Language of the explanations (default from config)'
    )
    parser.add_argument(
        '--api-key', '-k',
        default=None,
        help='Anthropic API key (or set ANTHROPIC_API_KEY env var)'
    )
    parser.add_argument(
        '--sheet',
        default=None,
        help='Sheet name for XLSX record tables (defaults to first sheet)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    return parser.parse_args(argv)


def detect_file_type(filepath: str) -> str:
    """
    Detect input type from extension.

    Returns:
        'pdf' or 'table'
    """
    ext = Path(filepath).suffix.lower()
    if ext == '.pdf':
        return 'pdf'
    elif ext in ('.csv', '.txt', '.xlsx'):
        return 'table'
    else:
        raise ValueError(f"Unknown file extension: {ext or '(none)'} for {filepath}")


def collect_records(args: argparse.Namespace) -> List[ExtractedRecord]:
    """
    Extract records from every input, in input order.

    Raises:
        ExtractionError: If any input fails; nothing is reconciled then
    """
    records: List[ExtractedRecord] = []
    extractor: Optional[BaseExtractor] = None

    for filepath in args.inputs:
        if detect_file_type(filepath) == 'table':
            records.extend(RecordTableLoader(filepath, sheet_name=args.sheet).load())
            continue

        if extractor is None:
            extractor = get_extractor(args.extractor, api_key=args.api_key or get_api_key())
        records.append(extractor.extract(filepath))

    return records


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    for filepath in args.inputs:
        if not os.path.exists(filepath):
            print(f"Error: Input file not found: {filepath}")
            return EXIT_ERROR

    if args.output and Path(args.output).suffix.lower() not in ('.json', '.xlsx'):
        print(f"Error: Output must be a .json or .xlsx file: {args.output}")
        return EXIT_ERROR

    print(f"\n{'='*60}")
    print("Balance Reconciliation")
    print(f"{'='*60}")
    print(f"Documents: {len(args.inputs)}")
    print(f"Extractor: {args.extractor or get_config().get('extraction_backend')}")
    print(f"{'='*60}\n")

    try:
        records = collect_records(args)
    except ValueError as e:
        print(f"Error: {e}")
        return EXIT_ERROR
    except ExtractionError as e:
        print(f"Error: Extraction failed for {e.file_name or 'input'}: {e}")
        return EXIT_ERROR

    issues = BaseExtractor.validate(records)
    if issues:
        print(f"Extraction warnings ({len(issues)}):")
        for issue in issues[:10]:
            print(f"  - {issue.message}")
        if len(issues) > 10:
            print(f"  ... and {len(issues) - 10} more")
        print()

    try:
        account_groups = BalanceReconciler(args.language).reconcile(records)
    except InvalidInputError as e:
        print(f"Error: {e}")
        return EXIT_ERROR

    summary = summarize(account_groups)

    print("--- Reconciliation Summary ---")
    print(f"Accounts: {summary['total_accounts']}")
    print(f"Documents: {summary['total_documents']}")
    print(f"Matched: {summary['matched_accounts']}")
    print(f"Divergent: {summary['divergent_accounts']}")
    print(f"Status: {summary['reconciliation_status']}\n")

    for group in account_groups:
        marker = "OK  " if group.values_match else "DIFF"
        print(f"[{marker}] {group.account_number}")
        for doc in group.documents:
            print(f"       {doc.file_name}: {doc.balance} ({doc.bank_name or '-'}, {doc.document_date or '-'})")
        print(f"       {group.details}\n")

    if args.output:
        if Path(args.output).suffix.lower() == '.xlsx':
            generate_reconciliation_excel(account_groups, args.output)
        else:
            write_json_report(account_groups, args.output)
        print(f"Output saved to: {args.output}")

    return EXIT_OK if summary['divergent_accounts'] == 0 else EXIT_DIVERGENT


if __name__ == "__main__":
    sys.exit(main())
