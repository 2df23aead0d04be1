"""
Excel output generator for reconciliation results.

Creates a formatted Excel workbook with three sheets:
1. Account Groups
2. Documents
3. Summary
"""
import logging
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from reconciler.balance_checker import summarize
from reconciler.models import AccountGroup

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
FLAGGED_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
ALT_ROW_FILL = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)


def generate_reconciliation_excel(
    account_groups: Sequence[AccountGroup],
    output_path: str,
) -> str:
    """
    Generate an Excel workbook with reconciliation results.

    Args:
        account_groups: Output of the reconciler
        output_path: Path to save the Excel file

    Returns:
        Path to the generated file
    """
    wb = Workbook()

    # Remove default sheet
    if 'Sheet' in wb.sheetnames:
        del wb['Sheet']

    _create_account_groups_sheet(wb, account_groups)
    _create_documents_sheet(wb, account_groups)
    _create_summary_sheet(wb, account_groups)

    wb.save(output_path)
    logger.info("Excel report saved: %s", output_path)

    return output_path


def _write_header(ws, headers: Sequence[str]) -> None:
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = THIN_BORDER
        cell.alignment = Alignment(horizontal='center')


def _set_widths(ws, widths: Sequence[int]) -> None:
    for col, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col)].width = width


def _create_account_groups_sheet(wb: Workbook, account_groups: Sequence[AccountGroup]) -> None:
    """Create the Account Groups sheet."""
    ws = wb.create_sheet("Account Groups")
    headers = ["Account", "Documents", "Values Match", "Details"]
    _write_header(ws, headers)

    for row_idx, group in enumerate(account_groups, 2):
        ws.cell(row=row_idx, column=1, value=group.account_number)
        ws.cell(row=row_idx, column=2, value=len(group.documents))
        ws.cell(row=row_idx, column=3, value="Yes" if group.values_match else "No")
        details = ws.cell(row=row_idx, column=4, value=group.details)
        details.alignment = Alignment(wrap_text=True, vertical='top')

        fill = MATCH_FILL if group.values_match else FLAGGED_FILL
        ws.cell(row=row_idx, column=3).fill = fill

    _set_widths(ws, [20, 12, 14, 100])
    ws.freeze_panes = "A2"


def _create_documents_sheet(wb: Workbook, account_groups: Sequence[AccountGroup]) -> None:
    """Create the Documents sheet, one row per document."""
    ws = wb.create_sheet("Documents")
    headers = ["Account", "File", "Bank", "Date", "Balance", "Status"]
    _write_header(ws, headers)

    row_idx = 2
    for group in account_groups:
        if group.is_single_document:
            status = "Single document"
        elif group.values_match:
            status = "Match"
        else:
            status = "Divergent"

        for doc in group.documents:
            values = [
                group.account_number,
                doc.file_name,
                doc.bank_name,
                doc.document_date,
                doc.balance,
                status,
            ]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row_idx, column=col, value=value)
                if not group.values_match:
                    cell.fill = FLAGGED_FILL
                elif row_idx % 2 == 0:
                    cell.fill = ALT_ROW_FILL
            row_idx += 1

    _set_widths(ws, [20, 35, 28, 14, 20, 18])
    ws.auto_filter.ref = f"A1:{get_column_letter(len(headers))}{max(row_idx - 1, 1)}"
    ws.freeze_panes = "A2"


def _create_summary_sheet(wb: Workbook, account_groups: Sequence[AccountGroup]) -> None:
    """Create the Summary sheet."""
    ws = wb.create_sheet("Summary")
    summary = summarize(account_groups)

    rows = [
        ("Reconciliation Summary", ""),
        ("", ""),
        ("Total Accounts", summary["total_accounts"]),
        ("Total Documents", summary["total_documents"]),
        ("Matched Accounts", summary["matched_accounts"]),
        ("Divergent Accounts", summary["divergent_accounts"]),
        ("Single-Document Accounts", summary["single_document_accounts"]),
        ("Status", summary["reconciliation_status"]),
    ]

    for row_idx, (label, value) in enumerate(rows, 1):
        cell = ws.cell(row=row_idx, column=1, value=label)
        if label and value == "":
            cell.font = Font(bold=True, size=12)
        ws.cell(row=row_idx, column=2, value=value)

    ws.column_dimensions['A'].width = 30
    ws.column_dimensions['B'].width = 25
