"""
Output module for reconciliation reports.
"""
from .excel_generator import generate_reconciliation_excel
from .json_report import write_json_report

__all__ = ['generate_reconciliation_excel', 'write_json_report']
