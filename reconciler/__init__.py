"""Reconciliation module for comparing balances across statement documents."""
from reconciler.balance_checker import BalanceReconciler, build_payload, reconcile, summarize
from reconciler.models import AccountGroup, DocumentDetail, ExtractedRecord, InvalidInputError

__all__ = [
    "AccountGroup",
    "BalanceReconciler",
    "DocumentDetail",
    "ExtractedRecord",
    "InvalidInputError",
    "build_payload",
    "reconcile",
    "summarize",
]
