"""
Balance Reconciliation Module.

Reconciles final balances reported by several statement documents by:
1. Validating that every record carries an account number
2. Grouping documents by account number
3. Comparing normalized balances within each group
4. Explaining each group's outcome in natural language
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from reconciler.comparator import balances_match
from reconciler.grouper import group_by_account
from reconciler.models import (
    AccountGroup,
    DocumentDetail,
    ExtractedRecord,
    InvalidInputError,
    coerce_record,
)
from reconciler.narrative import explain_group, resolve_language

logger = logging.getLogger(__name__)


class BalanceReconciler:
    """
    Reconciles statement balances across documents of the same account.

    Holds no state beyond its narrative language, so one instance can be
    shared between unrelated batches.
    """

    def __init__(self, language: Optional[str] = None):
        """
        Initialize the reconciler.

        Args:
            language: Narrative language ("pt" or "en"); defaults to configuration
        """
        self.language = resolve_language(language)

    def reconcile(self, records: Optional[Sequence[Any]]) -> List[AccountGroup]:
        """
        Reconcile a batch of extracted records.

        Args:
            records: ExtractedRecord objects (or mappings of their fields)

        Returns:
            Account groups in order of first appearance

        Raises:
            InvalidInputError: If the batch is empty or any record lacks an
                account number. No groups are produced in that case.
        """
        validated = self._validate(records)

        account_groups: List[AccountGroup] = []
        for account_number, documents in group_by_account(validated):
            values_match = balances_match(documents)
            details = explain_group(account_number, documents, values_match, self.language)

            if not values_match:
                logger.warning("Balance divergence for account %s", account_number)

            account_groups.append(AccountGroup(
                account_number=account_number,
                documents=tuple(DocumentDetail.from_record(doc) for doc in documents),
                values_match=values_match,
                details=details,
            ))

        logger.info(
            "Reconciled %d document(s) across %d account(s)",
            len(validated), len(account_groups),
        )
        return account_groups

    def _validate(self, records: Optional[Sequence[Any]]) -> List[ExtractedRecord]:
        """Check the whole batch before any grouping happens."""
        if not records:
            raise InvalidInputError("No documents to reconcile")

        validated = [coerce_record(item, position) for position, item in enumerate(records, 1)]

        missing = [
            f"#{position} ({record.file_name or 'unnamed'})"
            for position, record in enumerate(validated, 1)
            if not record.account_key
        ]
        if missing:
            raise InvalidInputError(
                "Account number missing for document(s): " + ", ".join(missing)
            )

        return validated


def reconcile(
    records: Optional[Sequence[Any]],
    language: Optional[str] = None,
) -> List[AccountGroup]:
    """Reconcile records with a fresh BalanceReconciler."""
    return BalanceReconciler(language).reconcile(records)


def summarize(account_groups: Sequence[AccountGroup]) -> Dict[str, Any]:
    """
    Summarize reconciliation results.

    Args:
        account_groups: Output of reconcile()

    Returns:
        Dictionary with summary statistics
    """
    divergent = sum(1 for group in account_groups if not group.values_match)
    return {
        "total_accounts": len(account_groups),
        "total_documents": sum(len(group.documents) for group in account_groups),
        "matched_accounts": len(account_groups) - divergent,
        "divergent_accounts": divergent,
        "single_document_accounts": sum(1 for group in account_groups if group.is_single_document),
        "reconciliation_status": "PASS" if divergent == 0 else "FAIL - Review Required",
    }


def build_payload(account_groups: Sequence[AccountGroup]) -> Dict[str, Any]:
    """Build the JSON-ready {"accountGroups": [...]} document."""
    return {"accountGroups": [group.to_dict() for group in account_groups]}
