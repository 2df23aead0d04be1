"""
Partition extracted records by account number.
"""
from typing import Dict, Iterable, List, Tuple

from reconciler.models import ExtractedRecord


def group_by_account(
    records: Iterable[ExtractedRecord]
) -> List[Tuple[str, Tuple[ExtractedRecord, ...]]]:
    """
    Group records by trimmed account number.

    Groups come out in order of first appearance of their account and each
    group keeps its records in input order. Account numbers are compared
    exactly after trimming; there is no fuzzy matching.

    Args:
        records: Records in arrival order

    Returns:
        List of (account_number, records) pairs
    """
    groups: Dict[str, List[ExtractedRecord]] = {}

    for record in records:
        groups.setdefault(record.account_key, []).append(record)

    return [(account, tuple(members)) for account, members in groups.items()]
