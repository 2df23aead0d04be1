"""
Balance comparison within an account group.
"""
from typing import Dict, List, Sequence

from normalizer.balance_normalizer import normalize_balance
from reconciler.models import BalanceCluster, ExtractedRecord


def balances_match(documents: Sequence[ExtractedRecord]) -> bool:
    """
    Check whether every document reports the same normalized balance.

    A single document always matches itself. Documents with an empty
    balance only match other documents with an empty balance.
    """
    return len({normalize_balance(doc.raw_balance_text) for doc in documents}) <= 1


def cluster_balances(documents: Sequence[ExtractedRecord]) -> List[BalanceCluster]:
    """
    Split documents into clusters sharing a normalized balance.

    Clusters are ordered by the first document reporting each balance, and
    each cluster keeps its documents in group order.

    Args:
        documents: Documents of one account group

    Returns:
        List of BalanceCluster objects
    """
    clusters: Dict[str, List[ExtractedRecord]] = {}

    for doc in documents:
        clusters.setdefault(normalize_balance(doc.raw_balance_text), []).append(doc)

    return [
        BalanceCluster(normalized=normalized, documents=tuple(members))
        for normalized, members in clusters.items()
    ]
