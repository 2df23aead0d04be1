"""
JSON output for reconciliation results.
"""
import json
import logging
from typing import Sequence

from reconciler.balance_checker import build_payload
from reconciler.models import AccountGroup

logger = logging.getLogger(__name__)


def write_json_report(account_groups: Sequence[AccountGroup], output_path: str) -> str:
    """
    Write {"accountGroups": [...]} as UTF-8 JSON.

    Returns:
        Path to the generated file
    """
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(build_payload(account_groups), f, ensure_ascii=False, indent=2)

    logger.info("JSON report saved: %s", output_path)
    return output_path
