"""
Natural-language explanation of an account group's comparison.

Three outcomes are narrated: a single document (no comparison performed),
consistent balances, and a divergence listing each distinct balance with the
files that reported it.
"""
from typing import Dict, Iterable, Optional, Sequence

from config import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES, get_config
from reconciler.comparator import cluster_balances
from reconciler.models import ExtractedRecord

NARRATIVE_TEMPLATES: Dict[str, Dict[str, str]] = {
    "pt": {
        "single": (
            "Apenas um documento foi encontrado para a conta {account} "
            "('{file}', saldo de {balance}); nenhuma comparação foi realizada."
        ),
        "match": (
            "Os saldos para a conta {account} são consistentes, com o valor de "
            "{balance} verificado nos documentos {files}."
        ),
        "divergence": "Foi encontrada uma divergência nos saldos da conta {account}: {entries}.",
        "entry": "saldo de {variants}",
        "variant": "{balance} em {files}",
    },
    "en": {
        "single": (
            "Only one document was found for account {account} "
            "('{file}', balance {balance}); no comparison was performed."
        ),
        "match": (
            "Balances for account {account} are consistent, with the value "
            "{balance} verified in documents {files}."
        ),
        "divergence": "A balance divergence was found for account {account}: {entries}.",
        "entry": "balance {variants}",
        "variant": "{balance} in {files}",
    },
}


def resolve_language(language: Optional[str] = None) -> str:
    """
    Pick the narrative language: explicit argument, then config, then default.

    Raises:
        ValueError: If the language has no templates
    """
    chosen = (language or get_config().narrative_language or DEFAULT_LANGUAGE).lower()
    if chosen not in NARRATIVE_TEMPLATES:
        raise ValueError(
            f"Unsupported narrative language: {chosen!r} "
            f"(expected one of {', '.join(SUPPORTED_LANGUAGES)})"
        )
    return chosen


def _quote_files(file_names: Iterable[str]) -> str:
    return ", ".join(f"'{name}'" for name in file_names)


def explain_group(
    account_number: str,
    documents: Sequence[ExtractedRecord],
    values_match: bool,
    language: Optional[str] = None,
) -> str:
    """
    Explain the comparison outcome for one account.

    Args:
        account_number: Trimmed account number of the group
        documents: Documents of the group, in arrival order
        values_match: Comparator verdict for the group
        language: "pt" or "en"; falls back to configuration

    Returns:
        Narrative sentence
    """
    templates = NARRATIVE_TEMPLATES[resolve_language(language)]
    first = documents[0]

    if len(documents) == 1:
        return templates["single"].format(
            account=account_number,
            file=first.file_name,
            balance=first.raw_balance_text,
        )

    if values_match:
        return templates["match"].format(
            account=account_number,
            balance=first.raw_balance_text,
            files=_quote_files(doc.file_name for doc in documents),
        )

    # Same-value documents printed differently keep their own text
    entries = "; ".join(
        templates["entry"].format(variants=" / ".join(
            templates["variant"].format(balance=text, files=_quote_files(files))
            for text, files in cluster.variants
        ))
        for cluster in cluster_balances(documents)
    )
    return templates["divergence"].format(account=account_number, entries=entries)
