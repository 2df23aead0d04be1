"""
Claude API client for extracting statement fields from PDF documents.
"""
import base64
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from anthropic import Anthropic, APIError

from config import get_config
from extractors.base_extractor import BaseExtractor, ExtractionError
from reconciler.models import ExtractedRecord

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """Você é um analista de dados financeiros especialista.

Analise o documento financeiro em PDF anexado (arquivo original: "{file_name}") e extraia:
- bankName: o nome do banco (ex: "Banco do Brasil", "Caixa Econômica Federal", "BB").
- accountNumber: o número da conta (ex: "12292-0").
- documentDate: a data do documento (ex: "31/07/2025").
- balance: o valor do saldo final. No documento "Anexo SEI", este valor está na linha "7-SALDO".

O saldo deve ser extraído por completo, exatamente como aparece no documento. A formatação \
está no padrão brasileiro, onde "." é separador de milhares e "," é separador decimal. \
Um valor como "2.417.764,24" deve ser extraído como "2.417.764,24". Não abrevie nem altere o formato.

Se um campo não for encontrado, use uma string vazia.

Responda SOMENTE com um objeto JSON neste formato exato:
{{"bankName": "...", "accountNumber": "...", "documentDate": "...", "balance": "..."}}"""


class ClaudeFieldExtractor(BaseExtractor):
    """
    Uses the Claude API to read statement fields from a PDF.
    """

    def __init__(self, api_key: str, client: Optional[Any] = None):
        """
        Initialize the Claude extractor.

        Args:
            api_key: Anthropic API key
            client: Pre-built Anthropic client (mainly for tests)
        """
        config = get_config()
        self.api_key = api_key
        self.model = config.get("extraction_model")
        self.max_tokens = config.get("extraction_max_tokens")
        self._client = client

        if self._client is None and self.api_key:
            self._client = Anthropic(
                api_key=self.api_key,
                max_retries=config.get("api_retry_count"),
                timeout=config.get("api_timeout"),
            )

    def is_available(self) -> bool:
        """Check if the Claude client is initialized and ready."""
        return self._client is not None

    def extract(self, filepath: str, file_name: Optional[str] = None) -> ExtractedRecord:
        name = self.display_name(filepath, file_name)

        if not self.is_available():
            raise ExtractionError(
                "No API key configured for Claude extraction "
                "(set ANTHROPIC_API_KEY or pass --api-key)",
                file_name=name,
            )

        try:
            pdf_data = base64.standard_b64encode(Path(filepath).read_bytes()).decode("ascii")
        except OSError as e:
            raise ExtractionError(f"Could not read {name}: {e}", file_name=name) from e

        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{
                    "role": "user",
                    "content": [
                        {
                            "type": "document",
                            "source": {
                                "type": "base64",
                                "media_type": "application/pdf",
                                "data": pdf_data,
                            },
                        },
                        {"type": "text", "text": EXTRACTION_PROMPT.format(file_name=name)},
                    ],
                }],
            )
        except APIError as e:
            raise ExtractionError(f"Claude API error for {name}: {e}", file_name=name) from e

        response_text = response.content[0].text.strip()
        fields = self._parse_response(response_text, name)

        return ExtractedRecord(
            file_name=name,
            bank_name=fields.get("bankName", ""),
            account_number=fields.get("accountNumber", ""),
            document_date=fields.get("documentDate", ""),
            raw_balance_text=fields.get("balance", ""),
        )

    @staticmethod
    def _parse_response(response_text: str, name: str) -> Dict[str, str]:
        """
        Parse the JSON object out of Claude's reply.

        Raises:
            ExtractionError: If no JSON object can be decoded
        """
        # The model sometimes wraps the object in prose or code fences
        json_match = re.search(r'\{.*\}', response_text, re.DOTALL)
        json_str = json_match.group(0) if json_match else response_text

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.error("Unparseable Claude response for %s: %s", name, response_text[:200])
            raise ExtractionError(
                f"Could not parse extraction result for {name}", file_name=name
            ) from e

        if not isinstance(data, dict):
            raise ExtractionError(f"Unexpected extraction result for {name}", file_name=name)

        return {
            key: "" if data.get(key) is None else str(data.get(key))
            for key in ("bankName", "accountNumber", "documentDate", "balance")
        }
