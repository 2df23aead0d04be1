"""
Configuration and constants for the balance reconciliation engine.

This module provides:
- Default settings for extraction and narrative generation
- Support for user-configurable settings via environment variables
- Loading overrides from YAML files
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# Narrative Settings
# =============================================================================

SUPPORTED_LANGUAGES: List[str] = ["pt", "en"]

# The reconciliation reports were originally produced in Brazilian Portuguese
DEFAULT_LANGUAGE: str = "pt"

# =============================================================================
# Statement Text Heuristics
# =============================================================================

# Lines carrying the final balance, in order of preference
BALANCE_LINE_KEYWORDS: List[str] = [
    "7-SALDO",        # "Anexo SEI" statements
    "SALDO FINAL",
    "SALDO ATUAL",
    "SALDO",
    "CLOSING BALANCE",
    "BALANCE",
]

# Labels that precede an account number
ACCOUNT_LABEL_KEYWORDS: List[str] = [
    "conta corrente",
    "conta",
    "c/c",
    "account number",
    "account",
    "acct",
]

# Bank names looked up verbatim in the document text
KNOWN_BANKS: List[str] = [
    "Banco do Brasil",
    "Caixa Econômica Federal",
    "Caixa Economica Federal",
    "Banco Bradesco",
    "Bradesco",
    "Itaú Unibanco",
    "Itaú",
    "Itau",
    "Santander",
    "Banco Inter",
    "Nubank",
    "Sicoob",
    "Sicredi",
    "Banrisul",
    "BTG Pactual",
]

# =============================================================================
# Column Name Mappings for Record Tables
# =============================================================================

FILE_NAME_COLUMN_KEYWORDS: List[str] = [
    "filename",
    "file name",
    "file_name",
    "file",
    "arquivo",
]

BANK_COLUMN_KEYWORDS: List[str] = [
    "bankname",
    "bank name",
    "bank_name",
    "bank",
    "banco",
]

ACCOUNT_COLUMN_KEYWORDS: List[str] = [
    "accountnumber",
    "account number",
    "account_number",
    "account",
    "conta",
    "numero da conta",
    "número da conta",
]

DATE_COLUMN_KEYWORDS: List[str] = [
    "documentdate",
    "document date",
    "document_date",
    "date",
    "data",
]

BALANCE_COLUMN_KEYWORDS: List[str] = [
    "rawbalancetext",
    "balance",
    "closing balance",
    "final balance",
    "saldo",
    "saldo final",
]

# =============================================================================
# Claude API Settings
# =============================================================================

EXTRACTION_MODEL: str = "claude-3-5-haiku-latest"
EXTRACTION_MAX_TOKENS: int = 512

# =============================================================================
# Application Info
# =============================================================================

APP_NAME: str = "Balance Reconciliation Engine"
APP_VERSION: str = "1.0.0"

# =============================================================================
# File Encodings to Try
# =============================================================================

FILE_ENCODINGS: List[str] = [
    "utf-8-sig",      # Excel CSV with BOM
    "utf-8",
    "cp1252",
    "iso-8859-1",
]

# =============================================================================
# API Key
# =============================================================================

def get_api_key() -> str:
    """Get the Anthropic API key from environment variable."""
    return os.environ.get("ANTHROPIC_API_KEY", "")


# =============================================================================
# Flexible Configuration System
# =============================================================================

class Config:
    """
    Flexible configuration manager that supports:
    - Environment variables
    - Custom YAML configuration files
    - Runtime overrides
    """

    _instance: Optional["Config"] = None
    _settings: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_defaults()
            cls._instance._load_custom_config()
        return cls._instance

    def _load_defaults(self) -> None:
        """Load default settings."""
        self._settings = {
            # Narrative settings
            "narrative_language": os.environ.get("NARRATIVE_LANGUAGE", DEFAULT_LANGUAGE).lower(),

            # Extraction settings
            "extraction_backend": os.environ.get("EXTRACTION_BACKEND", "pdf").lower(),
            "balance_line_keywords": list(BALANCE_LINE_KEYWORDS),
            "account_label_keywords": list(ACCOUNT_LABEL_KEYWORDS),
            "known_banks": list(KNOWN_BANKS),

            # API settings
            "extraction_model": os.environ.get("EXTRACTION_MODEL", EXTRACTION_MODEL),
            "extraction_max_tokens": EXTRACTION_MAX_TOKENS,
            "api_retry_count": int(os.environ.get("API_RETRY_COUNT", "3")),
            "api_timeout": int(os.environ.get("API_TIMEOUT", "60")),

            # File settings
            "supported_encodings": FILE_ENCODINGS,
        }

    def _load_custom_config(self) -> None:
        """Load custom configuration from YAML file if available."""
        config_paths = [
            Path.cwd() / "config.yaml",
            Path.cwd() / "config.yml",
            Path(__file__).parent / "config.yaml",
            Path.home() / ".balancereconciler" / "config.yaml",
        ]

        for config_path in config_paths:
            if config_path.exists():
                try:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        custom_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning("Could not load config from %s: %s", config_path, e)
                    continue

                self._settings.update(custom_config)
                logger.info("Loaded config from %s", config_path)
                break

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self._settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value at runtime."""
        self._settings[key] = value

    @property
    def narrative_language(self) -> str:
        return self.get("narrative_language", DEFAULT_LANGUAGE)

    @property
    def balance_line_keywords(self) -> List[str]:
        return self.get("balance_line_keywords", BALANCE_LINE_KEYWORDS)

    @property
    def account_label_keywords(self) -> List[str]:
        return self.get("account_label_keywords", ACCOUNT_LABEL_KEYWORDS)

    @property
    def known_banks(self) -> List[str]:
        return self.get("known_banks", KNOWN_BANKS)

    def reload(self) -> None:
        """Reload configuration from files."""
        self._load_defaults()
        self._load_custom_config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()


def get_column_keywords() -> Dict[str, List[str]]:
    """Get all record table column keywords as a dictionary."""
    return {
        "file_name": FILE_NAME_COLUMN_KEYWORDS,
        "bank_name": BANK_COLUMN_KEYWORDS,
        "account_number": ACCOUNT_COLUMN_KEYWORDS,
        "document_date": DATE_COLUMN_KEYWORDS,
        "raw_balance_text": BALANCE_COLUMN_KEYWORDS,
    }
