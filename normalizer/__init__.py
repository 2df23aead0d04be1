"""
Normalizer module for comparing raw statement balances.
"""
from .balance_normalizer import normalize_balance, has_balance_digits

__all__ = ['normalize_balance', 'has_balance_digits']
