"""Validation and invariant checks for yield ledgers."""

from .sanity_checks import InvariantChecker, ValidationWarning, validate_ledger

__all__ = [
    "InvariantChecker",
    "ValidationWarning",
    "validate_ledger"
]
