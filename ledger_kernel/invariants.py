"""
Ledger Invariants Contract.

These invariants are structural law for money movement. They are enforced by
the validation rules, the LedgerEngine pre-commit check, and database
constraints. No configuration may override them.

This module exists solely to declare these invariants explicitly.
"""

from enum import Enum, unique


@unique
class LedgerInvariant(str, Enum):
    """Non-configurable invariants enforced by the ledger kernel."""

    NON_NEGATIVE_BALANCE = "non_negative_balance"
    """Every profile balance is >= 0 after every commit. Enforced by
    validation, the engine pre-commit check, and a DB check constraint."""

    CONSERVATION = "conservation"
    """A PayJob or Deposit moves money between exactly two profiles and
    leaves the sum of their balances unchanged."""

    PAY_ONCE = "pay_once"
    """A job flips from unpaid to paid at most once. Enforced by the
    ALREADY_PAID rule, row locks and the job version counter."""

    DESIGNATED_PAYER = "designated_payer"
    """Only the contract's client can pay its jobs; deposits move only
    between two client profiles."""
