"""
Module: ledger_kernel.db.types
Responsibility: Column type definitions for ledger tables.  Centralizes the
    monetary representation so every model uses the same definition.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    CRITICAL: No floats anywhere in the ledger kernel.  All monetary amounts
           are integers in minor units (cents).  There is no rounding.
"""

from sqlalchemy import BigInteger, Integer, String

# Monetary amount in minor units
Money = BigInteger().with_variant(Integer(), "sqlite")

# Short enumerated codes stored as strings (profile type, contract status)
StatusCode = String(20)

# Person names and professions
Name = String(255)

# Free text (job descriptions, contract terms)
LongText = String(4000)
