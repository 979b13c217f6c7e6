"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.base import BaseSelector
from ledger_kernel.selectors.contract_selector import ContractSelector
from ledger_kernel.selectors.profile_selector import ProfileSelector
from ledger_kernel.selectors.report_selector import ReportSelector

__all__ = [
    "BaseSelector",
    "ContractSelector",
    "ProfileSelector",
    "ReportSelector",
]
