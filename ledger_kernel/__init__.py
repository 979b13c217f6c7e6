"""
Ledger Kernel - marketplace money movement

Moves money between client and contractor balances with:
- Atomic pay-job and deposit transactions
- First-failure-wins business validation
- Row locking plus optimistic version checks under concurrency
- Typed rejection reasons and structured logging
"""

__version__ = "0.1.0"
