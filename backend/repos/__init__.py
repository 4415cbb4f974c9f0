"""
Repository layer for AppSchmiede.

All SQL lives here and ONLY here (page documents go through
engine.kernel.postgres_storage).
"""

from backend.repos.billing_repo import BillingRepo

__all__ = [
    "BillingRepo",
]
