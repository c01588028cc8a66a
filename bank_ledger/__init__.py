"""
Bank Ledger Service

A custodial ledger for user-owned bank accounts: credential and token
issuance, account lifecycle with ownership checks, and deposit/withdrawal
transactions applied atomically against a non-negative running balance.
"""

__version__ = "1.0.0"
