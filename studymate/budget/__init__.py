"""Ownership-scoped expenses + the monthly allowance stored on the account."""
