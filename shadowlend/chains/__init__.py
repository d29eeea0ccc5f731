"""Ledger clients."""
