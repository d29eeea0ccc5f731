"""Wallet adapters."""
from .keypair import LocalWallet, load_keypair

__all__ = ["LocalWallet", "load_keypair"]
