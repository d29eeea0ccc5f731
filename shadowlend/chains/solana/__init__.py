"""Solana JSON-RPC client."""
from .client import SolanaClient

__all__ = ["SolanaClient"]
