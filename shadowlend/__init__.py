"""Client for a confidential lending program on Solana."""

__version__ = "0.1.0"
