"""Local Solana wallet backed by a keypair file."""
from __future__ import annotations

import json
import logging
from pathlib import Path

from solders.keypair import Keypair
from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)


def load_keypair(path: str | Path) -> Keypair:
    """Load a keypair from a file.

    Accepts the Solana CLI format (JSON list of 64 ints) or a base58-encoded
    64-byte secret key.
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Keypair file not found: {path}")

    text = path.read_text("utf-8").strip()
    if text.startswith("["):
        raw = json.loads(text)
        if len(raw) != 64:
            raise ValueError(f"Keypair file must hold 64 bytes, got {len(raw)}")
        return Keypair.from_bytes(bytes(raw))
    return Keypair.from_base58_string(text)


class LocalWallet:
    """Signs messages and transactions with an in-process keypair."""

    def __init__(self, keypair: Keypair) -> None:
        self.keypair = keypair

    @classmethod
    def from_file(cls, path: str | Path) -> LocalWallet:
        wallet = cls(load_keypair(path))
        logger.info("Loaded wallet %s", wallet.public_key)
        return wallet

    @property
    def public_key(self) -> Pubkey:
        return self.keypair.pubkey()

    async def sign_message(self, message: bytes) -> bytes:
        """Ed25519 signature over ``message`` (64 bytes, deterministic)."""
        return bytes(self.keypair.sign_message(message))
