"""Deterministic encryption key derivation from a wallet signature.

The wallet signs a fixed domain message; the first 32 bytes of the signature
seed a curve25519 key pair. Ed25519 signatures are deterministic, so the same
wallet always derives the same key pair and nothing has to be persisted.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from nacl.public import PrivateKey

from ..errors import KeyDerivationError, SigningError
from ..models import EncryptionKeyPair

logger = logging.getLogger(__name__)

ENCRYPTION_DOMAIN = "ShadowLend:v1:encryption"
SEED_SIZE = 32

SignMessage = Callable[[bytes], Awaitable[bytes]]


def key_pair_from_seed(seed: bytes) -> EncryptionKeyPair:
    """Build the key pair whose secret key is exactly ``seed``."""
    if len(seed) != SEED_SIZE:
        raise KeyDerivationError(
            f"Seed must be {SEED_SIZE} bytes, got {len(seed)}"
        )
    private_key = PrivateKey(bytes(seed))
    return EncryptionKeyPair(
        public_key=bytes(private_key.public_key),
        secret_key=bytes(private_key),
    )


async def derive_encryption_key(sign_message: SignMessage) -> EncryptionKeyPair:
    """Ask the wallet to sign the domain message and derive the key pair.

    Raises:
        SigningError: the signer raised (user declined, wallet incapable).
        KeyDerivationError: the signature is not bytes or shorter than 32 bytes.
    """
    message = ENCRYPTION_DOMAIN.encode("utf-8")

    try:
        signature = await sign_message(message)
    except Exception as e:
        raise SigningError(f"Wallet refused to sign the encryption message: {e}") from e

    if not isinstance(signature, (bytes, bytearray, memoryview)):
        raise KeyDerivationError(
            f"Signature must be bytes, got {type(signature).__name__}"
        )
    signature = bytes(signature)
    if len(signature) < SEED_SIZE:
        raise KeyDerivationError(
            f"Signature too short: {len(signature)} < {SEED_SIZE} bytes"
        )

    key_pair = key_pair_from_seed(signature[:SEED_SIZE])
    logger.debug("Derived encryption key %s...", key_pair.public_key.hex()[:16])
    return key_pair
