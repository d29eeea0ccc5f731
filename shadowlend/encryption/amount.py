"""Masking of u64 balances into fixed 32-byte opaque fields.

Wire form: ``[8 bytes masked amount][24 bytes nonce]`` where
``mask = sha512(nonce || secret_key)[:8]`` and the amount is little-endian.
The all-zero buffer is reserved for "uninitialized" and always reads as 0.

This masking is a stand-in for a homomorphic / MPC-friendly scheme; any
replacement must keep the 32-byte width and the zero sentinel.
"""
from __future__ import annotations

import base64
import binascii

import nacl.encoding
import nacl.hash
import nacl.utils

from ..errors import InvalidOperandError
from ..models import EncryptionKeyPair
from ..program.constants import (
    ENCRYPTED_VALUE_SIZE,
    MASKED_AMOUNT_SIZE,
    NONCE_SIZE,
    U64_MAX,
    ZERO_CIPHERTEXT,
)


def _mask(nonce: bytes, secret_key: bytes) -> bytes:
    digest = nacl.hash.sha512(nonce + secret_key[:32], encoder=nacl.encoding.RawEncoder)
    return digest[:MASKED_AMOUNT_SIZE]


def _xor(left: bytes, right: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(left, right))


def is_zero_sentinel(value: bytes) -> bool:
    """True for the all-zero 32-byte "uninitialized" ciphertext."""
    return bytes(value) == ZERO_CIPHERTEXT


def encrypt_amount(
    amount: int, key_pair: EncryptionKeyPair, *, nonce: bytes | None = None
) -> bytes:
    """Encrypt ``amount`` under ``key_pair`` with a fresh random nonce.

    ``nonce`` is only meant for reproducing known vectors; callers must not
    reuse a nonce for the same key.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidOperandError(f"Amount must be an integer, got {amount!r}")
    if not 0 <= amount <= U64_MAX:
        raise InvalidOperandError(f"Amount out of u64 range: {amount}")

    if nonce is None:
        nonce = nacl.utils.random(NONCE_SIZE)
    elif len(nonce) != NONCE_SIZE:
        raise InvalidOperandError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")

    plaintext = amount.to_bytes(MASKED_AMOUNT_SIZE, "little")
    masked = _xor(plaintext, _mask(bytes(nonce), key_pair.secret_key))
    return masked + bytes(nonce)


def encrypt_balance(amount: int, key_pair: EncryptionKeyPair) -> bytes:
    """Encrypt a stored balance, writing the zero sentinel for an empty one.

    The program only lets a position close when both balances are the
    literal sentinel, so a fully repaid or withdrawn balance must not be a
    masked zero.
    """
    if amount == 0:
        return ZERO_CIPHERTEXT
    return encrypt_amount(amount, key_pair)


def decrypt_amount(value: bytes, key_pair: EncryptionKeyPair) -> int | None:
    """Recover the amount, or ``None`` when ``value`` is not a 32-byte field.

    A wrong key does not raise: it yields an unrelated number, which is the
    caller's cue to show the balance as locked.
    """
    if not isinstance(value, (bytes, bytearray, memoryview)):
        return None
    value = bytes(value)
    if len(value) != ENCRYPTED_VALUE_SIZE:
        return None

    if value == ZERO_CIPHERTEXT:
        return 0

    masked = value[:MASKED_AMOUNT_SIZE]
    nonce = value[MASKED_AMOUNT_SIZE:]
    plaintext = _xor(masked, _mask(nonce, key_pair.secret_key))
    return int.from_bytes(plaintext, "little")


def encode_encrypted(value: bytes) -> str:
    """Base64 text form of a ciphertext, for display and transport."""
    return base64.b64encode(bytes(value)).decode("ascii")


def decode_encrypted(encoded: str) -> bytes:
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidOperandError(f"Invalid base64 ciphertext: {e}") from e
