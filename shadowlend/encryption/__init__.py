"""Client-side encryption of position balances."""
from .amount import (
    decode_encrypted,
    decrypt_amount,
    encode_encrypted,
    encrypt_balance,
    encrypt_amount,
    is_zero_sentinel,
)
from .keys import ENCRYPTION_DOMAIN, derive_encryption_key, key_pair_from_seed

__all__ = [
    "ENCRYPTION_DOMAIN",
    "decode_encrypted",
    "decrypt_amount",
    "derive_encryption_key",
    "encode_encrypted",
    "encrypt_balance",
    "encrypt_amount",
    "is_zero_sentinel",
    "key_pair_from_seed",
]
