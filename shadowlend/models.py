"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field

from solders.pubkey import Pubkey


@dataclass(frozen=True)
class EncryptionKeyPair:
    """Curve25519 key pair derived from a wallet signature.

    Lives only in process memory; ``repr`` never shows the secret half.
    """

    public_key: bytes
    secret_key: bytes = field(repr=False)


@dataclass(frozen=True)
class Pool:
    """Public lending pool record."""

    authority: Pubkey
    collateral_mint: Pubkey
    borrow_mint: Pubkey
    ltv_ratio: int
    interest_rate: int
    liquidation_threshold: int
    total_deposits: int
    total_borrows: int
    active_positions: int
    bump: int
    is_active: bool


@dataclass(frozen=True)
class Position:
    """Per-user position record with opaque 32-byte balances."""

    owner: Pubkey
    pool: Pubkey
    encrypted_collateral: bytes
    encrypted_debt: bytes
    last_update: int
    is_active: bool
    bump: int


@dataclass(frozen=True)
class DecodedPosition:
    """Decrypted view of a position, visible only to its owner."""

    owner: Pubkey
    pool: Pubkey
    collateral: int
    debt: int
    health_factor: int | float
    max_borrow: int
    last_update: int
    is_active: bool


@dataclass(frozen=True)
class PoolStats:
    """Public statistics derived from the pool aggregates."""

    total_value_locked: int
    total_borrowed: int
    active_loans: int
    ltv_ratio: float
    interest_rate: float
    liquidation_threshold: float
    utilization: float


@dataclass(frozen=True)
class ProofRequest:
    """Input to the proof oracle.

    ``kind`` is one of ``"borrow"``, ``"withdraw"`` or ``"liquidate"``;
    ``risk_param_bps`` is the LTV ratio for borrow/withdraw and the
    liquidation threshold for liquidate.
    """

    kind: str
    ciphertext_a: bytes
    ciphertext_b: bytes
    amount: int
    risk_param_bps: int
