"""Pure parsing functions for on-chain Pool and Position records — no I/O.

Layouts (little-endian, after an 8-byte account discriminator):

    Pool:     authority(32) collateral_mint(32) borrow_mint(32)
              ltv_ratio(u16) interest_rate(u16) liquidation_threshold(u16)
              total_deposits(u64) total_borrows(u64) active_positions(u64)
              bump(u8) is_active(u8)

    Position: owner(32) pool(32) encrypted_collateral(32) encrypted_debt(32)
              last_update(i64) is_active(u8) bump(u8)

Trailing bytes beyond the fixed size are ignored.
"""
from __future__ import annotations

import struct

from solders.pubkey import Pubkey

from ..errors import MalformedAccountError
from ..models import Pool, Position
from .constants import (
    DISCRIMINATOR_SIZE,
    ENCRYPTED_VALUE_SIZE,
    POOL_DISCRIMINATOR,
    POOL_SIZE,
    POSITION_DISCRIMINATOR,
    POSITION_SIZE,
)

_POOL_BODY = struct.Struct("<32s32s32sHHHQQQBB")
_POSITION_BODY = struct.Struct("<32s32s32s32sqBB")


def _check_buffer(
    data: bytes, size: int, discriminator: bytes, name: str, verify: bool
) -> None:
    if len(data) < size:
        raise MalformedAccountError(
            f"{name} account too short: {len(data)} < {size} bytes"
        )
    if verify and data[:DISCRIMINATOR_SIZE] != discriminator:
        raise MalformedAccountError(
            f"{name} discriminator mismatch: {data[:DISCRIMINATOR_SIZE].hex()}"
        )


def decode_pool(data: bytes, verify_discriminator: bool = False) -> Pool:
    """Decode a Pool account buffer.

    Raises:
        MalformedAccountError: buffer shorter than ``POOL_SIZE`` or, with
            ``verify_discriminator``, a header that is not the Pool header.
    """
    data = bytes(data)
    _check_buffer(data, POOL_SIZE, POOL_DISCRIMINATOR, "Pool", verify_discriminator)
    (
        authority,
        collateral_mint,
        borrow_mint,
        ltv_ratio,
        interest_rate,
        liquidation_threshold,
        total_deposits,
        total_borrows,
        active_positions,
        bump,
        is_active,
    ) = _POOL_BODY.unpack_from(data, DISCRIMINATOR_SIZE)

    return Pool(
        authority=Pubkey(authority),
        collateral_mint=Pubkey(collateral_mint),
        borrow_mint=Pubkey(borrow_mint),
        ltv_ratio=ltv_ratio,
        interest_rate=interest_rate,
        liquidation_threshold=liquidation_threshold,
        total_deposits=total_deposits,
        total_borrows=total_borrows,
        active_positions=active_positions,
        bump=bump,
        is_active=is_active == 1,
    )


def decode_position(data: bytes, verify_discriminator: bool = False) -> Position:
    """Decode a Position account buffer; see :func:`decode_pool` for errors."""
    data = bytes(data)
    _check_buffer(
        data, POSITION_SIZE, POSITION_DISCRIMINATOR, "Position", verify_discriminator
    )
    (
        owner,
        pool,
        encrypted_collateral,
        encrypted_debt,
        last_update,
        is_active,
        bump,
    ) = _POSITION_BODY.unpack_from(data, DISCRIMINATOR_SIZE)

    return Position(
        owner=Pubkey(owner),
        pool=Pubkey(pool),
        encrypted_collateral=encrypted_collateral,
        encrypted_debt=encrypted_debt,
        last_update=last_update,
        is_active=is_active == 1,
        bump=bump,
    )


def encode_pool(pool: Pool) -> bytes:
    """Serialize a Pool record, discriminator header included."""
    try:
        body = _POOL_BODY.pack(
            bytes(pool.authority),
            bytes(pool.collateral_mint),
            bytes(pool.borrow_mint),
            pool.ltv_ratio,
            pool.interest_rate,
            pool.liquidation_threshold,
            pool.total_deposits,
            pool.total_borrows,
            pool.active_positions,
            pool.bump,
            1 if pool.is_active else 0,
        )
    except struct.error as e:
        raise MalformedAccountError(f"Pool field out of range: {e}") from e
    return POOL_DISCRIMINATOR + body


def encode_position(position: Position) -> bytes:
    """Serialize a Position record, discriminator header included."""
    for name in ("encrypted_collateral", "encrypted_debt"):
        value = getattr(position, name)
        if len(value) != ENCRYPTED_VALUE_SIZE:
            raise MalformedAccountError(
                f"{name} must be {ENCRYPTED_VALUE_SIZE} bytes, got {len(value)}"
            )
    try:
        body = _POSITION_BODY.pack(
            bytes(position.owner),
            bytes(position.pool),
            bytes(position.encrypted_collateral),
            bytes(position.encrypted_debt),
            position.last_update,
            1 if position.is_active else 0,
            position.bump,
        )
    except struct.error as e:
        raise MalformedAccountError(f"Position field out of range: {e}") from e
    return POSITION_DISCRIMINATOR + body
