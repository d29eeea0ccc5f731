"""Instruction encoding for the lending program.

Every instruction is ``discriminator (8 bytes) || operands``:

    open_position / close_position   no operands
    deposit_collateral / repay       amount u64 || ciphertext[32]
    borrow / withdraw_collateral     amount u64 || ciphertext[32]
                                     || proof_len u32 || proof
    liquidate                        proof_len u32 || proof
    initialize_pool                  collateral_mint[32] || borrow_mint[32]
                                     || ltv u16 || interest u16 || threshold u16

The ``*_data`` functions are pure encoders: they validate operands and never
correct them. :class:`InstructionBuilder` attaches the account metas.
"""
from __future__ import annotations

import struct
from enum import Enum

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from ..encryption.amount import is_zero_sentinel
from ..errors import InvalidOperandError, PositionStateError
from ..models import Position
from .constants import (
    BPS_DENOMINATOR,
    ENCRYPTED_VALUE_SIZE,
    INSTRUCTIONS,
    U32_MAX,
    U64_MAX,
)
from .pda import get_pool_pda, get_position_pda, get_vault_pda

# ---------------------------------------------------------------------------
# Position state machine
# ---------------------------------------------------------------------------


class PositionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


def position_state(position: Position | None) -> PositionState:
    if position is None:
        return PositionState.UNINITIALIZED
    if not position.is_active:
        return PositionState.CLOSED
    return PositionState.ACTIVE


def require_active(position: Position | None) -> Position:
    state = position_state(position)
    if state is not PositionState.ACTIVE:
        raise PositionStateError(f"Position is {state.value}, expected active")
    return position


def require_closable(position: Position | None) -> Position:
    """Closing is allowed only with both balances at the zero sentinel."""
    position = require_active(position)
    if not is_zero_sentinel(position.encrypted_collateral):
        raise PositionStateError("Cannot close position: collateral is not empty")
    if not is_zero_sentinel(position.encrypted_debt):
        raise PositionStateError("Cannot close position: debt is outstanding")
    return position


# ---------------------------------------------------------------------------
# Operand validation
# ---------------------------------------------------------------------------


def _amount(amount: int) -> bytes:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidOperandError(f"Amount must be an integer, got {amount!r}")
    if amount <= 0:
        raise InvalidOperandError("Invalid amount: must be greater than 0")
    if amount > U64_MAX:
        raise InvalidOperandError(f"Amount does not fit in u64: {amount}")
    return struct.pack("<Q", amount)


def _ciphertext(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InvalidOperandError("Ciphertext must be bytes")
    value = bytes(value)
    if len(value) != ENCRYPTED_VALUE_SIZE:
        raise InvalidOperandError(
            f"Ciphertext must be {ENCRYPTED_VALUE_SIZE} bytes, got {len(value)}"
        )
    return value


def _proof(proof: bytes | None) -> bytes:
    if not proof:
        raise InvalidOperandError("A proof is required for this operation")
    proof = bytes(proof)
    if len(proof) > U32_MAX:
        raise InvalidOperandError(f"Proof too long: {len(proof)} bytes")
    return struct.pack("<I", len(proof)) + proof


def _bps(name: str, value: int) -> bytes:
    if not 0 <= value <= BPS_DENOMINATOR:
        raise InvalidOperandError(f"{name} must be within 0..{BPS_DENOMINATOR} bps")
    return struct.pack("<H", value)


# ---------------------------------------------------------------------------
# Instruction data encoders
# ---------------------------------------------------------------------------


def initialize_pool_data(
    collateral_mint: Pubkey,
    borrow_mint: Pubkey,
    ltv_bps: int,
    interest_rate_bps: int,
    liquidation_threshold_bps: int,
) -> bytes:
    return (
        INSTRUCTIONS["initialize_pool"]
        + bytes(collateral_mint)
        + bytes(borrow_mint)
        + _bps("ltv_bps", ltv_bps)
        + _bps("interest_rate_bps", interest_rate_bps)
        + _bps("liquidation_threshold_bps", liquidation_threshold_bps)
    )


def open_position_data() -> bytes:
    return INSTRUCTIONS["open_position"]


def deposit_collateral_data(amount: int, new_encrypted_collateral: bytes) -> bytes:
    return (
        INSTRUCTIONS["deposit_collateral"]
        + _amount(amount)
        + _ciphertext(new_encrypted_collateral)
    )


def borrow_data(amount: int, new_encrypted_debt: bytes, proof: bytes) -> bytes:
    return (
        INSTRUCTIONS["borrow"]
        + _amount(amount)
        + _ciphertext(new_encrypted_debt)
        + _proof(proof)
    )


def repay_data(amount: int, new_encrypted_debt: bytes) -> bytes:
    return INSTRUCTIONS["repay"] + _amount(amount) + _ciphertext(new_encrypted_debt)


def withdraw_collateral_data(
    amount: int, new_encrypted_collateral: bytes, proof: bytes
) -> bytes:
    return (
        INSTRUCTIONS["withdraw_collateral"]
        + _amount(amount)
        + _ciphertext(new_encrypted_collateral)
        + _proof(proof)
    )


def liquidate_data(proof: bytes) -> bytes:
    return INSTRUCTIONS["liquidate"] + _proof(proof)


def close_position_data() -> bytes:
    return INSTRUCTIONS["close_position"]


# ---------------------------------------------------------------------------
# Instructions with account metas
# ---------------------------------------------------------------------------


def _meta(pubkey: Pubkey, is_signer: bool = False, is_writable: bool = False) -> AccountMeta:
    return AccountMeta(pubkey=pubkey, is_signer=is_signer, is_writable=is_writable)


class InstructionBuilder:
    """Build program instructions for a given program id."""

    def __init__(self, program_id: Pubkey) -> None:
        self.program_id = program_id
        self.pool, _ = get_pool_pda(program_id)
        self.vault, _ = get_vault_pda(self.pool, program_id)

    def position_address(self, owner: Pubkey) -> Pubkey:
        address, _ = get_position_pda(owner, self.program_id)
        return address

    def _instruction(self, data: bytes, accounts: list[AccountMeta]) -> Instruction:
        return Instruction(program_id=self.program_id, data=data, accounts=accounts)

    def _vault_accounts(self, owner: Pubkey) -> list[AccountMeta]:
        return [
            _meta(self.pool, is_writable=True),
            _meta(self.position_address(owner), is_writable=True),
            _meta(self.vault, is_writable=True),
            _meta(owner, is_signer=True, is_writable=True),
            _meta(SYSTEM_PROGRAM_ID),
        ]

    def initialize_pool(
        self,
        authority: Pubkey,
        collateral_mint: Pubkey,
        borrow_mint: Pubkey,
        ltv_bps: int,
        interest_rate_bps: int,
        liquidation_threshold_bps: int,
    ) -> Instruction:
        data = initialize_pool_data(
            collateral_mint, borrow_mint, ltv_bps, interest_rate_bps,
            liquidation_threshold_bps,
        )
        return self._instruction(
            data,
            [
                _meta(self.pool, is_writable=True),
                _meta(authority, is_signer=True, is_writable=True),
                _meta(SYSTEM_PROGRAM_ID),
            ],
        )

    def open_position(self, owner: Pubkey) -> Instruction:
        # The program takes the pool twice: read-only and mutable.
        return self._instruction(
            open_position_data(),
            [
                _meta(self.pool),
                _meta(self.pool, is_writable=True),
                _meta(self.position_address(owner), is_writable=True),
                _meta(owner, is_signer=True, is_writable=True),
                _meta(SYSTEM_PROGRAM_ID),
            ],
        )

    def deposit_collateral(
        self, owner: Pubkey, amount: int, new_encrypted_collateral: bytes
    ) -> Instruction:
        return self._instruction(
            deposit_collateral_data(amount, new_encrypted_collateral),
            self._vault_accounts(owner),
        )

    def borrow(
        self, owner: Pubkey, amount: int, new_encrypted_debt: bytes, proof: bytes
    ) -> Instruction:
        return self._instruction(
            borrow_data(amount, new_encrypted_debt, proof),
            [
                _meta(self.pool),
                _meta(self.pool, is_writable=True),
                _meta(self.position_address(owner), is_writable=True),
                _meta(self.vault, is_writable=True),
                _meta(owner, is_signer=True, is_writable=True),
                _meta(SYSTEM_PROGRAM_ID),
            ],
        )

    def repay(self, owner: Pubkey, amount: int, new_encrypted_debt: bytes) -> Instruction:
        return self._instruction(
            repay_data(amount, new_encrypted_debt), self._vault_accounts(owner)
        )

    def withdraw_collateral(
        self, owner: Pubkey, amount: int, new_encrypted_collateral: bytes, proof: bytes
    ) -> Instruction:
        return self._instruction(
            withdraw_collateral_data(amount, new_encrypted_collateral, proof),
            self._vault_accounts(owner),
        )

    def liquidate(self, liquidator: Pubkey, position: Pubkey, proof: bytes) -> Instruction:
        return self._instruction(
            liquidate_data(proof),
            [
                _meta(self.pool, is_writable=True),
                _meta(position, is_writable=True),
                _meta(self.vault, is_writable=True),
                _meta(liquidator, is_signer=True, is_writable=True),
                _meta(SYSTEM_PROGRAM_ID),
            ],
        )

    def close_position(self, owner: Pubkey, position: Position | None) -> Instruction:
        require_closable(position)
        return self._instruction(
            close_position_data(),
            [
                _meta(self.pool, is_writable=True),
                _meta(self.position_address(owner), is_writable=True),
                _meta(owner, is_signer=True, is_writable=True),
            ],
        )
