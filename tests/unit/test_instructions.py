"""Unit tests for instruction encoding and the position state machine."""
from __future__ import annotations

import hashlib
import struct
from dataclasses import replace

import pytest
from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from shadowlend.errors import InvalidOperandError, PositionStateError
from shadowlend.models import Position
from shadowlend.program.constants import INSTRUCTIONS, U64_MAX, ZERO_CIPHERTEXT
from shadowlend.program.instructions import (
    InstructionBuilder,
    PositionState,
    borrow_data,
    close_position_data,
    deposit_collateral_data,
    initialize_pool_data,
    liquidate_data,
    open_position_data,
    position_state,
    repay_data,
    require_active,
    require_closable,
    withdraw_collateral_data,
)
from shadowlend.program.pda import get_pool_pda, get_position_pda, get_vault_pda

CIPHERTEXT = bytes(range(32))
PROOF = bytes([0xAA] * 64)


class TestDiscriminators:
    def test_anchor_convention(self) -> None:
        expected = hashlib.sha256(b"global:deposit_collateral").digest()[:8]
        assert INSTRUCTIONS["deposit_collateral"] == expected

    def test_all_distinct(self) -> None:
        assert len(set(INSTRUCTIONS.values())) == len(INSTRUCTIONS) == 8


class TestDataEncoders:
    def test_open_and_close_are_bare(self) -> None:
        assert open_position_data() == INSTRUCTIONS["open_position"]
        assert close_position_data() == INSTRUCTIONS["close_position"]

    def test_deposit_layout(self) -> None:
        data = deposit_collateral_data(1_500_000_000, CIPHERTEXT)
        assert len(data) == 48
        assert data[:8] == INSTRUCTIONS["deposit_collateral"]
        assert struct.unpack_from("<Q", data, 8)[0] == 1_500_000_000
        assert data[16:48] == CIPHERTEXT

    def test_repay_layout(self) -> None:
        data = repay_data(5, CIPHERTEXT)
        assert data[:8] == INSTRUCTIONS["repay"]
        assert data[8:16] == (5).to_bytes(8, "little")
        assert data[16:] == CIPHERTEXT

    def test_borrow_layout(self) -> None:
        data = borrow_data(2_500_000_000, CIPHERTEXT, PROOF)
        assert len(data) == 8 + 8 + 32 + 4 + 64
        assert data[:8] == INSTRUCTIONS["borrow"]
        assert struct.unpack_from("<I", data, 48)[0] == 64
        assert data[52:] == PROOF

    def test_withdraw_layout(self) -> None:
        data = withdraw_collateral_data(7, CIPHERTEXT, b"\x01\x02\x03")
        assert data[:8] == INSTRUCTIONS["withdraw_collateral"]
        assert data[48:52] == (3).to_bytes(4, "little")
        assert data[52:] == b"\x01\x02\x03"

    def test_liquidate_layout(self) -> None:
        data = liquidate_data(PROOF)
        assert data[:8] == INSTRUCTIONS["liquidate"]
        assert data[8:12] == (64).to_bytes(4, "little")
        assert data[12:] == PROOF

    def test_initialize_pool_layout(self) -> None:
        mint_a, mint_b = Pubkey(bytes([2] * 32)), Pubkey(bytes([3] * 32))
        data = initialize_pool_data(mint_a, mint_b, 7500, 500, 8000)
        assert data[:8] == INSTRUCTIONS["initialize_pool"]
        assert data[8:40] == bytes(mint_a)
        assert data[40:72] == bytes(mint_b)
        assert struct.unpack_from("<HHH", data, 72) == (7500, 500, 8000)

    def test_deterministic(self) -> None:
        assert deposit_collateral_data(9, CIPHERTEXT) == deposit_collateral_data(9, CIPHERTEXT)
        assert borrow_data(9, CIPHERTEXT, PROOF) == borrow_data(9, CIPHERTEXT, PROOF)

    @pytest.mark.parametrize("amount", [0, -1, U64_MAX + 1])
    def test_bad_amount(self, amount: int) -> None:
        with pytest.raises(InvalidOperandError):
            deposit_collateral_data(amount, CIPHERTEXT)

    def test_bool_amount_rejected(self) -> None:
        with pytest.raises(InvalidOperandError):
            repay_data(True, CIPHERTEXT)

    def test_max_amount_accepted(self) -> None:
        data = repay_data(U64_MAX, CIPHERTEXT)
        assert data[8:16] == b"\xff" * 8

    @pytest.mark.parametrize("length", [0, 31, 33])
    def test_bad_ciphertext(self, length: int) -> None:
        with pytest.raises(InvalidOperandError):
            deposit_collateral_data(1, bytes(length))

    @pytest.mark.parametrize("proof", [b"", None])
    def test_missing_proof(self, proof: bytes | None) -> None:
        with pytest.raises(InvalidOperandError, match="proof"):
            borrow_data(1, CIPHERTEXT, proof)  # type: ignore[arg-type]

    def test_missing_liquidation_proof(self) -> None:
        with pytest.raises(InvalidOperandError):
            liquidate_data(b"")

    def test_bps_out_of_range(self) -> None:
        mint = Pubkey(bytes([2] * 32))
        with pytest.raises(InvalidOperandError, match="ltv_bps"):
            initialize_pool_data(mint, mint, 10_001, 500, 8000)


class TestPositionState:
    def test_missing_is_uninitialized(self) -> None:
        assert position_state(None) is PositionState.UNINITIALIZED

    def test_active(self, sample_position: Position) -> None:
        assert position_state(sample_position) is PositionState.ACTIVE

    def test_closed(self, sample_position: Position) -> None:
        closed = replace(sample_position, is_active=False)
        assert position_state(closed) is PositionState.CLOSED
        with pytest.raises(PositionStateError, match="closed"):
            require_active(closed)

    def test_require_active_missing(self) -> None:
        with pytest.raises(PositionStateError, match="uninitialized"):
            require_active(None)

    def test_closable_when_empty(self, sample_position: Position) -> None:
        empty = replace(
            sample_position,
            encrypted_collateral=ZERO_CIPHERTEXT,
            encrypted_debt=ZERO_CIPHERTEXT,
        )
        assert require_closable(empty) is empty

    def test_not_closable_with_collateral(self, sample_position: Position) -> None:
        with pytest.raises(PositionStateError, match="collateral"):
            require_closable(replace(sample_position, encrypted_debt=ZERO_CIPHERTEXT))

    def test_not_closable_with_debt(self, sample_position: Position) -> None:
        position = replace(sample_position, encrypted_collateral=ZERO_CIPHERTEXT)
        with pytest.raises(PositionStateError, match="debt"):
            require_closable(position)


class TestInstructionBuilder:
    @pytest.fixture()
    def builder(self, program_id: Pubkey) -> InstructionBuilder:
        return InstructionBuilder(program_id)

    @pytest.fixture()
    def owner(self) -> Pubkey:
        return Pubkey(bytes([4] * 32))

    def test_pdas(self, builder: InstructionBuilder, program_id: Pubkey, owner: Pubkey) -> None:
        pool, _ = get_pool_pda(program_id)
        assert builder.pool == pool
        assert builder.vault == get_vault_pda(pool, program_id)[0]
        assert builder.position_address(owner) == get_position_pda(owner, program_id)[0]

    def test_pda_derivation_is_stable(self, program_id: Pubkey, owner: Pubkey) -> None:
        expected, _ = Pubkey.find_program_address([b"position", bytes(owner)], program_id)
        assert get_position_pda(owner, program_id)[0] == expected

    def test_deposit_accounts(self, builder: InstructionBuilder, owner: Pubkey) -> None:
        ix = builder.deposit_collateral(owner, 10, CIPHERTEXT)
        assert isinstance(ix, Instruction)
        assert ix.program_id == builder.program_id
        assert bytes(ix.data) == deposit_collateral_data(10, CIPHERTEXT)
        keys = [meta.pubkey for meta in ix.accounts]
        assert keys == [
            builder.pool,
            builder.position_address(owner),
            builder.vault,
            owner,
            SYSTEM_PROGRAM_ID,
        ]
        signers = [meta.pubkey for meta in ix.accounts if meta.is_signer]
        assert signers == [owner]

    def test_borrow_carries_proof(self, builder: InstructionBuilder, owner: Pubkey) -> None:
        ix = builder.borrow(owner, 10, CIPHERTEXT, PROOF)
        assert bytes(ix.data).endswith(PROOF)
        assert ix.accounts[0].pubkey == ix.accounts[1].pubkey == builder.pool
        assert ix.accounts[0].is_writable is False
        assert ix.accounts[1].is_writable is True

    def test_open_position(self, builder: InstructionBuilder, owner: Pubkey) -> None:
        ix = builder.open_position(owner)
        assert bytes(ix.data) == INSTRUCTIONS["open_position"]
        assert ix.accounts[2].pubkey == builder.position_address(owner)

    def test_liquidate_signer_is_liquidator(self, builder: InstructionBuilder) -> None:
        liquidator = Pubkey(bytes([8] * 32))
        target = builder.position_address(Pubkey(bytes([4] * 32)))
        ix = builder.liquidate(liquidator, target, PROOF)
        assert ix.accounts[1].pubkey == target
        assert [m.pubkey for m in ix.accounts if m.is_signer] == [liquidator]

    def test_close_requires_empty_position(
        self, builder: InstructionBuilder, owner: Pubkey, sample_position: Position
    ) -> None:
        with pytest.raises(PositionStateError):
            builder.close_position(owner, sample_position)

    def test_close_empty_position(
        self, builder: InstructionBuilder, owner: Pubkey, sample_position: Position
    ) -> None:
        empty = replace(
            sample_position,
            encrypted_collateral=ZERO_CIPHERTEXT,
            encrypted_debt=ZERO_CIPHERTEXT,
        )
        ix = builder.close_position(owner, empty)
        assert bytes(ix.data) == INSTRUCTIONS["close_position"]
        assert len(ix.accounts) == 3

    def test_close_missing_position(self, builder: InstructionBuilder, owner: Pubkey) -> None:
        with pytest.raises(PositionStateError):
            builder.close_position(owner, None)
