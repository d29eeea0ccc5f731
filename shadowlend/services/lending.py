"""User-facing lending operations built on the program codecs."""
from __future__ import annotations

import logging

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from ..config import ProgramConfig
from ..encryption import decrypt_amount, derive_encryption_key, encrypt_balance
from ..errors import (
    InsufficientBalanceError,
    InvalidOperandError,
    PositionStateError,
)
from ..interfaces.chain import LedgerClient
from ..interfaces.proof_oracle import ProofOracle
from ..models import (
    DecodedPosition,
    EncryptionKeyPair,
    Pool,
    PoolStats,
    Position,
    ProofRequest,
)
from ..program import health
from ..program.accounts import decode_pool, decode_position
from ..program.constants import BPS_DENOMINATOR, U64_MAX
from ..program.instructions import (
    InstructionBuilder,
    PositionState,
    position_state,
    require_active,
)
from ..wallet import LocalWallet

logger = logging.getLogger(__name__)


class LendingSession:
    """One user's session against the lending program.

    Holds the derived encryption key for the lifetime of the session (write
    once, read many). Operations on the same position must not run
    concurrently; ordering is left to the caller and the ledger.
    """

    def __init__(
        self,
        client: LedgerClient,
        wallet: LocalWallet,
        oracle: ProofOracle,
        program: ProgramConfig,
    ) -> None:
        self._client = client
        self._wallet = wallet
        self._oracle = oracle
        self._builder = InstructionBuilder(program.program_pubkey)
        self._key_pair: EncryptionKeyPair | None = None

    @property
    def owner(self) -> Pubkey:
        return self._wallet.public_key

    @property
    def builder(self) -> InstructionBuilder:
        return self._builder

    # ------------------------------------------------------------------
    # Encryption key
    # ------------------------------------------------------------------

    async def unlock(self) -> EncryptionKeyPair:
        """Derive the encryption key on first use; later calls reuse it."""
        if self._key_pair is None:
            self._key_pair = await derive_encryption_key(self._wallet.sign_message)
            logger.info("Encryption key derived for %s", self.owner)
        return self._key_pair

    def lock(self) -> None:
        """Forget the derived key."""
        self._key_pair = None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_pool(self) -> Pool | None:
        data = await self._client.get_account_info(self._builder.pool)
        if data is None:
            logger.info("Pool %s is not initialized", self._builder.pool)
            return None
        return decode_pool(data, verify_discriminator=True)

    async def fetch_position(self, owner: Pubkey | None = None) -> Position | None:
        address = self._builder.position_address(owner or self.owner)
        data = await self._client.get_account_info(address)
        if data is None:
            logger.debug("No position account at %s", address)
            return None
        return decode_position(data, verify_discriminator=True)

    async def pool_stats(self) -> PoolStats | None:
        pool = await self.fetch_pool()
        if pool is None:
            return None
        return health.pool_stats(pool)

    async def load_position(self) -> DecodedPosition | None:
        """Fetch and decrypt the wallet's position.

        Returns ``None`` when there is no position or its balances cannot be
        decrypted.
        """
        position = await self.fetch_position()
        if position is None:
            return None
        pool = await self._require_pool()
        key_pair = await self.unlock()
        decoded = health.decode_position_values(position, pool, key_pair)
        if decoded is None:
            logger.warning("Position %s could not be decrypted", self.owner)
        return decoded

    async def preview(self, action: health.Action | str, amount: int) -> int | float:
        """Health factor the position would have after ``action``."""
        self._require_amount(amount)
        pool = await self._require_pool()
        position = require_active(await self.fetch_position())
        collateral, debt = await self._balances(position)
        new_collateral, new_debt = health.project_balances(
            collateral, debt, action, amount
        )
        return health.health_factor(
            min(new_collateral, U64_MAX), min(new_debt, U64_MAX),
            pool.liquidation_threshold,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_pool(self) -> Pool:
        pool = await self.fetch_pool()
        if pool is None:
            raise PositionStateError("Lending pool has not been initialized")
        return pool

    async def _require_position(self) -> Position:
        return require_active(await self.fetch_position())

    async def _balances(self, position: Position) -> tuple[int, int]:
        key_pair = await self.unlock()
        collateral = decrypt_amount(position.encrypted_collateral, key_pair)
        debt = decrypt_amount(position.encrypted_debt, key_pair)
        if collateral is None or debt is None:
            raise PositionStateError("Position balances cannot be decrypted")
        return collateral, debt

    @staticmethod
    def _require_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidOperandError("Invalid amount: must be greater than 0")
        if amount > U64_MAX:
            raise InvalidOperandError(f"Amount does not fit in u64: {amount}")

    async def _encrypt(self, balance: int) -> bytes:
        ciphertext = encrypt_balance(balance, await self.unlock())
        logger.debug("New balance ciphertext %s...", ciphertext[:8].hex())
        return ciphertext

    async def _submit(self, instruction: Instruction, label: str) -> str:
        signature = await self._client.send_instruction(instruction, self._wallet.keypair)
        logger.info("%s submitted: %s", label, signature)
        return signature

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    async def initialize_pool(
        self,
        collateral_mint: Pubkey,
        borrow_mint: Pubkey,
        ltv_bps: int,
        interest_rate_bps: int,
        liquidation_threshold_bps: int,
    ) -> str:
        """Create the pool; the wallet becomes its authority."""
        if await self.fetch_pool() is not None:
            raise PositionStateError("Lending pool is already initialized")
        if ltv_bps > liquidation_threshold_bps:
            raise InvalidOperandError(
                "LTV ratio must not exceed the liquidation threshold"
            )
        instruction = self._builder.initialize_pool(
            self.owner, collateral_mint, borrow_mint,
            ltv_bps, interest_rate_bps, liquidation_threshold_bps,
        )
        return await self._submit(instruction, "initialize_pool")

    async def open_position(self) -> str:
        await self._require_pool()
        state = position_state(await self.fetch_position())
        if state is not PositionState.UNINITIALIZED:
            raise PositionStateError(f"Position already exists ({state.value})")
        return await self._submit(self._builder.open_position(self.owner), "open_position")

    async def deposit(self, amount: int) -> str:
        self._require_amount(amount)
        position = await self._require_position()
        collateral, _ = await self._balances(position)

        new_collateral = collateral + amount
        if new_collateral > U64_MAX:
            raise InvalidOperandError("Collateral would overflow u64")

        ciphertext = await self._encrypt(new_collateral)
        instruction = self._builder.deposit_collateral(self.owner, amount, ciphertext)
        return await self._submit(instruction, "deposit_collateral")

    async def borrow(self, amount: int) -> str:
        self._require_amount(amount)
        pool = await self._require_pool()
        position = await self._require_position()
        collateral, debt = await self._balances(position)

        capacity = health.max_borrowable(collateral, debt, pool.ltv_ratio)
        if amount > capacity:
            raise InsufficientBalanceError(
                f"Borrow of {amount} exceeds available capacity {capacity}"
            )

        ciphertext = await self._encrypt(debt + amount)
        proof = await self._oracle.generate_proof(
            ProofRequest(
                kind="borrow",
                ciphertext_a=position.encrypted_collateral,
                ciphertext_b=position.encrypted_debt,
                amount=amount,
                risk_param_bps=pool.ltv_ratio,
            )
        )
        instruction = self._builder.borrow(self.owner, amount, ciphertext, proof)
        return await self._submit(instruction, "borrow")

    async def repay(self, amount: int) -> str:
        self._require_amount(amount)
        position = await self._require_position()
        _, debt = await self._balances(position)

        if amount > debt:
            raise InsufficientBalanceError(
                f"Repayment of {amount} exceeds outstanding debt {debt}"
            )

        ciphertext = await self._encrypt(debt - amount)
        instruction = self._builder.repay(self.owner, amount, ciphertext)
        return await self._submit(instruction, "repay")

    async def withdraw(self, amount: int) -> str:
        self._require_amount(amount)
        pool = await self._require_pool()
        position = await self._require_position()
        collateral, debt = await self._balances(position)

        if amount > collateral:
            raise InsufficientBalanceError(
                f"Withdrawal of {amount} exceeds collateral {collateral}"
            )
        new_collateral = collateral - amount
        if new_collateral * pool.ltv_ratio // BPS_DENOMINATOR < debt:
            raise InsufficientBalanceError(
                "Withdrawal would leave the position undercollateralized"
            )

        ciphertext = await self._encrypt(new_collateral)
        proof = await self._oracle.generate_proof(
            ProofRequest(
                kind="withdraw",
                ciphertext_a=position.encrypted_collateral,
                ciphertext_b=position.encrypted_debt,
                amount=amount,
                risk_param_bps=pool.ltv_ratio,
            )
        )
        instruction = self._builder.withdraw_collateral(
            self.owner, amount, ciphertext, proof
        )
        return await self._submit(instruction, "withdraw_collateral")

    async def close_position(self) -> str:
        position = await self.fetch_position()
        instruction = self._builder.close_position(self.owner, position)
        return await self._submit(instruction, "close_position")

    async def liquidate(self, owner: Pubkey) -> str:
        """Liquidate another user's position, backed by an oracle proof."""
        pool = await self._require_pool()
        position = require_active(await self.fetch_position(owner))
        proof = await self._oracle.generate_proof(
            ProofRequest(
                kind="liquidate",
                ciphertext_a=position.encrypted_collateral,
                ciphertext_b=position.encrypted_debt,
                amount=0,
                risk_param_bps=pool.liquidation_threshold,
            )
        )
        instruction = self._builder.liquidate(
            self.owner, self._builder.position_address(owner), proof
        )
        return await self._submit(instruction, "liquidate")
