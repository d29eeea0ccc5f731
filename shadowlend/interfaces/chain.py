"""Ledger client protocol — account store and instruction executor."""
from typing import Protocol

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey


class LedgerClient(Protocol):
    """Abstract interface for reading accounts and submitting instructions."""

    async def get_account_info(self, address: Pubkey) -> bytes | None: ...

    async def send_instruction(self, instruction: Instruction, payer: Keypair) -> str: ...
