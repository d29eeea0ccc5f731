"""Program-derived addresses for the pool, positions and the vault."""
from __future__ import annotations

from solders.pubkey import Pubkey

from .constants import POOL_SEED, POSITION_SEED, VAULT_SEED


def get_pool_pda(program_id: Pubkey) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([POOL_SEED], program_id)


def get_position_pda(owner: Pubkey, program_id: Pubkey) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([POSITION_SEED, bytes(owner)], program_id)


def get_vault_pda(pool: Pubkey, program_id: Pubkey) -> tuple[Pubkey, int]:
    return Pubkey.find_program_address([VAULT_SEED, bytes(pool)], program_id)
