"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from shadowlend.config import (
    AppConfig,
    ClusterConfig,
    HealthConfig,
    ProgramConfig,
    ProofOracleConfig,
    WalletConfig,
)
from shadowlend.encryption import encrypt_amount, key_pair_from_seed
from shadowlend.models import EncryptionKeyPair, Pool, Position
from shadowlend.program.constants import DEFAULT_PROGRAM_ID, LAMPORTS_PER_SOL

SOL = LAMPORTS_PER_SOL
FIXED_NONCE = bytes(range(100, 124))


# ---------------------------------------------------------------------------
# Key fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def key_pair() -> EncryptionKeyPair:
    return key_pair_from_seed(bytes(range(32)))


@pytest.fixture()
def other_key_pair() -> EncryptionKeyPair:
    return key_pair_from_seed(bytes([7] * 32))


@pytest.fixture()
def wallet_keypair() -> Keypair:
    return Keypair.from_seed(bytes([9] * 32))


@pytest.fixture()
def program_id() -> Pubkey:
    return Pubkey.from_string(DEFAULT_PROGRAM_ID)


# ---------------------------------------------------------------------------
# Account fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_pool() -> Pool:
    return Pool(
        authority=Pubkey(bytes([1] * 32)),
        collateral_mint=Pubkey(bytes([2] * 32)),
        borrow_mint=Pubkey(bytes([3] * 32)),
        ltv_ratio=7500,
        interest_rate=500,
        liquidation_threshold=8000,
        total_deposits=10 * SOL,
        total_borrows=2 * SOL,
        active_positions=3,
        bump=254,
        is_active=True,
    )


@pytest.fixture()
def sample_position(key_pair: EncryptionKeyPair) -> Position:
    """Position holding 10 SOL of collateral against 5 SOL of debt."""
    return Position(
        owner=Pubkey(bytes([4] * 32)),
        pool=Pubkey(bytes([5] * 32)),
        encrypted_collateral=encrypt_amount(10 * SOL, key_pair, nonce=FIXED_NONCE),
        encrypted_debt=encrypt_amount(5 * SOL, key_pair, nonce=FIXED_NONCE[::-1]),
        last_update=1_700_000_000,
        is_active=True,
        bump=253,
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_cluster_config() -> ClusterConfig:
    return ClusterConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_app_config(sample_cluster_config: ClusterConfig) -> AppConfig:
    return AppConfig(
        cluster=sample_cluster_config,
        program=ProgramConfig(program_id=DEFAULT_PROGRAM_ID),
        wallet=WalletConfig(keypair_path="/tmp/id.json"),
        proof_oracle=ProofOracleConfig(provider="placeholder"),
        health=HealthConfig(warning=150, critical=120),
    )


SAMPLE_YAML = textwrap.dedent("""\
    cluster:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
      commitment: finalized
    program:
      program_id: "8dBNWFxxdvHmoZWKuS1rGzGGmBxdXxHXauYAiTPM4Zan"
    wallet:
      keypair_path: "~/.config/solana/id.json"
    proof_oracle:
      provider: placeholder
    health:
      warning: 160
      critical: 110
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
