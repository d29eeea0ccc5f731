"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from solders.pubkey import Pubkey

from .program.constants import DEFAULT_PROGRAM_ID

logger = logging.getLogger(__name__)

PROOF_ORACLE_PROVIDERS = ("placeholder", "remote")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClusterConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    commitment: str = "confirmed"


@dataclass(frozen=True)
class ProgramConfig:
    program_id: str = DEFAULT_PROGRAM_ID

    @property
    def program_pubkey(self) -> Pubkey:
        return Pubkey.from_string(self.program_id)


@dataclass(frozen=True)
class WalletConfig:
    keypair_path: str = ""


@dataclass(frozen=True)
class ProofOracleConfig:
    provider: str = "placeholder"
    url: str = ""
    timeout: int = 30


@dataclass(frozen=True)
class HealthConfig:
    warning: int = 150
    critical: int = 120


@dataclass(frozen=True)
class AppConfig:
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    program: ProgramConfig = field(default_factory=ProgramConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    proof_oracle: ProofOracleConfig = field(default_factory=ProofOracleConfig)
    health: HealthConfig = field(default_factory=HealthConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_cluster(raw: dict[str, Any]) -> ClusterConfig:
    return ClusterConfig(
        rpc_endpoints=tuple(url for url in raw.get("rpc_endpoints", []) if url),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        commitment=raw.get("commitment", "confirmed"),
    )


def _build_program(raw: dict[str, Any]) -> ProgramConfig:
    return ProgramConfig(program_id=raw.get("program_id") or DEFAULT_PROGRAM_ID)


def _build_wallet(raw: dict[str, Any]) -> WalletConfig:
    return WalletConfig(keypair_path=raw.get("keypair_path", ""))


def _build_proof_oracle(raw: dict[str, Any]) -> ProofOracleConfig:
    return ProofOracleConfig(
        provider=raw.get("provider", "placeholder"),
        url=raw.get("url", ""),
        timeout=int(raw.get("timeout", 30)),
    )


def _build_health(raw: dict[str, Any]) -> HealthConfig:
    return HealthConfig(
        warning=int(raw.get("warning", 150)),
        critical=int(raw.get("critical", 120)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        cluster=_build_cluster(raw.get("cluster", {})),
        program=_build_program(raw.get("program", {})),
        wallet=_build_wallet(raw.get("wallet", {})),
        proof_oracle=_build_proof_oracle(raw.get("proof_oracle", {})),
        health=_build_health(raw.get("health", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.cluster.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")

    try:
        Pubkey.from_string(cfg.program.program_id)
    except Exception as e:
        raise ValueError(f"Invalid program id '{cfg.program.program_id}': {e}") from e

    if cfg.proof_oracle.provider not in PROOF_ORACLE_PROVIDERS:
        raise ValueError(
            f"Unknown proof oracle provider '{cfg.proof_oracle.provider}'"
        )
    if cfg.proof_oracle.provider == "remote" and not cfg.proof_oracle.url:
        raise ValueError("Remote proof oracle requires a url")

    if cfg.health.critical > cfg.health.warning:
        raise ValueError(
            f"Critical health threshold ({cfg.health.critical}) must not exceed "
            f"warning threshold ({cfg.health.warning})"
        )
