"""Proof oracle implementations."""
from __future__ import annotations

from ..config import ProofOracleConfig
from ..interfaces.proof_oracle import ProofOracle
from .placeholder import PlaceholderProofOracle, verify_proof_binding
from .remote import RemoteProofOracle


def build_proof_oracle(config: ProofOracleConfig) -> ProofOracle:
    """Instantiate the oracle selected by ``config.provider``."""
    if config.provider == "remote":
        return RemoteProofOracle(config)
    if config.provider == "placeholder":
        return PlaceholderProofOracle()
    raise ValueError(f"Unknown proof oracle provider '{config.provider}'")


__all__ = [
    "PlaceholderProofOracle",
    "RemoteProofOracle",
    "build_proof_oracle",
    "verify_proof_binding",
]
