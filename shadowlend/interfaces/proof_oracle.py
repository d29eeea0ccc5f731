"""Proof oracle protocol — solvency proofs over ciphertexts."""
from typing import Protocol

from ..models import ProofRequest


class ProofOracle(Protocol):
    """Returns an opaque proof blob attesting a solvency predicate."""

    async def generate_proof(self, request: ProofRequest) -> bytes: ...
