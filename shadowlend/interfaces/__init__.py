"""Protocol interfaces for the confidential lending client."""
from .chain import LedgerClient
from .proof_oracle import ProofOracle

__all__ = ["LedgerClient", "ProofOracle"]
