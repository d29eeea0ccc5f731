"""Error taxonomy for the confidential position codec and its collaborators."""
from __future__ import annotations


class ShadowLendError(Exception):
    """Base class for every error raised by this package."""


class SigningError(ShadowLendError):
    """The wallet declined to sign or is not capable of signing messages."""


class KeyDerivationError(ShadowLendError):
    """The signature could not be turned into an encryption key pair."""


class MalformedAccountError(ShadowLendError):
    """An account buffer is too short or carries the wrong discriminator."""


class InvalidOperandError(ShadowLendError):
    """An instruction operand is zero, out of range, or missing."""


class InsufficientBalanceError(ShadowLendError):
    """The requested amount exceeds the decrypted balance or capacity."""


class PositionStateError(ShadowLendError):
    """The operation is not permitted in the position's current state."""


class ProofOracleError(ShadowLendError):
    """The proof oracle was unreachable or returned an unusable response."""


class LedgerRpcError(ShadowLendError):
    """Every configured RPC endpoint failed, or the RPC returned an error."""
