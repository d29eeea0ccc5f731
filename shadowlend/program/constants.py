"""Program-wide constants, discriminators and amount helpers."""
from __future__ import annotations

import hashlib
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from ..errors import InvalidOperandError

DEFAULT_PROGRAM_ID = "8dBNWFxxdvHmoZWKuS1rGzGGmBxdXxHXauYAiTPM4Zan"

POOL_SEED = b"pool"
POSITION_SEED = b"position"
VAULT_SEED = b"vault"

DISCRIMINATOR_SIZE = 8
PUBKEY_SIZE = 32
ENCRYPTED_VALUE_SIZE = 32
MASKED_AMOUNT_SIZE = 8
NONCE_SIZE = 24

# header + authority/mints + three bps fields + three counters + bump/is_active
POOL_SIZE = DISCRIMINATOR_SIZE + 32 * 3 + 2 * 3 + 8 * 3 + 1 * 2
# header + owner/pool/two ciphertexts + last_update + is_active/bump
POSITION_SIZE = DISCRIMINATOR_SIZE + 32 * 4 + 8 + 1 * 2

BPS_DENOMINATOR = 10_000
LAMPORTS_PER_SOL = 1_000_000_000
U16_MAX = 2**16 - 1
U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1

ZERO_CIPHERTEXT = bytes(ENCRYPTED_VALUE_SIZE)


def instruction_discriminator(name: str) -> bytes:
    """Anchor instruction discriminator: ``sha256("global:<name>")[:8]``."""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:DISCRIMINATOR_SIZE]


def account_discriminator(name: str) -> bytes:
    """Anchor account discriminator: ``sha256("account:<Name>")[:8]``."""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:DISCRIMINATOR_SIZE]


INSTRUCTIONS: dict[str, bytes] = {
    name: instruction_discriminator(name)
    for name in (
        "initialize_pool",
        "open_position",
        "deposit_collateral",
        "borrow",
        "repay",
        "withdraw_collateral",
        "liquidate",
        "close_position",
    )
}

POOL_DISCRIMINATOR = account_discriminator("Pool")
POSITION_DISCRIMINATOR = account_discriminator("Position")


_LAMPORT = Decimal("1e-9")


def parse_sol_to_lamports(text: str) -> int:
    """Parse a SOL amount string into lamports, truncating sub-lamport digits.

    Examples:
        "1.5" → 1_500_000_000
        "0.0000000019" → 1
    """
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, AttributeError) as e:
        raise InvalidOperandError(f"Not a number: {text!r}") from e
    if not value.is_finite() or value < 0:
        raise InvalidOperandError(f"Amount must be a non-negative number: {text!r}")
    try:
        lamports = int(value.quantize(_LAMPORT, rounding=ROUND_DOWN).scaleb(9))
    except InvalidOperation as e:
        raise InvalidOperandError(f"Amount does not fit in u64: {text!r}") from e
    if lamports > U64_MAX:
        raise InvalidOperandError(f"Amount does not fit in u64: {text!r}")
    return lamports


def format_sol(lamports: int) -> str:
    """Format lamports as SOL with two to four fractional digits."""
    sol = Decimal(lamports) / LAMPORTS_PER_SOL
    text = f"{sol.quantize(Decimal('0.0001'), rounding=ROUND_DOWN):,}"
    whole, _, frac = text.partition(".")
    frac = frac.rstrip("0").ljust(2, "0")
    return f"{whole}.{frac}"


def bps_to_percent(bps: int) -> float:
    return bps / 100
