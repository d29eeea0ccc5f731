"""Solvency arithmetic over decrypted balances — pure functions, no I/O.

All math is exact integer math with floor division, matching the ledger
program. Python ints are unbounded, so the wide intermediates the program
needs (u128) come for free.
"""
from __future__ import annotations

from enum import Enum

from ..encryption.amount import decrypt_amount
from ..errors import InvalidOperandError
from ..models import DecodedPosition, EncryptionKeyPair, Pool, PoolStats, Position
from .constants import BPS_DENOMINATOR, U64_MAX, bps_to_percent

HEALTH_FACTOR_INFINITE = float("inf")
# 100 means exactly at the liquidation boundary.
HEALTH_FACTOR_BOUNDARY = 100


class HealthStatus(str, Enum):
    SAFE = "Safe"
    HEALTHY = "Healthy"
    MODERATE = "Moderate"
    AT_RISK = "At Risk"
    CRITICAL = "Critical"


class Action(str, Enum):
    DEPOSIT = "deposit"
    BORROW = "borrow"
    REPAY = "repay"
    WITHDRAW = "withdraw"


def _check_u64(name: str, value: int) -> None:
    if not 0 <= value <= U64_MAX:
        raise InvalidOperandError(f"{name} out of u64 range: {value}")


def _check_bps(name: str, value: int) -> None:
    if not 0 <= value <= BPS_DENOMINATOR:
        raise InvalidOperandError(f"{name} must be 0-{BPS_DENOMINATOR} bps: {value}")


def health_factor(
    collateral: int, debt: int, liquidation_threshold_bps: int
) -> int | float:
    """Health factor as a floored percentage.

    health_factor = collateral * threshold_bps * 100 / (debt * 10000)

    Returns ``HEALTH_FACTOR_INFINITE`` when there is no debt.
    """
    _check_u64("collateral", collateral)
    _check_u64("debt", debt)
    _check_bps("liquidation_threshold_bps", liquidation_threshold_bps)

    if debt == 0:
        return HEALTH_FACTOR_INFINITE
    numerator = collateral * liquidation_threshold_bps * 100
    denominator = debt * BPS_DENOMINATOR
    return numerator // denominator


def max_borrowable(collateral: int, debt: int, ltv_bps: int) -> int:
    """Remaining borrow capacity, clamped at zero."""
    _check_u64("collateral", collateral)
    _check_u64("debt", debt)
    _check_bps("ltv_bps", ltv_bps)

    capacity = collateral * ltv_bps // BPS_DENOMINATOR
    if capacity > debt:
        return capacity - debt
    return 0


def is_liquidatable(collateral: int, debt: int, liquidation_threshold_bps: int) -> bool:
    return health_factor(collateral, debt, liquidation_threshold_bps) < HEALTH_FACTOR_BOUNDARY


def health_status(factor: int | float) -> HealthStatus:
    """Bucket a health factor into a display status."""
    if factor == HEALTH_FACTOR_INFINITE or factor > 200:
        return HealthStatus.SAFE
    if factor >= 150:
        return HealthStatus.HEALTHY
    if factor >= 120:
        return HealthStatus.MODERATE
    if factor >= HEALTH_FACTOR_BOUNDARY:
        return HealthStatus.AT_RISK
    return HealthStatus.CRITICAL


def project_balances(
    collateral: int, debt: int, action: Action | str, amount: int
) -> tuple[int, int]:
    """Balances after a prospective action; repay and withdraw clamp at zero."""
    action = Action(action)
    if action is Action.DEPOSIT:
        return collateral + amount, debt
    if action is Action.BORROW:
        return collateral, debt + amount
    if action is Action.REPAY:
        return collateral, max(debt - amount, 0)
    return max(collateral - amount, 0), debt


def utilization(total_deposits: int, total_borrows: int) -> float:
    """Borrowed share of deposits as a percentage."""
    if total_deposits <= 0:
        return 0.0
    return total_borrows / total_deposits * 100


def pool_stats(pool: Pool) -> PoolStats:
    """Public statistics derived from the pool aggregates only."""
    return PoolStats(
        total_value_locked=pool.total_deposits,
        total_borrowed=pool.total_borrows,
        active_loans=pool.active_positions,
        ltv_ratio=bps_to_percent(pool.ltv_ratio),
        interest_rate=bps_to_percent(pool.interest_rate),
        liquidation_threshold=bps_to_percent(pool.liquidation_threshold),
        utilization=utilization(pool.total_deposits, pool.total_borrows),
    )


def decode_position_values(
    position: Position, pool: Pool, key_pair: EncryptionKeyPair
) -> DecodedPosition | None:
    """Decrypt a position and derive its solvency figures.

    Returns ``None`` when either balance cannot be decrypted.
    """
    collateral = decrypt_amount(position.encrypted_collateral, key_pair)
    debt = decrypt_amount(position.encrypted_debt, key_pair)
    if collateral is None or debt is None:
        return None

    return DecodedPosition(
        owner=position.owner,
        pool=position.pool,
        collateral=collateral,
        debt=debt,
        health_factor=health_factor(collateral, debt, pool.liquidation_threshold),
        max_borrow=max_borrowable(collateral, debt, pool.ltv_ratio),
        last_update=position.last_update,
        is_active=position.is_active,
    )
