"""Unit tests for data models."""
from __future__ import annotations

import pytest

from shadowlend.models import DecodedPosition, Pool, Position, ProofRequest


class TestPool:
    def test_frozen(self, sample_pool: Pool) -> None:
        with pytest.raises(AttributeError):
            sample_pool.total_deposits = 0  # type: ignore[misc]

    def test_equality(self, sample_pool: Pool) -> None:
        assert Pool(**sample_pool.__dict__) == sample_pool


class TestPosition:
    def test_creation(self, sample_position: Position) -> None:
        assert len(sample_position.encrypted_collateral) == 32
        assert len(sample_position.encrypted_debt) == 32
        assert sample_position.is_active is True

    def test_frozen(self, sample_position: Position) -> None:
        with pytest.raises(AttributeError):
            sample_position.is_active = False  # type: ignore[misc]


class TestDecodedPosition:
    def test_infinite_health_factor(self, sample_position: Position) -> None:
        decoded = DecodedPosition(
            owner=sample_position.owner,
            pool=sample_position.pool,
            collateral=0,
            debt=0,
            health_factor=float("inf"),
            max_borrow=0,
            last_update=0,
            is_active=True,
        )
        assert decoded.health_factor == float("inf")


class TestProofRequest:
    def test_creation(self) -> None:
        request = ProofRequest("borrow", bytes(32), bytes(32), 5, 7500)
        assert request.kind == "borrow"
        assert request.risk_param_bps == 7500
