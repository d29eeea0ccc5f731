"""Unit tests for program constants and SOL amount helpers."""
from __future__ import annotations

import hashlib

import pytest

from shadowlend.errors import InvalidOperandError
from shadowlend.program.constants import (
    POOL_DISCRIMINATOR,
    POSITION_DISCRIMINATOR,
    U64_MAX,
    account_discriminator,
    bps_to_percent,
    format_sol,
    parse_sol_to_lamports,
)


class TestParseSol:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1", 1_000_000_000),
            ("1.5", 1_500_000_000),
            ("0.000000001", 1),
            ("0.0000000019", 1),
            (" 2.25 ", 2_250_000_000),
            ("0", 0),
        ],
    )
    def test_parses(self, text: str, expected: int) -> None:
        assert parse_sol_to_lamports(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "-1", "1e999999", "nan"])
    def test_rejects(self, text: str) -> None:
        with pytest.raises(InvalidOperandError):
            parse_sol_to_lamports(text)

    def test_rejects_overflow(self) -> None:
        too_big = str(U64_MAX // 1_000_000_000 + 1)
        with pytest.raises(InvalidOperandError, match="u64"):
            parse_sol_to_lamports(too_big)


class TestFormatSol:
    @pytest.mark.parametrize(
        ("lamports", "expected"),
        [
            (0, "0.00"),
            (1_500_000_000, "1.50"),
            (2_500_000_000, "2.50"),
            (1_234_560_000, "1.2345"),
            (1_234_500_000_000, "1,234.50"),
        ],
    )
    def test_formats(self, lamports: int, expected: str) -> None:
        assert format_sol(lamports) == expected


class TestDiscriminators:
    def test_account_discriminators(self) -> None:
        assert POOL_DISCRIMINATOR == hashlib.sha256(b"account:Pool").digest()[:8]
        assert POSITION_DISCRIMINATOR == account_discriminator("Position")
        assert POOL_DISCRIMINATOR != POSITION_DISCRIMINATOR


def test_bps_to_percent() -> None:
    assert bps_to_percent(7500) == 75.0
    assert bps_to_percent(1) == 0.01
