"""Command-line interface for the confidential lending client."""
from __future__ import annotations

import argparse
import asyncio
import sys

from solders.pubkey import Pubkey

from .chains.solana import SolanaClient
from .config import AppConfig, HealthConfig, load_config
from .errors import ShadowLendError
from .logging_setup import configure_logging
from .oracles import build_proof_oracle
from .program.constants import format_sol, parse_sol_to_lamports
from .program.health import HEALTH_FACTOR_BOUNDARY, HEALTH_FACTOR_INFINITE, health_status
from .services import LendingSession
from .wallet import LocalWallet

AMOUNT_COMMANDS = ("deposit", "borrow", "repay", "withdraw")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="shadowlend",
        description="Confidential lending client for Solana",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("pool", help="Show public pool statistics")
    sub.add_parser("position", help="Decrypt and show your position")

    init_parser = sub.add_parser("init-pool", help="Initialize the lending pool")
    init_parser.add_argument("--collateral-mint", required=True)
    init_parser.add_argument("--borrow-mint", required=True)
    init_parser.add_argument("--ltv", type=int, default=7500, help="LTV in bps (default: 7500)")
    init_parser.add_argument(
        "--interest-rate", type=int, default=500, help="Interest rate in bps (default: 500)"
    )
    init_parser.add_argument(
        "--liquidation-threshold",
        type=int,
        default=8000,
        help="Liquidation threshold in bps (default: 8000)",
    )

    sub.add_parser("open", help="Open a confidential position")

    for name in AMOUNT_COMMANDS:
        amount_parser = sub.add_parser(name, help=f"{name.capitalize()} SOL")
        amount_parser.add_argument("amount", help="Amount in SOL, e.g. 1.5")

    sub.add_parser("close", help="Close a fully repaid, empty position")

    liquidate_parser = sub.add_parser("liquidate", help="Liquidate another position")
    liquidate_parser.add_argument("owner", help="Owner of the position to liquidate")

    return parser


def _status_label(factor: int | float, thresholds: HealthConfig) -> str:
    if factor < HEALTH_FACTOR_BOUNDARY:
        return "LIQUIDATABLE"
    if factor < thresholds.critical:
        return f"CRITICAL ({health_status(factor).value})"
    if factor < thresholds.warning:
        return f"WARNING ({health_status(factor).value})"
    return health_status(factor).value


def _format_factor(factor: int | float) -> str:
    if factor == HEALTH_FACTOR_INFINITE:
        return "∞"
    return f"{factor}%"


def build_session(config: AppConfig) -> LendingSession:
    """Wire a session from configuration."""
    return LendingSession(
        SolanaClient(config.cluster),
        LocalWallet.from_file(config.wallet.keypair_path),
        build_proof_oracle(config.proof_oracle),
        config.program,
    )


async def _show_pool(session: LendingSession) -> None:
    stats = await session.pool_stats()
    if stats is None:
        print("Lending pool is not initialized")
        return
    print(f"Total value locked:    {format_sol(stats.total_value_locked)} SOL")
    print(f"Total borrowed:        {format_sol(stats.total_borrowed)} SOL")
    print(f"Active loans:          {stats.active_loans}")
    print(f"Utilization:           {stats.utilization:.2f}%")
    print(f"LTV ratio:             {stats.ltv_ratio:.2f}%")
    print(f"Interest rate:         {stats.interest_rate:.2f}%")
    print(f"Liquidation threshold: {stats.liquidation_threshold:.2f}%")


async def _show_position(session: LendingSession, thresholds: HealthConfig) -> None:
    position = await session.load_position()
    if position is None:
        print(f"No readable position for {session.owner}")
        return
    print(f"Owner:         {position.owner}")
    print(f"Collateral:    {format_sol(position.collateral)} SOL")
    print(f"Debt:          {format_sol(position.debt)} SOL")
    print(f"Can borrow:    {format_sol(position.max_borrow)} SOL")
    print(
        f"Health factor: {_format_factor(position.health_factor)} "
        f"[{_status_label(position.health_factor, thresholds)}]"
    )


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    session = build_session(config)

    if args.command == "pool":
        await _show_pool(session)
        return
    if args.command == "position":
        await _show_position(session, config.health)
        return

    if args.command == "init-pool":
        signature = await session.initialize_pool(
            Pubkey.from_string(args.collateral_mint),
            Pubkey.from_string(args.borrow_mint),
            args.ltv,
            args.interest_rate,
            args.liquidation_threshold,
        )
    elif args.command == "open":
        signature = await session.open_position()
    elif args.command in AMOUNT_COMMANDS:
        amount = parse_sol_to_lamports(args.amount)
        operation = getattr(session, args.command)
        signature = await operation(amount)
    elif args.command == "close":
        signature = await session.close_position()
    elif args.command == "liquidate":
        signature = await session.liquidate(Pubkey.from_string(args.owner))
    else:
        build_parser().print_help()
        sys.exit(1)

    print(f"Transaction: {signature}")


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except (ShadowLendError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
