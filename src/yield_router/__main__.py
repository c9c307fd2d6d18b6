"""
Entry point for running yield_router as a module.

Usage:
    python -m yield_router [command] [options]

Commands:
    rank            Rank opportunities by risk-adjusted APY
    routes          Compare cross-chain routes and recommend an action
    decide          Run one decision cycle against the vault
    run             Decision loop (default)
    sustainability  Check whether yield covers the daily operating budget

Options:
    --env ENV       Environment (development/production)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Risk-adjusted yield router",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["rank", "routes", "decide", "run", "sustainability"],
        help="Command to execute (default: run)",
    )
    parser.add_argument("--env", default="development", help="Environment (development/production)")
    parser.add_argument("--asset", default=None, help="Asset symbol (rank)")
    parser.add_argument("--vault", default=None, help="Vault positions file (decide/run)")
    parser.add_argument("--execute", action="store_true", help="Submit an accepted decision (decide, dry run)")
    parser.add_argument("--max-cycles", type=int, default=None, help="Stop after N cycles (run)")
    parser.add_argument("--chain", default=None, help="Current chain (routes)")
    parser.add_argument(
        "--profile",
        choices=["conservative", "moderate", "aggressive"],
        default=None,
        help="Risk profile (routes)",
    )
    parser.add_argument("--principal", type=_decimal, default=Decimal("1000"), help="Position size in USD")
    parser.add_argument("--apy", type=_decimal, default=Decimal("0.05"), help="APY as a fraction (sustainability)")
    parser.add_argument("--daily-cost", type=_decimal, default=None, help="Daily operating cost USD (sustainability)")
    parser.add_argument("--held-protocol", default=None, help="Protocol currently held (routes)")
    parser.add_argument("--held-chain", default=None, help="Chain of the held protocol (routes)")
    parser.add_argument("--held-apy", type=_decimal, default=Decimal("0"), help="APY of the held position (routes)")
    parser.add_argument("--held-days", type=int, default=0, help="Days in the held position (routes)")
    return parser


def main() -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    # Import here to avoid slow startup for --help
    from yield_router.app.run import (
        run_decide,
        run_loop,
        run_rank,
        run_routes,
        run_sustainability,
    )
    from yield_router.domain.models import HeldPosition

    try:
        if args.command == "rank":
            return asyncio.run(run_rank(args.env, args.asset))
        elif args.command == "routes":
            held = None
            if args.held_protocol:
                held = HeldPosition(
                    protocol_id=args.held_protocol,
                    chain=args.held_chain or args.chain or "solana",
                    amount_usd=args.principal,
                    apy=args.held_apy,
                    entered_at=datetime.now(UTC) - timedelta(days=args.held_days),
                )
            return asyncio.run(
                run_routes(
                    args.env,
                    chain=args.chain,
                    principal=args.principal,
                    profile=args.profile,
                    held=held,
                )
            )
        elif args.command == "decide":
            return asyncio.run(run_decide(args.env, vault=args.vault, execute=args.execute))
        elif args.command == "run":
            return asyncio.run(run_loop(args.env, vault=args.vault, max_cycles=args.max_cycles))
        elif args.command == "sustainability":
            return asyncio.run(
                run_sustainability(args.env, principal=args.principal, apy=args.apy, daily_cost=args.daily_cost)
            )
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
