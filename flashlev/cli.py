"""Command-line interface for sizing leveraged positions."""
from __future__ import annotations

import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation

from .config import AppConfig, load_config
from .errors import LeverageError
from .leverage import formulas
from .logging_setup import configure_logging
from .oracles import PythPriceOracle


def to_fixed(value: str, decimals: int) -> int:
    """Human decimal string → integer scaled by 10^decimals (truncating)."""
    try:
        return int(Decimal(value).scaleb(decimals))
    except InvalidOperation:
        raise ValueError(f"Not a number: {value}") from None


def from_fixed(value: int, decimals: int) -> str:
    return f"{Decimal(value).scaleb(-decimals):f}"


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="flashlev",
        description="Flash-loan leverage sizing",
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

    max_parser = sub.add_parser("max-leverage", help="Maximum leverage for an LTV")
    max_parser.add_argument("ltv", type=int, help="LTV in basis points, e.g. 8000")

    quote_parser = sub.add_parser("quote", help="Size a leveraged open")
    quote_parser.add_argument("--collateral", required=True, help="Collateral market symbol")
    quote_parser.add_argument("--borrow", required=True, help="Borrow market symbol")
    quote_parser.add_argument("--amount", required=True, help="Own collateral, in tokens")
    quote_parser.add_argument("--leverage", required=True, help="Target leverage, e.g. 3 or 2.5")
    quote_parser.add_argument(
        "--collateral-price", default=None, help="USD price (default: fetch from Pyth)"
    )
    quote_parser.add_argument(
        "--borrow-price", default=None, help="USD price (default: fetch from Pyth)"
    )

    sub.add_parser("prices", help="Fetch Pyth prices for configured markets")

    return parser


def _oracle(config: AppConfig) -> PythPriceOracle:
    return PythPriceOracle(
        config.vault.oracle, config.price_oracle.pyth, config.pyth_feeds()
    )


async def _quote(args: argparse.Namespace, config: AppConfig) -> None:
    collateral = config.markets.get(args.collateral.upper())
    borrow = config.markets.get(args.borrow.upper())
    if collateral is None or borrow is None:
        missing = args.collateral if collateral is None else args.borrow
        raise SystemExit(f"Unknown market: {missing}")

    collateral_price = to_fixed(args.collateral_price, 8) if args.collateral_price else 0
    borrow_price = to_fixed(args.borrow_price, 8) if args.borrow_price else 0
    if collateral_price == 0 or borrow_price == 0:
        oracle = _oracle(config)
        await oracle.refresh([collateral.address, borrow.address])
        collateral_price = collateral_price or oracle.get_price(collateral.address)
        borrow_price = borrow_price or oracle.get_price(borrow.address)
    if collateral_price <= 0 or borrow_price <= 0:
        raise SystemExit("Prices unavailable; pass --collateral-price/--borrow-price")

    params = formulas.size_open(
        to_fixed(args.amount, collateral.decimals),
        to_fixed(args.leverage, 4),
        collateral_price,
        collateral.decimals,
        borrow_price,
        borrow.decimals,
        collateral.ltv,
        config.vault.flash_loan_fee_bps,
    )

    print(f"Collateral price:  ${from_fixed(collateral_price, 8)}")
    print(f"Borrow price:      ${from_fixed(borrow_price, 8)}")
    print(
        f"Max leverage:      "
        f"{from_fixed(formulas.max_leverage(collateral.ltv), 4)}x"
    )
    print(
        f"Flash loan:        "
        f"{from_fixed(params.flash_loan_amount, collateral.decimals)} {args.collateral.upper()}"
    )
    print(
        f"Borrow:            "
        f"{from_fixed(params.borrow_amount, borrow.decimals)} {args.borrow.upper()}"
    )


async def _prices(config: AppConfig) -> None:
    prices = await _oracle(config).refresh()
    for symbol, market in sorted(config.markets.items()):
        if market.address in prices:
            print(f"{symbol}: ${from_fixed(prices[market.address], 8)}")


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)

    if args.command == "max-leverage":
        maximum = formulas.max_leverage(args.ltv)
        print(f"{maximum} ({from_fixed(maximum, 4)}x)")
        return

    config = load_config(args.config)
    if args.command == "quote":
        await _quote(args, config)
    elif args.command == "prices":
        await _prices(config)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except (LeverageError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
