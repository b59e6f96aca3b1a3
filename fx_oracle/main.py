#!/usr/bin/env python3
"""FX Price Oracle keeper.

Deploys the oracle components locally, signs the given FX quotes with a
quorum of signer keys, submits them and prints the committed prices. Also
decodes revert data returned by a node into the matching oracle error.

See ``--help`` for configuration; every option can also come from the
environment.
"""

import argparse
import logging
import os
import sys
from decimal import Decimal, InvalidOperation, localcontext

from eth_account import Account

from .src.Chain import DEFAULT_CHAIN_ID, Chain, to_address
from .src.Compaction import FLOAT_PRECISION
from .src.Deployment import DEFAULT_MAX_ORACLE_BLOCK_AGE, FX_TOKENS, deploy
from .src.Errors import OracleError, lookup_error
from .src.PriceBatch import PriceBatchBuilder
from .src.PriceStore import format_price

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_price(value: str) -> int:
    """Convert a decimal string to a 30-decimal fixed-point price.

    :param value: Decimal price, e.g. "1500" or "0.0125".
    :returns: Price scaled by 10**30.
    :raises ValueError: If the value is not a non-negative decimal with at
        most 30 fractional digits.
    """
    try:
        with localcontext() as ctx:
            ctx.prec = 100
            scaled = Decimal(value.strip()) * FLOAT_PRECISION
    except InvalidOperation:
        raise ValueError(f"Invalid price '{value}'") from None
    if not scaled.is_finite() or scaled < 0 or scaled != scaled.to_integral_value():
        raise ValueError(f"Price '{value}' must be non-negative with at most 30 decimals")
    return int(scaled)


def parse_prices(prices_str: str) -> list[tuple[str, int, int]]:
    """Parse comma-separated quotes into (token, min, max) tuples.

    Format: SYMBOL=price or SYMBOL=min:max, where SYMBOL is a known FX
    symbol or a token address.
    Example: NGN=1500,ARS=1195:1205

    :param prices_str: Comma-separated quotes.
    :returns: List of (token_address, min_price, max_price).
    :raises ValueError: If an entry is malformed.
    """
    quotes = []
    for item in prices_str.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ValueError(f"Invalid quote '{item}'. Expected SYMBOL=price or SYMBOL=min:max")
        symbol, price_part = item.split("=", 1)
        symbol = symbol.strip()
        token = FX_TOKENS.get(symbol.upper()) or to_address(symbol)
        if ":" in price_part:
            min_str, max_str = price_part.split(":", 1)
        else:
            min_str = max_str = price_part
        quotes.append((token, parse_price(min_str), parse_price(max_str)))
    return quotes


def parse_signer_keys(keys_str: str | None) -> list[str]:
    """Split a comma-separated private key list."""
    if not keys_str:
        return []
    return [k.strip() for k in keys_str.split(",") if k.strip()]


def token_label(token: str) -> str:
    for symbol, address in FX_TOKENS.items():
        if to_address(address) == token:
            return symbol
    return token


def main() -> None:
    """Main entry point for the FX Price Oracle CLI."""
    parser = argparse.ArgumentParser(
        description="FX Price Oracle: quorum-signed price submission",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Known FX symbols:
  {', '.join(FX_TOKENS)}

Examples:
  # Two ephemeral signers, quorum of two
  python -m fx_oracle.main --prices NGN=1500,ARS=1195:1205 --signer-count 2 --min-signers 2

  # Trusted-submitter oracle, no signatures
  python -m fx_oracle.main --prices NGN=1500 --mode simplified

  # Decode revert data from a node
  python -m fx_oracle.main --decode-error 0xa35b150b

Environment variables (CLI args take precedence):
  PRICES, SIGNER_KEYS, SIGNER_COUNT, MIN_ORACLE_SIGNERS, MAX_ORACLE_BLOCK_AGE,
  MAX_ORACLE_PRICE_AGE, ORACLE_MODE, CHAIN_ID
""",
    )

    parser.add_argument(
        "--prices",
        type=str,
        help="Comma-separated quotes (e.g., NGN=1500,ARS=1195:1205)",
        default=os.environ.get("PRICES") or "NGN=1500",
    )

    parser.add_argument(
        "--signer-keys",
        dest="signer_keys",
        type=str,
        help="Comma-separated signer private keys (random keys are generated if omitted)",
        default=os.environ.get("SIGNER_KEYS"),
    )

    parser.add_argument(
        "--signer-count",
        dest="signer_count",
        type=int,
        help="Number of ephemeral signers when no keys are given (default: 1)",
        default=int(os.environ.get("SIGNER_COUNT") or "1"),
    )

    parser.add_argument(
        "--min-signers",
        dest="min_signers",
        type=int,
        help="MIN_ORACLE_SIGNERS quorum (default: 1)",
        default=int(os.environ.get("MIN_ORACLE_SIGNERS") or "1"),
    )

    parser.add_argument(
        "--max-block-age",
        dest="max_block_age",
        type=int,
        help=f"MAX_ORACLE_BLOCK_AGE in blocks (default: {DEFAULT_MAX_ORACLE_BLOCK_AGE})",
        default=int(os.environ.get("MAX_ORACLE_BLOCK_AGE") or str(DEFAULT_MAX_ORACLE_BLOCK_AGE)),
    )

    parser.add_argument(
        "--max-price-age",
        dest="max_price_age",
        type=int,
        help="MAX_ORACLE_PRICE_AGE in seconds (default: 0, disabled)",
        default=int(os.environ.get("MAX_ORACLE_PRICE_AGE") or "0"),
    )

    parser.add_argument(
        "--mode",
        choices=["quorum", "simplified"],
        help="Oracle variant: quorum (signed) or simplified (trusted submitter)",
        default=os.environ.get("ORACLE_MODE") or "quorum",
    )

    parser.add_argument(
        "--chain-id",
        dest="chain_id",
        type=int,
        help=f"Chain id bound into signatures (default: {DEFAULT_CHAIN_ID})",
        default=int(os.environ.get("CHAIN_ID") or str(DEFAULT_CHAIN_ID)),
    )

    parser.add_argument(
        "--decode-error",
        dest="decode_error",
        type=str,
        help="Decode hex revert data into an oracle error name and exit",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.decode_error:
        try:
            error_type = lookup_error(args.decode_error)
        except ValueError:
            parser.error(f"--decode-error is not valid hex: {args.decode_error}")
        if error_type is None:
            logger.info(f"Unknown error selector: {args.decode_error[:10]}")
            sys.exit(1)
        logger.info(f"{args.decode_error[:10]} -> {error_type.signature}")
        return

    # Validate arguments
    if args.min_signers < 1:
        parser.error("--min-signers must be at least 1")

    if args.max_block_age < 0:
        parser.error("--max-block-age must be non-negative")

    if args.max_price_age < 0:
        parser.error("--max-price-age must be non-negative")

    try:
        quotes = parse_prices(args.prices)
    except ValueError as e:
        parser.error(str(e))

    if not quotes:
        parser.error("At least one price must be specified")

    signer_keys = parse_signer_keys(args.signer_keys)
    if signer_keys:
        signers = [Account.from_key(k) for k in signer_keys]
    else:
        if args.signer_count < 1:
            parser.error("--signer-count must be at least 1")
        signers = [Account.create() for _ in range(args.signer_count)]

    if args.mode == "quorum" and len(signers) < args.min_signers:
        parser.error(
            f"{len(signers)} signers cannot meet a quorum of {args.min_signers}"
        )

    keeper = Account.create()

    # Log configuration
    logger.info("=" * 60)
    logger.info("FX Price Oracle")
    logger.info("=" * 60)
    logger.info(f"Mode:              {args.mode}")
    logger.info(f"Chain ID:          {args.chain_id}")
    logger.info(f"Keeper:            {keeper.address}")
    logger.info(f"Signers:           {', '.join(s.address for s in signers)}")
    logger.info(f"Min Signers:       {args.min_signers}")
    logger.info(f"Max Block Age:     {args.max_block_age}")
    logger.info(
        f"Max Price Age:     {args.max_price_age}s" if args.max_price_age else "Max Price Age:     disabled"
    )
    logger.info("=" * 60)

    try:
        chain = Chain(chain_id=args.chain_id)
        deployment = deploy(
            keeper.address,
            chain=chain,
            signers=[s.address for s in signers],
            min_signers=args.min_signers,
            max_block_age=args.max_block_age,
            max_price_age=args.max_price_age,
            with_simplified_oracle=args.mode == "simplified",
        )

        if args.mode == "simplified":
            oracle = deployment.simplified_oracle
            oracle.set_simple_prices(
                keeper.address,
                [token for token, _, _ in quotes],
                [min_price for _, min_price, _ in quotes],
                [max_price for _, _, max_price in quotes],
            )
        else:
            oracle = deployment.oracle
            builder = PriceBatchBuilder(chain.chain_id)
            for token, min_price, max_price in quotes:
                builder.add_price(token, min_price, max_price)
            params = builder.build(
                signers=list(enumerate(signers)),
                min_block=chain.block_number,
                timestamp=chain.timestamp,
            )
            oracle.set_prices(keeper.address, params)

        for token, _, _ in quotes:
            price = oracle.get_primary_price(token)
            logger.info(
                f"{token_label(to_address(token))}: min={format_price(price.min)} "
                f"max={format_price(price.max)}"
            )
    except OracleError as e:
        logger.error(f"Submission rejected: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
