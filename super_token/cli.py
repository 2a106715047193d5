#!/usr/bin/env python3
"""
super-token - Command Line Client
=================================

Split an SPL token into principal and yield claims for a time window, and
trade them on constant product pools.

Usage:
    # Vault lifecycle
    super-token create-vault <mint> 2024-01-01 2024-05-01
    super-token mint <mint> 2024-01-01 2024-05-01 100
    super-token redeem <mint> 2024-01-01 2024-05-01 100

    # Pools
    super-token create-liquidity-pool <mintA> <mintB>
    super-token swap <pool> <fromMint> 10000
    super-token deposit <pool> 5000

Cluster, wallet and tuning come from SUPER_TOKEN_* environment variables
(see super_token.core.config). Amounts are base units.
"""
import argparse
import asyncio
import logging
import sys

from .context import ClientContext
from .core.config import Config
from .core.errors import ProtocolRejection, SuperTokenError
from .core.validation import to_pubkey
from .pool import PoolOrchestrator
from .vault import VaultOrchestrator

logger = logging.getLogger(__name__)


def setup_logging(level: str = "WARNING"):
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )


def open_context(config: Config) -> ClientContext:
    return ClientContext.open(config)


# =============================================================================
# ARGUMENT TYPES
# =============================================================================

def pubkey_arg(value: str):
    try:
        return to_pubkey(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def amount_arg(value: str) -> int:
    try:
        amount = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid amount {value!r}, expected an integer in base units")
    if not 0 < amount < 2 ** 64:
        raise argparse.ArgumentTypeError(f"amount must be positive and fit in u64, got {amount}")
    return amount


# =============================================================================
# COMMANDS
# =============================================================================

async def cmd_create_vault(ctx: ClientContext, args) -> None:
    created = await VaultOrchestrator(ctx).create_vault(args.mint, args.start, args.end)
    print(f"Created vault: {created.vault}")
    print(f"Principal mint: {created.mint_p}")
    print(f"Yield mint: {created.mint_y}")
    print(f"Underlying asset account: {created.token_u}")
    print(f"Signature: {created.signature}")
    print("Vault created successfully!")


async def cmd_mint(ctx: ClientContext, args) -> None:
    result = await VaultOrchestrator(ctx).mint(args.mint, args.start, args.end, args.amount)
    print(f"Deposited {result.amount} tokens from {result.underlying_account}")
    print(f"Minted {result.amount} principal tokens to {result.principal_account}")
    print(f"Minted {result.amount} yield tokens to {result.yield_account}")
    print(f"Signature: {result.signature}")
    print("Superposition tokens minted successfully!")


async def cmd_redeem(ctx: ClientContext, args) -> None:
    result = await VaultOrchestrator(ctx).redeem(args.mint, args.start, args.end, args.amount)
    print(f"Withdrew {result.amount} tokens to {result.underlying_account}")
    print(f"Burned {result.amount} principal tokens from {result.principal_account}")
    print(f"Burned {result.amount} yield tokens from {result.yield_account}")
    print(f"Signature: {result.signature}")
    print("Superposition tokens redeemed successfully!")


async def cmd_create_liquidity_pool(ctx: ClientContext, args) -> None:
    created = await PoolOrchestrator(ctx).create_liquidity_pool(args.mint_a, args.mint_b)
    print(f"Created liquidity pool: {created.pool}")
    print(f"Token A account: {created.token_a}")
    print(f"Token B account: {created.token_b}")
    print(f"LP token mint: {created.pool_mint}")
    print(f"Creator's LP token account: {created.creator_lp_account}")
    print(f"Fee account: {created.fee_account}")
    for signature in created.signatures:
        print(f"Signature: {signature}")
    print("Swap pool created successfully!")


async def cmd_swap(ctx: ClientContext, args) -> None:
    result = await PoolOrchestrator(ctx).swap(args.pool, args.from_mint, args.amount)
    print(f"Swapped {result.amount_in} of mint {result.from_mint} for mint {result.to_mint}")
    print(f"Received into: {result.destination_account} (minimum {result.minimum_out})")
    print(f"Signature: {result.signature}")
    print("Swapped successfully!")


async def cmd_deposit(ctx: ClientContext, args) -> None:
    result = await PoolOrchestrator(ctx).deposit(args.pool, args.amount)
    for leg in result.legs:
        print(
            f"Deposited {result.amount} of mint {leg.mint} "
            f"(minimum {leg.minimum_pool_tokens} LP tokens)"
        )
    print(f"LP token account: {result.lp_account}")
    print(f"Signature: {result.signature}")
    print("Deposited successfully!")


async def run(args, config: Config) -> None:
    async with open_context(config) as ctx:
        await args.handler(ctx, args)


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="super-token",
        description="Principal/yield vaults and constant product pools on Solana",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  super-token create-vault <mint> 2024-01-01 2024-05-01
  super-token mint <mint> 2024-01-01 2024-05-01 100
  super-token swap <pool> <fromMint> 10000

Environment:
  SUPER_TOKEN_CLUSTER      devnet | testnet | mainnet-beta | localnet
  SUPER_TOKEN_RPC_URL      overrides the cluster URL
  SUPER_TOKEN_KEYPAIR      wallet file (default ~/.config/solana/id.json)
  SUPER_TOKEN_SWAP_SLIPPAGE  e.g. 0.05 for a 5% minimum output floor
  SUPER_TOKEN_LOG_LEVEL    DEBUG | INFO | WARNING
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    p = sub.add_parser("create-vault", help="Create a vault for a mint and time window")
    p.add_argument("mint", type=pubkey_arg, help="Underlying mint")
    p.add_argument("start", help="Start time (YYYY-MM-DD, ISO datetime or Unix seconds)")
    p.add_argument("end", help="End time")
    p.set_defaults(handler=cmd_create_vault)

    p = sub.add_parser("mint", help="Deposit underlying, receive principal and yield tokens")
    p.add_argument("mint", type=pubkey_arg, help="Underlying mint")
    p.add_argument("start", help="Vault start time")
    p.add_argument("end", help="Vault end time")
    p.add_argument("amount", type=amount_arg, help="Amount in base units")
    p.set_defaults(handler=cmd_mint)

    p = sub.add_parser("redeem", help="Burn principal and yield tokens, withdraw underlying")
    p.add_argument("mint", type=pubkey_arg, help="Underlying mint")
    p.add_argument("start", help="Vault start time")
    p.add_argument("end", help="Vault end time")
    p.add_argument("amount", type=amount_arg, help="Amount in base units")
    p.set_defaults(handler=cmd_redeem)

    p = sub.add_parser("create-liquidity-pool", help="Create a constant product pool")
    p.add_argument("mint_a", metavar="mintA", type=pubkey_arg, help="First mint")
    p.add_argument("mint_b", metavar="mintB", type=pubkey_arg, help="Second mint")
    p.set_defaults(handler=cmd_create_liquidity_pool)

    p = sub.add_parser("swap", help="Swap one side of a pool for the other")
    p.add_argument("pool", type=pubkey_arg, help="Liquidity pool")
    p.add_argument("from_mint", metavar="fromMint", type=pubkey_arg, help="Mint to sell")
    p.add_argument("amount", type=amount_arg, help="Amount in base units")
    p.set_defaults(handler=cmd_swap)

    p = sub.add_parser("deposit", help="Deposit the same amount into both sides of a pool")
    p.add_argument("pool", type=pubkey_arg, help="Liquidity pool")
    p.add_argument("amount", type=amount_arg, help="Amount in base units, per side")
    p.set_defaults(handler=cmd_deposit)

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    setup_logging(config.log_level)

    try:
        asyncio.run(run(args, config))
    except ProtocolRejection as e:
        logger.debug(f"{args.command} rejected", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        for line in e.logs:
            print(f"  {line}", file=sys.stderr)
        return 1
    except SuperTokenError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
