"""
AMM Math - Constant product sizing for the token-swap pool.

Float arithmetic on purpose: the deposit minimum mirrors what the pool's
reference client computes, and the program only needs a floor it can beat.
"""
import math

from .config import FeeSchedule


def pool_tokens_for_deposit(
    source_amount: int,
    reserve_balance: int,
    pool_token_supply: int,
    fee_numerator: int,
    fee_denominator: int,
) -> int:
    """
    Minimum LP tokens accepted for a single-sided deposit.

    Half of the deposit is implicitly swapped into the other side, so only
    that half pays the trade fee:

        fee     = (source / 2) * (num / den)
        post    = source - fee
        ratio   = sqrt(post / reserve + 1)
        minimum = floor(supply * (ratio - 1))

    Args:
        source_amount: Deposit in base units of the side being deposited
        reserve_balance: Pool's current reserve of that side
        pool_token_supply: Current LP mint supply
        fee_numerator: Trade fee numerator
        fee_denominator: Trade fee denominator

    Returns:
        Minimum pool tokens, in LP base units
    """
    if reserve_balance <= 0:
        raise ValueError("reserve balance must be positive")

    fee_rate = fee_numerator / fee_denominator if fee_denominator else 0.0
    trading_fee = (source_amount / 2) * fee_rate
    source_post_fee = source_amount - trading_fee
    root = math.sqrt(source_post_fee / reserve_balance + 1)
    return math.floor(pool_token_supply * (root - 1))


def swap_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fees: FeeSchedule,
) -> int:
    """
    Constant product quote (k = x * y) net of trade and owner-trade fees.

    Only an estimate for the slippage floor; the program's own rounding
    may differ by a unit.
    """
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError("reserves must be positive")

    fee = 0
    if fees.trade_fee_denominator:
        fee += amount_in * fees.trade_fee_numerator // fees.trade_fee_denominator
    if fees.owner_trade_fee_denominator:
        fee += amount_in * fees.owner_trade_fee_numerator // fees.owner_trade_fee_denominator

    amount_after_fee = amount_in - fee
    k = reserve_in * reserve_out
    new_reserve_out = -(-k // (reserve_in + amount_after_fee))  # ceil
    return max(0, reserve_out - new_reserve_out)


def minimum_out_for_slippage(expected_out: int, slippage: float) -> int:
    """Lowest acceptable output for a tolerance (0.05 = 5%)."""
    return max(0, math.floor(expected_out * (1 - slippage)))
