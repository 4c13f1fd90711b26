"""
SuperFarm - Flow Rate Calculator

Converts a native-currency deposit into a per-second stream rate.

Formula:
    rate = deposit * 10**decimals * yield_percent / price / 100 / SECONDS_PER_YEAR

    - deposit:       native amount attached to the mint (wei)
    - price:         oracle answer, scaled by 10**decimals
    - yield_percent: fixed annual yield, whole percent
    - SECONDS_PER_YEAR is a 365-day year; leap years are ignored

All arithmetic is integer; each division truncates. Over many small mints
this under-delivers a few units per token, which is accepted.
"""

from .errors import InvalidDepositError, FlowRateOverflowError

# ═══════════════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════════

SECONDS_PER_YEAR = 365 * 24 * 60 * 60   # 31,536,000

# Superfluid stores rates as int96
MAX_FLOW_RATE = 2 ** 95 - 1

DEFAULT_YIELD_PERCENT = 10


# ═══════════════════════════════════════════════════════════════════════════════
# CALCULATOR
# ═══════════════════════════════════════════════════════════════════════════════

def flow_rate(deposit: int, price: int, decimals: int,
              annual_yield_percent: int = DEFAULT_YIELD_PERCENT) -> int:
    """
    Compute the per-second flow rate for a deposit.

    Args:
        deposit: Native amount paid at mint (wei)
        price: Oracle price (integer, scaled by 10**decimals)
        decimals: Oracle decimal precision
        annual_yield_percent: Fixed yield, e.g. 10 for 10%

    Returns:
        Flow rate in asset units per second (strictly positive)

    Raises:
        InvalidDepositError: Non-positive input or a rate that truncates to 0
        FlowRateOverflowError: Rate larger than the host can store

    Examples:
        >>> flow_rate(10**18, 2000 * 10**8, 8, 10)
        1585489
    """
    for name, value in (("deposit", deposit), ("price", price),
                        ("decimals", decimals),
                        ("annual_yield_percent", annual_yield_percent)):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"{name} must be integer, got {type(value).__name__}")

    if price <= 0:
        raise InvalidDepositError(f"Price must be positive, got {price}",
                                  {"price": price})
    if deposit <= 0:
        raise InvalidDepositError(f"Deposit must be positive, got {deposit}",
                                  {"deposit": deposit})
    if decimals < 0:
        raise InvalidDepositError(f"Decimals must be non-negative, got {decimals}")
    if annual_yield_percent < 0:
        raise InvalidDepositError(
            f"Yield must be non-negative, got {annual_yield_percent}")

    rate = deposit * 10 ** decimals * annual_yield_percent // price // 100 // SECONDS_PER_YEAR

    if rate <= 0:
        raise InvalidDepositError(
            f"Deposit {deposit} too small for price {price} "
            f"(minimum {minimum_deposit(price, decimals, annual_yield_percent)})",
            {"deposit": deposit, "price": price, "flow_rate": rate})
    if rate > MAX_FLOW_RATE:
        raise FlowRateOverflowError(
            f"Flow rate {rate} exceeds int96 maximum",
            {"deposit": deposit, "flow_rate": rate})

    return rate


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def minimum_deposit(price: int, decimals: int,
                    annual_yield_percent: int = DEFAULT_YIELD_PERCENT) -> int:
    """
    Smallest deposit that yields a rate of at least 1.

    Returns 0 when no deposit can ever succeed (zero yield or bad price).
    """
    if price <= 0 or annual_yield_percent <= 0:
        return 0
    scale = 10 ** decimals * annual_yield_percent
    # rate >= 1  <=>  deposit * scale >= price * 100 * SECONDS_PER_YEAR
    threshold = price * 100 * SECONDS_PER_YEAR
    return -(-threshold // scale)


def yearly_amount(rate: int) -> int:
    """Total streamed over one (365-day) year at a given rate."""
    return rate * SECONDS_PER_YEAR


def format_rate(rate: int, asset_decimals: int = 18) -> str:
    """Human-readable rate per second and per year."""
    per_second = rate / 10 ** asset_decimals
    per_year = yearly_amount(rate) / 10 ** asset_decimals
    return f"{per_second:.{asset_decimals}f}/s ({per_year:,.2f}/yr)"
