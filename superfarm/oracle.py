"""
SuperFarm - Price Oracle Adapter

Normalizes a price feed read into (price, decimals).

Feeds follow the Chainlink AggregatorV3 shape:
    latest_round_data() -> (round_id, answer, started_at, updated_at, answered_in_round)
    decimals() -> int

The on-chain feed lives in superfarm.chain; FixedPriceFeed is used for
simulation and tests.
"""

import logging
from typing import Tuple

from .errors import OracleError

log = logging.getLogger(__name__)


class FixedPriceFeed:
    """
    Static AggregatorV3-shaped feed.

    Usage:
        feed = FixedPriceFeed(2000 * 10**8, 8)
        oracle = PriceOracleAdapter(feed)
        price, decimals = oracle.latest_price()
    """

    def __init__(self, price: int, decimals: int = 8):
        self.price = price
        self._decimals = decimals
        self.round_id = 1

    def set_price(self, price: int):
        """Move the feed to a new round with a new answer."""
        self.price = price
        self.round_id += 1

    def latest_round_data(self) -> Tuple[int, int, int, int, int]:
        return (self.round_id, self.price, 0, 0, self.round_id)

    def decimals(self) -> int:
        return self._decimals


class PriceOracleAdapter:
    """
    Wraps a single external price read.

    Every failure is raised as OracleError; callers must not retry.
    """

    def __init__(self, feed):
        """
        Args:
            feed: Object exposing latest_round_data() and decimals()
        """
        self.feed = feed

    def latest_price(self) -> Tuple[int, int]:
        """
        Read the latest price.

        Returns:
            (price, decimals) with price > 0

        Raises:
            OracleError: Read failed or price is not positive
        """
        try:
            round_data = self.feed.latest_round_data()
            decimals = int(self.feed.decimals())
        except OracleError:
            raise
        except Exception as e:
            raise OracleError(f"Price read failed: {e}") from e

        try:
            price = int(round_data[1])
        except (TypeError, IndexError, ValueError) as e:
            raise OracleError(f"Malformed round data: {round_data!r}") from e

        if price <= 0:
            raise OracleError(f"Oracle returned non-positive price {price}",
                              {"price": price})

        log.debug(f"Oracle price {price} ({decimals} decimals)")
        return price, decimals
