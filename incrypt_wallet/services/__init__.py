"""Service modules"""
from .aggregator import RefreshingAggregator
from .lending import DISPATCH, LendingAction, LendingAggregator, MarketVenue
from .market_data import MarketDataAggregator
from .pools import PoolAggregator

__all__ = [
    "DISPATCH",
    "LendingAction",
    "LendingAggregator",
    "MarketDataAggregator",
    "MarketVenue",
    "PoolAggregator",
    "RefreshingAggregator",
]
