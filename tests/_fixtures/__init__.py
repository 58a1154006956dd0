"""Fixtures package for tests.

Re-export commonly used factories and helpers for convenient imports
from `tests._fixtures` package.
"""

from .factories import PriceBarFactory, faker, set_factory_seed
from .helpers import make_bars, make_ohlcv, make_random_walk_bars

__all__ = [
    "PriceBarFactory",
    "faker",
    "set_factory_seed",
    "make_bars",
    "make_ohlcv",
    "make_random_walk_bars",
]
