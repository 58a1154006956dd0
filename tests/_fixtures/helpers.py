from datetime import datetime, timedelta
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from src.technical_indicators.base import PriceBar, bars_from_frame


def make_bars(
    closes: Sequence[float],
    volumes: Optional[Sequence[float]] = None,
    highs: Optional[Sequence[float]] = None,
    lows: Optional[Sequence[float]] = None,
    opens: Optional[Sequence[float]] = None,
    start: datetime = datetime(2024, 1, 1),
    step: timedelta = timedelta(days=1),
) -> List[PriceBar]:
    """Build bars from explicit columns.

    Opens default to the close, highs/lows to half a point around the body
    and volumes to 1000.
    """
    n = len(closes)
    opens = list(opens) if opens is not None else list(closes)
    volumes = list(volumes) if volumes is not None else [1000.0] * n
    highs = list(highs) if highs is not None else [max(o, c) + 0.5 for o, c in zip(opens, closes)]
    lows = list(lows) if lows is not None else [min(o, c) - 0.5 for o, c in zip(opens, closes)]

    return [
        PriceBar(
            timestamp=start + i * step,
            open=opens[i],
            high=highs[i],
            low=lows[i],
            close=closes[i],
            volume=volumes[i],
        )
        for i in range(n)
    ]


def make_ohlcv(n=120, seed=42) -> pd.DataFrame:
    """Random-walk OHLCV frame indexed by daily timestamps."""
    rng = np.random.default_rng(seed)
    prices = np.cumsum(rng.normal(0, 1, n)) + 100
    opens = prices + rng.normal(0, 0.5, n)
    highs = np.maximum(opens, prices) + rng.random(n)
    lows = np.minimum(opens, prices) - rng.random(n)
    volume = rng.integers(1000, 5000, n)
    idx = pd.date_range("2024-01-01", periods=n, freq="D")
    return pd.DataFrame({
        "open": opens,
        "high": highs,
        "low": lows,
        "close": prices,
        "volume": volume,
    }, index=idx)


def make_random_walk_bars(n=120, seed=42) -> List[PriceBar]:
    return bars_from_frame(make_ohlcv(n=n, seed=seed))
