"""
Trend Technical Indicators

This module implements the simple moving average, fast/slow crossover
detection and the price-versus-average trend signal.
"""

import time
from typing import Dict, List, Optional, Sequence, Union

try:
    import ta
except ImportError:
    raise ImportError("ta is required. Install with: pip install ta")

from pydantic import BaseModel, ConfigDict

from src.technical_indicators.base import (
    BaseIndicator,
    IndicatorPoint,
    InsufficientDataError,
    InvalidParameterError,
    PriceBar,
    PriceSelector,
    bars_to_frame,
    require_period,
    select_prices,
    validate_series,
)
from src.technical_indicators.config import indicator_config
from src.technical_indicators.signals import CrossoverSignal, SMASignal
from src.utils.logger import get_logger

logger = get_logger(__name__, utility='technical_indicators')

Selector = Union[PriceSelector, str, None]


class SMAPoint(IndicatorPoint):
    value: float


class SMAStrategy(BaseModel):
    """Moving-average summary: latest value, crossover state and trend signal"""

    current: SMAPoint
    period: int
    fast_period: int
    price_above_average: bool
    crossover: CrossoverSignal
    signal: SMASignal

    model_config = ConfigDict(frozen=True)


def calculate_sma(bars: Sequence[PriceBar], period: Optional[int] = None,
                  selector: Selector = None) -> List[SMAPoint]:
    """
    Calculate the Simple Moving Average

    Args:
        bars: Time-ordered price bars
        period: Window size
        selector: Price extraction rule

    Returns:
        One point per bar from index period-1 onward

    Raises:
        EmptyInputError: If the series is empty
        InvalidParameterError: If period is not positive
        InsufficientDataError: If period exceeds the series length
    """
    start_time = time.time()

    if period is None:
        period = indicator_config.SMA_PERIOD

    series = validate_series(bars)
    period = require_period("period", period, len(series))

    try:
        prices = select_prices(bars_to_frame(series), selector)
        sma_values = ta.trend.sma_indicator(prices, window=period)

        points = [
            SMAPoint(timestamp=series[i].timestamp, value=float(sma_values.iloc[i]))
            for i in range(period - 1, len(series))
        ]
    except Exception as e:
        logger.error(f"Error calculating SMA_{period}: {str(e)}")
        raise

    logger.debug(f"Calculated SMA_{period}: {len(points)} values in {time.time() - start_time:.4f}s")
    return points


def calculate_multiple_sma(bars: Sequence[PriceBar], periods: List[int],
                           selector: Selector = None) -> Dict[int, List[SMAPoint]]:
    """Calculate one SMA series per period; the first failing period aborts the batch"""
    results = {}
    for period in periods:
        try:
            results[period] = calculate_sma(bars, period, selector)
        except InsufficientDataError as e:
            raise InsufficientDataError(f"error calculating SMA-{period}: {e}") from e
        except InvalidParameterError as e:
            raise InvalidParameterError(f"error calculating SMA-{period}: {e}") from e
    return results


def get_latest_sma(bars: Sequence[PriceBar], period: Optional[int] = None,
                   selector: Selector = None) -> SMAPoint:
    """Return the most recent SMA point"""
    return calculate_sma(bars, period, selector)[-1]


def is_price_above_sma(bars: Sequence[PriceBar], period: Optional[int] = None,
                       selector: Selector = None) -> bool:
    """Compare the latest close with the latest moving-average value"""
    latest = get_latest_sma(bars, period, selector)
    return bars[-1].close > latest.value


def classify_crossover(fast_previous: float, fast_current: float,
                       slow_previous: float, slow_current: float) -> CrossoverSignal:
    """Classify the transition between two consecutive aligned (fast, slow) pairs"""
    if fast_previous <= slow_previous and fast_current > slow_current:
        return CrossoverSignal.BULLISH_CROSSOVER
    if fast_previous >= slow_previous and fast_current < slow_current:
        return CrossoverSignal.BEARISH_CROSSOVER
    return CrossoverSignal.NO_SIGNAL


def detect_crossover(bars: Sequence[PriceBar], fast_period: int, slow_period: int,
                     selector: Selector = None) -> CrossoverSignal:
    """
    Detect a fast/slow moving-average crossover on the last two bars

    Raises:
        InvalidParameterError: If a period is not positive or fast_period >= slow_period
        InsufficientDataError: If fewer than slow_period + 1 bars are available
    """
    series = validate_series(bars)
    require_period("fast_period", fast_period)
    require_period("slow_period", slow_period)

    if fast_period >= slow_period:
        raise InvalidParameterError(
            f"fast period ({fast_period}) must be less than slow period ({slow_period})"
        )
    if len(series) < slow_period + 1:
        raise InsufficientDataError(
            f"insufficient data for crossover analysis: need {slow_period + 1} bars, have {len(series)}"
        )

    fast_sma = calculate_sma(series, fast_period, selector)
    slow_sma = calculate_sma(series, slow_period, selector)

    if len(fast_sma) < 2 or len(slow_sma) < 2:
        return CrossoverSignal.NO_SIGNAL

    # Both series end at the last bar, so their tails are aligned
    return classify_crossover(
        fast_sma[-2].value, fast_sma[-1].value,
        slow_sma[-2].value, slow_sma[-1].value,
    )


def derive_sma_signal(price_above_average: bool, crossover: CrossoverSignal) -> SMASignal:
    if price_above_average and crossover == CrossoverSignal.BULLISH_CROSSOVER:
        return SMASignal.STRONG_BULLISH
    if not price_above_average and crossover == CrossoverSignal.BEARISH_CROSSOVER:
        return SMASignal.STRONG_BEARISH
    return SMASignal.BULLISH if price_above_average else SMASignal.BEARISH


def analyze_sma_strategy(bars: Sequence[PriceBar], period: Optional[int] = None,
                         selector: Selector = None) -> SMAStrategy:
    """
    Summarize the moving-average trend

    The fast average uses half the period; direction comes from the latest
    close versus the full-period average.
    """
    if period is None:
        period = indicator_config.SMA_PERIOD

    series = validate_series(bars)
    current = get_latest_sma(series, period, selector)
    above = series[-1].close > current.value
    fast_period = period // 2
    crossover = detect_crossover(series, fast_period, period, selector)

    return SMAStrategy(
        current=current,
        period=period,
        fast_period=fast_period,
        price_above_average=above,
        crossover=crossover,
        signal=derive_sma_signal(above, crossover),
    )


class SMACalculator(BaseIndicator):
    """Moving-average calculator bound to one series"""

    def __init__(self, bars: Sequence[PriceBar], period: Optional[int] = None,
                 selector: Selector = None):
        if period is None:
            period = indicator_config.SMA_PERIOD
        super().__init__(bars, period=period, selector=selector)

    def calculate(self) -> List[SMAPoint]:
        return calculate_sma(self.bars, self.params['period'], self.params['selector'])

    def analyze(self) -> SMAStrategy:
        return analyze_sma_strategy(self.bars, self.params['period'], self.params['selector'])
