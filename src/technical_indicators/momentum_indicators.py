"""
Momentum Technical Indicators

This module implements the Relative Strength Index with Wilder smoothing,
condition classification, price/RSI divergence detection and the momentum
trend of the oscillator.
"""

import time
from itertools import accumulate
from typing import List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from src.technical_indicators.base import (
    BaseIndicator,
    IndicatorPoint,
    InsufficientDataError,
    PriceBar,
    PriceSelector,
    bars_to_frame,
    require_period,
    select_prices,
    validate_series,
)
from src.technical_indicators.config import indicator_config
from src.technical_indicators.signals import (
    DivergenceStrength,
    DivergenceType,
    MomentumTrend,
    OscillatorCondition,
    RSISignal,
)
from src.utils.logger import get_logger

logger = get_logger(__name__, utility='technical_indicators')

Selector = Union[PriceSelector, str, None]


class RSIPoint(IndicatorPoint):
    value: float
    condition: OscillatorCondition


class RSIDivergence(BaseModel):
    type: DivergenceType
    strength: DivergenceStrength
    confidence: float

    model_config = ConfigDict(frozen=True)


class RSIStrategy(BaseModel):
    """RSI summary for the latest bar"""

    current: RSIPoint
    condition: OscillatorCondition
    divergence: RSIDivergence
    momentum: MomentumTrend
    signal: RSISignal

    model_config = ConfigDict(frozen=True)


def classify_rsi(value: float) -> OscillatorCondition:
    if value >= indicator_config.RSI_EXTREME_HIGH:
        return OscillatorCondition.EXTREME_HIGH
    if value >= indicator_config.RSI_OVERBOUGHT:
        return OscillatorCondition.OVERBOUGHT
    if value <= indicator_config.RSI_EXTREME_LOW:
        return OscillatorCondition.EXTREME_LOW
    if value <= indicator_config.RSI_OVERSOLD:
        return OscillatorCondition.OVERSOLD
    return OscillatorCondition.NEUTRAL


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    # RS sentinel for a zero average loss, not a true ratio
    rs = avg_gain / avg_loss if avg_loss != 0 else indicator_config.RSI_ZERO_LOSS_RS
    return 100 - (100 / (1 + rs))


def _wilder_step(period: int):
    def step(averages: Tuple[float, float], sample: Tuple[float, float]) -> Tuple[float, float]:
        avg_gain, avg_loss = averages
        gain, loss = sample
        return (
            (avg_gain * (period - 1) + gain) / period,
            (avg_loss * (period - 1) + loss) / period,
        )
    return step


def calculate_rsi(bars: Sequence[PriceBar], period: Optional[int] = None,
                  selector: Selector = None) -> List[RSIPoint]:
    """
    Calculate Relative Strength Index

    The first average gain/loss is the plain mean of the first `period`
    changes; later averages use Wilder smoothing. Each value is stamped
    with the bar that produced its change.

    Args:
        bars: Time-ordered price bars
        period: Smoothing period
        selector: Price extraction rule

    Returns:
        len(bars) - period points

    Raises:
        InvalidParameterError: If period is not positive
        InsufficientDataError: If period is not less than the series length
    """
    start_time = time.time()

    if period is None:
        period = indicator_config.RSI_PERIOD

    series = validate_series(bars)
    period = require_period("period", period)
    if period >= len(series):
        raise InsufficientDataError(
            f"period ({period}) must be less than series length ({len(series)})"
        )

    try:
        prices = select_prices(bars_to_frame(series), selector)
        changes = prices.diff().iloc[1:]
        gains = changes.clip(lower=0).tolist()
        losses = (-changes).clip(lower=0).tolist()

        if len(gains) < period:
            raise InsufficientDataError(f"insufficient data: need at least {period} price changes")

        seed = (sum(gains[:period]) / period, sum(losses[:period]) / period)
        averages = accumulate(zip(gains[period:], losses[period:]), _wilder_step(period), initial=seed)

        points = []
        for offset, (avg_gain, avg_loss) in enumerate(averages):
            value = _rsi_from_averages(avg_gain, avg_loss)
            points.append(RSIPoint(
                timestamp=series[period + offset].timestamp,
                value=value,
                condition=classify_rsi(value),
            ))
    except InsufficientDataError:
        raise
    except Exception as e:
        logger.error(f"Error calculating RSI_{period}: {str(e)}")
        raise

    logger.debug(f"Calculated RSI_{period}: {len(points)} values in {time.time() - start_time:.4f}s")
    return points


def get_latest_rsi(bars: Sequence[PriceBar], period: Optional[int] = None,
                   selector: Selector = None) -> RSIPoint:
    return calculate_rsi(bars, period, selector)[-1]


def _divergence_confidence(previous: float, latest: float) -> float:
    return min(1.0, abs(latest - previous) / 10.0)


def detect_rsi_divergence(bars: Sequence[PriceBar], period: Optional[int] = None,
                          selector: Selector = None, lookback: Optional[int] = None) -> RSIDivergence:
    """
    Detect regular divergence between closing prices and RSI extremes

    Interior RSI points strictly above (below) both neighbours are peaks
    (troughs). A higher price high with a lower RSI high is bearish; a lower
    price low with a higher RSI low is bullish.

    Args:
        bars: Time-ordered price bars
        period: RSI period
        selector: Price extraction rule for the RSI
        lookback: Window of recent points to scan, raised to the minimum when smaller

    Returns:
        RSIDivergence; strength insufficient_data when history is shorter than the lookback
    """
    if lookback is None:
        lookback = indicator_config.DIVERGENCE_LOOKBACK
    lookback = max(lookback, indicator_config.MIN_DIVERGENCE_LOOKBACK)

    series = validate_series(bars)
    rsi_points = calculate_rsi(series, period, selector)

    if len(rsi_points) < lookback or len(series) < lookback:
        logger.warning(
            f"Insufficient data for RSI divergence. Need {lookback} RSI points, have {len(rsi_points)}"
        )
        return RSIDivergence(
            type=DivergenceType.NONE,
            strength=DivergenceStrength.INSUFFICIENT_DATA,
            confidence=0.0,
        )

    recent_rsi = [point.value for point in rsi_points[-lookback:]]
    recent_closes = [bar.close for bar in series[-lookback:]]

    peaks, troughs = [], []
    for i in range(1, lookback - 1):
        value, previous, following = recent_rsi[i], recent_rsi[i - 1], recent_rsi[i + 1]
        if value > previous and value > following:
            peaks.append((recent_closes[i], value))
        if value < previous and value < following:
            troughs.append((recent_closes[i], value))

    if len(peaks) >= 2:
        (prev_price, prev_rsi), (last_price, last_rsi) = peaks[-2], peaks[-1]
        if last_price > prev_price and last_rsi < prev_rsi:
            return RSIDivergence(
                type=DivergenceType.BEARISH,
                strength=DivergenceStrength.REGULAR,
                confidence=_divergence_confidence(prev_rsi, last_rsi),
            )

    if len(troughs) >= 2:
        (prev_price, prev_rsi), (last_price, last_rsi) = troughs[-2], troughs[-1]
        if last_price < prev_price and last_rsi > prev_rsi:
            return RSIDivergence(
                type=DivergenceType.BULLISH,
                strength=DivergenceStrength.REGULAR,
                confidence=_divergence_confidence(prev_rsi, last_rsi),
            )

    return RSIDivergence(type=DivergenceType.NONE, strength=DivergenceStrength.NONE, confidence=0.0)


def momentum_trend(values: Sequence[float]) -> MomentumTrend:
    """Direction of the last three oscillator values"""
    if len(values) < 3:
        return MomentumTrend.NEUTRAL
    first, second, third = values[-3:]
    if third > second > first:
        return MomentumTrend.STRENGTHENING
    if third < second < first:
        return MomentumTrend.WEAKENING
    return MomentumTrend.NEUTRAL


def derive_rsi_signal(value: float, condition: OscillatorCondition,
                      divergence: DivergenceType, momentum: MomentumTrend) -> RSISignal:
    if condition == OscillatorCondition.EXTREME_LOW and divergence == DivergenceType.BULLISH:
        return RSISignal.STRONG_BUY
    if condition == OscillatorCondition.EXTREME_HIGH and divergence == DivergenceType.BEARISH:
        return RSISignal.STRONG_SELL
    if condition == OscillatorCondition.OVERSOLD and momentum == MomentumTrend.STRENGTHENING:
        return RSISignal.BUY
    if condition == OscillatorCondition.OVERBOUGHT and momentum == MomentumTrend.WEAKENING:
        return RSISignal.SELL
    if value > indicator_config.RSI_MIDLINE and momentum == MomentumTrend.STRENGTHENING:
        return RSISignal.BULLISH
    if value < indicator_config.RSI_MIDLINE and momentum == MomentumTrend.WEAKENING:
        return RSISignal.BEARISH
    return RSISignal.HOLD


def analyze_rsi_strategy(bars: Sequence[PriceBar], period: Optional[int] = None,
                         selector: Selector = None) -> RSIStrategy:
    """Complete RSI analysis for the latest bar"""
    series = validate_series(bars)
    rsi_points = calculate_rsi(series, period, selector)
    current = rsi_points[-1]
    divergence = detect_rsi_divergence(series, period, selector, indicator_config.DIVERGENCE_LOOKBACK)
    momentum = momentum_trend([point.value for point in rsi_points])

    return RSIStrategy(
        current=current,
        condition=current.condition,
        divergence=divergence,
        momentum=momentum,
        signal=derive_rsi_signal(current.value, current.condition, divergence.type, momentum),
    )


class RSICalculator(BaseIndicator):
    """RSI calculator bound to one series"""

    def __init__(self, bars: Sequence[PriceBar], period: Optional[int] = None,
                 selector: Selector = None):
        if period is None:
            period = indicator_config.RSI_PERIOD
        super().__init__(bars, period=period, selector=selector)

    def calculate(self) -> List[RSIPoint]:
        return calculate_rsi(self.bars, self.params['period'], self.params['selector'])

    def analyze(self) -> RSIStrategy:
        return analyze_rsi_strategy(self.bars, self.params['period'], self.params['selector'])
