"""
Volume Technical Indicators

This module implements the volume moving average, On-Balance Volume, Volume
Price Trend, Volume Rate of Change and the Accumulation/Distribution Line,
together with volume breakout and accumulation/distribution detection.
"""

import time
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

try:
    import ta
except ImportError:
    raise ImportError("ta is required. Install with: pip install ta")

from pydantic import BaseModel, ConfigDict

from src.technical_indicators.base import (
    BaseIndicator,
    IndicatorPoint,
    InsufficientDataError,
    PriceBar,
    bars_to_frame,
    require_period,
    require_positive,
    validate_series,
)
from src.technical_indicators.config import indicator_config
from src.technical_indicators.signals import (
    OBVTrend,
    VolumeSignalType,
    VolumeStrategySignal,
    VolumeStrength,
    VolumeTrend,
)
from src.utils.logger import get_logger

logger = get_logger(__name__, utility="technical_indicators")


class VolumePoint(IndicatorPoint):
    volume: float
    vma: float
    obv: float
    vpt: float
    vroc: float
    adl: float


class VolumeSignal(BaseModel):
    type: VolumeSignalType
    strength: Optional[VolumeStrength] = None
    trend: Optional[VolumeTrend] = None
    confidence: float = 0.0

    model_config = ConfigDict(frozen=True)


class VolumeStrategy(BaseModel):
    """Volume summary for the latest bar"""

    current: VolumePoint
    breakout_signal: VolumeSignal
    accumulation_signal: VolumeSignal
    volume_ratio: float
    obv_trend: OBVTrend
    signal: VolumeStrategySignal

    model_config = ConfigDict(frozen=True)


def _resolve(vma_period: Optional[int], vroc_period: Optional[int]):
    if vma_period is None:
        vma_period = indicator_config.VMA_PERIOD
    if vroc_period is None:
        vroc_period = indicator_config.VROC_PERIOD
    return vma_period, vroc_period


def _running_total(deltas: pd.Series, seed: float, start: int) -> pd.Series:
    """Seed at the first bar, then accumulate deltas from `start` onward"""
    steps = deltas.where(deltas.index >= start, 0.0)
    steps.iloc[0] = seed
    return steps.cumsum()


def _volume_ratio(volume: float, vma: float) -> float:
    return volume / vma if vma != 0 else 0.0


def calculate_volume_analysis(bars: Sequence[PriceBar], vma_period: Optional[int] = None,
                              vroc_period: Optional[int] = None) -> List[VolumePoint]:
    """
    Calculate the co-computed volume indicators

    OBV, VPT and ADL are seeded with the first bar's volume and accumulate
    from bar max(vma_period, vroc_period) onward, which is also the first
    emitted bar.

    Args:
        bars: Time-ordered price bars
        vma_period: Volume moving average window
        vroc_period: Volume rate of change lag

    Returns:
        One point per bar from index max(vma_period, vroc_period) onward

    Raises:
        InvalidParameterError: If a period is not positive
        InsufficientDataError: If the series is not longer than the larger period
    """
    start_time = time.time()
    vma_period, vroc_period = _resolve(vma_period, vroc_period)

    series = validate_series(bars)
    require_period("vma_period", vma_period)
    require_period("vroc_period", vroc_period)

    max_period = max(vma_period, vroc_period)
    if len(series) <= max_period:
        raise InsufficientDataError(f"insufficient data: need more than {max_period} bars, have {len(series)}")

    try:
        data = bars_to_frame(series)
        volume, close, high, low = data["volume"], data["close"], data["high"], data["low"]
        prev_close = close.shift(1)
        seed = float(volume.iloc[0])

        vma = ta.trend.sma_indicator(volume, window=vma_period)

        obv_delta = np.sign(close.diff()).fillna(0.0) * volume
        obv = _running_total(obv_delta, seed, max_period)

        vpt_delta = (volume * close.diff() / prev_close).where(prev_close != 0, 0.0)
        vpt = _running_total(vpt_delta, seed, max_period)

        prior_volume = volume.shift(vroc_period)
        vroc = ((volume - prior_volume) / prior_volume * 100).where(prior_volume != 0, 0.0)

        bar_range = high - low
        money_flow_multiplier = (((close - low) - (high - close)) / bar_range).clip(-1.0, 1.0)
        adl_delta = (money_flow_multiplier * volume).where(bar_range != 0, 0.0)
        adl = _running_total(adl_delta, seed, max_period)

        points = [
            VolumePoint(
                timestamp=series[i].timestamp,
                volume=float(volume.iloc[i]),
                vma=float(vma.iloc[i]),
                obv=float(obv.iloc[i]),
                vpt=float(vpt.iloc[i]),
                vroc=float(vroc.iloc[i]),
                adl=float(adl.iloc[i]),
            )
            for i in range(max_period, len(series))
        ]
    except Exception as e:
        logger.error(f"Error calculating volume analysis: {str(e)}")
        raise

    logger.debug(
        f"Calculated volume analysis (vma={vma_period}, vroc={vroc_period}): "
        f"{len(points)} values in {time.time() - start_time:.4f}s"
    )
    return points


def get_latest_volume_analysis(bars: Sequence[PriceBar], vma_period: Optional[int] = None,
                               vroc_period: Optional[int] = None) -> VolumePoint:
    return calculate_volume_analysis(bars, vma_period, vroc_period)[-1]


def detect_volume_breakout(bars: Sequence[PriceBar], vma_period: Optional[int] = None,
                           multiplier: Optional[float] = None,
                           vroc_period: Optional[int] = None) -> VolumeSignal:
    """
    Identify unusual volume relative to the volume moving average

    Strength tiers are 3x, 2x and 1x the multiplier. Above the multiplier the
    signal is a breakout whose trend follows the last close-to-close move.
    """
    if multiplier is None:
        multiplier = indicator_config.VOLUME_BREAKOUT_MULTIPLIER
    multiplier = require_positive("multiplier", multiplier)

    series = validate_series(bars)
    latest = get_latest_volume_analysis(series, vma_period, vroc_period)
    ratio = _volume_ratio(latest.volume, latest.vma)

    if ratio >= multiplier * 3:
        strength, confidence = VolumeStrength.EXTREME, 0.9
    elif ratio >= multiplier * 2:
        strength, confidence = VolumeStrength.STRONG, 0.8
    elif ratio >= multiplier:
        strength, confidence = VolumeStrength.MODERATE, 0.6
    else:
        strength, confidence = VolumeStrength.WEAK, 0.3

    if ratio < multiplier:
        return VolumeSignal(type=VolumeSignalType.NORMAL, strength=strength,
                            trend=VolumeTrend.NEUTRAL, confidence=confidence)

    current_close, previous_close = series[-1].close, series[-2].close
    if current_close > previous_close and latest.obv > 0:
        trend = VolumeTrend.BULLISH
    elif current_close < previous_close:
        trend = VolumeTrend.BEARISH
    else:
        trend = VolumeTrend.NEUTRAL

    logger.debug(f"Volume breakout: ratio={ratio:.2f}, strength={strength.value}, trend={trend.value}")
    return VolumeSignal(type=VolumeSignalType.BREAKOUT, strength=strength, trend=trend, confidence=confidence)


def linear_regression_slope(values: Sequence[float]) -> float:
    """Ordinary least squares slope of values against a 0-based index"""
    n = len(values)
    if n < 2:
        raise InsufficientDataError(f"slope needs at least 2 values, have {n}")

    sum_t = sum_y = sum_ty = sum_tt = 0.0
    for t, y in enumerate(values):
        sum_t += t
        sum_y += y
        sum_ty += t * y
        sum_tt += t * t

    return (n * sum_ty - sum_t * sum_y) / (n * sum_tt - sum_t * sum_t)


def detect_accumulation_distribution(bars: Sequence[PriceBar],
                                     lookback: Optional[int] = None) -> VolumeSignal:
    """
    Classify money flow from the slope of the Accumulation/Distribution Line

    Uses the fixed accumulation VMA/VROC periods from the configuration.
    Returns an insufficient_data signal when fewer points than the lookback exist.
    """
    if lookback is None:
        lookback = indicator_config.ACCUMULATION_LOOKBACK
    lookback = max(lookback, indicator_config.MIN_ACCUMULATION_LOOKBACK)

    results = calculate_volume_analysis(
        bars,
        indicator_config.ACCUMULATION_VMA_PERIOD,
        indicator_config.ACCUMULATION_VROC_PERIOD,
    )
    if len(results) < lookback:
        logger.warning(
            f"Insufficient data for accumulation/distribution. Need {lookback} points, have {len(results)}"
        )
        return VolumeSignal(type=VolumeSignalType.INSUFFICIENT_DATA)

    slope = linear_regression_slope([point.adl for point in results[-lookback:]])
    strong, moderate = indicator_config.STRONG_SLOPE, indicator_config.MODERATE_SLOPE

    if slope > strong:
        return VolumeSignal(type=VolumeSignalType.ACCUMULATION, strength=VolumeStrength.STRONG,
                            trend=VolumeTrend.BULLISH, confidence=0.8)
    if slope > moderate:
        return VolumeSignal(type=VolumeSignalType.ACCUMULATION, strength=VolumeStrength.MODERATE,
                            trend=VolumeTrend.BULLISH, confidence=0.6)
    if slope < -strong:
        return VolumeSignal(type=VolumeSignalType.DISTRIBUTION, strength=VolumeStrength.STRONG,
                            trend=VolumeTrend.BEARISH, confidence=0.8)
    if slope < -moderate:
        return VolumeSignal(type=VolumeSignalType.DISTRIBUTION, strength=VolumeStrength.MODERATE,
                            trend=VolumeTrend.BEARISH, confidence=0.6)
    return VolumeSignal(type=VolumeSignalType.NEUTRAL, strength=VolumeStrength.WEAK,
                        trend=VolumeTrend.NEUTRAL, confidence=0.3)


def obv_trend(points: Sequence[VolumePoint]) -> OBVTrend:
    """Direction of OBV over the last three points"""
    if len(points) < 3:
        return OBVTrend.SIDEWAYS
    first, second, third = (point.obv for point in points[-3:])
    if third > second > first:
        return OBVTrend.RISING
    if third < second < first:
        return OBVTrend.FALLING
    return OBVTrend.SIDEWAYS


def derive_volume_signal(breakout: VolumeSignal, accumulation: VolumeSignal,
                         trend: OBVTrend, volume_ratio: float) -> VolumeStrategySignal:
    is_breakout = breakout.type == VolumeSignalType.BREAKOUT
    if is_breakout and breakout.trend == VolumeTrend.BULLISH and accumulation.type == VolumeSignalType.ACCUMULATION:
        return VolumeStrategySignal.STRONG_BUY
    if is_breakout and breakout.trend == VolumeTrend.BEARISH and accumulation.type == VolumeSignalType.DISTRIBUTION:
        return VolumeStrategySignal.STRONG_SELL
    if is_breakout and breakout.trend == VolumeTrend.BULLISH:
        return VolumeStrategySignal.BUY
    if is_breakout and breakout.trend == VolumeTrend.BEARISH:
        return VolumeStrategySignal.SELL
    if accumulation.type == VolumeSignalType.ACCUMULATION and trend == OBVTrend.RISING:
        return VolumeStrategySignal.ACCUMULATE
    if accumulation.type == VolumeSignalType.DISTRIBUTION and trend == OBVTrend.FALLING:
        return VolumeStrategySignal.DISTRIBUTE
    if volume_ratio < indicator_config.LOW_VOLUME_RATIO:
        return VolumeStrategySignal.LOW_VOLUME_ALERT
    return VolumeStrategySignal.HOLD


def analyze_volume_strategy(bars: Sequence[PriceBar], vma_period: Optional[int] = None,
                            vroc_period: Optional[int] = None) -> VolumeStrategy:
    """Complete volume analysis for the latest bar"""
    vma_period, vroc_period = _resolve(vma_period, vroc_period)
    series = validate_series(bars)

    points = calculate_volume_analysis(series, vma_period, vroc_period)
    current = points[-1]
    breakout = detect_volume_breakout(
        series, vma_period, indicator_config.VOLUME_BREAKOUT_MULTIPLIER, vroc_period
    )
    accumulation = detect_accumulation_distribution(series, indicator_config.ACCUMULATION_LOOKBACK)
    ratio = _volume_ratio(current.volume, current.vma)
    trend = obv_trend(points)

    return VolumeStrategy(
        current=current,
        breakout_signal=breakout,
        accumulation_signal=accumulation,
        volume_ratio=ratio,
        obv_trend=trend,
        signal=derive_volume_signal(breakout, accumulation, trend, ratio),
    )


class VolumeCalculator(BaseIndicator):
    """Volume indicator calculator bound to one series"""

    def __init__(self, bars: Sequence[PriceBar], vma_period: Optional[int] = None,
                 vroc_period: Optional[int] = None):
        vma_period, vroc_period = _resolve(vma_period, vroc_period)
        super().__init__(bars, vma_period=vma_period, vroc_period=vroc_period)

    def calculate(self) -> List[VolumePoint]:
        return calculate_volume_analysis(self.bars, self.params["vma_period"], self.params["vroc_period"])

    def analyze(self) -> VolumeStrategy:
        return analyze_volume_strategy(self.bars, self.params["vma_period"], self.params["vroc_period"])
