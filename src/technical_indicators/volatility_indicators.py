"""
Volatility Technical Indicators

This module implements Bollinger Bands with population standard deviation,
price position classification against the latest band, squeeze detection
and single-bar breakout detection.
"""

import time
from typing import List, Optional, Sequence, Union

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
    require_positive,
    select_prices,
    validate_series,
)
from src.technical_indicators.config import indicator_config
from src.technical_indicators.signals import BandPosition, BollingerSignal, BreakoutSignal
from src.utils.logger import get_logger

logger = get_logger(__name__, utility='technical_indicators')

Selector = Union[PriceSelector, str, None]

# (previous position, current position) -> breakout
_BREAKOUT_TRANSITIONS = {
    (BandPosition.BETWEEN_BANDS, BandPosition.ABOVE_UPPER): BreakoutSignal.BULLISH_BREAKOUT,
    (BandPosition.TOUCHING_UPPER, BandPosition.ABOVE_UPPER): BreakoutSignal.BULLISH_BREAKOUT,
    (BandPosition.BETWEEN_BANDS, BandPosition.BELOW_LOWER): BreakoutSignal.BEARISH_BREAKOUT,
    (BandPosition.TOUCHING_LOWER, BandPosition.BELOW_LOWER): BreakoutSignal.BEARISH_BREAKOUT,
}


class BollingerPoint(IndicatorPoint):
    upper_band: float
    middle_band: float
    lower_band: float
    band_width: float


class BollingerStrategy(BaseModel):
    """Band summary for the latest bar"""

    current: BollingerPoint
    position: BandPosition
    breakout: BreakoutSignal
    squeeze: bool
    band_width: float
    signal: BollingerSignal

    model_config = ConfigDict(frozen=True)


def _resolve(period: Optional[int], multiplier: Optional[float]):
    if period is None:
        period = indicator_config.BB_PERIOD
    if multiplier is None:
        multiplier = indicator_config.BB_MULTIPLIER
    return period, multiplier


def calculate_bollinger_bands(bars: Sequence[PriceBar], period: Optional[int] = None,
                              multiplier: Optional[float] = None,
                              selector: Selector = None) -> List[BollingerPoint]:
    """
    Calculate Bollinger Bands

    The middle band is the rolling mean and the band offset is multiplier
    times the population standard deviation of the selected price.

    Args:
        bars: Time-ordered price bars
        period: Window size
        multiplier: Standard deviation multiplier
        selector: Price extraction rule

    Returns:
        One point per bar from index period-1 onward
    """
    start_time = time.time()
    period, multiplier = _resolve(period, multiplier)

    series = validate_series(bars)
    period = require_period("period", period, len(series))
    multiplier = require_positive("multiplier", multiplier)

    try:
        prices = select_prices(bars_to_frame(series), selector)
        bands = ta.volatility.BollingerBands(close=prices, window=period, window_dev=multiplier)
        upper = bands.bollinger_hband()
        middle = bands.bollinger_mavg()
        lower = bands.bollinger_lband()

        points = []
        for i in range(period - 1, len(series)):
            mean = float(middle.iloc[i])
            upper_band = float(upper.iloc[i])
            lower_band = float(lower.iloc[i])
            band_width = (upper_band - lower_band) / mean if mean != 0 else 0.0
            points.append(BollingerPoint(
                timestamp=series[i].timestamp,
                upper_band=upper_band,
                middle_band=mean,
                lower_band=lower_band,
                band_width=band_width,
            ))
    except Exception as e:
        logger.error(f"Error calculating Bollinger Bands: {str(e)}")
        raise

    logger.debug(
        f"Calculated Bollinger Bands (period={period}, multiplier={multiplier}): "
        f"{len(points)} values in {time.time() - start_time:.4f}s"
    )
    return points


def get_latest_bollinger_bands(bars: Sequence[PriceBar], period: Optional[int] = None,
                               multiplier: Optional[float] = None,
                               selector: Selector = None) -> BollingerPoint:
    return calculate_bollinger_bands(bars, period, multiplier, selector)[-1]


def classify_band_position(price: float, band: BollingerPoint, tolerance: float) -> BandPosition:
    """Classify a price against one band triple"""
    if not 0 < tolerance < 1:
        raise InvalidParameterError(f"tolerance must be between 0 and 1, got {tolerance}")

    if price > band.upper_band:
        return BandPosition.ABOVE_UPPER
    if price < band.lower_band:
        return BandPosition.BELOW_LOWER
    if price >= band.upper_band * (1 - tolerance):
        return BandPosition.TOUCHING_UPPER
    if price <= band.lower_band * (1 + tolerance):
        return BandPosition.TOUCHING_LOWER
    return BandPosition.BETWEEN_BANDS


def get_price_position(bars: Sequence[PriceBar], period: Optional[int] = None,
                       multiplier: Optional[float] = None, selector: Selector = None,
                       tolerance: Optional[float] = None) -> BandPosition:
    """Position of the latest close relative to the latest band, whatever selector built the bands"""
    if tolerance is None:
        tolerance = indicator_config.POSITION_TOLERANCE
    series = validate_series(bars)
    band = get_latest_bollinger_bands(series, period, multiplier, selector)
    return classify_band_position(series[-1].close, band, tolerance)


def detect_squeeze(bars: Sequence[PriceBar], period: Optional[int] = None,
                   multiplier: Optional[float] = None, selector: Selector = None,
                   lookback: Optional[int] = None) -> bool:
    """
    Detect a volatility squeeze

    True when the latest band width is below SQUEEZE_RATIO of the mean width
    over the last `lookback` points.

    Raises:
        InsufficientDataError: If fewer than `lookback` band points exist
    """
    if lookback is None:
        lookback = indicator_config.SQUEEZE_LOOKBACK
    require_period("lookback", lookback)

    bands = calculate_bollinger_bands(bars, period, multiplier, selector)
    if len(bands) < lookback:
        raise InsufficientDataError(
            f"insufficient data for squeeze analysis: need {lookback} band points, have {len(bands)}"
        )

    recent = bands[-lookback:]
    average_width = sum(band.band_width for band in recent) / lookback
    return bands[-1].band_width < average_width * indicator_config.SQUEEZE_RATIO


def detect_bollinger_breakout(bars: Sequence[PriceBar], period: Optional[int] = None,
                              multiplier: Optional[float] = None,
                              selector: Selector = None) -> BreakoutSignal:
    """
    Detect a breakout by comparing the latest position with the one a bar earlier

    Returns insufficient_data instead of raising when the series minus its
    last bar is shorter than the period.
    """
    period, multiplier = _resolve(period, multiplier)
    series = validate_series(bars)
    require_period("period", period)
    require_positive("multiplier", multiplier)

    if len(series) < period + 1:
        logger.warning(
            f"Insufficient data for Bollinger breakout. Need {period + 1} bars, have {len(series)}"
        )
        return BreakoutSignal.INSUFFICIENT_DATA

    tolerance = indicator_config.BREAKOUT_TOLERANCE
    current = get_price_position(series, period, multiplier, selector, tolerance)
    previous = get_price_position(series[:-1], period, multiplier, selector, tolerance)

    return _BREAKOUT_TRANSITIONS.get((previous, current), BreakoutSignal.NO_BREAKOUT)


def derive_bollinger_signal(position: BandPosition, breakout: BreakoutSignal, squeeze: bool) -> BollingerSignal:
    if breakout == BreakoutSignal.BULLISH_BREAKOUT and not squeeze:
        return BollingerSignal.STRONG_BUY
    if breakout == BreakoutSignal.BEARISH_BREAKOUT and not squeeze:
        return BollingerSignal.STRONG_SELL
    if position == BandPosition.BELOW_LOWER and squeeze:
        return BollingerSignal.BUY
    if position == BandPosition.ABOVE_UPPER and squeeze:
        return BollingerSignal.SELL
    if squeeze and position == BandPosition.BETWEEN_BANDS:
        return BollingerSignal.WAIT_FOR_BREAKOUT
    if position == BandPosition.TOUCHING_LOWER:
        return BollingerSignal.BUY_SIGNAL
    if position == BandPosition.TOUCHING_UPPER:
        return BollingerSignal.SELL_SIGNAL
    return BollingerSignal.HOLD


def analyze_bollinger_strategy(bars: Sequence[PriceBar], period: Optional[int] = None,
                               multiplier: Optional[float] = None,
                               selector: Selector = None) -> BollingerStrategy:
    """Complete Bollinger Bands analysis for the latest bar"""
    period, multiplier = _resolve(period, multiplier)
    series = validate_series(bars)

    position = get_price_position(series, period, multiplier, selector, indicator_config.POSITION_TOLERANCE)
    breakout = detect_bollinger_breakout(series, period, multiplier, selector)
    squeeze = detect_squeeze(series, period, multiplier, selector, indicator_config.SQUEEZE_LOOKBACK)
    current = get_latest_bollinger_bands(series, period, multiplier, selector)

    return BollingerStrategy(
        current=current,
        position=position,
        breakout=breakout,
        squeeze=squeeze,
        band_width=current.band_width,
        signal=derive_bollinger_signal(position, breakout, squeeze),
    )


class BollingerBandsCalculator(BaseIndicator):
    """Bollinger Bands calculator bound to one series"""

    def __init__(self, bars: Sequence[PriceBar], period: Optional[int] = None,
                 multiplier: Optional[float] = None, selector: Selector = None):
        period, multiplier = _resolve(period, multiplier)
        super().__init__(bars, period=period, multiplier=multiplier, selector=selector)

    def calculate(self) -> List[BollingerPoint]:
        return calculate_bollinger_bands(
            self.bars, self.params['period'], self.params['multiplier'], self.params['selector']
        )

    def analyze(self) -> BollingerStrategy:
        return analyze_bollinger_strategy(
            self.bars, self.params['period'], self.params['multiplier'], self.params['selector']
        )
