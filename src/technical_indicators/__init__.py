"""
Technical Indicators Package

This package computes rolling-window technical indicators over ordered
price-bar series and the pattern detectors built on top of them.

Indicator Categories:
- Trend: SMA, fast/slow crossover
- Volatility: Bollinger Bands, squeeze, breakout
- Momentum: RSI, divergence, momentum trend
- Volume: VMA, OBV, VPT, VROC, A/D Line, volume breakout, accumulation/distribution

Usage:
    from src.technical_indicators import bars_from_frame, analyze_rsi_strategy

    bars = bars_from_frame(df)
    summary = analyze_rsi_strategy(bars, period=14)
"""

from src.technical_indicators.base import (
    BaseIndicator,
    EmptyInputError,
    IndicatorError,
    IndicatorPoint,
    InsufficientDataError,
    InvalidParameterError,
    MalformedBarError,
    PriceBar,
    PriceSelector,
    bars_from_frame,
    bars_to_frame,
    extract_price,
    points_to_frame,
    validate_series,
)
from src.technical_indicators.config import IndicatorConfig, indicator_config
from src.technical_indicators.trend_indicators import (
    calculate_sma,
    calculate_multiple_sma,
    get_latest_sma,
    is_price_above_sma,
    detect_crossover,
    analyze_sma_strategy,
    SMACalculator
)
from src.technical_indicators.volatility_indicators import (
    calculate_bollinger_bands,
    get_latest_bollinger_bands,
    get_price_position,
    detect_squeeze,
    detect_bollinger_breakout,
    analyze_bollinger_strategy,
    BollingerBandsCalculator
)
from src.technical_indicators.momentum_indicators import (
    calculate_rsi,
    get_latest_rsi,
    detect_rsi_divergence,
    analyze_rsi_strategy,
    RSICalculator
)
from src.technical_indicators.volume_indicators import (
    calculate_volume_analysis,
    get_latest_volume_analysis,
    detect_volume_breakout,
    detect_accumulation_distribution,
    analyze_volume_strategy,
    VolumeCalculator
)

__all__ = [
    # Base classes and errors
    'BaseIndicator',
    'IndicatorPoint',
    'PriceBar',
    'PriceSelector',
    'IndicatorError',
    'EmptyInputError',
    'InvalidParameterError',
    'InsufficientDataError',
    'MalformedBarError',
    'bars_from_frame',
    'bars_to_frame',
    'extract_price',
    'points_to_frame',
    'validate_series',

    # Configuration
    'IndicatorConfig',
    'indicator_config',

    # Trend indicators
    'calculate_sma',
    'calculate_multiple_sma',
    'get_latest_sma',
    'is_price_above_sma',
    'detect_crossover',
    'analyze_sma_strategy',
    'SMACalculator',

    # Volatility indicators
    'calculate_bollinger_bands',
    'get_latest_bollinger_bands',
    'get_price_position',
    'detect_squeeze',
    'detect_bollinger_breakout',
    'analyze_bollinger_strategy',
    'BollingerBandsCalculator',

    # Momentum indicators
    'calculate_rsi',
    'get_latest_rsi',
    'detect_rsi_divergence',
    'analyze_rsi_strategy',
    'RSICalculator',

    # Volume indicators
    'calculate_volume_analysis',
    'get_latest_volume_analysis',
    'detect_volume_breakout',
    'detect_accumulation_distribution',
    'analyze_volume_strategy',
    'VolumeCalculator',
]
