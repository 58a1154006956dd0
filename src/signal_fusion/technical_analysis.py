"""
Technical signal fusion

Combines the moving-average, Bollinger Bands and RSI summaries into one
recommendation by counting bullish and bearish votes, with extreme
oscillator readings at the band edges overriding the vote count.
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict

from src.signal_fusion.rules import FusionRule, always, first_match
from src.technical_indicators.base import PriceBar, PriceSelector, validate_series
from src.technical_indicators.config import indicator_config
from src.technical_indicators.momentum_indicators import RSIStrategy, analyze_rsi_strategy
from src.technical_indicators.signals import (
    BEARISH_TAGS,
    BULLISH_TAGS,
    BandPosition,
    BollingerSignal,
    ConfidenceLevel,
    FinalSignal,
    OscillatorCondition,
    RiskLevel,
    RSISignal,
    SMASignal,
)
from src.technical_indicators.trend_indicators import SMAStrategy, analyze_sma_strategy
from src.technical_indicators.volatility_indicators import BollingerStrategy, analyze_bollinger_strategy
from src.utils.logger import get_logger

logger = get_logger(__name__, utility='signal_fusion')


class Recommendation(NamedTuple):
    signal: FinalSignal
    confidence: ConfidenceLevel
    risk: RiskLevel


@dataclass(frozen=True)
class TechnicalVotes:
    """Fusion context: component tags plus their vote counts"""
    sma_signal: SMASignal
    bollinger_signal: BollingerSignal
    band_position: BandPosition
    rsi_signal: RSISignal
    rsi_condition: OscillatorCondition
    bullish: int
    bearish: int


TECHNICAL_RULES = [
    FusionRule(
        "extreme_high_above_upper",
        lambda v: v.rsi_condition == OscillatorCondition.EXTREME_HIGH and v.band_position == BandPosition.ABOVE_UPPER,
        Recommendation(FinalSignal.STRONG_SELL, ConfidenceLevel.HIGH, RiskLevel.HIGH),
    ),
    FusionRule(
        "extreme_low_below_lower",
        lambda v: v.rsi_condition == OscillatorCondition.EXTREME_LOW and v.band_position == BandPosition.BELOW_LOWER,
        Recommendation(FinalSignal.STRONG_BUY, ConfidenceLevel.HIGH, RiskLevel.LOW),
    ),
    FusionRule(
        "bullish_consensus",
        lambda v: v.bullish >= 3,
        Recommendation(FinalSignal.STRONG_BUY, ConfidenceLevel.HIGH, RiskLevel.LOW),
    ),
    FusionRule(
        "bullish_majority",
        lambda v: v.bullish >= 2,
        Recommendation(FinalSignal.BUY, ConfidenceLevel.MEDIUM, RiskLevel.LOW),
    ),
    FusionRule(
        "bearish_consensus",
        lambda v: v.bearish >= 3,
        Recommendation(FinalSignal.STRONG_SELL, ConfidenceLevel.HIGH, RiskLevel.HIGH),
    ),
    FusionRule(
        "bearish_majority",
        lambda v: v.bearish >= 2,
        Recommendation(FinalSignal.SELL, ConfidenceLevel.MEDIUM, RiskLevel.MEDIUM),
    ),
    FusionRule(
        "squeeze_wait",
        lambda v: v.bollinger_signal == BollingerSignal.WAIT_FOR_BREAKOUT,
        Recommendation(FinalSignal.WAIT, ConfidenceLevel.HIGH, RiskLevel.LOW),
    ),
    FusionRule(
        "default_hold",
        always,
        Recommendation(FinalSignal.HOLD, ConfidenceLevel.LOW, RiskLevel.MEDIUM),
    ),
]


class TechnicalAnalysis(BaseModel):
    """Technical-only recommendation with the component summaries behind it"""

    sma_signal: SMASignal
    bollinger_signal: BollingerSignal
    rsi_signal: RSISignal
    band_position: BandPosition
    rsi_condition: OscillatorCondition
    bullish_votes: int
    bearish_votes: int
    final_signal: FinalSignal
    confidence: ConfidenceLevel
    risk_level: RiskLevel
    rule: str
    sma: Optional[SMAStrategy] = None
    bollinger: Optional[BollingerStrategy] = None
    rsi: Optional[RSIStrategy] = None

    model_config = ConfigDict(frozen=True)


def count_votes(tags: Sequence[str]):
    """Count bullish and bearish tags; other tags abstain"""
    bullish = sum(1 for tag in tags if tag in BULLISH_TAGS)
    bearish = sum(1 for tag in tags if tag in BEARISH_TAGS)
    return bullish, bearish


def fuse_technical_signals(sma_signal: SMASignal, bollinger_signal: BollingerSignal,
                           band_position: BandPosition, rsi_signal: RSISignal,
                           rsi_condition: OscillatorCondition) -> TechnicalAnalysis:
    """
    Fuse component tags into a technical recommendation

    Args:
        sma_signal: Moving-average trend tag
        bollinger_signal: Band strategy tag
        band_position: Latest close relative to the bands
        rsi_signal: RSI strategy tag
        rsi_condition: Latest RSI condition

    Returns:
        TechnicalAnalysis carrying the matched rule name
    """
    bullish, bearish = count_votes([sma_signal.value, bollinger_signal.value, rsi_signal.value])
    votes = TechnicalVotes(
        sma_signal=sma_signal,
        bollinger_signal=bollinger_signal,
        band_position=band_position,
        rsi_signal=rsi_signal,
        rsi_condition=rsi_condition,
        bullish=bullish,
        bearish=bearish,
    )
    rule = first_match(TECHNICAL_RULES, votes)

    return TechnicalAnalysis(
        sma_signal=sma_signal,
        bollinger_signal=bollinger_signal,
        rsi_signal=rsi_signal,
        band_position=band_position,
        rsi_condition=rsi_condition,
        bullish_votes=bullish,
        bearish_votes=bearish,
        final_signal=rule.outcome.signal,
        confidence=rule.outcome.confidence,
        risk_level=rule.outcome.risk,
        rule=rule.name,
    )


def analyze_technical(bars: Sequence[PriceBar], sma_period: Optional[int] = None,
                      bb_period: Optional[int] = None, rsi_period: Optional[int] = None,
                      bb_multiplier: Optional[float] = None,
                      selector: Union[PriceSelector, str, None] = None) -> TechnicalAnalysis:
    """
    Run the moving-average, band and RSI engines and fuse their signals

    The first engine error propagates unchanged.
    """
    if sma_period is None:
        sma_period = indicator_config.SMA_PERIOD

    series = validate_series(bars)
    sma = analyze_sma_strategy(series, sma_period, selector)
    bollinger = analyze_bollinger_strategy(series, bb_period, bb_multiplier, selector)
    rsi = analyze_rsi_strategy(series, rsi_period, selector)

    fused = fuse_technical_signals(sma.signal, bollinger.signal, bollinger.position, rsi.signal, rsi.condition)
    result = fused.model_copy(update={'sma': sma, 'bollinger': bollinger, 'rsi': rsi})

    logger.info(
        f"Technical analysis: {result.final_signal.value} (confidence={result.confidence.value}, "
        f"risk={result.risk_level.value}, rule={result.rule}, "
        f"votes={result.bullish_votes}/{result.bearish_votes})"
    )
    return result
