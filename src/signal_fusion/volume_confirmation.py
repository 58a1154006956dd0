"""
Volume-confirmed signal fusion

Checks the technical recommendation against the volume strategy, grades the
rug-pull risk and adjusts signal and confidence depending on whether volume
confirms the technical call.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from src.signal_fusion.rules import FusionRule, always, first_match
from src.signal_fusion.technical_analysis import TechnicalAnalysis, analyze_technical
from src.technical_indicators.base import PriceBar, PriceSelector, validate_series
from src.technical_indicators.config import indicator_config
from src.technical_indicators.signals import (
    ConfidenceLevel,
    FinalSignal,
    RiskLevel,
    RSISignal,
    RugPullRisk,
    VolumeSignalType,
    VolumeStrategySignal,
)
from src.technical_indicators.volume_indicators import VolumeStrategy, analyze_volume_strategy
from src.utils.logger import get_logger

logger = get_logger(__name__, utility='signal_fusion')

BUY_FAMILY = frozenset({FinalSignal.STRONG_BUY, FinalSignal.BUY})
SELL_FAMILY = frozenset({FinalSignal.STRONG_SELL, FinalSignal.SELL})
VOLUME_BUY_FAMILY = frozenset({
    VolumeStrategySignal.STRONG_BUY, VolumeStrategySignal.BUY, VolumeStrategySignal.ACCUMULATE,
})
VOLUME_SELL_FAMILY = frozenset({
    VolumeStrategySignal.STRONG_SELL, VolumeStrategySignal.SELL, VolumeStrategySignal.DISTRIBUTE,
})

_RAISED = {
    ConfidenceLevel.LOW: ConfidenceLevel.MEDIUM,
    ConfidenceLevel.MEDIUM: ConfidenceLevel.HIGH,
    ConfidenceLevel.HIGH: ConfidenceLevel.HIGH,
}
_DOWNGRADED = {
    FinalSignal.STRONG_BUY: FinalSignal.BUY,
    FinalSignal.STRONG_SELL: FinalSignal.SELL,
}


@dataclass(frozen=True)
class VolumeContext:
    technical_signal: FinalSignal
    rsi_signal: RSISignal
    volume_signal: VolumeStrategySignal
    accumulation_type: VolumeSignalType
    volume_ratio: float


CONFIRMATION_RULES = [
    FusionRule(
        "buy_confirmed",
        lambda c: c.technical_signal in BUY_FAMILY and c.volume_signal in VOLUME_BUY_FAMILY,
        True,
    ),
    FusionRule(
        "sell_confirmed",
        lambda c: c.technical_signal in SELL_FAMILY and c.volume_signal in VOLUME_SELL_FAMILY,
        True,
    ),
    FusionRule(
        "quiet_wait_confirmed",
        lambda c: c.technical_signal == FinalSignal.WAIT and c.volume_ratio < indicator_config.WAIT_CONFIRM_RATIO,
        True,
    ),
    FusionRule("unconfirmed", always, False),
]

RUG_PULL_RULES = [
    FusionRule(
        "extreme",
        lambda c: (
            c.volume_signal == VolumeStrategySignal.STRONG_SELL
            and c.accumulation_type == VolumeSignalType.DISTRIBUTION
            and c.rsi_signal == RSISignal.STRONG_SELL
            and c.volume_ratio > indicator_config.RUG_PULL_EXTREME_RATIO
        ),
        RugPullRisk.EXTREME,
    ),
    FusionRule(
        "high",
        lambda c: c.accumulation_type == VolumeSignalType.DISTRIBUTION and c.technical_signal == FinalSignal.STRONG_SELL,
        RugPullRisk.HIGH,
    ),
    FusionRule(
        "medium",
        lambda c: (
            c.volume_signal == VolumeStrategySignal.DISTRIBUTE
            or (c.volume_ratio > indicator_config.RUG_PULL_MEDIUM_RATIO and c.technical_signal == FinalSignal.SELL)
        ),
        RugPullRisk.MEDIUM,
    ),
    FusionRule("low", always, RugPullRisk.LOW),
]


class VolumeConfirmedAnalysis(BaseModel):
    """Final recommendation after volume confirmation"""

    technical: TechnicalAnalysis
    volume_signal: VolumeStrategySignal
    accumulation_type: VolumeSignalType
    volume_ratio: float
    final_signal: FinalSignal
    confidence: ConfidenceLevel
    risk_level: RiskLevel
    rug_pull_risk: RugPullRisk
    volume_confirm: bool
    volume: Optional[VolumeStrategy] = None

    model_config = ConfigDict(frozen=True)


def adjust_for_confirmation(signal: FinalSignal, confidence: ConfidenceLevel,
                            confirmed: bool) -> Tuple[FinalSignal, ConfidenceLevel]:
    """
    Move confidence one notch toward the volume evidence

    Without confirmation a HIGH call drops to MEDIUM and loses its STRONG
    prefix, and a MEDIUM call collapses to HOLD.
    """
    if confirmed:
        return signal, _RAISED[confidence]
    if confidence == ConfidenceLevel.HIGH:
        return _DOWNGRADED.get(signal, signal), ConfidenceLevel.MEDIUM
    if confidence == ConfidenceLevel.MEDIUM:
        return FinalSignal.HOLD, ConfidenceLevel.LOW
    return signal, confidence


def fuse_volume_confirmation(technical: TechnicalAnalysis, volume_signal: VolumeStrategySignal,
                             accumulation_type: VolumeSignalType,
                             volume_ratio: float) -> VolumeConfirmedAnalysis:
    """
    Combine a technical recommendation with volume evidence

    Args:
        technical: Technical-only recommendation
        volume_signal: Volume strategy tag
        accumulation_type: Accumulation/distribution classification
        volume_ratio: Latest volume over its moving average

    Returns:
        VolumeConfirmedAnalysis; a low-volume alert always yields SUSPICIOUS
    """
    context = VolumeContext(
        technical_signal=technical.final_signal,
        rsi_signal=technical.rsi_signal,
        volume_signal=volume_signal,
        accumulation_type=accumulation_type,
        volume_ratio=volume_ratio,
    )
    confirmed = first_match(CONFIRMATION_RULES, context).outcome
    rug_pull_risk = first_match(RUG_PULL_RULES, context).outcome

    final_signal, confidence = adjust_for_confirmation(technical.final_signal, technical.confidence, confirmed)
    risk_level = technical.risk_level

    if volume_signal == VolumeStrategySignal.LOW_VOLUME_ALERT:
        final_signal, confidence, risk_level = FinalSignal.SUSPICIOUS, ConfidenceLevel.LOW, RiskLevel.HIGH

    return VolumeConfirmedAnalysis(
        technical=technical,
        volume_signal=volume_signal,
        accumulation_type=accumulation_type,
        volume_ratio=volume_ratio,
        final_signal=final_signal,
        confidence=confidence,
        risk_level=risk_level,
        rug_pull_risk=rug_pull_risk,
        volume_confirm=confirmed,
    )


def analyze_with_volume(bars: Sequence[PriceBar], sma_period: Optional[int] = None,
                        bb_period: Optional[int] = None, rsi_period: Optional[int] = None,
                        vma_period: Optional[int] = None, bb_multiplier: Optional[float] = None,
                        vroc_period: Optional[int] = None,
                        selector: Union[PriceSelector, str, None] = None) -> VolumeConfirmedAnalysis:
    """
    Technical fusion confirmed by the volume strategy

    Both tiers are computed independently from the same series; the first
    engine error propagates unchanged.
    """
    series = validate_series(bars)
    technical = analyze_technical(series, sma_period, bb_period, rsi_period, bb_multiplier, selector)
    volume = analyze_volume_strategy(series, vma_period, vroc_period)

    fused = fuse_volume_confirmation(
        technical, volume.signal, volume.accumulation_signal.type, volume.volume_ratio
    )
    result = fused.model_copy(update={'volume': volume})

    logger.info(
        f"Volume-confirmed analysis: {result.final_signal.value} (confidence={result.confidence.value}, "
        f"risk={result.risk_level.value}, rug_pull={result.rug_pull_risk.value}, "
        f"confirmed={result.volume_confirm})"
    )
    return result
