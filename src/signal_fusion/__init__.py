"""
Signal Fusion Package

Combines the strategy summaries of the indicator engines into layered
recommendations:
- Technical tier: SMA, Bollinger Bands and RSI votes with override rules
- Volume tier: technical recommendation confirmed or weakened by volume, plus rug-pull risk

Usage:
    from src.signal_fusion import analyze_with_volume

    analysis = analyze_with_volume(bars)
    print(analysis.final_signal.value, analysis.confidence.value)
"""

from src.signal_fusion.rules import FusionRule, first_match
from src.signal_fusion.technical_analysis import (
    TechnicalAnalysis,
    TECHNICAL_RULES,
    fuse_technical_signals,
    analyze_technical
)
from src.signal_fusion.volume_confirmation import (
    VolumeConfirmedAnalysis,
    CONFIRMATION_RULES,
    RUG_PULL_RULES,
    fuse_volume_confirmation,
    analyze_with_volume
)

__all__ = [
    'FusionRule',
    'first_match',
    'TechnicalAnalysis',
    'TECHNICAL_RULES',
    'fuse_technical_signals',
    'analyze_technical',
    'VolumeConfirmedAnalysis',
    'CONFIRMATION_RULES',
    'RUG_PULL_RULES',
    'fuse_volume_confirmation',
    'analyze_with_volume',
]
