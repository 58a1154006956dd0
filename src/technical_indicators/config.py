"""
Configuration settings for technical indicator and signal fusion calculations
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv
load_dotenv()


@dataclass
class IndicatorConfig:
    """Configuration class for indicator windows, thresholds and fusion constants"""

    # Window parameters (overridable from the environment)
    SMA_PERIOD: int = 20
    BB_PERIOD: int = 20
    BB_MULTIPLIER: float = 2.0
    RSI_PERIOD: int = 14
    VMA_PERIOD: int = 20
    VROC_PERIOD: int = 5
    PRICE_SELECTOR: str = "close"

    # Bollinger Bands analysis
    POSITION_TOLERANCE: float = 0.02
    BREAKOUT_TOLERANCE: float = 0.02
    SQUEEZE_LOOKBACK: int = 10
    SQUEEZE_RATIO: float = 0.7  # width below 70% of the lookback mean

    # RSI analysis
    RSI_EXTREME_HIGH: float = 80.0
    RSI_OVERBOUGHT: float = 70.0
    RSI_OVERSOLD: float = 30.0
    RSI_EXTREME_LOW: float = 20.0
    RSI_MIDLINE: float = 50.0
    RSI_ZERO_LOSS_RS: float = 100.0
    DIVERGENCE_LOOKBACK: int = 10
    MIN_DIVERGENCE_LOOKBACK: int = 5

    # Volume analysis
    VOLUME_BREAKOUT_MULTIPLIER: float = 2.0
    ACCUMULATION_LOOKBACK: int = 10
    MIN_ACCUMULATION_LOOKBACK: int = 5
    ACCUMULATION_VMA_PERIOD: int = 10
    ACCUMULATION_VROC_PERIOD: int = 5
    STRONG_SLOPE: float = 1000.0
    MODERATE_SLOPE: float = 100.0
    LOW_VOLUME_RATIO: float = 0.5

    # Volume-confirmed fusion
    RUG_PULL_MEDIUM_RATIO: float = 2.0
    RUG_PULL_EXTREME_RATIO: float = 3.0
    WAIT_CONFIRM_RATIO: float = 1.0

    @classmethod
    def from_env(cls) -> 'IndicatorConfig':
        """Create configuration from environment variables"""
        return cls(
            SMA_PERIOD=int(os.getenv("SMA_PERIOD", str(cls.SMA_PERIOD))),
            BB_PERIOD=int(os.getenv("BB_PERIOD", str(cls.BB_PERIOD))),
            BB_MULTIPLIER=float(os.getenv("BB_MULTIPLIER", str(cls.BB_MULTIPLIER))),
            RSI_PERIOD=int(os.getenv("RSI_PERIOD", str(cls.RSI_PERIOD))),
            VMA_PERIOD=int(os.getenv("VMA_PERIOD", str(cls.VMA_PERIOD))),
            VROC_PERIOD=int(os.getenv("VROC_PERIOD", str(cls.VROC_PERIOD))),
            PRICE_SELECTOR=os.getenv("PRICE_SELECTOR", cls.PRICE_SELECTOR).strip().lower(),
        )


# Global configuration instance
indicator_config = IndicatorConfig.from_env()
