"""
Signal and condition tags produced by the indicator engines and fusion layers

Every category is a closed string enumeration so results serialize as plain
string tags while invalid tags cannot be constructed.
"""

from enum import Enum


class CrossoverSignal(str, Enum):
    BULLISH_CROSSOVER = "bullish_crossover"
    BEARISH_CROSSOVER = "bearish_crossover"
    NO_SIGNAL = "no_signal"


class SMASignal(str, Enum):
    STRONG_BULLISH = "strong_bullish"
    BULLISH = "bullish"
    BEARISH = "bearish"
    STRONG_BEARISH = "strong_bearish"
    NEUTRAL = "neutral"


class BandPosition(str, Enum):
    ABOVE_UPPER = "above_upper"
    BETWEEN_BANDS = "between_bands"
    BELOW_LOWER = "below_lower"
    TOUCHING_UPPER = "touching_upper"
    TOUCHING_LOWER = "touching_lower"


class BreakoutSignal(str, Enum):
    BULLISH_BREAKOUT = "bullish_breakout"
    BEARISH_BREAKOUT = "bearish_breakout"
    NO_BREAKOUT = "no_breakout"
    INSUFFICIENT_DATA = "insufficient_data"


class BollingerSignal(str, Enum):
    STRONG_BUY = "strong_buy"
    STRONG_SELL = "strong_sell"
    BUY = "buy"
    SELL = "sell"
    WAIT_FOR_BREAKOUT = "wait_for_breakout"
    BUY_SIGNAL = "buy_signal"
    SELL_SIGNAL = "sell_signal"
    HOLD = "hold"


class OscillatorCondition(str, Enum):
    EXTREME_HIGH = "extreme_high"
    OVERBOUGHT = "overbought"
    NEUTRAL = "neutral"
    OVERSOLD = "oversold"
    EXTREME_LOW = "extreme_low"


class DivergenceType(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NONE = "none"


class DivergenceStrength(str, Enum):
    REGULAR = "regular"
    NONE = "none"
    INSUFFICIENT_DATA = "insufficient_data"


class MomentumTrend(str, Enum):
    STRENGTHENING = "strengthening"
    WEAKENING = "weakening"
    NEUTRAL = "neutral"


class RSISignal(str, Enum):
    STRONG_BUY = "strong_buy"
    STRONG_SELL = "strong_sell"
    BUY = "buy"
    SELL = "sell"
    BULLISH = "bullish"
    BEARISH = "bearish"
    HOLD = "hold"


class VolumeSignalType(str, Enum):
    BREAKOUT = "breakout"
    NORMAL = "normal"
    ACCUMULATION = "accumulation"
    DISTRIBUTION = "distribution"
    NEUTRAL = "neutral"
    INSUFFICIENT_DATA = "insufficient_data"


class VolumeStrength(str, Enum):
    EXTREME = "extreme"
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


class VolumeTrend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class OBVTrend(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    SIDEWAYS = "sideways"


class VolumeStrategySignal(str, Enum):
    STRONG_BUY = "strong_buy"
    STRONG_SELL = "strong_sell"
    BUY = "buy"
    SELL = "sell"
    ACCUMULATE = "accumulate"
    DISTRIBUTE = "distribute"
    LOW_VOLUME_ALERT = "low_volume_alert"
    HOLD = "hold"


class FinalSignal(str, Enum):
    STRONG_BUY = "STRONG BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    WAIT = "WAIT"
    SELL = "SELL"
    STRONG_SELL = "STRONG SELL"
    SUSPICIOUS = "SUSPICIOUS"


class ConfidenceLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RugPullRisk(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


# Tags counted as votes by the technical fusion tier
BULLISH_TAGS = frozenset({"strong_buy", "buy", "bullish", "strong_bullish"})
BEARISH_TAGS = frozenset({"strong_sell", "sell", "bearish", "strong_bearish"})
