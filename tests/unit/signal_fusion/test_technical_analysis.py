import pytest

from src.signal_fusion.technical_analysis import (
    analyze_technical,
    count_votes,
    fuse_technical_signals,
)
from src.technical_indicators.base import InsufficientDataError, InvalidParameterError
from src.technical_indicators.signals import (
    BandPosition,
    BollingerSignal,
    ConfidenceLevel,
    FinalSignal,
    OscillatorCondition,
    RiskLevel,
    RSISignal,
    SMASignal,
)
from tests._fixtures import make_bars

BETWEEN = BandPosition.BETWEEN_BANDS
NEUTRAL = OscillatorCondition.NEUTRAL


@pytest.mark.unit
def test_count_votes_ignores_abstaining_tags():
    assert count_votes(["strong_bullish", "buy_signal", "bullish"]) == (2, 0)
    assert count_votes(["bearish", "strong_sell", "hold"]) == (0, 2)
    assert count_votes(["wait_for_breakout", "sell_signal", "neutral"]) == (0, 0)


@pytest.mark.unit
def test_extreme_high_override_beats_split_vote():
    result = fuse_technical_signals(
        SMASignal.BULLISH, BollingerSignal.HOLD, BandPosition.ABOVE_UPPER,
        RSISignal.SELL, OscillatorCondition.EXTREME_HIGH,
    )

    assert (result.bullish_votes, result.bearish_votes) == (1, 1)
    assert result.final_signal == FinalSignal.STRONG_SELL
    assert result.confidence == ConfidenceLevel.HIGH
    assert result.risk_level == RiskLevel.HIGH
    assert result.rule == "extreme_high_above_upper"


@pytest.mark.unit
def test_extreme_high_override_beats_bullish_consensus():
    result = fuse_technical_signals(
        SMASignal.STRONG_BULLISH, BollingerSignal.STRONG_BUY, BandPosition.ABOVE_UPPER,
        RSISignal.BULLISH, OscillatorCondition.EXTREME_HIGH,
    )
    assert result.bullish_votes == 3
    assert result.final_signal == FinalSignal.STRONG_SELL


@pytest.mark.unit
def test_extreme_low_override():
    result = fuse_technical_signals(
        SMASignal.BEARISH, BollingerSignal.HOLD, BandPosition.BELOW_LOWER,
        RSISignal.HOLD, OscillatorCondition.EXTREME_LOW,
    )
    assert (result.final_signal, result.confidence, result.risk_level) == (
        FinalSignal.STRONG_BUY, ConfidenceLevel.HIGH, RiskLevel.LOW,
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "sma, bollinger, rsi, expected",
    [
        (SMASignal.STRONG_BULLISH, BollingerSignal.STRONG_BUY, RSISignal.BULLISH,
         (FinalSignal.STRONG_BUY, ConfidenceLevel.HIGH, RiskLevel.LOW)),
        (SMASignal.BULLISH, BollingerSignal.BUY, RSISignal.HOLD,
         (FinalSignal.BUY, ConfidenceLevel.MEDIUM, RiskLevel.LOW)),
        (SMASignal.STRONG_BEARISH, BollingerSignal.SELL, RSISignal.STRONG_SELL,
         (FinalSignal.STRONG_SELL, ConfidenceLevel.HIGH, RiskLevel.HIGH)),
        (SMASignal.BEARISH, BollingerSignal.HOLD, RSISignal.BEARISH,
         (FinalSignal.SELL, ConfidenceLevel.MEDIUM, RiskLevel.MEDIUM)),
        (SMASignal.BULLISH, BollingerSignal.WAIT_FOR_BREAKOUT, RSISignal.HOLD,
         (FinalSignal.WAIT, ConfidenceLevel.HIGH, RiskLevel.LOW)),
        (SMASignal.BULLISH, BollingerSignal.WAIT_FOR_BREAKOUT, RSISignal.BUY,
         (FinalSignal.BUY, ConfidenceLevel.MEDIUM, RiskLevel.LOW)),
        (SMASignal.BULLISH, BollingerSignal.HOLD, RSISignal.BEARISH,
         (FinalSignal.HOLD, ConfidenceLevel.LOW, RiskLevel.MEDIUM)),
        (SMASignal.BULLISH, BollingerSignal.BUY_SIGNAL, RSISignal.HOLD,
         (FinalSignal.HOLD, ConfidenceLevel.LOW, RiskLevel.MEDIUM)),
    ],
)
def test_vote_rules(sma, bollinger, rsi, expected):
    result = fuse_technical_signals(sma, bollinger, BETWEEN, rsi, NEUTRAL)
    assert (result.final_signal, result.confidence, result.risk_level) == expected


@pytest.mark.unit
def test_analyze_technical_matches_component_fusion(random_walk_bars):
    result = analyze_technical(random_walk_bars, 20, 20, 14, 2.0)

    expected = fuse_technical_signals(
        result.sma.signal, result.bollinger.signal, result.bollinger.position,
        result.rsi.signal, result.rsi.condition,
    )
    assert result.final_signal == expected.final_signal
    assert result.confidence == expected.confidence
    assert result.risk_level == expected.risk_level
    assert result.rule == expected.rule

    record = result.model_dump(mode="json")
    assert record["final_signal"] == result.final_signal.value
    assert record["sma"]["signal"] == result.sma_signal.value


@pytest.mark.unit
def test_analyze_technical_logs_result(mocker, random_walk_bars):
    logger = mocker.patch("src.signal_fusion.technical_analysis.logger")
    analyze_technical(random_walk_bars)
    logger.info.assert_called_once()


@pytest.mark.unit
def test_analyze_technical_propagates_engine_errors(mocker, random_walk_bars):
    with pytest.raises(InsufficientDataError):
        analyze_technical(make_bars([100.0 + i for i in range(15)]))

    error = InvalidParameterError("period must be greater than 0, got 0")
    mocker.patch("src.signal_fusion.technical_analysis.analyze_rsi_strategy", side_effect=error)
    with pytest.raises(InvalidParameterError) as exc_info:
        analyze_technical(random_walk_bars)
    assert exc_info.value is error
