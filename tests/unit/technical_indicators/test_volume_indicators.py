import pytest

from src.technical_indicators.base import InsufficientDataError, InvalidParameterError
from src.technical_indicators.signals import (
    OBVTrend,
    VolumeSignalType,
    VolumeStrategySignal,
    VolumeStrength,
    VolumeTrend,
)
from src.technical_indicators.volume_indicators import (
    VolumeCalculator,
    VolumePoint,
    VolumeSignal,
    analyze_volume_strategy,
    calculate_volume_analysis,
    derive_volume_signal,
    detect_accumulation_distribution,
    detect_volume_breakout,
    linear_regression_slope,
    obv_trend,
)
from tests._fixtures import make_bars


def _spike_bars(spike_volume, last_close=101.0):
    closes = [100.0] * 20 + [last_close]
    volumes = [1000.0] * 20 + [spike_volume]
    return make_bars(closes, volumes=volumes)


def _money_flow_bars(n, volume, at_high=True):
    closes = [100.0] * n
    highs = [100.0] * n if at_high else [101.0] * n
    lows = [99.0] * n if at_high else [100.0] * n
    return make_bars(closes, volumes=[volume] * n, highs=highs, lows=lows)


def _obv_points(values):
    first = make_bars([1.0])[0]
    return [
        VolumePoint(timestamp=first.timestamp, volume=1.0, vma=1.0, obv=v, vpt=0.0, vroc=0.0, adl=0.0)
        for v in values
    ]


@pytest.mark.unit
def test_flat_series_has_no_drift(flat_bars):
    points = calculate_volume_analysis(flat_bars, 20, 5)

    assert len(points) == 10
    for point in points:
        assert point.obv == 1000.0
        assert point.vpt == 1000.0
        assert point.adl == 1000.0
        assert point.vroc == 0.0
        assert point.vma == pytest.approx(1000.0)


@pytest.mark.unit
def test_running_indicators_start_at_larger_period():
    bars = make_bars([10.0, 11.0, 10.0, 10.0, 12.0], volumes=[100.0, 200.0, 300.0, 400.0, 500.0])
    points = calculate_volume_analysis(bars, 2, 1)

    assert [p.timestamp for p in points] == [bar.timestamp for bar in bars[2:]]
    assert [p.obv for p in points] == [-200.0, -200.0, 300.0]
    assert [p.vpt for p in points] == pytest.approx([100 - 300 / 11, 100 - 300 / 11, 200 - 300 / 11])
    assert points[0].vma == pytest.approx(250.0)
    assert points[0].vroc == pytest.approx(50.0)


@pytest.mark.unit
def test_adl_uses_money_flow_multiplier():
    bars = make_bars(
        [10.0, 12.0, 8.0, 10.0],
        volumes=[100.0, 50.0, 20.0, 999.0],
        highs=[11.0, 12.0, 12.0, 10.0],
        lows=[9.0, 8.0, 8.0, 10.0],
    )
    points = calculate_volume_analysis(bars, 1, 1)
    assert [p.adl for p in points] == pytest.approx([150.0, 130.0, 130.0])


@pytest.mark.unit
def test_vroc_is_zero_for_zero_prior_volume():
    bars = make_bars([10.0] * 4, volumes=[0.0, 100.0, 100.0, 50.0])
    points = calculate_volume_analysis(bars, 1, 1)
    assert [p.vroc for p in points] == pytest.approx([0.0, 0.0, -50.0])


@pytest.mark.unit
def test_volume_parameter_errors(flat_bars):
    with pytest.raises(InvalidParameterError):
        calculate_volume_analysis(flat_bars, 0, 5)
    with pytest.raises(InvalidParameterError):
        calculate_volume_analysis(flat_bars, 20, -1)
    with pytest.raises(InsufficientDataError, match="need more than 30 bars"):
        calculate_volume_analysis(flat_bars, 30, 5)


@pytest.mark.unit
def test_volume_engine_is_idempotent(random_walk_bars):
    assert calculate_volume_analysis(random_walk_bars, 20, 5) == calculate_volume_analysis(random_walk_bars, 20, 5)


@pytest.mark.unit
def test_extreme_volume_breakout():
    signal = detect_volume_breakout(_spike_bars(10000.0), 20, 2.0)

    assert signal.type == VolumeSignalType.BREAKOUT
    assert signal.strength == VolumeStrength.EXTREME
    assert signal.confidence == 0.9
    assert signal.trend == VolumeTrend.BULLISH


@pytest.mark.unit
def test_five_fold_spike_is_strong_breakout():
    # The spike lifts its own moving average, so the ratio lands just above 4
    signal = detect_volume_breakout(_spike_bars(5000.0, last_close=99.0), 20, 2.0)

    assert signal.strength == VolumeStrength.STRONG
    assert signal.confidence == 0.8
    assert signal.trend == VolumeTrend.BEARISH


@pytest.mark.unit
def test_breakout_on_unchanged_close_is_neutral():
    signal = detect_volume_breakout(_spike_bars(3000.0, last_close=100.0), 20, 2.0)

    assert signal.type == VolumeSignalType.BREAKOUT
    assert signal.strength == VolumeStrength.MODERATE
    assert signal.trend == VolumeTrend.NEUTRAL


@pytest.mark.unit
def test_normal_volume(flat_bars):
    signal = detect_volume_breakout(flat_bars, 20, 2.0)

    assert signal.type == VolumeSignalType.NORMAL
    assert signal.strength == VolumeStrength.WEAK
    assert signal.trend == VolumeTrend.NEUTRAL
    assert signal.confidence == 0.3


@pytest.mark.unit
def test_breakout_rejects_non_positive_multiplier(flat_bars):
    with pytest.raises(InvalidParameterError):
        detect_volume_breakout(flat_bars, 20, 0.0)


@pytest.mark.unit
def test_linear_regression_slope():
    assert linear_regression_slope([1.0, 3.0, 5.0, 7.0]) == pytest.approx(2.0)
    assert linear_regression_slope([4.0, 4.0, 4.0]) == pytest.approx(0.0)
    with pytest.raises(InsufficientDataError):
        linear_regression_slope([1.0])


@pytest.mark.unit
@pytest.mark.parametrize(
    "volume, at_high, expected_type, expected_strength, confidence",
    [
        (2000.0, True, VolumeSignalType.ACCUMULATION, VolumeStrength.STRONG, 0.8),
        (500.0, True, VolumeSignalType.ACCUMULATION, VolumeStrength.MODERATE, 0.6),
        (2000.0, False, VolumeSignalType.DISTRIBUTION, VolumeStrength.STRONG, 0.8),
        (500.0, False, VolumeSignalType.DISTRIBUTION, VolumeStrength.MODERATE, 0.6),
        (50.0, True, VolumeSignalType.NEUTRAL, VolumeStrength.WEAK, 0.3),
    ],
)
def test_accumulation_distribution(volume, at_high, expected_type, expected_strength, confidence):
    signal = detect_accumulation_distribution(_money_flow_bars(25, volume, at_high))

    assert signal.type == expected_type
    assert signal.strength == expected_strength
    assert signal.confidence == confidence


@pytest.mark.unit
def test_accumulation_insufficient_history_is_not_an_error():
    signal = detect_accumulation_distribution(_money_flow_bars(15, 2000.0), lookback=10)

    assert signal.type == VolumeSignalType.INSUFFICIENT_DATA
    assert signal.strength is None
    assert signal.confidence == 0.0


@pytest.mark.unit
def test_accumulation_lookback_raised_to_minimum():
    signal = detect_accumulation_distribution(_money_flow_bars(15, 2000.0), lookback=2)
    assert signal.type == VolumeSignalType.ACCUMULATION


@pytest.mark.unit
@pytest.mark.parametrize(
    "values, expected",
    [
        ([1.0, 2.0, 3.0], OBVTrend.RISING),
        ([9.0, 3.0, 2.0, 1.0], OBVTrend.FALLING),
        ([1.0, 1.0, 2.0], OBVTrend.SIDEWAYS),
        ([1.0, 2.0], OBVTrend.SIDEWAYS),
    ],
)
def test_obv_trend(values, expected):
    assert obv_trend(_obv_points(values)) == expected


BULLISH_BREAKOUT = VolumeSignal(type=VolumeSignalType.BREAKOUT, trend=VolumeTrend.BULLISH)
BEARISH_BREAKOUT = VolumeSignal(type=VolumeSignalType.BREAKOUT, trend=VolumeTrend.BEARISH)
NORMAL = VolumeSignal(type=VolumeSignalType.NORMAL, trend=VolumeTrend.NEUTRAL)
ACCUMULATION = VolumeSignal(type=VolumeSignalType.ACCUMULATION)
DISTRIBUTION = VolumeSignal(type=VolumeSignalType.DISTRIBUTION)
NEUTRAL = VolumeSignal(type=VolumeSignalType.NEUTRAL)


@pytest.mark.unit
@pytest.mark.parametrize(
    "breakout, accumulation, trend, ratio, expected",
    [
        (BULLISH_BREAKOUT, ACCUMULATION, OBVTrend.SIDEWAYS, 3.0, VolumeStrategySignal.STRONG_BUY),
        (BEARISH_BREAKOUT, DISTRIBUTION, OBVTrend.SIDEWAYS, 3.0, VolumeStrategySignal.STRONG_SELL),
        (BULLISH_BREAKOUT, DISTRIBUTION, OBVTrend.FALLING, 3.0, VolumeStrategySignal.BUY),
        (BEARISH_BREAKOUT, NEUTRAL, OBVTrend.RISING, 3.0, VolumeStrategySignal.SELL),
        (NORMAL, ACCUMULATION, OBVTrend.RISING, 1.0, VolumeStrategySignal.ACCUMULATE),
        (NORMAL, DISTRIBUTION, OBVTrend.FALLING, 1.0, VolumeStrategySignal.DISTRIBUTE),
        (NORMAL, ACCUMULATION, OBVTrend.FALLING, 0.4, VolumeStrategySignal.LOW_VOLUME_ALERT),
        (NORMAL, NEUTRAL, OBVTrend.SIDEWAYS, 0.5, VolumeStrategySignal.HOLD),
    ],
)
def test_derive_volume_signal(breakout, accumulation, trend, ratio, expected):
    assert derive_volume_signal(breakout, accumulation, trend, ratio) == expected


@pytest.mark.unit
def test_analyze_volume_strategy_on_flat_series(flat_bars):
    strategy = analyze_volume_strategy(flat_bars, 20, 5)

    assert strategy.volume_ratio == pytest.approx(1.0)
    assert strategy.breakout_signal.type == VolumeSignalType.NORMAL
    assert strategy.accumulation_signal.type == VolumeSignalType.NEUTRAL
    assert strategy.obv_trend == OBVTrend.SIDEWAYS
    assert strategy.signal == VolumeStrategySignal.HOLD


@pytest.mark.unit
def test_analyze_volume_strategy_flags_low_volume():
    bars = make_bars([100.0] * 30, volumes=[1000.0] * 29 + [100.0])
    strategy = analyze_volume_strategy(bars, 20, 5)

    assert strategy.volume_ratio < 0.5
    assert strategy.signal == VolumeStrategySignal.LOW_VOLUME_ALERT
    assert strategy.model_dump(mode="json")["signal"] == "low_volume_alert"


@pytest.mark.unit
def test_volume_calculator(random_walk_bars):
    calculator = VolumeCalculator(random_walk_bars, vma_period=10, vroc_period=3)

    assert len(calculator.calculate()) == len(random_walk_bars) - 10
    assert calculator.analyze() == analyze_volume_strategy(random_walk_bars, 10, 3)
