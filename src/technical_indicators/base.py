"""
Base classes for technical indicator calculations

This module provides the price bar model, price extraction rules, the error
types shared by every engine and the calculator interface all technical
indicator implementations follow.
"""

import math
import pandas as pd
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_serializer, field_validator

from src.utils.logger import get_logger
from src.technical_indicators.config import indicator_config

logger = get_logger(__name__, utility='technical_indicators')

REQUIRED_COLUMNS = ['open', 'high', 'low', 'close', 'volume']


class IndicatorError(ValueError):
    """Base error for all indicator and fusion failures"""


class EmptyInputError(IndicatorError):
    """Raised when a calculation receives an empty price series"""


class InvalidParameterError(IndicatorError):
    """Raised for non-positive periods or multipliers and inconsistent period pairs"""


class InsufficientDataError(IndicatorError):
    """Raised when a window exceeds the available history"""


class MalformedBarError(IndicatorError):
    """Raised when raw OHLCV input cannot be turned into an ordered bar series"""


class PriceSelector(str, Enum):
    """Which price of a bar feeds a calculation"""
    OPEN = "open"
    CLOSE = "close"
    HIGH = "high"
    LOW = "low"
    TYPICAL = "typical"    # (High + Low + Close) / 3
    WEIGHTED = "weighted"  # (High + Low + 2*Close) / 4


# Formulas work on scalars and on pandas Series alike
_PRICE_FORMULAS = {
    PriceSelector.OPEN: lambda op, hi, lo, cl: op,
    PriceSelector.CLOSE: lambda op, hi, lo, cl: cl,
    PriceSelector.HIGH: lambda op, hi, lo, cl: hi,
    PriceSelector.LOW: lambda op, hi, lo, cl: lo,
    PriceSelector.TYPICAL: lambda op, hi, lo, cl: (hi + lo + cl) / 3,
    PriceSelector.WEIGHTED: lambda op, hi, lo, cl: (hi + lo + 2 * cl) / 4,
}


def resolve_selector(selector: Union[PriceSelector, str, None]) -> PriceSelector:
    """Map a selector value to a PriceSelector; unknown values fall back to close"""
    if selector is None:
        selector = indicator_config.PRICE_SELECTOR
    try:
        return PriceSelector(selector)
    except ValueError:
        logger.debug(f"Unknown price selector {selector!r}, using close")
        return PriceSelector.CLOSE


class PriceBar(BaseModel):
    """
    Immutable OHLCV bar

    All numeric fields must be finite. Ordering across a series is checked by
    validate_series, not by the bar itself.
    """

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    model_config = ConfigDict(frozen=True)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, v, _info):
        return v.isoformat()

    @field_validator('open', 'high', 'low', 'close', 'volume')
    @classmethod
    def validate_finite(cls, v, info):
        if not math.isfinite(v):
            raise ValueError(f'{info.field_name} must be finite, got {v}')
        return v

    def price(self, selector: Union[PriceSelector, str, None] = PriceSelector.CLOSE) -> float:
        """Extract one price from the bar according to the selector"""
        return extract_price(self, selector)


def extract_price(bar: PriceBar, selector: Union[PriceSelector, str, None] = PriceSelector.CLOSE) -> float:
    formula = _PRICE_FORMULAS[resolve_selector(selector)]
    return formula(bar.open, bar.high, bar.low, bar.close)


def select_prices(frame: pd.DataFrame, selector: Union[PriceSelector, str, None] = PriceSelector.CLOSE) -> pd.Series:
    """Vectorized extract_price over an OHLCV frame built by bars_to_frame"""
    formula = _PRICE_FORMULAS[resolve_selector(selector)]
    return formula(frame['open'], frame['high'], frame['low'], frame['close'])


class IndicatorPoint(BaseModel):
    """One emitted indicator value, timestamped at the bar that produced it"""

    timestamp: datetime

    model_config = ConfigDict(frozen=True)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, v, _info):
        return v.isoformat()


def validate_series(bars: Sequence[PriceBar]) -> Tuple[PriceBar, ...]:
    """
    Validate an input series and freeze it into a tuple

    Args:
        bars: Time-ordered price bars

    Returns:
        The bars as a tuple

    Raises:
        EmptyInputError: If the series is empty
        MalformedBarError: If an element is not a PriceBar or timestamps decrease
    """
    if bars is None or len(bars) == 0:
        raise EmptyInputError("price series is empty")

    series = tuple(bars)
    previous = None
    for i, bar in enumerate(series):
        if not isinstance(bar, PriceBar):
            raise MalformedBarError(f"element {i} is not a PriceBar: {type(bar).__name__}")
        if previous is not None:
            try:
                out_of_order = bar.timestamp < previous.timestamp
            except TypeError as e:
                raise MalformedBarError(f"timestamp at index {i} is not comparable: {e}") from e
            if out_of_order:
                raise MalformedBarError(
                    f"timestamps must be non-decreasing: index {i} ({bar.timestamp}) "
                    f"precedes index {i - 1} ({previous.timestamp})"
                )
        previous = bar
    return series


def require_period(name: str, period: int, series_length: Optional[int] = None) -> int:
    """Check that a window is positive and, when a length is given, fits the series"""
    if period is None or period <= 0:
        raise InvalidParameterError(f"{name} must be greater than 0, got {period}")
    if series_length is not None and period > series_length:
        raise InsufficientDataError(
            f"{name} ({period}) cannot be greater than series length ({series_length})"
        )
    return int(period)


def require_positive(name: str, value: float) -> float:
    if value is None or not value > 0:
        raise InvalidParameterError(f"{name} must be greater than 0, got {value}")
    return float(value)


def bars_to_frame(bars: Sequence[PriceBar]) -> pd.DataFrame:
    """Numeric OHLCV frame with a positional index matching the bar order"""
    return pd.DataFrame(
        {col: [getattr(bar, col) for bar in bars] for col in REQUIRED_COLUMNS},
        dtype=float,
    )


def bars_from_frame(data: pd.DataFrame) -> List[PriceBar]:
    """
    Build a bar series from an OHLCV DataFrame

    Column names are matched case-insensitively. The timestamp comes from a
    'timestamp' column when present, otherwise from the index.

    Raises:
        EmptyInputError: If the frame has no rows
        MalformedBarError: If columns are missing or a row fails validation
    """
    if data.empty:
        raise EmptyInputError("Input data cannot be empty")

    frame = data.rename(columns={col: col.lower() for col in data.columns if isinstance(col, str)})
    missing_columns = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing_columns:
        raise MalformedBarError(f"Missing required columns: {missing_columns}")

    timestamps = frame['timestamp'] if 'timestamp' in frame.columns else frame.index.to_series()
    # Non-numeric cells become NaN and are rejected by the finite check
    values = frame[REQUIRED_COLUMNS].apply(pd.to_numeric, errors='coerce').astype(float)

    bars = []
    for i, (ts, row) in enumerate(zip(timestamps, values.itertuples(index=False))):
        if hasattr(ts, 'to_pydatetime'):
            ts = ts.to_pydatetime()
        try:
            bars.append(PriceBar(timestamp=ts, **row._asdict()))
        except ValidationError as e:
            raise MalformedBarError(f"invalid bar at row {i}: {e}") from e

    return list(validate_series(bars))


def points_to_frame(points: Sequence[IndicatorPoint]) -> pd.DataFrame:
    """Tabulate indicator points with one row per point, indexed by timestamp"""
    rows = [point.model_dump(mode="json", exclude={"timestamp"}) for point in points]
    index = pd.Index([point.timestamp for point in points], name="timestamp")
    return pd.DataFrame(rows, index=index)


class BaseIndicator(ABC):
    """
    Abstract base class for all technical indicator calculators

    A calculator binds a validated series and its parameters; every call
    recomputes from the full series.
    """

    def __init__(self, bars: Sequence[PriceBar], **params):
        """
        Initialize the calculator with a series and parameters

        Args:
            bars: Time-ordered price bars
            **params: Indicator-specific parameters
        """
        self.bars = validate_series(bars)
        self.params = params
        self.config = indicator_config

        logger.debug(f"Initialized {self.__class__.__name__} with {len(self.bars)} bars")

    @abstractmethod
    def calculate(self) -> List[IndicatorPoint]:
        """Calculate the full indicator series"""

    @abstractmethod
    def analyze(self) -> BaseModel:
        """Produce the strategy summary for the latest bar"""

    def latest(self) -> IndicatorPoint:
        """Most recent indicator point"""
        points = self.calculate()
        if not points:
            raise InsufficientDataError(f"no {self.__class__.__name__} values calculated")
        return points[-1]

    def get_metadata(self) -> Dict[str, Any]:
        """
        Get metadata about the indicator calculation

        Returns:
            Dictionary containing metadata
        """
        return {
            'indicator_name': self.__class__.__name__,
            'parameters': self.params,
            'data_points': len(self.bars),
            'date_range': {
                'start': self.bars[0].timestamp.isoformat(),
                'end': self.bars[-1].timestamp.isoformat(),
            },
            'calculation_timestamp': datetime.now().isoformat(),
        }
