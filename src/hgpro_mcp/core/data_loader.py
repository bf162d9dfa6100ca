"""
OHLCV Data Loading Utilities for HG-Pro MCP.

This module provides the candle containers consumed by the WRB engine,
plus helpers for building them from tool payloads and CSV fixtures.

Key Features:
- OHLCVBar and OHLCVData dataclasses for type-safe data handling
- NumPy array accessors for efficient calculations
- Candle record parsing for MCP tool payloads
- Minimum bar requirements for the tool layer
- CSV fixture loading for testing
"""

from __future__ import annotations
from dataclasses import dataclass, field, InitVar
from typing import Any, Dict, List, Optional, Iterator, Sequence
from pathlib import Path
import csv

import numpy as np

from .errors import InsufficientDataError, DataError, ValidationError
from .sanitize import validate_ohlcv_data


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class OHLCVBar:
    """
    Single OHLCV bar/candle data.

    OHLC consistency is checked on construction unless ``validate`` is
    False. Tool payloads are built with ``validate=False`` because data
    providers round prices, leaving candles whose low sits a hair above
    the open; those are analyzed on the raw numbers.

    Attributes:
        timestamp: Unix timestamp (seconds or milliseconds, caller's choice)
        open: Opening price
        high: Highest price
        low: Lowest price
        close: Closing price
        volume: Trading volume
    """
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    validate: InitVar[bool] = True

    def __post_init__(self, validate: bool):
        if not validate:
            return
        if self.high < self.low:
            raise ValueError(f"High ({self.high}) cannot be less than Low ({self.low})")
        if self.high < max(self.open, self.close):
            raise ValueError(f"High ({self.high}) must be >= Open ({self.open}) and Close ({self.close})")
        if self.low > min(self.open, self.close):
            raise ValueError(f"Low ({self.low}) must be <= Open ({self.open}) and Close ({self.close})")

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def body_size(self) -> float:
        """Absolute size of the candle body."""
        return abs(self.close - self.open)

    @property
    def range_size(self) -> float:
        """Full range from high to low."""
        return self.high - self.low

    @property
    def upper_wick(self) -> float:
        """Size of upper wick/shadow."""
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> float:
        """Size of lower wick/shadow."""
        return min(self.open, self.close) - self.low


@dataclass
class OHLCVData:
    """
    Collection of OHLCV bars for a symbol/timeframe.

    Provides both list-based access to individual bars and
    NumPy array accessors for vectorized range and fill scans.

    Attributes:
        symbol: Trading symbol (e.g., "BTCUSDT")
        timeframe: Timeframe string (e.g., "1h", "1d")
        bars: List of OHLCVBar objects (oldest first)
    """
    symbol: str
    timeframe: str
    bars: List[OHLCVBar] = field(default_factory=list)

    # Cached numpy arrays (lazily computed)
    _opens: Optional[np.ndarray] = field(default=None, repr=False)
    _highs: Optional[np.ndarray] = field(default=None, repr=False)
    _lows: Optional[np.ndarray] = field(default=None, repr=False)
    _closes: Optional[np.ndarray] = field(default=None, repr=False)

    def __len__(self) -> int:
        return len(self.bars)

    def __getitem__(self, index: int) -> OHLCVBar:
        return self.bars[index]

    def __iter__(self) -> Iterator[OHLCVBar]:
        return iter(self.bars)

    # =========================================================================
    # NumPy Array Accessors (for vectorized calculations)
    # =========================================================================

    @property
    def opens(self) -> np.ndarray:
        if self._opens is None:
            self._opens = np.array([bar.open for bar in self.bars], dtype=np.float64)
        return self._opens

    @property
    def highs(self) -> np.ndarray:
        if self._highs is None:
            self._highs = np.array([bar.high for bar in self.bars], dtype=np.float64)
        return self._highs

    @property
    def lows(self) -> np.ndarray:
        if self._lows is None:
            self._lows = np.array([bar.low for bar in self.bars], dtype=np.float64)
        return self._lows

    @property
    def closes(self) -> np.ndarray:
        if self._closes is None:
            self._closes = np.array([bar.close for bar in self.bars], dtype=np.float64)
        return self._closes


# =============================================================================
# Validation Functions
# =============================================================================

def validate_minimum_bars(data: OHLCVData, required: int) -> bool:
    """
    Check if data has enough bars for analysis.

    Raises:
        InsufficientDataError: If not enough bars available
    """
    available = len(data)

    if available < required:
        raise InsufficientDataError(
            required=required,
            available=available
        )

    return True


# =============================================================================
# Builders
# =============================================================================

def create_ohlcv_from_records(
    records: Sequence[Dict[str, Any]],
    symbol: str = "UNKNOWN",
    timeframe: str = "1d"
) -> OHLCVData:
    """
    Create OHLCVData from a list of candle dictionaries.

    This is the shape MCP clients send: ``{"timestamp", "open", "high",
    "low", "close", "volume"}``. A missing timestamp defaults to the
    candle's position; a missing volume defaults to 0. Prices are taken
    as sent, without OHLC consistency checks.

    Raises:
        ValidationError: If records is not a list of candles
        DataError: If any record is malformed

    Example:
        >>> data = create_ohlcv_from_records([
        ...     {"timestamp": 1, "open": 100, "high": 101, "low": 99, "close": 100.5}
        ... ])
        >>> len(data)
        1
    """
    if not isinstance(records, (list, tuple)):
        raise ValidationError(
            f"candles must be a list of candle objects, got {type(records).__name__}",
            {"type": type(records).__name__}
        )

    bars = []

    for position, record in enumerate(records):
        is_valid, error = validate_ohlcv_data(record)
        if not is_valid:
            raise DataError(f"Candle #{position}: {error}", {"index": position})

        timestamp = record.get("timestamp")
        volume = record.get("volume")
        bars.append(OHLCVBar(
            timestamp=int(timestamp) if timestamp is not None else position,
            open=float(record["open"]),
            high=float(record["high"]),
            low=float(record["low"]),
            close=float(record["close"]),
            volume=float(volume) if volume is not None else 0.0,
            validate=False
        ))

    return OHLCVData(symbol=symbol, timeframe=timeframe, bars=bars)


def load_ohlcv_from_csv(
    filepath: str | Path,
    symbol: str = "TEST:SYMBOL",
    timeframe: str = "1d"
) -> OHLCVData:
    """
    Load OHLCV data from a CSV file.

    Expected CSV format (with header):
        timestamp,open,high,low,close,volume

    Raises:
        DataError: If file cannot be read or parsed
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise DataError(f"CSV file not found: {filepath}")

    bars = []

    try:
        with open(filepath, "r", newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)

            for row in reader:
                bars.append(OHLCVBar(
                    timestamp=int(row["timestamp"]),
                    open=float(row["open"]),
                    high=float(row["high"]),
                    low=float(row["low"]),
                    close=float(row["close"]),
                    volume=float(row.get("volume") or 0)
                ))

    except KeyError as e:
        raise DataError(f"CSV missing required column: {e}")
    except ValueError as e:
        raise DataError(f"CSV contains invalid data: {e}")
    except OSError as e:
        raise DataError(f"Failed to read CSV: {e}")

    return OHLCVData(symbol=symbol, timeframe=timeframe, bars=bars)


def get_latest_n_bars(data: OHLCVData, n: int) -> OHLCVData:
    """Return a new OHLCVData holding the most recent N bars."""
    if n >= len(data):
        return data
    return OHLCVData(
        symbol=data.symbol,
        timeframe=data.timeframe,
        bars=data.bars[len(data) - n:]
    )
