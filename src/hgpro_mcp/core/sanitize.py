"""
Input Sanitization and Validation for HG-Pro MCP.

This module provides functions for validating and sanitizing tool inputs
before they reach the WRB engine. The engine itself trusts its config;
clamping happens here, at the tool boundary. All functions are pure and
return sanitized values with sensible defaults.

Key Features:
- Timeframe validation and normalization
- WRB parameter clamping (lookback, sensitivity, scope)
- Gap extension policy normalization
- OHLCV record validation
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Set, Tuple

from .config import (
    DEFAULT_LOOKBACK_PERIOD,
    DEFAULT_MAX_SCOPE,
    DEFAULT_SENSITIVITY,
    DEFAULT_GAP_EXTENSION,
    GapExtension,
)


# =============================================================================
# Constants
# =============================================================================

ALLOWED_TIMEFRAMES: Set[str] = {"1m", "5m", "15m", "1h", "4h", "1d", "1w", "1M"}

DEFAULT_TIMEFRAME: str = "1d"

# Tool argument ranges
MIN_LOOKBACK_PERIOD: int = 3
MAX_LOOKBACK_PERIOD: int = 20
MIN_SENSITIVITY: float = 1.0
MAX_SENSITIVITY: float = 3.0
MIN_MAX_SCOPE: int = 1
MAX_MAX_SCOPE: int = DEFAULT_MAX_SCOPE


# =============================================================================
# Timeframe Sanitization
# =============================================================================

def sanitize_timeframe(tf: str | None, default: str = DEFAULT_TIMEFRAME) -> str:
    """
    Validate and normalize a timeframe string.

    Args:
        tf: Input timeframe string (e.g., "15m", "1h", "1d")
        default: Default value if input is invalid

    Returns:
        Valid timeframe string from ALLOWED_TIMEFRAMES, or default

    Example:
        >>> sanitize_timeframe("4h")
        '4h'
        >>> sanitize_timeframe("2h")
        '1d'
    """
    if not tf:
        return default

    tfs = tf.strip()
    return tfs if tfs in ALLOWED_TIMEFRAMES else default


# =============================================================================
# WRB Parameter Sanitization
# =============================================================================

def _clamp_int(value: Any, default: int, low: int, high: int) -> int:
    if value is None:
        return default
    try:
        number = int(value)
    except (ValueError, TypeError):
        return default
    return max(low, min(number, high))


def sanitize_lookback(value: Any, default: int = DEFAULT_LOOKBACK_PERIOD) -> int:
    """
    Clamp the WRB lookback period to [3, 20].

    Example:
        >>> sanitize_lookback(50)
        20
        >>> sanitize_lookback("abc")
        5
    """
    return _clamp_int(value, default, MIN_LOOKBACK_PERIOD, MAX_LOOKBACK_PERIOD)


def sanitize_max_scope(value: Any, default: int = DEFAULT_MAX_SCOPE) -> int:
    """Clamp the forward fill-scan scope to [1, 999]."""
    return _clamp_int(value, default, MIN_MAX_SCOPE, MAX_MAX_SCOPE)


def sanitize_limit(value: Any, default: int = 200, min_val: int = 10, max_val: int = 500) -> int:
    """
    Clamp the number of candles a tool analyzes.

    Example:
        >>> sanitize_limit(5)
        10
        >>> sanitize_limit(None)
        200
    """
    return _clamp_int(value, default, min_val, max_val)


def sanitize_sensitivity(value: Any, default: float = DEFAULT_SENSITIVITY) -> float:
    """
    Clamp the WRB sensitivity multiplier to [1.0, 3.0].

    Example:
        >>> sanitize_sensitivity(0.5)
        1.0
        >>> sanitize_sensitivity(None)
        1.5
    """
    if value is None:
        return default
    try:
        number = float(value)
    except (ValueError, TypeError):
        return default
    if number != number:  # NaN
        return default
    return max(MIN_SENSITIVITY, min(number, MAX_SENSITIVITY))


def sanitize_gap_extension(
    value: str | GapExtension | None,
    default: GapExtension = DEFAULT_GAP_EXTENSION
) -> GapExtension:
    """
    Normalize a gap extension policy name.

    Matching is case-insensitive so "stoploss" and "STOPLOSS" both map to
    GapExtension.STOP_LOSS.

    Example:
        >>> sanitize_gap_extension("BOTH")
        <GapExtension.BOTH: 'both'>
        >>> sanitize_gap_extension("wide")
        <GapExtension.STOP_LOSS: 'stopLoss'>
    """
    if isinstance(value, GapExtension):
        return value
    if not value:
        return default

    wanted = str(value).strip().lower()
    for policy in GapExtension:
        if policy.value.lower() == wanted:
            return policy
    return default


# =============================================================================
# OHLCV Data Validation
# =============================================================================

def validate_ohlcv_data(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate the shape of an OHLCV candle.

    Only presence and types are checked. Price relations such as
    high >= open are left alone so that rounded provider data is still
    analyzed on its raw numbers.

    Required keys: open, high, low, close
    Optional: timestamp, volume

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_ohlcv_data({"open": 100, "high": 110, "low": 95, "close": 105})
        (True, None)
        >>> validate_ohlcv_data({"open": 100})
        (False, 'Missing required key: high')
    """
    if not isinstance(data, dict):
        return (False, f"Candle must be an object, got {type(data).__name__}")

    required_keys = ["open", "high", "low", "close"]

    for key in required_keys:
        if key not in data:
            return (False, f"Missing required key: {key}")

    for key in required_keys:
        value = data[key]
        if value is None:
            return (False, f"Value for '{key}' is None")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return (False, f"Value for '{key}' is not numeric: {type(value).__name__}")

    if "volume" in data and data["volume"] is not None:
        volume = data["volume"]
        if isinstance(volume, bool) or not isinstance(volume, (int, float)):
            return (False, f"Volume is not numeric: {type(volume).__name__}")
        if volume < 0:
            return (False, f"Volume is negative: {volume}")

    return (True, None)
