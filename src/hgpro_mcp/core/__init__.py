"""
HG-Pro MCP Core Module.

This module provides core infrastructure for the WRB / Hidden Gap engine.

Modules:
- errors: Custom exception hierarchy and error response builders
- config: WRBConfig analysis options
- sanitize: Tool input validation and clamping
- schemas: TypedDict definitions for the wire output
- data_loader: OHLCV data containers and loaders
"""

from .errors import (
    HGProError,
    DataError,
    ValidationError,
    InsufficientDataError,
    build_error_response,
)

from .config import (
    GapExtension,
    WRBConfig,
    resolve_config,
)

from .sanitize import (
    sanitize_timeframe,
    sanitize_lookback,
    sanitize_sensitivity,
    sanitize_max_scope,
    sanitize_limit,
    sanitize_gap_extension,
    validate_ohlcv_data,
    ALLOWED_TIMEFRAMES,
)

from .schemas import (
    HiddenGapDict,
    LastSignal,
    WRBSummary,
    WRBResultDict,
    build_summary,
    validate_wrb_result,
)

from .data_loader import (
    OHLCVBar,
    OHLCVData,
    create_ohlcv_from_records,
    load_ohlcv_from_csv,
    get_latest_n_bars,
    validate_minimum_bars,
)

__all__ = [
    # Errors
    "HGProError",
    "DataError",
    "ValidationError",
    "InsufficientDataError",
    "build_error_response",
    # Config
    "GapExtension",
    "WRBConfig",
    "resolve_config",
    # Sanitize
    "sanitize_timeframe",
    "sanitize_lookback",
    "sanitize_sensitivity",
    "sanitize_max_scope",
    "sanitize_limit",
    "sanitize_gap_extension",
    "validate_ohlcv_data",
    "ALLOWED_TIMEFRAMES",
    # Schemas
    "HiddenGapDict",
    "LastSignal",
    "WRBSummary",
    "WRBResultDict",
    "build_summary",
    "validate_wrb_result",
    # Data Loader
    "OHLCVBar",
    "OHLCVData",
    "create_ohlcv_from_records",
    "load_ohlcv_from_csv",
    "get_latest_n_bars",
    "validate_minimum_bars",
]
