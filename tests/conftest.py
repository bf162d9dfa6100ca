"""
Pytest configuration and shared fixtures for HG-Pro MCP tests.

This module provides common fixtures and configuration used across all test modules.
"""

from pathlib import Path

import pytest

from hgpro_mcp.core.data_loader import OHLCVBar, OHLCVData, load_ohlcv_from_csv


FIXTURES_DIR = Path(__file__).parent / "fixtures" / "deterministic_ohlcv"


# =============================================================================
# Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# =============================================================================
# Common Fixtures
# =============================================================================

@pytest.fixture
def mixed_gaps_data() -> OHLCVData:
    """
    22 daily candles with two WRBs.

    - Index 5: bullish WRB leaving a Pro buy gap, filled at index 10
    - Index 19: bearish WRB leaving a Pro sell gap, still active
    """
    return load_ohlcv_from_csv(
        FIXTURES_DIR / "wrb_mixed_gaps.csv",
        symbol="TEST:BTCUSDT",
        timeframe="1d"
    )


@pytest.fixture
def mixed_gaps_records(mixed_gaps_data):
    """The mixed gaps fixture as MCP tool candle payloads."""
    return [
        {
            "timestamp": bar.timestamp,
            "open": bar.open,
            "high": bar.high,
            "low": bar.low,
            "close": bar.close,
            "volume": bar.volume,
        }
        for bar in mixed_gaps_data
    ]


@pytest.fixture
def flat_then_wrb_data() -> OHLCVData:
    """Five flat candles followed by one wide bullish candle."""
    bars = [
        OHLCVBar(timestamp=1704067200 + i * 86400, open=100, high=100.5, low=99.5, close=100.2, volume=1000)
        for i in range(5)
    ]
    bars.append(OHLCVBar(timestamp=1704067200 + 5 * 86400, open=100, high=106, low=99.8, close=105, volume=5000))
    return OHLCVData(symbol="TEST:FLAT", timeframe="1d", bars=bars)


@pytest.fixture
def empty_data() -> OHLCVData:
    """Data with no bars."""
    return OHLCVData(symbol="TEST:EMPTY", timeframe="1d", bars=[])
