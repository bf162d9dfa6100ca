"""
Tests for the Hidden Gap locator.

Tests cover:
- Buy/sell classification and the overlap (no gap) case
- Zone boundaries under each gap extension policy
- Degenerate zones and edge indexes
- Record fields (scope cap, pro, diff, initial fill state)
"""

import pytest

from hgpro_mcp.core.config import GapExtension, WRBConfig
from hgpro_mcp.core.data_loader import OHLCVBar, OHLCVData
from hgpro_mcp.engines.wrb import (
    GapType,
    HiddenGap,
    calculate_gap_bounds,
    detect_hidden_gaps,
)


def candle(o, h, l, c, v=1000.0, ts=0):
    return OHLCVBar(timestamp=ts, open=o, high=h, low=l, close=c, volume=v)


def make_data(bars):
    return OHLCVData(symbol="TEST", timeframe="1d", bars=list(bars))


# old bar, WRB, bar after the WRB
BUY_BARS = [
    candle(100, 101, 99, 100),
    candle(100, 110, 99, 109),
    candle(105, 106, 104, 105),
]

SELL_BARS = [
    candle(100, 101, 99, 100),
    candle(100, 101, 90, 91),
    candle(96, 97, 95, 96),
]


class TestGapBounds:
    """Tests for calculate_gap_bounds under each extension policy."""

    @pytest.mark.parametrize("extension, top, bottom", [
        (GapExtension.NONE, 104, 101),
        (GapExtension.STOP_LOSS, 104, 99),
        (GapExtension.BOTH, 110, 99),
    ])
    def test_buy_gap(self, extension, top, bottom):
        assert calculate_gap_bounds(*BUY_BARS, extension) == (GapType.BUY, top, bottom)

    @pytest.mark.parametrize("extension, top, bottom", [
        (GapExtension.NONE, 99, 97),
        (GapExtension.STOP_LOSS, 101, 97),
        (GapExtension.BOTH, 101, 90),
    ])
    def test_sell_gap(self, extension, top, bottom):
        assert calculate_gap_bounds(*SELL_BARS, extension) == (GapType.SELL, top, bottom)

    def test_stop_loss_caps_top_at_wrb_high(self):
        """Buy stopLoss top is min(WRB high, next low)."""
        bars = [
            candle(100, 101, 99, 100),
            candle(100, 104, 99.5, 103.5),
            candle(106, 107, 105, 106.5),
        ]
        assert calculate_gap_bounds(*bars, GapExtension.STOP_LOSS) == (GapType.BUY, 104, 99.5)

    def test_stop_loss_floors_sell_bottom_at_wrb_low(self):
        """Sell stopLoss bottom is max(WRB low, next high)."""
        bars = [
            candle(100, 101, 99, 100),
            candle(100, 100.5, 96, 96.5),
            candle(94, 95, 93, 94),
        ]
        assert calculate_gap_bounds(*bars, GapExtension.STOP_LOSS) == (GapType.SELL, 100.5, 96)

    def test_overlapping_bars(self):
        """No gap when the next bar trades back into the old bar's range."""
        bars = [
            candle(100, 101, 99, 100),
            candle(100, 110, 99, 109),
            candle(105, 106, 100.5, 105),
        ]
        assert calculate_gap_bounds(*bars) is None

    def test_touching_is_not_a_gap(self):
        """newBar.low == oldBar.high is not strictly greater."""
        bars = [
            candle(100, 101, 99, 100),
            candle(100, 110, 99, 109),
            candle(105, 106, 101, 105),
        ]
        assert calculate_gap_bounds(*bars) is None


class TestDetectHiddenGaps:
    """Tests for detect_hidden_gaps."""

    def test_buy_gap_strict(self):
        """Scenario: strict gap between old high and next low."""
        gaps = detect_hidden_gaps(make_data(BUY_BARS), [False, True, False], {"gapExtension": "none"})

        assert list(gaps) == [1]
        gap = gaps[1]
        assert gap.type == GapType.BUY
        assert gap.top == 104
        assert gap.bottom == 101
        assert gap.filled is False
        assert gap.filled_index is None

    def test_buy_gap_stop_loss(self):
        """Default policy extends the bottom to the WRB low."""
        gaps = detect_hidden_gaps(make_data(BUY_BARS), [False, True, False])

        assert gaps[1].top == 104
        assert gaps[1].bottom == 99

    def test_sell_gap_strict(self):
        gaps = detect_hidden_gaps(make_data(SELL_BARS), [False, True, False], WRBConfig(gap_extension=GapExtension.NONE))

        gap = gaps[1]
        assert gap.type == GapType.SELL
        assert gap.top == 99
        assert gap.bottom == 97

    def test_only_flagged_indexes(self):
        """Unflagged candles are never examined."""
        gaps = detect_hidden_gaps(make_data(BUY_BARS), [False, False, False])
        assert gaps == {}

    def test_first_and_last_candles_skipped(self):
        """Index 0 and index N-1 lack a neighbor and never hold a gap."""
        bars = BUY_BARS + [candle(105, 120, 104, 119)]
        gaps = detect_hidden_gaps(make_data(bars), [True, True, False, True])
        assert list(gaps) == [1]

    def test_short_flag_list(self):
        """Missing flags are treated as False."""
        assert detect_hidden_gaps(make_data(BUY_BARS), [False]) == {}

    def test_degenerate_zone_discarded(self):
        """stopLoss zone collapses when the WRB opened above the old bar."""
        bars = [
            candle(100, 101, 99, 100),
            candle(105, 110, 104, 109),     # low 104
            candle(103, 104, 102, 103.5),   # low 102: top=min(110, 102) < bottom=104
        ]
        flags = [False, True, False]

        assert detect_hidden_gaps(make_data(bars), flags, {"gapExtension": "stopLoss"}) == {}
        strict = detect_hidden_gaps(make_data(bars), flags, {"gapExtension": "none"})
        assert strict[1].top == 102
        assert strict[1].bottom == 101

    def test_end_index_capped_by_scope(self):
        bars = BUY_BARS + [candle(105, 106, 104.5, 105.5, ts=i) for i in range(10)]
        data = make_data(bars)
        flags = [False, True] + [False] * 11

        assert detect_hidden_gaps(data, flags, {"maxScope": 3})[1].end_index == 4
        assert detect_hidden_gaps(data, flags)[1].end_index == 12

    def test_record_fields(self):
        gaps = detect_hidden_gaps(make_data(BUY_BARS), [False, True, False], {"gapExtension": "both"})
        gap = gaps[1]

        assert gap.start_index == 1
        assert gap.end_index == 2
        assert gap.diff == pytest.approx(11)
        # Bullish WRB after a flat bar engulfs it
        assert gap.pro is True

    def test_pro_uses_prev2_when_available(self):
        """The bar two before the WRB feeds the third Pro condition."""
        bars = [
            candle(100, 101, 99, 100),        # prev2: flat
            candle(99, 102, 98, 101),         # old: bullish, engulfs prev2
            candle(101, 110, 100.5, 109.5),   # WRB, same direction as old
            candle(104, 105, 103, 104.5),
        ]
        gaps = detect_hidden_gaps(make_data(bars), [False, False, True, False])
        assert gaps[2].pro is True

        without_prev2 = detect_hidden_gaps(make_data(bars[1:]), [False, True, False])
        assert without_prev2[1].pro is False

    def test_mutually_exclusive_types(self, mixed_gaps_data):
        """At most one gap per WRB index, and every zone has top > bottom."""
        flags = [True] * len(mixed_gaps_data)
        for extension in GapExtension:
            gaps = detect_hidden_gaps(mixed_gaps_data, flags, WRBConfig(gap_extension=extension))
            for index, gap in gaps.items():
                assert isinstance(gap, HiddenGap)
                assert gap.start_index == index
                assert 0 < index < len(mixed_gaps_data) - 1
                assert gap.top > gap.bottom

    def test_empty_data(self, empty_data):
        assert detect_hidden_gaps(empty_data, []) == {}
