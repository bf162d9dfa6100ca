"""
Wide Range Bar (WRB) and Hidden Gap Engine.

This engine follows the HG_PRO methodology: it flags candles whose range
dwarfs every one of their recent predecessors, looks for an unvisited price
zone ("hidden gap") between the candle before and the candle after each
such bar, grades the gap's conviction ("Pro") and tracks whether later
price action has filled it.

Pipeline:
- detect_wrb: boolean flag per candle
- detect_hidden_gaps: gap zones at flagged candles, keyed by candle index
- is_pro_gap: conviction grading, called inline by the gap locator
- track_gap_fills: forward scan marking each gap filled at most once
- analyze_wrb: runs the stages and builds the summary

Everything here is a pure, synchronous function of (candles, config).
Short or empty input yields all-False flags and no gaps; it never raises.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import logging

import numpy as np

from ..core.config import GapExtension, WRBConfig, resolve_config
from ..core.data_loader import OHLCVBar, OHLCVData
from ..core.schemas import (
    HiddenGapDict,
    LastSignal,
    WRBResultDict,
    WRBSummary,
    build_summary,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Pro grading heuristics (kept as independent constants)
ENGULF_BODY_RATIO = 0.9          # engulfing body must exceed 90% of the engulfed body
SHADOW_BODY_MULTIPLE = 2.0       # hammer / shooting star: shadow >= 2x body
DOJI_SHADOW_RANGE_RATIO = 0.67   # doji: shadow >= 67% of the full range

TOOL_NAME = "wrb_scoring"

ConfigLike = Union[WRBConfig, Mapping[str, Any], None]


class GapType(str, Enum):
    """Direction of a hidden gap."""
    BUY = "buy"
    SELL = "sell"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class HiddenGap:
    """
    A hidden gap zone left by a WRB.

    ``end_index`` starts as the fill-scan horizon and is moved to the
    filling candle when the gap is filled. ``filled`` goes False -> True
    at most once; ``pro`` and ``diff`` never change after creation.
    """
    type: GapType
    top: float
    bottom: float
    start_index: int
    end_index: int
    pro: bool
    filled: bool = False
    filled_index: Optional[int] = None
    diff: float = field(init=False)

    def __post_init__(self):
        self.diff = self.top - self.bottom

    def mark_filled(self, index: int) -> None:
        """Record the candle that re-entered the zone."""
        self.filled = True
        self.filled_index = index
        self.end_index = index

    def to_dict(self) -> HiddenGapDict:
        return {
            "type": self.type.value,
            "top": self.top,
            "bottom": self.bottom,
            "startIndex": self.start_index,
            "endIndex": self.end_index,
            "filled": self.filled,
            "filledIndex": self.filled_index,
            "pro": self.pro,
            "diff": self.diff,
        }


@dataclass
class WRBAnalysis:
    """Result of a complete WRB / Hidden Gap run."""
    flags: List[bool]
    gaps: Dict[int, HiddenGap]
    active: List[HiddenGap]
    filled: List[HiddenGap]
    summary: WRBSummary

    def to_dict(self) -> WRBResultDict:
        """
        Serialize to the wire shape.

        ``gaps`` becomes an index-aligned list (one slot per candle) so the
        renderer can look gaps up by candle position.
        """
        aligned: List[Optional[HiddenGapDict]] = [None] * len(self.flags)
        for index, gap in self.gaps.items():
            aligned[index] = gap.to_dict()

        return {
            "flags": list(self.flags),
            "gaps": aligned,
            "active": [gap.to_dict() for gap in self.active],
            "filled": [gap.to_dict() for gap in self.filled],
            "summary": self.summary,
        }


# =============================================================================
# Range Classifier
# =============================================================================

def calculate_bar_ranges(data: OHLCVData, use_body: bool = True) -> np.ndarray:
    """Candle body size, or full high-low range when use_body is False."""
    if use_body:
        return np.abs(data.closes - data.opens)
    return data.highs - data.lows


def detect_wrb(data: OHLCVData, config: ConfigLike = None) -> List[bool]:
    """
    Flag Wide Range Bars.

    A bar is a WRB when its range is strictly greater than the range of
    EVERY one of the previous ``lookback_period`` bars multiplied by
    ``sensitivity``. Comparing against each bar rather than the maximum
    keeps a single noisy neighbor from producing a run of flags.

    Args:
        data: OHLCVData with candles in ascending time order
        config: WRBConfig or partial options mapping

    Returns:
        List of booleans, one per candle. Bars without a full lookback
        window and zero-range bars are never WRB.
    """
    config = resolve_config(config)
    n = len(data)
    lookback = config.lookback_period
    flags = [False] * n

    if n == 0:
        return flags

    ranges = calculate_bar_ranges(data, config.use_body)

    for i in range(max(lookback, 0), n):
        current = ranges[i]
        if current == 0:
            continue

        previous = ranges[i - lookback:i]
        flags[i] = bool(np.all(current > previous * config.sensitivity))

    return flags


# =============================================================================
# Quality Classifier
# =============================================================================

def _is_opposite_engulf(bar: OHLCVBar, engulfed: OHLCVBar) -> bool:
    """Opposite direction and a body larger than 90% of the engulfed body."""
    if bar.is_bullish == engulfed.is_bullish:
        return False
    return bar.body_size > engulfed.body_size * ENGULF_BODY_RATIO


def _has_exhaustion_shadow(bar: OHLCVBar, gap_type: GapType) -> bool:
    """Hammer (buy) or shooting star (sell) shape, including the doji case."""
    shadow = bar.lower_wick if gap_type == GapType.BUY else bar.upper_wick
    body = bar.body_size

    if body == 0:
        full_range = bar.range_size
        return full_range > 0 and shadow >= full_range * DOJI_SHADOW_RANGE_RATIO

    return shadow >= body * SHADOW_BODY_MULTIPLE


def is_pro_gap(
    old_bar: OHLCVBar,
    wrb_bar: OHLCVBar,
    prev2_bar: Optional[OHLCVBar],
    gap_type: Union[GapType, str]
) -> bool:
    """
    Grade a hidden gap as Pro (high conviction).

    Any one condition is enough:
    1. The WRB engulfs the bar before it (opposite direction, body
       greater than 0.9x the old body).
    2. The bar before the WRB shows an exhaustion shadow against the gap
       direction: lower shadow >= 2x body for buy gaps, upper shadow for
       sell gaps. A doji qualifies when the shadow is >= 0.67 of its range.
    3. The bar before the WRB itself engulfs the bar before it.

    Args:
        old_bar: Candle at i-1
        wrb_bar: The WRB candle at i
        prev2_bar: Candle at i-2, or None when the WRB is at index 1
        gap_type: "buy" or "sell"
    """
    gap_type = GapType(gap_type)

    if _is_opposite_engulf(wrb_bar, old_bar):
        return True

    if _has_exhaustion_shadow(old_bar, gap_type):
        return True

    if prev2_bar is not None and _is_opposite_engulf(old_bar, prev2_bar):
        return True

    return False


# =============================================================================
# Gap Locator
# =============================================================================

def calculate_gap_bounds(
    old_bar: OHLCVBar,
    wrb_bar: OHLCVBar,
    new_bar: OHLCVBar,
    gap_extension: GapExtension = GapExtension.STOP_LOSS
) -> Optional[Tuple[GapType, float, float]]:
    """
    Classify the gap around a WRB and compute its zone.

    Returns:
        (gap_type, top, bottom), or None when the bars after and before the
        WRB overlap. The zone may still be degenerate (top <= bottom); the
        caller discards those.
    """
    if new_bar.low > old_bar.high:
        if gap_extension == GapExtension.NONE:
            return GapType.BUY, new_bar.low, old_bar.high
        if gap_extension == GapExtension.STOP_LOSS:
            return GapType.BUY, min(wrb_bar.high, new_bar.low), wrb_bar.low
        return GapType.BUY, wrb_bar.high, wrb_bar.low

    if new_bar.high < old_bar.low:
        if gap_extension == GapExtension.NONE:
            return GapType.SELL, old_bar.low, new_bar.high
        if gap_extension == GapExtension.STOP_LOSS:
            return GapType.SELL, wrb_bar.high, max(wrb_bar.low, new_bar.high)
        return GapType.SELL, wrb_bar.high, wrb_bar.low

    return None


def detect_hidden_gaps(
    data: OHLCVData,
    wrb_flags: List[bool],
    config: ConfigLike = None
) -> Dict[int, HiddenGap]:
    """
    Locate hidden gaps at flagged WRB candles.

    The first and last candles are skipped since they lack a neighbor on
    one side.

    Args:
        data: OHLCVData with candles in ascending time order
        wrb_flags: Output of detect_wrb for the same data
        config: WRBConfig or partial options mapping

    Returns:
        Mapping of WRB candle index to HiddenGap, in ascending index order.
    """
    config = resolve_config(config)
    n = len(data)
    gaps: Dict[int, HiddenGap] = {}

    for i in range(1, n - 1):
        if i >= len(wrb_flags) or not wrb_flags[i]:
            continue

        old_bar = data[i - 1]
        wrb_bar = data[i]
        new_bar = data[i + 1]
        prev2_bar = data[i - 2] if i >= 2 else None

        bounds = calculate_gap_bounds(old_bar, wrb_bar, new_bar, config.gap_extension)
        if bounds is None:
            continue

        gap_type, top, bottom = bounds
        if top <= bottom:
            continue

        gaps[i] = HiddenGap(
            type=gap_type,
            top=top,
            bottom=bottom,
            start_index=i,
            end_index=min(i + config.max_scope, n - 1),
            pro=is_pro_gap(old_bar, wrb_bar, prev2_bar, gap_type),
        )

    return gaps


# =============================================================================
# Fill Tracker
# =============================================================================

def track_gap_fills(
    data: OHLCVData,
    gaps: Union[Mapping[int, HiddenGap], Iterable[Optional[HiddenGap]]]
) -> None:
    """
    Mark gaps filled, in place.

    A buy gap fills when a later low touches or breaks its bottom; a sell
    gap fills when a later high touches or breaks its top. Only candles
    in (start_index, end_index] are scanned. Gaps already filled are left
    alone, so running this twice changes nothing.

    Args:
        data: OHLCVData the gaps were located on
        gaps: Mapping from detect_hidden_gaps, or an index-aligned sequence
              of gaps and None
    """
    records = gaps.values() if isinstance(gaps, Mapping) else gaps
    n = len(data)

    for gap in records:
        if gap is None or gap.filled:
            continue

        first = gap.start_index + 1
        last = min(gap.end_index, n - 1)
        if first > last:
            continue

        if gap.type == GapType.BUY:
            hits = np.nonzero(data.lows[first:last + 1] <= gap.bottom)[0]
        else:
            hits = np.nonzero(data.highs[first:last + 1] >= gap.top)[0]

        if hits.size:
            gap.mark_filled(first + int(hits[0]))


# =============================================================================
# Main Analysis Function
# =============================================================================

def analyze_wrb(data: OHLCVData, config: ConfigLike = None) -> WRBAnalysis:
    """
    Run WRB detection, gap location and fill tracking.

    Args:
        data: OHLCVData with candles in ascending time order
        config: WRBConfig, partial options mapping, or None for defaults

    Returns:
        WRBAnalysis with flags, gaps (by index), active and filled gaps in
        discovery order, and the summary block.
    """
    config = resolve_config(config)

    flags = detect_wrb(data, config)
    gaps = detect_hidden_gaps(data, flags, config)
    track_gap_fills(data, gaps)

    active: List[HiddenGap] = []
    filled: List[HiddenGap] = []
    pro_count = 0

    for gap in gaps.values():
        if gap.filled:
            filled.append(gap)
        else:
            active.append(gap)
        if gap.pro:
            pro_count += 1

    last_signal: Optional[LastSignal] = None
    if gaps:
        last_index = max(gaps)
        last_gap = gaps[last_index]
        last_signal = {
            "index": last_index,
            "type": last_gap.type.value,
            "pro": last_gap.pro,
        }

    summary = build_summary(
        total_wrb=sum(flags),
        total_gaps=len(gaps),
        active_count=len(active),
        filled_count=len(filled),
        pro_count=pro_count,
        last_signal=last_signal,
    )

    logger.debug(
        f"WRB analysis on {data.symbol} {data.timeframe}: {len(data)} candles, "
        f"{summary['totalWRB']} WRB, {summary['totalGaps']} gaps "
        f"({summary['activeCount']} active, {summary['filledCount']} filled)"
    )

    return WRBAnalysis(
        flags=flags,
        gaps=gaps,
        active=active,
        filled=filled,
        summary=summary,
    )


# =============================================================================
# Reporting
# =============================================================================

def build_wrb_summary_text(
    symbol: str,
    timeframe: str,
    candle_count: int,
    summary: WRBSummary
) -> str:
    """
    Render the one-paragraph report shown to the LLM client.

    Example:
        >>> text = build_wrb_summary_text("BTCUSDT", "1d", 30, build_summary(1, 1, 1, 0, 0))
        >>> text.startswith("BTCUSDT 1d WRB/HG Analysis")
        True
    """
    text = (
        f"{symbol} {timeframe} WRB/HG Analysis: "
        f"{candle_count} candles | "
        f"WRB: {summary['totalWRB']} | "
        f"Gaps: {summary['totalGaps']} "
        f"(Active: {summary['activeCount']}, Filled: {summary['filledCount']}) | "
        f"Pro: {summary['proCount']}"
    )

    signal = summary["lastSignal"]
    if signal:
        direction = "Bullish" if signal["type"] == GapType.BUY.value else "Bearish"
        text += f"\n\nLatest signal: {direction}{' (PRO)' if signal['pro'] else ''} at candle #{signal['index']}"

    return text


def get_detailed_wrb(data: OHLCVData, config: ConfigLike = None) -> Dict[str, Any]:
    """
    Get the full WRB analysis together with its inputs' metadata.

    Returns a dictionary with symbol, timeframe, candle count, the
    effective config (wire names) and every field of the analysis.
    """
    config = resolve_config(config)
    analysis = analyze_wrb(data, config)

    return {
        "symbol": data.symbol,
        "timeframe": data.timeframe,
        "candles": len(data),
        "config": config.to_dict(),
        **analysis.to_dict(),
    }
